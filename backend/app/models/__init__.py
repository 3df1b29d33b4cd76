"""SQLAlchemy models for the aero-club backend."""

from app.models.user import User
from app.models.org import Organization, OrgMembership
from app.models.aircraft import Aircraft, AircraftRate, AircraftTechLog
from app.models.lesson import FlightType, Lesson, StudentLesson
from app.models.booking import Booking, BookingDetails, BookingFlightTimes
from app.models.debrief import LessonDebrief, LessonDebriefPerformance
from app.models.defect import Defect
from app.models.audit import AuditLog

__all__ = [
    "User",
    "Organization",
    "OrgMembership",
    "Aircraft",
    "AircraftRate",
    "AircraftTechLog",
    "FlightType",
    "Lesson",
    "StudentLesson",
    "Booking",
    "BookingDetails",
    "BookingFlightTimes",
    "LessonDebrief",
    "LessonDebriefPerformance",
    "Defect",
    "AuditLog",
]
