"""Enumeration types for the aero-club domain model."""

from enum import Enum


class OrgRole(str, Enum):
    """Role within an organization."""
    OWNER = "OWNER"
    ADMIN = "ADMIN"
    INSTRUCTOR = "INSTRUCTOR"
    MEMBER = "MEMBER"
    STUDENT = "STUDENT"


class BookingType(str, Enum):
    """What a booking reserves time for."""
    FLIGHT = "flight"
    GROUNDWORK = "groundwork"
    MAINTENANCE = "maintenance"
    TIMESHEET = "timesheet"


class BookingStatus(str, Enum):
    """Canonical persisted booking status.

    Legacy rows may hold other spellings (``IN_PROGRESS``, ``COMPLETED``...);
    readers go through ``normalize_status``.
    """
    UNCONFIRMED = "unconfirmed"
    CONFIRMED = "confirmed"
    FLYING = "flying"
    IN_PROGRESS = "inProgress"
    COMPLETE = "complete"
    CANCELLED = "cancelled"


class SchedulerStatus(str, Enum):
    """Normalized status shown on the scheduler timeline."""
    CONFIRMED = "confirmed"
    PENDING = "pending"
    FLYING = "flying"
    COMPLETE = "complete"
    CANCELLED = "cancelled"


class ResourceKind(str, Enum):
    """Row type on the scheduler timeline."""
    STAFF = "staff"
    AIRCRAFT = "aircraft"


class LessonOutcome(str, Enum):
    """Overall result of a debrief."""
    PASS = "PASS"
    FAIL = "FAIL"
    INCOMPLETE = "INCOMPLETE"


class DefectStatus(str, Enum):
    """Defect lifecycle: open, awaiting parts or sign-off, closed."""
    OPEN = "open"
    PENDING = "pending"
    CLOSED = "closed"


class AuditAction(str, Enum):
    """Actions tracked in audit log."""
    BOOKING_CREATED = "booking_created"
    BOOKING_UPDATED = "booking_updated"
    BOOKING_RESCHEDULED = "booking_rescheduled"
    BOOKING_CANCELLED = "booking_cancelled"
    BRIEFING_COMPLETED = "briefing_completed"
    CHECKED_OUT = "checked_out"
    CHECKED_IN = "checked_in"
    DEBRIEF_COMPLETED = "debrief_completed"
    DEBRIEF_UPDATED = "debrief_updated"
    DEFECT_REPORTED = "defect_reported"
    DEFECT_UPDATED = "defect_updated"
