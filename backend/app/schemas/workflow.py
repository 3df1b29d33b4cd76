"""Booking workflow schemas: checkout, check-in, debrief and progress."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import Field

from app.models.enums import LessonOutcome
from app.schemas.base import BaseSchema, IDMixin
from app.schemas.booking import BookingResponse


class CheckoutRequest(BaseSchema):
    """Route and passenger details captured when the aircraft leaves."""

    route: str = Field(..., min_length=1)
    passengers: Optional[int] = Field(None, ge=0, le=20)
    eta: Optional[datetime] = None
    comments: Optional[str] = None
    instructor_comment: Optional[str] = None


class CheckinRequest(BaseSchema):
    """End-of-flight meter readings. Flight time is never accepted from the client."""

    end_hobbs: Optional[float] = Field(None, ge=0)
    end_tacho: Optional[float] = Field(None, ge=0)
    rate_id: Optional[UUID] = None


class TechLogResponse(BaseSchema, IDMixin):
    aircraft_id: UUID
    booking_flight_times_id: Optional[UUID] = None
    current_hobbs: Optional[float] = None
    current_tacho: Optional[float] = None
    created_at: datetime


class CheckinResponse(BaseSchema):
    booking: BookingResponse
    flight_time: float
    hobbs_delta: Optional[float] = None
    tacho_delta: Optional[float] = None
    tech_log: TechLogResponse


class PerformanceInput(BaseSchema):
    item: str = Field(..., min_length=1, max_length=255)
    grade: int = Field(0, ge=0, le=5)
    comment: Optional[str] = None


class DebriefRequest(BaseSchema):
    """A whole debrief, submitted in one request."""

    performances: list[PerformanceInput] = Field(default_factory=list)
    outcome: Optional[str] = None
    comments: Optional[str] = None


class PerformancePatch(BaseSchema):
    item: Optional[str] = Field(None, min_length=1, max_length=255)
    grade: Optional[int] = Field(None, ge=0, le=5)
    comment: Optional[str] = None


class DebriefPatch(BaseSchema):
    """Outcome and comments of an existing debrief."""

    outcome: Optional[str] = None
    comments: Optional[str] = None


class PerformanceResponse(BaseSchema, IDMixin):
    item: str
    grade: int
    comment: Optional[str] = None


class DebriefResponse(BaseSchema, IDMixin):
    booking_id: UUID
    instructor_id: Optional[UUID] = None
    outcome: LessonOutcome
    comments: Optional[str] = None
    created_at: datetime
    performances: list[PerformanceResponse] = Field(default_factory=list)


class StageProgress(BaseSchema):
    stage: str
    state: str


class ProgressResponse(BaseSchema):
    booking_id: UUID
    status: str
    entry_stage: str
    stages: list[StageProgress]
