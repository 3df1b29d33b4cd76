"""Booking schemas."""

import re
from datetime import date, datetime
from typing import Any, Literal, Optional
from uuid import UUID

from pydantic import Field, field_validator, model_validator

from app.schemas.base import BaseSchema, IDMixin, StoredDatetime, TimestampMixin
from app.models.enums import BookingType

_CLOCK = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")


def combine_date_time(day: date, clock: str) -> datetime:
    """Combine a date with an ``HH:MM`` wall-clock time."""
    match = _CLOCK.match(clock)
    if not match:
        raise ValueError(f"Invalid time {clock!r}, expected HH:MM")
    return datetime(day.year, day.month, day.day, int(match.group(1)), int(match.group(2)))


class BookingWrite(BaseSchema):
    """Create or fully replace a booking.

    Date and time arrive as separate fields; the start and end datetimes are
    always derived on the server.
    """

    start_date: date
    start_time: str
    end_date: date
    end_time: str
    member: UUID
    aircraft: UUID
    flight_type: UUID
    instructor: Optional[UUID] = None
    lesson: Optional[UUID] = None
    description: Optional[str] = None
    type: BookingType = BookingType.FLIGHT
    status: Literal["unconfirmed", "confirmed"] = "confirmed"

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_clock(cls, value: str) -> str:
        if not _CLOCK.match(value):
            raise ValueError(f"Invalid time {value!r}, expected HH:MM")
        return value

    @model_validator(mode="after")
    def validate_interval(self):
        """End must be after start."""
        if self.end_at <= self.start_at:
            raise ValueError("End time must be after start time")
        return self

    @property
    def start_at(self) -> datetime:
        return combine_date_time(self.start_date, self.start_time)

    @property
    def end_at(self) -> datetime:
        return combine_date_time(self.end_date, self.end_time)


class BookingPatch(BaseSchema):
    """Partial update of a single booking."""

    start_time: Optional[StoredDatetime] = None
    end_time: Optional[StoredDatetime] = None
    aircraft_id: Optional[UUID] = None
    instructor_id: Optional[UUID] = None
    description: Optional[str] = None
    status: Optional[Literal["unconfirmed", "confirmed", "cancelled"]] = None


class PersonSummary(BaseSchema):
    id: UUID
    name: Optional[str] = None
    email: str


class AircraftSummary(BaseSchema):
    id: UUID
    registration: str
    aircraft_type: Optional[str] = None
    model: Optional[str] = None
    record_hobbs: bool
    record_tacho: bool


class LessonSummary(BaseSchema):
    id: UUID
    name: str
    objective: Optional[str] = None


class FlightTypeSummary(BaseSchema):
    id: UUID
    name: str


class BookingDetailsResponse(BaseSchema, IDMixin):
    route: str
    passengers: Optional[int] = None
    eta: Optional[datetime] = None
    comments: Optional[str] = None
    instructor_comment: Optional[str] = None


class FlightTimesResponse(BaseSchema, IDMixin):
    start_hobbs: Optional[float] = None
    end_hobbs: Optional[float] = None
    start_tacho: Optional[float] = None
    end_tacho: Optional[float] = None
    flight_time: float
    rate_id: Optional[UUID] = None


class BookingResponse(BaseSchema, IDMixin, TimestampMixin):
    """A booking joined with its associations."""

    organization_id: UUID
    start_time: datetime
    end_time: datetime
    type: str
    status: str
    briefing_completed: Optional[bool] = None
    debrief_completed: Optional[bool] = None
    description: Optional[str] = None
    aircraft_id: Optional[UUID] = None
    instructor_id: Optional[UUID] = None
    user_id: Optional[UUID] = None
    lesson_id: Optional[UUID] = None
    flight_type_id: Optional[UUID] = None
    aircraft: Optional[AircraftSummary] = None
    instructor: Optional[PersonSummary] = None
    user: Optional[PersonSummary] = None
    lesson: Optional[LessonSummary] = None
    flight_type: Optional[FlightTypeSummary] = None
    details: Optional[BookingDetailsResponse] = None
    flight_times: Optional[FlightTimesResponse] = None


class FacetResponse(BaseSchema):
    data: Optional[Any] = None
    error: Optional[str] = None


class BookingViewResponse(BaseSchema):
    """Every facet of a booking, each with its own error slot."""

    basic: FacetResponse
    people: FacetResponse
    lesson: FacetResponse
    flight_times: FacetResponse
    details: FacetResponse


class MissingLesson(BaseSchema):
    id: UUID
    name: str
    objective: Optional[str] = None


class PrerequisiteCheckResponse(BaseSchema):
    status: Literal["success", "error"]
    message: str
    missing_prerequisites: list[MissingLesson] = Field(default_factory=list)
