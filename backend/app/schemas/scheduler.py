"""Scheduler timeline schemas."""

from datetime import date, datetime
from typing import Optional
from uuid import UUID

from app.schemas.base import BaseSchema, StoredDatetime


class ResourceRow(BaseSchema):
    id: UUID
    name: str
    kind: str


class TimeSlotResponse(BaseSchema):
    hour: int
    label: str


class PositionedBooking(BaseSchema):
    """A booking placed on the day grid in pixels."""

    uuid: UUID
    start_date_time: datetime
    end_date_time: datetime
    status: str
    title: str
    aircraft_uuid: Optional[UUID] = None
    instructor_uuid: Optional[UUID] = None
    aircraft_registration: Optional[str] = None
    instructor_name: Optional[str] = None
    user_name: Optional[str] = None
    left: float
    width: float


class SchedulerDayResponse(BaseSchema):
    date: date
    hour_width: float
    resources: list[ResourceRow]
    time_slots: list[TimeSlotResponse]
    bookings: list[PositionedBooking]


class DragRequest(BaseSchema):
    booking_id: UUID
    pixel_delta_x: float


class ProposalResponse(BaseSchema):
    booking_id: UUID
    hours_delta: int
    original_start: datetime
    original_end: datetime
    new_start: datetime
    new_end: datetime


class DragResponse(BaseSchema):
    proposal: Optional[ProposalResponse] = None


class RescheduleRequest(BaseSchema):
    """A proposal the user confirmed."""

    booking_id: UUID
    new_start: StoredDatetime
    new_end: StoredDatetime
