"""Scheduler timeline: pixel coordinates and drag-to-reschedule.

The visible day is a row of fixed-width hourly columns. Bookings are placed
by fractional hour; a horizontal drag is quantized to whole hours and staged
as a proposal until the user confirms it.
"""

import logging
import math
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import TYPE_CHECKING, Awaitable, Callable, Iterable, Optional
from uuid import UUID

from app.core.errors import DomainError
from app.models.enums import ResourceKind

if TYPE_CHECKING:
    from app.services.aggregator import SchedulerBooking

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TimelineConfig:
    day_start_hour: int = 8
    day_end_hour: int = 19
    hour_width: float = 100

    @classmethod
    def from_settings(cls, settings) -> "TimelineConfig":
        return cls(
            day_start_hour=settings.scheduler_day_start_hour,
            day_end_hour=settings.scheduler_day_end_hour,
            hour_width=settings.scheduler_hour_width_px,
        )


@dataclass(frozen=True)
class TimeSlot:
    hour: int
    label: str


@dataclass(frozen=True)
class Resource:
    """A row on the timeline."""

    id: UUID
    name: str
    kind: ResourceKind


@dataclass(frozen=True)
class RescheduleProposal:
    booking_id: UUID
    hours_delta: int
    original_start: datetime
    original_end: datetime
    new_start: datetime
    new_end: datetime


def fractional_hour(dt: datetime) -> float:
    return dt.hour + dt.minute / 60


def booking_position(start: datetime, end: datetime, config: TimelineConfig) -> tuple[float, float]:
    """Return ``(left, width)`` in pixels for a booking on the day grid."""
    start_hour = fractional_hour(start)
    end_hour = fractional_hour(end)
    left = (start_hour - config.day_start_hour) * config.hour_width
    width = (end_hour - start_hour) * config.hour_width
    return left, width


def time_slots(config: TimelineConfig) -> list[TimeSlot]:
    """Hour columns from the day start to the day end, both inclusive."""
    return [
        TimeSlot(hour=hour, label=f"{hour:02d}:00")
        for hour in range(config.day_start_hour, config.day_end_hour + 1)
    ]


def day_bounds(day: date) -> tuple[datetime, datetime]:
    start = datetime.combine(day, datetime.min.time())
    return start, start + timedelta(days=1)


def hours_delta(pixel_dx: float, hour_width: float) -> int:
    """Quantize a drag to whole hours, rounding halves toward +infinity."""
    if hour_width <= 0:
        raise ValueError("hour_width must be positive")
    return int(math.floor(pixel_dx / hour_width + 0.5))


def propose_reschedule(
    booking: "SchedulerBooking",
    pixel_dx: float,
    config: TimelineConfig,
) -> Optional[RescheduleProposal]:
    """Interpret a drag. Sub-threshold drags return None and change nothing."""
    delta = hours_delta(pixel_dx, config.hour_width)
    if delta == 0:
        return None
    shift = timedelta(hours=delta)
    return RescheduleProposal(
        booking_id=booking.uuid,
        hours_delta=delta,
        original_start=booking.start_date_time,
        original_end=booking.end_date_time,
        new_start=booking.start_date_time + shift,
        new_end=booking.end_date_time + shift,
    )


def resource_rows(staff: Iterable, aircraft: Iterable) -> list[Resource]:
    """Staff rows first, then aircraft rows."""
    rows = [
        Resource(id=member.id, name=member.name or member.email, kind=ResourceKind.STAFF)
        for member in staff
    ]
    rows.extend(
        Resource(id=plane.id, name=plane.registration, kind=ResourceKind.AIRCRAFT)
        for plane in aircraft
    )
    return rows


@dataclass
class SchedulerBoard:
    """Per-session view model of one day on the scheduler.

    Holds the day's bookings and at most one pending proposal. Nothing is
    written until ``confirm`` is called.

    This is the reference client-side model for UI consumers of the
    scheduler endpoints: ``loader`` wraps ``GET /scheduler`` and the
    confirmer passed to ``confirm`` wraps ``POST /scheduler/reschedule``.
    The server itself never holds a board; it stages proposals statelessly
    through ``propose_reschedule``.
    """

    config: TimelineConfig
    loader: Callable[[], Awaitable[list["SchedulerBooking"]]]
    bookings: list["SchedulerBooking"] = field(default_factory=list)
    pending: Optional[RescheduleProposal] = None
    error: Optional[str] = None

    async def refresh(self) -> None:
        self.bookings = await self.loader()

    def find(self, booking_id: UUID) -> Optional["SchedulerBooking"]:
        for booking in self.bookings:
            if booking.uuid == booking_id:
                return booking
        return None

    def drag_end(self, booking_id: UUID, pixel_dx: float) -> Optional[RescheduleProposal]:
        booking = self.find(booking_id)
        if booking is None:
            return None
        proposal = propose_reschedule(booking, pixel_dx, self.config)
        if proposal is not None:
            self.pending = proposal
            self.error = None
        return proposal

    def cancel(self) -> None:
        self.pending = None

    async def confirm(
        self,
        confirmer: Callable[[RescheduleProposal], Awaitable[object]],
    ) -> bool:
        """Hand the pending proposal to ``confirmer``; the proposal is cleared either way.

        Returns True when the confirmer succeeded. A failed confirmation keeps
        its message in ``error`` and leaves the day as loaded.
        """
        proposal = self.pending
        if proposal is None:
            return False
        self.pending = None
        try:
            await confirmer(proposal)
        except DomainError as e:
            logger.info(f"[SCHEDULER] Reschedule of {proposal.booking_id} rejected: {e.message}")
            self.error = e.message
            return False
        await self.refresh()
        return True
