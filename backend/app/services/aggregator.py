"""Booking data aggregation.

Assembles a booking's full view from its associations. Each facet loads on
its own so a view can render partial data while slower facets are pending
or failed.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Awaitable, Callable, Iterable, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.errors import DomainError, Forbidden, NotFound
from app.core.security import RequestContext
from app.models.aircraft import Aircraft, AircraftRate
from app.models.booking import Booking
from app.models.enums import SchedulerStatus
from app.services.timeline import day_bounds

logger = logging.getLogger(__name__)

_STATUS_SYNONYMS = {
    "CONFIRMED": SchedulerStatus.CONFIRMED,
    "PENDING": SchedulerStatus.PENDING,
    "UNCONFIRMED": SchedulerStatus.PENDING,
    "IN_PROGRESS": SchedulerStatus.FLYING,
    "INPROGRESS": SchedulerStatus.FLYING,
    "FLYING": SchedulerStatus.FLYING,
    "COMPLETED": SchedulerStatus.COMPLETE,
    "COMPLETE": SchedulerStatus.COMPLETE,
    "CANCELLED": SchedulerStatus.CANCELLED,
}


def normalize_status(raw: Optional[str]) -> SchedulerStatus:
    """Map a persisted status string onto the canonical scheduler set.

    Case-insensitive. Unknown values fall back to ``pending``.
    """
    key = (raw or "").strip().upper()
    status = _STATUS_SYNONYMS.get(key)
    if status is None:
        logger.warning(f"[STATUS] Unrecognized booking status {raw!r}, treating as pending")
        return SchedulerStatus.PENDING
    return status


def applicable_rate(
    rates: Iterable[AircraftRate],
    flight_type_id: Optional[UUID],
) -> Optional[AircraftRate]:
    """The aircraft rate for this flight type, or None when there is none.

    A rate of zero is a valid rate; None means nothing applies.
    """
    if flight_type_id is None:
        return None
    for rate in rates:
        if rate.flight_type_id == flight_type_id:
            return rate
    return None


def booking_options():
    """Eager-load every association the API returns (async sessions cannot lazy load)."""
    return (
        selectinload(Booking.aircraft).selectinload(Aircraft.rates),
        selectinload(Booking.instructor),
        selectinload(Booking.user),
        selectinload(Booking.lesson),
        selectinload(Booking.flight_type),
        selectinload(Booking.details),
        selectinload(Booking.flight_times),
    )


async def load_booking(db: AsyncSession, ctx: RequestContext, booking_id: UUID) -> Booking:
    """Fetch a booking of the caller's organization or raise NotFound."""
    result = await db.execute(
        select(Booking)
        .options(*booking_options())
        .where(
            Booking.id == booking_id,
            Booking.organization_id == ctx.organization_id,
        )
        .execution_options(populate_existing=True)
    )
    booking = result.scalar_one_or_none()
    if not booking:
        raise NotFound("Booking not found")
    return booking


async def load_booking_for_update(db: AsyncSession, ctx: RequestContext, booking_id: UUID) -> Booking:
    """Like load_booking, but a booking owned by another organization is Forbidden."""
    result = await db.execute(select(Booking.organization_id).where(Booking.id == booking_id))
    owner = result.scalar_one_or_none()
    if owner is None:
        raise NotFound("Booking not found")
    if owner != ctx.organization_id:
        logger.warning(
            f"[BOOKINGS] User {ctx.user_id} attempted to modify booking {booking_id} "
            f"of another organization"
        )
        raise Forbidden("Booking belongs to another organization")
    return await load_booking(db, ctx, booking_id)


# === Scheduler projection ===

@dataclass(frozen=True)
class SchedulerBooking:
    """A booking as the timeline needs it."""

    uuid: UUID
    start_date_time: datetime
    end_date_time: datetime
    status: SchedulerStatus
    title: str
    aircraft_uuid: Optional[UUID] = None
    instructor_uuid: Optional[UUID] = None
    aircraft_registration: Optional[str] = None
    instructor_name: Optional[str] = None
    user_name: Optional[str] = None
    user_id: Optional[UUID] = None
    flight_type_id: Optional[UUID] = None
    lesson_id: Optional[UUID] = None


def to_scheduler_booking(booking: Booking) -> SchedulerBooking:
    return SchedulerBooking(
        uuid=booking.id,
        start_date_time=booking.start_time,
        end_date_time=booking.end_time,
        status=normalize_status(booking.status),
        title=booking.description or "Untitled Booking",
        aircraft_uuid=booking.aircraft_id,
        instructor_uuid=booking.instructor_id,
        aircraft_registration=booking.aircraft.registration if booking.aircraft else None,
        instructor_name=booking.instructor.name if booking.instructor else None,
        user_name=booking.user.name if booking.user else None,
        user_id=booking.user_id,
        flight_type_id=booking.flight_type_id,
        lesson_id=booking.lesson_id,
    )


# === Facets ===

@dataclass
class FacetResult:
    data: Optional[dict[str, Any]] = None
    error: Optional[str] = None


def _person(user) -> Optional[dict[str, Any]]:
    if user is None:
        return None
    return {"id": user.id, "name": user.name, "email": user.email}


def _decimal(value: Optional[Decimal]) -> Optional[float]:
    return float(value) if value is not None else None


class BookingAggregator:
    """Independently loadable facets of one booking."""

    def __init__(self, db: AsyncSession, ctx: RequestContext):
        self.db = db
        self.ctx = ctx

    async def _booking(self, booking_id: UUID) -> Booking:
        return await load_booking(self.db, self.ctx, booking_id)

    async def basic_info(self, booking_id: UUID) -> dict[str, Any]:
        booking = await self._booking(booking_id)
        aircraft = booking.aircraft
        rate = applicable_rate(aircraft.rates if aircraft else [], booking.flight_type_id)
        return {
            "id": booking.id,
            "start_time": booking.start_time,
            "end_time": booking.end_time,
            "type": booking.type,
            "status": normalize_status(booking.status).value,
            "raw_status": booking.status,
            "briefing_completed": booking.briefing_completed,
            "debrief_completed": booking.debrief_completed,
            "description": booking.description,
            "aircraft": {
                "id": aircraft.id,
                "registration": aircraft.registration,
                "aircraft_type": aircraft.aircraft_type,
                "model": aircraft.model,
                "record_hobbs": aircraft.record_hobbs,
                "record_tacho": aircraft.record_tacho,
            } if aircraft else None,
            "flight_type": {
                "id": booking.flight_type.id,
                "name": booking.flight_type.name,
            } if booking.flight_type else None,
            "applicable_rate": {
                "id": rate.id,
                "rate": _decimal(rate.rate),
            } if rate else None,
        }

    async def people(self, booking_id: UUID) -> dict[str, Any]:
        booking = await self._booking(booking_id)
        return {
            "user": _person(booking.user),
            "instructor": _person(booking.instructor),
        }

    async def lesson(self, booking_id: UUID) -> Optional[dict[str, Any]]:
        booking = await self._booking(booking_id)
        if booking.lesson is None:
            return None
        return {
            "id": booking.lesson.id,
            "name": booking.lesson.name,
            "objective": booking.lesson.objective,
        }

    async def flight_times(self, booking_id: UUID) -> Optional[dict[str, Any]]:
        booking = await self._booking(booking_id)
        times = booking.flight_times
        if times is None:
            return None
        return {
            "start_hobbs": times.start_hobbs,
            "end_hobbs": times.end_hobbs,
            "start_tacho": times.start_tacho,
            "end_tacho": times.end_tacho,
            "flight_time": times.flight_time,
        }

    async def details(self, booking_id: UUID) -> Optional[dict[str, Any]]:
        booking = await self._booking(booking_id)
        details = booking.details
        if details is None:
            return None
        return {
            "route": details.route,
            "passengers": details.passengers,
            "eta": details.eta,
            "comments": details.comments,
            "instructor_comment": details.instructor_comment,
        }

    async def load_all(self, booking_id: UUID) -> dict[str, FacetResult]:
        """Load every facet; one failing facet leaves the others intact.

        The basic facet decides whether the booking exists at all, so its
        NotFound propagates.
        """
        loaders: dict[str, Callable[[UUID], Awaitable[Any]]] = {
            "basic": self.basic_info,
            "people": self.people,
            "lesson": self.lesson,
            "flight_times": self.flight_times,
            "details": self.details,
        }
        results: dict[str, FacetResult] = {}
        for name, loader in loaders.items():
            try:
                results[name] = FacetResult(data=await loader(booking_id))
            except NotFound:
                if name == "basic":
                    raise
                results[name] = FacetResult(error="Not found")
            except DomainError as e:
                logger.warning(f"[AGGREGATOR] Facet {name} of booking {booking_id} failed: {e.message}")
                results[name] = FacetResult(error=e.message)
            except SQLAlchemyError as e:
                logger.error(f"[AGGREGATOR] Facet {name} of booking {booking_id} hit a database error: {e}")
                await self.db.rollback()
                results[name] = FacetResult(error=f"Failed to load {name.replace('_', ' ')}")
        return results


# === Day queries ===

async def day_bookings(db: AsyncSession, ctx: RequestContext, day: date) -> list[Booking]:
    """Bookings of the caller's organization starting on ``day``."""
    start, end = day_bounds(day)
    result = await db.execute(
        select(Booking)
        .options(*booking_options())
        .where(
            Booking.organization_id == ctx.organization_id,
            Booking.start_time >= start,
            Booking.start_time < end,
        )
        .order_by(Booking.start_time)
    )
    return list(result.scalars().all())
