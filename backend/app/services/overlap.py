"""Interval overlap checking for aircraft and instructor reservations.

Intervals are closed: a booking ending at 10:00 conflicts with one starting
at 10:00. Only confirmed bookings occupy a resource.

This check is a fast reject for the user. The exclusion constraints in the
database are what actually prevent a double booking when two writers race.
"""

import logging
from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import SlotUnavailable, ValidationFailed
from app.core.security import RequestContext
from app.models.booking import Booking
from app.models.enums import BookingStatus, ResourceKind

logger = logging.getLogger(__name__)


def intervals_overlap(
    a_start: datetime,
    a_end: datetime,
    b_start: datetime,
    b_end: datetime,
) -> bool:
    """Closed-interval overlap test. Symmetric in its two intervals."""
    return a_start <= b_end and a_end >= b_start


def validate_interval(start: datetime, end: datetime) -> None:
    """Reject an empty or inverted interval as bad input, never as a conflict."""
    if end <= start:
        raise ValidationFailed("End time must be after start time")


def _resource_column(resource_kind: ResourceKind):
    if resource_kind == ResourceKind.AIRCRAFT:
        return Booking.aircraft_id
    return Booking.instructor_id


async def find_conflicts(
    db: AsyncSession,
    ctx: RequestContext,
    resource_kind: ResourceKind,
    resource_id: UUID,
    start: datetime,
    end: datetime,
    exclude_booking_id: Optional[UUID] = None,
) -> list[Booking]:
    """Confirmed bookings of the caller's organization that overlap the candidate."""
    validate_interval(start, end)

    column = _resource_column(resource_kind)
    query = select(Booking).where(
        Booking.organization_id == ctx.organization_id,
        column == resource_id,
        func.lower(Booking.status) == BookingStatus.CONFIRMED.value,
        Booking.start_time <= end,
        Booking.end_time >= start,
    )
    if exclude_booking_id is not None:
        query = query.where(Booking.id != exclude_booking_id)

    result = await db.execute(query.order_by(Booking.start_time))
    conflicts = list(result.scalars().all())
    if conflicts:
        logger.info(
            f"[OVERLAP] {resource_kind.value} {resource_id} has {len(conflicts)} conflict(s) "
            f"for {start.isoformat()} - {end.isoformat()}"
        )
    return conflicts


async def has_conflict(
    db: AsyncSession,
    ctx: RequestContext,
    resource_kind: ResourceKind,
    resource_id: UUID,
    start: datetime,
    end: datetime,
    exclude_booking_id: Optional[UUID] = None,
) -> bool:
    conflicts = await find_conflicts(
        db, ctx, resource_kind, resource_id, start, end, exclude_booking_id
    )
    return bool(conflicts)


async def ensure_slot_available(
    db: AsyncSession,
    ctx: RequestContext,
    start: datetime,
    end: datetime,
    aircraft_id: Optional[UUID] = None,
    instructor_id: Optional[UUID] = None,
    exclude_booking_id: Optional[UUID] = None,
) -> None:
    """Raise SlotUnavailable if the aircraft or the instructor is taken.

    Callers run this immediately before their write.
    """
    validate_interval(start, end)

    checks = [
        (ResourceKind.AIRCRAFT, aircraft_id, "Aircraft"),
        (ResourceKind.STAFF, instructor_id, "Instructor"),
    ]
    for kind, resource_id, label in checks:
        if resource_id is None:
            continue
        conflicts = await find_conflicts(
            db, ctx, kind, resource_id, start, end, exclude_booking_id
        )
        if conflicts:
            raise SlotUnavailable(
                f"{label} is already booked for this time slot",
                conflicts=[
                    {
                        "id": booking.id,
                        "start_time": booking.start_time,
                        "end_time": booking.end_time,
                        "aircraft_id": booking.aircraft_id,
                        "instructor_id": booking.instructor_id,
                        "status": booking.status,
                    }
                    for booking in conflicts
                ],
            )
