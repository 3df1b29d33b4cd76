"""Scheduler router: the day timeline and drag-to-reschedule."""

import logging
from datetime import date

from fastapi import APIRouter, Depends, Request
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.database import get_db
from app.core.security import STAFF_ROLES, RequestContext, require_roles
from app.models.aircraft import Aircraft
from app.models.enums import OrgRole
from app.models.org import OrgMembership
from app.models.user import User
from app.schemas.booking import BookingResponse
from app.schemas.scheduler import (
    DragRequest,
    DragResponse,
    PositionedBooking,
    ProposalResponse,
    RescheduleRequest,
    ResourceRow,
    SchedulerDayResponse,
    TimeSlotResponse,
)
from app.services.aggregator import day_bookings, load_booking, to_scheduler_booking
from app.services.timeline import (
    TimelineConfig,
    booking_position,
    propose_reschedule,
    resource_rows,
    time_slots,
)
from app.services.workflow import WorkflowService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/scheduler", tags=["scheduler"])

staff_only = require_roles(*STAFF_ROLES)


def _config() -> TimelineConfig:
    return TimelineConfig.from_settings(get_settings())


@router.get("", response_model=SchedulerDayResponse)
async def get_day(
    date: date,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(staff_only),
):
    """Resources, hour columns and positioned bookings for one day."""
    config = _config()

    staff_result = await db.execute(
        select(User)
        .join(OrgMembership, OrgMembership.user_id == User.id)
        .where(
            OrgMembership.org_id == ctx.organization_id,
            or_(OrgMembership.role == OrgRole.INSTRUCTOR, User.is_staff.is_(True)),
        )
        .order_by(User.name)
    )
    aircraft_result = await db.execute(
        select(Aircraft)
        .where(Aircraft.organization_id == ctx.organization_id)
        .order_by(Aircraft.registration)
    )
    resources = resource_rows(staff_result.scalars().unique().all(), aircraft_result.scalars().all())

    positioned = []
    for booking in await day_bookings(db, ctx, date):
        projected = to_scheduler_booking(booking)
        left, width = booking_position(projected.start_date_time, projected.end_date_time, config)
        positioned.append(
            PositionedBooking(
                uuid=projected.uuid,
                start_date_time=projected.start_date_time,
                end_date_time=projected.end_date_time,
                status=projected.status.value,
                title=projected.title,
                aircraft_uuid=projected.aircraft_uuid,
                instructor_uuid=projected.instructor_uuid,
                aircraft_registration=projected.aircraft_registration,
                instructor_name=projected.instructor_name,
                user_name=projected.user_name,
                left=left,
                width=width,
            )
        )

    return SchedulerDayResponse(
        date=date,
        hour_width=config.hour_width,
        resources=[
            ResourceRow(id=row.id, name=row.name, kind=row.kind.value) for row in resources
        ],
        time_slots=[TimeSlotResponse(hour=slot.hour, label=slot.label) for slot in time_slots(config)],
        bookings=positioned,
    )


@router.post("/proposals", response_model=DragResponse)
async def propose(
    data: DragRequest,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(staff_only),
):
    """Interpret a drag as a whole-hour move. Nothing is written."""
    booking = await load_booking(db, ctx, data.booking_id)
    proposal = propose_reschedule(to_scheduler_booking(booking), data.pixel_delta_x, _config())
    if proposal is None:
        return DragResponse(proposal=None)
    return DragResponse(
        proposal=ProposalResponse(
            booking_id=proposal.booking_id,
            hours_delta=proposal.hours_delta,
            original_start=proposal.original_start,
            original_end=proposal.original_end,
            new_start=proposal.new_start,
            new_end=proposal.new_end,
        )
    )


@router.post("/reschedule", response_model=BookingResponse)
async def confirm_reschedule(
    data: RescheduleRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(staff_only),
):
    """Apply a confirmed proposal after re-checking the slot."""
    service = WorkflowService(db, ctx, ip_address=request.client.host if request.client else None)
    return await service.reschedule(data.booking_id, data.new_start, data.new_end)
