"""Bookings router: CRUD, aggregated views and workflow stages."""

import logging
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.security import STAFF_ROLES, RequestContext, get_request_context, require_roles
from app.models.booking import Booking
from app.schemas.booking import (
    BookingPatch,
    BookingResponse,
    BookingViewResponse,
    BookingWrite,
    FacetResponse,
    PrerequisiteCheckResponse,
)
from app.schemas.workflow import (
    CheckinRequest,
    CheckinResponse,
    CheckoutRequest,
    DebriefRequest,
    DebriefResponse,
    ProgressResponse,
    StageProgress,
)
from app.services import lifecycle
from app.services.aggregator import BookingAggregator, booking_options, load_booking
from app.services.prerequisites import check_prerequisites
from app.services.workflow import WorkflowService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/bookings", tags=["bookings"])


def _client_ip(request: Request) -> Optional[str]:
    return request.client.host if request.client else None


def _workflow(request: Request, db: AsyncSession, ctx: RequestContext) -> WorkflowService:
    return WorkflowService(db, ctx, ip_address=_client_ip(request))


@router.get("", response_model=List[BookingResponse])
async def list_bookings(
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    """List the organization's bookings, newest first."""
    result = await db.execute(
        select(Booking)
        .options(*booking_options())
        .where(Booking.organization_id == ctx.organization_id)
        .order_by(Booking.start_time.desc())
    )
    return result.scalars().all()


@router.post("", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
async def create_booking(
    data: BookingWrite,
    request: Request,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    """Create a booking.

    Start and end are derived from the separate date and time fields. An
    overlap with a confirmed booking on the same aircraft or instructor is
    a 409 listing the conflicting bookings.
    """
    return await _workflow(request, db, ctx).create_booking(data)


@router.put("", response_model=BookingResponse)
async def replace_booking(
    data: BookingWrite,
    request: Request,
    id: UUID = Query(..., description="Booking to update"),
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    """Replace a booking with the same body as create."""
    return await _workflow(request, db, ctx).replace_booking(id, data)


@router.get("/check-prerequisites", response_model=PrerequisiteCheckResponse)
async def get_prerequisite_status(
    student_id: UUID,
    lesson_id: UUID,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    """Which of a lesson's prerequisites the student has not completed yet."""
    return await check_prerequisites(db, ctx, student_id, lesson_id)


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking(
    booking_id: UUID,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    return await load_booking(db, ctx, booking_id)


@router.put("/{booking_id}", response_model=BookingResponse)
async def patch_booking(
    booking_id: UUID,
    data: BookingPatch,
    request: Request,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    """Change times, resources, description or status of one booking."""
    return await _workflow(request, db, ctx).patch_booking(booking_id, data)


@router.get("/{booking_id}/view", response_model=BookingViewResponse)
async def view_booking(
    booking_id: UUID,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    """All facets of a booking. A failed facet carries its own error."""
    facets = await BookingAggregator(db, ctx).load_all(booking_id)
    return BookingViewResponse(
        **{
            name: FacetResponse(data=facet.data, error=facet.error)
            for name, facet in facets.items()
        }
    )


@router.get("/{booking_id}/progress", response_model=ProgressResponse)
async def get_progress(
    booking_id: UUID,
    current_stage: Optional[lifecycle.Stage] = None,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    """Render state of each workflow stage. Viewing never changes a stage."""
    booking = await load_booking(db, ctx, booking_id)
    state = lifecycle.lifecycle_of(booking)
    return ProgressResponse(
        booking_id=booking.id,
        status=state.status.value,
        entry_stage=lifecycle.entry_stage(state.has_lesson).value,
        stages=[
            StageProgress(stage=stage.value, state=stage_state.value)
            for stage, stage_state in lifecycle.stage_progress(current_stage, state)
        ],
    )


# === Workflow stages ===

@router.post("/{booking_id}/briefing", response_model=BookingResponse)
async def complete_briefing(
    booking_id: UUID,
    request: Request,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_roles(*STAFF_ROLES)),
):
    return await _workflow(request, db, ctx).complete_briefing(booking_id)


@router.post("/{booking_id}/checkout", response_model=BookingResponse)
async def checkout_booking(
    booking_id: UUID,
    data: CheckoutRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    """Record route and passengers and mark the booking as flying."""
    return await _workflow(request, db, ctx).checkout(booking_id, data)


@router.post("/{booking_id}/checkin", response_model=CheckinResponse)
async def checkin_booking(
    booking_id: UUID,
    data: CheckinRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    """Record end meter readings, derive flight time and append a tech log entry."""
    return await _workflow(request, db, ctx).checkin(booking_id, data)


@router.post(
    "/{booking_id}/debrief",
    response_model=DebriefResponse,
    status_code=status.HTTP_201_CREATED,
)
async def submit_debrief(
    booking_id: UUID,
    data: DebriefRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_roles(*STAFF_ROLES)),
):
    """Grade the lesson. Rejected before any write if nothing is graded."""
    return await _workflow(request, db, ctx).submit_debrief(booking_id, data)


@router.post("/{booking_id}/cancel", response_model=BookingResponse)
async def cancel_booking(
    booking_id: UUID,
    request: Request,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    return await _workflow(request, db, ctx).cancel(booking_id)
