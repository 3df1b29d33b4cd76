"""Debriefs router: read and edit a submitted debrief."""

from uuid import UUID

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.security import STAFF_ROLES, RequestContext, get_request_context, require_roles
from app.schemas.workflow import DebriefPatch, DebriefResponse, PerformanceInput, PerformancePatch
from app.services.workflow import WorkflowService, get_debrief

router = APIRouter(prefix="/debriefs", tags=["debriefs"])

staff_only = require_roles(*STAFF_ROLES)


def _workflow(request: Request, db: AsyncSession, ctx: RequestContext) -> WorkflowService:
    return WorkflowService(db, ctx, ip_address=request.client.host if request.client else None)


@router.get("/{debrief_id}", response_model=DebriefResponse)
async def read_debrief(
    debrief_id: UUID,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    return await get_debrief(db, ctx, debrief_id)


@router.patch("/{debrief_id}", response_model=DebriefResponse)
async def update_debrief(
    debrief_id: UUID,
    data: DebriefPatch,
    request: Request,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(staff_only),
):
    """Change the outcome or comments of a debrief."""
    return await _workflow(request, db, ctx).update_debrief(debrief_id, data)


@router.post("/{debrief_id}/performance", response_model=DebriefResponse)
async def add_performance(
    debrief_id: UUID,
    data: PerformanceInput,
    request: Request,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(staff_only),
):
    return await _workflow(request, db, ctx).add_performance(debrief_id, data)


@router.patch("/{debrief_id}/performance/{performance_id}", response_model=DebriefResponse)
async def update_performance(
    debrief_id: UUID,
    performance_id: UUID,
    data: PerformancePatch,
    request: Request,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(staff_only),
):
    """Regrade one item. The debrief must keep at least one item graded above 0."""
    return await _workflow(request, db, ctx).update_performance(debrief_id, performance_id, data)
