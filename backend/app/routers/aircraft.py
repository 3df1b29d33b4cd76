"""Aircraft router."""

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.errors import NotFound
from app.core.security import RequestContext, get_request_context
from app.schemas.workflow import TechLogResponse
from app.services.workflow import WorkflowService

router = APIRouter(prefix="/aircraft", tags=["aircraft"])


@router.get("/tech-log", response_model=TechLogResponse)
async def get_latest_tech_log(
    aircraft_id: UUID,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    """Most recent hobbs/tacho state of an aircraft."""
    entry = await WorkflowService(db, ctx).latest_tech_log(aircraft_id)
    if entry is None:
        raise NotFound("No tech log entries for this aircraft")
    return entry
