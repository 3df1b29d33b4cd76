"""Defects router: report and track aircraft faults."""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.security import RequestContext, get_request_context
from app.schemas.defect import DefectCreate, DefectResponse, DefectStatusUpdate
from app.services.defects import DefectService

router = APIRouter(prefix="/defects", tags=["defects"])


def _service(request: Request, db: AsyncSession, ctx: RequestContext) -> DefectService:
    return DefectService(db, ctx, ip_address=request.client.host if request.client else None)


@router.get("", response_model=List[DefectResponse])
async def list_defects(
    request: Request,
    aircraft_id: Optional[UUID] = None,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    """Defects of the organization's aircraft, newest first."""
    return await _service(request, db, ctx).list_defects(aircraft_id)


@router.post("", response_model=DefectResponse, status_code=status.HTTP_201_CREATED)
async def report_defect(
    data: DefectCreate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    return await _service(request, db, ctx).report(data)


@router.patch("/{defect_id}", response_model=DefectResponse)
async def update_defect_status(
    defect_id: UUID,
    data: DefectStatusUpdate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    return await _service(request, db, ctx).update_status(defect_id, data.status)
