"""Defect schemas."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import Field

from app.models.enums import DefectStatus
from app.schemas.base import BaseSchema, IDMixin
from app.schemas.booking import PersonSummary


class DefectCreate(BaseSchema):
    """A new defect report. The reporter is always the caller."""

    aircraft_id: UUID
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None


class DefectStatusUpdate(BaseSchema):
    status: DefectStatus


class DefectAircraft(BaseSchema):
    id: UUID
    registration: str


class DefectResponse(BaseSchema, IDMixin):
    aircraft_id: UUID
    user_id: Optional[UUID] = None
    name: str
    description: Optional[str] = None
    status: DefectStatus
    reported_at: datetime
    aircraft: Optional[DefectAircraft] = None
    user: Optional[PersonSummary] = None
