"""Aircraft defect reports, scoped to the caller's organization."""

import logging
from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.errors import NotFound, ValidationFailed
from app.core.security import RequestContext
from app.models.aircraft import Aircraft
from app.models.defect import Defect
from app.models.enums import AuditAction, DefectStatus
from app.schemas.defect import DefectCreate
from app.services.audit import AuditService

logger = logging.getLogger(__name__)

# A closed defect can only be reopened
_ALLOWED_MOVES = {
    DefectStatus.OPEN: {DefectStatus.PENDING, DefectStatus.CLOSED},
    DefectStatus.PENDING: {DefectStatus.OPEN, DefectStatus.CLOSED},
    DefectStatus.CLOSED: {DefectStatus.OPEN},
}


class DefectService:
    def __init__(self, db: AsyncSession, ctx: RequestContext, ip_address: Optional[str] = None):
        self.db = db
        self.ctx = ctx
        self.ip_address = ip_address
        self.audit = AuditService(db)

    def _query(self):
        return (
            select(Defect)
            .options(selectinload(Defect.aircraft), selectinload(Defect.user))
            .where(Defect.organization_id == self.ctx.organization_id)
            .execution_options(populate_existing=True)
        )

    async def list_defects(self, aircraft_id: Optional[UUID] = None) -> list[Defect]:
        """Newest first, optionally for one aircraft."""
        query = self._query()
        if aircraft_id is not None:
            query = query.where(Defect.aircraft_id == aircraft_id)
        result = await self.db.execute(query.order_by(Defect.reported_at.desc()))
        return list(result.scalars().all())

    async def get_defect(self, defect_id: UUID) -> Defect:
        result = await self.db.execute(self._query().where(Defect.id == defect_id))
        defect = result.scalar_one_or_none()
        if not defect:
            raise NotFound("Defect not found")
        return defect

    async def report(self, data: DefectCreate) -> Defect:
        result = await self.db.execute(
            select(Aircraft.id).where(
                Aircraft.id == data.aircraft_id,
                Aircraft.organization_id == self.ctx.organization_id,
            )
        )
        if result.scalar_one_or_none() is None:
            raise NotFound("Aircraft not found")

        defect = Defect(
            organization_id=self.ctx.organization_id,
            aircraft_id=data.aircraft_id,
            user_id=self.ctx.user_id,
            name=data.name,
            description=data.description,
        )
        self.db.add(defect)
        await self.db.flush()

        await self.audit.log(
            action=AuditAction.DEFECT_REPORTED,
            resource_type="defect",
            resource_id=defect.id,
            org_id=self.ctx.organization_id,
            user_id=self.ctx.user_id,
            details={"aircraft_id": str(data.aircraft_id), "name": data.name},
            ip_address=self.ip_address,
        )
        await self.db.commit()
        logger.info(f"[DEFECTS] Defect {defect.id} reported on aircraft {data.aircraft_id}")
        return await self.get_defect(defect.id)

    async def update_status(self, defect_id: UUID, status: DefectStatus) -> Defect:
        defect = await self.get_defect(defect_id)
        if status not in _ALLOWED_MOVES[defect.status]:
            raise ValidationFailed(
                f"Cannot move a {defect.status.value} defect to {status.value}"
            )

        previous = defect.status
        defect.status = status
        await self.audit.log(
            action=AuditAction.DEFECT_UPDATED,
            resource_type="defect",
            resource_id=defect.id,
            org_id=self.ctx.organization_id,
            user_id=self.ctx.user_id,
            details={"from": previous.value, "to": status.value},
            ip_address=self.ip_address,
        )
        await self.db.commit()
        logger.info(f"[DEFECTS] Defect {defect.id} {previous.value} -> {status.value}")
        return await self.get_defect(defect.id)
