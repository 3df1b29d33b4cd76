"""Audit logging service."""

from typing import Any, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.security import RequestContext
from app.models.audit import AuditLog
from app.models.enums import AuditAction


class AuditService:
    """Service for creating audit log entries.

    Entries are flushed, not committed: they land in the same transaction
    as the change they describe.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def log(
        self,
        action: AuditAction,
        resource_type: str,
        resource_id: UUID,
        org_id: Optional[UUID] = None,
        user_id: Optional[UUID] = None,
        details: Optional[dict[str, Any]] = None,
        ip_address: Optional[str] = None,
    ) -> AuditLog:
        """Create an audit log entry."""
        entry = AuditLog(
            action=action,
            resource_type=resource_type,
            resource_id=resource_id,
            org_id=org_id,
            user_id=user_id,
            details=details or {},
            ip_address=ip_address,
        )
        self.db.add(entry)
        await self.db.flush()
        return entry

    async def log_booking(
        self,
        action: AuditAction,
        booking_id: UUID,
        ctx: RequestContext,
        details: Optional[dict[str, Any]] = None,
        ip_address: Optional[str] = None,
    ) -> AuditLog:
        """Log a booking state change made by the request's user."""
        return await self.log(
            action=action,
            resource_type="booking",
            resource_id=booking_id,
            org_id=ctx.organization_id,
            user_id=ctx.user_id,
            details=details,
            ip_address=ip_address,
        )
