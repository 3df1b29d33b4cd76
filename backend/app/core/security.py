"""Firebase JWT verification and the per-request organization context."""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional
from uuid import UUID

import firebase_admin
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from firebase_admin import auth, credentials
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.database import get_db
from app.core.errors import Forbidden, NotFound, Unauthenticated, UpstreamError

logger = logging.getLogger(__name__)

settings = get_settings()

security = HTTPBearer(auto_error=False)


def get_firebase_app() -> firebase_admin.App:
    """Initialize the Firebase Admin SDK on first use."""
    if not firebase_admin._apps:
        options = {"projectId": settings.firebase_project_id}
        if settings.google_application_credentials:
            cred = credentials.Certificate(settings.google_application_credentials)
            return firebase_admin.initialize_app(cred, options)
        return firebase_admin.initialize_app(options=options)
    return firebase_admin.get_app()


@dataclass(frozen=True)
class FirebaseIdentity:
    """A verified Firebase ID token."""

    uid: str
    email: Optional[str] = None
    claims: Optional[dict[str, Any]] = None


@dataclass(frozen=True)
class RequestContext:
    """Who is calling and which organization every query is scoped to.

    Built once per request and passed explicitly to every service.
    """

    user_id: UUID
    organization_id: UUID
    role: str
    firebase_uid: str

    def has_role(self, *roles: str) -> bool:
        return self.role in roles


async def verify_firebase_token(
    bearer: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> FirebaseIdentity:
    """Verify the Firebase JWT. This service never mints tokens."""
    if bearer is None or not bearer.credentials:
        raise Unauthenticated("Unauthorized")

    try:
        decoded_token = auth.verify_id_token(bearer.credentials, app=get_firebase_app())
    except auth.ExpiredIdTokenError:
        raise Unauthenticated("Token has expired")
    except auth.CertificateFetchError as e:
        logger.error(f"[AUTH] Could not fetch Firebase public keys: {e}")
        raise UpstreamError("Authentication service unavailable")
    except (auth.InvalidIdTokenError, ValueError) as e:
        logger.info(f"[AUTH] Token rejected: {e}")
        raise Unauthenticated("Invalid authentication token")

    return FirebaseIdentity(
        uid=decoded_token["uid"],
        email=decoded_token.get("email"),
        claims=decoded_token,
    )


async def get_request_context(
    identity: FirebaseIdentity = Depends(verify_firebase_token),
    db: AsyncSession = Depends(get_db),
) -> RequestContext:
    """Resolve session -> user -> organization membership once per request."""
    from app.models.org import OrgMembership
    from app.models.user import User

    result = await db.execute(select(User).where(User.firebase_uid == identity.uid))
    user = result.scalar_one_or_none()
    if not user or not user.is_active:
        raise Unauthenticated("Unauthorized")

    membership_result = await db.execute(
        select(OrgMembership).where(OrgMembership.user_id == user.id)
    )
    membership = membership_result.scalars().first()
    if not membership:
        logger.info(f"[AUTH] User {user.id} has no organization membership")
        raise NotFound("Organization not found")

    return RequestContext(
        user_id=user.id,
        organization_id=membership.org_id,
        role=membership.role.value,
        firebase_uid=identity.uid,
    )


def require_roles(*roles: str) -> Callable[..., Any]:
    """Dependency factory gating an endpoint to a set of organization roles."""

    async def dependency(ctx: RequestContext = Depends(get_request_context)) -> RequestContext:
        if not ctx.has_role(*roles):
            raise Forbidden("Insufficient role for this action")
        return ctx

    return dependency


STAFF_ROLES = ("OWNER", "ADMIN", "INSTRUCTOR")
