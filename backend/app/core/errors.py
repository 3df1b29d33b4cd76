"""Domain errors and the JSON error envelope.

Every failure leaves the API as ``{"error": "<message>"}``; scheduling
conflicts also carry the conflicting bookings under ``"conflicts"``.
"""

import logging
from typing import Any, Optional

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

# Names of the exclusion constraints created by migration 001.
OVERLAP_CONSTRAINTS = (
    "bookings_no_overlap_per_aircraft",
    "bookings_no_overlap_per_instructor",
)


class DomainError(Exception):
    """Base class for errors that map onto an HTTP status."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def payload(self) -> dict[str, Any]:
        return {"error": self.message}


class ValidationFailed(DomainError):
    status_code = status.HTTP_400_BAD_REQUEST


class Unauthenticated(DomainError):
    status_code = status.HTTP_401_UNAUTHORIZED


class Forbidden(DomainError):
    status_code = status.HTTP_403_FORBIDDEN


class NotFound(DomainError):
    status_code = status.HTTP_404_NOT_FOUND


class SlotUnavailable(DomainError):
    """The requested interval overlaps a confirmed booking on the same resource."""

    status_code = status.HTTP_409_CONFLICT

    def __init__(self, message: str = "Time slot unavailable", conflicts: Optional[list[Any]] = None):
        super().__init__(message)
        self.conflicts = conflicts or []

    def payload(self) -> dict[str, Any]:
        return {"error": self.message, "conflicts": jsonable_encoder(self.conflicts)}


class UpstreamError(DomainError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


def overlap_constraint_name(exc: IntegrityError) -> Optional[str]:
    """Return the overlap constraint named by an IntegrityError, if any."""
    orig = getattr(exc, "orig", None)
    diag = getattr(orig, "diag", None)
    constraint_name = getattr(diag, "constraint_name", None) if diag is not None else None
    if constraint_name in OVERLAP_CONSTRAINTS:
        return constraint_name

    text = str(orig if orig is not None else exc)
    for name in OVERLAP_CONSTRAINTS:
        if name in text:
            return name
    return None


def conflict_from_integrity_error(exc: IntegrityError) -> Optional[SlotUnavailable]:
    """Translate a store-level overlap rejection into the same 409 as the app check."""
    name = overlap_constraint_name(exc)
    if name is None:
        return None
    resource = "Aircraft" if name.endswith("aircraft") else "Instructor"
    return SlotUnavailable(f"{resource} is already booked for this time slot")


def _first_validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    error = errors[0]
    loc = [str(part) for part in error.get("loc", ()) if part != "body"]
    msg = str(error.get("msg", "Invalid request"))
    if msg.startswith("Value error, "):
        msg = msg[len("Value error, "):]
    return f"{'.'.join(loc)}: {msg}" if loc else msg


def install_exception_handlers(app: FastAPI) -> None:
    """Register handlers that convert every failure into the error envelope."""

    @app.exception_handler(DomainError)
    async def domain_error_handler(request: Request, exc: DomainError):
        if exc.status_code >= 500:
            logger.error(f"[API] {request.method} {request.url.path} failed: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content=exc.payload())

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": _first_validation_message(exc)},
        )

    @app.exception_handler(IntegrityError)
    async def integrity_error_handler(request: Request, exc: IntegrityError):
        conflict = conflict_from_integrity_error(exc)
        if conflict is not None:
            logger.warning(f"[API] Store rejected overlapping booking on {request.url.path}")
            return JSONResponse(status_code=conflict.status_code, content=conflict.payload())
        logger.error(f"[API] Integrity error on {request.method} {request.url.path}: {exc.orig}")
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "Request conflicts with existing data"},
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception(
            f"[API] Unhandled error on {request.method} {request.url.path} "
            f"params={dict(request.query_params)}"
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Internal server error"},
        )
