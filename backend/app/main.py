"""Aero Club Ops - FastAPI Application Entry Point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.core.config import get_settings
from app.core.env_validation import validate_environment
from app.core.errors import install_exception_handlers
from app.routers import (
    bookings_router,
    scheduler_router,
    aircraft_router,
    debriefs_router,
    defects_router,
)

# CRITICAL: Validate environment before proceeding
# This will hard-fail (exit 1) if required configuration is missing
validate_environment()

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    logger.info(f"[APP] {settings.app_name} starting")
    yield
    logger.info(f"[APP] {settings.app_name} stopping")


app = FastAPI(
    title=settings.app_name,
    description="Aero club operations: bookings, scheduler timeline and the briefing, checkout, check-in and debrief workflow.",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)

# In production, wildcard (*) is blocked by env_validation.py
logger.info(f"[APP] CORS configured with origins: {settings.origins}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

install_exception_handlers(app)

app.include_router(bookings_router, prefix=settings.api_prefix)
app.include_router(scheduler_router, prefix=settings.api_prefix)
app.include_router(aircraft_router, prefix=settings.api_prefix)
app.include_router(debriefs_router, prefix=settings.api_prefix)
app.include_router(defects_router, prefix=settings.api_prefix)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "service": settings.app_name}
