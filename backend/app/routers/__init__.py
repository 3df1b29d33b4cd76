"""API Routers for the aero-club backend."""

from app.routers.bookings import router as bookings_router
from app.routers.scheduler import router as scheduler_router
from app.routers.aircraft import router as aircraft_router
from app.routers.debriefs import router as debriefs_router
from app.routers.defects import router as defects_router

__all__ = [
    "bookings_router",
    "scheduler_router",
    "aircraft_router",
    "debriefs_router",
    "defects_router",
]
