"""Services for the aero-club backend."""

from app.services.audit import AuditService
from app.services.aggregator import BookingAggregator
from app.services.workflow import WorkflowService

__all__ = [
    "AuditService",
    "BookingAggregator",
    "WorkflowService",
]
