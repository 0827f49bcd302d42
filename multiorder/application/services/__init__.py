"""Application services."""
from .concurrency import AggregateLockRegistry
from .orchestration_service import OrchestrationFacade
from .query_service import MultiOrderQueryService
from .rider_assignment_service import RiderAssignmentService
from .side_effects import SideEffectDispatcher

__all__ = [
    "AggregateLockRegistry",
    "MultiOrderQueryService",
    "OrchestrationFacade",
    "RiderAssignmentService",
    "SideEffectDispatcher",
]
