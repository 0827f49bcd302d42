"""Pure domain services."""
from .status_aggregator import aggregate_status

__all__ = ["aggregate_status"]
