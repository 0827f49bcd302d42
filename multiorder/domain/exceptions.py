"""
Business error taxonomy for multi-order orchestration.

CRITICAL: This file must contain ZERO imports from:
- sqlalchemy
- pydantic

Every error here is an expected outcome the presentation layer renders
as a precise message. Infrastructure faults are not wrapped, except when a
multi-entity cascade fails part way (PartialFailureError).
"""
from typing import Optional


class OrchestrationError(Exception):
    """Base class for all expected multi-order business errors."""

    code = "orchestration_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        """Serialisable form for API layers."""
        return {"code": self.code, "message": self.message}


class NotFoundError(OrchestrationError):
    """Referenced multi-order, sub-order or rider does not exist."""

    code = "not_found"


class AuthorizationError(OrchestrationError):
    """Actor is not allowed to perform the operation."""

    code = "not_authorized"


class InvalidStateError(OrchestrationError):
    """The aggregate's current state structurally forbids the operation."""

    code = "invalid_state"


class InvalidTransitionError(OrchestrationError):
    """Requested status is not reachable from the current one."""

    code = "invalid_transition"

    def __init__(self, current: str, requested: str):
        super().__init__(f"Cannot change status from {current} to {requested}")
        self.current = current
        self.requested = requested

    def to_dict(self) -> dict:
        data = super().to_dict()
        data.update(current=self.current, requested=self.requested)
        return data


class PreconditionError(OrchestrationError):
    """A sub-order level precondition is not met."""

    code = "precondition_failed"


class WindowExpiredError(OrchestrationError):
    """Time-bounded customer action attempted outside its window."""

    code = "window_expired"


class ConflictError(OrchestrationError):
    """Concurrent or duplicate modification (e.g. rider already assigned)."""

    code = "conflict"


class PartialFailureError(OrchestrationError):
    """
    A multi-entity cascade could not be applied atomically.

    The unit of work has been rolled back; ``__cause__`` holds the
    infrastructure error.
    """

    code = "partial_failure"

    def __init__(self, message: str, step: Optional[str] = None):
        super().__init__(message)
        self.step = step

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["step"] = self.step
        return data


class StaleAggregateError(ConflictError):
    """Optimistic version check failed while saving an aggregate."""

    code = "stale_aggregate"

    def __init__(self, aggregate_id: str, expected_version: int):
        super().__init__(
            f"Multi-order {aggregate_id} was modified concurrently "
            f"(expected version {expected_version})"
        )
        self.aggregate_id = aggregate_id
        self.expected_version = expected_version
