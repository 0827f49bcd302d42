"""
Base Domain Event.

All domain events inherit from this base class. Aggregates collect them
while mutating; the application layer dispatches them only after the unit
of work has committed.
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional
import uuid


_METADATA_FIELDS = (
    "event_id", "event_type", "event_version",
    "aggregate_id", "aggregate_type", "actor_id", "occurred_at",
)


@dataclass
class DomainEvent:
    """
    Base class for all domain events.

    Events are immutable records of things that have happened.
    """

    aggregate_type_name = "MultiOrder"

    # Event metadata
    event_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    event_type: str = field(init=False, default="")
    event_version: int = 1

    # Aggregate information
    aggregate_id: str = field(default="")
    aggregate_type: str = field(init=False, default="")

    actor_id: Optional[str] = None

    occurred_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self):
        """Set event type and aggregate type from the class."""
        if not self.event_type:
            object.__setattr__(self, "event_type", self.__class__.__name__)
        if not self.aggregate_type:
            object.__setattr__(self, "aggregate_type", self.aggregate_type_name)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert event to dictionary for serialization.

        Used by realtime emitters and webhook payloads.
        """
        return {
            "event_id": self.event_id,
            "event_type": self.event_type,
            "event_version": self.event_version,
            "aggregate_id": self.aggregate_id,
            "aggregate_type": self.aggregate_type,
            "actor_id": self.actor_id,
            "occurred_at": self.occurred_at.isoformat(),
            "data": self._get_event_data(),
        }

    def _get_event_data(self) -> Dict[str, Any]:
        data = {}
        for key, value in self.__dict__.items():
            if key in _METADATA_FIELDS:
                continue
            if isinstance(value, Decimal):
                data[key] = str(value)
            elif isinstance(value, Enum):
                data[key] = value.value
            elif isinstance(value, datetime):
                data[key] = value.isoformat()
            else:
                data[key] = value
        return data
