"""
Pickup tracking.

Per-sub-order ready / picked-up flags that sequence a single rider's
collection run across several restaurants.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from ..exceptions import NotFoundError, PreconditionError
from ...utils.datetime import parse_datetime


@dataclass
class PickupStatusEntry:
    """
    Pickup state of one sub-order.

    Invariant: is_picked_up implies is_ready.
    """
    sub_order_id: str
    restaurant_id: str
    is_ready: bool = False
    is_picked_up: bool = False
    ready_at: Optional[datetime] = None
    picked_up_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "sub_order_id": self.sub_order_id,
            "restaurant_id": self.restaurant_id,
            "is_ready": self.is_ready,
            "is_picked_up": self.is_picked_up,
            "ready_at": self.ready_at.isoformat() if self.ready_at else None,
            "picked_up_at": self.picked_up_at.isoformat() if self.picked_up_at else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "PickupStatusEntry":
        return cls(
            sub_order_id=data["sub_order_id"],
            restaurant_id=data["restaurant_id"],
            is_ready=data.get("is_ready", False),
            is_picked_up=data.get("is_picked_up", False),
            ready_at=parse_datetime(data.get("ready_at")),
            picked_up_at=parse_datetime(data.get("picked_up_at")),
        )


class PickupTracker:
    """
    Table of pickup entries, one per sub-order, in checkout order.

    ``all_ready()`` and ``all_picked_up()`` are vacuously true for an empty
    tracker; aggregates are never created without sub-orders.
    """

    def __init__(self, entries: Iterable[PickupStatusEntry] = ()):
        self._entries: Dict[str, PickupStatusEntry] = {}
        for entry in entries:
            if entry.sub_order_id in self._entries:
                raise ValueError(f"Duplicate pickup entry for sub-order {entry.sub_order_id}")
            self._entries[entry.sub_order_id] = entry

    @classmethod
    def for_sub_orders(cls, pairs: Iterable[tuple]) -> "PickupTracker":
        """Build a fresh tracker from (sub_order_id, restaurant_id) pairs."""
        return cls(PickupStatusEntry(sub_order_id=s, restaurant_id=r) for s, r in pairs)

    def entry(self, sub_order_id: str) -> PickupStatusEntry:
        try:
            return self._entries[sub_order_id]
        except KeyError:
            raise NotFoundError(
                f"Sub-order {sub_order_id} not found in this multi-order"
            ) from None

    def mark_ready(self, sub_order_id: str, at: datetime) -> bool:
        """
        Flag a sub-order as ready for pickup.

        Returns:
            True if the entry changed, False if it was already ready

        Raises:
            NotFoundError: If the sub-order is not part of this multi-order
        """
        entry = self.entry(sub_order_id)
        if entry.is_ready:
            return False
        entry.is_ready = True
        entry.ready_at = at
        return True

    def mark_picked_up(self, sub_order_id: str, at: datetime) -> bool:
        """
        Flag a sub-order as collected by the rider.

        Returns:
            True if the entry changed, False if it was already picked up

        Raises:
            NotFoundError: If the sub-order is not part of this multi-order
            PreconditionError: If the sub-order is not ready yet
        """
        entry = self.entry(sub_order_id)
        if entry.is_picked_up:
            return False
        if not entry.is_ready:
            raise PreconditionError(f"Sub-order {sub_order_id} is not ready for pickup yet")
        entry.is_picked_up = True
        entry.picked_up_at = at
        return True

    def all_ready(self) -> bool:
        return all(e.is_ready for e in self._entries.values())

    def all_picked_up(self) -> bool:
        return all(e.is_picked_up for e in self._entries.values())

    def picked_up_count(self) -> int:
        return sum(1 for e in self._entries.values() if e.is_picked_up)

    def remaining_count(self) -> int:
        return len(self._entries) - self.picked_up_count()

    @property
    def entries(self) -> List[PickupStatusEntry]:
        return list(self._entries.values())

    def __contains__(self, sub_order_id: str) -> bool:
        return sub_order_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def to_list(self) -> List[dict]:
        return [e.to_dict() for e in self._entries.values()]

    @classmethod
    def from_list(cls, data: List[dict]) -> "PickupTracker":
        return cls(PickupStatusEntry.from_dict(item) for item in data)
