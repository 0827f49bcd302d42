"""Rider Directory interface (collaborator owned)."""

from abc import ABC, abstractmethod
from typing import Optional

from ..entities.rider import Rider


class RiderDirectory(ABC):
    """Find and reserve couriers."""

    @abstractmethod
    async def get(self, rider_id: str) -> Optional[Rider]:
        """Any rider account by id, available or not."""

    @abstractmethod
    async def find_available(self, rider_id: str) -> Optional[Rider]:
        """The rider if it is an online delivery account, else None."""

    @abstractmethod
    async def set_current_assignment(self, rider_id: str, label: Optional[str]) -> None:
        """Mark the rider busy with ``label`` (None clears it)."""

    @abstractmethod
    async def increment_completed_orders(self, rider_id: str, count: int) -> None:
        """Add ``count`` to the rider's completed-order counter."""
