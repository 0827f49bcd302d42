"""Repository interface for the MultiOrder aggregate."""

from abc import ABC, abstractmethod
from typing import Iterable, List, Optional

from ..entities.multi_order import MultiOrder
from ..enums import MultiOrderStatus


class MultiOrderRepository(ABC):
    """Abstract repository for MultiOrder persistence with optimistic versioning."""

    @abstractmethod
    async def get(self, multi_order_id: str) -> Optional[MultiOrder]:
        """Retrieve a multi-order by id.

        Returns:
            MultiOrder if found, None otherwise
        """

    @abstractmethod
    async def add(self, multi_order: MultiOrder) -> None:
        """Persist a new aggregate (version 0 -> 1)."""

    @abstractmethod
    async def save(self, multi_order: MultiOrder) -> None:
        """Persist changes to a loaded aggregate.

        The stored version must still equal ``multi_order.version``; on success
        the version is incremented on both sides.

        Raises:
            StaleAggregateError: If another writer saved first
        """

    @abstractmethod
    async def next_sequence(self) -> int:
        """Next value of the global order-number sequence (count + 1)."""

    @abstractmethod
    async def list_by_customer(
        self,
        customer_id: str,
        statuses: Optional[Iterable[MultiOrderStatus]] = None,
        exclude_statuses: Optional[Iterable[MultiOrderStatus]] = None,
        limit: int = 10,
        offset: int = 0,
    ) -> List[MultiOrder]:
        """Customer's orders, newest first."""

    @abstractmethod
    async def count_by_customer(
        self,
        customer_id: str,
        statuses: Optional[Iterable[MultiOrderStatus]] = None,
        exclude_statuses: Optional[Iterable[MultiOrderStatus]] = None,
    ) -> int:
        """Number of customer orders matching the same filters."""

    @abstractmethod
    async def list_by_rider(
        self,
        rider_id: str,
        statuses: Optional[Iterable[MultiOrderStatus]] = None,
    ) -> List[MultiOrder]:
        """Orders whose primary rider is ``rider_id``, newest first."""

    @abstractmethod
    async def list_unassigned(self, statuses: Iterable[MultiOrderStatus]) -> List[MultiOrder]:
        """Orders without a rider in one of ``statuses``, oldest first."""
