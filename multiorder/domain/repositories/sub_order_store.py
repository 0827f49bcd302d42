"""Sub-Order Store interface (collaborator owned)."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Iterable, List, Optional

from ..entities.sub_order import SubOrder
from ..enums import SubOrderStatus


class SubOrderStore(ABC):
    """Create, read and update individual restaurant orders."""

    @abstractmethod
    async def get(self, sub_order_id: str) -> Optional[SubOrder]:
        """Retrieve one sub-order or None."""

    @abstractmethod
    async def get_many(self, sub_order_ids: Iterable[str]) -> List[SubOrder]:
        """Retrieve several sub-orders in the order requested (missing ids skipped)."""

    @abstractmethod
    async def add_many(self, sub_orders: Iterable[SubOrder]) -> None:
        """Persist freshly created sub-orders."""

    @abstractmethod
    async def update_status(
        self,
        sub_order_id: str,
        status: SubOrderStatus,
        at: datetime,
        note: Optional[str] = None,
        **extra_fields,
    ) -> SubOrder:
        """Set status (appending history) and any extra fields.

        Raises:
            NotFoundError: If the sub-order does not exist
        """

    @abstractmethod
    async def set_delivery_rider(self, sub_order_ids: Iterable[str], rider_id: Optional[str]) -> None:
        """Attach (or clear) the delivery rider on several sub-orders."""

    @abstractmethod
    async def list_by_multi_order(self, multi_order_id: str) -> List[SubOrder]:
        """All sub-orders pointing at ``multi_order_id``."""

    @abstractmethod
    async def next_order_number(self, year: int) -> str:
        """Allocate the next restaurant order number."""
