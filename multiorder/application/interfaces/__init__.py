"""Application layer interfaces."""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Dict

from multiorder.domain.repositories import MultiOrderRepository, RiderDirectory, SubOrderStore


@dataclass(frozen=True)
class Notification:
    """A user-facing notification."""
    type: str
    title: str
    message: str
    data: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "title": self.title, "message": self.message, "data": dict(self.data)}


class NotificationSink(ABC):
    """
    Interface for fire-and-forget user notifications.

    Implementations may raise; the orchestration layer logs and swallows
    every failure.
    """

    @abstractmethod
    async def notify(self, user_id: str, notification: Notification) -> None:
        """
        Deliver a notification to a user.

        Args:
            user_id: Recipient user id
            notification: Notification content
        """
        pass


class RealtimeEventEmitter(ABC):
    """Interface for best-effort broadcasts to tracking screens."""

    @abstractmethod
    async def emit_order_event(self, target_id: str, event_name: str, payload: Dict[str, Any]) -> None:
        """
        Broadcast an order update.

        Args:
            target_id: Multi-order id or sub-order id the listeners follow
            event_name: Status value or event name (``pickup_progress``, ...)
            payload: JSON-serialisable body
        """
        pass


class UnitOfWork(ABC):
    """
    One transaction spanning the multi-order repository and the collaborator stores.

    Usage:
        async with uow_factory() as uow:
            order = await uow.multi_orders.get(order_id)
            ...
            await uow.multi_orders.save(order)
            await uow.commit()

    Leaving the block without ``commit()`` (or with an exception) rolls back.
    """

    multi_orders: MultiOrderRepository
    sub_orders: SubOrderStore
    riders: RiderDirectory

    async def __aenter__(self) -> "UnitOfWork":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.rollback()

    @abstractmethod
    async def commit(self) -> None:
        """Commit all pending changes."""
        pass

    @abstractmethod
    async def rollback(self) -> None:
        """Discard all uncommitted changes (no-op after commit)."""
        pass


UnitOfWorkFactory = Callable[[], UnitOfWork]


__all__ = [
    "Notification",
    "NotificationSink",
    "RealtimeEventEmitter",
    "UnitOfWork",
    "UnitOfWorkFactory",
]
