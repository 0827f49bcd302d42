"""
Multi-Order Domain Events.

Recorded by the MultiOrder aggregate; translated into notifications and
realtime broadcasts after commit.
"""
from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Optional

from .base import DomainEvent


@dataclass
class MultiOrderEvent(DomainEvent):
    """Common fields for every multi-order event."""

    multi_order_id: str = ""
    order_number: str = ""

    def __post_init__(self):
        """Set aggregate_id to multi_order_id."""
        if not self.aggregate_id and self.multi_order_id:
            object.__setattr__(self, "aggregate_id", self.multi_order_id)
        super().__post_init__()


@dataclass
class MultiOrderCreatedEvent(MultiOrderEvent):
    """A checkout produced a new multi-order."""

    customer_id: str = ""
    restaurant_count: int = 0


@dataclass
class MultiOrderStatusChangedEvent(MultiOrderEvent):
    """The aggregated status field changed."""

    previous_status: str = ""
    new_status: str = ""
    note: Optional[str] = None


@dataclass
class SubOrderReadyEvent(MultiOrderEvent):
    """A restaurant marked its sub-order ready for pickup."""

    sub_order_id: str = ""
    restaurant_id: str = ""
    restaurant_name: Optional[str] = None
    rider_id: Optional[str] = None


@dataclass
class RiderAssignedEvent(MultiOrderEvent):
    """A primary rider was reserved for every sub-order."""

    rider_id: str = ""
    rider_name: Optional[str] = None
    restaurant_count: int = 0
    # [{"sub_order_id": ..., "status": ...}, ...]
    sub_orders: List[dict] = field(default_factory=list)


@dataclass
class RiderReleasedEvent(MultiOrderEvent):
    """The primary rider was taken off the order before pickup began."""

    rider_id: str = ""
    sub_order_ids: List[str] = field(default_factory=list)


@dataclass
class SubOrderPickedUpEvent(MultiOrderEvent):
    """The rider collected one restaurant's sub-order."""

    sub_order_id: str = ""
    customer_id: str = ""
    picked_up_count: int = 0
    remaining_count: int = 0
    restaurant_count: int = 0

    @property
    def all_picked_up(self) -> bool:
        return self.remaining_count == 0


@dataclass
class MultiOrderDeliveredEvent(MultiOrderEvent):
    """The rider completed the delivery."""

    customer_id: str = ""
    rider_id: str = ""
    restaurant_count: int = 0


@dataclass
class MultiOrderCancelledEvent(MultiOrderEvent):
    """The order and every sub-order were cancelled."""

    customer_id: str = ""
    reason: str = ""
    cancelled_by_role: str = ""
    sub_order_ids: List[str] = field(default_factory=list)


@dataclass
class RiderLocationRecordedEvent(MultiOrderEvent):
    """The rider reported a position."""

    rider_id: str = ""
    lat: float = 0.0
    lng: float = 0.0


@dataclass
class PaymentSettledEvent(MultiOrderEvent):
    """A restaurant's share of the payment was settled."""

    restaurant_id: str = ""
    amount: Decimal = Decimal("0")
