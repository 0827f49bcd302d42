"""
Order status enums.

Closed sets of status values for sub-orders, the multi-order aggregate
and payment bookkeeping.
"""
from enum import Enum


class SubOrderStatus(str, Enum):
    """Lifecycle of one restaurant's slice of a checkout."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    PREPARING = "preparing"
    READY = "ready"
    PICKED_UP = "picked_up"
    ON_THE_WAY = "on_the_way"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (SubOrderStatus.DELIVERED, SubOrderStatus.CANCELLED)


class MultiOrderStatus(str, Enum):
    """Aggregated status of a multi-restaurant order."""

    PENDING = "pending"                          # Just placed, waiting for restaurants
    PARTIALLY_CONFIRMED = "partially_confirmed"  # At least one restaurant confirmed
    ALL_CONFIRMED = "all_confirmed"              # All restaurants confirmed
    PREPARING = "preparing"                      # At least one restaurant preparing
    PARTIALLY_READY = "partially_ready"          # At least one restaurant ready
    ALL_READY = "all_ready"                      # All restaurants ready for pickup
    PICKING_UP = "picking_up"                    # Rider is collecting from restaurants
    PICKED_UP = "picked_up"                      # All sub-orders picked up
    ON_THE_WAY = "on_the_way"                    # Rider heading to customer
    DELIVERED = "delivered"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (MultiOrderStatus.DELIVERED, MultiOrderStatus.CANCELLED)

    @property
    def pickup_started(self) -> bool:
        """True once any rider pickup activity has begun."""
        return self in PICKUP_STARTED_STATUSES


PICKUP_STARTED_STATUSES = frozenset({
    MultiOrderStatus.PICKING_UP,
    MultiOrderStatus.PICKED_UP,
    MultiOrderStatus.ON_THE_WAY,
    MultiOrderStatus.DELIVERED,
    MultiOrderStatus.CANCELLED,
})


class PaymentStatus(str, Enum):
    """Payment state of a sub-order or the whole multi-order."""

    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"
    PARTIALLY_REFUNDED = "partially_refunded"


class SettlementStatus(str, Enum):
    """Settlement state of one restaurant's share of the payment."""

    PENDING = "pending"
    PENDING_SETTLEMENT = "pending_settlement"
    SETTLED = "settled"
    REFUNDED = "refunded"


class PaymentMethod(str, Enum):
    """How the customer pays."""

    ESEWA = "esewa"
    KHALTI = "khalti"
    CARD = "card"
    BANK = "bank"
    COD = "cod"
