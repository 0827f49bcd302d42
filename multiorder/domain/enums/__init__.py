"""Domain enumerations."""
from .actor_role import ActorRole
from .order_status import (
    MultiOrderStatus,
    PaymentMethod,
    PaymentStatus,
    PICKUP_STARTED_STATUSES,
    SettlementStatus,
    SubOrderStatus,
)

__all__ = [
    "ActorRole",
    "MultiOrderStatus",
    "PaymentMethod",
    "PaymentStatus",
    "PICKUP_STARTED_STATUSES",
    "SettlementStatus",
    "SubOrderStatus",
]
