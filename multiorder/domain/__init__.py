"""Domain layer - pure domain models and interfaces."""

from .entities import MultiOrder, PickupTracker, Rider, SubOrder
from .enums import ActorRole, MultiOrderStatus, SubOrderStatus
from .repositories import MultiOrderRepository, RiderDirectory, SubOrderStore
from .services import aggregate_status
from .value_objects import Actor, DeliveryAddress, OrderNumber, Pricing

__all__ = [
    "Actor",
    "ActorRole",
    "aggregate_status",
    "DeliveryAddress",
    "MultiOrder",
    "MultiOrderRepository",
    "MultiOrderStatus",
    "OrderNumber",
    "PickupTracker",
    "Pricing",
    "Rider",
    "RiderDirectory",
    "SubOrder",
    "SubOrderStatus",
    "SubOrderStore",
]
