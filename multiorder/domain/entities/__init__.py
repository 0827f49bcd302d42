"""Domain entities."""
from .history import LocationPoint, StatusHistoryEntry
from .multi_order import DEFAULT_CANCEL_REASON, DELIVERY_TRANSITIONS, MultiOrder, PaymentShare
from .pickup_tracker import PickupStatusEntry, PickupTracker
from .rider import Rider
from .sub_order import SubOrder

__all__ = [
    "DEFAULT_CANCEL_REASON",
    "DELIVERY_TRANSITIONS",
    "LocationPoint",
    "MultiOrder",
    "PaymentShare",
    "PickupStatusEntry",
    "PickupTracker",
    "Rider",
    "StatusHistoryEntry",
    "SubOrder",
]
