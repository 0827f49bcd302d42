"""Domain value objects."""

from .actor import Actor
from .order_number import OrderNumber
from .value_objects import DeliveryAddress, Pricing

__all__ = [
    "Actor",
    "DeliveryAddress",
    "OrderNumber",
    "Pricing",
]
