"""Application DTOs."""
from .multi_order_dto import (
    CreateMultiOrderRequest,
    DeliveryAddressDTO,
    MultiOrderListDTO,
    MultiOrderSummaryDTO,
    MultiOrderTrackingDTO,
    PricingDTO,
    RestaurantGroupDTO,
    StatusHistoryDTO,
    SubOrderTrackingDTO,
)

__all__ = [
    "CreateMultiOrderRequest",
    "DeliveryAddressDTO",
    "MultiOrderListDTO",
    "MultiOrderSummaryDTO",
    "MultiOrderTrackingDTO",
    "PricingDTO",
    "RestaurantGroupDTO",
    "StatusHistoryDTO",
    "SubOrderTrackingDTO",
]
