"""Domain events collected by the MultiOrder aggregate."""
from .base import DomainEvent
from .multi_order_events import (
    MultiOrderCancelledEvent,
    MultiOrderCreatedEvent,
    MultiOrderDeliveredEvent,
    MultiOrderEvent,
    MultiOrderStatusChangedEvent,
    PaymentSettledEvent,
    RiderAssignedEvent,
    RiderLocationRecordedEvent,
    RiderReleasedEvent,
    SubOrderPickedUpEvent,
    SubOrderReadyEvent,
)

__all__ = [
    "DomainEvent",
    "MultiOrderCancelledEvent",
    "MultiOrderCreatedEvent",
    "MultiOrderDeliveredEvent",
    "MultiOrderEvent",
    "MultiOrderStatusChangedEvent",
    "PaymentSettledEvent",
    "RiderAssignedEvent",
    "RiderLocationRecordedEvent",
    "RiderReleasedEvent",
    "SubOrderPickedUpEvent",
    "SubOrderReadyEvent",
]
