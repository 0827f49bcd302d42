"""
Sub-order entity.

One restaurant's slice of a multi-restaurant checkout. Owned by the
Sub-Order Store; the orchestration core only reads it and asks the store to
change it.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from ..enums import PaymentStatus, SubOrderStatus
from ..value_objects import Pricing
from .history import StatusHistoryEntry


@dataclass
class SubOrder:
    """A single restaurant order, optionally part of a multi-order."""
    id: str
    order_number: str
    restaurant_id: str
    customer_id: str
    pricing: Pricing
    created_at: datetime
    restaurant_name: Optional[str] = None
    multi_order_id: Optional[str] = None
    status: SubOrderStatus = SubOrderStatus.PENDING
    payment_status: PaymentStatus = PaymentStatus.PENDING
    delivery_rider_id: Optional[str] = None
    actual_delivery_time: Optional[datetime] = None
    status_history: List[StatusHistoryEntry] = field(default_factory=list)
