"""Application DTOs for multi-order operations."""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from multiorder.domain.enums import MultiOrderStatus, PaymentMethod, PaymentStatus, SubOrderStatus


class DeliveryAddressDTO(BaseModel):
    """Drop-off address."""

    address_line1: str = Field(..., min_length=1, description="Street address")
    city: str = Field(..., min_length=1, description="City")
    label: Optional[str] = Field(None, description="Home, Work, ...")
    address_line2: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    lat: Optional[float] = Field(None, ge=-90, le=90)
    lng: Optional[float] = Field(None, ge=-180, le=180)

    model_config = {"frozen": True}


class RestaurantGroupDTO(BaseModel):
    """One restaurant's part of a multi-restaurant cart."""

    restaurant_id: str = Field(..., min_length=1, description="Restaurant id")
    restaurant_name: Optional[str] = Field(None, description="Display name used in notifications")
    subtotal: Decimal = Field(..., ge=0, description="Items subtotal")
    delivery_fee: Decimal = Field(default=Decimal("0"), ge=0)
    service_fee: Decimal = Field(default=Decimal("0"), ge=0)
    discount: Decimal = Field(default=Decimal("0"), ge=0)

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def _discount_within_total(self) -> "RestaurantGroupDTO":
        if self.discount > self.subtotal + self.delivery_fee + self.service_fee:
            raise ValueError("Discount cannot exceed subtotal plus fees")
        return self


class CreateMultiOrderRequest(BaseModel):
    """Request DTO for checking out a multi-restaurant cart."""

    customer_id: str = Field(..., min_length=1, description="Owning customer")
    restaurants: List[RestaurantGroupDTO] = Field(..., min_length=1, description="One group per restaurant")
    delivery_address: Optional[DeliveryAddressDTO] = None
    payment_method: PaymentMethod = Field(default=PaymentMethod.COD)
    special_instructions: Optional[str] = None
    promo_code: Optional[str] = None
    estimated_delivery_time: Optional[datetime] = None
    # Admin may reserve a rider before any restaurant confirms
    rider_id: Optional[str] = Field(None, description="Rider to pre-assign (admin only)")

    model_config = {"frozen": True}

    @field_validator("restaurants")
    @classmethod
    def _unique_restaurants(cls, value: List[RestaurantGroupDTO]) -> List[RestaurantGroupDTO]:
        ids = [group.restaurant_id for group in value]
        if len(ids) != len(set(ids)):
            raise ValueError("Each restaurant may appear only once")
        return value


class StatusHistoryDTO(BaseModel):
    """One status history record."""

    status: str
    timestamp: datetime
    note: Optional[str] = None

    model_config = {"frozen": True}


class PricingDTO(BaseModel):
    """Price breakdown."""

    subtotal: Decimal
    delivery_fee: Decimal
    service_fee: Decimal
    discount: Decimal
    total: Decimal

    model_config = {"frozen": True}


class SubOrderTrackingDTO(BaseModel):
    """Tracking view of one restaurant's sub-order."""

    sub_order_id: str
    order_number: str
    restaurant_id: str
    restaurant_name: Optional[str] = None
    status: SubOrderStatus
    status_history: List[StatusHistoryDTO] = Field(default_factory=list)
    is_ready: bool = False
    is_picked_up: bool = False

    model_config = {"frozen": True}


class MultiOrderTrackingDTO(BaseModel):
    """Aggregated tracking view of a multi-order."""

    multi_order_id: str
    order_number: str
    overall_status: MultiOrderStatus
    status_history: List[StatusHistoryDTO] = Field(default_factory=list)
    restaurant_count: int = Field(..., ge=1)
    rider_id: Optional[str] = None
    delivery_address: Optional[DeliveryAddressDTO] = None
    estimated_delivery_time: Optional[datetime] = None
    sub_orders: List[SubOrderTrackingDTO] = Field(default_factory=list)
    pricing: PricingDTO
    created_at: datetime

    model_config = {"frozen": True}


class MultiOrderSummaryDTO(BaseModel):
    """List entry for a multi-order."""

    multi_order_id: str
    order_number: str
    customer_id: str
    status: MultiOrderStatus
    restaurant_count: int
    rider_id: Optional[str] = None
    payment_status: PaymentStatus
    total: Decimal
    created_at: datetime

    model_config = {"frozen": True}


class MultiOrderListDTO(BaseModel):
    """Paginated list of multi-orders."""

    orders: List[MultiOrderSummaryDTO] = Field(default_factory=list)
    count: int = Field(..., ge=0, description="Entries on this page")
    total: int = Field(..., ge=0, description="Total matching entries")
    pages: int = Field(..., ge=0)

    model_config = {"frozen": True}
