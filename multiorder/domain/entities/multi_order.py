"""
MultiOrder aggregate root.

CRITICAL: This file must contain ZERO imports from:
- sqlalchemy
- pydantic

Groups the sub-orders of one multi-restaurant checkout into a single
customer-facing order. The aggregate owns its status, pickup table, rider
reservation, payment distribution and history logs; sub-order and rider
records are changed by the application layer inside the same unit of work.
"""
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple
import uuid

from ..enums import (
    MultiOrderStatus,
    PaymentMethod,
    PaymentStatus,
    SettlementStatus,
    SubOrderStatus,
)
from ..events import (
    DomainEvent,
    MultiOrderCancelledEvent,
    MultiOrderCreatedEvent,
    MultiOrderDeliveredEvent,
    MultiOrderStatusChangedEvent,
    PaymentSettledEvent,
    RiderAssignedEvent,
    RiderLocationRecordedEvent,
    RiderReleasedEvent,
    SubOrderPickedUpEvent,
    SubOrderReadyEvent,
)
from ..exceptions import (
    AuthorizationError,
    ConflictError,
    InvalidStateError,
    InvalidTransitionError,
    NotFoundError,
    WindowExpiredError,
)
from ..services.status_aggregator import aggregate_status
from ..value_objects import Actor, DeliveryAddress, OrderNumber, Pricing
from ...utils.datetime import parse_datetime
from .history import LocationPoint, StatusHistoryEntry
from .pickup_tracker import PickupTracker
from .sub_order import SubOrder


# Rider-driven transitions once everything has been collected
DELIVERY_TRANSITIONS = {
    MultiOrderStatus.PICKED_UP: (MultiOrderStatus.ON_THE_WAY, MultiOrderStatus.DELIVERED),
    MultiOrderStatus.ON_THE_WAY: (MultiOrderStatus.DELIVERED,),
}

DEFAULT_CANCEL_REASON = "Cancelled by user"


@dataclass
class PaymentShare:
    """One restaurant's part of the customer payment."""
    restaurant_id: str
    amount: Decimal
    percentage: Decimal
    status: SettlementStatus = SettlementStatus.PENDING
    settled_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "restaurant_id": self.restaurant_id,
            "amount": str(self.amount),
            "percentage": str(self.percentage),
            "status": self.status.value,
            "settled_at": self.settled_at.isoformat() if self.settled_at else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "PaymentShare":
        return cls(
            restaurant_id=data["restaurant_id"],
            amount=Decimal(data["amount"]),
            percentage=Decimal(data["percentage"]),
            status=SettlementStatus(data["status"]),
            settled_at=parse_datetime(data.get("settled_at")),
        )


@dataclass
class MultiOrder:
    """
    Multi-restaurant order aggregate root.

    ``status`` is always the StatusAggregator's view of the sub-orders or the
    result of an explicit rider/cancel transition that the application layer
    mirrors onto every sub-order.
    """
    id: str
    order_number: OrderNumber
    customer_id: str
    sub_order_ids: Tuple[str, ...]
    pickup_status: PickupTracker
    pricing: Pricing
    created_at: datetime
    status: MultiOrderStatus = MultiOrderStatus.PENDING
    primary_rider_id: Optional[str] = None

    payment_method: PaymentMethod = PaymentMethod.COD
    payment_status: PaymentStatus = PaymentStatus.PENDING
    payment_distribution: List[PaymentShare] = field(default_factory=list)

    delivery_address: Optional[DeliveryAddress] = None
    special_instructions: Optional[str] = None
    promo_code: Optional[str] = None
    estimated_delivery_time: Optional[datetime] = None
    actual_delivery_time: Optional[datetime] = None

    status_history: List[StatusHistoryEntry] = field(default_factory=list)
    rider_location_history: List[LocationPoint] = field(default_factory=list)

    updated_at: Optional[datetime] = None
    # Optimistic concurrency counter, bumped by repositories on save
    version: int = 0

    _domain_events: List[DomainEvent] = field(default_factory=list, init=False, repr=False)

    @classmethod
    def create(
        cls,
        order_number: OrderNumber,
        customer_id: str,
        sub_orders: Sequence[SubOrder],
        created_at: datetime,
        payment_method: PaymentMethod = PaymentMethod.COD,
        delivery_address: Optional[DeliveryAddress] = None,
        special_instructions: Optional[str] = None,
        promo_code: Optional[str] = None,
        estimated_delivery_time: Optional[datetime] = None,
        multi_order_id: Optional[str] = None,
    ) -> "MultiOrder":
        """
        Factory method for a freshly checked-out multi-order.

        Raises:
            ValueError: If there are no sub-orders or a restaurant repeats
        """
        if not sub_orders:
            raise ValueError("A multi-order needs at least one sub-order")
        restaurants = [s.restaurant_id for s in sub_orders]
        if len(set(restaurants)) != len(restaurants):
            raise ValueError("Each restaurant may appear only once in a multi-order")

        pricing = Pricing.combine(s.pricing for s in sub_orders)
        order = cls(
            id=multi_order_id or str(uuid.uuid4()),
            order_number=order_number,
            customer_id=customer_id,
            sub_order_ids=tuple(s.id for s in sub_orders),
            pickup_status=PickupTracker.for_sub_orders((s.id, s.restaurant_id) for s in sub_orders),
            pricing=pricing,
            created_at=created_at,
            payment_method=PaymentMethod(payment_method),
            payment_distribution=[
                PaymentShare(
                    restaurant_id=s.restaurant_id,
                    amount=s.pricing.total,
                    percentage=pricing.share_of(s.pricing.total),
                )
                for s in sub_orders
            ],
            delivery_address=delivery_address,
            special_instructions=special_instructions,
            promo_code=promo_code,
            estimated_delivery_time=estimated_delivery_time,
            updated_at=created_at,
        )
        order.status_history.append(
            StatusHistoryEntry(MultiOrderStatus.PENDING.value, created_at, "Order placed")
        )
        order._record_event(
            MultiOrderCreatedEvent(
                multi_order_id=order.id,
                order_number=str(order.order_number),
                customer_id=customer_id,
                restaurant_count=order.restaurant_count,
            )
        )
        return order

    @property
    def restaurant_count(self) -> int:
        return len(self.sub_order_ids)

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    # =========================================================================
    # STATUS AGGREGATION
    # =========================================================================

    def apply_aggregated_status(
        self,
        statuses: Iterable[SubOrderStatus],
        at: datetime,
        note: Optional[str] = None,
    ) -> bool:
        """
        Recompute the status from the sub-order statuses.

        Returns:
            True if the status field changed
        """
        if self.is_terminal:
            return False
        return self._set_status(aggregate_status(statuses), at, note)

    def mark_sub_order_ready(
        self,
        sub_order_id: str,
        at: datetime,
        restaurant_name: Optional[str] = None,
    ) -> bool:
        """Flag a sub-order ready; records a SubOrderReadyEvent on first flag."""
        if self.is_terminal:
            return False
        if not self.pickup_status.mark_ready(sub_order_id, at):
            return False
        entry = self.pickup_status.entry(sub_order_id)
        self.updated_at = at
        self._record_event(
            SubOrderReadyEvent(
                multi_order_id=self.id,
                order_number=str(self.order_number),
                sub_order_id=sub_order_id,
                restaurant_id=entry.restaurant_id,
                restaurant_name=restaurant_name,
                rider_id=self.primary_rider_id,
            )
        )
        return True

    # =========================================================================
    # RIDER WORKFLOW
    # =========================================================================

    def assign_rider(
        self,
        rider_id: str,
        at: datetime,
        rider_name: Optional[str] = None,
        sub_orders: Sequence[SubOrder] = (),
    ) -> None:
        """
        Reserve a primary rider for every sub-order.

        Raises:
            ConflictError: If a rider is already assigned
            InvalidStateError: If the order is delivered or cancelled
        """
        if self.primary_rider_id:
            raise ConflictError("Rider already assigned to this order")
        if self.is_terminal:
            raise InvalidStateError(f"Cannot assign a rider to a {self.status.value} order")

        self.primary_rider_id = rider_id
        self.updated_at = at
        self._record_event(
            RiderAssignedEvent(
                multi_order_id=self.id,
                order_number=str(self.order_number),
                rider_id=rider_id,
                rider_name=rider_name,
                restaurant_count=self.restaurant_count,
                sub_orders=[{"sub_order_id": s.id, "status": s.status.value} for s in sub_orders],
            )
        )

    def release_rider(self, actor: Actor, at: datetime) -> str:
        """
        Take the primary rider off the order before pickup starts.

        Returns:
            The released rider's id

        Raises:
            AuthorizationError: If the actor is not an admin
            InvalidStateError: If no rider is assigned or pickup has begun
        """
        if not actor.is_admin:
            raise AuthorizationError("Only an admin can release the assigned rider")
        if not self.primary_rider_id:
            raise InvalidStateError("No rider is assigned to this order")
        if self.status.pickup_started:
            raise InvalidStateError(
                f"Rider cannot be released once the order is {self.status.value}"
            )

        rider_id = self.primary_rider_id
        self.primary_rider_id = None
        self.updated_at = at
        self._record_event(
            RiderReleasedEvent(
                multi_order_id=self.id,
                order_number=str(self.order_number),
                actor_id=actor.id,
                rider_id=rider_id,
                sub_order_ids=list(self.sub_order_ids),
            )
        )
        return rider_id

    def mark_sub_order_picked_up(self, sub_order_id: str, rider_id: str, at: datetime) -> bool:
        """
        Record that the rider collected one sub-order.

        Returns:
            True if the pickup was newly recorded, False if it already was

        Raises:
            AuthorizationError: If the caller is not the assigned rider
            InvalidStateError: If the order is delivered or cancelled
            NotFoundError: If the sub-order is not part of this order
            PreconditionError: If the sub-order is not ready yet
        """
        self._ensure_primary_rider(rider_id)
        self._ensure_active()

        if not self.pickup_status.mark_picked_up(sub_order_id, at):
            return False

        if self.pickup_status.all_picked_up():
            self._set_status(MultiOrderStatus.PICKED_UP, at, "All restaurants collected")
        else:
            self._set_status(MultiOrderStatus.PICKING_UP, at)
        self.updated_at = at

        self._record_event(
            SubOrderPickedUpEvent(
                multi_order_id=self.id,
                order_number=str(self.order_number),
                actor_id=rider_id,
                sub_order_id=sub_order_id,
                customer_id=self.customer_id,
                picked_up_count=self.pickup_status.picked_up_count(),
                remaining_count=self.pickup_status.remaining_count(),
                restaurant_count=self.restaurant_count,
            )
        )
        return True

    def update_delivery_status(
        self,
        rider_id: str,
        requested: "MultiOrderStatus | str",
        at: datetime,
    ) -> MultiOrderStatus:
        """
        Rider-driven transition after collection.

        Legal moves: picked_up -> on_the_way | delivered, on_the_way -> delivered.

        Raises:
            AuthorizationError: If the caller is not the assigned rider
            InvalidTransitionError: For any other (current, requested) pair
        """
        self._ensure_primary_rider(rider_id)

        try:
            target = MultiOrderStatus(requested)
        except ValueError:
            raise InvalidTransitionError(self.status.value, str(requested)) from None
        if target not in DELIVERY_TRANSITIONS.get(self.status, ()):
            raise InvalidTransitionError(self.status.value, target.value)

        self._set_status(target, at)

        if target == MultiOrderStatus.DELIVERED:
            self.actual_delivery_time = at
            self.payment_status = PaymentStatus.PAID
            for share in self.payment_distribution:
                if share.status == SettlementStatus.PENDING:
                    share.status = SettlementStatus.PENDING_SETTLEMENT
            self._record_event(
                MultiOrderDeliveredEvent(
                    multi_order_id=self.id,
                    order_number=str(self.order_number),
                    actor_id=rider_id,
                    customer_id=self.customer_id,
                    rider_id=rider_id,
                    restaurant_count=self.restaurant_count,
                )
            )
        return target

    def record_rider_location(self, rider_id: str, lat: float, lng: float, at: datetime) -> None:
        """
        Append a rider position report.

        Raises:
            AuthorizationError: If the caller is not the assigned rider
            InvalidStateError: If the order is delivered or cancelled
            ValueError: If the coordinates are out of range
        """
        self._ensure_primary_rider(rider_id)
        self._ensure_active()
        if not (-90 <= lat <= 90 and -180 <= lng <= 180):
            raise ValueError(f"Invalid coordinates: lat={lat}, lng={lng}")

        self.rider_location_history.append(LocationPoint(lat=lat, lng=lng, timestamp=at))
        self.updated_at = at
        self._record_event(
            RiderLocationRecordedEvent(
                multi_order_id=self.id,
                order_number=str(self.order_number),
                actor_id=rider_id,
                rider_id=rider_id,
                lat=lat,
                lng=lng,
            )
        )

    # =========================================================================
    # CANCELLATION & SETTLEMENT
    # =========================================================================

    def cancel(
        self,
        actor: Actor,
        at: datetime,
        reason: Optional[str] = None,
        window: timedelta = timedelta(minutes=2),
    ) -> str:
        """
        Cancel the whole order before any pickup activity.

        Returns:
            The history note used (reason or the default)

        Raises:
            AuthorizationError: If the actor is neither the customer nor an admin
            WindowExpiredError: If the customer is past the modification window
            InvalidStateError: If pickup has begun or the order is terminal
        """
        is_customer = actor.id == self.customer_id
        if not is_customer and not actor.is_admin:
            raise AuthorizationError("Not authorized to cancel this order")

        if is_customer and at - self.created_at > window:
            minutes = int(window.total_seconds() // 60)
            raise WindowExpiredError(
                f"Order modification window ({minutes} mins) has passed. Cannot cancel now."
            )

        if self.status.pickup_started:
            raise InvalidStateError(
                f"Order cannot be cancelled at this stage ({self.status.value})"
            )

        note = reason or DEFAULT_CANCEL_REASON
        self._set_status(MultiOrderStatus.CANCELLED, at, note)

        if self.payment_status == PaymentStatus.PAID:
            self.payment_status = PaymentStatus.REFUNDED
            for share in self.payment_distribution:
                share.status = SettlementStatus.REFUNDED

        self._record_event(
            MultiOrderCancelledEvent(
                multi_order_id=self.id,
                order_number=str(self.order_number),
                actor_id=actor.id,
                customer_id=self.customer_id,
                reason=note,
                cancelled_by_role=actor.role.value,
                sub_order_ids=list(self.sub_order_ids),
            )
        )
        return note

    def settle_restaurant_payment(self, restaurant_id: str, at: datetime) -> PaymentShare:
        """
        Mark one restaurant's share as settled.

        Settlement bookkeeping is the only mutation allowed on a terminal order.

        Raises:
            InvalidStateError: If the order is not delivered or the share is not awaiting settlement
            NotFoundError: If the restaurant has no share in this order
        """
        if self.status != MultiOrderStatus.DELIVERED:
            raise InvalidStateError("Payments are settled only after delivery")

        share = next(
            (s for s in self.payment_distribution if s.restaurant_id == restaurant_id), None
        )
        if share is None:
            raise NotFoundError(f"Restaurant {restaurant_id} has no share in this order")
        if share.status != SettlementStatus.PENDING_SETTLEMENT:
            raise InvalidStateError(
                f"Share for restaurant {restaurant_id} is {share.status.value}, not pending_settlement"
            )

        share.status = SettlementStatus.SETTLED
        share.settled_at = at
        self.updated_at = at
        self._record_event(
            PaymentSettledEvent(
                multi_order_id=self.id,
                order_number=str(self.order_number),
                restaurant_id=restaurant_id,
                amount=share.amount,
            )
        )
        return share

    # =========================================================================
    # INTERNALS
    # =========================================================================

    def _set_status(self, new_status: MultiOrderStatus, at: datetime, note: Optional[str] = None) -> bool:
        """Write the status field; history and event only on an actual change."""
        if new_status == self.status:
            return False
        previous = self.status
        self.status = new_status
        self.updated_at = at
        self.status_history.append(StatusHistoryEntry(new_status.value, at, note))
        self._record_event(
            MultiOrderStatusChangedEvent(
                multi_order_id=self.id,
                order_number=str(self.order_number),
                previous_status=previous.value,
                new_status=new_status.value,
                note=note,
            )
        )
        return True

    def _ensure_primary_rider(self, rider_id: str) -> None:
        if not self.primary_rider_id or self.primary_rider_id != rider_id:
            raise AuthorizationError("Not authorized - not the assigned rider")

    def _ensure_active(self) -> None:
        if self.is_terminal:
            raise InvalidStateError(f"Order is already {self.status.value}")

    # =========================================================================
    # EVENT COLLECTION
    # =========================================================================

    def get_domain_events(self) -> List[DomainEvent]:
        """Get all domain events collected by this aggregate."""
        return list(self._domain_events)

    def clear_domain_events(self) -> None:
        """Clear all collected domain events (after dispatching)."""
        self._domain_events.clear()

    def _record_event(self, event: DomainEvent) -> None:
        self._domain_events.append(event)

    # =========================================================================
    # SNAPSHOT SUPPORT
    # =========================================================================

    def to_snapshot_dict(self) -> Dict[str, Any]:
        """Serialize aggregate state (everything but pending events)."""
        return {
            "id": self.id,
            "order_number": str(self.order_number),
            "customer_id": self.customer_id,
            "sub_order_ids": list(self.sub_order_ids),
            "pickup_status": self.pickup_status.to_list(),
            "pricing": self.pricing.to_dict(),
            "created_at": self.created_at.isoformat(),
            "status": self.status.value,
            "primary_rider_id": self.primary_rider_id,
            "payment_method": self.payment_method.value,
            "payment_status": self.payment_status.value,
            "payment_distribution": [s.to_dict() for s in self.payment_distribution],
            "delivery_address": self.delivery_address.to_dict() if self.delivery_address else None,
            "special_instructions": self.special_instructions,
            "promo_code": self.promo_code,
            "estimated_delivery_time": (
                self.estimated_delivery_time.isoformat() if self.estimated_delivery_time else None
            ),
            "actual_delivery_time": (
                self.actual_delivery_time.isoformat() if self.actual_delivery_time else None
            ),
            "status_history": [h.to_dict() for h in self.status_history],
            "rider_location_history": [p.to_dict() for p in self.rider_location_history],
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
            "version": self.version,
        }

    @classmethod
    def from_snapshot_dict(cls, data: Dict[str, Any]) -> "MultiOrder":
        """Restore an aggregate from ``to_snapshot_dict`` output."""
        address = data.get("delivery_address")
        return cls(
            id=data["id"],
            order_number=OrderNumber(data["order_number"]),
            customer_id=data["customer_id"],
            sub_order_ids=tuple(data["sub_order_ids"]),
            pickup_status=PickupTracker.from_list(data["pickup_status"]),
            pricing=Pricing.from_dict(data["pricing"]),
            created_at=parse_datetime(data["created_at"]),
            status=MultiOrderStatus(data["status"]),
            primary_rider_id=data.get("primary_rider_id"),
            payment_method=PaymentMethod(data.get("payment_method", PaymentMethod.COD.value)),
            payment_status=PaymentStatus(data.get("payment_status", PaymentStatus.PENDING.value)),
            payment_distribution=[PaymentShare.from_dict(s) for s in data.get("payment_distribution", [])],
            delivery_address=DeliveryAddress.from_dict(address) if address else None,
            special_instructions=data.get("special_instructions"),
            promo_code=data.get("promo_code"),
            estimated_delivery_time=parse_datetime(data.get("estimated_delivery_time")),
            actual_delivery_time=parse_datetime(data.get("actual_delivery_time")),
            status_history=[StatusHistoryEntry.from_dict(h) for h in data.get("status_history", [])],
            rider_location_history=[
                LocationPoint.from_dict(p) for p in data.get("rider_location_history", [])
            ],
            updated_at=parse_datetime(data.get("updated_at")),
            version=data.get("version", 0),
        )
