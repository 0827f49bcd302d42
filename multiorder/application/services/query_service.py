"""Read-side queries for multi-order tracking and listing."""
import math
from typing import List, Optional

from multiorder.application.dtos import (
    DeliveryAddressDTO,
    MultiOrderListDTO,
    MultiOrderSummaryDTO,
    MultiOrderTrackingDTO,
    PricingDTO,
    StatusHistoryDTO,
    SubOrderTrackingDTO,
)
from multiorder.application.interfaces import UnitOfWorkFactory
from multiorder.domain.entities import MultiOrder, StatusHistoryEntry, SubOrder
from multiorder.domain.enums import ActorRole, MultiOrderStatus
from multiorder.domain.exceptions import AuthorizationError, NotFoundError
from multiorder.domain.value_objects import Actor


TERMINAL_STATUSES = (MultiOrderStatus.DELIVERED, MultiOrderStatus.CANCELLED)

RIDER_ACTIVE_STATUSES = (
    MultiOrderStatus.PREPARING,
    MultiOrderStatus.PARTIALLY_READY,
    MultiOrderStatus.ALL_READY,
    MultiOrderStatus.PICKING_UP,
    MultiOrderStatus.PICKED_UP,
    MultiOrderStatus.ON_THE_WAY,
)

# Orders riders may pick from: confirmed by at least one restaurant, not yet ready
AVAILABLE_FOR_RIDERS_STATUSES = (
    MultiOrderStatus.PARTIALLY_CONFIRMED,
    MultiOrderStatus.ALL_CONFIRMED,
    MultiOrderStatus.PREPARING,
)


class MultiOrderQueryService:
    """Tracking views and order lists; never mutates anything."""

    def __init__(self, uow_factory: UnitOfWorkFactory):
        self._uow_factory = uow_factory

    async def get_tracking(self, multi_order_id: str, actor: Actor) -> MultiOrderTrackingDTO:
        """
        Aggregated tracking view of one multi-order.

        Raises:
            NotFoundError: If the multi-order does not exist
            AuthorizationError: If the actor may not see it
        """
        async with self._uow_factory() as uow:
            order = await uow.multi_orders.get(multi_order_id)
            if order is None:
                raise NotFoundError(f"Multi-order {multi_order_id} not found")
            sub_orders = await uow.sub_orders.get_many(order.sub_order_ids)

        if not self._can_view(order, sub_orders, actor):
            raise AuthorizationError("Not authorized to view this order")
        return self._to_tracking_dto(order, sub_orders)

    async def list_customer_orders(
        self,
        customer_id: str,
        status_filter: Optional[str] = None,
        limit: int = 10,
        page: int = 1,
    ) -> MultiOrderListDTO:
        """
        A customer's multi-orders, newest first.

        Args:
            status_filter: ``"active"`` (not delivered/cancelled), a
                MultiOrderStatus value, or None for everything
        """
        if limit < 1 or page < 1:
            raise ValueError("limit and page must be positive")

        statuses, exclude = None, None
        if status_filter == "active":
            exclude = TERMINAL_STATUSES
        elif status_filter:
            statuses = (MultiOrderStatus(status_filter),)

        async with self._uow_factory() as uow:
            orders = await uow.multi_orders.list_by_customer(
                customer_id, statuses=statuses, exclude_statuses=exclude,
                limit=limit, offset=(page - 1) * limit,
            )
            total = await uow.multi_orders.count_by_customer(
                customer_id, statuses=statuses, exclude_statuses=exclude
            )

        return MultiOrderListDTO(
            orders=[self._to_summary_dto(o) for o in orders],
            count=len(orders),
            total=total,
            pages=math.ceil(total / limit),
        )

    async def list_rider_orders(self, rider_id: str, status_filter: Optional[str] = None) -> List[MultiOrderSummaryDTO]:
        """
        Orders assigned to a rider.

        ``"active"``, ``"completed"`` or a concrete multi-order status narrow
        the list; any other value raises ValueError.
        """
        statuses = None
        if status_filter == "active":
            statuses = RIDER_ACTIVE_STATUSES
        elif status_filter == "completed":
            statuses = (MultiOrderStatus.DELIVERED,)
        elif status_filter:
            statuses = (MultiOrderStatus(status_filter),)

        async with self._uow_factory() as uow:
            orders = await uow.multi_orders.list_by_rider(rider_id, statuses=statuses)
        return [self._to_summary_dto(o) for o in orders]

    async def list_available_for_riders(self) -> List[MultiOrderSummaryDTO]:
        """Unassigned orders riders can take, oldest first."""
        async with self._uow_factory() as uow:
            orders = await uow.multi_orders.list_unassigned(AVAILABLE_FOR_RIDERS_STATUSES)
        return [self._to_summary_dto(o) for o in orders]

    @staticmethod
    def _can_view(order: MultiOrder, sub_orders: List[SubOrder], actor: Actor) -> bool:
        if actor.is_admin or actor.id == order.customer_id:
            return True
        if actor.role == ActorRole.RIDER:
            return actor.id == order.primary_rider_id
        if actor.role == ActorRole.RESTAURANT:
            return any(s.restaurant_id in actor.restaurant_ids for s in sub_orders)
        return False

    @staticmethod
    def _history(entries: List[StatusHistoryEntry]) -> List[StatusHistoryDTO]:
        return [StatusHistoryDTO(status=h.status, timestamp=h.timestamp, note=h.note) for h in entries]

    def _to_tracking_dto(self, order: MultiOrder, sub_orders: List[SubOrder]) -> MultiOrderTrackingDTO:
        by_id = {s.id: s for s in sub_orders}
        tracked = []
        for entry in order.pickup_status.entries:
            sub_order = by_id.get(entry.sub_order_id)
            if sub_order is None:
                continue
            tracked.append(SubOrderTrackingDTO(
                sub_order_id=sub_order.id,
                order_number=sub_order.order_number,
                restaurant_id=sub_order.restaurant_id,
                restaurant_name=sub_order.restaurant_name,
                status=sub_order.status,
                status_history=self._history(sub_order.status_history),
                is_ready=entry.is_ready,
                is_picked_up=entry.is_picked_up,
            ))

        address = order.delivery_address
        return MultiOrderTrackingDTO(
            multi_order_id=order.id,
            order_number=str(order.order_number),
            overall_status=order.status,
            status_history=self._history(order.status_history),
            restaurant_count=order.restaurant_count,
            rider_id=order.primary_rider_id,
            delivery_address=DeliveryAddressDTO(**address.to_dict()) if address else None,
            estimated_delivery_time=order.estimated_delivery_time,
            sub_orders=tracked,
            pricing=PricingDTO(**order.pricing.to_dict()),
            created_at=order.created_at,
        )

    @staticmethod
    def _to_summary_dto(order: MultiOrder) -> MultiOrderSummaryDTO:
        return MultiOrderSummaryDTO(
            multi_order_id=order.id,
            order_number=str(order.order_number),
            customer_id=order.customer_id,
            status=order.status,
            restaurant_count=order.restaurant_count,
            rider_id=order.primary_rider_id,
            payment_status=order.payment_status,
            total=order.pricing.total,
            created_at=order.created_at,
        )
