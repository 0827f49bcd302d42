"""
Multi-order orchestration facade.

Entry point for everything that changes a multi-order: sub-order status
changes reported by restaurants, checkout, rider workflow, cancellation and
settlement. Each operation runs under the aggregate's lock in one unit of
work, retries on optimistic version conflicts, and dispatches side effects
only after a successful commit.
"""
import logging
import uuid
from datetime import datetime, timedelta
from typing import Awaitable, Callable, List, Optional, TypeVar

from multiorder.application.dtos import CreateMultiOrderRequest
from multiorder.application.interfaces import (
    NotificationSink,
    RealtimeEventEmitter,
    UnitOfWork,
    UnitOfWorkFactory,
)
from multiorder.application.services.cascade import cascade_step
from multiorder.application.services.concurrency import AggregateLockRegistry
from multiorder.application.services.rider_assignment_service import RiderAssignmentService
from multiorder.application.services.side_effects import SideEffectDispatcher
from multiorder.domain.entities import MultiOrder, StatusHistoryEntry, SubOrder
from multiorder.domain.enums import (
    ActorRole,
    MultiOrderStatus,
    PaymentStatus,
    SubOrderStatus,
)
from multiorder.domain.events import DomainEvent
from multiorder.domain.exceptions import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    StaleAggregateError,
)
from multiorder.domain.value_objects import Actor, DeliveryAddress, OrderNumber, Pricing
from multiorder.settings import OrchestrationSettings, get_app_settings
from multiorder.utils.datetime import Clock, utc_now


logger = logging.getLogger(__name__)

T = TypeVar("T")
Operation = Callable[[UnitOfWork, MultiOrder, datetime], Awaitable[T]]


class OrchestrationFacade:
    """
    Application service coordinating the MultiOrder aggregate and its collaborators.

    Responsibilities:
    - Serialize changes per multi-order (lock + optimistic version check)
    - Apply cascades to sub-orders and riders in the same unit of work
    - Dispatch notifications/realtime events after commit
    """

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        notifications: NotificationSink,
        emitter: RealtimeEventEmitter,
        settings: Optional[OrchestrationSettings] = None,
        clock: Clock = utc_now,
        lock_registry: Optional[AggregateLockRegistry] = None,
        rider_assignment: Optional[RiderAssignmentService] = None,
    ):
        self._uow_factory = uow_factory
        self._settings = settings or get_app_settings().orchestration
        self._clock = clock
        self._locks = lock_registry if lock_registry is not None else AggregateLockRegistry()
        self._rider_assignment = rider_assignment if rider_assignment is not None else RiderAssignmentService()
        self._side_effects = SideEffectDispatcher(notifications, emitter)

    @property
    def cancellation_window(self) -> timedelta:
        return timedelta(seconds=self._settings.cancellation_window_seconds)

    # =========================================================================
    # STATUS PROPAGATION
    # =========================================================================

    async def on_sub_order_status_changed(self, sub_order: SubOrder) -> Optional[MultiOrder]:
        """
        Fold a sub-order's new status into its parent multi-order.

        Args:
            sub_order: The sub-order whose status was just committed

        Returns:
            The updated multi-order, or None if the sub-order has no parent
        """
        if not sub_order.multi_order_id:
            return None

        async def operation(uow: UnitOfWork, order: MultiOrder, now: datetime) -> MultiOrder:
            if order.is_terminal:
                return order
            siblings = await uow.sub_orders.get_many(order.sub_order_ids)
            current = next((s for s in siblings if s.id == sub_order.id), sub_order)

            if current.status == SubOrderStatus.READY and current.id in order.pickup_status:
                order.mark_sub_order_ready(current.id, now, restaurant_name=current.restaurant_name)

            if order.apply_aggregated_status([s.status for s in siblings], now):
                logger.info(f"{order.order_number} is now {order.status.value}")
            return order

        try:
            return await self._run(sub_order.multi_order_id, operation)
        except NotFoundError:
            logger.warning(
                f"Sub-order {sub_order.id} references missing multi-order {sub_order.multi_order_id}"
            )
            return None

    # =========================================================================
    # CHECKOUT
    # =========================================================================

    async def create_multi_order(
        self,
        request: CreateMultiOrderRequest,
        actor: Optional[Actor] = None,
    ) -> MultiOrder:
        """
        Create the sub-orders and their multi-order in one transaction.

        Raises:
            AuthorizationError: If the actor orders for someone else or
                pre-assigns a rider without being an admin
        """
        if actor is not None and not actor.is_admin and actor.id != request.customer_id:
            raise AuthorizationError("Not authorized to order for another customer")
        if request.rider_id and (actor is None or not actor.is_admin):
            raise AuthorizationError("Only an admin can pre-assign a rider")

        now = self._clock()
        multi_order_id = str(uuid.uuid4())

        async with self._uow_factory() as uow:
            sub_orders: List[SubOrder] = []
            for group in request.restaurants:
                sub_orders.append(SubOrder(
                    id=str(uuid.uuid4()),
                    order_number=await uow.sub_orders.next_order_number(now.year),
                    restaurant_id=group.restaurant_id,
                    restaurant_name=group.restaurant_name,
                    customer_id=request.customer_id,
                    pricing=Pricing(
                        subtotal=group.subtotal,
                        delivery_fee=group.delivery_fee,
                        service_fee=group.service_fee,
                        discount=group.discount,
                    ),
                    created_at=now,
                    multi_order_id=multi_order_id,
                    status_history=[StatusHistoryEntry(SubOrderStatus.PENDING.value, now, "Order placed")],
                ))

            sequence = await uow.multi_orders.next_sequence()
            address = request.delivery_address
            order = MultiOrder.create(
                order_number=OrderNumber.generate(self._settings.order_number_prefix, now.year, sequence),
                customer_id=request.customer_id,
                sub_orders=sub_orders,
                created_at=now,
                payment_method=request.payment_method,
                delivery_address=DeliveryAddress(**address.model_dump()) if address else None,
                special_instructions=request.special_instructions,
                promo_code=request.promo_code,
                estimated_delivery_time=request.estimated_delivery_time,
                multi_order_id=multi_order_id,
            )
            order.apply_aggregated_status([s.status for s in sub_orders], now)

            with cascade_step("create_sub_orders"):
                await uow.sub_orders.add_many(sub_orders)
            if request.rider_id:
                await self._rider_assignment.assign(uow, order, request.rider_id, now)
            with cascade_step("create_multi_order"):
                await uow.multi_orders.add(order)
            with cascade_step("commit"):
                await uow.commit()

        logger.info(
            f"Created {order.order_number} for customer {order.customer_id} "
            f"with {order.restaurant_count} restaurants"
        )
        await self._dispatch(order)
        return order

    # =========================================================================
    # RIDER WORKFLOW
    # =========================================================================

    async def assign_rider(self, multi_order_id: str, rider_id: str) -> MultiOrder:
        """
        Reserve a rider for every sub-order.

        Raises:
            NotFoundError: Unknown order, or rider missing/offline
            ConflictError: If a rider is already assigned
            InvalidStateError: If the order is delivered or cancelled
        """
        async def operation(uow: UnitOfWork, order: MultiOrder, now: datetime) -> MultiOrder:
            await self._rider_assignment.assign(uow, order, rider_id, now)
            return order

        return await self._run(multi_order_id, operation)

    async def release_rider(self, multi_order_id: str, actor: Actor) -> MultiOrder:
        """Take the primary rider off the order before pickup starts (admin only)."""
        async def operation(uow: UnitOfWork, order: MultiOrder, now: datetime) -> MultiOrder:
            await self._rider_assignment.release(uow, order, actor, now)
            return order

        return await self._run(multi_order_id, operation)

    async def mark_sub_order_picked_up(self, multi_order_id: str, sub_order_id: str, rider_id: str) -> MultiOrder:
        """
        Record that the rider collected one restaurant's sub-order.

        Raises:
            AuthorizationError: If the caller is not the assigned rider
            PreconditionError: If the sub-order is not ready yet
            NotFoundError: If the sub-order is not part of this order
        """
        async def operation(uow: UnitOfWork, order: MultiOrder, now: datetime) -> MultiOrder:
            if order.mark_sub_order_picked_up(sub_order_id, rider_id, now):
                with cascade_step("pick_up_sub_order"):
                    await uow.sub_orders.update_status(
                        sub_order_id, SubOrderStatus.PICKED_UP, now, note="Picked up by rider"
                    )
                logger.info(
                    f"{order.order_number}: sub-order {sub_order_id} picked up "
                    f"({order.pickup_status.picked_up_count()}/{order.restaurant_count})"
                )
            return order

        return await self._run(multi_order_id, operation)

    async def update_delivery_status(
        self,
        multi_order_id: str,
        rider_id: str,
        new_status: "MultiOrderStatus | str",
    ) -> MultiOrder:
        """
        Rider-driven transition after collection (on_the_way, delivered).

        On the way and delivered are mirrored onto every sub-order. Delivery
        also pays the sub-orders, credits the rider and frees them.

        Raises:
            AuthorizationError: If the caller is not the assigned rider
            InvalidTransitionError: If the transition is not allowed
            PartialFailureError: If the cascade fails (nothing is applied)
        """
        async def operation(uow: UnitOfWork, order: MultiOrder, now: datetime) -> MultiOrder:
            target = order.update_delivery_status(rider_id, new_status, now)

            if target == MultiOrderStatus.ON_THE_WAY:
                with cascade_step("sub_orders_on_the_way"):
                    for sub_order_id in order.sub_order_ids:
                        await uow.sub_orders.update_status(
                            sub_order_id, SubOrderStatus.ON_THE_WAY, now, note="Rider on the way"
                        )
            elif target == MultiOrderStatus.DELIVERED:
                with cascade_step("deliver_sub_orders"):
                    for sub_order_id in order.sub_order_ids:
                        await uow.sub_orders.update_status(
                            sub_order_id,
                            SubOrderStatus.DELIVERED,
                            now,
                            note="Delivered",
                            actual_delivery_time=now,
                            payment_status=PaymentStatus.PAID,
                        )
                with cascade_step("credit_rider"):
                    await uow.riders.increment_completed_orders(rider_id, order.restaurant_count)
                    await uow.riders.set_current_assignment(rider_id, None)

            logger.info(f"{order.order_number} is now {target.value}")
            return order

        return await self._run(multi_order_id, operation)

    async def record_rider_location(self, multi_order_id: str, rider_id: str, lat: float, lng: float) -> MultiOrder:
        """Append a position report from the assigned rider."""
        async def operation(uow: UnitOfWork, order: MultiOrder, now: datetime) -> MultiOrder:
            order.record_rider_location(rider_id, lat, lng, now)
            return order

        return await self._run(multi_order_id, operation)

    # =========================================================================
    # CANCELLATION & SETTLEMENT
    # =========================================================================

    async def cancel(
        self,
        multi_order_id: str,
        actor_id: str,
        actor_role: "ActorRole | str",
        reason: Optional[str] = None,
    ) -> MultiOrder:
        """
        Cancel the multi-order and every sub-order.

        Raises:
            AuthorizationError: If the actor is neither the customer nor an admin
            WindowExpiredError: If the customer's cancellation window has passed
            InvalidStateError: If pickup has begun or the order is terminal
            PartialFailureError: If the cascade fails (nothing is applied)
        """
        actor = Actor(id=actor_id, role=actor_role)

        async def operation(uow: UnitOfWork, order: MultiOrder, now: datetime) -> MultiOrder:
            note = order.cancel(
                actor,
                now,
                reason=reason or self._settings.default_cancel_reason,
                window=self.cancellation_window,
            )
            extra = {}
            if order.payment_status == PaymentStatus.REFUNDED:
                extra["payment_status"] = PaymentStatus.REFUNDED

            with cascade_step("cancel_sub_orders"):
                for sub_order_id in order.sub_order_ids:
                    await uow.sub_orders.update_status(
                        sub_order_id,
                        SubOrderStatus.CANCELLED,
                        now,
                        note=f"Parent order cancelled: {note}",
                        **extra,
                    )
            if order.primary_rider_id:
                with cascade_step("release_rider"):
                    await uow.riders.set_current_assignment(order.primary_rider_id, None)

            logger.info(f"{order.order_number} cancelled by {actor.role.value} {actor.id}: {note}")
            return order

        return await self._run(multi_order_id, operation)

    async def settle_restaurant_payment(self, multi_order_id: str, restaurant_id: str, actor: Actor) -> MultiOrder:
        """
        Mark a restaurant's share of a delivered order as settled (admin only).

        Raises:
            AuthorizationError: If the actor is not an admin
            InvalidStateError: If the order is not delivered or the share is not pending settlement
            NotFoundError: If the restaurant has no share in this order
        """
        if not actor.is_admin:
            raise AuthorizationError("Only an admin can settle restaurant payments")

        async def operation(uow: UnitOfWork, order: MultiOrder, now: datetime) -> MultiOrder:
            share = order.settle_restaurant_payment(restaurant_id, now)
            logger.info(f"{order.order_number}: settled {share.amount} to restaurant {restaurant_id}")
            return order

        return await self._run(multi_order_id, operation)

    # =========================================================================
    # INTERNALS
    # =========================================================================

    async def _run(self, multi_order_id: str, operation: Operation) -> T:
        """
        Run one read-modify-write cycle on a multi-order.

        Holds the aggregate lock, reloads and retries the whole cycle when the
        repository reports a version conflict, and dispatches the collected
        events once the unit of work has committed and the lock is released.
        """
        attempts = self._settings.max_concurrency_retries + 1
        committed: Optional[MultiOrder] = None
        async with self._locks.hold(multi_order_id):
            for attempt in range(1, attempts + 1):
                try:
                    async with self._uow_factory() as uow:
                        order = await uow.multi_orders.get(multi_order_id)
                        if order is None:
                            raise NotFoundError(f"Multi-order {multi_order_id} not found")

                        result = await operation(uow, order, self._clock())

                        if order.get_domain_events():
                            await uow.multi_orders.save(order)
                        with cascade_step("commit"):
                            await uow.commit()
                except StaleAggregateError as exc:
                    logger.warning(f"{exc.message} (attempt {attempt}/{attempts})")
                    continue

                committed = order
                break

        if committed is None:
            raise ConflictError(
                f"Multi-order {multi_order_id} is being modified concurrently, please retry"
            )

        await self._dispatch(committed)
        return result

    async def _dispatch(self, order: MultiOrder) -> None:
        events: List[DomainEvent] = order.get_domain_events()
        order.clear_domain_events()
        await self._side_effects.dispatch(events)
