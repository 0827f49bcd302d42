"""
Side-effect dispatch.

Translates the domain events a committed unit of work collected into user
notifications and realtime broadcasts. Runs strictly after commit; every
failure is logged and swallowed so that a broken notification channel never
undoes or hides a durable state change.
"""
import logging
from typing import Any, Dict, Iterable

from multiorder.application.interfaces import Notification, NotificationSink, RealtimeEventEmitter
from multiorder.domain.events import (
    DomainEvent,
    MultiOrderCancelledEvent,
    MultiOrderDeliveredEvent,
    MultiOrderStatusChangedEvent,
    RiderAssignedEvent,
    RiderLocationRecordedEvent,
    RiderReleasedEvent,
    SubOrderPickedUpEvent,
    SubOrderReadyEvent,
)


logger = logging.getLogger(__name__)


class SideEffectDispatcher:
    """Routes domain events to the Notification Sink and Realtime Emitter."""

    def __init__(self, notifications: NotificationSink, emitter: RealtimeEventEmitter):
        self._notifications = notifications
        self._emitter = emitter
        self._handlers = {
            MultiOrderStatusChangedEvent: self._on_status_changed,
            SubOrderReadyEvent: self._on_sub_order_ready,
            RiderAssignedEvent: self._on_rider_assigned,
            RiderReleasedEvent: self._on_rider_released,
            SubOrderPickedUpEvent: self._on_sub_order_picked_up,
            MultiOrderDeliveredEvent: self._on_delivered,
            MultiOrderCancelledEvent: self._on_cancelled,
            RiderLocationRecordedEvent: self._on_rider_location,
        }

    async def dispatch(self, events: Iterable[DomainEvent]) -> None:
        for event in events:
            handler = self._handlers.get(type(event))
            if handler is None:
                logger.debug(f"No side effects for {event.event_type}")
                continue
            try:
                await handler(event)
            except Exception:
                logger.error(f"Side effects failed for {event.event_type} ({event.aggregate_id})", exc_info=True)

    # =========================================================================
    # HANDLERS
    # =========================================================================

    async def _on_status_changed(self, event: MultiOrderStatusChangedEvent) -> None:
        await self._emit(event.multi_order_id, event.new_status, {
            "order_number": event.order_number,
            "status": event.new_status,
            "previous_status": event.previous_status,
            "note": event.note,
        })

    async def _on_sub_order_ready(self, event: SubOrderReadyEvent) -> None:
        if not event.rider_id:
            return
        await self._notify(event.rider_id, Notification(
            type="order_ready",
            title="Restaurant Ready for Pickup",
            message=f"{event.restaurant_name or 'A restaurant'} has your order ready for pickup!",
            data={
                "multi_order_id": event.multi_order_id,
                "sub_order_id": event.sub_order_id,
                "restaurant_id": event.restaurant_id,
            },
        ))

    async def _on_rider_assigned(self, event: RiderAssignedEvent) -> None:
        await self._notify(event.rider_id, Notification(
            type="order_assigned",
            title="New Multi-Restaurant Order Assignment",
            message=(
                f"You have been assigned to order {event.order_number} "
                f"with {event.restaurant_count} restaurants"
            ),
            data={"multi_order_id": event.multi_order_id, "order_number": event.order_number},
        ))
        for sub_order in event.sub_orders:
            await self._emit(sub_order["sub_order_id"], sub_order["status"], {
                "status": sub_order["status"],
                "rider_id": event.rider_id,
            })
        await self._emit(event.multi_order_id, "rider_assigned", {
            "rider_id": event.rider_id,
            "rider_name": event.rider_name,
        })

    async def _on_rider_released(self, event: RiderReleasedEvent) -> None:
        await self._notify(event.rider_id, Notification(
            type="order_released",
            title="Assignment Released",
            message=f"You have been released from order {event.order_number}",
            data={"multi_order_id": event.multi_order_id, "order_number": event.order_number},
        ))
        await self._emit(event.multi_order_id, "rider_released", {"rider_id": event.rider_id})

    async def _on_sub_order_picked_up(self, event: SubOrderPickedUpEvent) -> None:
        if event.all_picked_up:
            await self._notify(event.customer_id, Notification(
                type="order_picked_up",
                title="All Orders Picked Up",
                message=(
                    f"Your rider has collected food from all {event.restaurant_count} "
                    "restaurants and is heading your way!"
                ),
                data={"multi_order_id": event.multi_order_id},
            ))
        else:
            await self._emit(event.multi_order_id, "pickup_progress", {
                "sub_order_id": event.sub_order_id,
                "picked_up": event.picked_up_count,
                "remaining": event.remaining_count,
            })

    async def _on_delivered(self, event: MultiOrderDeliveredEvent) -> None:
        await self._notify(event.customer_id, Notification(
            type="order_delivered",
            title="Order Delivered!",
            message="Your complete order has been delivered. Enjoy your meal!",
            data={"multi_order_id": event.multi_order_id},
        ))

    async def _on_cancelled(self, event: MultiOrderCancelledEvent) -> None:
        await self._emit(event.multi_order_id, "cancelled", {
            "order_number": event.order_number,
            "reason": event.reason,
            "cancelled_by": event.cancelled_by_role,
        })

    async def _on_rider_location(self, event: RiderLocationRecordedEvent) -> None:
        await self._emit(event.multi_order_id, "location_update", {"lat": event.lat, "lng": event.lng})

    # =========================================================================
    # GUARDED COLLABORATOR CALLS
    # =========================================================================

    async def _notify(self, user_id: str, notification: Notification) -> None:
        try:
            await self._notifications.notify(user_id, notification)
        except Exception:
            logger.error(f"Failed to notify {user_id} ({notification.type})", exc_info=True)

    async def _emit(self, target_id: str, event_name: str, payload: Dict[str, Any]) -> None:
        try:
            await self._emitter.emit_order_event(target_id, event_name, payload)
        except Exception:
            logger.error(f"Failed to emit {event_name} for {target_id}", exc_info=True)
