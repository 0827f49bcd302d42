"""Side effects run after commit and never undo it."""
import asyncio
import logging

import pytest

from multiorder.application.interfaces import NotificationSink, RealtimeEventEmitter
from multiorder.application.services import OrchestrationFacade, SideEffectDispatcher
from multiorder.domain.enums import MultiOrderStatus, SubOrderStatus
from multiorder.domain.events import MultiOrderCreatedEvent, MultiOrderStatusChangedEvent, SubOrderReadyEvent
from multiorder.domain.exceptions import NotFoundError
from multiorder.infrastructure.adapters.notifications.mock_notification_sink import MockNotificationSink
from multiorder.infrastructure.adapters.realtime.in_memory_emitter import InMemoryEventEmitter


class BrokenNotificationSink(NotificationSink):
    async def notify(self, user_id, notification):
        raise ConnectionError("push gateway unreachable")


class BrokenEmitter(RealtimeEventEmitter):
    async def emit_order_event(self, target_id, event_name, payload):
        raise ConnectionError("socket server unreachable")


@pytest.mark.asyncio
async def test_failing_sinks_do_not_undo_assignment(store, settings, clock, make_request, caplog):
    facade = OrchestrationFacade(store.unit_of_work, BrokenNotificationSink(), BrokenEmitter(), settings, clock)
    order = await facade.create_multi_order(make_request(2))

    with caplog.at_level(logging.ERROR):
        result = await facade.assign_rider(order.id, "rider-1")

    assert result.primary_rider_id == "rider-1"
    assert store.riders["rider-1"].current_assignment == str(order.order_number)
    assert "Failed to notify rider-1" in caplog.text
    assert "Failed to emit rider_assigned" in caplog.text


@pytest.mark.asyncio
async def test_failing_notification_still_emits():
    emitter = InMemoryEventEmitter()
    dispatcher = SideEffectDispatcher(BrokenNotificationSink(), emitter)

    await dispatcher.dispatch([
        SubOrderReadyEvent(multi_order_id="mo-1", sub_order_id="sub-1", rider_id="rider-1"),
        MultiOrderStatusChangedEvent(multi_order_id="mo-1", previous_status="pending", new_status="partially_ready"),
    ])

    assert emitter.names_for("mo-1") == ["partially_ready"]


@pytest.mark.asyncio
async def test_ready_without_rider_notifies_nobody():
    notifications = MockNotificationSink()
    dispatcher = SideEffectDispatcher(notifications, InMemoryEventEmitter())

    await dispatcher.dispatch([SubOrderReadyEvent(multi_order_id="mo-1", sub_order_id="sub-1")])

    assert notifications.notifications_sent == []


@pytest.mark.asyncio
async def test_events_without_side_effects_are_ignored():
    notifications = MockNotificationSink()
    emitter = InMemoryEventEmitter()
    dispatcher = SideEffectDispatcher(notifications, emitter)

    await dispatcher.dispatch([MultiOrderCreatedEvent(multi_order_id="mo-1", restaurant_count=2)])

    assert notifications.notifications_sent == []
    assert emitter.events == []


@pytest.mark.asyncio
async def test_nothing_is_sent_when_operation_fails(facade, notifications, emitter, make_request):
    order = await facade.create_multi_order(make_request(2))
    notifications.clear()
    emitter.clear()

    with pytest.raises(NotFoundError):
        await facade.assign_rider(order.id, "rider-offline")

    assert notifications.notifications_sent == []
    assert emitter.events == []


@pytest.mark.asyncio
async def test_status_payload(facade, emitter, make_request, restaurant_update):
    order = await facade.create_multi_order(make_request(2))
    await restaurant_update(order.sub_order_ids[0], "preparing")

    event = emitter.events[-1]
    assert event.target_id == order.id
    assert event.payload["status"] == MultiOrderStatus.PREPARING.value
    assert event.payload["previous_status"] == "pending"
    assert event.payload["order_number"] == "MO-2024-0001"


class StalledNotificationSink(NotificationSink):
    """Accepts notifications but only returns once ``release`` is set."""

    def __init__(self):
        self.started = asyncio.Event()
        self.release = asyncio.Event()

    async def notify(self, user_id, notification):
        self.started.set()
        await self.release.wait()


@pytest.mark.asyncio
async def test_slow_notification_does_not_block_the_order(facade, store, emitter, settings, clock, make_request):
    order = await facade.create_multi_order(make_request(2))
    sink = StalledNotificationSink()
    stalled = OrchestrationFacade(store.unit_of_work, sink, emitter, settings, clock)

    assigning = asyncio.create_task(stalled.assign_rider(order.id, "rider-1"))
    await asyncio.wait_for(sink.started.wait(), 1.0)

    async with store.unit_of_work() as uow:
        sub_order = await uow.sub_orders.update_status(order.sub_order_ids[0], SubOrderStatus.CONFIRMED, clock())
        await uow.commit()
    updated = await asyncio.wait_for(stalled.on_sub_order_status_changed(sub_order), 1.0)

    assert updated.status == MultiOrderStatus.PARTIALLY_CONFIRMED
    assert updated.primary_rider_id == "rider-1"
    assert not assigning.done()

    sink.release.set()
    assert (await assigning).primary_rider_id == "rider-1"
