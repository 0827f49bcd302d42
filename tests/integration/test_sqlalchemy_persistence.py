"""Orchestration flows against the SQLAlchemy repositories (SQLite)."""
from decimal import Decimal

import pytest

from multiorder.application.services import MultiOrderQueryService
from multiorder.domain.enums import MultiOrderStatus, PaymentStatus, SubOrderStatus
from multiorder.domain.exceptions import NotFoundError, PartialFailureError, StaleAggregateError
from multiorder.domain.value_objects import Actor
from multiorder.infrastructure.database import SqlAlchemySubOrderStore
from multiorder.infrastructure.database.repositories import next_counter_value


async def reload(uow_factory, order):
    async with uow_factory() as uow:
        stored = await uow.multi_orders.get(order.id)
        sub_orders = await uow.sub_orders.get_many(order.sub_order_ids)
    return stored, sub_orders


@pytest.mark.asyncio
async def test_full_lifecycle(facade, uow_factory, notifications, clock, make_request, restaurant_update):
    order = await facade.create_multi_order(make_request(3))
    sub_a, sub_b, sub_c = order.sub_order_ids

    stored, sub_orders = await reload(uow_factory, order)
    assert str(stored.order_number) == "MO-2024-0001"
    assert [s.order_number for s in sub_orders] == ["KS-2024-0001", "KS-2024-0002", "KS-2024-0003"]
    assert stored.pricing.total == Decimal("66.00")

    await restaurant_update(sub_a, SubOrderStatus.CONFIRMED)
    await restaurant_update(sub_b, SubOrderStatus.PREPARING)
    order = await restaurant_update(sub_c, SubOrderStatus.READY)
    assert order.status == MultiOrderStatus.PARTIALLY_READY

    await facade.assign_rider(order.id, "rider-1")
    order = await facade.mark_sub_order_picked_up(order.id, sub_c, "rider-1")
    assert order.status == MultiOrderStatus.PICKING_UP

    for sub_order_id in (sub_a, sub_b):
        await restaurant_update(sub_order_id, SubOrderStatus.READY)
        order = await facade.mark_sub_order_picked_up(order.id, sub_order_id, "rider-1")
    assert order.status == MultiOrderStatus.PICKED_UP

    clock.advance(minutes=20)
    await facade.update_delivery_status(order.id, "rider-1", "on_the_way")
    await facade.update_delivery_status(order.id, "rider-1", "delivered")

    stored, sub_orders = await reload(uow_factory, order)
    assert stored.status == MultiOrderStatus.DELIVERED
    assert stored.actual_delivery_time == clock.now
    assert all(s.status == SubOrderStatus.DELIVERED for s in sub_orders)
    assert all(s.payment_status == PaymentStatus.PAID for s in sub_orders)
    assert all(s.delivery_rider_id == "rider-1" for s in sub_orders)
    assert [h.status for h in sub_orders[0].status_history][-3:] == ["picked_up", "on_the_way", "delivered"]

    async with uow_factory() as uow:
        rider = await uow.riders.get("rider-1")
    assert rider.completed_orders == 3
    assert rider.current_assignment is None
    assert notifications.get_notifications("cust-1")[-1].title == "Order Delivered!"


@pytest.mark.asyncio
async def test_version_is_checked_on_save(facade, uow_factory, make_request):
    order = await facade.create_multi_order(make_request(1))

    async with uow_factory() as uow:
        stale = await uow.multi_orders.get(order.id)

    await facade.assign_rider(order.id, "rider-1")

    async with uow_factory() as uow:
        with pytest.raises(StaleAggregateError):
            await uow.multi_orders.save(stale)
    assert stale.version == 1

    stored, _ = await reload(uow_factory, order)
    assert stored.version == 2
    assert stored.primary_rider_id == "rider-1"


@pytest.mark.asyncio
async def test_cascade_failure_rolls_back_transaction(facade, uow_factory, make_request, monkeypatch):
    order = await facade.create_multi_order(make_request(2))
    original = SqlAlchemySubOrderStore.update_status
    calls = {"count": 0}

    async def flaky(self, sub_order_id, status, at, note=None, **extra):
        calls["count"] += 1
        if calls["count"] == 2:
            raise RuntimeError("database connection lost")
        return await original(self, sub_order_id, status, at, note, **extra)

    monkeypatch.setattr(SqlAlchemySubOrderStore, "update_status", flaky)

    with pytest.raises(PartialFailureError):
        await facade.cancel(order.id, "cust-1", "customer")

    stored, sub_orders = await reload(uow_factory, order)
    assert stored.status == MultiOrderStatus.PENDING
    assert stored.version == 1
    assert all(s.status == SubOrderStatus.PENDING for s in sub_orders)


@pytest.mark.asyncio
async def test_counters_survive_across_units_of_work(uow_factory):
    async with uow_factory() as uow:
        first = await next_counter_value(uow.session, "multi_orders")
        second = await next_counter_value(uow.session, "multi_orders")
        other = await next_counter_value(uow.session, "sub_orders")
        await uow.commit()
    async with uow_factory() as uow:
        third = await next_counter_value(uow.session, "multi_orders")

    assert (first, second, third) == (1, 2, 3)
    assert other == 1


@pytest.mark.asyncio
async def test_unknown_records(uow_factory, clock):
    async with uow_factory() as uow:
        assert await uow.multi_orders.get("missing") is None
        assert await uow.riders.find_available("nobody") is None
        with pytest.raises(NotFoundError):
            await uow.sub_orders.update_status("missing", SubOrderStatus.READY, clock())
        with pytest.raises(NotFoundError):
            await uow.riders.set_current_assignment("nobody", "MO-2024-0001")
        with pytest.raises(NotFoundError):
            await uow.sub_orders.set_delivery_rider(["missing"], "rider-1")


@pytest.mark.asyncio
async def test_queries_against_database(facade, uow_factory, clock, make_request, advance_all):
    older = await facade.create_multi_order(make_request(2))
    await advance_all(older, SubOrderStatus.CONFIRMED)
    clock.advance(minutes=5)
    newer = await facade.create_multi_order(make_request(1))
    await advance_all(newer, SubOrderStatus.PREPARING)
    await facade.assign_rider(newer.id, "rider-2")

    queries = MultiOrderQueryService(uow_factory)
    listing = await queries.list_customer_orders("cust-1", status_filter="active")
    available = await queries.list_available_for_riders()
    rider_orders = await queries.list_rider_orders("rider-2", "active")
    tracking = await queries.get_tracking(older.id, Actor(id="owner-2", role="restaurant", restaurant_ids=["rest-2"]))

    assert [o.multi_order_id for o in listing.orders] == [newer.id, older.id]
    assert [o.multi_order_id for o in available] == [older.id]
    assert [o.multi_order_id for o in rider_orders] == [newer.id]
    assert tracking.overall_status == MultiOrderStatus.ALL_CONFIRMED
    assert [s.status for s in tracking.sub_orders] == [SubOrderStatus.CONFIRMED] * 2
