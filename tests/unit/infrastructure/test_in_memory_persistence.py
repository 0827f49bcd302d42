"""Tests for the in-memory unit of work."""
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from multiorder.domain.entities import MultiOrder, SubOrder
from multiorder.domain.enums import PaymentStatus, SubOrderStatus
from multiorder.domain.exceptions import NotFoundError, StaleAggregateError
from multiorder.domain.value_objects import OrderNumber, Pricing


NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def sub_order(sub_order_id, restaurant_id, multi_order_id="mo-1"):
    return SubOrder(
        id=sub_order_id,
        order_number=f"KS-2024-000{sub_order_id[-1]}",
        restaurant_id=restaurant_id,
        customer_id="cust-1",
        pricing=Pricing(subtotal=Decimal("10")),
        created_at=NOW,
        multi_order_id=multi_order_id,
    )


async def seed(store):
    subs = [sub_order("sub-1", "rest-1"), sub_order("sub-2", "rest-2")]
    order = MultiOrder.create(OrderNumber("MO-2024-0001"), "cust-1", subs, NOW, multi_order_id="mo-1")
    async with store.unit_of_work() as uow:
        await uow.sub_orders.add_many(subs)
        await uow.multi_orders.add(order)
        await uow.commit()
    return order


@pytest.mark.asyncio
async def test_writes_are_invisible_until_commit(store):
    await seed(store)

    async with store.unit_of_work() as uow:
        await uow.sub_orders.update_status("sub-1", SubOrderStatus.CONFIRMED, NOW, note="Accepted")
        await uow.riders.increment_completed_orders("rider-1", 2)
        assert (await uow.sub_orders.get("sub-1")).status == SubOrderStatus.CONFIRMED
        assert (await uow.riders.get("rider-1")).completed_orders == 2

        assert store.sub_orders["sub-1"].status == SubOrderStatus.PENDING
        assert store.riders["rider-1"].completed_orders == 0
        await uow.commit()

    assert store.sub_orders["sub-1"].status == SubOrderStatus.CONFIRMED
    assert store.sub_orders["sub-1"].status_history[-1].note == "Accepted"
    assert store.riders["rider-1"].completed_orders == 2


@pytest.mark.asyncio
async def test_leaving_without_commit_discards(store):
    await seed(store)

    async with store.unit_of_work() as uow:
        await uow.sub_orders.set_delivery_rider(["sub-1", "sub-2"], "rider-1")
        await uow.riders.set_current_assignment("rider-1", "MO-2024-0001")

    assert store.sub_orders["sub-1"].delivery_rider_id is None
    assert store.riders["rider-1"].current_assignment is None


@pytest.mark.asyncio
async def test_loaded_aggregates_do_not_alias_store(store):
    await seed(store)

    async with store.unit_of_work() as uow:
        order = await uow.multi_orders.get("mo-1")
        order.primary_rider_id = "rider-1"

    async with store.unit_of_work() as uow:
        assert (await uow.multi_orders.get("mo-1")).primary_rider_id is None


@pytest.mark.asyncio
async def test_concurrent_commit_is_detected(store):
    await seed(store)
    first, second = store.unit_of_work(), store.unit_of_work()

    mine = await first.multi_orders.get("mo-1")
    theirs = await second.multi_orders.get("mo-1")
    await first.multi_orders.save(mine)
    await first.sub_orders.update_status("sub-1", SubOrderStatus.READY, NOW)
    await second.multi_orders.save(theirs)
    await second.commit()

    with pytest.raises(StaleAggregateError):
        await first.commit()
    assert store.sub_orders["sub-1"].status == SubOrderStatus.PENDING
    assert store.multi_orders["mo-1"]["version"] == 2


@pytest.mark.asyncio
async def test_save_of_outdated_copy_fails_fast(store):
    await seed(store)
    async with store.unit_of_work() as uow:
        order = await uow.multi_orders.get("mo-1")
        await uow.multi_orders.save(order)
        order.version = 1
        with pytest.raises(StaleAggregateError):
            await uow.multi_orders.save(order)


@pytest.mark.asyncio
async def test_sub_order_store_validation(store):
    await seed(store)
    async with store.unit_of_work() as uow:
        with pytest.raises(NotFoundError):
            await uow.sub_orders.update_status("sub-9", SubOrderStatus.READY, NOW)
        with pytest.raises(ValueError, match="Unsupported sub-order fields"):
            await uow.sub_orders.update_status("sub-1", SubOrderStatus.READY, NOW, rating=5)
        with pytest.raises(NotFoundError):
            await uow.riders.increment_completed_orders("nobody", 1)

        updated = await uow.sub_orders.update_status(
            "sub-1", "delivered", NOW, payment_status=PaymentStatus.PAID, actual_delivery_time=NOW
        )
        assert updated.payment_status == PaymentStatus.PAID
        assert [s.id for s in await uow.sub_orders.list_by_multi_order("mo-1")] == ["sub-1", "sub-2"]


@pytest.mark.asyncio
async def test_number_sequences(store):
    async with store.unit_of_work() as uow:
        assert await uow.sub_orders.next_order_number(2024) == "KS-2024-0001"
        assert await uow.sub_orders.next_order_number(2024) == "KS-2024-0002"
        assert await uow.multi_orders.next_sequence() == 1


def test_clear_resets_everything(store):
    store.allocate_multi_order_sequence()
    store.clear()
    assert store.riders == {}
    assert store.allocate_multi_order_sequence() == 1
