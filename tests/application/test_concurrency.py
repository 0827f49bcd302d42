"""Concurrency tests: per-aggregate lock and optimistic version retries."""
import asyncio
import logging

import pytest

from multiorder.application.services import AggregateLockRegistry, OrchestrationFacade
from multiorder.domain.enums import MultiOrderStatus, SubOrderStatus
from multiorder.domain.exceptions import ConflictError, StaleAggregateError
from multiorder.settings import OrchestrationSettings


class InterferingUnitOfWorkFactory:
    """
    Unit-of-work factory that lets a competing writer commit right after
    the facade has loaded the multi-order.

    ``interfere`` receives the store and the multi-order id and performs the
    competing commit. ``times`` bounds how many loads get interfered with.
    """

    def __init__(self, store, interfere, times=1):
        self.store = store
        self.interfere = interfere
        self.remaining = times

    def __call__(self):
        uow = self.store.unit_of_work()
        if self.remaining > 0:
            self.remaining -= 1
            original_get = uow.multi_orders.get

            async def get_then_interfere(multi_order_id):
                order = await original_get(multi_order_id)
                await self.interfere(self.store, multi_order_id)
                return order

            uow.multi_orders.get = get_then_interfere
        return uow


async def touch(store, multi_order_id):
    """Competing writer that only bumps the version."""
    async with store.unit_of_work() as uow:
        order = await uow.multi_orders.get(multi_order_id)
        await uow.multi_orders.save(order)
        await uow.commit()


async def commit_sub_order_status(store, sub_order_id, status, at):
    async with store.unit_of_work() as uow:
        sub_order = await uow.sub_orders.update_status(sub_order_id, status, at)
        await uow.commit()
    return sub_order


@pytest.mark.asyncio
async def test_lost_update_is_retried(store, notifications, emitter, settings, clock, facade, make_request, caplog):
    order = await facade.create_multi_order(make_request(2))
    sub_1, sub_2 = order.sub_order_ids

    ready_1 = await commit_sub_order_status(store, sub_1, SubOrderStatus.READY, clock())
    await commit_sub_order_status(store, sub_2, SubOrderStatus.READY, clock())

    async def sibling_handler(store, multi_order_id):
        # Another worker folds sub-order 2 into the aggregate first
        async with store.unit_of_work() as uow:
            competing = await uow.multi_orders.get(multi_order_id)
            competing.mark_sub_order_ready(sub_2, clock())
            competing.apply_aggregated_status([SubOrderStatus.READY, SubOrderStatus.READY], clock())
            await uow.multi_orders.save(competing)
            await uow.commit()

    racing = OrchestrationFacade(
        InterferingUnitOfWorkFactory(store, sibling_handler),
        notifications, emitter, settings, clock,
    )
    with caplog.at_level(logging.WARNING):
        result = await racing.on_sub_order_status_changed(ready_1)

    assert result.status == MultiOrderStatus.ALL_READY
    assert result.pickup_status.entry(sub_1).is_ready
    assert result.pickup_status.entry(sub_2).is_ready
    assert "(attempt 1/4)" in caplog.text

    async with store.unit_of_work() as uow:
        stored = await uow.multi_orders.get(order.id)
    assert stored.version == 3
    assert stored.pickup_status.all_ready()


@pytest.mark.asyncio
async def test_retries_exhausted_raise_conflict(store, notifications, emitter, clock, facade, make_request):
    order = await facade.create_multi_order(make_request(2))
    settings = OrchestrationSettings(max_concurrency_retries=1)
    racing = OrchestrationFacade(
        InterferingUnitOfWorkFactory(store, touch, times=10),
        notifications, emitter, settings, clock,
    )

    with pytest.raises(ConflictError, match="being modified concurrently") as exc_info:
        await racing.assign_rider(order.id, "rider-1")

    assert not isinstance(exc_info.value, StaleAggregateError)
    assert store.riders["rider-1"].current_assignment is None
    async with store.unit_of_work() as uow:
        assert (await uow.multi_orders.get(order.id)).primary_rider_id is None


@pytest.mark.asyncio
async def test_read_only_operation_does_not_bump_version(store, facade, make_request, restaurant_update):
    order = await facade.create_multi_order(make_request(2))
    await restaurant_update(order.sub_order_ids[0], SubOrderStatus.PENDING)

    async with store.unit_of_work() as uow:
        assert (await uow.multi_orders.get(order.id)).version == 1


@pytest.mark.asyncio
async def test_stale_save_inside_one_unit_of_work(store, facade, make_request):
    order = await facade.create_multi_order(make_request(1))

    first = store.unit_of_work()
    second = store.unit_of_work()
    mine = await first.multi_orders.get(order.id)
    theirs = await second.multi_orders.get(order.id)

    await first.multi_orders.save(mine)
    await second.multi_orders.save(theirs)
    await second.commit()

    with pytest.raises(StaleAggregateError):
        await first.commit()
    async with store.unit_of_work() as uow:
        assert (await uow.multi_orders.get(order.id)).version == 2


class TestAggregateLockRegistry:
    @pytest.mark.asyncio
    async def test_serializes_same_id(self):
        registry = AggregateLockRegistry()
        trace = []

        async def worker(name):
            async with registry.hold("mo-1"):
                trace.append(f"{name}-in")
                await asyncio.sleep(0)
                trace.append(f"{name}-out")

        await asyncio.gather(worker("a"), worker("b"))

        assert trace == ["a-in", "a-out", "b-in", "b-out"]

    @pytest.mark.asyncio
    async def test_different_ids_do_not_contend(self):
        registry = AggregateLockRegistry()
        async with registry.hold("mo-1"):
            assert registry.is_locked("mo-1")
            assert not registry.is_locked("mo-2")
            async with registry.hold("mo-2"):
                assert len(registry) == 2

    @pytest.mark.asyncio
    async def test_entries_are_dropped_after_use(self):
        registry = AggregateLockRegistry()
        async with registry.hold("mo-1"):
            pass
        assert len(registry) == 0

    @pytest.mark.asyncio
    async def test_entry_dropped_after_error(self):
        registry = AggregateLockRegistry()
        with pytest.raises(RuntimeError):
            async with registry.hold("mo-1"):
                raise RuntimeError("boom")
        assert len(registry) == 0
        assert not registry.is_locked("mo-1")


@pytest.mark.asyncio
async def test_facades_sharing_a_registry_wait_for_each_other(store, notifications, emitter, settings, clock, make_request):
    registry = AggregateLockRegistry()
    first = OrchestrationFacade(store.unit_of_work, notifications, emitter, settings, clock, lock_registry=registry)
    second = OrchestrationFacade(store.unit_of_work, notifications, emitter, settings, clock, lock_registry=registry)
    order = await first.create_multi_order(make_request(2))

    async with registry.hold(order.id):
        assigning = asyncio.create_task(second.assign_rider(order.id, "rider-1"))
        for _ in range(3):
            await asyncio.sleep(0)

        assert not assigning.done()
        assert store.multi_orders[order.id]["version"] == 1
        assert store.riders["rider-1"].current_assignment is None

    result = await assigning
    assert result.primary_rider_id == "rider-1"
    assert store.multi_orders[order.id]["version"] == 2
    assert len(registry) == 0
