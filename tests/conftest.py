"""Shared fixtures: in-memory persistence, recording collaborators, a controllable clock."""
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from multiorder.application.dtos import CreateMultiOrderRequest, DeliveryAddressDTO, RestaurantGroupDTO
from multiorder.application.services import OrchestrationFacade
from multiorder.domain.entities import Rider
from multiorder.domain.enums import ActorRole, SubOrderStatus
from multiorder.infrastructure.adapters.notifications.mock_notification_sink import MockNotificationSink
from multiorder.infrastructure.adapters.realtime.in_memory_emitter import InMemoryEventEmitter
from multiorder.infrastructure.persistence import InMemoryDataStore
from multiorder.settings import OrchestrationSettings


START = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    """Clock the test moves by hand."""

    def __init__(self, start: datetime = START) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> InMemoryDataStore:
    store = InMemoryDataStore()
    store.add_rider(Rider(id="rider-1", name="Ram", is_online=True))
    store.add_rider(Rider(id="rider-2", name="Sita", is_online=True))
    store.add_rider(Rider(id="rider-offline", name="Hari", is_online=False))
    store.add_rider(Rider(id="not-a-rider", name="Gita", role=ActorRole.CUSTOMER, is_online=True))
    return store


@pytest.fixture
def notifications() -> MockNotificationSink:
    return MockNotificationSink()


@pytest.fixture
def emitter() -> InMemoryEventEmitter:
    return InMemoryEventEmitter()


@pytest.fixture
def settings() -> OrchestrationSettings:
    return OrchestrationSettings()


@pytest.fixture
def facade(store, notifications, emitter, settings, clock) -> OrchestrationFacade:
    return OrchestrationFacade(
        uow_factory=store.unit_of_work,
        notifications=notifications,
        emitter=emitter,
        settings=settings,
        clock=clock,
    )


@pytest.fixture
def make_request():
    """Build a checkout request for ``count`` restaurants."""

    def _make(count: int = 2, customer_id: str = "cust-1", **kwargs) -> CreateMultiOrderRequest:
        restaurants = [
            RestaurantGroupDTO(
                restaurant_id=f"rest-{i}",
                restaurant_name=f"Restaurant {i}",
                subtotal=Decimal("10.00") * i,
                delivery_fee=Decimal("2.00"),
            )
            for i in range(1, count + 1)
        ]
        kwargs.setdefault(
            "delivery_address",
            DeliveryAddressDTO(address_line1="Durbar Marg 1", city="Kathmandu", label="Home"),
        )
        return CreateMultiOrderRequest(customer_id=customer_id, restaurants=restaurants, **kwargs)

    return _make


@pytest.fixture
def restaurant_update(store, facade, clock):
    """
    Commit a restaurant-side status change, then report it to the facade.

    Returns the facade's result (the updated multi-order).
    """

    async def _update(sub_order_id: str, status: SubOrderStatus):
        async with store.unit_of_work() as uow:
            sub_order = await uow.sub_orders.update_status(sub_order_id, status, clock())
            await uow.commit()
        return await facade.on_sub_order_status_changed(sub_order)

    return _update


@pytest.fixture
def advance_all(restaurant_update):
    """Move every sub-order of an order to ``status`` one by one."""

    async def _advance(order, status: SubOrderStatus):
        result = order
        for sub_order_id in order.sub_order_ids:
            result = await restaurant_update(sub_order_id, status)
        return result

    return _advance
