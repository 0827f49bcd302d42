"""Pytest configuration and fixtures for the SQLAlchemy integration tests."""
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from multiorder.application.services import OrchestrationFacade
from multiorder.domain.entities import Rider
from multiorder.infrastructure.database import (
    Base,
    create_session_factory,
    create_uow_factory,
    init_database,
)


# Use in-memory SQLite for testing
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture(scope="function")
async def test_engine():
    """Create test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )

    await init_database(engine)

    yield engine

    # Cleanup
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def uow_factory(test_engine):
    """Unit-of-work factory with two online riders seeded."""
    factory = create_uow_factory(create_session_factory(test_engine))
    async with factory() as uow:
        await uow.riders.add(Rider(id="rider-1", name="Ram", is_online=True))
        await uow.riders.add(Rider(id="rider-2", name="Sita", is_online=True))
        await uow.commit()
    return factory


@pytest.fixture
def facade(uow_factory, notifications, emitter, settings, clock) -> OrchestrationFacade:
    return OrchestrationFacade(
        uow_factory=uow_factory,
        notifications=notifications,
        emitter=emitter,
        settings=settings,
        clock=clock,
    )


@pytest.fixture
def restaurant_update(uow_factory, facade, clock):
    """Commit a restaurant-side status change in the database, then report it."""

    async def _update(sub_order_id, status):
        async with uow_factory() as uow:
            sub_order = await uow.sub_orders.update_status(sub_order_id, status, clock())
            await uow.commit()
        return await facade.on_sub_order_status_changed(sub_order)

    return _update
