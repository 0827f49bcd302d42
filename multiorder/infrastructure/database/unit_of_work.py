"""
Unit of Work Pattern Implementation.

Manages the session lifecycle and the transaction shared by the multi-order
repository, the sub-order store and the rider directory.
"""
from typing import Callable, Optional
import logging

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from multiorder.application.interfaces import UnitOfWork
from multiorder.infrastructure.database.repositories import (
    SqlAlchemyMultiOrderRepository,
    SqlAlchemyRiderDirectory,
    SqlAlchemySubOrderStore,
)


logger = logging.getLogger(__name__)


class SqlAlchemyUnitOfWork(UnitOfWork):
    """
    Unit of Work over one AsyncSession.

    Usage:
        async with SqlAlchemyUnitOfWork(session_factory) as uow:
            order = await uow.multi_orders.get(order_id)
            ...
            await uow.commit()
    """

    def __init__(self, session_factory: async_sessionmaker, sub_order_prefix: str = "KS") -> None:
        self._session_factory = session_factory
        self._sub_order_prefix = sub_order_prefix
        self._session: Optional[AsyncSession] = None

    async def __aenter__(self) -> "SqlAlchemyUnitOfWork":
        """Start transaction scope."""
        self._session = self._session_factory()
        self.multi_orders = SqlAlchemyMultiOrderRepository(self._session)
        self.sub_orders = SqlAlchemySubOrderStore(self._session, self._sub_order_prefix)
        self.riders = SqlAlchemyRiderDirectory(self._session)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Roll back anything uncommitted and close the session."""
        if exc_type is not None:
            logger.error(f"Transaction failed: {exc_val}")
        try:
            await self.rollback()
        finally:
            await self._session.close()

    @property
    def session(self) -> AsyncSession:
        if self._session is None:
            raise RuntimeError("UnitOfWork not initialized. Use async context manager.")
        return self._session

    async def commit(self) -> None:
        """Commit all pending changes."""
        try:
            await self.session.commit()
            logger.debug("✅ Transaction committed")
        except Exception as e:
            logger.error(f"❌ Commit failed: {e}")
            await self.rollback()
            raise

    async def rollback(self) -> None:
        """Rollback all pending changes (no-op after commit)."""
        await self.session.rollback()


def create_uow_factory(
    session_factory: async_sessionmaker,
    sub_order_prefix: str = "KS",
) -> Callable[[], SqlAlchemyUnitOfWork]:
    """
    Unit-of-work factory for OrchestrationFacade and MultiOrderQueryService.

    Args:
        session_factory: SQLAlchemy async session factory
        sub_order_prefix: Prefix for generated sub-order numbers
    """
    def factory() -> SqlAlchemyUnitOfWork:
        return SqlAlchemyUnitOfWork(session_factory, sub_order_prefix)

    return factory
