"""
Per-aggregate serialization.

Every mutating orchestration operation holds the lock of the multi-order it
touches for its whole read-recompute-write cycle. Unrelated multi-orders
never contend.
"""
import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict


class AggregateLockRegistry:
    """
    One asyncio.Lock per multi-order id.

    Entries are dropped once nobody holds or waits for them, so the registry
    does not grow with the number of orders ever seen.
    """

    def __init__(self) -> None:
        self._locks: Dict[str, asyncio.Lock] = {}
        self._users: Dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, aggregate_id: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(aggregate_id, asyncio.Lock())
        self._users[aggregate_id] = self._users.get(aggregate_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[aggregate_id] -= 1
            if self._users[aggregate_id] == 0:
                del self._users[aggregate_id]
                del self._locks[aggregate_id]

    def is_locked(self, aggregate_id: str) -> bool:
        lock = self._locks.get(aggregate_id)
        return lock is not None and lock.locked()

    def __len__(self) -> int:
        return len(self._locks)
