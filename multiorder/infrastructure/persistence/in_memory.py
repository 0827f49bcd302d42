"""
In-memory persistence adapters.

This is an in-memory implementation of the repository, stores and unit of
work for testing and demos. Each unit of work stages its writes and applies
them to the shared InMemoryDataStore in one step on commit, after checking
multi-order versions, so concurrent units of work behave like transactions.
"""
from collections import defaultdict
from copy import deepcopy
from datetime import datetime
from typing import Dict, Iterable, List, Optional
import logging

from multiorder.application.interfaces import UnitOfWork
from multiorder.domain.entities import MultiOrder, Rider, StatusHistoryEntry, SubOrder
from multiorder.domain.enums import MultiOrderStatus, SubOrderStatus
from multiorder.domain.exceptions import NotFoundError, StaleAggregateError
from multiorder.domain.repositories import MultiOrderRepository, RiderDirectory, SubOrderStore
from multiorder.domain.value_objects import OrderNumber


logger = logging.getLogger(__name__)

_SUB_ORDER_FIELDS = frozenset({
    "payment_status", "delivery_rider_id", "actual_delivery_time", "restaurant_name",
})


class InMemoryDataStore:
    """
    Committed state shared by every in-memory unit of work.

    Multi-orders are kept as snapshot dicts so no caller can alias them.
    """

    def __init__(self, sub_order_prefix: str = "KS"):
        self.multi_orders: Dict[str, dict] = {}
        self.sub_orders: Dict[str, SubOrder] = {}
        self.riders: Dict[str, Rider] = {}
        self.sub_order_prefix = sub_order_prefix
        self._multi_order_sequence = 0
        self._sub_order_sequence = 0
        logger.info("InMemoryDataStore initialized (in-memory storage)")

    def allocate_multi_order_sequence(self) -> int:
        self._multi_order_sequence += 1
        return self._multi_order_sequence

    def allocate_sub_order_sequence(self) -> int:
        self._sub_order_sequence += 1
        return self._sub_order_sequence

    def add_rider(self, rider: Rider) -> None:
        """Seed a rider account (demo/testing)."""
        self.riders[rider.id] = deepcopy(rider)

    def unit_of_work(self) -> "InMemoryUnitOfWork":
        """Unit-of-work factory bound to this store."""
        return InMemoryUnitOfWork(self)

    def clear(self) -> None:
        """Drop everything (demo/testing)."""
        self.multi_orders.clear()
        self.sub_orders.clear()
        self.riders.clear()
        self._multi_order_sequence = 0
        self._sub_order_sequence = 0


class InMemoryMultiOrderRepository(MultiOrderRepository):
    """MultiOrderRepository over an InMemoryDataStore with staged writes."""

    def __init__(self, store: InMemoryDataStore):
        self._store = store
        self._staged: Dict[str, dict] = {}
        self._new_ids: set = set()
        # Version each saved aggregate had when this unit of work first saw it
        self._expected_versions: Dict[str, int] = {}

    def _current(self, multi_order_id: str) -> Optional[dict]:
        if multi_order_id in self._staged:
            return self._staged[multi_order_id]
        return self._store.multi_orders.get(multi_order_id)

    async def get(self, multi_order_id: str) -> Optional[MultiOrder]:
        data = self._current(multi_order_id)
        if data is None:
            return None
        return MultiOrder.from_snapshot_dict(data)

    async def add(self, multi_order: MultiOrder) -> None:
        if self._current(multi_order.id) is not None:
            raise ValueError(f"Multi-order {multi_order.id} already exists")
        multi_order.version = 1
        self._staged[multi_order.id] = multi_order.to_snapshot_dict()
        self._new_ids.add(multi_order.id)

    async def save(self, multi_order: MultiOrder) -> None:
        current = self._current(multi_order.id)
        if current is None:
            raise NotFoundError(f"Multi-order {multi_order.id} not found")
        if current["version"] != multi_order.version:
            raise StaleAggregateError(multi_order.id, multi_order.version)
        if multi_order.id not in self._new_ids:
            self._expected_versions.setdefault(multi_order.id, current["version"])
        multi_order.version += 1
        self._staged[multi_order.id] = multi_order.to_snapshot_dict()

    async def next_sequence(self) -> int:
        return self._store.allocate_multi_order_sequence()

    def _visible(self) -> List[dict]:
        merged = dict(self._store.multi_orders)
        merged.update(self._staged)
        return list(merged.values())

    def _filter(self, rows, statuses=None, exclude_statuses=None) -> List[dict]:
        wanted = {MultiOrderStatus(s).value for s in statuses} if statuses is not None else None
        unwanted = {MultiOrderStatus(s).value for s in exclude_statuses or ()}
        return [
            r for r in rows
            if (wanted is None or r["status"] in wanted) and r["status"] not in unwanted
        ]

    async def list_by_customer(self, customer_id, statuses=None, exclude_statuses=None, limit=10, offset=0):
        rows = [r for r in self._visible() if r["customer_id"] == customer_id]
        rows = self._filter(rows, statuses, exclude_statuses)
        rows.sort(key=lambda r: r["created_at"], reverse=True)
        return [MultiOrder.from_snapshot_dict(r) for r in rows[offset:offset + limit]]

    async def count_by_customer(self, customer_id, statuses=None, exclude_statuses=None):
        rows = [r for r in self._visible() if r["customer_id"] == customer_id]
        return len(self._filter(rows, statuses, exclude_statuses))

    async def list_by_rider(self, rider_id, statuses=None):
        rows = [r for r in self._visible() if r["primary_rider_id"] == rider_id]
        rows = self._filter(rows, statuses)
        rows.sort(key=lambda r: r["created_at"], reverse=True)
        return [MultiOrder.from_snapshot_dict(r) for r in rows]

    async def list_unassigned(self, statuses):
        rows = [r for r in self._visible() if not r["primary_rider_id"]]
        rows = self._filter(rows, statuses)
        rows.sort(key=lambda r: r["created_at"])
        return [MultiOrder.from_snapshot_dict(r) for r in rows]

    def check_conflicts(self) -> None:
        """Raise StaleAggregateError if anything staged was committed elsewhere."""
        for multi_order_id, expected in self._expected_versions.items():
            committed = self._store.multi_orders.get(multi_order_id)
            if committed is None or committed["version"] != expected:
                raise StaleAggregateError(multi_order_id, expected)
        for multi_order_id in self._new_ids:
            if multi_order_id in self._store.multi_orders:
                raise StaleAggregateError(multi_order_id, 0)
            number = self._staged[multi_order_id]["order_number"]
            if any(r["order_number"] == number for r in self._store.multi_orders.values()):
                raise StaleAggregateError(multi_order_id, 0)

    def apply(self) -> None:
        self._store.multi_orders.update(self._staged)
        self.discard()

    def discard(self) -> None:
        self._staged.clear()
        self._new_ids.clear()
        self._expected_versions.clear()


class InMemorySubOrderStore(SubOrderStore):
    """
    SubOrderStore over an InMemoryDataStore.

    Changes are staged per field (plus appended history) and applied to the
    committed record on commit.
    """

    def __init__(self, store: InMemoryDataStore):
        self._store = store
        self._new: Dict[str, SubOrder] = {}
        self._fields: Dict[str, dict] = defaultdict(dict)
        self._history: Dict[str, List[StatusHistoryEntry]] = defaultdict(list)

    def _materialise(self, sub_order_id: str) -> Optional[SubOrder]:
        base = self._new.get(sub_order_id) or self._store.sub_orders.get(sub_order_id)
        if base is None:
            return None
        sub_order = deepcopy(base)
        for name, value in self._fields.get(sub_order_id, {}).items():
            setattr(sub_order, name, value)
        sub_order.status_history.extend(self._history.get(sub_order_id, []))
        return sub_order

    async def get(self, sub_order_id: str) -> Optional[SubOrder]:
        return self._materialise(sub_order_id)

    async def get_many(self, sub_order_ids: Iterable[str]) -> List[SubOrder]:
        found = (self._materialise(i) for i in sub_order_ids)
        return [s for s in found if s is not None]

    async def add_many(self, sub_orders: Iterable[SubOrder]) -> None:
        for sub_order in sub_orders:
            if self._materialise(sub_order.id) is not None:
                raise ValueError(f"Sub-order {sub_order.id} already exists")
            self._new[sub_order.id] = deepcopy(sub_order)

    async def update_status(
        self,
        sub_order_id: str,
        status: SubOrderStatus,
        at: datetime,
        note: Optional[str] = None,
        **extra_fields,
    ) -> SubOrder:
        if self._materialise(sub_order_id) is None:
            raise NotFoundError(f"Sub-order {sub_order_id} not found")
        unknown = set(extra_fields) - _SUB_ORDER_FIELDS
        if unknown:
            raise ValueError(f"Unsupported sub-order fields: {sorted(unknown)}")
        status = SubOrderStatus(status)
        self._fields[sub_order_id].update(extra_fields, status=status)
        self._history[sub_order_id].append(StatusHistoryEntry(status.value, at, note))
        return self._materialise(sub_order_id)

    async def set_delivery_rider(self, sub_order_ids: Iterable[str], rider_id: Optional[str]) -> None:
        for sub_order_id in sub_order_ids:
            if self._materialise(sub_order_id) is None:
                raise NotFoundError(f"Sub-order {sub_order_id} not found")
            self._fields[sub_order_id]["delivery_rider_id"] = rider_id

    async def list_by_multi_order(self, multi_order_id: str) -> List[SubOrder]:
        ids = list(self._store.sub_orders) + [i for i in self._new if i not in self._store.sub_orders]
        found = (self._materialise(i) for i in ids)
        return [s for s in found if s is not None and s.multi_order_id == multi_order_id]

    async def next_order_number(self, year: int) -> str:
        sequence = self._store.allocate_sub_order_sequence()
        return str(OrderNumber.generate(self._store.sub_order_prefix, year, sequence))

    def apply(self) -> None:
        for sub_order_id, sub_order in self._new.items():
            self._store.sub_orders[sub_order_id] = sub_order
        for sub_order_id, fields in self._fields.items():
            target = self._store.sub_orders[sub_order_id]
            for name, value in fields.items():
                setattr(target, name, value)
        for sub_order_id, entries in self._history.items():
            self._store.sub_orders[sub_order_id].status_history.extend(entries)
        self.discard()

    def discard(self) -> None:
        self._new.clear()
        self._fields.clear()
        self._history.clear()


class InMemoryRiderDirectory(RiderDirectory):
    """RiderDirectory over an InMemoryDataStore; counters applied as deltas."""

    _UNSET = object()

    def __init__(self, store: InMemoryDataStore):
        self._store = store
        self._assignments: Dict[str, Optional[str]] = {}
        self._increments: Dict[str, int] = defaultdict(int)

    def _materialise(self, rider_id: str) -> Optional[Rider]:
        base = self._store.riders.get(rider_id)
        if base is None:
            return None
        rider = deepcopy(base)
        assignment = self._assignments.get(rider_id, self._UNSET)
        if assignment is not self._UNSET:
            rider.current_assignment = assignment
        rider.completed_orders += self._increments.get(rider_id, 0)
        return rider

    async def get(self, rider_id: str) -> Optional[Rider]:
        return self._materialise(rider_id)

    async def find_available(self, rider_id: str) -> Optional[Rider]:
        rider = self._materialise(rider_id)
        if rider is None or not rider.is_available:
            return None
        return rider

    async def set_current_assignment(self, rider_id: str, label: Optional[str]) -> None:
        if rider_id not in self._store.riders:
            raise NotFoundError(f"Rider {rider_id} not found")
        self._assignments[rider_id] = label

    async def increment_completed_orders(self, rider_id: str, count: int) -> None:
        if rider_id not in self._store.riders:
            raise NotFoundError(f"Rider {rider_id} not found")
        self._increments[rider_id] += count

    def apply(self) -> None:
        for rider_id, label in self._assignments.items():
            self._store.riders[rider_id].current_assignment = label
        for rider_id, count in self._increments.items():
            self._store.riders[rider_id].completed_orders += count
        self.discard()

    def discard(self) -> None:
        self._assignments.clear()
        self._increments.clear()


class InMemoryUnitOfWork(UnitOfWork):
    """
    Unit of work over an InMemoryDataStore.

    Commit verifies every saved multi-order still has the version it was
    loaded with, then applies all staged writes without yielding to the
    event loop.
    """

    def __init__(self, store: InMemoryDataStore):
        self._store = store
        self.multi_orders = InMemoryMultiOrderRepository(store)
        self.sub_orders = InMemorySubOrderStore(store)
        self.riders = InMemoryRiderDirectory(store)

    async def commit(self) -> None:
        try:
            self.multi_orders.check_conflicts()
        except StaleAggregateError:
            await self.rollback()
            raise
        self.multi_orders.apply()
        self.sub_orders.apply()
        self.riders.apply()
        logger.debug("In-memory unit of work committed")

    async def rollback(self) -> None:
        self.multi_orders.discard()
        self.sub_orders.discard()
        self.riders.discard()
