"""
SQLAlchemy repository implementations.

Implement the domain repository interfaces on an AsyncSession owned by the
unit of work. Nothing here commits; the unit of work does.
"""
from datetime import datetime
from typing import Iterable, List, Optional
import logging

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from multiorder.domain.entities import MultiOrder, Rider, StatusHistoryEntry, SubOrder
from multiorder.domain.enums import ActorRole, MultiOrderStatus, PaymentStatus, SubOrderStatus
from multiorder.domain.exceptions import NotFoundError, StaleAggregateError
from multiorder.domain.repositories import MultiOrderRepository, RiderDirectory, SubOrderStore
from multiorder.domain.value_objects import OrderNumber, Pricing
from multiorder.infrastructure.database.models import (
    CounterModel,
    MultiOrderModel,
    RiderModel,
    SubOrderModel,
)
from multiorder.utils.datetime import ensure_aware


logger = logging.getLogger(__name__)


async def next_counter_value(session: AsyncSession, name: str) -> int:
    """Increment a named counter inside the current transaction."""
    result = await session.execute(
        update(CounterModel)
        .where(CounterModel.name == name)
        .values(value=CounterModel.value + 1)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        session.add(CounterModel(name=name, value=1))
        await session.flush()
        return 1
    return await session.scalar(select(CounterModel.value).where(CounterModel.name == name))


def _status_values(statuses: Optional[Iterable[MultiOrderStatus]]) -> Optional[List[str]]:
    if statuses is None:
        return None
    return [MultiOrderStatus(s).value for s in statuses]


# =============================================================================
# MULTI-ORDER REPOSITORY
# =============================================================================

class SqlAlchemyMultiOrderRepository(MultiOrderRepository):
    """MultiOrderRepository backed by the ``multi_orders`` table."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, multi_order_id: str) -> Optional[MultiOrder]:
        model = await self.session.get(MultiOrderModel, multi_order_id, populate_existing=True)
        if model is None:
            return None
        return self._to_domain_entity(model)

    async def add(self, multi_order: MultiOrder) -> None:
        multi_order.version = 1
        self.session.add(MultiOrderModel(
            id=multi_order.id,
            order_number=str(multi_order.order_number),
            customer_id=multi_order.customer_id,
            status=multi_order.status.value,
            primary_rider_id=multi_order.primary_rider_id,
            document=multi_order.to_snapshot_dict(),
            version=multi_order.version,
            created_at=multi_order.created_at,
            updated_at=multi_order.updated_at,
        ))
        await self.session.flush()
        logger.info(f"✅ Created multi-order: {multi_order.order_number}")

    async def save(self, multi_order: MultiOrder) -> None:
        expected = multi_order.version
        multi_order.version = expected + 1
        result = await self.session.execute(
            update(MultiOrderModel)
            .where(MultiOrderModel.id == multi_order.id, MultiOrderModel.version == expected)
            .values(
                status=multi_order.status.value,
                primary_rider_id=multi_order.primary_rider_id,
                document=multi_order.to_snapshot_dict(),
                version=multi_order.version,
                updated_at=multi_order.updated_at,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            multi_order.version = expected
            raise StaleAggregateError(multi_order.id, expected)
        logger.debug(f"Saved multi-order {multi_order.order_number} at version {multi_order.version}")

    async def next_sequence(self) -> int:
        return await next_counter_value(self.session, "multi_orders")

    def _customer_query(self, query, customer_id, statuses, exclude_statuses):
        query = query.where(MultiOrderModel.customer_id == customer_id)
        wanted = _status_values(statuses)
        if wanted is not None:
            query = query.where(MultiOrderModel.status.in_(wanted))
        unwanted = _status_values(exclude_statuses)
        if unwanted:
            query = query.where(MultiOrderModel.status.notin_(unwanted))
        return query

    async def list_by_customer(self, customer_id, statuses=None, exclude_statuses=None, limit=10, offset=0):
        query = self._customer_query(select(MultiOrderModel), customer_id, statuses, exclude_statuses)
        query = query.order_by(MultiOrderModel.created_at.desc()).limit(limit).offset(offset)
        result = await self.session.execute(query)
        return [self._to_domain_entity(m) for m in result.scalars().all()]

    async def count_by_customer(self, customer_id, statuses=None, exclude_statuses=None):
        query = self._customer_query(
            select(func.count()).select_from(MultiOrderModel), customer_id, statuses, exclude_statuses
        )
        return await self.session.scalar(query)

    async def list_by_rider(self, rider_id, statuses=None):
        query = select(MultiOrderModel).where(MultiOrderModel.primary_rider_id == rider_id)
        wanted = _status_values(statuses)
        if wanted is not None:
            query = query.where(MultiOrderModel.status.in_(wanted))
        result = await self.session.execute(query.order_by(MultiOrderModel.created_at.desc()))
        return [self._to_domain_entity(m) for m in result.scalars().all()]

    async def list_unassigned(self, statuses):
        query = (
            select(MultiOrderModel)
            .where(
                MultiOrderModel.primary_rider_id.is_(None),
                MultiOrderModel.status.in_(_status_values(statuses)),
            )
            .order_by(MultiOrderModel.created_at.asc())
        )
        result = await self.session.execute(query)
        return [self._to_domain_entity(m) for m in result.scalars().all()]

    def _to_domain_entity(self, model: MultiOrderModel) -> MultiOrder:
        order = MultiOrder.from_snapshot_dict(model.document)
        order.version = model.version
        return order


# =============================================================================
# SUB-ORDER STORE
# =============================================================================

class SqlAlchemySubOrderStore(SubOrderStore):
    """SubOrderStore backed by the ``sub_orders`` table."""

    _EXTRA_FIELDS = frozenset({
        "payment_status", "delivery_rider_id", "actual_delivery_time", "restaurant_name",
    })

    def __init__(self, session: AsyncSession, order_number_prefix: str = "KS"):
        self.session = session
        self.order_number_prefix = order_number_prefix

    async def get(self, sub_order_id: str) -> Optional[SubOrder]:
        model = await self.session.get(SubOrderModel, sub_order_id)
        return self._to_domain_entity(model) if model else None

    async def get_many(self, sub_order_ids: Iterable[str]) -> List[SubOrder]:
        ids = list(sub_order_ids)
        if not ids:
            return []
        result = await self.session.execute(select(SubOrderModel).where(SubOrderModel.id.in_(ids)))
        by_id = {m.id: m for m in result.scalars().all()}
        # Keep the caller's order
        return [self._to_domain_entity(by_id[i]) for i in ids if i in by_id]

    async def add_many(self, sub_orders: Iterable[SubOrder]) -> None:
        self.session.add_all([self._to_model(s) for s in sub_orders])
        await self.session.flush()

    async def update_status(
        self,
        sub_order_id: str,
        status: SubOrderStatus,
        at: datetime,
        note: Optional[str] = None,
        **extra_fields,
    ) -> SubOrder:
        model = await self.session.get(SubOrderModel, sub_order_id)
        if model is None:
            raise NotFoundError(f"Sub-order {sub_order_id} not found")
        unknown = set(extra_fields) - self._EXTRA_FIELDS
        if unknown:
            raise ValueError(f"Unsupported sub-order fields: {sorted(unknown)}")

        status = SubOrderStatus(status)
        model.status = status.value
        model.status_history = list(model.status_history or []) + [
            StatusHistoryEntry(status.value, at, note).to_dict()
        ]
        for name, value in extra_fields.items():
            if name == "payment_status":
                value = PaymentStatus(value).value
            setattr(model, name, value)
        await self.session.flush()
        return self._to_domain_entity(model)

    async def set_delivery_rider(self, sub_order_ids: Iterable[str], rider_id: Optional[str]) -> None:
        for sub_order_id in sub_order_ids:
            model = await self.session.get(SubOrderModel, sub_order_id)
            if model is None:
                raise NotFoundError(f"Sub-order {sub_order_id} not found")
            model.delivery_rider_id = rider_id
        await self.session.flush()

    async def list_by_multi_order(self, multi_order_id: str) -> List[SubOrder]:
        result = await self.session.execute(
            select(SubOrderModel)
            .where(SubOrderModel.multi_order_id == multi_order_id)
            .order_by(SubOrderModel.created_at, SubOrderModel.order_number)
        )
        return [self._to_domain_entity(m) for m in result.scalars().all()]

    async def next_order_number(self, year: int) -> str:
        sequence = await next_counter_value(self.session, "sub_orders")
        return str(OrderNumber.generate(self.order_number_prefix, year, sequence))

    @staticmethod
    def _to_model(sub_order: SubOrder) -> SubOrderModel:
        return SubOrderModel(
            id=sub_order.id,
            order_number=sub_order.order_number,
            restaurant_id=sub_order.restaurant_id,
            restaurant_name=sub_order.restaurant_name,
            customer_id=sub_order.customer_id,
            multi_order_id=sub_order.multi_order_id,
            status=sub_order.status.value,
            payment_status=sub_order.payment_status.value,
            delivery_rider_id=sub_order.delivery_rider_id,
            actual_delivery_time=sub_order.actual_delivery_time,
            pricing=sub_order.pricing.to_dict(),
            status_history=[h.to_dict() for h in sub_order.status_history],
            created_at=sub_order.created_at,
        )

    @staticmethod
    def _to_domain_entity(model: SubOrderModel) -> SubOrder:
        return SubOrder(
            id=model.id,
            order_number=model.order_number,
            restaurant_id=model.restaurant_id,
            restaurant_name=model.restaurant_name,
            customer_id=model.customer_id,
            multi_order_id=model.multi_order_id,
            status=SubOrderStatus(model.status),
            payment_status=PaymentStatus(model.payment_status),
            delivery_rider_id=model.delivery_rider_id,
            actual_delivery_time=ensure_aware(model.actual_delivery_time),
            pricing=Pricing.from_dict(model.pricing),
            status_history=[StatusHistoryEntry.from_dict(h) for h in model.status_history or []],
            created_at=ensure_aware(model.created_at),
        )


# =============================================================================
# RIDER DIRECTORY
# =============================================================================

class SqlAlchemyRiderDirectory(RiderDirectory):
    """RiderDirectory backed by the ``riders`` table."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, rider_id: str) -> Optional[Rider]:
        model = await self.session.get(RiderModel, rider_id, populate_existing=True)
        return self._to_domain_entity(model) if model else None

    async def find_available(self, rider_id: str) -> Optional[Rider]:
        rider = await self.get(rider_id)
        if rider is None or not rider.is_available:
            return None
        return rider

    async def set_current_assignment(self, rider_id: str, label: Optional[str]) -> None:
        await self._update(rider_id, current_assignment=label)

    async def increment_completed_orders(self, rider_id: str, count: int) -> None:
        await self._update(rider_id, completed_orders=RiderModel.completed_orders + count)

    async def add(self, rider: Rider) -> None:
        """Register a rider account (seeding)."""
        self.session.add(RiderModel(
            id=rider.id,
            name=rider.name,
            role=rider.role.value,
            is_online=rider.is_online,
            current_assignment=rider.current_assignment,
            completed_orders=rider.completed_orders,
        ))
        await self.session.flush()

    async def _update(self, rider_id: str, **values) -> None:
        result = await self.session.execute(
            update(RiderModel)
            .where(RiderModel.id == rider_id)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise NotFoundError(f"Rider {rider_id} not found")

    @staticmethod
    def _to_domain_entity(model: RiderModel) -> Rider:
        return Rider(
            id=model.id,
            name=model.name,
            role=ActorRole.parse(model.role),
            is_online=model.is_online,
            current_assignment=model.current_assignment,
            completed_orders=model.completed_orders,
        )
