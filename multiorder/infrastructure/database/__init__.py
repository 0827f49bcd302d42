"""SQLAlchemy persistence for multi-orders, sub-orders and riders."""
from .config import close_database, create_engine, create_session_factory, get_engine, init_database
from .models import Base, CounterModel, MultiOrderModel, RiderModel, SubOrderModel
from .repositories import SqlAlchemyMultiOrderRepository, SqlAlchemyRiderDirectory, SqlAlchemySubOrderStore
from .unit_of_work import SqlAlchemyUnitOfWork, create_uow_factory

__all__ = [
    "Base",
    "close_database",
    "CounterModel",
    "create_engine",
    "create_session_factory",
    "create_uow_factory",
    "get_engine",
    "init_database",
    "MultiOrderModel",
    "RiderModel",
    "SqlAlchemyMultiOrderRepository",
    "SqlAlchemyRiderDirectory",
    "SqlAlchemySubOrderStore",
    "SqlAlchemyUnitOfWork",
    "SubOrderModel",
]
