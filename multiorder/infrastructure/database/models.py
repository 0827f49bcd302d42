"""
SQLAlchemy ORM Models.

The multi-order aggregate is stored as a JSON document next to the columns
used for lookups and listing; sub-orders and riders are plain rows.
"""
from sqlalchemy import (
    Boolean, Column, DateTime, Index, Integer, JSON, String, Text,
)
from sqlalchemy.orm import declarative_base


Base = declarative_base()


# =============================================================================
# MULTI-ORDER MODEL
# =============================================================================

class MultiOrderModel(Base):
    """
    Multi-order database model.

    ``document`` holds the full aggregate snapshot; ``version`` guards
    concurrent writers (UPDATE ... WHERE version = expected).
    """

    __tablename__ = "multi_orders"

    id = Column(String(36), primary_key=True)
    order_number = Column(String(32), unique=True, nullable=False, index=True)

    customer_id = Column(String(64), nullable=False, index=True)
    status = Column(String(32), nullable=False, index=True)
    primary_rider_id = Column(String(64), nullable=True, index=True)

    document = Column(JSON, nullable=False)
    version = Column(Integer, nullable=False, default=1)

    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index("ix_multi_orders_customer_created", "customer_id", "created_at"),
        Index("ix_multi_orders_status_rider", "status", "primary_rider_id"),
    )

    def __repr__(self):
        return f"<MultiOrderModel(id={self.id}, order_number={self.order_number}, status={self.status})>"


# =============================================================================
# SUB-ORDER MODEL
# =============================================================================

class SubOrderModel(Base):
    """Restaurant sub-order row."""

    __tablename__ = "sub_orders"

    id = Column(String(36), primary_key=True)
    order_number = Column(String(32), unique=True, nullable=False)

    restaurant_id = Column(String(64), nullable=False, index=True)
    restaurant_name = Column(String(255), nullable=True)
    customer_id = Column(String(64), nullable=False, index=True)
    multi_order_id = Column(String(36), nullable=True, index=True)

    status = Column(String(32), nullable=False, default="pending")
    payment_status = Column(String(32), nullable=False, default="pending")
    delivery_rider_id = Column(String(64), nullable=True)
    actual_delivery_time = Column(DateTime(timezone=True), nullable=True)

    # {"subtotal": "12.50", ...} as written by Pricing.to_dict()
    pricing = Column(JSON, nullable=False)
    status_history = Column(JSON, nullable=False, default=list)

    created_at = Column(DateTime(timezone=True), nullable=False)

    def __repr__(self):
        return f"<SubOrderModel(id={self.id}, restaurant_id={self.restaurant_id}, status={self.status})>"


# =============================================================================
# RIDER MODEL
# =============================================================================

class RiderModel(Base):
    """Delivery account row."""

    __tablename__ = "riders"

    id = Column(String(64), primary_key=True)
    name = Column(String(255), nullable=False)
    role = Column(String(32), nullable=False, default="rider")
    is_online = Column(Boolean, nullable=False, default=False)
    current_assignment = Column(Text, nullable=True)
    completed_orders = Column(Integer, nullable=False, default=0)

    def __repr__(self):
        return f"<RiderModel(id={self.id}, online={self.is_online})>"


# =============================================================================
# COUNTERS
# =============================================================================

class CounterModel(Base):
    """Named monotonic counters for order numbering."""

    __tablename__ = "counters"

    name = Column(String(64), primary_key=True)
    value = Column(Integer, nullable=False, default=0)
