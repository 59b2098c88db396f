"""Order SQLAlchemy model

An order books activities for a customer on a scheduled date. Its line items
are CustomerActivity rows carrying frozen price snapshots.
"""

from enum import Enum
from uuid import uuid4

from sqlalchemy import Column, Text, Date, DateTime, Uuid, ForeignKey, Index
from sqlalchemy.orm import relationship

from .base import Base, utcnow


class OrderStatus(str, Enum):
    DRAFT = "DRAFT"
    OPEN = "OPEN"
    ACTIVE = "ACTIVE"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    EXPIRED = "EXPIRED"


class Order(Base):
    """Order header.

    scheduled_date is the reference date for resolving the unit price of
    every activity attached to the order.
    """

    __tablename__ = "order"
    __table_args__ = (
        Index("ix_order_customer_id", "customer_id"),
        Index("ix_order_scheduled_date", "scheduled_date"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    order_number = Column(Text, nullable=False, unique=True)
    customer_id = Column(Uuid(as_uuid=True), ForeignKey("customer.id", ondelete="RESTRICT"), nullable=False)
    scheduled_date = Column(Date, nullable=False)
    description = Column(Text, nullable=True)
    status = Column(Text, nullable=False, default=OrderStatus.DRAFT.value, server_default=OrderStatus.DRAFT.value)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    # Relationships
    customer = relationship("Customer", back_populates="orders")
    activities = relationship(
        "CustomerActivity",
        back_populates="order",
        order_by="CustomerActivity.created_at",
    )

    def __repr__(self):
        return f"<Order(id={self.id}, order_number={self.order_number}, status={self.status})>"
