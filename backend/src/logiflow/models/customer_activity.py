"""CustomerActivity SQLAlchemy model"""

from uuid import uuid4

from sqlalchemy import (
    Column, Text, Integer, Boolean, DateTime, Numeric, Uuid,
    ForeignKey, CheckConstraint, Index,
)
from sqlalchemy.orm import relationship

from .base import Base, utcnow


class CustomerActivity(Base):
    """An activity attached to a customer's catalog or to one of its orders.

    order_id NULL: entry of the customer's general catalog.
    order_id set: a costed order line. unit_price and line_total are the
    values resolved when the line was created and are never recomputed from
    later tier changes.
    """
    __tablename__ = "customer_activity"
    __table_args__ = (
        Index("ix_customer_activity_customer_id", "customer_id"),
        Index("ix_customer_activity_order_id", "order_id"),
        CheckConstraint("quantity > 0", name="ck_customer_activity_quantity_positive"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    customer_id = Column(Uuid(as_uuid=True), ForeignKey("customer.id", ondelete="CASCADE"), nullable=False)
    activity_id = Column(Uuid(as_uuid=True), ForeignKey("activity.id", ondelete="RESTRICT"), nullable=False)
    order_id = Column(Uuid(as_uuid=True), ForeignKey("order.id", ondelete="CASCADE"), nullable=True)
    customer_price_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("customer_price.id", ondelete="SET NULL"),
        nullable=True,
    )

    quantity = Column(Integer, nullable=False, default=1)

    # Price snapshot
    unit_price = Column(Numeric(12, 2), nullable=True)
    line_total = Column(Numeric(14, 2), nullable=True)
    base_price = Column(Numeric(12, 2), nullable=True)
    currency = Column(Text, nullable=True)
    unit = Column(Text, nullable=True)
    price_source = Column(Text, nullable=True)

    is_active = Column(Boolean, nullable=False, default=True, server_default="true")
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    # Relationships
    customer = relationship("Customer")
    activity = relationship("Activity")
    order = relationship("Order", back_populates="activities")
