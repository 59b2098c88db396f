"""CustomerPrice SQLAlchemy model"""

from uuid import uuid4

from sqlalchemy import (
    Column, Text, Integer, Boolean, Date, DateTime, Numeric, Uuid,
    ForeignKey, CheckConstraint, Index,
)
from sqlalchemy.orm import relationship

from .base import Base, utcnow


class CustomerPrice(Base):
    """A price tier for one (customer, activity) pair.

    Each tier covers a closed quantity range [min_quantity, max_quantity]
    and a closed validity window [effective_from, effective_to], where a NULL
    effective_to is open-ended.

    Among active tiers of the same (customer, activity), no two may overlap in
    both quantity range and validity window. The service validates this under
    a customer row lock; on PostgreSQL an exclusion constraint (see migration
    002) enforces it as well.
    """
    __tablename__ = "customer_price"
    __table_args__ = (
        Index("ix_customer_price_customer_activity", "customer_id", "activity_id"),
        Index(
            "ix_customer_price_lookup",
            "customer_id", "activity_id", "is_active", "effective_from",
        ),
        CheckConstraint("price > 0", name="ck_customer_price_price_positive"),
        CheckConstraint("min_quantity > 0", name="ck_customer_price_min_quantity_positive"),
        CheckConstraint("min_quantity <= max_quantity", name="ck_customer_price_quantity_range"),
        CheckConstraint(
            "effective_to IS NULL OR effective_to >= effective_from",
            name="ck_customer_price_validity_window",
        ),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    customer_id = Column(Uuid(as_uuid=True), ForeignKey("customer.id", ondelete="CASCADE"), nullable=False)
    activity_id = Column(Uuid(as_uuid=True), ForeignKey("activity.id", ondelete="CASCADE"), nullable=False)
    min_quantity = Column(Integer, nullable=False, default=1)
    max_quantity = Column(Integer, nullable=False)
    price = Column(Numeric(12, 2), nullable=False)
    currency = Column(Text, nullable=False, default="EUR", server_default="EUR")
    effective_from = Column(Date, nullable=False)
    effective_to = Column(Date, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True, server_default="true")
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    # Relationships
    customer = relationship("Customer", back_populates="prices")
    activity = relationship("Activity", back_populates="prices")
