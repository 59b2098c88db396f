"""Customer SQLAlchemy model"""

from uuid import uuid4

from sqlalchemy import Column, Text, Boolean, DateTime, Uuid, Index
from sqlalchemy.orm import relationship

from .base import Base, utcnow


class Customer(Base):
    """Customer model representing a business customer ordering activities.

    A customer owns its price tiers and its general activity catalog.
    Price tier writes lock the customer row to serialize overlap validation.
    """
    __tablename__ = "customer"
    __table_args__ = (
        Index("ix_customer_company_name", "company_name"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    company_name = Column(Text, nullable=False)
    email = Column(Text, nullable=True)
    phone = Column(Text, nullable=True)
    address = Column(Text, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True, server_default="true")
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    # Relationships
    prices = relationship("CustomerPrice", back_populates="customer", passive_deletes=True)
    orders = relationship("Order", back_populates="customer")
