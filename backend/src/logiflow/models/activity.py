"""Activity SQLAlchemy model"""

from enum import Enum
from uuid import uuid4

from sqlalchemy import Column, Text, Boolean, DateTime, Numeric, Uuid, ForeignKey, Index, CheckConstraint
from sqlalchemy.orm import relationship

from .base import Base, utcnow


class ActivityType(str, Enum):
    """Kinds of billable work. Container types carry a base price snapshot."""
    CONTAINER_UNLOADING = "CONTAINER_UNLOADING"
    CONTAINER_LOADING = "CONTAINER_LOADING"
    WRAPPING = "WRAPPING"
    REPACKING = "REPACKING"
    CROSSING = "CROSSING"
    LABELING = "LABELING"
    OTHER = "OTHER"


CONTAINER_ACTIVITY_TYPES = {
    ActivityType.CONTAINER_UNLOADING.value,
    ActivityType.CONTAINER_LOADING.value,
}


class Activity(Base):
    """A billable unit of work (loading, wrapping, labeling, ...).

    Activities with customer_id NULL form the global catalog. Activities with
    customer_id set are definitions owned by a single customer and are only
    priceable for that customer.

    default_price is the fallback when a customer has no matching tier.
    Changing it never touches order snapshots.
    """
    __tablename__ = "activity"
    __table_args__ = (
        Index("ix_activity_customer_id", "customer_id"),
        Index("ix_activity_name", "name"),
        CheckConstraint("default_price IS NULL OR default_price > 0", name="ck_activity_default_price_positive"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    customer_id = Column(Uuid(as_uuid=True), ForeignKey("customer.id", ondelete="CASCADE"), nullable=True)
    name = Column(Text, nullable=False)
    code = Column(Text, nullable=True)
    description = Column(Text, nullable=True)
    type = Column(Text, nullable=False, default=ActivityType.OTHER.value, server_default=ActivityType.OTHER.value)
    unit = Column(Text, nullable=False, default="hour", server_default="hour")
    default_price = Column(Numeric(12, 2), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True, server_default="true")
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    # Relationships
    customer = relationship("Customer")
    prices = relationship("CustomerPrice", back_populates="activity", passive_deletes=True)

    @property
    def is_container(self) -> bool:
        return self.type in CONTAINER_ACTIVITY_TYPES
