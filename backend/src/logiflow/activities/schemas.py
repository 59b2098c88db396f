"""Pydantic schemas for activities and customer activities"""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from ..models.activity import ActivityType
from ..pricing.schemas import ActivitySummary


class ActivityCreate(BaseModel):
    """Schema for creating an activity.

    Leave customer_id empty for a global catalog activity.
    """
    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1, max_length=200)
    code: Optional[str] = Field(None, max_length=50)
    description: Optional[str] = None
    type: ActivityType = ActivityType.OTHER
    unit: str = Field(default="hour", min_length=1, max_length=20)
    default_price: Optional[Decimal] = Field(None, gt=0, max_digits=12, decimal_places=2)
    customer_id: Optional[UUID] = None


class ActivityUpdate(BaseModel):
    """Schema for updating an activity; only provided fields change.

    A new default_price applies to future resolutions only.
    """
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(None, min_length=1, max_length=200)
    code: Optional[str] = Field(None, max_length=50)
    description: Optional[str] = None
    type: Optional[ActivityType] = None
    unit: Optional[str] = Field(None, min_length=1, max_length=20)
    default_price: Optional[Decimal] = Field(None, gt=0, max_digits=12, decimal_places=2)
    is_active: Optional[bool] = None


class ActivityResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    customer_id: Optional[UUID]
    name: str
    code: Optional[str]
    description: Optional[str]
    type: str
    unit: str
    default_price: Optional[Decimal]
    is_active: bool
    created_at: datetime
    updated_at: datetime


class CustomerActivityCreate(BaseModel):
    """Schema for creating a customer-owned activity with its catalog entry"""
    model_config = ConfigDict(extra="forbid")

    customer_id: UUID
    name: str = Field(..., min_length=1, max_length=200)
    code: Optional[str] = Field(None, max_length=50)
    description: Optional[str] = None
    type: ActivityType = ActivityType.OTHER
    unit: str = Field(default="hour", min_length=1, max_length=20)
    default_price: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)


class CustomerActivityResponse(BaseModel):
    """Catalog entry or costed order line with its price snapshot"""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    customer_id: UUID
    activity_id: UUID
    order_id: Optional[UUID]
    customer_price_id: Optional[UUID]
    quantity: int
    unit_price: Optional[Decimal]
    line_total: Optional[Decimal]
    base_price: Optional[Decimal]
    currency: Optional[str]
    unit: Optional[str]
    price_source: Optional[str]
    is_active: bool
    created_at: datetime
    activity: Optional[ActivitySummary] = None


class TierSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    min_quantity: int
    max_quantity: int
    price: Decimal
    currency: str
    effective_from: date
    effective_to: Optional[date]


class AvailableActivityResponse(BaseModel):
    """An activity the customer currently has at least one valid tier for"""
    activity: ActivityResponse
    tiers: list[TierSummary]


class ActivityStatistic(BaseModel):
    """Usage of one activity by a customer"""
    activity_id: UUID
    activity_name: str
    total_quantity: int
    total_amount: Decimal
    count: int
