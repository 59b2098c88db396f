"""Pydantic schemas for orders and costed order activities"""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from ..activities.schemas import CustomerActivityResponse
from ..models.order import OrderStatus


class OrderActivityInput(BaseModel):
    """One activity line requested for an order"""
    model_config = ConfigDict(extra="forbid")

    activity_id: UUID
    quantity: int = Field(default=1, gt=0, strict=True)


class OrderCreate(BaseModel):
    """Schema for creating an order with its activities.

    Every activity is priced for the customer as of scheduled_date and the
    result is stored on the order line.
    """
    model_config = ConfigDict(extra="forbid")

    customer_id: UUID
    scheduled_date: date
    order_number: Optional[str] = Field(None, min_length=1, max_length=50)
    description: Optional[str] = None
    status: OrderStatus = OrderStatus.DRAFT
    activities: list[OrderActivityInput] = Field(default_factory=list)


class OrderResponse(BaseModel):
    """Order with its active lines and their total"""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    order_number: str
    customer_id: UUID
    scheduled_date: date
    description: Optional[str]
    status: str
    created_at: datetime
    updated_at: datetime
    activities: list[CustomerActivityResponse] = Field(default_factory=list)
    total: Decimal
