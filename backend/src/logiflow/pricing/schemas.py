"""Pydantic schemas for customer pricing"""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _normalize_currency(v: Optional[str]) -> Optional[str]:
    if v is None:
        return v
    v = v.strip().upper()
    if not v.isalpha():
        raise ValueError("currency must be a 3-letter ISO 4217 code")
    return v


class CustomerPriceCreate(BaseModel):
    """Schema for creating a new price tier for a customer"""
    model_config = ConfigDict(extra="forbid")

    activity_id: UUID
    min_quantity: int = Field(default=1, gt=0, strict=True)
    max_quantity: int = Field(..., gt=0, strict=True)
    price: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    currency: str = Field(default="EUR", min_length=3, max_length=3)
    effective_from: date
    effective_to: Optional[date] = None
    is_active: bool = True

    @field_validator('currency')
    @classmethod
    def validate_currency(cls, v: str) -> str:
        """Validate and normalize currency code"""
        return _normalize_currency(v)


class CustomerPriceUpdate(BaseModel):
    """Schema for partially updating a price tier.

    Only fields present in the request body are applied. An explicit
    ``"effective_to": null`` makes the tier open-ended.
    """
    model_config = ConfigDict(extra="forbid")

    min_quantity: Optional[int] = Field(None, gt=0, strict=True)
    max_quantity: Optional[int] = Field(None, gt=0, strict=True)
    price: Optional[Decimal] = Field(None, gt=0, max_digits=12, decimal_places=2)
    currency: Optional[str] = Field(None, min_length=3, max_length=3)
    effective_from: Optional[date] = None
    effective_to: Optional[date] = None
    is_active: Optional[bool] = None

    @field_validator('currency')
    @classmethod
    def validate_currency(cls, v: Optional[str]) -> Optional[str]:
        """Validate and normalize currency code"""
        return _normalize_currency(v)


class ActivitySummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    code: Optional[str]
    unit: str


class CustomerPriceResponse(BaseModel):
    """Schema for price tier response"""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    customer_id: UUID
    activity_id: UUID
    min_quantity: int
    max_quantity: int
    price: Decimal
    currency: str
    effective_from: date
    effective_to: Optional[date]
    is_active: bool
    created_at: datetime
    updated_at: datetime
    activity: Optional[ActivitySummary] = None


class PriceCalculationRequest(BaseModel):
    """Schema for an ad-hoc price quote"""
    model_config = ConfigDict(extra="forbid")

    customer_id: UUID
    activity_id: UUID
    quantity: int = Field(default=1, gt=0, strict=True)
    reference_date: Optional[date] = Field(
        default=None,
        description="Reference date, e.g. the order's scheduled date. Defaults to today.",
    )


class TierRangeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    min_quantity: int
    max_quantity: int


class PriceCalculationResponse(BaseModel):
    """Schema for price quote response"""
    model_config = ConfigDict(from_attributes=True)

    activity_id: UUID
    unit_price: Decimal
    currency: str
    quantity: int
    line_total: Decimal
    unit: str
    source: str
    reference_date: date
    tier: Optional[TierRangeResponse] = None
    price_id: Optional[UUID] = None


class PriceImportRow(BaseModel):
    """Schema for a single row in a price tier CSV import"""
    activity_id: UUID
    min_quantity: int = Field(default=1, gt=0)
    max_quantity: int = Field(..., gt=0)
    price: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    currency: str = Field(default="EUR", min_length=3, max_length=3)
    effective_from: date
    effective_to: Optional[date] = None

    @field_validator('currency')
    @classmethod
    def normalize_currency(cls, v: str) -> str:
        """Normalize currency code"""
        return _normalize_currency(v)

    def to_create(self) -> CustomerPriceCreate:
        return CustomerPriceCreate(**self.model_dump())


class PriceImportResult(BaseModel):
    """Schema for CSV import result"""
    imported: int = 0
    failed: int = 0
    errors: list[dict] = Field(default_factory=list)
