"""Transient pricing results.

These objects are built fresh on every resolution and never cached: the
applicable price depends on the reference date and quantity.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional
from uuid import UUID

PRICE_SOURCE_CUSTOMER = "customer"
PRICE_SOURCE_DEFAULT = "default"


@dataclass(frozen=True)
class TierRange:
    min_quantity: int
    max_quantity: int


@dataclass(frozen=True)
class PriceResult:
    """Outcome of resolving the unit price for (customer, activity)."""

    price: Decimal
    currency: str
    source: str
    activity_id: UUID
    unit: str
    reference_date: date
    tier: Optional[TierRange] = None
    price_id: Optional[UUID] = None


@dataclass(frozen=True)
class PriceQuote:
    """A resolved price multiplied out for a quantity, not persisted."""

    unit_price: Decimal
    currency: str
    quantity: int
    line_total: Decimal
    unit: str
    source: str
    activity_id: UUID
    reference_date: date
    tier: Optional[TierRange] = None
    price_id: Optional[UUID] = None
