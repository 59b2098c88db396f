"""Customer pricing: tier resolution, overlap validation and tier management."""

from .errors import (
    PricingError,
    InvalidPriceTierError,
    PriceTierOverlapError,
    PriceTierConflictError,
    NoPriceAvailableError,
    ActivityNotFoundError,
    CustomerNotFoundError,
    PriceNotFoundError,
    OrderNotFoundError,
)
from .results import PriceResult, PriceQuote, TierRange
from .service import PriceService

__all__ = [
    "PricingError",
    "InvalidPriceTierError",
    "PriceTierOverlapError",
    "PriceTierConflictError",
    "NoPriceAvailableError",
    "ActivityNotFoundError",
    "CustomerNotFoundError",
    "PriceNotFoundError",
    "OrderNotFoundError",
    "PriceResult",
    "PriceQuote",
    "TierRange",
    "PriceService",
]
