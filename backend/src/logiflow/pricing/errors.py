"""Pricing domain errors.

Each error carries the HTTP status code routers use when translating it into
an HTTPException. None of them is retried.
"""

from uuid import UUID
from typing import Optional

from fastapi import HTTPException


class PricingError(Exception):
    """Base class for pricing and costing failures."""

    status_code: int = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidPriceTierError(PricingError):
    """Tier input violates a field rule (range, dates, quantity)."""

    status_code = 400


class PriceTierOverlapError(PricingError):
    """Tier would overlap an existing active tier."""

    status_code = 400

    def __init__(self, message: str = "Price tier overlaps with existing tier"):
        super().__init__(message)


class PriceTierConflictError(PricingError):
    """The database rejected a tier write that passed application validation."""

    status_code = 409

    def __init__(self, message: str = "Price tier conflicts with a concurrent change"):
        super().__init__(message)


class NoPriceAvailableError(PricingError):
    """No matching tier and no default price on the activity."""

    status_code = 400

    def __init__(self, activity_id: UUID):
        super().__init__(f"No price available for activity {activity_id}")
        self.activity_id = activity_id


class ActivityNotFoundError(PricingError):
    status_code = 404

    def __init__(self, activity_id: UUID):
        super().__init__(f"Activity {activity_id} not found")
        self.activity_id = activity_id


class CustomerNotFoundError(PricingError):
    status_code = 404

    def __init__(self, customer_id: UUID):
        super().__init__(f"Customer {customer_id} not found")
        self.customer_id = customer_id


class PriceNotFoundError(PricingError):
    status_code = 404

    def __init__(self, price_id: Optional[UUID] = None):
        super().__init__("Price not found")
        self.price_id = price_id


class OrderNotFoundError(PricingError):
    status_code = 404

    def __init__(self, order_id: UUID):
        super().__init__(f"Order {order_id} not found")
        self.order_id = order_id


class OrderNumberConflictError(PricingError):
    status_code = 409

    def __init__(self, order_number: str):
        super().__init__(f"Order number {order_number} already exists")
        self.order_number = order_number


class CustomerActivityNotFoundError(PricingError):
    status_code = 404

    def __init__(self, customer_activity_id: UUID):
        super().__init__("Customer activity not found")
        self.customer_activity_id = customer_activity_id


def to_http_exception(exc: PricingError) -> HTTPException:
    """Translate a domain error into the HTTPException routers raise."""
    return HTTPException(status_code=exc.status_code, detail=exc.message)
