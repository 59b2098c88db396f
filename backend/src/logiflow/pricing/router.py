"""Customer price tier and price quote API endpoints"""

import logging
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, UploadFile, File, Query, status
from sqlalchemy.orm import Session

from ..auth.dependencies import AuthenticatedUser, CurrentUser, require_roles
from ..auth.roles import PRICE_MANAGERS
from ..database import get_db
from .errors import CustomerNotFoundError, PricingError, to_http_exception
from .import_service import PriceImportService
from .schemas import (
    CustomerPriceCreate,
    CustomerPriceUpdate,
    CustomerPriceResponse,
    PriceCalculationRequest,
    PriceCalculationResponse,
    PriceImportResult,
)
from .service import PriceService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/customers", tags=["customer-prices"])
calculate_router = APIRouter(prefix="/pricing", tags=["pricing"])


# ============================================================================
# Customer Price Tier CRUD Endpoints
# ============================================================================

@router.get("/{customer_id}/prices", response_model=List[CustomerPriceResponse])
async def list_customer_prices(
    customer_id: UUID,
    activity_id: Optional[UUID] = Query(None, description="Filter by activity ID"),
    db: Session = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_roles(PRICE_MANAGERS))
):
    """
    List a customer's price tiers (ADMIN/SUPER_ADMIN only).

    Tiers are ordered by effective_from (newest first), then min_quantity.

    Raises:
        HTTPException 404: If customer not found
    """
    try:
        prices = PriceService.get_customer_prices(db, customer_id, activity_id)
    except PricingError as e:
        raise to_http_exception(e)

    return [CustomerPriceResponse.model_validate(p) for p in prices]


@router.post(
    "/{customer_id}/prices",
    response_model=CustomerPriceResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_customer_price(
    customer_id: UUID,
    price_data: CustomerPriceCreate,
    db: Session = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_roles(PRICE_MANAGERS))
):
    """
    Create a price tier for a customer (ADMIN/SUPER_ADMIN only).

    Args:
        customer_id: Customer ID
        price_data: Tier data
        db: Database session
        current_user: Authenticated user

    Returns:
        Created price tier

    Raises:
        HTTPException 400: If min > max, dates are inverted, or the tier overlaps
        HTTPException 404: If customer or activity not found
        HTTPException 409: If a concurrent change created a conflicting tier
    """
    try:
        price = PriceService.create_price_tier(
            db=db,
            customer_id=customer_id,
            data=price_data,
            actor_id=current_user.id,
        )
    except PricingError as e:
        raise to_http_exception(e)

    return CustomerPriceResponse.model_validate(price)


@router.post("/{customer_id}/prices/import", response_model=PriceImportResult)
async def import_customer_prices(
    customer_id: UUID,
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_roles(PRICE_MANAGERS))
):
    """
    Import price tiers for a customer from a CSV file (ADMIN/SUPER_ADMIN only).

    CSV columns: activity_id, min_quantity, max_quantity, price, currency,
    effective_from, effective_to. Rows failing validation or overlapping an
    existing tier are reported in ``errors``; other rows are imported.

    Raises:
        HTTPException 400: If file is not CSV
        HTTPException 404: If customer not found
    """
    if not file.filename or not file.filename.lower().endswith('.csv'):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="File must be a CSV file"
        )

    try:
        PriceService.get_customer(db, customer_id)
    except PricingError as e:
        raise to_http_exception(e)

    content = await file.read()
    import_service = PriceImportService(db, customer_id, actor_id=current_user.id)
    return import_service.import_prices(content)


@router.put("/{customer_id}/prices/{price_id}", response_model=CustomerPriceResponse)
async def update_customer_price(
    customer_id: UUID,
    price_id: UUID,
    price_data: CustomerPriceUpdate,
    db: Session = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_roles(PRICE_MANAGERS))
):
    """
    Partially update a price tier (ADMIN/SUPER_ADMIN only).

    Only fields present in the body change. Overlap is re-validated when the
    quantity range, validity dates or active flag change.

    Raises:
        HTTPException 400: If the merged tier is invalid or overlaps
        HTTPException 404: If the tier does not belong to the customer
        HTTPException 409: If a concurrent change created a conflicting tier
    """
    try:
        price = PriceService.update_price_tier(
            db=db,
            customer_id=customer_id,
            price_id=price_id,
            data=price_data,
            actor_id=current_user.id,
        )
    except PricingError as e:
        raise to_http_exception(e)

    return CustomerPriceResponse.model_validate(price)


@router.delete("/{customer_id}/prices/{price_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_customer_price(
    customer_id: UUID,
    price_id: UUID,
    db: Session = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_roles(PRICE_MANAGERS))
):
    """
    Delete a price tier (ADMIN/SUPER_ADMIN only).

    Raises:
        HTTPException 404: If the tier does not belong to the customer
    """
    try:
        PriceService.delete_price_tier(
            db=db,
            customer_id=customer_id,
            price_id=price_id,
            actor_id=current_user.id,
        )
    except PricingError as e:
        raise to_http_exception(e)


# ============================================================================
# Price Quote Endpoint
# ============================================================================

@calculate_router.post("/calculate", response_model=PriceCalculationResponse)
async def calculate_price(
    request: PriceCalculationRequest,
    current_user: CurrentUser,
    db: Session = Depends(get_db),
):
    """
    Quote the unit price and line total for a customer, activity and quantity.

    Nothing is persisted. The reference date defaults to today; pass the
    order's scheduled date to quote an order in advance.

    CUSTOMER users can only quote their own customer.

    Raises:
        HTTPException 400: If no price is available
        HTTPException 404: If customer or activity not found
    """
    if not current_user.can_access_customer(request.customer_id):
        raise to_http_exception(CustomerNotFoundError(request.customer_id))

    try:
        quote = PriceService.calculate_price(
            db=db,
            customer_id=request.customer_id,
            activity_id=request.activity_id,
            quantity=request.quantity,
            as_of=request.reference_date,
        )
    except PricingError as e:
        raise to_http_exception(e)

    return PriceCalculationResponse.model_validate(quote)
