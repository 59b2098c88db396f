"""Activity catalog and customer activity API endpoints"""

import logging
from datetime import date
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from ..auth.dependencies import AuthenticatedUser, require_roles
from ..auth.roles import ORDER_MANAGERS, PRICE_MANAGERS, UserRole
from ..database import get_db
from ..pricing.errors import PricingError, to_http_exception
from .schemas import (
    ActivityCreate,
    ActivityUpdate,
    ActivityResponse,
    ActivityStatistic,
    AvailableActivityResponse,
    CustomerActivityCreate,
    CustomerActivityResponse,
    TierSummary,
)
from .service import ActivityService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/activities", tags=["activities"])
customer_activities_router = APIRouter(tags=["customer-activities"])


# ============================================================================
# Activity CRUD Endpoints
# ============================================================================

@router.get("", response_model=List[ActivityResponse])
async def list_activities(
    customer_id: Optional[UUID] = Query(None, description="Only global and this customer's activities"),
    include_inactive: bool = Query(False, description="Include deactivated activities"),
    db: Session = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_roles(PRICE_MANAGERS))
):
    """
    List activities (ADMIN/SUPER_ADMIN only).
    """
    activities = ActivityService.list_activities(db, customer_id, include_inactive)
    return [ActivityResponse.model_validate(a) for a in activities]


@router.post("", response_model=ActivityResponse, status_code=status.HTTP_201_CREATED)
async def create_activity(
    activity_data: ActivityCreate,
    db: Session = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_roles(PRICE_MANAGERS))
):
    """
    Create a global or customer-owned activity (ADMIN/SUPER_ADMIN only).

    Raises:
        HTTPException 404: If customer_id is given but unknown
    """
    try:
        activity = ActivityService.create_activity(db, activity_data, actor_id=current_user.id)
    except PricingError as e:
        raise to_http_exception(e)

    return ActivityResponse.model_validate(activity)


@router.put("/{activity_id}", response_model=ActivityResponse)
async def update_activity(
    activity_id: UUID,
    activity_data: ActivityUpdate,
    db: Session = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_roles(PRICE_MANAGERS))
):
    """
    Update an activity (ADMIN/SUPER_ADMIN only).

    Raises:
        HTTPException 404: If activity not found
    """
    try:
        activity = ActivityService.update_activity(db, activity_id, activity_data, actor_id=current_user.id)
    except PricingError as e:
        raise to_http_exception(e)

    return ActivityResponse.model_validate(activity)


@router.delete("/{activity_id}", status_code=status.HTTP_204_NO_CONTENT)
async def deactivate_activity(
    activity_id: UUID,
    db: Session = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_roles(PRICE_MANAGERS))
):
    """
    Deactivate an activity (ADMIN/SUPER_ADMIN only).

    Raises:
        HTTPException 404: If activity not found
    """
    try:
        ActivityService.deactivate_activity(db, activity_id, actor_id=current_user.id)
    except PricingError as e:
        raise to_http_exception(e)


# ============================================================================
# Customer Activity Endpoints
# ============================================================================

@customer_activities_router.post(
    "/customer-activities",
    response_model=CustomerActivityResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_customer_activity(
    data: CustomerActivityCreate,
    db: Session = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_roles(PRICE_MANAGERS))
):
    """
    Create a customer-owned activity with its catalog entry (ADMIN/SUPER_ADMIN only).

    Raises:
        HTTPException 404: If customer not found
    """
    try:
        customer_activity = ActivityService.create_customer_activity(db, data, actor_id=current_user.id)
    except PricingError as e:
        raise to_http_exception(e)

    return CustomerActivityResponse.model_validate(customer_activity)


@customer_activities_router.get(
    "/customers/me/activities",
    response_model=List[CustomerActivityResponse],
)
async def list_my_activities(
    db: Session = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_roles([UserRole.CUSTOMER]))
):
    """
    List the calling customer's general activity catalog (CUSTOMER only).

    Raises:
        HTTPException 404: If the token carries no customer or the customer is gone
    """
    if current_user.customer_id is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No customer linked to this user"
        )

    try:
        entries = ActivityService.list_customer_catalog(db, current_user.customer_id)
    except PricingError as e:
        raise to_http_exception(e)

    return [CustomerActivityResponse.model_validate(entry) for entry in entries]


@customer_activities_router.get(
    "/customers/{customer_id}/activities",
    response_model=List[CustomerActivityResponse],
)
async def list_customer_activities(
    customer_id: UUID,
    db: Session = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_roles(ORDER_MANAGERS))
):
    """
    List the customer's general activity catalog.

    Raises:
        HTTPException 404: If customer not found
    """
    try:
        entries = ActivityService.list_customer_catalog(db, customer_id)
    except PricingError as e:
        raise to_http_exception(e)

    return [CustomerActivityResponse.model_validate(entry) for entry in entries]


@customer_activities_router.get(
    "/customers/{customer_id}/activities/available",
    response_model=List[AvailableActivityResponse],
)
async def list_available_activities(
    customer_id: UUID,
    as_of: Optional[date] = Query(None, description="Reference date (default: today)"),
    db: Session = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_roles(ORDER_MANAGERS))
):
    """
    List activities the customer currently has valid price tiers for.

    Raises:
        HTTPException 404: If customer not found
    """
    try:
        available = ActivityService.available_activities(db, customer_id, as_of)
    except PricingError as e:
        raise to_http_exception(e)

    return [
        AvailableActivityResponse(
            activity=ActivityResponse.model_validate(activity),
            tiers=[TierSummary.model_validate(t) for t in tiers],
        )
        for activity, tiers in available
    ]


@customer_activities_router.get(
    "/customers/{customer_id}/activities/statistics",
    response_model=List[ActivityStatistic],
)
async def get_activity_statistics(
    customer_id: UUID,
    start_date: Optional[date] = Query(None, description="Rows created on or after this day"),
    end_date: Optional[date] = Query(None, description="Rows created on or before this day"),
    db: Session = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_roles(ORDER_MANAGERS))
):
    """
    Per-activity usage statistics for a customer.

    Raises:
        HTTPException 404: If customer not found
    """
    try:
        stats = ActivityService.activity_statistics(db, customer_id, start_date, end_date)
    except PricingError as e:
        raise to_http_exception(e)

    return [ActivityStatistic(**s) for s in stats]


@customer_activities_router.delete(
    "/customers/{customer_id}/activities/{customer_activity_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def deactivate_customer_activity(
    customer_id: UUID,
    customer_activity_id: UUID,
    db: Session = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_roles(PRICE_MANAGERS))
):
    """
    Deactivate a customer activity (ADMIN/SUPER_ADMIN only).

    Raises:
        HTTPException 404: If it does not belong to the customer
    """
    try:
        ActivityService.deactivate_customer_activity(
            db, customer_id, customer_activity_id, actor_id=current_user.id
        )
    except PricingError as e:
        raise to_http_exception(e)
