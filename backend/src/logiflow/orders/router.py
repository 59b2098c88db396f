"""Order API endpoints with activity costing"""

import logging
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ..activities.schemas import CustomerActivityResponse
from ..auth.dependencies import AuthenticatedUser, CurrentUser, require_roles
from ..auth.roles import ORDER_MANAGERS
from ..database import get_db
from ..models.order import Order
from ..notifications.ports import NotificationPort, get_notifier
from ..pricing.errors import PricingError, to_http_exception
from ..pricing.money import sum_money
from .schemas import OrderActivityInput, OrderCreate, OrderResponse
from .service import OrderService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/orders", tags=["orders"])


def _order_response(db: Session, order: Order) -> OrderResponse:
    lines = OrderService.list_order_activities(db, order.id)
    return OrderResponse(
        id=order.id,
        order_number=order.order_number,
        customer_id=order.customer_id,
        scheduled_date=order.scheduled_date,
        description=order.description,
        status=order.status,
        created_at=order.created_at,
        updated_at=order.updated_at,
        activities=[CustomerActivityResponse.model_validate(line) for line in lines],
        total=sum_money(line.line_total for line in lines if line.line_total is not None),
    )


def _get_visible_order(db: Session, order_id: UUID, current_user: AuthenticatedUser) -> Order:
    """Load an order; CUSTOMER users only see their own orders."""
    try:
        order = OrderService.get_order(db, order_id)
    except PricingError as e:
        raise to_http_exception(e)

    if not current_user.can_access_customer(order.customer_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Order {order_id} not found"
        )
    return order


# ============================================================================
# Order Endpoints
# ============================================================================

@router.post("", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
async def create_order(
    order_data: OrderCreate,
    db: Session = Depends(get_db),
    notifier: NotificationPort = Depends(get_notifier),
    current_user: AuthenticatedUser = Depends(require_roles(ORDER_MANAGERS))
):
    """
    Create an order with costed activities (ADMIN/SUPER_ADMIN/TEAM_LEADER only).

    Each activity is priced as of the order's scheduled date. If any activity
    cannot be priced the whole order is rejected and nothing is stored.

    Raises:
        HTTPException 400: If an activity has no applicable price
        HTTPException 404: If customer or an activity not found
        HTTPException 409: If order_number is already taken
    """
    try:
        order = OrderService.create_order(
            db,
            order_data,
            actor_id=current_user.id,
            notifier=notifier,
        )
    except PricingError as e:
        raise to_http_exception(e)

    return _order_response(db, order)


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: UUID,
    current_user: CurrentUser,
    db: Session = Depends(get_db),
):
    """
    Get an order with its active lines and total.

    Raises:
        HTTPException 404: If order not found
    """
    order = _get_visible_order(db, order_id, current_user)
    return _order_response(db, order)


@router.get("/{order_id}/activities", response_model=List[CustomerActivityResponse])
async def list_order_activities(
    order_id: UUID,
    current_user: CurrentUser,
    db: Session = Depends(get_db),
):
    """
    List an order's active lines with their price snapshots.

    Raises:
        HTTPException 404: If order not found
    """
    order = _get_visible_order(db, order_id, current_user)
    lines = OrderService.list_order_activities(db, order.id)
    return [CustomerActivityResponse.model_validate(line) for line in lines]


@router.post(
    "/{order_id}/activities",
    response_model=CustomerActivityResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_order_activity(
    order_id: UUID,
    line_data: OrderActivityInput,
    db: Session = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_roles(ORDER_MANAGERS))
):
    """
    Add a costed activity line to an existing order (ADMIN/SUPER_ADMIN/TEAM_LEADER only).

    Raises:
        HTTPException 400: If the activity has no applicable price
        HTTPException 404: If order or activity not found
    """
    try:
        line = OrderService.add_order_activity(
            db,
            order_id,
            line_data.activity_id,
            line_data.quantity,
            actor_id=current_user.id,
        )
    except PricingError as e:
        raise to_http_exception(e)

    return CustomerActivityResponse.model_validate(line)
