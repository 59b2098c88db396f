"""Customer management API endpoints"""

import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select, func
from sqlalchemy.orm import Session

from ..audit.service import log_audit_event
from ..auth.dependencies import AuthenticatedUser, CurrentUser, require_roles
from ..auth.roles import PRICE_MANAGERS, UserRole
from ..database import get_db
from ..models.customer import Customer
from .schemas import (
    CustomerCreate,
    CustomerUpdate,
    CustomerResponse,
    CustomerListResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/customers", tags=["customers"])

# Contact fields that may be cleared with an explicit null
_CLEARABLE_FIELDS = {"email", "phone", "address"}


# ============================================================================
# Customer CRUD Endpoints
# ============================================================================

@router.post("", response_model=CustomerResponse, status_code=status.HTTP_201_CREATED)
async def create_customer(
    customer_data: CustomerCreate,
    db: Session = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_roles(PRICE_MANAGERS))
):
    """
    Create a new customer (ADMIN/SUPER_ADMIN only).

    Args:
        customer_data: Customer creation data
        db: Database session
        current_user: Authenticated user

    Returns:
        Created customer
    """
    customer = Customer(**customer_data.model_dump())
    db.add(customer)
    db.flush()

    log_audit_event(
        db=db,
        action="CUSTOMER_CREATED",
        actor_id=current_user.id,
        entity_type="customer",
        entity_id=customer.id,
        metadata={"company_name": customer.company_name},
    )
    db.commit()
    db.refresh(customer)

    logger.info(f"Customer created: {customer.company_name}", extra={"customer_id": customer.id})
    return CustomerResponse.model_validate(customer)


@router.get("", response_model=CustomerListResponse)
async def list_customers(
    current_user: CurrentUser,
    q: Optional[str] = Query(None, description="Search query for company name"),
    page: int = Query(1, ge=1, description="Page number"),
    per_page: int = Query(50, ge=1, le=100, description="Items per page"),
    db: Session = Depends(get_db),
):
    """
    List customers with pagination and search.

    CUSTOMER users only see their own customer.

    Args:
        q: Search query (matches company name)
        page: Page number (1-indexed)
        per_page: Items per page (max 100)
        db: Database session
        current_user: Authenticated user

    Returns:
        Paginated list of customers
    """
    stmt = select(Customer)

    if current_user.role == UserRole.CUSTOMER.value:
        stmt = stmt.where(Customer.id == current_user.customer_id)

    if q:
        stmt = stmt.where(Customer.company_name.ilike(f"%{q}%"))

    count_stmt = select(func.count()).select_from(stmt.subquery())
    total = db.execute(count_stmt).scalar()

    offset = (page - 1) * per_page
    stmt = stmt.order_by(Customer.company_name).offset(offset).limit(per_page)
    customers = db.execute(stmt).scalars().all()

    total_pages = (total + per_page - 1) // per_page if total > 0 else 0

    return CustomerListResponse(
        items=[CustomerResponse.model_validate(c) for c in customers],
        total=total,
        page=page,
        per_page=per_page,
        total_pages=total_pages
    )


@router.get("/{customer_id}", response_model=CustomerResponse)
async def get_customer(
    customer_id: UUID,
    current_user: CurrentUser,
    db: Session = Depends(get_db),
):
    """
    Get a single customer by ID.

    Raises:
        HTTPException 404: If customer not found or not visible to a CUSTOMER user
    """
    customer = db.execute(
        select(Customer).where(Customer.id == customer_id)
    ).scalar_one_or_none()

    if not customer or not current_user.can_access_customer(customer.id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Customer not found"
        )

    return CustomerResponse.model_validate(customer)


@router.patch("/{customer_id}", response_model=CustomerResponse)
async def update_customer(
    customer_id: UUID,
    customer_data: CustomerUpdate,
    db: Session = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_roles(PRICE_MANAGERS))
):
    """
    Update a customer (ADMIN/SUPER_ADMIN only).

    Raises:
        HTTPException 404: If customer not found
    """
    customer = db.execute(
        select(Customer).where(Customer.id == customer_id)
    ).scalar_one_or_none()

    if not customer:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Customer not found"
        )

    changes = {
        field: value
        for field, value in customer_data.model_dump(exclude_unset=True).items()
        if value is not None or field in _CLEARABLE_FIELDS
    }
    for field, value in changes.items():
        setattr(customer, field, value)

    log_audit_event(
        db=db,
        action="CUSTOMER_UPDATED",
        actor_id=current_user.id,
        entity_type="customer",
        entity_id=customer.id,
        metadata={"fields": sorted(changes)},
    )
    db.commit()
    db.refresh(customer)

    return CustomerResponse.model_validate(customer)
