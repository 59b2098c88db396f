"""Activity catalog and customer activity service

Activities are either global (customer_id NULL) or owned by one customer.
Customer activities are catalog entries (order_id NULL) carrying the price a
customer was offered; order lines are handled by the order service.
"""

import logging
from collections import OrderedDict
from datetime import date, datetime, time, timezone
from decimal import Decimal
from typing import Optional
from uuid import UUID

from sqlalchemy import func, or_
from sqlalchemy.orm import Session, joinedload

from ..audit.service import audit_metadata, log_audit_event
from ..config import get_settings
from ..models.activity import Activity
from ..models.customer_activity import CustomerActivity
from ..models.customer_price import CustomerPrice
from ..pricing.errors import ActivityNotFoundError, CustomerActivityNotFoundError
from ..pricing.money import line_total, quantize_money
from ..pricing.results import PRICE_SOURCE_DEFAULT
from ..pricing.service import PriceService
from .schemas import ActivityCreate, ActivityUpdate, CustomerActivityCreate

logger = logging.getLogger(__name__)

# Activity fields that may be cleared with an explicit null
_CLEARABLE_FIELDS = {"code", "description", "default_price"}


class ActivityService:
    """Service for activity catalog operations"""

    # ========================================================================
    # Activities
    # ========================================================================

    @staticmethod
    def list_activities(
        db: Session,
        customer_id: Optional[UUID] = None,
        include_inactive: bool = False,
    ) -> list[Activity]:
        """List activities ordered by name.

        Args:
            db: Database session
            customer_id: If given, only global activities and those owned by
                this customer
            include_inactive: Include deactivated activities

        Returns:
            List of Activity objects
        """
        query = db.query(Activity)
        if not include_inactive:
            query = query.filter(Activity.is_active.is_(True))
        if customer_id:
            query = query.filter(
                or_(Activity.customer_id.is_(None), Activity.customer_id == customer_id)
            )
        return query.order_by(Activity.name).all()

    @staticmethod
    def get_activity(db: Session, activity_id: UUID) -> Activity:
        """Load an activity by ID, active or not.

        Raises:
            ActivityNotFoundError: If it does not exist
        """
        activity = db.query(Activity).filter(Activity.id == activity_id).first()
        if not activity:
            raise ActivityNotFoundError(activity_id)
        return activity

    @staticmethod
    def create_activity(
        db: Session,
        data: ActivityCreate,
        actor_id: Optional[UUID] = None,
    ) -> Activity:
        """Create a global or customer-owned activity.

        Raises:
            CustomerNotFoundError: If customer_id is given but unknown
        """
        if data.customer_id:
            PriceService.get_customer(db, data.customer_id)

        values = data.model_dump()
        values["type"] = data.type.value
        activity = Activity(**values)
        db.add(activity)
        db.flush()

        log_audit_event(
            db=db,
            action="ACTIVITY_CREATED",
            actor_id=actor_id,
            entity_type="activity",
            entity_id=activity.id,
            metadata=audit_metadata(values),
        )
        db.commit()
        db.refresh(activity)

        logger.info(f"Activity created: {activity.name}", extra={"activity_id": activity.id})
        return activity

    @staticmethod
    def update_activity(
        db: Session,
        activity_id: UUID,
        data: ActivityUpdate,
        actor_id: Optional[UUID] = None,
    ) -> Activity:
        """Update an activity.

        Order line snapshots are never touched; a new default price only
        affects later resolutions.

        Raises:
            ActivityNotFoundError: If it does not exist
        """
        activity = ActivityService.get_activity(db, activity_id)

        changes = {
            field: value
            for field, value in data.model_dump(exclude_unset=True).items()
            if value is not None or field in _CLEARABLE_FIELDS
        }
        if "type" in changes:
            changes["type"] = changes["type"].value

        for field, value in changes.items():
            setattr(activity, field, value)

        log_audit_event(
            db=db,
            action="ACTIVITY_UPDATED",
            actor_id=actor_id,
            entity_type="activity",
            entity_id=activity.id,
            metadata=audit_metadata(changes),
        )
        db.commit()
        db.refresh(activity)
        return activity

    @staticmethod
    def deactivate_activity(
        db: Session,
        activity_id: UUID,
        actor_id: Optional[UUID] = None,
    ) -> Activity:
        """Soft-delete an activity (is_active = false).

        Raises:
            ActivityNotFoundError: If it does not exist
        """
        activity = ActivityService.get_activity(db, activity_id)
        activity.is_active = False

        log_audit_event(
            db=db,
            action="ACTIVITY_DEACTIVATED",
            actor_id=actor_id,
            entity_type="activity",
            entity_id=activity.id,
        )
        db.commit()
        db.refresh(activity)
        return activity

    # ========================================================================
    # Customer activities
    # ========================================================================

    @staticmethod
    def create_customer_activity(
        db: Session,
        data: CustomerActivityCreate,
        actor_id: Optional[UUID] = None,
    ) -> CustomerActivity:
        """Create a customer-owned activity and its catalog entry together.

        Both rows are written in one transaction. The catalog entry's
        unit_price is the activity's default price.

        Raises:
            CustomerNotFoundError: If the customer does not exist
        """
        PriceService.get_customer(db, data.customer_id)

        activity = Activity(
            customer_id=data.customer_id,
            name=data.name,
            code=data.code,
            description=data.description,
            type=data.type.value,
            unit=data.unit,
            default_price=quantize_money(data.default_price),
        )
        db.add(activity)
        db.flush()

        unit_price = quantize_money(data.default_price)
        customer_activity = CustomerActivity(
            customer_id=data.customer_id,
            activity_id=activity.id,
            quantity=1,
            unit_price=unit_price,
            line_total=line_total(unit_price, 1),
            base_price=unit_price if activity.is_container else None,
            currency=get_settings().DEFAULT_CURRENCY,
            unit=activity.unit,
            price_source=PRICE_SOURCE_DEFAULT,
        )
        db.add(customer_activity)
        db.flush()

        log_audit_event(
            db=db,
            action="CUSTOMER_ACTIVITY_CREATED",
            actor_id=actor_id,
            entity_type="customer_activity",
            entity_id=customer_activity.id,
            metadata=audit_metadata({"activity_id": activity.id, "name": activity.name, "unit_price": unit_price}),
        )
        db.commit()
        db.refresh(customer_activity)

        logger.info(
            f"Customer activity created: {activity.name}",
            extra={"customer_id": data.customer_id, "activity_id": activity.id},
        )
        return customer_activity

    @staticmethod
    def list_customer_catalog(db: Session, customer_id: UUID) -> list[CustomerActivity]:
        """List the customer's active general-catalog entries, newest first.

        Raises:
            CustomerNotFoundError: If the customer does not exist
        """
        PriceService.get_customer(db, customer_id)

        return (
            db.query(CustomerActivity)
            .options(joinedload(CustomerActivity.activity))
            .filter(
                CustomerActivity.customer_id == customer_id,
                CustomerActivity.order_id.is_(None),
                CustomerActivity.is_active.is_(True),
            )
            .order_by(CustomerActivity.created_at.desc())
            .all()
        )

    @staticmethod
    def available_activities(
        db: Session,
        customer_id: UUID,
        as_of: Optional[date] = None,
    ) -> list[tuple[Activity, list[CustomerPrice]]]:
        """List activities the customer has at least one valid tier for.

        Args:
            db: Database session
            customer_id: Customer ID
            as_of: Reference date (default: today)

        Returns:
            (activity, tiers) pairs ordered by activity name, tiers ordered by
            min_quantity

        Raises:
            CustomerNotFoundError: If the customer does not exist
        """
        PriceService.get_customer(db, customer_id)
        ref_date = as_of or date.today()

        rows = (
            db.query(Activity, CustomerPrice)
            .join(CustomerPrice, CustomerPrice.activity_id == Activity.id)
            .filter(
                Activity.is_active.is_(True),
                or_(Activity.customer_id.is_(None), Activity.customer_id == customer_id),
                CustomerPrice.customer_id == customer_id,
                CustomerPrice.is_active.is_(True),
                CustomerPrice.effective_from <= ref_date,
                or_(
                    CustomerPrice.effective_to.is_(None),
                    CustomerPrice.effective_to >= ref_date,
                ),
            )
            .order_by(Activity.name, Activity.id, CustomerPrice.min_quantity)
            .all()
        )

        grouped: "OrderedDict[UUID, tuple[Activity, list[CustomerPrice]]]" = OrderedDict()
        for activity, price in rows:
            grouped.setdefault(activity.id, (activity, []))[1].append(price)
        return list(grouped.values())

    @staticmethod
    def deactivate_customer_activity(
        db: Session,
        customer_id: UUID,
        customer_activity_id: UUID,
        actor_id: Optional[UUID] = None,
    ) -> CustomerActivity:
        """Soft-delete a customer activity owned by the given customer.

        Raises:
            CustomerActivityNotFoundError: Missing or owned by another customer
        """
        customer_activity = db.query(CustomerActivity).filter(
            CustomerActivity.id == customer_activity_id,
            CustomerActivity.customer_id == customer_id,
        ).first()
        if not customer_activity:
            raise CustomerActivityNotFoundError(customer_activity_id)

        customer_activity.is_active = False
        log_audit_event(
            db=db,
            action="CUSTOMER_ACTIVITY_DEACTIVATED",
            actor_id=actor_id,
            entity_type="customer_activity",
            entity_id=customer_activity.id,
        )
        db.commit()
        db.refresh(customer_activity)
        return customer_activity

    @staticmethod
    def activity_statistics(
        db: Session,
        customer_id: UUID,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[dict]:
        """Aggregate a customer's active activity rows per activity.

        Args:
            db: Database session
            customer_id: Customer ID
            start_date: Only rows created on or after this day (UTC)
            end_date: Only rows created on or before this day (UTC)

        Returns:
            One dict per activity with total_quantity, total_amount and count,
            ordered by activity name

        Raises:
            CustomerNotFoundError: If the customer does not exist
        """
        PriceService.get_customer(db, customer_id)

        query = (
            db.query(
                CustomerActivity.activity_id,
                Activity.name,
                func.sum(CustomerActivity.quantity),
                func.sum(CustomerActivity.line_total),
                func.count(CustomerActivity.id),
            )
            .join(Activity, Activity.id == CustomerActivity.activity_id)
            .filter(
                CustomerActivity.customer_id == customer_id,
                CustomerActivity.is_active.is_(True),
            )
        )
        if start_date:
            query = query.filter(
                CustomerActivity.created_at >= datetime.combine(start_date, time.min, tzinfo=timezone.utc)
            )
        if end_date:
            query = query.filter(
                CustomerActivity.created_at <= datetime.combine(end_date, time.max, tzinfo=timezone.utc)
            )

        rows = query.group_by(CustomerActivity.activity_id, Activity.name).order_by(Activity.name).all()

        return [
            {
                "activity_id": activity_id,
                "activity_name": name,
                "total_quantity": int(total_quantity or 0),
                "total_amount": quantize_money(total_amount if total_amount is not None else Decimal("0")),
                "count": count,
            }
            for activity_id, name, total_quantity, total_amount, count in rows
        ]
