"""Price resolution and tier management for customer-specific pricing

This service implements:
- Price resolution for (customer, activity) by quantity tier and validity date,
  falling back to the activity's default price
- Overlap prevention between active price tiers
- Tier CRUD, serialized per customer by a row lock on the customer
"""

import logging
from datetime import date, datetime
from typing import Any, Optional
from uuid import UUID

from sqlalchemy import and_, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from ..audit.service import audit_metadata, log_audit_event
from ..config import get_settings
from ..models.activity import Activity
from ..models.customer import Customer
from ..models.customer_price import CustomerPrice
from ..observability.metrics import (
    price_resolutions_total,
    price_resolution_duration_seconds,
    price_tier_changes_total,
    price_tier_overlap_rejections_total,
)
from .errors import (
    ActivityNotFoundError,
    CustomerNotFoundError,
    InvalidPriceTierError,
    NoPriceAvailableError,
    PriceNotFoundError,
    PriceTierConflictError,
    PriceTierOverlapError,
    PricingError,
)
from .money import line_total, quantize_money
from .results import (
    PRICE_SOURCE_CUSTOMER,
    PRICE_SOURCE_DEFAULT,
    PriceQuote,
    PriceResult,
    TierRange,
)
from .schemas import CustomerPriceCreate, CustomerPriceUpdate

logger = logging.getLogger(__name__)

# Fields whose change can move a tier into another tier's range or window
_OVERLAP_FIELDS = {"min_quantity", "max_quantity", "effective_from", "effective_to", "is_active"}

# Fields that may be explicitly set to null on update
_NULLABLE_FIELDS = {"effective_to"}


def _reference_date(as_of: Optional[date]) -> date:
    if as_of is None:
        return date.today()
    if isinstance(as_of, datetime):
        return as_of.date()
    return as_of


def _validate_quantity(quantity: Any) -> None:
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
        raise InvalidPriceTierError("Quantity must be a positive integer")


def _check_tier_fields(
    min_quantity: int,
    max_quantity: int,
    effective_from: date,
    effective_to: Optional[date],
) -> None:
    if min_quantity < 1:
        raise InvalidPriceTierError("min_quantity must be at least 1")
    if min_quantity > max_quantity:
        raise InvalidPriceTierError("min_quantity cannot be greater than max_quantity")
    if effective_to is not None and effective_to < effective_from:
        raise InvalidPriceTierError("effective_to cannot be before effective_from")


class PriceService:
    """Service for customer price operations"""

    # ========================================================================
    # Lookups
    # ========================================================================

    @staticmethod
    def get_customer(db: Session, customer_id: UUID) -> Customer:
        """Load a customer or raise CustomerNotFoundError."""
        customer = db.query(Customer).filter(Customer.id == customer_id).first()
        if not customer:
            raise CustomerNotFoundError(customer_id)
        return customer

    @staticmethod
    def lock_customer(db: Session, customer_id: UUID) -> Customer:
        """Lock the customer row for the rest of the transaction.

        All tier writes for a customer take this lock before validating, so
        two concurrent writers cannot both pass overlap validation. Backends
        without row locks (SQLite) ignore FOR UPDATE.

        Raises:
            CustomerNotFoundError: If the customer does not exist
        """
        customer = (
            db.query(Customer)
            .filter(Customer.id == customer_id)
            .with_for_update()
            .first()
        )
        if not customer:
            raise CustomerNotFoundError(customer_id)
        return customer

    @staticmethod
    def get_priceable_activity(db: Session, activity_id: UUID, customer_id: UUID) -> Activity:
        """Load an activity that can be priced for the given customer.

        An activity is priceable when it is active and either global
        (customer_id NULL) or owned by this customer.

        Raises:
            ActivityNotFoundError: If no such activity exists
        """
        activity = (
            db.query(Activity)
            .filter(
                Activity.id == activity_id,
                Activity.is_active.is_(True),
                or_(Activity.customer_id.is_(None), Activity.customer_id == customer_id),
            )
            .first()
        )
        if not activity:
            raise ActivityNotFoundError(activity_id)
        return activity

    # ========================================================================
    # Resolution
    # ========================================================================

    @staticmethod
    def get_price_for_customer(
        db: Session,
        customer_id: UUID,
        activity_id: UUID,
        quantity: Optional[int] = None,
        as_of: Optional[date] = None,
    ) -> PriceResult:
        """Resolve the unit price a customer pays for an activity.

        Algorithm:
        1. Load the activity (must be priceable for the customer)
        2. Filter active tiers of (customer, activity) valid on the reference
           date; both validity bounds are inclusive
        3. If a quantity is given, keep tiers with min_quantity <= quantity <= max_quantity
        4. Order by effective_from DESC, created_at DESC, id DESC and take the first
        5. Without a tier, fall back to the activity's default price

        Args:
            db: Database session
            customer_id: Customer ID
            activity_id: Activity ID
            quantity: Ordered quantity (optional, positive integer)
            as_of: Reference date (default: today)

        Returns:
            PriceResult tagged with source "customer" or "default"

        Raises:
            ActivityNotFoundError: Unknown, inactive or foreign activity
            InvalidPriceTierError: Quantity is not a positive integer
            NoPriceAvailableError: No matching tier and no default price
        """
        with price_resolution_duration_seconds.time():
            activity = PriceService.get_priceable_activity(db, activity_id, customer_id)
            if quantity is not None:
                _validate_quantity(quantity)
            ref_date = _reference_date(as_of)

            query = db.query(CustomerPrice).filter(
                and_(
                    CustomerPrice.customer_id == customer_id,
                    CustomerPrice.activity_id == activity_id,
                    CustomerPrice.is_active.is_(True),
                    CustomerPrice.effective_from <= ref_date,
                    or_(
                        CustomerPrice.effective_to.is_(None),
                        CustomerPrice.effective_to >= ref_date,
                    ),
                )
            )
            if quantity is not None:
                query = query.filter(
                    CustomerPrice.min_quantity <= quantity,
                    CustomerPrice.max_quantity >= quantity,
                )

            tier = query.order_by(
                CustomerPrice.effective_from.desc(),
                CustomerPrice.created_at.desc(),
                CustomerPrice.id.desc(),
            ).first()

            if tier is not None:
                price_resolutions_total.labels(source=PRICE_SOURCE_CUSTOMER).inc()
                return PriceResult(
                    price=quantize_money(tier.price),
                    currency=tier.currency,
                    source=PRICE_SOURCE_CUSTOMER,
                    activity_id=activity.id,
                    unit=activity.unit,
                    reference_date=ref_date,
                    tier=TierRange(tier.min_quantity, tier.max_quantity),
                    price_id=tier.id,
                )

            if activity.default_price is None:
                price_resolutions_total.labels(source="unavailable").inc()
                logger.warning(
                    f"No price available for activity {activity_id}",
                    extra={"customer_id": customer_id, "activity_id": activity_id},
                )
                raise NoPriceAvailableError(activity_id)

            price_resolutions_total.labels(source=PRICE_SOURCE_DEFAULT).inc()
            return PriceResult(
                price=quantize_money(activity.default_price),
                currency=get_settings().DEFAULT_CURRENCY,
                source=PRICE_SOURCE_DEFAULT,
                activity_id=activity.id,
                unit=activity.unit,
                reference_date=ref_date,
            )

    @staticmethod
    def calculate_price(
        db: Session,
        customer_id: UUID,
        activity_id: UUID,
        quantity: int = 1,
        as_of: Optional[date] = None,
    ) -> PriceQuote:
        """Quote unit price and line total without persisting anything.

        Args:
            db: Database session
            customer_id: Customer ID
            activity_id: Activity ID
            quantity: Quantity to quote (default 1)
            as_of: Reference date, e.g. the order's scheduled date (default: today)

        Returns:
            PriceQuote with line_total = unit_price x quantity

        Raises:
            CustomerNotFoundError: Unknown customer
            ActivityNotFoundError, InvalidPriceTierError, NoPriceAvailableError:
                as for get_price_for_customer
        """
        PriceService.get_customer(db, customer_id)
        _validate_quantity(quantity)
        result = PriceService.get_price_for_customer(db, customer_id, activity_id, quantity, as_of)

        return PriceQuote(
            unit_price=result.price,
            currency=result.currency,
            quantity=quantity,
            line_total=line_total(result.price, quantity),
            unit=result.unit,
            source=result.source,
            activity_id=result.activity_id,
            reference_date=result.reference_date,
            tier=result.tier,
            price_id=result.price_id,
        )

    # ========================================================================
    # Overlap validation
    # ========================================================================

    @staticmethod
    def validate_price_tier_overlap(
        db: Session,
        customer_id: UUID,
        activity_id: UUID,
        min_quantity: int,
        max_quantity: int,
        effective_from: date,
        effective_to: Optional[date] = None,
        exclude_id: Optional[UUID] = None,
    ) -> bool:
        """Check that a tier does not intersect any other active tier.

        A conflict requires both the quantity ranges and the validity windows
        to intersect. All bounds are closed and a NULL effective_to is
        open-ended, so the check is symmetric: an existing tier inside the new
        one conflicts as much as the new one inside an existing tier.

        Args:
            db: Database session
            customer_id: Customer ID
            activity_id: Activity ID
            min_quantity: Lower quantity bound of the candidate tier
            max_quantity: Upper quantity bound of the candidate tier
            effective_from: First valid day of the candidate tier
            effective_to: Last valid day, or None for open-ended
            exclude_id: Tier to ignore (the tier being updated)

        Returns:
            True if no conflict exists, False otherwise

        Raises:
            InvalidPriceTierError: If min_quantity > max_quantity
        """
        if min_quantity > max_quantity:
            raise InvalidPriceTierError("min_quantity cannot be greater than max_quantity")

        query = PriceService._overlapping_window_query(
            db, customer_id, activity_id, effective_from, effective_to, exclude_id
        ).filter(
            CustomerPrice.min_quantity <= max_quantity,
            CustomerPrice.max_quantity >= min_quantity,
        )

        return query.first() is None

    @staticmethod
    def validate_price_overlap(
        db: Session,
        customer_id: UUID,
        activity_id: UUID,
        effective_from: date,
        effective_to: Optional[date] = None,
        exclude_id: Optional[UUID] = None,
    ) -> bool:
        """Date-only variant of validate_price_tier_overlap.

        Ignores quantity ranges: any active tier whose validity window
        intersects [effective_from, effective_to] is a conflict.

        Returns:
            True if no conflict exists, False otherwise
        """
        query = PriceService._overlapping_window_query(
            db, customer_id, activity_id, effective_from, effective_to, exclude_id
        )
        return query.first() is None

    @staticmethod
    def _overlapping_window_query(
        db: Session,
        customer_id: UUID,
        activity_id: UUID,
        effective_from: date,
        effective_to: Optional[date],
        exclude_id: Optional[UUID],
    ):
        query = db.query(CustomerPrice).filter(
            CustomerPrice.customer_id == customer_id,
            CustomerPrice.activity_id == activity_id,
            CustomerPrice.is_active.is_(True),
            # existing.effective_to (NULL = +inf) >= new.effective_from
            or_(
                CustomerPrice.effective_to.is_(None),
                CustomerPrice.effective_to >= effective_from,
            ),
        )
        # existing.effective_from <= new.effective_to (NULL = +inf)
        if effective_to is not None:
            query = query.filter(CustomerPrice.effective_from <= effective_to)
        if exclude_id is not None:
            query = query.filter(CustomerPrice.id != exclude_id)
        return query

    # ========================================================================
    # Tier management
    # ========================================================================

    @staticmethod
    def get_customer_prices(
        db: Session,
        customer_id: UUID,
        activity_id: Optional[UUID] = None,
    ) -> list[CustomerPrice]:
        """List a customer's price tiers.

        Args:
            db: Database session
            customer_id: Customer ID
            activity_id: Optional activity filter

        Returns:
            Tiers ordered by effective_from DESC, min_quantity ASC

        Raises:
            CustomerNotFoundError: Unknown customer
        """
        PriceService.get_customer(db, customer_id)

        query = (
            db.query(CustomerPrice)
            .options(joinedload(CustomerPrice.activity))
            .filter(CustomerPrice.customer_id == customer_id)
        )
        if activity_id:
            query = query.filter(CustomerPrice.activity_id == activity_id)

        return query.order_by(
            CustomerPrice.effective_from.desc(),
            CustomerPrice.min_quantity.asc(),
        ).all()

    @staticmethod
    def create_price_tier(
        db: Session,
        customer_id: UUID,
        data: CustomerPriceCreate,
        actor_id: Optional[UUID] = None,
    ) -> CustomerPrice:
        """Create a price tier after validating it against existing tiers.

        Validation and insert run in one transaction under the customer row
        lock. Inactive tiers are stored without overlap validation.

        Args:
            db: Database session
            customer_id: Customer ID
            data: Validated tier payload
            actor_id: User performing the change (for the audit log)

        Returns:
            Created CustomerPrice object

        Raises:
            CustomerNotFoundError: Unknown customer
            ActivityNotFoundError: Unknown or foreign activity
            InvalidPriceTierError: min > max or effective_to < effective_from
            PriceTierOverlapError: Overlaps an existing active tier
            PriceTierConflictError: Rejected by the database constraint at commit
        """
        try:
            PriceService.lock_customer(db, customer_id)
            PriceService.get_priceable_activity(db, data.activity_id, customer_id)
            _check_tier_fields(
                data.min_quantity, data.max_quantity, data.effective_from, data.effective_to
            )

            if data.is_active and not PriceService.validate_price_tier_overlap(
                db,
                customer_id,
                data.activity_id,
                data.min_quantity,
                data.max_quantity,
                data.effective_from,
                data.effective_to,
            ):
                price_tier_overlap_rejections_total.labels(stage="validation").inc()
                logger.info(
                    "Price tier rejected: overlaps existing tier",
                    extra={"customer_id": customer_id, "activity_id": data.activity_id},
                )
                raise PriceTierOverlapError()

            price = CustomerPrice(
                customer_id=customer_id,
                activity_id=data.activity_id,
                min_quantity=data.min_quantity,
                max_quantity=data.max_quantity,
                price=quantize_money(data.price),
                currency=data.currency,
                effective_from=data.effective_from,
                effective_to=data.effective_to,
                is_active=data.is_active,
            )
            db.add(price)
            db.flush()

            log_audit_event(
                db=db,
                action="PRICE_TIER_CREATED",
                actor_id=actor_id,
                entity_type="customer_price",
                entity_id=price.id,
                metadata=audit_metadata(data.model_dump()),
            )
            db.commit()
        except PricingError:
            db.rollback()
            raise
        except IntegrityError:
            db.rollback()
            price_tier_overlap_rejections_total.labels(stage="constraint").inc()
            logger.warning(
                "Price tier rejected by database constraint",
                extra={"customer_id": customer_id, "activity_id": data.activity_id},
            )
            raise PriceTierConflictError()

        db.refresh(price)
        price_tier_changes_total.labels(action="created").inc()
        logger.info(
            "Price tier created",
            extra={"customer_id": customer_id, "activity_id": price.activity_id, "price_id": price.id},
        )
        return price

    @staticmethod
    def update_price_tier(
        db: Session,
        customer_id: UUID,
        price_id: UUID,
        data: CustomerPriceUpdate,
        actor_id: Optional[UUID] = None,
    ) -> CustomerPrice:
        """Apply a partial update to a price tier.

        Only fields present in the payload are applied. Overlap is re-validated
        (excluding the tier itself) when the quantity range, validity window
        or active flag changes and the resulting tier is active.

        Args:
            db: Database session
            customer_id: Customer ID the tier must belong to
            price_id: Tier ID
            data: Partial tier payload
            actor_id: User performing the change (for the audit log)

        Returns:
            Updated CustomerPrice object

        Raises:
            PriceNotFoundError: Tier missing or owned by another customer
            InvalidPriceTierError: Merged tier has min > max, effective_to <
                effective_from, or a required field set to null
            PriceTierOverlapError: Merged tier overlaps another active tier
            PriceTierConflictError: Rejected by the database constraint at commit
        """
        changes = data.model_dump(exclude_unset=True)

        try:
            customer = db.query(Customer).filter(Customer.id == customer_id).with_for_update().first()
            price = None
            if customer is not None:
                price = db.query(CustomerPrice).filter(
                    CustomerPrice.id == price_id,
                    CustomerPrice.customer_id == customer_id,
                ).first()
            if price is None:
                raise PriceNotFoundError(price_id)

            for field, value in changes.items():
                if value is None and field not in _NULLABLE_FIELDS:
                    raise InvalidPriceTierError(f"{field} cannot be null")

            merged = {
                field: changes.get(field, getattr(price, field))
                for field in ("min_quantity", "max_quantity", "effective_from", "effective_to", "is_active")
            }
            _check_tier_fields(
                merged["min_quantity"],
                merged["max_quantity"],
                merged["effective_from"],
                merged["effective_to"],
            )

            if (
                merged["is_active"]
                and _OVERLAP_FIELDS.intersection(changes)
                and not PriceService.validate_price_tier_overlap(
                    db,
                    customer_id,
                    price.activity_id,
                    merged["min_quantity"],
                    merged["max_quantity"],
                    merged["effective_from"],
                    merged["effective_to"],
                    exclude_id=price.id,
                )
            ):
                price_tier_overlap_rejections_total.labels(stage="validation").inc()
                logger.info(
                    "Price tier update rejected: overlaps existing tier",
                    extra={"customer_id": customer_id, "price_id": price_id},
                )
                raise PriceTierOverlapError()

            for field, value in changes.items():
                if field == "price":
                    value = quantize_money(value)
                setattr(price, field, value)

            log_audit_event(
                db=db,
                action="PRICE_TIER_UPDATED",
                actor_id=actor_id,
                entity_type="customer_price",
                entity_id=price.id,
                metadata=audit_metadata(changes),
            )
            db.commit()
        except PricingError:
            db.rollback()
            raise
        except IntegrityError:
            db.rollback()
            price_tier_overlap_rejections_total.labels(stage="constraint").inc()
            logger.warning(
                "Price tier update rejected by database constraint",
                extra={"customer_id": customer_id, "price_id": price_id},
            )
            raise PriceTierConflictError()

        db.refresh(price)
        price_tier_changes_total.labels(action="updated").inc()
        logger.info("Price tier updated", extra={"customer_id": customer_id, "price_id": price_id})
        return price

    @staticmethod
    def delete_price_tier(
        db: Session,
        customer_id: UUID,
        price_id: UUID,
        actor_id: Optional[UUID] = None,
    ) -> None:
        """Hard-delete a price tier.

        Order lines that were costed with this tier keep their snapshot; their
        customer_price_id reference is cleared by the database.

        Raises:
            PriceNotFoundError: Tier missing or owned by another customer
        """
        try:
            customer = db.query(Customer).filter(Customer.id == customer_id).with_for_update().first()
            price = None
            if customer is not None:
                price = db.query(CustomerPrice).filter(
                    CustomerPrice.id == price_id,
                    CustomerPrice.customer_id == customer_id,
                ).first()
            if price is None:
                raise PriceNotFoundError(price_id)

            log_audit_event(
                db=db,
                action="PRICE_TIER_DELETED",
                actor_id=actor_id,
                entity_type="customer_price",
                entity_id=price.id,
                metadata=audit_metadata({
                    "activity_id": price.activity_id,
                    "min_quantity": price.min_quantity,
                    "max_quantity": price.max_quantity,
                    "price": price.price,
                }),
            )
            db.delete(price)
            db.commit()
        except PricingError:
            db.rollback()
            raise

        price_tier_changes_total.labels(action="deleted").inc()
        logger.info("Price tier deleted", extra={"customer_id": customer_id, "price_id": price_id})
