"""Order activity costing service

Each activity attached to an order is priced for the order's customer as of
the order's scheduled date. The resolved unit price and line total are stored
on the CustomerActivity row and never recomputed afterwards.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from ..audit.service import audit_metadata, log_audit_event
from ..models.activity import Activity
from ..models.customer_activity import CustomerActivity
from ..models.order import Order
from ..notifications.ports import NotificationPort, OrderCreatedEvent
from ..observability.metrics import order_lines_costed_total, order_costing_failures_total
from ..pricing.errors import OrderNotFoundError, OrderNumberConflictError, PricingError
from ..pricing.money import line_total, sum_money
from ..pricing.service import PriceService
from .schemas import OrderCreate

logger = logging.getLogger(__name__)


def generate_order_number(today: Optional[date] = None) -> str:
    """Generate an order number of the form ORD-YYYYMMDD-XXXXXX."""
    today = today or date.today()
    return f"ORD-{today:%Y%m%d}-{uuid4().hex[:6].upper()}"


class OrderService:
    """Service for order creation and order line costing"""

    @staticmethod
    def _cost_line(db: Session, order: Order, activity_id: UUID, quantity: int) -> CustomerActivity:
        """Resolve the price for one line and build its snapshot row."""
        result = PriceService.get_price_for_customer(
            db,
            customer_id=order.customer_id,
            activity_id=activity_id,
            quantity=quantity,
            as_of=order.scheduled_date,
        )
        activity = db.query(Activity).filter(Activity.id == activity_id).one()

        line = CustomerActivity(
            customer_id=order.customer_id,
            activity_id=activity_id,
            order_id=order.id,
            customer_price_id=result.price_id,
            quantity=quantity,
            unit_price=result.price,
            line_total=line_total(result.price, quantity),
            base_price=result.price if activity.is_container else None,
            currency=result.currency,
            unit=result.unit,
            price_source=result.source,
        )
        db.add(line)
        db.flush()

        order_lines_costed_total.labels(source=result.source).inc()
        return line

    @staticmethod
    def create_order(
        db: Session,
        data: OrderCreate,
        actor_id: Optional[UUID] = None,
        notifier: Optional[NotificationPort] = None,
    ) -> Order:
        """Create an order and cost all of its activities in one transaction.

        If any line cannot be priced, nothing is persisted.

        Args:
            db: Database session
            data: Order payload with activity lines
            actor_id: User creating the order (for the audit log)
            notifier: Notification port told about the order after commit

        Returns:
            Created Order object

        Raises:
            CustomerNotFoundError: Unknown customer
            OrderNumberConflictError: order_number already in use, also when a
                concurrent insert takes it first
            ActivityNotFoundError: A line references an unknown activity
            NoPriceAvailableError: A line has no tier and no default price
        """
        try:
            PriceService.get_customer(db, data.customer_id)

            order_number = data.order_number or generate_order_number()
            if db.query(Order.id).filter(Order.order_number == order_number).first():
                raise OrderNumberConflictError(order_number)

            order = Order(
                order_number=order_number,
                customer_id=data.customer_id,
                scheduled_date=data.scheduled_date,
                description=data.description,
                status=data.status.value,
            )
            db.add(order)
            db.flush()

            lines = [
                OrderService._cost_line(db, order, item.activity_id, item.quantity)
                for item in data.activities
            ]
            total = sum_money(line.line_total for line in lines)

            log_audit_event(
                db=db,
                action="ORDER_CREATED",
                actor_id=actor_id,
                entity_type="order",
                entity_id=order.id,
                metadata=audit_metadata({
                    "order_number": order.order_number,
                    "lines": len(lines),
                    "total": total,
                }),
            )
            db.commit()
        except PricingError as e:
            db.rollback()
            order_costing_failures_total.inc()
            logger.warning(
                f"Order creation rolled back: {e.message}",
                extra={"customer_id": data.customer_id},
            )
            raise
        except IntegrityError:
            db.rollback()
            logger.warning(
                f"Order creation rolled back: order number {order_number} taken concurrently",
                extra={"customer_id": data.customer_id},
            )
            raise OrderNumberConflictError(order_number)

        db.refresh(order)
        logger.info(
            f"Order {order.order_number} created with {len(lines)} costed activities",
            extra={"order_id": order.id, "customer_id": order.customer_id},
        )

        if notifier is not None:
            try:
                notifier.order_created(OrderCreatedEvent(
                    order_id=order.id,
                    order_number=order.order_number,
                    customer_id=order.customer_id,
                    scheduled_date=order.scheduled_date,
                    line_count=len(lines),
                    total=total,
                ))
            except Exception:
                logger.exception(
                    "Order notification failed",
                    extra={"order_id": order.id},
                )

        return order

    @staticmethod
    def add_order_activity(
        db: Session,
        order_id: UUID,
        activity_id: UUID,
        quantity: int = 1,
        actor_id: Optional[UUID] = None,
    ) -> CustomerActivity:
        """Cost one more activity line on an existing order.

        The reference date is the order's scheduled date, not today.

        Raises:
            OrderNotFoundError: Unknown order
            ActivityNotFoundError, NoPriceAvailableError: as for create_order
        """
        try:
            order = OrderService.get_order(db, order_id)
            line = OrderService._cost_line(db, order, activity_id, quantity)

            log_audit_event(
                db=db,
                action="ORDER_ACTIVITY_ADDED",
                actor_id=actor_id,
                entity_type="order",
                entity_id=order.id,
                metadata=audit_metadata({
                    "customer_activity_id": line.id,
                    "activity_id": activity_id,
                    "quantity": quantity,
                    "line_total": line.line_total,
                }),
            )
            db.commit()
        except PricingError:
            db.rollback()
            raise

        db.refresh(line)
        return line

    @staticmethod
    def get_order(db: Session, order_id: UUID) -> Order:
        """Load an order or raise OrderNotFoundError."""
        order = db.query(Order).filter(Order.id == order_id).first()
        if not order:
            raise OrderNotFoundError(order_id)
        return order

    @staticmethod
    def list_order_activities(db: Session, order_id: UUID) -> list[CustomerActivity]:
        """List an order's active lines in creation order.

        Raises:
            OrderNotFoundError: Unknown order
        """
        OrderService.get_order(db, order_id)
        return (
            db.query(CustomerActivity)
            .options(joinedload(CustomerActivity.activity))
            .filter(
                CustomerActivity.order_id == order_id,
                CustomerActivity.is_active.is_(True),
            )
            .order_by(CustomerActivity.created_at)
            .all()
        )

    @staticmethod
    def order_total(db: Session, order_id: UUID) -> Decimal:
        """Sum of the line totals of an order's active lines.

        Raises:
            OrderNotFoundError: Unknown order
        """
        lines = OrderService.list_order_activities(db, order_id)
        return sum_money(line.line_total for line in lines if line.line_total is not None)
