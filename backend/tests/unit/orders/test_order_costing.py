"""Unit tests for order creation and order line costing"""

import re
from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest
from sqlalchemy.exc import IntegrityError

from logiflow.models import CustomerActivity, Order
from logiflow.notifications.ports import (
    LoggingNotificationAdapter,
    NotificationPort,
    get_notifier,
    set_notifier,
)
from logiflow.orders.schemas import OrderActivityInput, OrderCreate
from logiflow.orders.service import OrderService, generate_order_number
from logiflow.pricing.errors import (
    ActivityNotFoundError,
    CustomerNotFoundError,
    NoPriceAvailableError,
    OrderNotFoundError,
    OrderNumberConflictError,
)
from logiflow.pricing.schemas import CustomerPriceCreate, CustomerPriceUpdate
from logiflow.pricing.service import PriceService


class RecordingNotifier(NotificationPort):
    def __init__(self):
        self.events = []

    def order_created(self, event):
        self.events.append(event)


class FailingNotifier(NotificationPort):
    def order_created(self, event):
        raise RuntimeError("queue unavailable")


def make_order(customer, *lines, scheduled_date=date(2024, 6, 1), **extra):
    return OrderCreate(
        customer_id=customer.id,
        scheduled_date=scheduled_date,
        activities=[OrderActivityInput(activity_id=a.id, quantity=q) for a, q in lines],
        **extra,
    )


@pytest.fixture
def loading_tier(db_session, acme, loading):
    """Acme pays 8.00 per hour of Loading for 1-10 hours from 2024-01-01."""
    return PriceService.create_price_tier(
        db_session,
        acme.id,
        CustomerPriceCreate(
            activity_id=loading.id,
            min_quantity=1,
            max_quantity=10,
            price=Decimal("8.00"),
            effective_from=date(2024, 1, 1),
        ),
    )


class TestCreateOrder:
    """Test costing of order lines"""

    def test_line_costed_from_tier(self, db_session, acme, loading, loading_tier):
        """Given tier 8.00, when ordering 3 hours, then the line total is 24.00"""
        order = OrderService.create_order(db_session, make_order(acme, (loading, 3)))

        lines = OrderService.list_order_activities(db_session, order.id)
        assert len(lines) == 1
        line = lines[0]
        assert line.unit_price == Decimal("8.00")
        assert line.line_total == Decimal("24.00")
        assert line.price_source == "customer"
        assert line.customer_price_id == loading_tier.id
        assert line.currency == "EUR"
        assert line.unit == "hour"
        assert line.base_price is None
        assert OrderService.order_total(db_session, order.id) == Decimal("24.00")

    def test_snapshot_survives_tier_change(self, db_session, acme, loading, loading_tier):
        """Given a costed line, when the tier price changes to 9.00, then the line keeps 8.00"""
        order = OrderService.create_order(db_session, make_order(acme, (loading, 3)))

        PriceService.update_price_tier(
            db_session, acme.id, loading_tier.id, CustomerPriceUpdate(price=Decimal("9.00"))
        )

        line = OrderService.list_order_activities(db_session, order.id)[0]
        assert line.unit_price == Decimal("8.00")
        assert line.line_total == Decimal("24.00")

        new_line = OrderService.add_order_activity(db_session, order.id, loading.id, quantity=3)
        assert new_line.unit_price == Decimal("9.00")
        assert new_line.line_total == Decimal("27.00")

    def test_priced_as_of_scheduled_date(self, db_session, acme, loading, loading_tier):
        """Given a tier from 2024-01-01, when the order is scheduled 2023-12-31, then default applies"""
        order = OrderService.create_order(
            db_session, make_order(acme, (loading, 2), scheduled_date=date(2023, 12, 31))
        )

        line = OrderService.list_order_activities(db_session, order.id)[0]
        assert line.price_source == "default"
        assert line.unit_price == Decimal("10.00")
        assert line.line_total == Decimal("20.00")

    def test_container_line_stores_base_price(self, db_session, acme, container_unloading):
        order = OrderService.create_order(db_session, make_order(acme, (container_unloading, 2)))

        line = OrderService.list_order_activities(db_session, order.id)[0]
        assert line.base_price == Decimal("150.00")
        assert line.line_total == Decimal("300.00")

    def test_unpriced_line_rolls_back_whole_order(self, db_session, acme, loading, unpriced_activity):
        """Given one line without any price, then no order and no lines are stored"""
        with pytest.raises(NoPriceAvailableError):
            OrderService.create_order(
                db_session, make_order(acme, (loading, 1), (unpriced_activity, 1))
            )

        assert db_session.query(Order).count() == 0
        assert db_session.query(CustomerActivity).count() == 0

    def test_unknown_activity_rolls_back(self, db_session, acme, loading):
        data = OrderCreate(
            customer_id=acme.id,
            scheduled_date=date(2024, 6, 1),
            activities=[
                OrderActivityInput(activity_id=loading.id, quantity=1),
                OrderActivityInput(activity_id=uuid4(), quantity=1),
            ],
        )

        with pytest.raises(ActivityNotFoundError):
            OrderService.create_order(db_session, data)

        assert db_session.query(Order).count() == 0

    def test_unknown_customer(self, db_session, loading):
        data = OrderCreate(customer_id=uuid4(), scheduled_date=date(2024, 6, 1))

        with pytest.raises(CustomerNotFoundError):
            OrderService.create_order(db_session, data)

    def test_duplicate_order_number(self, db_session, acme, loading):
        OrderService.create_order(db_session, make_order(acme, (loading, 1), order_number="ORD-1"))

        with pytest.raises(OrderNumberConflictError) as exc_info:
            OrderService.create_order(db_session, make_order(acme, (loading, 1), order_number="ORD-1"))

        assert exc_info.value.status_code == 409
        assert db_session.query(Order).count() == 1

    def test_order_number_taken_concurrently(self, db_session, acme, loading, loading_tier, monkeypatch):
        """Given another writer wins the order number, when the commit fails, then nothing is kept"""
        def commit():
            raise IntegrityError("INSERT INTO \"order\"", {}, Exception("uq_order_order_number"))

        monkeypatch.setattr(db_session, "commit", commit)

        with pytest.raises(OrderNumberConflictError):
            OrderService.create_order(db_session, make_order(acme, (loading, 2), order_number="ORD-RACE"))

        monkeypatch.undo()
        assert db_session.query(Order).count() == 0
        assert db_session.query(CustomerActivity).filter(CustomerActivity.order_id.isnot(None)).count() == 0

    def test_order_without_activities(self, db_session, acme):
        order = OrderService.create_order(
            db_session, OrderCreate(customer_id=acme.id, scheduled_date=date(2024, 6, 1))
        )

        assert OrderService.order_total(db_session, order.id) == Decimal("0.00")


class TestOrderNotification:
    """Test the post-commit notification hook"""

    def test_notifier_receives_event(self, db_session, acme, loading, loading_tier):
        notifier = RecordingNotifier()

        order = OrderService.create_order(
            db_session, make_order(acme, (loading, 3)), notifier=notifier
        )

        assert len(notifier.events) == 1
        event = notifier.events[0]
        assert event.order_id == order.id
        assert event.line_count == 1
        assert event.total == Decimal("24.00")

    def test_notifier_failure_keeps_order(self, db_session, acme, loading):
        """Given a failing notifier, when creating an order, then the order is still stored"""
        order = OrderService.create_order(
            db_session, make_order(acme, (loading, 1)), notifier=FailingNotifier()
        )

        assert db_session.query(Order).filter(Order.id == order.id).count() == 1

    def test_no_notification_on_failure(self, db_session, acme, unpriced_activity):
        notifier = RecordingNotifier()

        with pytest.raises(NoPriceAvailableError):
            OrderService.create_order(
                db_session, make_order(acme, (unpriced_activity, 1)), notifier=notifier
            )

        assert notifier.events == []

    def test_configured_notifier_is_injected(self):
        default = get_notifier()
        assert isinstance(default, LoggingNotificationAdapter)

        notifier = RecordingNotifier()
        set_notifier(notifier)
        try:
            assert get_notifier() is notifier
        finally:
            set_notifier(default)


class TestAddOrderActivity:
    def test_unknown_order(self, db_session, loading):
        with pytest.raises(OrderNotFoundError):
            OrderService.add_order_activity(db_session, uuid4(), loading.id)


class TestGenerateOrderNumber:
    def test_format(self):
        number = generate_order_number(date(2024, 6, 1))

        assert re.fullmatch(r"ORD-20240601-[0-9A-F]{6}", number)

    def test_numbers_differ(self):
        assert generate_order_number() != generate_order_number()
