"""Unit tests for customer price resolution

Tests cover:
- Tier selection by quantity and validity date (inclusive bounds)
- Fallback to the activity default price
- Deterministic choice when several tiers match
- Activity visibility (global vs. customer-owned, inactive)
"""

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from uuid import uuid4

import pytest

from logiflow.models import Activity, CustomerPrice
from logiflow.pricing.errors import (
    ActivityNotFoundError,
    CustomerNotFoundError,
    InvalidPriceTierError,
    NoPriceAvailableError,
)
from logiflow.pricing.schemas import CustomerPriceCreate
from logiflow.pricing.service import PriceService


def add_tier(db, customer, activity, **overrides):
    values = {
        "activity_id": activity.id,
        "min_quantity": 1,
        "max_quantity": 10,
        "price": Decimal("8.00"),
        "effective_from": date(2024, 1, 1),
    }
    values.update(overrides)
    return PriceService.create_price_tier(db, customer.id, CustomerPriceCreate(**values))


class TestDefaultPrice:
    """Test fallback to the activity's default price"""

    def test_no_tier_uses_default_price(self, db_session, acme, loading):
        """Given no tiers for Acme/Loading, when resolving, then default 10.00 is used"""
        result = PriceService.get_price_for_customer(
            db_session, acme.id, loading.id, quantity=3, as_of=date(2024, 6, 1)
        )

        assert result.price == Decimal("10.00")
        assert result.source == "default"
        assert result.currency == "EUR"
        assert result.unit == "hour"
        assert result.tier is None
        assert result.price_id is None

    def test_no_tier_and_no_default_raises(self, db_session, acme, unpriced_activity):
        """Given no tiers and no default price, then NoPriceAvailableError is raised"""
        with pytest.raises(NoPriceAvailableError) as exc_info:
            PriceService.get_price_for_customer(db_session, acme.id, unpriced_activity.id, quantity=1)

        assert exc_info.value.status_code == 400
        assert str(unpriced_activity.id) in exc_info.value.message

    def test_tier_for_other_quantity_falls_back_to_default(self, db_session, acme, loading):
        """Given a 1-10 tier, when resolving quantity 11, then the default price is used"""
        add_tier(db_session, acme, loading)

        result = PriceService.get_price_for_customer(
            db_session, acme.id, loading.id, quantity=11, as_of=date(2024, 6, 1)
        )

        assert result.source == "default"
        assert result.price == Decimal("10.00")


class TestTierSelection:
    """Test selection of the applicable tier"""

    def test_tier_applies_within_range_and_window(self, db_session, acme, loading):
        """Given tier 1-10 at 8.00 from 2024-01-01, when resolving qty 3 on 2024-06-01, then 8.00"""
        tier = add_tier(db_session, acme, loading)

        result = PriceService.get_price_for_customer(
            db_session, acme.id, loading.id, quantity=3, as_of=date(2024, 6, 1)
        )

        assert result.price == Decimal("8.00")
        assert result.source == "customer"
        assert result.price_id == tier.id
        assert result.tier.min_quantity == 1
        assert result.tier.max_quantity == 10

    @pytest.mark.parametrize("quantity", [5, 10])
    def test_quantity_bounds_are_inclusive(self, db_session, acme, loading, quantity):
        add_tier(db_session, acme, loading, min_quantity=5, max_quantity=10)

        result = PriceService.get_price_for_customer(
            db_session, acme.id, loading.id, quantity=quantity, as_of=date(2024, 6, 1)
        )

        assert result.source == "customer"

    @pytest.mark.parametrize("as_of", [date(2024, 1, 1), date(2024, 3, 31)])
    def test_date_bounds_are_inclusive(self, db_session, acme, loading, as_of):
        """Given a tier valid 2024-01-01..2024-03-31, then both bound days use the tier"""
        add_tier(db_session, acme, loading, effective_to=date(2024, 3, 31))

        result = PriceService.get_price_for_customer(
            db_session, acme.id, loading.id, quantity=1, as_of=as_of
        )

        assert result.price == Decimal("8.00")

    @pytest.mark.parametrize("as_of", [date(2023, 12, 31), date(2024, 4, 1)])
    def test_outside_window_uses_default(self, db_session, acme, loading, as_of):
        add_tier(db_session, acme, loading, effective_to=date(2024, 3, 31))

        result = PriceService.get_price_for_customer(
            db_session, acme.id, loading.id, quantity=1, as_of=as_of
        )

        assert result.source == "default"

    def test_inactive_tier_is_ignored(self, db_session, acme, loading):
        add_tier(db_session, acme, loading, is_active=False)

        result = PriceService.get_price_for_customer(
            db_session, acme.id, loading.id, quantity=1, as_of=date(2024, 6, 1)
        )

        assert result.source == "default"

    def test_tiers_of_other_customers_are_ignored(self, db_session, acme, globex, loading):
        add_tier(db_session, globex, loading, price=Decimal("5.00"))

        result = PriceService.get_price_for_customer(
            db_session, acme.id, loading.id, quantity=1, as_of=date(2024, 6, 1)
        )

        assert result.source == "default"

    def test_datetime_reference_uses_its_date(self, db_session, acme, loading):
        add_tier(db_session, acme, loading, effective_to=date(2024, 3, 31))

        result = PriceService.get_price_for_customer(
            db_session, acme.id, loading.id, quantity=1,
            as_of=datetime(2024, 3, 31, 23, 30, tzinfo=timezone.utc),
        )

        assert result.source == "customer"
        assert result.reference_date == date(2024, 3, 31)

    def test_resolution_is_repeatable(self, db_session, acme, loading):
        """Given unchanged tiers, when resolving twice, then the results are equal"""
        add_tier(db_session, acme, loading)

        first = PriceService.get_price_for_customer(
            db_session, acme.id, loading.id, quantity=3, as_of=date(2024, 6, 1)
        )
        second = PriceService.get_price_for_customer(
            db_session, acme.id, loading.id, quantity=3, as_of=date(2024, 6, 1)
        )

        assert first == second


class TestDeterministicTiebreak:
    """Test ordering when several tiers match (no quantity given)"""

    def test_latest_effective_from_wins(self, db_session, acme, loading):
        add_tier(db_session, acme, loading, min_quantity=1, max_quantity=10, price=Decimal("8.00"))
        add_tier(
            db_session, acme, loading,
            min_quantity=11, max_quantity=50, price=Decimal("7.00"),
            effective_from=date(2024, 3, 1),
        )

        result = PriceService.get_price_for_customer(
            db_session, acme.id, loading.id, as_of=date(2024, 6, 1)
        )

        assert result.price == Decimal("7.00")

    def test_same_effective_from_newest_created_wins(self, db_session, acme, loading):
        """Given two tiers with equal effective_from, then the later created one is chosen"""
        created = datetime(2024, 1, 1, 8, 0, tzinfo=timezone.utc)
        older = CustomerPrice(
            customer_id=acme.id, activity_id=loading.id, min_quantity=1, max_quantity=10,
            price=Decimal("8.00"), effective_from=date(2024, 1, 1), created_at=created,
        )
        newer = CustomerPrice(
            customer_id=acme.id, activity_id=loading.id, min_quantity=11, max_quantity=20,
            price=Decimal("7.50"), effective_from=date(2024, 1, 1),
            created_at=created + timedelta(hours=1),
        )
        db_session.add_all([older, newer])
        db_session.commit()

        result = PriceService.get_price_for_customer(
            db_session, acme.id, loading.id, as_of=date(2024, 6, 1)
        )

        assert result.price_id == newer.id


class TestActivityVisibility:
    """Test which activities can be priced for a customer"""

    def test_unknown_activity(self, db_session, acme):
        with pytest.raises(ActivityNotFoundError) as exc_info:
            PriceService.get_price_for_customer(db_session, acme.id, uuid4(), quantity=1)

        assert exc_info.value.status_code == 404

    def test_inactive_activity(self, db_session, acme, loading):
        loading.is_active = False
        db_session.commit()

        with pytest.raises(ActivityNotFoundError):
            PriceService.get_price_for_customer(db_session, acme.id, loading.id, quantity=1)

    def test_activity_owned_by_other_customer(self, db_session, acme, globex):
        """Given an activity owned by Globex, when Acme resolves it, then it is not found"""
        foreign = Activity(customer_id=globex.id, name="Special", unit="hour", default_price=Decimal("20.00"))
        db_session.add(foreign)
        db_session.commit()

        with pytest.raises(ActivityNotFoundError):
            PriceService.get_price_for_customer(db_session, acme.id, foreign.id, quantity=1)

        result = PriceService.get_price_for_customer(db_session, globex.id, foreign.id, quantity=1)
        assert result.price == Decimal("20.00")


class TestCalculatePrice:
    """Test ad-hoc quotes"""

    def test_quote_multiplies_quantity(self, db_session, acme, loading):
        add_tier(db_session, acme, loading)

        quote = PriceService.calculate_price(
            db_session, acme.id, loading.id, quantity=3, as_of=date(2024, 6, 1)
        )

        assert quote.unit_price == Decimal("8.00")
        assert quote.line_total == Decimal("24.00")
        assert quote.quantity == 3
        assert quote.source == "customer"

    def test_unknown_customer(self, db_session, loading):
        with pytest.raises(CustomerNotFoundError):
            PriceService.calculate_price(db_session, uuid4(), loading.id)

    @pytest.mark.parametrize("quantity", [0, -1, True, 1.5])
    def test_invalid_quantity(self, db_session, acme, loading, quantity):
        with pytest.raises(InvalidPriceTierError):
            PriceService.calculate_price(db_session, acme.id, loading.id, quantity=quantity)
