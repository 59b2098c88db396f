"""Pytest fixtures for LogiFlow tests.

Provides reusable test fixtures for:
- SQLite in-memory database session (tables created per test)
- Customers and activities for pricing scenarios
- Authenticated test clients with JWT tokens for each role

Usage:
    def test_list_prices(admin_client, acme):
        response = admin_client.get(f"/api/v1/customers/{acme.id}/prices")
        assert response.status_code == 200
"""

import os

# Set environment variables BEFORE any logiflow imports; settings are cached
if "DATABASE_URL" not in os.environ:
    os.environ["DATABASE_URL"] = "sqlite://"

if "JWT_SECRET" not in os.environ:
    os.environ["JWT_SECRET"] = "test-jwt-secret-key-256-bits-minimum-length-required-for-security"

os.environ.setdefault("LOG_JSON", "false")

from decimal import Decimal
from typing import Generator
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from logiflow.auth.jwt import create_access_token
from logiflow.database import get_db as database_get_db
from logiflow.models import Base, Customer, Activity, ActivityType


# Single shared in-memory connection so the app and the test see the same data
test_engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


@pytest.fixture(scope="function")
def db_session() -> Generator[Session, None, None]:
    """Create a fresh database session for each test.

    Creates all tables before the test and drops them after.
    """
    Base.metadata.create_all(bind=test_engine)
    session = TestingSessionLocal()

    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=test_engine)


# ============================================================================
# Domain fixtures
# ============================================================================

@pytest.fixture(scope="function")
def acme(db_session: Session) -> Customer:
    """Customer "Acme"."""
    customer = Customer(company_name="Acme", email="billing@acme.com")
    db_session.add(customer)
    db_session.commit()
    db_session.refresh(customer)
    return customer


@pytest.fixture(scope="function")
def globex(db_session: Session) -> Customer:
    """A second customer, for isolation checks."""
    customer = Customer(company_name="Globex")
    db_session.add(customer)
    db_session.commit()
    db_session.refresh(customer)
    return customer


@pytest.fixture(scope="function")
def loading(db_session: Session) -> Activity:
    """Global activity "Loading" with a default price of 10.00 per hour."""
    activity = Activity(
        name="Loading",
        code="LOAD",
        type=ActivityType.OTHER.value,
        unit="hour",
        default_price=Decimal("10.00"),
    )
    db_session.add(activity)
    db_session.commit()
    db_session.refresh(activity)
    return activity


@pytest.fixture(scope="function")
def container_unloading(db_session: Session) -> Activity:
    """Global container activity priced per container."""
    activity = Activity(
        name="Container unloading",
        type=ActivityType.CONTAINER_UNLOADING.value,
        unit="container",
        default_price=Decimal("150.00"),
    )
    db_session.add(activity)
    db_session.commit()
    db_session.refresh(activity)
    return activity


@pytest.fixture(scope="function")
def unpriced_activity(db_session: Session) -> Activity:
    """Global activity without a default price."""
    activity = Activity(name="Labeling", type=ActivityType.LABELING.value, unit="piece")
    db_session.add(activity)
    db_session.commit()
    db_session.refresh(activity)
    return activity


# ============================================================================
# Client fixtures
# ============================================================================

def _make_client(db_session: Session, role: str, customer_id=None) -> TestClient:
    from logiflow.main import app

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[database_get_db] = override_get_db

    token = create_access_token(
        user_id=uuid4(),
        role=role,
        email=f"{role.lower()}@test.com",
        customer_id=customer_id,
    )

    client = TestClient(app)
    client.headers = {
        "Authorization": f"Bearer {token}"
    }
    return client


@pytest.fixture(scope="function")
def client(db_session: Session):
    """Create an unauthenticated test client."""
    from logiflow.main import app

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[database_get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def admin_client(db_session: Session):
    """Test client authenticated as ADMIN."""
    yield _make_client(db_session, "ADMIN")
    _clear_overrides()


@pytest.fixture(scope="function")
def team_leader_client(db_session: Session):
    """Test client authenticated as TEAM_LEADER."""
    yield _make_client(db_session, "TEAM_LEADER")
    _clear_overrides()


@pytest.fixture(scope="function")
def employee_client(db_session: Session):
    """Test client authenticated as EMPLOYEE."""
    yield _make_client(db_session, "EMPLOYEE")
    _clear_overrides()


@pytest.fixture(scope="function")
def customer_client(db_session: Session, acme: Customer):
    """Test client authenticated as a CUSTOMER user of Acme."""
    yield _make_client(db_session, "CUSTOMER", customer_id=acme.id)
    _clear_overrides()


@pytest.fixture(scope="function")
def unlinked_customer_client(db_session: Session):
    """Test client with the CUSTOMER role but no customer_id claim."""
    yield _make_client(db_session, "CUSTOMER")
    _clear_overrides()


def _clear_overrides() -> None:
    from logiflow.main import app
    app.dependency_overrides.clear()
