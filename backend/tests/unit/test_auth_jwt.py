"""Unit tests for JWT token generation and validation

Tests cover:
- Token creation with valid claims
- Token decoding and validation
- Token expiration handling
- Invalid token handling
- Missing secret configuration
- Customer scoping of the caller
"""

import pytest
from datetime import datetime, timedelta, timezone
from uuid import uuid4
import jwt

from logiflow.auth.dependencies import AuthenticatedUser
from logiflow.auth.jwt import create_access_token, decode_token
from logiflow.config import get_settings


@pytest.fixture
def fresh_settings():
    """Re-read settings from the environment for the duration of a test."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class TestCreateAccessToken:
    """Test JWT token creation"""

    def test_token_contains_correct_claims(self):
        """Test token payload contains all expected claims"""
        user_id = uuid4()

        token = create_access_token(user_id=user_id, role="ADMIN", email="admin@test.com")

        # Decode without verification to inspect payload
        payload = jwt.decode(token, options={"verify_signature": False})

        assert payload['sub'] == str(user_id)
        assert payload['role'] == "ADMIN"
        assert payload['email'] == "admin@test.com"
        assert 'customer_id' not in payload
        assert payload['exp'] - payload['iat'] == get_settings().JWT_EXPIRY_MINUTES * 60

    def test_customer_claim_included(self):
        customer_id = uuid4()

        token = create_access_token(
            user_id=uuid4(), role="CUSTOMER", email="c@test.com", customer_id=customer_id
        )

        payload = jwt.decode(token, options={"verify_signature": False})
        assert payload['customer_id'] == str(customer_id)

    def test_missing_secret_raises(self, monkeypatch, fresh_settings):
        monkeypatch.delenv('JWT_SECRET', raising=False)
        get_settings.cache_clear()

        with pytest.raises(ValueError, match="JWT_SECRET"):
            create_access_token(user_id=uuid4(), role="ADMIN", email="admin@test.com")


class TestDecodeToken:
    """Test JWT token validation"""

    def test_round_trip(self):
        user_id = uuid4()
        token = create_access_token(user_id=user_id, role="TEAM_LEADER", email="tl@test.com")

        payload = decode_token(token)

        assert payload['sub'] == str(user_id)
        assert payload['role'] == "TEAM_LEADER"

    def test_expired_token(self):
        settings = get_settings()
        now = datetime.now(timezone.utc)
        token = jwt.encode(
            {
                'sub': str(uuid4()),
                'role': "ADMIN",
                'iat': int((now - timedelta(hours=2)).timestamp()),
                'exp': int((now - timedelta(hours=1)).timestamp()),
            },
            settings.JWT_SECRET,
            algorithm=settings.JWT_ALGORITHM,
        )

        with pytest.raises(jwt.ExpiredSignatureError):
            decode_token(token)

    def test_wrong_signature(self):
        token = jwt.encode(
            {'sub': str(uuid4()), 'role': "ADMIN"},
            "some-other-secret-that-is-long-enough-for-hs256-signing",
            algorithm="HS256",
        )

        with pytest.raises(jwt.InvalidTokenError):
            decode_token(token)

    def test_garbage_token(self):
        with pytest.raises(jwt.InvalidTokenError):
            decode_token("not.a.token")


class TestCustomerScoping:
    """Test AuthenticatedUser.can_access_customer"""

    def test_staff_access_any_customer(self):
        user = AuthenticatedUser(id=uuid4(), role="ADMIN")

        assert user.can_access_customer(uuid4())

    def test_customer_limited_to_own(self):
        own = uuid4()
        user = AuthenticatedUser(id=uuid4(), role="CUSTOMER", customer_id=own)

        assert user.can_access_customer(own)
        assert not user.can_access_customer(uuid4())

    def test_customer_without_claim(self):
        user = AuthenticatedUser(id=uuid4(), role="CUSTOMER")

        assert not user.can_access_customer(uuid4())
