"""JWT token generation and validation

LogiFlow does not issue tokens to end users itself; login lives in the
authentication service. This module verifies the bearer tokens that service
issues and can mint tokens for scripts and tests.

JWT Token Claims Structure:
===========================

Standard JWT Claims:
- sub (Subject): User ID as UUID string
- iat (Issued At): Unix timestamp when token was created
- exp (Expiration): Unix timestamp when token expires
  (iat + JWT_EXPIRY_MINUTES)

Custom Claims:
- role: User's role
  Values: "SUPER_ADMIN" | "ADMIN" | "TEAM_LEADER" | "EMPLOYEE" | "CUSTOMER"
- email: User's email address
- customer_id: Customer the user belongs to (CUSTOMER role only, else absent)

Example Token Payload:
{
  "sub": "550e8400-e29b-41d4-a716-446655440000",
  "role": "ADMIN",
  "email": "admin@logiflow.de",
  "iat": 1704368400,
  "exp": 1704372000
}
"""

from datetime import datetime, timedelta, timezone
from typing import Dict, Any, Optional
from uuid import UUID
import jwt

from ..config import get_settings


def _get_jwt_secret() -> str:
    """Get JWT_SECRET from settings.

    Returns:
        str: The JWT_SECRET value

    Raises:
        ValueError: If JWT_SECRET is not set
    """
    secret = get_settings().JWT_SECRET
    if not secret:
        raise ValueError("JWT_SECRET environment variable is not set")
    return secret


def create_access_token(
    user_id: UUID,
    role: str,
    email: str,
    customer_id: Optional[UUID] = None,
) -> str:
    """Create a signed JWT access token.

    Args:
        user_id: User's UUID
        role: User's role (see UserRole)
        email: User's email address
        customer_id: Customer the user belongs to, if any

    Returns:
        str: Signed JWT token

    Raises:
        ValueError: If JWT_SECRET is not set
    """
    settings = get_settings()
    secret = _get_jwt_secret()

    now = datetime.now(timezone.utc)
    expiration = now + timedelta(minutes=settings.JWT_EXPIRY_MINUTES)

    payload = {
        'sub': str(user_id),  # Subject: user ID
        'role': role,
        'email': email,
        'iat': int(now.timestamp()),  # Issued at
        'exp': int(expiration.timestamp())  # Expiration
    }
    if customer_id is not None:
        payload['customer_id'] = str(customer_id)

    return jwt.encode(payload, secret, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> Dict[str, Any]:
    """Decode and validate a JWT token.

    Args:
        token: JWT token string

    Returns:
        dict: Decoded token payload with claims

    Raises:
        jwt.ExpiredSignatureError: If token has expired
        jwt.InvalidTokenError: If token is invalid or tampered
        ValueError: If JWT_SECRET is not set
    """
    secret = _get_jwt_secret()

    try:
        return jwt.decode(token, secret, algorithms=[get_settings().JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise jwt.ExpiredSignatureError("Token has expired")
    except jwt.InvalidTokenError as e:
        raise jwt.InvalidTokenError(f"Invalid token: {str(e)}")
