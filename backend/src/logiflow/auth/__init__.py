"""Authentication guard: bearer token verification and role checks."""

from .dependencies import AuthenticatedUser, CurrentUser, get_current_user, require_roles
from .jwt import create_access_token, decode_token
from .roles import UserRole, PRICE_MANAGERS, ORDER_MANAGERS

__all__ = [
    "AuthenticatedUser",
    "CurrentUser",
    "get_current_user",
    "require_roles",
    "create_access_token",
    "decode_token",
    "UserRole",
    "PRICE_MANAGERS",
    "ORDER_MANAGERS",
]
