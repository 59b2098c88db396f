"""FastAPI dependencies for authentication and authorization.

This module provides dependency injection functions for:
- Extracting and validating JWT tokens from requests
- Building the current authenticated user from token claims
- Enforcing role-based access control

Validation is stateless: user accounts live in the authentication service,
so no database lookup happens here.

Usage:
    @router.post("/customers/{customer_id}/prices")
    def create_price(user: AuthenticatedUser = Depends(require_roles(PRICE_MANAGERS))):
        ...
"""

from dataclasses import dataclass
from typing import Callable, Annotated, List, Optional
from uuid import UUID

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from .jwt import decode_token
from .roles import UserRole


# HTTP Bearer token security scheme
security = HTTPBearer()


@dataclass(frozen=True)
class AuthenticatedUser:
    """Caller identity extracted from a verified token."""
    id: UUID
    role: str
    email: Optional[str] = None
    customer_id: Optional[UUID] = None

    def can_access_customer(self, customer_id: UUID) -> bool:
        """CUSTOMER users may only see data of the customer in their token."""
        if self.role != UserRole.CUSTOMER.value:
            return True
        return self.customer_id is not None and self.customer_id == customer_id


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> AuthenticatedUser:
    """Extract and validate JWT token, returning the authenticated user.

    Args:
        credentials: HTTP Bearer token from request header

    Returns:
        AuthenticatedUser: Identity built from the token claims

    Raises:
        HTTPException 401: If token is missing, invalid, expired or has bad claims
    """
    token = credentials.credentials

    try:
        payload = decode_token(token)

        user_id_str = payload.get("sub")
        role = payload.get("role")
        if not user_id_str or not role:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid token: missing subject or role claim",
                headers={"WWW-Authenticate": "Bearer"},
            )

        customer_id_str = payload.get("customer_id")
        return AuthenticatedUser(
            id=UUID(user_id_str),
            role=role,
            email=payload.get("email"),
            customer_id=UUID(customer_id_str) if customer_id_str else None,
        )

    except jwt.ExpiredSignatureError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has expired",
            headers={"WWW-Authenticate": "Bearer"},
        )
    except jwt.InvalidTokenError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid token: {str(e)}",
            headers={"WWW-Authenticate": "Bearer"},
        )
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid token claims: {str(e)}",
            headers={"WWW-Authenticate": "Bearer"},
        )


def require_roles(allowed_roles: List[UserRole]) -> Callable:
    """Create a dependency that requires one of the given roles.

    Args:
        allowed_roles: Roles that may access the endpoint

    Returns:
        Callable: FastAPI dependency returning the current user

    Raises:
        HTTPException 403: If the user's role is not in allowed_roles

    Example:
        @router.post("/orders")
        def create_order(
            user: AuthenticatedUser = Depends(require_roles([UserRole.ADMIN, UserRole.TEAM_LEADER]))
        ):
            ...
    """
    allowed = {role.value for role in allowed_roles}

    def role_dependency(current_user: AuthenticatedUser = Depends(get_current_user)) -> AuthenticatedUser:
        if current_user.role not in allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Insufficient permissions. Required role: {', '.join(sorted(allowed))}",
            )
        return current_user

    return role_dependency


# Type alias for dependency injection
CurrentUser = Annotated[AuthenticatedUser, Depends(get_current_user)]
