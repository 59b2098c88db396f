"""User roles for LogiFlow.

Roles are carried in the JWT ``role`` claim. Endpoints list the roles they
accept explicitly; there is no implicit hierarchy.

Permission Matrix:
┌──────────────────────┬─────────────┬───────┬─────────────┬──────────┬──────────┐
│ Action               │ SUPER_ADMIN │ ADMIN │ TEAM_LEADER │ EMPLOYEE │ CUSTOMER │
├──────────────────────┼─────────────┼───────┼─────────────┼──────────┼──────────┤
│ Manage Price Tiers   │      ✓      │   ✓   │             │          │          │
│ Manage Activities    │      ✓      │   ✓   │             │          │          │
│ Create Orders        │      ✓      │   ✓   │      ✓      │          │          │
│ View Catalog / Stats │      ✓      │   ✓   │      ✓      │          │          │
│ Request Price Quotes │      ✓      │   ✓   │      ✓      │    ✓     │    ✓     │
└──────────────────────┴─────────────┴───────┴─────────────┴──────────┴──────────┘
"""

from enum import Enum


class UserRole(str, Enum):
    """User roles in LogiFlow.

    Values must match the ``role`` claim issued by the authentication service.
    """
    SUPER_ADMIN = "SUPER_ADMIN"
    ADMIN = "ADMIN"
    TEAM_LEADER = "TEAM_LEADER"
    EMPLOYEE = "EMPLOYEE"
    CUSTOMER = "CUSTOMER"


# Role groups used by the routers
PRICE_MANAGERS = [UserRole.ADMIN, UserRole.SUPER_ADMIN]
ORDER_MANAGERS = [UserRole.ADMIN, UserRole.SUPER_ADMIN, UserRole.TEAM_LEADER]
