"""SQLAlchemy Models for LogiFlow"""

from .base import Base
from .customer import Customer
from .activity import Activity, ActivityType
from .customer_price import CustomerPrice
from .order import Order, OrderStatus
from .customer_activity import CustomerActivity
from .audit_log import AuditLog

__all__ = [
    "Base",
    "Customer",
    "Activity",
    "ActivityType",
    "CustomerPrice",
    "Order",
    "OrderStatus",
    "CustomerActivity",
    "AuditLog",
]
