"""Orders with snapshot-costed activity lines"""

from .router import router
from .service import OrderService, generate_order_number

__all__ = ["router", "OrderService", "generate_order_number"]
