"""Customer management module for LogiFlow"""

from .schemas import CustomerCreate, CustomerUpdate, CustomerResponse
from .router import router

__all__ = [
    "CustomerCreate",
    "CustomerUpdate",
    "CustomerResponse",
    "router",
]
