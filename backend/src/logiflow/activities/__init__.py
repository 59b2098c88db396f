"""Activity catalog and customer activities"""

from .router import router, customer_activities_router
from .service import ActivityService

__all__ = ["router", "customer_activities_router", "ActivityService"]
