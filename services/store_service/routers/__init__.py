"""Store service routers package."""

from services.store_service.routers.billing import router as billing_router
from services.store_service.routers.orders import router as orders_router
from services.store_service.routers.owner_orders import router as owner_orders_router
from services.store_service.routers.webhooks import router as webhooks_router

__all__ = [
    "billing_router",
    "orders_router",
    "owner_orders_router",
    "webhooks_router",
]
