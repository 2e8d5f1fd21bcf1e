"""Store service routers package."""

from services.store_service.routers.admin_catalog import router as admin_catalog_router
from services.store_service.routers.admin_notifications import (
    router as admin_notifications_router,
)
from services.store_service.routers.admin_orders import router as admin_orders_router
from services.store_service.routers.catalog import router as catalog_router
from services.store_service.routers.checkout import router as checkout_router
from services.store_service.routers.notifications import router as notifications_router
from services.store_service.routers.orders import router as orders_router
from services.store_service.routers.profile import router as profile_router

__all__ = [
    "admin_catalog_router",
    "admin_notifications_router",
    "admin_orders_router",
    "catalog_router",
    "checkout_router",
    "notifications_router",
    "orders_router",
    "profile_router",
]
