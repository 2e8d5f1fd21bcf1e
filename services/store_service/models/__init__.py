"""Store Service models package."""

from services.store_service.models.accounts import (
    Notification,
    NotificationRead,
    Profile,
)
from services.store_service.models.catalog import Product
from services.store_service.models.commerce import (
    Order,
    OrderIssue,
    OrderItem,
    RefundRequest,
    StoreAuditLog,
)
from services.store_service.models.enums import (
    LEGACY_ORDER_STATUS_MAP,
    OFFLINE_PAYMENT_METHODS,
    AuditEntityType,
    NotificationCategory,
    OrderStatus,
    PaymentMethod,
    ProfileRole,
    parse_order_status,
)

__all__ = [
    "AuditEntityType",
    "LEGACY_ORDER_STATUS_MAP",
    "Notification",
    "NotificationCategory",
    "NotificationRead",
    "OFFLINE_PAYMENT_METHODS",
    "Order",
    "OrderIssue",
    "OrderItem",
    "OrderStatus",
    "PaymentMethod",
    "Product",
    "Profile",
    "ProfileRole",
    "RefundRequest",
    "StoreAuditLog",
    "parse_order_status",
]
