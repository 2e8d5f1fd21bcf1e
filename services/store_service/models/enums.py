"""Enum definitions for store service models."""

import enum
from typing import Optional


def enum_values(enum_cls):
    """Return persistent DB values for SAEnum mappings."""
    return [member.value for member in enum_cls]


class OrderStatus(str, enum.Enum):
    PENDING = "pending"
    PREPARING = "preparing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    WELL_RECEIVED = "well_received"
    LOST = "lost"
    REFUND_REQUESTED = "refund_requested"
    CANCELLED = "cancelled"


# Values written by older storefront/admin screens, mapped on load.
LEGACY_ORDER_STATUS_MAP = {
    "delivering": OrderStatus.SHIPPED,
    "completed": OrderStatus.DELIVERED,
    "paid": OrderStatus.PENDING,
    "pending_payment": OrderStatus.PENDING,
    "accepted": OrderStatus.WELL_RECEIVED,
}


def parse_order_status(value: Optional[str]) -> Optional[OrderStatus]:
    """Map a stored status string, current or legacy, to OrderStatus."""
    if value is None:
        return None
    raw = value.strip().lower()
    if raw in LEGACY_ORDER_STATUS_MAP:
        return LEGACY_ORDER_STATUS_MAP[raw]
    return OrderStatus(raw)


class PaymentMethod(str, enum.Enum):
    CASH_ON_DELIVERY = "cash_on_delivery"
    BANK_TRANSFER = "bank_transfer"
    CARD = "card"


# Methods a customer may pick on the delivery form; card goes through
# the hosted checkout flow instead.
OFFLINE_PAYMENT_METHODS = (PaymentMethod.CASH_ON_DELIVERY, PaymentMethod.BANK_TRANSFER)


class ProfileRole(str, enum.Enum):
    CUSTOMER = "customer"
    ADMIN = "admin"


class NotificationCategory(str, enum.Enum):
    PROMO = "promo"
    UPDATE = "update"
    ORDER = "order"
    SYSTEM = "system"


class AuditEntityType(str, enum.Enum):
    PRODUCT = "product"
    ORDER = "order"
    NOTIFICATION = "notification"
