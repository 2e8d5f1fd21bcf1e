"""Store commerce models: orders, order items, issue/refund reports, audit logs."""

import uuid
from datetime import datetime
from typing import Optional

from libs.common.datetime_utils import utc_now
from libs.db.base import Base
from services.store_service.models.enums import (
    AuditEntityType,
    OrderStatus,
    PaymentMethod,
    enum_values,
    parse_order_status,
)
from sqlalchemy import Boolean, CheckConstraint, DateTime
from sqlalchemy import Enum as SAEnum
from sqlalchemy import (
    ForeignKey,
    Index,
    Integer,
    JSON,
    String,
    Text,
    TypeDecorator,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship


class OrderStatusType(TypeDecorator):
    """Stores OrderStatus as text, translating legacy labels on load."""

    impl = String(32)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return parse_order_status(
            value.value if isinstance(value, OrderStatus) else str(value)
        ).value

    def process_result_value(self, value, dialect):
        return parse_order_status(value)


# ============================================================================
# ORDER MODELS
# ============================================================================


class Order(Base):
    """Orders. Shipping fields are a snapshot and never change after creation."""

    __tablename__ = "orders"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    # Customer (Supabase auth id)
    user_id: Mapped[str] = mapped_column(String(255), index=True, nullable=False)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    # Shipping snapshot
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str] = mapped_column(String(50), nullable=False)
    address_line1: Mapped[str] = mapped_column(String(500), nullable=False)
    city: Mapped[str] = mapped_column(String(100), nullable=False)
    province: Mapped[str] = mapped_column(String(100), nullable=False)
    postal_code: Mapped[str] = mapped_column(String(20), nullable=False)

    # Whole THB, sum of item line totals
    total_amount: Mapped[int] = mapped_column(Integer, nullable=False)

    status: Mapped[OrderStatus] = mapped_column(
        OrderStatusType(),
        default=OrderStatus.PENDING,
        server_default=OrderStatus.PENDING.value,
        index=True,
    )

    # Payment
    payment_method: Mapped[PaymentMethod] = mapped_column(
        SAEnum(
            PaymentMethod,
            values_callable=enum_values,
            name="payment_method_enum",
        ),
        nullable=False,
    )
    payment_provider: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    payment_session_id: Mapped[Optional[str]] = mapped_column(
        String(255), unique=True, nullable=True
    )

    # Client-generated key so a resubmitted checkout does not create a twin
    client_request_id: Mapped[Optional[str]] = mapped_column(
        String(100), nullable=True
    )

    # Set when a paid order did not line up with its payment
    needs_review: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default="false", nullable=False
    )
    review_note: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Timestamps
    delivered_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    cancelled_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )

    __table_args__ = (
        UniqueConstraint("user_id", "client_request_id", name="unique_order_request"),
        CheckConstraint("total_amount >= 0", name="order_total_non_negative"),
        Index("ix_orders_user_id_status", "user_id", "status"),
    )

    # Relationships
    items = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItem.created_at",
    )

    def __repr__(self):
        return f"<Order {self.id} status={self.status}>"


class OrderItem(Base):
    """Order line items (snapshot at order time)."""

    __tablename__ = "order_items"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    order_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("orders.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    # Null once the product is removed from the catalog
    product_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("products.id", ondelete="SET NULL"),
        nullable=True,
    )

    # Snapshot at order time (products may change)
    product_name: Mapped[str] = mapped_column(String(255), nullable=False)
    unit_price: Mapped[int] = mapped_column(Integer, nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    line_total: Mapped[int] = mapped_column(Integer, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )

    __table_args__ = (CheckConstraint("quantity > 0", name="order_item_positive_quantity"),)

    # Relationships
    order = relationship("Order", back_populates="items")

    def __repr__(self):
        return f"<OrderItem {self.product_name} qty={self.quantity}>"


# ============================================================================
# POST-DELIVERY REPORTS
# ============================================================================


class OrderIssue(Base):
    """Customer report that a delivered order never arrived."""

    __tablename__ = "order_issues"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    order_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("orders.id", ondelete="CASCADE"), index=True, nullable=False
    )
    user_id: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    photo_url: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )

    def __repr__(self):
        return f"<OrderIssue order={self.order_id}>"


class RefundRequest(Base):
    """Customer refund request for a delivered order."""

    __tablename__ = "refund_requests"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    order_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("orders.id", ondelete="CASCADE"), index=True, nullable=False
    )
    user_id: Mapped[str] = mapped_column(String(255), nullable=False)
    reason: Mapped[str] = mapped_column(Text, nullable=False)
    photo_url: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )

    def __repr__(self):
        return f"<RefundRequest order={self.order_id}>"


# ============================================================================
# AUDIT LOG MODEL
# ============================================================================


class StoreAuditLog(Base):
    """Audit log for order transitions and back-office edits."""

    __tablename__ = "store_audit_logs"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    entity_type: Mapped[AuditEntityType] = mapped_column(
        SAEnum(
            AuditEntityType,
            values_callable=enum_values,
            name="store_audit_entity_type_enum",
        ),
        nullable=False,
    )
    entity_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)

    action: Mapped[str] = mapped_column(
        String(50), nullable=False
    )  # e.g., "status_changed", "product_updated"

    old_value: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)
    new_value: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)

    performed_by: Mapped[str] = mapped_column(String(255), nullable=False)
    performed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    __table_args__ = (
        Index("ix_store_audit_logs_entity", "entity_type", "entity_id"),
        Index("ix_store_audit_logs_performed_at", "performed_at"),
    )

    def __repr__(self):
        return f"<StoreAuditLog {self.entity_type}:{self.entity_id} {self.action}>"
