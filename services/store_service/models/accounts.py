"""Customer-facing account models: profiles and notifications."""

import uuid
from datetime import datetime
from typing import Optional

from libs.common.datetime_utils import utc_now
from libs.db.base import Base
from services.store_service.models.enums import (
    NotificationCategory,
    ProfileRole,
    enum_values,
)
from sqlalchemy import Boolean, DateTime
from sqlalchemy import Enum as SAEnum
from sqlalchemy import ForeignKey, Index, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column


class Profile(Base):
    """One row per Supabase user, created on first access."""

    __tablename__ = "profiles"

    # Supabase auth id
    id: Mapped[str] = mapped_column(String(255), primary_key=True)

    username: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    address_line1: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    city: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    province: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    postal_code: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    country: Mapped[str] = mapped_column(
        String(100), default="Thailand", server_default="Thailand"
    )

    role: Mapped[ProfileRole] = mapped_column(
        SAEnum(
            ProfileRole,
            values_callable=enum_values,
            name="profile_role_enum",
        ),
        default=ProfileRole.CUSTOMER,
        server_default="customer",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )

    def __repr__(self):
        return f"<Profile {self.id} role={self.role}>"


class Notification(Base):
    """Admin-authored message, broadcast or addressed to one user."""

    __tablename__ = "notifications"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    body: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[NotificationCategory] = mapped_column(
        SAEnum(
            NotificationCategory,
            values_callable=enum_values,
            name="notification_category_enum",
        ),
        default=NotificationCategory.PROMO,
        server_default="promo",
    )

    is_global: Mapped[bool] = mapped_column(
        Boolean, default=True, server_default="true"
    )
    user_id: Mapped[Optional[str]] = mapped_column(
        String(255), index=True, nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )

    __table_args__ = (Index("ix_notifications_created_at", "created_at"),)

    def __repr__(self):
        return f"<Notification {self.title}>"


class NotificationRead(Base):
    """Per-recipient read marker."""

    __tablename__ = "notification_reads"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    notification_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("notifications.id", ondelete="CASCADE"),
        nullable=False,
    )
    user_id: Mapped[str] = mapped_column(String(255), nullable=False)
    read_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now)

    __table_args__ = (
        UniqueConstraint("notification_id", "user_id", name="unique_notification_read"),
    )
