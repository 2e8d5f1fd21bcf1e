"""Store catalog models."""

import uuid
from datetime import datetime
from typing import Optional

from libs.common.datetime_utils import utc_now
from libs.db.base import Base
from sqlalchemy import Boolean, CheckConstraint, DateTime, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column


class Product(Base):
    """Candles for sale.

    Order items snapshot name and price, so editing a product never changes
    past orders.
    """

    __tablename__ = "products"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[Optional[str]] = mapped_column(
        String(255), unique=True, nullable=True
    )
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Whole THB
    price: Mapped[int] = mapped_column(Integer, nullable=False)
    # NULL means unlimited
    stock: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    mood: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    size: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    is_best_seller: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default="false"
    )
    image_url: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)
    is_active: Mapped[bool] = mapped_column(
        Boolean, default=True, server_default="true"
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )

    __table_args__ = (
        CheckConstraint("price >= 0", name="product_price_non_negative"),
        CheckConstraint("stock IS NULL OR stock >= 0", name="product_stock_non_negative"),
    )

    def __repr__(self):
        return f"<Product {self.name}>"
