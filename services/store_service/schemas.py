"""Pydantic schemas for store service."""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from services.store_service.models import (
    OFFLINE_PAYMENT_METHODS,
    NotificationCategory,
    OrderStatus,
    PaymentMethod,
    ProfileRole,
)

# ============================================================================
# PRODUCT SCHEMAS
# ============================================================================


class ProductBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    slug: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    price: int = Field(..., ge=0)
    stock: Optional[int] = Field(None, ge=0)
    mood: Optional[str] = Field(None, max_length=50)
    size: Optional[str] = Field(None, max_length=50)
    is_best_seller: bool = False
    image_url: Optional[str] = Field(None, max_length=1024)
    is_active: bool = True


class ProductCreate(ProductBase):
    pass


class ProductUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    slug: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    price: Optional[int] = Field(None, ge=0)
    stock: Optional[int] = Field(None, ge=0)
    mood: Optional[str] = Field(None, max_length=50)
    size: Optional[str] = Field(None, max_length=50)
    is_best_seller: Optional[bool] = None
    image_url: Optional[str] = Field(None, max_length=1024)
    is_active: Optional[bool] = None


class ProductResponse(ProductBase):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    created_at: datetime
    updated_at: datetime


# ============================================================================
# CHECKOUT SCHEMAS
# ============================================================================


class ShippingDetails(BaseModel):
    """Delivery form. Every field is required and must not be blank."""

    model_config = ConfigDict(str_strip_whitespace=True)

    full_name: str = Field(..., min_length=1, max_length=255)
    phone: str = Field(..., min_length=1, max_length=50)
    address_line1: str = Field(..., min_length=1, max_length=500)
    city: str = Field(..., min_length=1, max_length=100)
    province: str = Field(..., min_length=1, max_length=100)
    postal_code: str = Field(..., min_length=1, max_length=20)


class OrderLineIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    product_id: uuid.UUID = Field(..., alias="productId")
    quantity: int = Field(..., ge=1)
    # Price the customer saw; informational only
    unit_price: Optional[int] = Field(None, ge=0, alias="unitPrice")


class PlaceOrderRequest(BaseModel):
    items: list[OrderLineIn]
    shipping: ShippingDetails
    payment_method: PaymentMethod
    client_request_id: Optional[str] = Field(None, max_length=100)

    @field_validator("payment_method")
    @classmethod
    def offline_method_only(cls, v: PaymentMethod) -> PaymentMethod:
        if v not in OFFLINE_PAYMENT_METHODS:
            raise ValueError("Card payments go through the hosted checkout")
        return v


class CheckoutCustomer(BaseModel):
    """Contact and shipping block of the hosted-checkout requests.

    The order owner always comes from the bearer token; ``id`` is accepted
    for compatibility and ignored.
    """

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    id: Optional[str] = None
    email: Optional[EmailStr] = None
    full_name: Optional[str] = Field(None, alias="fullName", max_length=255)
    phone: Optional[str] = Field(None, max_length=50)
    address_line1: Optional[str] = Field(None, max_length=500)
    city: Optional[str] = Field(None, max_length=100)
    province: Optional[str] = Field(None, max_length=100)
    postal_code: Optional[str] = Field(None, max_length=20)


class CheckoutSessionRequest(BaseModel):
    items: list[OrderLineIn]
    user: Optional[CheckoutCustomer] = None


class CheckoutSessionResponse(BaseModel):
    url: str


class ConfirmOrderRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    session_id: str = Field(..., alias="sessionId", min_length=1)
    items: list[OrderLineIn]
    user: CheckoutCustomer


class ConfirmOrderResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    order_id: uuid.UUID = Field(..., alias="orderId")


# ============================================================================
# ORDER SCHEMAS
# ============================================================================


class OrderItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    product_id: Optional[uuid.UUID] = None
    product_name: str
    unit_price: int
    quantity: int
    line_total: int


class OrderResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: str
    email: Optional[str] = None
    full_name: str
    phone: str
    address_line1: str
    city: str
    province: str
    postal_code: str
    total_amount: int
    status: OrderStatus
    payment_method: PaymentMethod
    payment_provider: Optional[str] = None
    needs_review: bool = False
    review_note: Optional[str] = None
    delivered_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
    items: list[OrderItemResponse] = []


class OrderSummaryResponse(BaseModel):
    active_count: int


class IssueReportRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    description: str = Field(..., min_length=1)
    photo_url: Optional[str] = Field(None, max_length=1024)


class RefundRequestCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    reason: str = Field(..., min_length=1)
    photo_url: Optional[str] = Field(None, max_length=1024)


# ============================================================================
# PROFILE SCHEMAS
# ============================================================================


class ProfileUpdate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    username: Optional[str] = Field(None, max_length=100)
    phone: Optional[str] = Field(None, max_length=50)
    address_line1: Optional[str] = Field(None, max_length=500)
    city: Optional[str] = Field(None, max_length=100)
    province: Optional[str] = Field(None, max_length=100)
    postal_code: Optional[str] = Field(None, max_length=20)
    country: Optional[str] = Field(None, max_length=100)


class ProfileResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    username: Optional[str] = None
    phone: Optional[str] = None
    address_line1: Optional[str] = None
    city: Optional[str] = None
    province: Optional[str] = None
    postal_code: Optional[str] = None
    country: str
    role: ProfileRole
    locked: bool = False


# ============================================================================
# NOTIFICATION SCHEMAS
# ============================================================================


class NotificationCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    body: str = Field(..., min_length=1)
    category: NotificationCategory = NotificationCategory.PROMO
    # None broadcasts to everyone
    user_id: Optional[str] = None


class NotificationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    title: str
    body: str
    category: NotificationCategory
    is_global: bool
    user_id: Optional[str] = None
    created_at: datetime


class MemberNotificationResponse(NotificationResponse):
    is_read: bool = False


class UnreadCountResponse(BaseModel):
    count: int
