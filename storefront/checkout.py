"""Checkout from the device cart.

The cart is only cleared once the server has accepted the order; on any
failure it is kept so the customer can retry.
"""

import uuid
from typing import Any, Optional

import httpx
from libs.common.logging import get_logger
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from storefront import api
from storefront.cart import CartStore

logger = get_logger(__name__)

GENERIC_FAILURE = "Something went wrong while placing your order. Please try again."

OFFLINE_METHODS = ("cash_on_delivery", "bank_transfer")


class CheckoutError(Exception):
    """Checkout failed; ``message`` is safe to show to the customer."""

    def __init__(self, message: str = GENERIC_FAILURE, status_code: Optional[int] = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class CheckoutForm(BaseModel):
    """Delivery form as filled in on the checkout page."""

    model_config = ConfigDict(str_strip_whitespace=True)

    full_name: str = Field(..., min_length=1)
    phone: str = Field(..., min_length=1)
    address_line1: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1)
    province: str = Field(..., min_length=1)
    postal_code: str = Field(..., min_length=1)
    email: Optional[str] = None

    def shipping(self) -> dict:
        return self.model_dump(exclude={"email"})

    def customer(self) -> dict:
        """Contact block for the hosted checkout endpoints."""
        return {
            "email": self.email,
            "fullName": self.full_name,
            "phone": self.phone,
            "address_line1": self.address_line1,
            "city": self.city,
            "province": self.province,
            "postal_code": self.postal_code,
        }


def validate_form(data: dict) -> CheckoutForm:
    try:
        return CheckoutForm(**data)
    except ValidationError as e:
        missing = sorted({str(err["loc"][0]) for err in e.errors()})
        raise CheckoutError(f"Please fill in: {', '.join(missing)}")


def _require_items(cart: CartStore) -> None:
    if cart.is_empty:
        raise CheckoutError("Your cart is empty")


def _failure(e: Exception, action: str) -> CheckoutError:
    status_code = e.response.status_code if isinstance(e, httpx.HTTPStatusError) else None
    logger.warning(f"{action} failed: {e}")
    return CheckoutError(status_code=status_code)


async def submit_order(
    cart: CartStore,
    form: dict,
    payment_method: str,
    token: str,
    client_request_id: Optional[str] = None,
) -> dict[str, Any]:
    """Place a cash-on-delivery or bank-transfer order for the cart."""
    checkout_form = validate_form(form)
    _require_items(cart)
    if payment_method not in OFFLINE_METHODS:
        raise CheckoutError("Choose cash on delivery or bank transfer")

    payload = {
        "items": cart.order_lines(),
        "shipping": checkout_form.shipping(),
        "payment_method": payment_method,
        "client_request_id": client_request_id or uuid.uuid4().hex,
    }
    try:
        order = await api.place_order(token, payload)
    except httpx.HTTPError as e:
        raise _failure(e, "Placing order")

    cart.clear_cart()
    return order


async def start_hosted_checkout(cart: CartStore, form: dict, token: str) -> str:
    """Open a hosted card payment page and return its url."""
    checkout_form = validate_form(form)
    _require_items(cart)
    try:
        data = await api.create_checkout_session(
            token, cart.order_lines(), checkout_form.customer()
        )
    except httpx.HTTPError as e:
        raise _failure(e, "Creating checkout session")
    return data["url"]


async def confirm_hosted_checkout(
    cart: CartStore, session_id: str, form: dict, token: str
) -> str:
    """Record the order after the payment page redirects back; returns the order id."""
    checkout_form = validate_form(form)
    _require_items(cart)
    try:
        data = await api.confirm_order(
            token, session_id, cart.order_lines(), checkout_form.customer()
        )
    except httpx.HTTPError as e:
        raise _failure(e, f"Confirming session {session_id}")

    cart.clear_cart()
    return data["orderId"]
