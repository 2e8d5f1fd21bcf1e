"""
Stripe Checkout API client.

Provides async methods for:
- Creating hosted checkout sessions
- Retrieving a checkout session to read its payment status
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

import httpx
from libs.common.config import get_settings

logger = logging.getLogger(__name__)

settings = get_settings()


@dataclass
class CheckoutLineItem:
    """One line on the hosted payment page."""

    name: str
    unit_amount: int  # in satang
    quantity: int


@dataclass
class CheckoutSession:
    """Subset of a Stripe Checkout Session the store relies on."""

    id: str
    url: Optional[str]
    payment_status: str  # paid, unpaid, no_payment_required
    status: Optional[str]  # open, complete, expired
    amount_total: Optional[int]  # in satang
    currency: Optional[str]
    client_reference_id: Optional[str]
    customer_email: Optional[str]
    metadata: dict = field(default_factory=dict)

    @property
    def is_paid(self) -> bool:
        return self.payment_status == "paid"

    @classmethod
    def from_api(cls, data: dict) -> "CheckoutSession":
        customer_details = data.get("customer_details") or {}
        return cls(
            id=data.get("id", ""),
            url=data.get("url"),
            payment_status=data.get("payment_status", "unpaid"),
            status=data.get("status"),
            amount_total=data.get("amount_total"),
            currency=data.get("currency"),
            client_reference_id=data.get("client_reference_id"),
            customer_email=customer_details.get("email") or data.get("customer_email"),
            metadata=data.get("metadata") or {},
        )


class StripeError(Exception):
    """Base exception for Stripe API errors."""

    def __init__(
        self, message: str, status_code: int = None, response_data: dict = None
    ):
        self.message = message
        self.status_code = status_code
        self.response_data = response_data or {}
        super().__init__(message)


def encode_line_items(items: List[CheckoutLineItem], currency: str) -> dict:
    """Flatten line items into Stripe's bracketed form-encoding."""
    form = {}
    for index, item in enumerate(items):
        prefix = f"line_items[{index}]"
        form[f"{prefix}[price_data][currency]"] = currency
        form[f"{prefix}[price_data][product_data][name]"] = item.name
        form[f"{prefix}[price_data][unit_amount]"] = str(item.unit_amount)
        form[f"{prefix}[quantity]"] = str(item.quantity)
    return form


class StripeClient:
    """Async client for the Stripe Checkout Sessions API."""

    def __init__(self, secret_key: str = None, base_url: str = None):
        self.secret_key = secret_key or settings.STRIPE_SECRET_KEY
        if not self.secret_key:
            raise ValueError("STRIPE_SECRET_KEY is required")
        self.base_url = (base_url or settings.STRIPE_API_BASE).rstrip("/")
        self._headers = {"Authorization": f"Bearer {self.secret_key}"}

    async def _request(
        self,
        method: str,
        endpoint: str,
        params: dict = None,
        form_data: dict = None,
    ) -> dict:
        """Make an async request to the Stripe API."""
        url = f"{self.base_url}{endpoint}"

        try:
            async with httpx.AsyncClient(timeout=30.0) as client:
                response = await client.request(
                    method,
                    url,
                    headers=self._headers,
                    params=params,
                    data=form_data,
                )
        except httpx.HTTPError as e:
            logger.error(f"Stripe request failed: {method} {endpoint} - {e!r}")
            raise StripeError(message=f"Stripe request failed: {e}") from e

        try:
            data = response.json()
        except ValueError as e:
            logger.error(
                f"Stripe returned a non-JSON body: {response.status_code} {method} {endpoint}"
            )
            raise StripeError(
                message="Invalid response from Stripe",
                status_code=response.status_code,
            ) from e

        if not response.is_success:
            error = data.get("error", {}) if isinstance(data, dict) else {}
            logger.error(f"Stripe API error: {response.status_code} - {error}")
            raise StripeError(
                message=error.get("message", "Unknown Stripe error"),
                status_code=response.status_code,
                response_data=data,
            )

        return data

    async def create_checkout_session(
        self,
        line_items: List[CheckoutLineItem],
        success_url: str,
        cancel_url: str,
        client_reference_id: str = None,
        customer_email: str = None,
        currency: str = None,
        metadata: dict = None,
    ) -> CheckoutSession:
        """
        Create a hosted card checkout session.

        Args:
            line_items: Items with unit amounts in satang
            success_url: Redirect after payment; may contain {CHECKOUT_SESSION_ID}
            cancel_url: Redirect when the customer backs out
            client_reference_id: Our user id, echoed back on the session
            metadata: String key/values stored on the session and returned on retrieval

        Returns:
            CheckoutSession with the hosted page url
        """
        form = {
            "mode": "payment",
            "payment_method_types[0]": "card",
            "success_url": success_url,
            "cancel_url": cancel_url,
        }
        form.update(encode_line_items(line_items, currency or settings.STORE_CURRENCY))
        if client_reference_id:
            form["client_reference_id"] = client_reference_id
        if customer_email:
            form["customer_email"] = customer_email
        for key, value in (metadata or {}).items():
            form[f"metadata[{key}]"] = value

        data = await self._request("POST", "/checkout/sessions", form_data=form)
        return CheckoutSession.from_api(data)

    async def retrieve_checkout_session(self, session_id: str) -> CheckoutSession:
        """
        Fetch a checkout session by id.

        Returns:
            CheckoutSession with current payment_status
        """
        data = await self._request("GET", f"/checkout/sessions/{session_id}")
        return CheckoutSession.from_api(data)


def get_stripe_client() -> StripeClient:
    """FastAPI dependency returning a StripeClient."""
    return StripeClient()
