"""Unit tests for the storefront API client and checkout helpers."""

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest
from storefront import api
from storefront.cart import CartStore
from storefront.checkout import (
    GENERIC_FAILURE,
    CheckoutError,
    confirm_hosted_checkout,
    start_hosted_checkout,
    submit_order,
)
from storefront.storage import MemoryStorage

MOCK_TOKEN = "test-token"

FORM = {
    "full_name": "Somchai Jaidee",
    "phone": "0812345678",
    "address_line1": "99 Sukhumvit Rd",
    "city": "Bangkok",
    "province": "Bangkok",
    "postal_code": "10110",
    "email": "somchai@example.com",
}


def _cart() -> CartStore:
    cart = CartStore(MemoryStorage())
    cart.add_item({"id": "p1", "name": "Lavender Dusk", "price": 420, "stock": None}, 2)
    return cart


def _response(payload, status_code=200) -> MagicMock:
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = payload
    return response


# ---------------------------------------------------------------------------
# API client
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_list_products_is_anonymous():
    with patch("httpx.AsyncClient.request", new_callable=AsyncMock) as mock_request:
        mock_request.return_value = _response([{"id": "p1"}])

        result = await api.list_products()

        assert result == [{"id": "p1"}]
        args, kwargs = mock_request.call_args
        assert args[0] == "GET"
        assert args[1].endswith("/api/products")
        assert "Authorization" not in kwargs["headers"]


@pytest.mark.asyncio
@pytest.mark.unit
async def test_mark_notification_read_handles_no_content():
    with patch("httpx.AsyncClient.request", new_callable=AsyncMock) as mock_request:
        mock_request.return_value = _response(None, status_code=204)

        assert await api.mark_notification_read(MOCK_TOKEN, "n1") is None
        args, kwargs = mock_request.call_args
        assert args[1].endswith("/api/notifications/n1/read")
        assert kwargs["headers"]["Authorization"] == f"Bearer {MOCK_TOKEN}"


# ---------------------------------------------------------------------------
# Delivery-form checkout
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_submit_order_clears_cart_on_success():
    cart = _cart()
    with patch("httpx.AsyncClient.request", new_callable=AsyncMock) as mock_request:
        mock_request.return_value = _response({"id": "order-1", "total_amount": 840})

        order = await submit_order(cart, FORM, "cash_on_delivery", MOCK_TOKEN, "req-1")

        assert order["id"] == "order-1"
        assert cart.is_empty
        args, kwargs = mock_request.call_args
        assert args[0] == "POST"
        assert args[1].endswith("/api/orders")
        body = kwargs["json"]
        assert body["items"] == [{"productId": "p1", "quantity": 2, "unitPrice": 420}]
        assert body["payment_method"] == "cash_on_delivery"
        assert body["client_request_id"] == "req-1"
        assert "email" not in body["shipping"]


@pytest.mark.asyncio
@pytest.mark.unit
async def test_submit_order_keeps_cart_on_failure():
    cart = _cart()
    with patch("httpx.AsyncClient.request", new_callable=AsyncMock) as mock_request:
        mock_request.side_effect = httpx.ConnectError("connection refused")

        with pytest.raises(CheckoutError) as exc:
            await submit_order(cart, FORM, "bank_transfer", MOCK_TOKEN)

        assert exc.value.message == GENERIC_FAILURE
        assert cart.item_count == 2


@pytest.mark.asyncio
@pytest.mark.unit
async def test_submit_order_validates_form_before_sending():
    cart = _cart()
    with patch("httpx.AsyncClient.request", new_callable=AsyncMock) as mock_request:
        with pytest.raises(CheckoutError) as exc:
            await submit_order(cart, {**FORM, "city": "  "}, "cash_on_delivery", MOCK_TOKEN)

        assert "city" in exc.value.message
        mock_request.assert_not_called()


@pytest.mark.asyncio
@pytest.mark.unit
async def test_submit_order_rejects_empty_cart_and_card():
    with pytest.raises(CheckoutError):
        await submit_order(CartStore(MemoryStorage()), FORM, "cash_on_delivery", MOCK_TOKEN)
    with pytest.raises(CheckoutError):
        await submit_order(_cart(), FORM, "card", MOCK_TOKEN)


# ---------------------------------------------------------------------------
# Hosted checkout
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_start_hosted_checkout_returns_url_and_keeps_cart():
    cart = _cart()
    with patch("httpx.AsyncClient.request", new_callable=AsyncMock) as mock_request:
        mock_request.return_value = _response({"url": "https://pay.example/cs_1"})

        url = await start_hosted_checkout(cart, FORM, MOCK_TOKEN)

        assert url == "https://pay.example/cs_1"
        assert cart.item_count == 2
        _, kwargs = mock_request.call_args
        assert kwargs["json"]["user"]["fullName"] == "Somchai Jaidee"


@pytest.mark.asyncio
@pytest.mark.unit
async def test_confirm_hosted_checkout_clears_cart():
    cart = _cart()
    with patch("httpx.AsyncClient.request", new_callable=AsyncMock) as mock_request:
        mock_request.return_value = _response({"orderId": "order-9"})

        order_id = await confirm_hosted_checkout(cart, "cs_1", FORM, MOCK_TOKEN)

        assert order_id == "order-9"
        assert cart.is_empty
        _, kwargs = mock_request.call_args
        assert kwargs["json"]["sessionId"] == "cs_1"


@pytest.mark.asyncio
@pytest.mark.unit
async def test_confirm_hosted_checkout_unpaid_keeps_cart():
    cart = _cart()
    request = httpx.Request("POST", "http://test/api/confirm-order")
    response = httpx.Response(400, request=request, json={"detail": "Payment not completed"})
    with patch("httpx.AsyncClient.request", new_callable=AsyncMock) as mock_request:
        mock_request.return_value = response

        with pytest.raises(CheckoutError) as exc:
            await confirm_hosted_checkout(cart, "cs_1", FORM, MOCK_TOKEN)

        assert exc.value.status_code == 400
        assert cart.item_count == 2
