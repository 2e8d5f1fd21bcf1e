import httpx
from typing import Any, Dict, List, Optional
from libs.common.config import get_settings

settings = get_settings()


async def _make_request(
    method: str,
    path: str,
    token: Optional[str] = None,
    json: Optional[Dict] = None,
    params: Optional[Dict] = None,
) -> Any:
    """Helper to make (optionally authenticated) requests to the store API."""
    url = f"{settings.API_BASE_URL}{path}"
    headers = {"Authorization": f"Bearer {token}"} if token else {}

    async with httpx.AsyncClient(timeout=30.0) as client:
        response = await client.request(
            method, url, headers=headers, json=json, params=params
        )
        response.raise_for_status()
        if response.status_code == 204:
            return None
        return response.json()


# Catalog

async def list_products() -> List[Dict[str, Any]]:
    """List active products, newest first."""
    return await _make_request("GET", "/api/products")

async def get_product(product_id: str) -> Dict[str, Any]:
    """Get a single product."""
    return await _make_request("GET", f"/api/products/{product_id}")


# Checkout

async def place_order(token: str, payload: Dict[str, Any]) -> Dict[str, Any]:
    """Place a cash-on-delivery or bank-transfer order."""
    return await _make_request("POST", "/api/orders", token, json=payload)

async def create_checkout_session(token: str, items: List[Dict], user: Optional[Dict] = None) -> Dict[str, Any]:
    """Open a hosted card payment page; returns ``{"url": ...}``."""
    return await _make_request("POST", "/api/create-checkout-session", token, json={"items": items, "user": user})

async def confirm_order(token: str, session_id: str, items: List[Dict], user: Dict) -> Dict[str, Any]:
    """Record the order for a paid session; returns ``{"orderId": ...}``."""
    payload = {"sessionId": session_id, "items": items, "user": user}
    return await _make_request("POST", "/api/confirm-order", token, json=payload)


# Orders

async def list_my_orders(token: str) -> List[Dict[str, Any]]:
    return await _make_request("GET", "/api/orders", token)

async def get_order_summary(token: str) -> Dict[str, Any]:
    return await _make_request("GET", "/api/orders/summary", token)

async def get_my_order(token: str, order_id: str) -> Dict[str, Any]:
    return await _make_request("GET", f"/api/orders/{order_id}", token)

async def cancel_order(token: str, order_id: str) -> Dict[str, Any]:
    return await _make_request("POST", f"/api/orders/{order_id}/cancel", token)

async def confirm_receipt(token: str, order_id: str) -> Dict[str, Any]:
    return await _make_request("POST", f"/api/orders/{order_id}/confirm-receipt", token)

async def report_lost(token: str, order_id: str, description: str, photo_url: Optional[str] = None) -> Dict[str, Any]:
    payload = {"description": description, "photo_url": photo_url}
    return await _make_request("POST", f"/api/orders/{order_id}/report-lost", token, json=payload)

async def request_refund(token: str, order_id: str, reason: str, photo_url: Optional[str] = None) -> Dict[str, Any]:
    payload = {"reason": reason, "photo_url": photo_url}
    return await _make_request("POST", f"/api/orders/{order_id}/refund-request", token, json=payload)


# Profile and notifications

async def get_profile(token: str) -> Dict[str, Any]:
    return await _make_request("GET", "/api/profile", token)

async def update_profile(token: str, **fields: Any) -> Dict[str, Any]:
    return await _make_request("PATCH", "/api/profile", token, json=fields)

async def list_notifications(token: str) -> List[Dict[str, Any]]:
    return await _make_request("GET", "/api/notifications", token)

async def get_unread_count(token: str) -> int:
    data = await _make_request("GET", "/api/notifications/unread-count", token)
    return data["count"]

async def mark_notification_read(token: str, notification_id: str) -> None:
    await _make_request("POST", f"/api/notifications/{notification_id}/read", token)
