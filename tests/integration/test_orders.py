"""Integration tests for order history and lifecycle actions."""

import uuid
from unittest.mock import patch

import pytest
from services.store_service.app.main import app
from services.store_service.models import (
    Order,
    OrderIssue,
    OrderStatus,
    RefundRequest,
    StoreAuditLog,
)
from sqlalchemy import func, select, text
from sqlalchemy.exc import OperationalError
from tests.conftest import make_other_user, make_service_user, override_auth
from tests.factories import OrderFactory, ProductFactory


async def _add_order(db, **overrides) -> Order:
    product = ProductFactory.create()
    db.add(product)
    order = OrderFactory.create(product=product, **overrides)
    db.add(order)
    await db.commit()
    return order


async def _count(db, model) -> int:
    result = await db.execute(select(func.count()).select_from(model))
    return result.scalar()


async def _status_of(db, order_id) -> OrderStatus:
    db.expire_all()
    result = await db.execute(select(Order.status).where(Order.id == order_id))
    return result.scalar_one()


# ---------------------------------------------------------------------------
# History
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_list_my_orders_only_returns_callers_orders(client, db_session):
    mine = await _add_order(db_session)
    await _add_order(db_session, user_id="someone-else")

    response = await client.get("/api/orders")

    assert response.status_code == 200
    data = response.json()
    assert [o["id"] for o in data] == [str(mine.id)]
    assert len(data[0]["items"]) == 1


@pytest.mark.asyncio
@pytest.mark.integration
async def test_get_order_of_another_user_is_404(client, db_session):
    theirs = await _add_order(db_session, user_id="someone-else")

    response = await client.get(f"/api/orders/{theirs.id}")
    assert response.status_code == 404


@pytest.mark.asyncio
@pytest.mark.integration
async def test_order_summary_counts_active_orders(client, db_session):
    await _add_order(db_session, status=OrderStatus.PENDING)
    await _add_order(db_session, status=OrderStatus.SHIPPED)
    await _add_order(db_session, status=OrderStatus.CANCELLED)
    await _add_order(db_session, status=OrderStatus.WELL_RECEIVED)

    response = await client.get("/api/orders/summary")

    assert response.status_code == 200
    assert response.json() == {"active_count": 2}


@pytest.mark.asyncio
@pytest.mark.integration
async def test_legacy_status_labels_load_as_current(client, db_session):
    order = await _add_order(db_session)
    await db_session.execute(
        text("UPDATE orders SET status = 'delivering' WHERE id = :id"),
        {"id": order.id.hex},
    )
    await db_session.commit()

    response = await client.get(f"/api/orders/{order.id}")
    assert response.json()["status"] == "shipped"

    summary = await client.get("/api/orders/summary")
    assert summary.json() == {"active_count": 1}


# ---------------------------------------------------------------------------
# Customer actions
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_cancel_pending_order(client, db_session):
    order = await _add_order(db_session)

    response = await client.post(f"/api/orders/{order.id}/cancel")

    assert response.status_code == 200, response.text
    data = response.json()
    assert data["status"] == "cancelled"
    assert data["cancelled_at"] is not None

    result = await db_session.execute(select(StoreAuditLog))
    audit = result.scalar_one()
    assert audit.old_value == {"status": "pending"}
    assert audit.new_value == {"status": "cancelled"}
    assert audit.performed_by == "test-user"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_cancel_shipped_order_is_conflict(client, db_session):
    order = await _add_order(db_session, status=OrderStatus.SHIPPED)

    response = await client.post(f"/api/orders/{order.id}/cancel")

    assert response.status_code == 409
    assert await _status_of(db_session, order.id) == OrderStatus.SHIPPED
    assert await _count(db_session, StoreAuditLog) == 0


@pytest.mark.asyncio
@pytest.mark.integration
async def test_cannot_act_on_another_users_order(client, db_session):
    order = await _add_order(db_session)

    with override_auth(app, make_other_user()):
        response = await client.post(f"/api/orders/{order.id}/cancel")

    assert response.status_code == 404
    assert await _status_of(db_session, order.id) == OrderStatus.PENDING


@pytest.mark.asyncio
@pytest.mark.integration
async def test_delivered_order_reaches_exactly_one_terminal_status(client, db_session):
    order = await _add_order(db_session, status=OrderStatus.DELIVERED)

    confirmed = await client.post(f"/api/orders/{order.id}/confirm-receipt")
    assert confirmed.status_code == 200
    assert confirmed.json()["status"] == "well_received"

    lost = await client.post(
        f"/api/orders/{order.id}/report-lost", json={"description": "Box never came"}
    )
    refund = await client.post(
        f"/api/orders/{order.id}/refund-request", json={"reason": "Wrong scent"}
    )

    assert lost.status_code == 409
    assert refund.status_code == 409
    assert await _status_of(db_session, order.id) == OrderStatus.WELL_RECEIVED
    assert await _count(db_session, OrderIssue) == 0
    assert await _count(db_session, RefundRequest) == 0


@pytest.mark.asyncio
@pytest.mark.integration
async def test_report_lost_writes_issue_with_status(client, db_session):
    order = await _add_order(db_session, status=OrderStatus.DELIVERED)

    response = await client.post(
        f"/api/orders/{order.id}/report-lost",
        json={"description": "Parcel marked delivered but not here", "photo_url": "https://img/1.jpg"},
    )

    assert response.status_code == 200, response.text
    assert response.json()["status"] == "lost"
    result = await db_session.execute(select(OrderIssue))
    issue = result.scalar_one()
    assert issue.order_id == order.id
    assert issue.user_id == "test-user"
    assert issue.photo_url == "https://img/1.jpg"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_refund_request_before_delivery_is_rejected(client, db_session):
    order = await _add_order(db_session, status=OrderStatus.PREPARING)

    response = await client.post(
        f"/api/orders/{order.id}/refund-request", json={"reason": "Changed my mind"}
    )

    assert response.status_code == 409
    assert await _count(db_session, RefundRequest) == 0


@pytest.mark.asyncio
@pytest.mark.integration
async def test_refund_request_database_failure_keeps_prior_status(client, db_session):
    order = await _add_order(db_session, status=OrderStatus.DELIVERED)

    with patch(
        "sqlalchemy.ext.asyncio.AsyncSession.commit",
        side_effect=OperationalError("UPDATE", {}, Exception("connection lost")),
    ):
        response = await client.post(
            f"/api/orders/{order.id}/refund-request", json={"reason": "Cracked jar"}
        )

    assert response.status_code == 503
    assert "try again" in response.json()["detail"]
    assert await _status_of(db_session, order.id) == OrderStatus.DELIVERED
    assert await _count(db_session, RefundRequest) == 0


@pytest.mark.asyncio
@pytest.mark.integration
async def test_stale_status_loses_the_race(db_session):
    """The conditional update refuses to overwrite a status changed meanwhile."""
    from fastapi import HTTPException
    from services.store_service.order_actions import cancel_order
    from tests.conftest import make_user

    order = await _add_order(db_session, status=OrderStatus.PENDING)
    # Another request ships the order after we read it
    await db_session.execute(
        text("UPDATE orders SET status = 'shipped' WHERE id = :id"),
        {"id": order.id.hex},
    )
    await db_session.commit()
    order.status = OrderStatus.PENDING

    with pytest.raises(HTTPException) as exc:
        await cancel_order(db_session, order, make_user())

    assert exc.value.status_code == 409
    assert await _status_of(db_session, order.id) == OrderStatus.SHIPPED


# ---------------------------------------------------------------------------
# Admin fulfilment
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_admin_advances_order_to_delivered(client, db_session):
    order = await _add_order(db_session)

    with override_auth(app, make_service_user()):
        statuses = []
        for _ in range(3):
            response = await client.post(f"/api/admin/orders/{order.id}/advance")
            assert response.status_code == 200, response.text
            statuses.append(response.json()["status"])
        final = await client.post(f"/api/admin/orders/{order.id}/advance")

    assert statuses == ["preparing", "shipped", "delivered"]
    assert final.status_code == 409
    assert await _count(db_session, StoreAuditLog) == 3

    result = await db_session.execute(select(Order.delivered_at).where(Order.id == order.id))
    assert result.scalar_one() is not None


@pytest.mark.asyncio
@pytest.mark.integration
async def test_admin_endpoints_require_admin(client, db_session):
    order = await _add_order(db_session)

    advance = await client.post(f"/api/admin/orders/{order.id}/advance")
    listing = await client.get("/api/admin/orders")

    assert advance.status_code == 403
    assert listing.status_code == 403
    assert await _status_of(db_session, order.id) == OrderStatus.PENDING


@pytest.mark.asyncio
@pytest.mark.integration
async def test_admin_order_list_filters(client, db_session):
    await _add_order(db_session, city="Chiang Mai", status=OrderStatus.SHIPPED)
    bangkok = await _add_order(db_session, city="Bangkok")

    with override_auth(app, make_service_user()):
        by_status = await client.get("/api/admin/orders", params={"status": "pending"})
        by_search = await client.get("/api/admin/orders", params={"search": "chiang"})
        missing = await client.get(f"/api/admin/orders/{uuid.uuid4()}")

    assert [o["id"] for o in by_status.json()] == [str(bangkok.id)]
    assert [o["city"] for o in by_search.json()] == ["Chiang Mai"]
    assert missing.status_code == 404
