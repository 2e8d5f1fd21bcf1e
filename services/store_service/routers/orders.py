"""Store orders router: order history and customer order actions."""

import uuid

from fastapi import APIRouter, Depends, HTTPException
from libs.auth.dependencies import get_current_user
from libs.auth.models import AuthUser
from libs.db.session import get_async_db
from services.store_service.checkout import get_order_with_items
from services.store_service.lifecycle import ACTIVE_STATUSES
from services.store_service.models import Order
from services.store_service.order_actions import (
    cancel_order,
    confirm_receipt,
    count_orders_in,
    get_owned_order,
    report_lost,
    request_refund,
)
from services.store_service.schemas import (
    IssueReportRequest,
    OrderResponse,
    OrderSummaryResponse,
    RefundRequestCreate,
)
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

router = APIRouter(tags=["store"])


async def _reload(db: AsyncSession, order: Order) -> Order:
    return await get_order_with_items(db, order.id)


# ============================================================================
# ORDER HISTORY
# ============================================================================


@router.get("/orders", response_model=list[OrderResponse])
async def list_my_orders(
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """List the caller's orders, newest first."""
    query = (
        select(Order)
        .where(Order.user_id == current_user.user_id)
        .options(selectinload(Order.items))
        .order_by(Order.created_at.desc())
    )
    result = await db.execute(query)
    return result.scalars().all()


@router.get("/orders/summary", response_model=OrderSummaryResponse)
async def get_order_summary(
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Count of the caller's orders that are still in progress."""
    active = await count_orders_in(db, current_user.user_id, ACTIVE_STATUSES)
    return OrderSummaryResponse(active_count=active)


@router.get("/orders/{order_id}", response_model=OrderResponse)
async def get_my_order(
    order_id: uuid.UUID,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Get one of the caller's orders with its items."""
    order = await get_order_with_items(db, order_id, user_id=current_user.user_id)
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    return order


# ============================================================================
# CUSTOMER ACTIONS
# ============================================================================


@router.post("/orders/{order_id}/cancel", response_model=OrderResponse)
async def cancel_my_order(
    order_id: uuid.UUID,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Cancel an order that has not shipped yet."""
    order = await get_owned_order(db, order_id, current_user)
    order = await cancel_order(db, order, current_user)
    return await _reload(db, order)


@router.post("/orders/{order_id}/confirm-receipt", response_model=OrderResponse)
async def confirm_my_order_receipt(
    order_id: uuid.UUID,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Close out a delivered order as well received."""
    order = await get_owned_order(db, order_id, current_user)
    order = await confirm_receipt(db, order, current_user)
    return await _reload(db, order)


@router.post("/orders/{order_id}/report-lost", response_model=OrderResponse)
async def report_my_order_lost(
    order_id: uuid.UUID,
    payload: IssueReportRequest,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Report a delivered order as never received."""
    order = await get_owned_order(db, order_id, current_user)
    order = await report_lost(
        db, order, current_user, payload.description, payload.photo_url
    )
    return await _reload(db, order)


@router.post("/orders/{order_id}/refund-request", response_model=OrderResponse)
async def request_my_order_refund(
    order_id: uuid.UUID,
    payload: RefundRequestCreate,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Ask for a refund on a delivered order."""
    order = await get_owned_order(db, order_id, current_user)
    order = await request_refund(
        db, order, current_user, payload.reason, payload.photo_url
    )
    return await _reload(db, order)
