"""Admin store orders router: order queue and fulfilment."""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from libs.auth.models import AuthUser
from libs.db.session import get_async_db
from services.store_service.checkout import get_order_with_items
from services.store_service.dependencies import require_admin
from services.store_service.filters import order_matches
from services.store_service.models import Order, OrderStatus
from services.store_service.order_actions import advance_order
from services.store_service.schemas import OrderResponse
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

router = APIRouter(tags=["admin-store"])


@router.get("/orders", response_model=list[OrderResponse])
async def list_all_orders(
    status: Optional[OrderStatus] = None,
    search: Optional[str] = None,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """List all orders, newest first.

    Filtering happens after load so legacy status labels match their
    current equivalents.
    """
    query = (
        select(Order)
        .options(selectinload(Order.items))
        .order_by(Order.created_at.desc())
    )
    result = await db.execute(query)
    orders = result.scalars().all()
    return [o for o in orders if order_matches(o, status=status, search=search)]


@router.get("/orders/{order_id}", response_model=OrderResponse)
async def get_order_admin(
    order_id: uuid.UUID,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Get order details with items."""
    order = await get_order_with_items(db, order_id)
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    return order


@router.post("/orders/{order_id}/advance", response_model=OrderResponse)
async def advance_order_status(
    order_id: uuid.UUID,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Move an order to its next fulfilment step."""
    result = await db.execute(select(Order).where(Order.id == order_id))
    order = result.scalar_one_or_none()
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")

    order = await advance_order(db, order, current_user)
    return await get_order_with_items(db, order.id)
