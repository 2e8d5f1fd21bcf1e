"""Applying lifecycle events to persisted orders."""

from typing import Iterable, Optional

from fastapi import HTTPException
from libs.auth.models import AuthUser
from libs.common.datetime_utils import utc_now
from libs.common.logging import get_logger
from services.store_service.audit import log_audit
from services.store_service.lifecycle import (
    PROFILE_LOCK_STATUSES,
    Actor,
    InvalidTransitionError,
    OrderEvent,
    next_status,
)
from services.store_service.models import (
    LEGACY_ORDER_STATUS_MAP,
    AuditEntityType,
    Order,
    OrderIssue,
    OrderStatus,
    RefundRequest,
)
from sqlalchemy import String, func, select, type_coerce, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

RETRY_MESSAGE = "Failed to update order. Please try again."


def stored_labels(status: OrderStatus) -> list[str]:
    """Every raw value that loads as ``status``, legacy labels included."""
    return [status.value] + [
        label for label, mapped in LEGACY_ORDER_STATUS_MAP.items() if mapped == status
    ]


async def apply_event(
    db: AsyncSession,
    order: Order,
    event: OrderEvent,
    actor: Actor,
    performed_by: AuthUser,
    records: Iterable = (),
    notes: Optional[str] = None,
) -> Order:
    """Move ``order`` along the lifecycle.

    The status only changes if it still holds the value we read, so two
    racing actions cannot both succeed. ``records`` (issue or refund rows)
    are written in the same transaction as the status change.
    """
    current = order.status
    try:
        target = next_status(current, event, actor)
    except InvalidTransitionError as e:
        raise HTTPException(status_code=409, detail=str(e))

    now = utc_now()
    values = {"status": target, "updated_at": now}
    if target == OrderStatus.DELIVERED:
        values["delivered_at"] = now
    elif target == OrderStatus.CANCELLED:
        values["cancelled_at"] = now

    try:
        result = await db.execute(
            update(Order)
            .where(
                Order.id == order.id,
                type_coerce(Order.status, String).in_(stored_labels(current)),
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            await db.rollback()
            raise HTTPException(
                status_code=409,
                detail="Order was updated by someone else. Reload and try again.",
            )

        for record in records:
            db.add(record)

        log_audit(
            db,
            AuditEntityType.ORDER,
            order.id,
            "status_changed",
            performed_by.user_id,
            old_value={"status": current.value},
            new_value={"status": target.value},
            notes=notes or f"{actor.value}:{event.value}",
        )
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        logger.exception(f"Failed to {event.value} order {order.id}")
        raise HTTPException(status_code=503, detail=RETRY_MESSAGE)

    await db.refresh(order)
    logger.info(
        f"Order {order.id} {current.value} -> {target.value} by {performed_by.user_id}"
    )
    return order


async def get_owned_order(db: AsyncSession, order_id, user: AuthUser) -> Order:
    result = await db.execute(
        select(Order).where(Order.id == order_id, Order.user_id == user.user_id)
    )
    order = result.scalar_one_or_none()
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    return order


# ============================================================================
# CUSTOMER ACTIONS
# ============================================================================


async def cancel_order(db: AsyncSession, order: Order, user: AuthUser) -> Order:
    return await apply_event(db, order, OrderEvent.CANCEL, Actor.CUSTOMER, user)


async def confirm_receipt(db: AsyncSession, order: Order, user: AuthUser) -> Order:
    return await apply_event(
        db, order, OrderEvent.CONFIRM_RECEIPT, Actor.CUSTOMER, user
    )


async def report_lost(
    db: AsyncSession,
    order: Order,
    user: AuthUser,
    description: str,
    photo_url: Optional[str] = None,
) -> Order:
    issue = OrderIssue(
        order_id=order.id,
        user_id=user.user_id,
        description=description,
        photo_url=photo_url,
    )
    return await apply_event(
        db, order, OrderEvent.REPORT_LOST, Actor.CUSTOMER, user, records=[issue]
    )


async def request_refund(
    db: AsyncSession,
    order: Order,
    user: AuthUser,
    reason: str,
    photo_url: Optional[str] = None,
) -> Order:
    refund = RefundRequest(
        order_id=order.id,
        user_id=user.user_id,
        reason=reason,
        photo_url=photo_url,
    )
    return await apply_event(
        db, order, OrderEvent.REQUEST_REFUND, Actor.CUSTOMER, user, records=[refund]
    )


# ============================================================================
# ADMIN ACTIONS
# ============================================================================


async def advance_order(db: AsyncSession, order: Order, admin: AuthUser) -> Order:
    return await apply_event(db, order, OrderEvent.ADVANCE, Actor.ADMIN, admin)


# ============================================================================
# QUERIES
# ============================================================================


async def count_orders_in(
    db: AsyncSession, user_id: str, statuses: Iterable[OrderStatus]
) -> int:
    labels = [label for status in statuses for label in stored_labels(status)]
    result = await db.execute(
        select(func.count())
        .select_from(Order)
        .where(
            Order.user_id == user_id,
            type_coerce(Order.status, String).in_(labels),
        )
    )
    return result.scalar() or 0


async def has_order_out_for_delivery(db: AsyncSession, user_id: str) -> bool:
    return await count_orders_in(db, user_id, PROFILE_LOCK_STATUSES) > 0
