"""Store notifications router: the caller's inbox."""

import uuid

from fastapi import APIRouter, Depends, HTTPException
from libs.auth.dependencies import get_current_user
from libs.auth.models import AuthUser
from libs.db.session import get_async_db
from services.store_service.models import Notification, NotificationRead
from services.store_service.schemas import (
    MemberNotificationResponse,
    UnreadCountResponse,
)
from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(tags=["store"])


def _visible_to(user_id: str):
    return or_(Notification.is_global.is_(True), Notification.user_id == user_id)


async def _read_ids(db: AsyncSession, user_id: str) -> set[uuid.UUID]:
    result = await db.execute(
        select(NotificationRead.notification_id).where(
            NotificationRead.user_id == user_id
        )
    )
    return set(result.scalars().all())


@router.get("/notifications", response_model=list[MemberNotificationResponse])
async def list_my_notifications(
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """List broadcast and personal notifications, newest first."""
    result = await db.execute(
        select(Notification)
        .where(_visible_to(current_user.user_id))
        .order_by(Notification.created_at.desc())
    )
    notifications = result.scalars().all()
    read_ids = await _read_ids(db, current_user.user_id)

    responses = []
    for notification in notifications:
        response = MemberNotificationResponse.model_validate(notification)
        response.is_read = notification.id in read_ids
        responses.append(response)
    return responses


@router.get("/notifications/unread-count", response_model=UnreadCountResponse)
async def get_unread_count(
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    read_exists = (
        select(NotificationRead.id)
        .where(
            NotificationRead.notification_id == Notification.id,
            NotificationRead.user_id == current_user.user_id,
        )
        .exists()
    )
    result = await db.execute(
        select(func.count())
        .select_from(Notification)
        .where(_visible_to(current_user.user_id), ~read_exists)
    )
    return UnreadCountResponse(count=result.scalar() or 0)


@router.post("/notifications/{notification_id}/read", status_code=204)
async def mark_notification_read(
    notification_id: uuid.UUID,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Mark a notification as read. Repeating the call is harmless."""
    result = await db.execute(
        select(Notification.id).where(
            Notification.id == notification_id, _visible_to(current_user.user_id)
        )
    )
    if result.scalar_one_or_none() is None:
        raise HTTPException(status_code=404, detail="Notification not found")

    existing = await db.execute(
        select(NotificationRead.id).where(
            NotificationRead.notification_id == notification_id,
            NotificationRead.user_id == current_user.user_id,
        )
    )
    if existing.scalar_one_or_none() is not None:
        return None

    db.add(
        NotificationRead(
            notification_id=notification_id, user_id=current_user.user_id
        )
    )
    try:
        await db.commit()
    except IntegrityError:
        # Marked by a concurrent request
        await db.rollback()
    return None
