"""Admin store notifications router: broadcast and targeted messages."""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from libs.auth.models import AuthUser
from libs.common.logging import get_logger
from libs.db.session import get_async_db
from services.store_service.audit import log_audit
from services.store_service.dependencies import require_admin
from services.store_service.filters import notification_matches
from services.store_service.models import (
    AuditEntityType,
    Notification,
    NotificationRead,
)
from services.store_service.schemas import NotificationCreate, NotificationResponse
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

router = APIRouter(tags=["admin-store"])


@router.get("/notifications", response_model=list[NotificationResponse])
async def list_all_notifications(
    search: Optional[str] = None,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """List all notifications, newest first."""
    result = await db.execute(
        select(Notification).order_by(Notification.created_at.desc())
    )
    notifications = result.scalars().all()
    return [n for n in notifications if notification_matches(n, search=search)]


@router.post(
    "/notifications",
    response_model=NotificationResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_notification(
    notification_in: NotificationCreate,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Send a notification; without ``user_id`` it goes to everyone."""
    notification = Notification(
        title=notification_in.title,
        body=notification_in.body,
        category=notification_in.category,
        user_id=notification_in.user_id,
        is_global=notification_in.user_id is None,
    )
    db.add(notification)
    await db.flush()

    log_audit(
        db,
        AuditEntityType.NOTIFICATION,
        notification.id,
        "notification_created",
        current_user.user_id,
        new_value={
            "title": notification.title,
            "category": notification.category.value,
            "user_id": notification.user_id,
        },
    )
    await db.commit()
    await db.refresh(notification)
    logger.info(f"Notification {notification.id} sent by {current_user.user_id}")
    return notification


@router.delete(
    "/notifications/{notification_id}", status_code=status.HTTP_204_NO_CONTENT
)
async def delete_notification(
    notification_id: uuid.UUID,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Delete a notification and its read markers."""
    result = await db.execute(
        select(Notification).where(Notification.id == notification_id)
    )
    notification = result.scalar_one_or_none()
    if not notification:
        raise HTTPException(status_code=404, detail="Notification not found")

    log_audit(
        db,
        AuditEntityType.NOTIFICATION,
        notification.id,
        "notification_deleted",
        current_user.user_id,
        old_value={"title": notification.title},
    )
    await db.execute(
        delete(NotificationRead).where(
            NotificationRead.notification_id == notification_id
        )
    )
    await db.delete(notification)
    await db.commit()
    return None
