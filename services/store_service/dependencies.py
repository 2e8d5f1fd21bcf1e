"""Store-specific FastAPI dependencies."""

from typing import Annotated

from fastapi import Depends, HTTPException, status
from libs.auth.dependencies import get_current_user
from libs.auth.models import AuthUser
from libs.db.session import get_async_db
from services.store_service.models import Profile, ProfileRole
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession


async def require_admin(
    current_user: Annotated[AuthUser, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_async_db)],
) -> AuthUser:
    """
    Allow Supabase service-role tokens and users whose profile role is admin.
    """
    if current_user.is_service_role:
        return current_user

    result = await db.execute(
        select(Profile.role).where(Profile.id == current_user.user_id)
    )
    role = result.scalar_one_or_none()
    if role != ProfileRole.ADMIN:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin privileges required",
        )
    return current_user
