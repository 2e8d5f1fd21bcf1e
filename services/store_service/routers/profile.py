"""Store profile router: the caller's shipping profile."""

from fastapi import APIRouter, Depends, HTTPException
from libs.auth.dependencies import get_current_user
from libs.auth.models import AuthUser
from libs.common.logging import get_logger
from libs.db.session import get_async_db
from services.store_service.models import Profile
from services.store_service.order_actions import has_order_out_for_delivery
from services.store_service.schemas import ProfileResponse, ProfileUpdate
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

router = APIRouter(tags=["store"])


async def get_or_create_profile(db: AsyncSession, user: AuthUser) -> Profile:
    """Return the user's profile, inserting an empty one on first access."""
    result = await db.execute(select(Profile).where(Profile.id == user.user_id))
    profile = result.scalar_one_or_none()
    if profile:
        return profile

    profile = Profile(id=user.user_id)
    db.add(profile)
    try:
        await db.commit()
    except IntegrityError:
        # Created by a parallel first request
        await db.rollback()
        result = await db.execute(select(Profile).where(Profile.id == user.user_id))
        return result.scalar_one()
    await db.refresh(profile)
    logger.info(f"Created profile for {user.user_id}")
    return profile


def _to_response(profile: Profile, locked: bool) -> ProfileResponse:
    response = ProfileResponse.model_validate(profile)
    response.locked = locked
    return response


@router.get("/profile", response_model=ProfileResponse)
async def get_my_profile(
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Get the caller's profile; ``locked`` is true while an order is shipping."""
    profile = await get_or_create_profile(db, current_user)
    locked = await has_order_out_for_delivery(db, current_user.user_id)
    return _to_response(profile, locked)


@router.patch("/profile", response_model=ProfileResponse)
async def update_my_profile(
    payload: ProfileUpdate,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Update contact and address fields."""
    if await has_order_out_for_delivery(db, current_user.user_id):
        raise HTTPException(
            status_code=409,
            detail="Profile cannot be edited while an order is out for delivery",
        )

    profile = await get_or_create_profile(db, current_user)
    update_data = payload.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        setattr(profile, field, value)

    await db.commit()
    await db.refresh(profile)
    return _to_response(profile, False)
