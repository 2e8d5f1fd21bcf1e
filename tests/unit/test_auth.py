"""Unit tests for Supabase token validation."""

from unittest.mock import MagicMock

import pytest
from fastapi import HTTPException
from fastapi.security import HTTPAuthorizationCredentials
from jose import jwt
from libs.auth.dependencies import get_current_user
from libs.common.config import get_settings


def _token(claims: dict, secret: str = None) -> HTTPAuthorizationCredentials:
    encoded = jwt.encode(claims, secret or get_settings().SUPABASE_JWT_SECRET, algorithm="HS256")
    return HTTPAuthorizationCredentials(scheme="Bearer", credentials=encoded)


@pytest.mark.asyncio
@pytest.mark.unit
async def test_valid_token_sets_request_user():
    request = MagicMock()
    user = await get_current_user(
        request,
        _token({"sub": "user-1", "email": "a@example.com", "role": "authenticated", "aud": "authenticated"}),
    )

    assert user.user_id == "user-1"
    assert not user.is_service_role
    assert request.state.user is user


@pytest.mark.asyncio
@pytest.mark.unit
async def test_service_role_token():
    user = await get_current_user(MagicMock(), _token({"sub": "svc", "role": "service_role"}))
    assert user.is_service_role


@pytest.mark.asyncio
@pytest.mark.unit
async def test_bad_signature_is_rejected():
    with pytest.raises(HTTPException) as exc:
        await get_current_user(MagicMock(), _token({"sub": "user-1"}, secret="wrong-secret"))
    assert exc.value.status_code == 401


@pytest.mark.asyncio
@pytest.mark.unit
async def test_token_without_subject_is_rejected():
    with pytest.raises(HTTPException) as exc:
        await get_current_user(MagicMock(), _token({"email": "a@example.com"}))
    assert exc.value.status_code == 401
