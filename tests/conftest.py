"""Auth helpers shared by the store tests."""

import uuid
from contextlib import contextmanager

from libs.auth.dependencies import get_current_user
from libs.auth.models import AuthUser

DEFAULT_USER_ID = "test-user"


def make_user(user_id: str = DEFAULT_USER_ID, email: str = "test@example.com", role: str = "authenticated") -> AuthUser:
    return AuthUser(user_id=user_id, email=email, role=role)


def make_other_user() -> AuthUser:
    return make_user(user_id=f"other-{uuid.uuid4().hex[:8]}", email="other@example.com")


def make_service_user() -> AuthUser:
    return make_user(user_id="service", email=None, role="service_role")


@contextmanager
def override_auth(app, user: AuthUser):
    """Temporarily make ``user`` the authenticated caller."""
    previous = app.dependency_overrides.get(get_current_user)
    app.dependency_overrides[get_current_user] = lambda: user
    try:
        yield user
    finally:
        if previous is None:
            app.dependency_overrides.pop(get_current_user, None)
        else:
            app.dependency_overrides[get_current_user] = previous
