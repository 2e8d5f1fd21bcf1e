import os
from typing import AsyncGenerator

# Settings are read at import time; point everything at throwaway local
# resources before any application module is imported.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ["ENVIRONMENT"] = "test"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ.setdefault("STRIPE_SECRET_KEY", "sk_test_dummy")
os.environ.setdefault("SUPABASE_JWT_SECRET", "test-jwt-secret")

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from libs.common.config import get_settings
from libs.db.base import Base
from services.store_service.app.main import app

# Import all models so metadata includes every table
from services.store_service import models as _store_models  # noqa: F401

get_settings.cache_clear()
settings = get_settings()


@pytest_asyncio.fixture
async def test_engine():
    """
    Fresh in-memory SQLite database per test. StaticPool keeps the single
    connection alive so every session sees the same tables.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return async_sessionmaker(
        bind=test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Session for arranging and asserting test data."""
    session = session_factory()
    try:
        yield session
    finally:
        await session.close()


class FakeStripeClient:
    """Stands in for StripeClient; tests set the session it returns."""

    def __init__(self):
        self.session = None
        self.error = None
        self.created = []
        self.retrieved = []

    async def create_checkout_session(self, **kwargs):
        if self.error:
            raise self.error
        self.created.append(kwargs)
        return self.session

    async def retrieve_checkout_session(self, session_id):
        if self.error:
            raise self.error
        self.retrieved.append(session_id)
        return self.session


@pytest.fixture
def fake_stripe() -> FakeStripeClient:
    return FakeStripeClient()


@pytest_asyncio.fixture
async def client(session_factory, fake_stripe) -> AsyncGenerator[AsyncClient, None]:
    """
    Yield an AsyncClient for the store app. Each request gets its own
    session on the test database, like production.
    """
    from libs.auth.dependencies import get_current_user
    from libs.db.session import get_async_db
    from services.store_service.stripe_client import get_stripe_client
    from tests.conftest import make_user

    async def _get_test_db():
        async with session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_async_db] = _get_test_db
    app.dependency_overrides[get_stripe_client] = lambda: fake_stripe
    # Default caller; tests switch users with override_auth
    app.dependency_overrides[get_current_user] = lambda: make_user()

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers() -> dict:
    """
    Bearer header for requests; auth itself is replaced by dependency
    overrides, except in tests that exercise real token decoding.
    """
    return {"Authorization": "Bearer mock-token"}
