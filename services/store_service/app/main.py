"""FastAPI application for the Cho Candle store."""

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from libs.common.config import get_settings
from libs.common.middleware import add_observability_middleware
from libs.common.rate_limit import limiter, rate_limit_exceeded_handler
from services.store_service.routers import (
    admin_catalog_router,
    admin_notifications_router,
    admin_orders_router,
    catalog_router,
    checkout_router,
    notifications_router,
    orders_router,
    profile_router,
)
from slowapi.errors import RateLimitExceeded


def create_app() -> FastAPI:
    """Create and configure the store FastAPI app."""
    settings = get_settings()

    app = FastAPI(
        title="Cho Candle Store API",
        version="0.1.0",
        description="Candle storefront backend - catalog, checkout, orders, profiles.",
    )

    # Add rate limiter state to app
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.FRONTEND_URL],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Add observability (structured logging + request tracing)
    add_observability_middleware(app)

    @app.get("/api/health", tags=["system"])
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "ok"}

    # Customer routes
    app.include_router(catalog_router, prefix="/api")
    app.include_router(checkout_router, prefix="/api")
    app.include_router(orders_router, prefix="/api")
    app.include_router(profile_router, prefix="/api")
    app.include_router(notifications_router, prefix="/api")

    # Admin routes
    app.include_router(admin_catalog_router, prefix="/api/admin")
    app.include_router(admin_orders_router, prefix="/api/admin")
    app.include_router(admin_notifications_router, prefix="/api/admin")

    return app


app = create_app()


def run() -> None:
    """Entry point for the ``cho-store`` console script."""
    settings = get_settings()
    uvicorn.run(
        "services.store_service.app.main:app",
        host="0.0.0.0",
        port=settings.PORT,
        log_level=settings.LOG_LEVEL.lower(),
    )
