from functools import lru_cache
from typing import Literal, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Global application settings."""

    # Application
    APP_NAME: str = "Cho Candle Store"
    ENVIRONMENT: Literal["local", "development", "production", "test"] = "local"
    LOG_LEVEL: str = "INFO"
    PORT: int = 4000
    FRONTEND_URL: str = "http://localhost:5173"

    # Storefront client
    API_BASE_URL: str = "http://localhost:4000"
    CART_STORAGE_DIR: str = ".cho"

    # Database
    DATABASE_URL: str
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 10
    DB_POOL_TIMEOUT: int = 30
    DB_POOL_RECYCLE: int = 1800

    # Supabase
    # Placeholder values keep local/test runs working without real credentials.
    SUPABASE_URL: str = "http://localhost"
    SUPABASE_ANON_KEY: str = "test-anon-key"
    SUPABASE_JWT_SECRET: str = "test-jwt-secret"

    # Stripe
    STRIPE_SECRET_KEY: str = ""
    STRIPE_API_BASE: str = "https://api.stripe.com/v1"
    STORE_CURRENCY: str = "thb"

    # Rate limiting
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_STORAGE_URI: str = "memory://"

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    @field_validator("DATABASE_URL")
    @classmethod
    def assemble_db_connection(cls, v: Optional[str]) -> str:
        if isinstance(v, str):
            if v.startswith("postgresql://"):
                return v.replace("postgresql://", "postgresql+psycopg://", 1)
        return v

    @property
    def checkout_success_url(self) -> str:
        return f"{self.FRONTEND_URL}/checkout-success?session_id={{CHECKOUT_SESSION_ID}}"

    @property
    def checkout_cancel_url(self) -> str:
        return f"{self.FRONTEND_URL}/cart"


@lru_cache
def get_settings() -> Settings:
    """
    Return the global settings instance, cached.
    """
    return Settings()
