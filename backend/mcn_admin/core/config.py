"""
MCN Admin Dashboard - Configuration Module
==========================================
All configuration is loaded from environment variables (prefix MCN_ADMIN_)
and an optional .env file. No secrets are hardcoded.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_prefix="MCN_ADMIN_",
        extra="ignore",
    )

    # App
    app_name: str = "MCN Admin Dashboard"
    app_env: str = "development"
    app_debug: bool = True
    app_secret_key: str = Field(..., min_length=32)
    app_port: int = 8000

    @property
    def secret_key(self) -> str:
        return self.app_secret_key

    # Auth
    jwt_algorithm: str = "HS256"
    access_token_expire_hours: int = 24 * 7

    # Database
    postgres_host: str = "localhost"
    postgres_port: int = 5432
    postgres_db: str = "mcn_admin"
    postgres_user: str = "mcn"
    postgres_password: str = ""
    db_url: Optional[str] = None
    db_pool_size: int = 10
    db_max_overflow: int = 10

    @property
    def database_url(self) -> str:
        if self.db_url:
            return self.db_url
        return (
            f"postgresql+asyncpg://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )

    @property
    def database_url_sync(self) -> str:
        return self.database_url.replace("+asyncpg", "").replace("+aiosqlite", "")

    # Redis
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_password: str = ""
    redis_db: int = 0

    @property
    def redis_url(self) -> str:
        auth = f":{self.redis_password}@" if self.redis_password else ""
        return f"redis://{auth}{self.redis_host}:{self.redis_port}/{self.redis_db}"

    # Dashboard
    dashboard_cache_ttl_seconds: int = 30
    dashboard_query_timeout_seconds: float = 15.0

    # CORS
    cors_origins: str = "http://localhost:3000,http://localhost:5173"

    @property
    def cors_origins_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


@lru_cache()
def get_settings() -> Settings:
    """Cached settings singleton."""
    return Settings()
