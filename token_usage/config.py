"""
Application Configuration
=========================
Centralized configuration management using Pydantic Settings.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import make_url

# libpq-style schemes accepted in DATABASE_URL and the async driver they map to
_ASYNC_DRIVERS = {
    "postgres": "postgresql+asyncpg",
    "postgresql": "postgresql+asyncpg",
    "postgresql+psycopg2": "postgresql+asyncpg",
    "sqlite": "sqlite+aiosqlite",
}


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_env: Literal["development", "staging", "production"] = "development"
    app_debug: bool = False
    app_host: str = "0.0.0.0"
    app_port: int = 5001

    # Database
    database_url: str | None = None
    database_pool_size: int = 20
    database_max_overflow: int = 10
    database_connect_max_attempts: int = Field(default=5, ge=1)
    database_connect_base_delay: float = Field(default=2.0, ge=0)

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    log_format: Literal["json", "console"] = "json"

    # Metrics
    metrics_enabled: bool = True

    @field_validator("database_url", mode="before")
    @classmethod
    def normalize_database_url(cls, v: str | None) -> str | None:
        if not v:
            return None
        return to_async_url(v)

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"


def to_async_url(raw: str) -> str:
    """
    Rewrite a connection string so it uses an asyncio driver.

    ``postgres://user:pw@host/db?sslmode=disable`` becomes
    ``postgresql+asyncpg://user:pw@host/db?ssl=disable``.
    """
    url = make_url(raw)
    driver = _ASYNC_DRIVERS.get(url.drivername)
    if driver:
        url = url.set(drivername=driver)

    if url.get_backend_name() == "postgresql" and "sslmode" in url.query:
        sslmode = url.query["sslmode"]
        url = url.difference_update_query(["sslmode"]).update_query_dict({"ssl": sslmode})

    return url.render_as_string(hide_password=False)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
