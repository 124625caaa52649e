"""Configuration management for the tinyurl service.

This module provides centralized configuration management using Pydantic BaseSettings
with environment variable support and caching for performance.

Flow Diagram — get_settings()
=============================
::
    ┌─────────────┐
    │  Call get_  │
    │  settings() │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ Check cache  │
    │ (lru_cache)  │
    └──────┬──────┘
    HIT?  │
    ┌─────┴─────┐
    │ NO         │ YES
    ▼            ▼
┌─────────┐  ┌─────────┐
│ Create  │  │ Return  │
│ Settings│  │ cached  │
│ instance│  │ value   │
└─────────┘  └─────────┘

How to Use
===========
**Step 1 — Import**::
    from tinyurl.config import get_settings

**Step 2 — Get settings**::
    settings = get_settings()
    length = settings.SHORT_CODE_LENGTH

**Step 3 — Build short URLs**::
    short_url = settings.short_url_for("aB3xYz")

Key Behaviours
===============
- Settings are cached after first access for performance.
- Environment variables override defaults automatically.
- A ``.env`` file in the working directory is read if present.

Classes:
    Settings:  Pydantic model for all configuration values.

"""

__all__ = ["Settings", "get_settings"]

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    APP_NAME: str = "tinyurl"
    APP_ENV: str = "development"
    BASE_URL: str = "http://localhost:8080"
    LOG_LEVEL: str = "INFO"

    # PostgreSQL
    DATABASE_URL: str = "postgresql+asyncpg://tinyurl:tinyurl@db:5432/tinyurl"
    DB_POOL_SIZE: int = 20
    DB_MAX_OVERFLOW: int = 10

    # Redis (info cache only)
    REDIS_URL: str = "redis://redis:6379/0"
    INFO_CACHE_TTL_SECONDS: int = 600

    # Short code generation
    SHORT_CODE_LENGTH: int = 6
    CODE_GENERATION_MAX_ATTEMPTS: int = 10

    # Expired link purge
    CLEANUP_ENABLED: bool = True
    CLEANUP_INTERVAL_SECONDS: int = 86400

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
    )

    def short_url_for(self, short_code: str) -> str:
        return f"{self.BASE_URL.rstrip('/')}/t/{short_code}"


@lru_cache()
def get_settings() -> Settings:
    return Settings()
