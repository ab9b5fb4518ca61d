"""Configuration management for the suid client.

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
    from suid.config import get_settings

**Step 2 — Get settings**::
    settings = get_settings()
    server = settings.SUID_SERVER_URL

**Step 3 — Scope a copy to one allocator context**::
    ctx = SuidContext(settings.model_copy(update={"SUID_POOL_MIN": 5}))

Key Behaviours
===============
- Settings are cached after first access for performance.
- Environment variables override defaults automatically.
- Each SuidContext works on its own copy, so in-place updates stay local.
- A missing SUID_SERVER_URL leaves the client unable to replenish; it never fails startup.

Classes:
    Settings:  Pydantic model for all configuration values.

"""

__all__ = ["Settings", "get_settings"]

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    APP_NAME: str = "suid"
    APP_ENV: str = "development"
    LOG_LEVEL: str = "INFO"

    # Block allocation service
    SUID_SERVER_URL: str | None = None
    SUID_REQUEST_TIMEOUT_SECONDS: float = 2.0

    # Pool thresholds (in blocks)
    SUID_POOL_MIN: int = Field(3, ge=1)
    SUID_POOL_MAX: int = Field(4, ge=1)

    # Persistence substrate
    REDIS_URL: str | None = "redis://localhost:6379/0"
    SUID_STORE_TIMEOUT_SECONDS: float = 1.0
    SUID_POOL_KEY: str = "suid:pool"
    SUID_LEGACY_POOL_KEY: str = "suidpool"

    # Retry / backoff tuning (milliseconds)
    SUID_RETRY_BUDGET: int = 3
    SUID_RETRY_DEFAULT_MS: int = 300_000
    SUID_THROTTLE_MS: int = 5_000
    SUID_URGENT_EMPTY_POOL_MS: int = 60_000
    SUID_URGENT_HALF_BLOCK_MS: int = 30_000
    SUID_URGENT_EXHAUSTED_MS: int = 1_000

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    return Settings()
