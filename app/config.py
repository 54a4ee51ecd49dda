"""Configuration management for the URL shortener application.

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
    │ Check cache │
    │ (lru_cache) │
    └──────┬──────┘
    HIT?   │
    ┌──────┴─────┐
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
    from app.config import get_settings

**Step 2 — Get settings**::
    settings = get_settings()
    length = settings.SHORT_CODE_LENGTH

**Step 3 — Compose a short URL**::
    short_url = f"{settings.BASE_URL.rstrip('/')}/{short_code}"

Key Behaviours
===============
- Settings are cached after first access.
- Environment variables override defaults automatically.
- SHORT_CODE_LENGTH bounds sequential codes and sizes random fallback codes.
- RESERVED_SHORT_CODES lists path segments served by fixed routes; they can
  never be short codes.

Classes:
    Settings:  Pydantic model for all configuration values.

"""

__all__ = ["RESERVED_SHORT_CODES", "Settings", "get_settings"]

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

# Single path segments answered by fixed routes before GET /{short_code}.
RESERVED_SHORT_CODES = frozenset({"health", "metrics", "docs", "redoc", "openapi.json"})


class Settings(BaseSettings):
    APP_NAME: str = "url-shortener"
    APP_ENV: str = "development"
    LOG_LEVEL: str = "INFO"
    BASE_URL: str = "http://localhost:8080"

    # PostgreSQL
    DATABASE_URL: str = "postgresql+asyncpg://urlshortener:urlshortener@db:5432/urlshortener"
    DATABASE_ECHO: bool = False
    DATABASE_POOL_SIZE: int = 20
    DATABASE_MAX_OVERFLOW: int = 10

    # Redis
    REDIS_URL: str = "redis://redis:6379/0"

    # Short code allocation
    SHORT_CODE_LENGTH: int = 6
    MAX_CUSTOM_CODE_LENGTH: int = 20
    LONG_URL_MAX_LENGTH: int = 2048
    MAX_EXPIRATION_MINUTES: int = 2_147_483_647
    SEED_RANDOM_OFFSET: int = 100
    GENERATION_ATTEMPTS: int = 10
    RANDOM_FALLBACK_ATTEMPTS: int = 1000

    # Fast cache
    CACHE_KEY_PREFIX: str = "url"
    CACHE_TTL_SECONDS: int = 3600

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
    )


@lru_cache()
def get_settings() -> Settings:
    return Settings()
