"""Pydantic schemas for request/response validation in the URL shortener.

Schema Hierarchy
=================
::
    ShortenRequest (Input)
    ├─ long_url: str                  (alias "longUrl")
    ├─ custom_short_code: str | None  (alias "customShortCode")
    └─ expiration_minutes: int | None (alias "expirationMinutes")

    URLStats (Output)
    ├─ short_code: str
    ├─ long_url: str
    ├─ short_url: str (computed)
    ├─ clicks: int
    ├─ created_at: datetime
    └─ expires_at: datetime | None

    HealthResponse (Output)
    ├─ status: HealthStatus
    ├─ database: HealthStatus
    └─ cache: HealthStatus

    CachedURLPayload (Redis value)
    ├─ long_url: str
    └─ expires_at: datetime | None

Key Behaviours
===============
- Request fields accept both the camelCase aliases and snake_case names.
- long_url is validated by the service, so a bad URL maps to InvalidUrlError.
- Custom codes must use base62 symbols only; an empty custom code means
  "generate one". Names of fixed routes such as "health" are rejected.
- expiration_minutes is capped at MAX_EXPIRATION_MINUTES.
- All datetime fields are timezone-aware.
"""

import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.base62 import BASE62_ALPHABET
from app.config import RESERVED_SHORT_CODES, get_settings
from app.enums import HealthStatus

__all__ = [
    "ShortenRequest",
    "URLStats",
    "HealthResponse",
    "CachedURLPayload",
]

settings = get_settings()


class ShortenRequest(BaseModel):
    long_url: str = Field(..., alias="longUrl")
    custom_short_code: str | None = Field(None, alias="customShortCode")
    expiration_minutes: int | None = Field(None, alias="expirationMinutes", le=settings.MAX_EXPIRATION_MINUTES)

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("custom_short_code")
    @classmethod
    def validate_custom_short_code(cls, v: str | None) -> str | None:
        if not v:
            return None
        if len(v) > settings.MAX_CUSTOM_CODE_LENGTH:
            raise ValueError(f"Custom short code must be at most {settings.MAX_CUSTOM_CODE_LENGTH} characters")
        if any(symbol not in BASE62_ALPHABET for symbol in v):
            raise ValueError("Custom short code must contain only letters and digits")
        if v in RESERVED_SHORT_CODES:
            raise ValueError(f"Custom short code '{v}' is reserved")
        return v


class URLStats(BaseModel):
    short_code: str
    long_url: str
    short_url: str
    clicks: int
    created_at: datetime.datetime
    expires_at: datetime.datetime | None = None

    model_config = {"from_attributes": True}


class HealthResponse(BaseModel):
    status: HealthStatus
    database: HealthStatus
    cache: HealthStatus


class CachedURLPayload(BaseModel):
    """Redis cache payload for a short code."""

    long_url: str
    expires_at: datetime.datetime | None = None
