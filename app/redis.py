"""Redis client management for the URL shortener fast cache.

This module provides a singleton Redis client with connection management
for caching short code lookups.

Flow Diagram — Redis Operations
===============================
::
    ┌─────────────┐
    │ Application │
    │ Request     │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ get_redis() │
    │ dependency  │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ Check global│
    │ client var  │
    └──────┬──────┘
    EXISTS?│
    ┌──────┴─────┐
    │ NO         │ YES
    ▼            ▼
┌─────────┐  ┌─────────┐
│ Create  │  │ Return  │
│ Redis   │  │ existing│
│ client  │  │ client  │
└─────────┘  └─────────┘

How to Use
===========
**Step 1 — Use in FastAPI endpoints**::
    @app.get("/cached/{code}")
    async def cached(code: str, client: redis.Redis = Depends(get_redis)):
        return await UrlCache(client).get(code)

**Step 2 — Cleanup on shutdown**::
    await close_redis()

Key Behaviours
===============
- Redis client is created lazily on first access.
- Global client is reused across all requests.
- UTF-8 encoding with decode_responses for string operations.

Functions:
    get_redis():  FastAPI dependency for Redis client.
    close_redis():  Cleanup function for shutdown.
"""

import redis.asyncio as redis

from app.config import get_settings

__all__ = ["close_redis", "get_redis"]

settings = get_settings()

redis_client: redis.Redis | None = None


async def get_redis() -> redis.Redis:
    global redis_client
    if redis_client is None:
        redis_client = redis.from_url(
            settings.REDIS_URL,
            encoding="utf-8",
            decode_responses=True,
        )
    return redis_client


async def close_redis() -> None:
    global redis_client
    if redis_client is not None:
        await redis_client.aclose()
        redis_client = None
