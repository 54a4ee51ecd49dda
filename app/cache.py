"""Best-effort Redis cache of short code lookups.

The cache is never authoritative. A Redis failure is logged and reported as
a miss (``get``) or ``False`` (``set``/``evict``), so callers never fail
because of it.

Key Layout
==========
::
    url:{short_code} -> '{"long_url": "...", "expires_at": "...|null"}'
                        TTL = min(CACHE_TTL_SECONDS, seconds until expires_at)

Flow Diagram — set()
====================
::
    ┌─────────────┐
    │ set(code,   │
    │ url, exp)   │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ Compute TTL │
    │ (cap at exp)│
    └──────┬──────┘
    TTL<=0?│
    ┌──────┴─────┐
    │ YES        │ NO
    ▼            ▼
┌─────────┐  ┌─────────┐
│ Skip    │  │ SET EX  │
│ (False) │  │ (True)  │
└─────────┘  └─────────┘
"""

import datetime
import logging
import math

import redis.asyncio as redis
from prometheus_client import Counter
from pydantic import ValidationError
from redis.exceptions import RedisError

from app.enums import CacheOperation
from app.models import as_utc
from app.schemas import CachedURLPayload

__all__ = ["UrlCache"]

CACHE_ERRORS_TOTAL = Counter(
    "url_shortener_cache_errors_total",
    "Redis cache operations that failed and were ignored",
    ["operation"],
)


class UrlCache:
    def __init__(
        self,
        client: redis.Redis,
        prefix: str = "url",
        ttl_seconds: int = 3600,
        logger: logging.Logger | logging.LoggerAdapter | None = None,
    ) -> None:
        self._client = client
        self._prefix = prefix
        self._ttl_seconds = ttl_seconds
        self._logger = logger or logging.getLogger("urlshortener")

    def key(self, short_code: str) -> str:
        return f"{self._prefix}:{short_code}"

    def _ttl_for(self, expires_at: datetime.datetime | None, now: datetime.datetime | None) -> int:
        if expires_at is None:
            return self._ttl_seconds
        now = now or datetime.datetime.now(datetime.timezone.utc)
        remaining = math.floor((as_utc(expires_at) - as_utc(now)).total_seconds())
        return min(self._ttl_seconds, remaining)

    async def set(
        self,
        short_code: str,
        long_url: str,
        expires_at: datetime.datetime | None = None,
        now: datetime.datetime | None = None,
    ) -> bool:
        ttl = self._ttl_for(expires_at, now)
        if ttl <= 0:
            return False

        payload = CachedURLPayload(long_url=long_url, expires_at=as_utc(expires_at) if expires_at else None)
        try:
            await self._client.set(self.key(short_code), payload.model_dump_json(), ex=ttl)
        except RedisError as exc:
            CACHE_ERRORS_TOTAL.labels(operation=CacheOperation.SET).inc()
            self._logger.warning(f"Cache write failed for {short_code}: {exc}")
            return False
        return True

    async def get(self, short_code: str) -> CachedURLPayload | None:
        try:
            cached = await self._client.get(self.key(short_code))
        except RedisError as exc:
            CACHE_ERRORS_TOTAL.labels(operation=CacheOperation.GET).inc()
            self._logger.warning(f"Cache read failed for {short_code}: {exc}")
            return None

        if cached is None:
            return None

        try:
            return CachedURLPayload.model_validate_json(cached)
        except ValidationError as exc:
            self._logger.error(f"Cache deserialization error for {short_code}: {exc}")
            return None

    async def evict(self, short_code: str) -> bool:
        try:
            await self._client.delete(self.key(short_code))
        except RedisError as exc:
            CACHE_ERRORS_TOTAL.labels(operation=CacheOperation.EVICT).inc()
            self._logger.warning(f"Cache eviction failed for {short_code}: {exc}")
            return False
        return True
