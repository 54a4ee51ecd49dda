"""URL Shortener Service Layer - Core Business Logic

This module orchestrates code allocation, duplicate detection, expiration
checks and click accounting on top of the durable store (PostgreSQL) and the
fast cache (Redis).

Architecture Overview
=====================
::
    ┌─────────────────────────────────────────────────────────────┐
    │                    Service Layer                            │
    │  ┌─────────────────┐  ┌─────────────────┐  ┌──────────────┐ │
    │  │   URL Service   │  │  Code Allocator │  │  URL Cache   │ │
    │  │                 │  │                 │  │              │ │
    │  │ • shorten       │  │ • Seed source   │  │ • set (TTL)  │ │
    │  │ • resolve       │  │ • Base62 encode │  │ • get        │ │
    │  │ • statistics    │  │ • Random backup │  │ • evict      │ │
    │  └─────────────────┘  └─────────────────┘  └──────────────┘ │
    └─────────────────────────────────────────────────────────────┘
                │                    │                    │
                ▼                    ▼                    ▼
    ┌─────────────────┐  ┌─────────────────┐  ┌─────────────────┐
    │   PostgreSQL    │  │   PostgreSQL    │  │     Redis       │
    │  (UrlMapping)   │  │  (count/exists) │  │  (best-effort)  │
    └─────────────────┘  └─────────────────┘  └─────────────────┘

Shorten Flow
============
::
    ┌─────────────┐
    │ Validate URL│──── bad ────► InvalidUrlError
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ Existing    │──── yes ────► return existing mapping (no writes)
    │ long URL?   │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ Custom code │──── taken ──► CodeAlreadyExistsError
    │ or allocate │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ INSERT      │──── conflict ─► custom: CodeAlreadyExistsError
    │             │                 generated: allocate again
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ Cache write │  (failure logged, not raised)
    └──────┬──────┘
           ▼
        mapping

Resolve Flow
============
::
    ┌─────────────┐
    │ Cache get   │
    └──────┬──────┘
    HIT?   │
    ┌──────┴─────┐
    │ NO         │ YES
    ▼            ▼
┌─────────┐  ┌─────────┐
│ Store   │  │ Expired?│── yes ──► evict, NotFoundError
│ lookup  │  └────┬────┘
└────┬────┘       │
     ▼            │
  absent/expired? │
  ──► NotFoundError (evict)
     │            │
     ▼            │
  re-cache        │
     └─────┬──────┘
           ▼
    ┌─────────────┐
    │ Atomic      │── 0 rows ──► evict, NotFoundError
    │ clicks + 1  │
    └──────┬──────┘
           ▼
        long_url
"""

import datetime
import time
import urllib.parse
from collections.abc import Callable
from typing import TYPE_CHECKING, Optional

import validators
from prometheus_client import Counter, Histogram

from app.allocator import CodeAllocator, CountSeedSource
from app.cache import UrlCache
from app.config import RESERVED_SHORT_CODES
from app.enums import CacheStatus, RequestStatus
from app.exceptions import (
    CodeAlreadyExistsError,
    CodeSpaceExhaustedError,
    InvalidExpirationError,
    ConflictError,
    InvalidUrlError,
    NotFoundError,
)
from app.models import UrlMapping, as_utc
from app.store import UrlMappingStore

if TYPE_CHECKING:
    from app.dependencies import RequestContext

__all__ = ["URLShorteningService", "utcnow"]

ALLOWED_SCHEMES = frozenset({"http", "https"})


# ============================================================================
# PROMETHEUS METRICS
# ============================================================================

URL_CREATION_REQUESTS_TOTAL = Counter(
    "url_shortener_creation_requests_total",
    "Total URL creation requests",
    ["status"],
)
URL_CREATION_DURATION = Histogram(
    "url_shortener_creation_duration_seconds",
    "Time taken to create short URLs",
    buckets=[0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)
URL_RESOLVE_REQUESTS_TOTAL = Counter(
    "url_shortener_resolve_requests_total",
    "Total short code resolutions",
    ["status", "cache_hit"],
)
URL_RESOLVE_DURATION = Histogram(
    "url_shortener_resolve_duration_seconds",
    "Time taken to resolve short codes",
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25],
)
INSERT_CONFLICTS_TOTAL = Counter(
    "url_shortener_insert_conflicts_total",
    "Generated short codes rejected by the store on insert",
)


def utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


# ============================================================================
# CORE SERVICE CLASS
# ============================================================================


class URLShorteningService:
    """Allocates short codes and resolves them back to long URLs.

    Collaborators are built from the request context unless injected, which
    is how tests supply deterministic seeds, random codes and clocks.

    Example:
        >>> service = URLShorteningService.from_context(ctx)
        >>> mapping = await service.shorten("https://example.com/a")
        >>> await service.resolve(mapping.short_code)
        'https://example.com/a'
    """

    def __init__(
        self,
        ctx: "RequestContext",
        *,
        store: Optional[UrlMappingStore] = None,
        cache: Optional[UrlCache] = None,
        allocator: Optional[CodeAllocator] = None,
        clock: Callable[[], datetime.datetime] = utcnow,
    ) -> None:
        self._settings = ctx.settings
        self._logger = ctx.logger
        self._store = store or UrlMappingStore(ctx.database)
        self._cache = cache or UrlCache(
            ctx.cache,
            prefix=self._settings.CACHE_KEY_PREFIX,
            ttl_seconds=self._settings.CACHE_TTL_SECONDS,
            logger=self._logger,
        )
        self._allocator = allocator or CodeAllocator(
            self._store,
            length=self._settings.SHORT_CODE_LENGTH,
            seed_source=CountSeedSource(self._store, offset_bound=self._settings.SEED_RANDOM_OFFSET),
            attempts=self._settings.GENERATION_ATTEMPTS,
            random_attempts=self._settings.RANDOM_FALLBACK_ATTEMPTS,
        )
        self._clock = clock

    @classmethod
    def from_context(cls, ctx: "RequestContext") -> "URLShorteningService":
        return cls(ctx)

    # ========================================================================
    # PUBLIC API METHODS
    # ========================================================================

    async def shorten(
        self,
        long_url: str,
        custom_code: Optional[str] = None,
        expiration_minutes: Optional[int] = None,
    ) -> UrlMapping:
        """Return the mapping for ``long_url``, creating it if needed.

        An existing mapping for the exact same long URL is returned untouched.
        Two concurrent calls for a new long URL can both miss that check and
        create two codes; only the short code itself is guaranteed unique. The
        existing mapping is returned even when it has expired, so the caller
        gets a short link that resolves to 404.

        Raises:
            InvalidUrlError: ``long_url`` is not an absolute http(s) URL.
            InvalidExpirationError: ``expiration_minutes`` exceeds
                ``MAX_EXPIRATION_MINUTES``.
            CodeAlreadyExistsError: ``custom_code`` is already taken or names a
                fixed route.
            CodeSpaceExhaustedError: No free generated code could be found.
        """
        start_time = time.perf_counter()
        status = RequestStatus.ERROR
        try:
            long_url = self._validate_long_url(long_url)
            self._validate_expiration(expiration_minutes)

            existing = await self._store.find_by_long_url(long_url)
            if existing is not None:
                status = RequestStatus.EXISTING
                self._logger.info(f"Reusing short code {existing.short_code} for {long_url}")
                return existing

            if custom_code:
                mapping = await self._insert_custom(long_url, custom_code, expiration_minutes)
            else:
                mapping = await self._insert_generated(long_url, expiration_minutes)

            await self._cache.set(mapping.short_code, mapping.long_url, mapping.expires_at, now=mapping.created_at)

            status = RequestStatus.SUCCESS
            self._logger.info(f"Created short code {mapping.short_code} for {long_url}")
            return mapping

        except (InvalidUrlError, InvalidExpirationError) as exc:
            status = RequestStatus.VALIDATION_ERROR
            self._logger.warning(f"URL shortening rejected: {exc.message}")
            raise
        except CodeAlreadyExistsError as exc:
            status = RequestStatus.CONFLICT
            self._logger.warning(f"URL shortening rejected: {exc.message}")
            raise
        finally:
            URL_CREATION_DURATION.observe(time.perf_counter() - start_time)
            URL_CREATION_REQUESTS_TOTAL.labels(status=status).inc()

    async def resolve(self, short_code: str) -> str:
        """Return the long URL for ``short_code`` and count the click.

        Raises:
            NotFoundError: The code is unknown or its mapping has expired.
        """
        start_time = time.perf_counter()
        cache_hit = CacheStatus.MISS
        status = RequestStatus.ERROR
        try:
            now = self._clock()
            cached = await self._cache.get(short_code)
            if cached is not None:
                cache_hit = CacheStatus.HIT
                if cached.expires_at is not None and as_utc(cached.expires_at) <= as_utc(now):
                    await self._cache.evict(short_code)
                    raise NotFoundError(short_code)
                long_url = cached.long_url
            else:
                mapping = await self._store.find_by_code(short_code)
                if mapping is None:
                    raise NotFoundError(short_code)
                if mapping.is_expired(now):
                    await self._cache.evict(short_code)
                    raise NotFoundError(short_code)
                long_url = mapping.long_url
                await self._cache.set(short_code, long_url, mapping.expires_at, now=now)

            if not await self._store.increment_clicks(short_code):
                await self._cache.evict(short_code)
                raise NotFoundError(short_code)

            status = RequestStatus.SUCCESS
            self._logger.debug(f"Resolved {short_code} -> {long_url}")
            return long_url

        except NotFoundError:
            status = RequestStatus.NOT_FOUND
            self._logger.warning(f"Short code not found or expired: {short_code}")
            raise
        finally:
            URL_RESOLVE_DURATION.observe(time.perf_counter() - start_time)
            URL_RESOLVE_REQUESTS_TOTAL.labels(status=status, cache_hit=cache_hit).inc()

    async def get_url_statistics(self, short_code: str) -> UrlMapping:
        """Read the stored mapping without counting a click."""
        mapping = await self._store.find_by_code(short_code)
        if mapping is None or mapping.is_expired(self._clock()):
            raise NotFoundError(short_code)
        return mapping

    # ========================================================================
    # PRIVATE HELPER METHODS
    # ========================================================================

    def _validate_long_url(self, long_url: Optional[str]) -> str:
        candidate = (long_url or "").strip()
        if not candidate or len(candidate) > self._settings.LONG_URL_MAX_LENGTH:
            raise InvalidUrlError(candidate)
        if urllib.parse.urlsplit(candidate).scheme.lower() not in ALLOWED_SCHEMES:
            raise InvalidUrlError(candidate)
        if not validators.url(candidate):
            raise InvalidUrlError(candidate)
        return candidate

    def _validate_expiration(self, expiration_minutes: Optional[int]) -> None:
        if expiration_minutes is not None and expiration_minutes > self._settings.MAX_EXPIRATION_MINUTES:
            raise InvalidExpirationError(expiration_minutes)

    def _build_mapping(self, short_code: str, long_url: str, expiration_minutes: Optional[int]) -> UrlMapping:
        created_at = self._clock()
        expires_at = None
        if expiration_minutes is not None and expiration_minutes > 0:
            expires_at = created_at + datetime.timedelta(minutes=expiration_minutes)
        return UrlMapping(
            short_code=short_code,
            long_url=long_url,
            created_at=created_at,
            expires_at=expires_at,
            clicks=0,
        )

    async def _insert_custom(self, long_url: str, custom_code: str, expiration_minutes: Optional[int]) -> UrlMapping:
        if custom_code in RESERVED_SHORT_CODES or await self._store.exists_by_code(custom_code):
            raise CodeAlreadyExistsError(custom_code)

        mapping = self._build_mapping(custom_code, long_url, expiration_minutes)
        try:
            await self._store.insert(mapping)
        except ConflictError as exc:
            # Another request inserted the same custom code after our existence check.
            raise CodeAlreadyExistsError(custom_code) from exc
        return mapping

    async def _insert_generated(self, long_url: str, expiration_minutes: Optional[int]) -> UrlMapping:
        attempts = self._settings.GENERATION_ATTEMPTS
        for _ in range(attempts):
            short_code = await self._allocator.allocate()
            mapping = self._build_mapping(short_code, long_url, expiration_minutes)
            try:
                await self._store.insert(mapping)
            except ConflictError:
                INSERT_CONFLICTS_TOTAL.inc()
                self._logger.warning(f"Generated short code {short_code} was taken concurrently, retrying")
                continue
            return mapping

        raise CodeSpaceExhaustedError(attempts)
