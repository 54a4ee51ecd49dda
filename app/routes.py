"""FastAPI route definitions for the URL shortener REST API.

API Endpoint Overview
=====================
::
    GET  /health
        └─ HealthResponse (200)

    POST /shorten
        ├─ ShortenRequest (request body)
        └─ short URL as text/plain (201) or 400/409/500

    GET  /api/stats/:short_code
        └─ URLStats (200) or 404

    GET  /:short_code
        └─ 302 Redirect or 404

Request Flow Diagram
====================
::
    ┌─────────────┐
    │  HTTP       │
    │  Request    │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ Validate &  │
    │ Parse       │
    │ (Pydantic)  │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ Inject      │
    │ Dependencies│
    │ (DB, Cache) │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ Call Service│
    │ Layer       │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ Map domain  │
    │ errors to   │
    │ HTTP status │
    └─────────────┘

Key Behaviours
===============
- InvalidUrlError and InvalidExpirationError -> 400, CodeAlreadyExistsError -> 409,
  NotFoundError -> 404.
- Any other failure -> 500 with a generic message; details go to the log only.
- Expired codes are reported exactly like unknown ones.
- 302 redirects, matching the behaviour of common browser-facing shorteners.
"""

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import PlainTextResponse, RedirectResponse
from sqlalchemy import text

from app.dependencies import RequestContext, get_request_context, get_url_service
from app.enums import HealthStatus
from app.exceptions import CodeAlreadyExistsError, InvalidExpirationError, InvalidUrlError, NotFoundError
from app.schemas import HealthResponse, ShortenRequest, URLStats
from app.url_service import URLShorteningService

__all__ = ["router"]

router = APIRouter()

INTERNAL_ERROR_DETAIL = "An unexpected error occurred"


@router.get("/health", response_model=HealthResponse, tags=["health"])
async def health_check(ctx: RequestContext = Depends(get_request_context)) -> HealthResponse:
    db_status = HealthStatus.HEALTHY
    cache_status = HealthStatus.HEALTHY

    try:
        await ctx.database.execute(text("SELECT 1"))
    except Exception as e:
        ctx.logger.error(f"Database health check failed: {e}")
        db_status = HealthStatus.UNHEALTHY

    try:
        await ctx.cache.ping()
    except Exception as e:
        ctx.logger.error(f"Cache health check failed: {e}")
        cache_status = HealthStatus.UNHEALTHY

    status = (
        HealthStatus.HEALTHY
        if db_status is HealthStatus.HEALTHY and cache_status is HealthStatus.HEALTHY
        else HealthStatus.UNHEALTHY
    )
    return HealthResponse(status=status, database=db_status, cache=cache_status)


@router.post("/shorten", status_code=201, response_class=PlainTextResponse, tags=["urls"])
async def shorten_url(
    payload: ShortenRequest,
    ctx: RequestContext = Depends(get_request_context),
    service: URLShorteningService = Depends(get_url_service),
) -> PlainTextResponse:
    ctx.add_tag("url_creation")
    ctx.logger.info(
        f"URL shortening requested: {payload.long_url}",
        extra={
            "operation": "shorten",
            "target_url": payload.long_url,
            "custom_code": payload.custom_short_code,
        },
    )

    try:
        mapping = await service.shorten(
            payload.long_url,
            payload.custom_short_code,
            payload.expiration_minutes,
        )
    except (InvalidUrlError, InvalidExpirationError) as exc:
        raise HTTPException(status_code=400, detail=exc.message) from exc
    except CodeAlreadyExistsError as exc:
        raise HTTPException(status_code=409, detail=exc.message) from exc
    except Exception as exc:
        ctx.logger.exception(f"URL shortening failed: {exc}")
        raise HTTPException(status_code=500, detail=INTERNAL_ERROR_DETAIL) from exc

    ctx.logger.info(
        f"URL shortened: {mapping.short_code}",
        extra={"operation": "shorten", "short_code": mapping.short_code, "duration_ms": ctx.get_duration()},
    )
    return PlainTextResponse(ctx.short_url(mapping.short_code), status_code=201)


@router.get("/api/stats/{short_code}", response_model=URLStats, tags=["urls"])
async def get_stats(
    short_code: str,
    ctx: RequestContext = Depends(get_request_context),
    service: URLShorteningService = Depends(get_url_service),
) -> URLStats:
    try:
        mapping = await service.get_url_statistics(short_code)
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=exc.message) from exc

    return URLStats(
        short_code=mapping.short_code,
        long_url=mapping.long_url,
        short_url=ctx.short_url(mapping.short_code),
        clicks=mapping.clicks,
        created_at=mapping.created_at,
        expires_at=mapping.expires_at,
    )


@router.get("/{short_code}", tags=["redirect"])
async def redirect_to_url(
    short_code: str,
    ctx: RequestContext = Depends(get_request_context),
    service: URLShorteningService = Depends(get_url_service),
) -> RedirectResponse:
    ctx.add_tag("redirect")

    try:
        long_url = await service.resolve(short_code)
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=exc.message) from exc
    except Exception as exc:
        ctx.logger.exception(f"Redirect failed for {short_code}: {exc}")
        raise HTTPException(status_code=500, detail=INTERNAL_ERROR_DETAIL) from exc

    ctx.logger.info(
        f"Redirect: {short_code} -> {long_url}",
        extra={"operation": "redirect", "short_code": short_code, "duration_ms": ctx.get_duration()},
    )
    return RedirectResponse(url=long_url, status_code=302)
