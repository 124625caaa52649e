"""FastAPI route definitions for the tinyurl REST API.

This module provides all HTTP endpoints with dependency injection and response
serialization. Core failures are raised as ``TinyUrlError`` subclasses and
translated to status codes by the handler registered in ``tinyurl.main``.

API Endpoint Overview
=====================
::
    GET    /health
        └─ HealthResponse (200)

    POST   /api/urls
        ├─ LinkCreate (request body)
        └─ LinkResponse (201) or 400/422/500

    GET    /t/:short_code
        └─ 302 Redirect or 404/410/429

    GET    /api/urls/info/:short_code
        └─ LinkResponse (200) or 404

    DELETE /api/urls/:short_code
        └─ 204 or 404

    PUT    /api/urls/:short_code/expiration?expirationTime=
    PUT    /api/urls/:short_code/max-usage?maxUsage=
    PUT    /api/urls/:short_code/max-attempts?maxAttempts=
        └─ LinkResponse (200) or 404/422

Key Behaviours
===============
- All endpoints use async/await for non-blocking I/O.
- Database session and Redis client are injected through the request context.
- Redirects use 302 so every access reaches the server and is counted.
- Negative limits are rejected by query validation (422) before reaching the service.
"""

import datetime

from fastapi import APIRouter, Depends, Query, Response
from fastapi.responses import RedirectResponse
from sqlalchemy import text

from tinyurl.dependencies import RequestContext, get_link_service, get_request_context
from tinyurl.enums import HealthStatus
from tinyurl.link_service import TinyUrlService
from tinyurl.schemas import ErrorResponse, HealthResponse, LinkCreate, LinkResponse

__all__ = ["router"]

router = APIRouter()

NOT_FOUND_RESPONSE = {404: {"model": ErrorResponse, "description": "URL not found"}}


def _to_response(service: TinyUrlService, link) -> LinkResponse:
    return LinkResponse.from_link(link, service.settings.short_url_for(link.short_code), service.now())


@router.get("/health", response_model=HealthResponse, tags=["health"])
async def health_check(ctx: RequestContext = Depends(get_request_context)) -> HealthResponse:
    ctx.logger.info("Health check requested")
    db_status = HealthStatus.HEALTHY
    cache_status = HealthStatus.HEALTHY

    try:
        await ctx.database.execute(text("SELECT 1"))
    except Exception as e:
        ctx.logger.error(f"Database health check failed: {e}")
        db_status = HealthStatus.UNHEALTHY

    try:
        await ctx.cache_writer.ping()
    except Exception as e:
        ctx.logger.error(f"Cache health check failed: {e}")
        cache_status = HealthStatus.UNHEALTHY

    status = (
        HealthStatus.HEALTHY
        if db_status is HealthStatus.HEALTHY and cache_status is HealthStatus.HEALTHY
        else HealthStatus.UNHEALTHY
    )
    return HealthResponse(status=status, database=db_status, cache=cache_status)


@router.post(
    "/api/urls",
    response_model=LinkResponse,
    status_code=201,
    tags=["urls"],
    responses={
        400: {"model": ErrorResponse, "description": "Invalid URL"},
        500: {"model": ErrorResponse, "description": "No unique short code available"},
    },
)
async def create_tiny_url(
    payload: LinkCreate,
    service: TinyUrlService = Depends(get_link_service),
) -> LinkResponse:
    link = await service.create(payload)
    return _to_response(service, link)


@router.get(
    "/t/{short_code}",
    status_code=302,
    tags=["redirect"],
    responses={
        **NOT_FOUND_RESPONSE,
        410: {"model": ErrorResponse, "description": "URL expired or usage limit reached"},
        429: {"model": ErrorResponse, "description": "Maximum attempts exceeded"},
    },
)
async def redirect_to_original_url(
    short_code: str,
    service: TinyUrlService = Depends(get_link_service),
) -> RedirectResponse:
    original_url = await service.resolve(short_code)
    return RedirectResponse(url=original_url, status_code=302)


@router.get(
    "/api/urls/info/{short_code}",
    response_model=LinkResponse,
    tags=["urls"],
    responses=NOT_FOUND_RESPONSE,
)
async def get_tiny_url_info(
    short_code: str,
    service: TinyUrlService = Depends(get_link_service),
) -> LinkResponse:
    link = await service.get_info(short_code)
    return _to_response(service, link)


@router.delete("/api/urls/{short_code}", status_code=204, tags=["urls"], responses=NOT_FOUND_RESPONSE)
async def deactivate_tiny_url(
    short_code: str,
    service: TinyUrlService = Depends(get_link_service),
) -> Response:
    await service.deactivate(short_code)
    return Response(status_code=204)


@router.put(
    "/api/urls/{short_code}/expiration",
    response_model=LinkResponse,
    tags=["urls"],
    responses=NOT_FOUND_RESPONSE,
)
async def update_expiration_time(
    short_code: str,
    expiration_time: datetime.datetime = Query(..., alias="expirationTime"),
    service: TinyUrlService = Depends(get_link_service),
) -> LinkResponse:
    link = await service.update_expiration(short_code, expiration_time)
    return _to_response(service, link)


@router.put(
    "/api/urls/{short_code}/max-usage",
    response_model=LinkResponse,
    tags=["urls"],
    responses=NOT_FOUND_RESPONSE,
)
async def update_max_usage(
    short_code: str,
    max_usage: int = Query(..., alias="maxUsage", ge=0, description="New maximum usage limit (0 for unlimited)"),
    service: TinyUrlService = Depends(get_link_service),
) -> LinkResponse:
    link = await service.update_max_usage(short_code, max_usage)
    return _to_response(service, link)


@router.put(
    "/api/urls/{short_code}/max-attempts",
    response_model=LinkResponse,
    tags=["urls"],
    responses=NOT_FOUND_RESPONSE,
)
async def update_max_attempts(
    short_code: str,
    max_attempts: int = Query(
        ..., alias="maxAttempts", ge=0, description="New maximum attempts limit (0 for unlimited)"
    ),
    service: TinyUrlService = Depends(get_link_service),
) -> LinkResponse:
    link = await service.update_max_attempts(short_code, max_attempts)
    return _to_response(service, link)
