"""FastAPI application entry point for the tinyurl service.

This module configures and initializes the FastAPI application with middleware,
lifecycle management, error mapping and route registration.

Application Lifecycle Diagram
===========================
::
    ┌─────────────┐
    │  uvicorn    │
    │  startup    │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ lifespan()  │
    │ startup:    │
    │ log config  │
    │ init_db()   │
    │ cleanup task│
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ Serve HTTP  │
    │ requests    │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ lifespan()  │
    │ shutdown:   │
    │ cancel task │
    │ close_db()  │
    │ close_redis()│
    └─────────────┘

How to Use
===========
**Step 1 — Run with uvicorn**::
    uvicorn tinyurl.main:app --host 0.0.0.0 --port 8080

**Step 2 — Make API calls**::
    curl -X POST http://localhost:8080/api/urls \
         -H "Content-Type: application/json" \
         -d '{"originalUrl": "https://example.com", "maxUsage": 2}'

    curl -i http://localhost:8080/t/aB3xYz

Key Behaviours
===============
- Database tables are created automatically on startup.
- Expired links are purged by a background task when CLEANUP_ENABLED is set.
- Core errors map to {"error": message} bodies with their own status codes.
- Prometheus metrics are exposed at /metrics.
"""

__all__ = ["app"]

import asyncio
import contextlib
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator

from tinyurl import cleanup
from tinyurl.config import get_settings
from tinyurl.database import close_db, init_db
from tinyurl.dependencies import _service_manager
from tinyurl.exceptions import TinyUrlError
from tinyurl.middleware import RequestLoggingMiddleware
from tinyurl.redis import close_redis
from tinyurl.routes import router

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # Startup
    _service_manager.initialize()
    logger = _service_manager.logger
    logger.info(
        f"Starting {settings.APP_NAME} ({settings.APP_ENV}): base URL {settings.BASE_URL}, "
        f"code length {settings.SHORT_CODE_LENGTH}, "
        f"cleanup {'every ' + str(settings.CLEANUP_INTERVAL_SECONDS) + 's' if settings.CLEANUP_ENABLED else 'disabled'}"
    )
    await init_db()

    cleanup_task: asyncio.Task | None = None
    if settings.CLEANUP_ENABLED:
        cleanup_task = asyncio.create_task(cleanup.run(settings.CLEANUP_INTERVAL_SECONDS))
    yield
    # Shutdown
    if cleanup_task is not None:
        cleanup_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await cleanup_task
    _service_manager.cleanup()
    await close_db()
    await close_redis()
    logger.info(f"{settings.APP_NAME} stopped")


app = FastAPI(
    title=settings.APP_NAME,
    version="1.0.0",
    description="URL shortener with expiration, one-time use, usage and attempt limits",
    lifespan=lifespan,
)

app.add_middleware(RequestLoggingMiddleware)


@app.exception_handler(TinyUrlError)
async def tiny_url_error_handler(request: Request, exc: TinyUrlError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


Instrumentator(
    should_group_status_codes=True,
    should_ignore_untemplated=False,
    should_respect_env_var=False,
).instrument(app).expose(app)

app.include_router(router)
