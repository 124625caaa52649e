"""Tiny URL Service Layer - Core Business Logic

This module owns creation, resolution and administration of short links. It
combines the code generator, the resolution state machine and the store's
atomic update into the operations exposed to the transport layer.

Architecture Overview
=====================
::
    ┌─────────────────────────────────────────────────────────────┐
    │                    TinyUrlService                           │
    │  ┌─────────────────┐  ┌─────────────────┐  ┌──────────────┐ │
    │  │  Code Generator │  │ State Machine   │  │  Info Cache  │ │
    │  │                 │  │                 │  │              │ │
    │  │ • nanoid draw   │  │ • attempts      │  │ • get / put  │ │
    │  │ • retry bound   │  │ • expiry        │  │ • invalidate │ │
    │  └─────────────────┘  └─────────────────┘  └──────────────┘ │
    └─────────────────────────────────────────────────────────────┘
                │                    │                    │
                ▼                    ▼                    ▼
    ┌─────────────────┐  ┌─────────────────┐  ┌─────────────────┐
    │   LinkStore     │  │   LinkStore     │  │     Redis       │
    │   exists()      │  │   update()      │  │  (side channel) │
    └─────────────────┘  └─────────────────┘  └─────────────────┘

Resolution Flow
---------------
::
    ┌─────────────┐
    │ GET /t/code │
    └──────┬──────┘
           ▼
    ┌──────────────────────┐
    │ store.update(code,   │
    │   resolve_transition)│  one locked read + one write
    └──────┬───────────────┘
           ▼
    ┌──────────────────────┐
    │ invalidate info cache│
    └──────┬───────────────┘
           ▼
    PERMITTED ──▶ original URL
    EXPIRED ────▶ Expired
    ATTEMPTS_EXCEEDED ──▶ AttemptsExceeded
    (no record) ────────▶ NotFound

Usage Examples
==============
```python
service = TinyUrlService.from_context(ctx)
link = await service.create(LinkCreate(original_url="https://example.com", max_usage=2))
target = await service.resolve(link.short_code)
```
"""

import datetime
import logging
import time
from collections.abc import Callable

from prometheus_client import Counter

from tinyurl.cache import LinkInfoCache
from tinyurl.codegen import generate_short_code, generate_unique_code
from tinyurl.config import Settings
from tinyurl.domain import ShortLink, resolve_transition, utc_now
from tinyurl.enums import CacheStatus, RequestStatus, ResolutionOutcome
from tinyurl.exceptions import (
    AttemptsExceeded,
    Expired,
    GenerationExhausted,
    InvalidUrl,
    NotFound,
    ShortCodeConflict,
)
from tinyurl.schemas import LinkCreate, is_valid_uri
from tinyurl.store import LinkStore, SqlAlchemyLinkStore

__all__ = ["TinyUrlService"]


# ============================================================================
# PROMETHEUS METRICS
# ============================================================================

LINK_CREATIONS_TOTAL = Counter(
    "tinyurl_link_creations_total",
    "Total link creation requests",
    ["status"],
)
RESOLUTIONS_TOTAL = Counter(
    "tinyurl_resolutions_total",
    "Total resolution attempts by outcome",
    ["outcome"],
)
CODE_GENERATION_EXHAUSTED_TOTAL = Counter(
    "tinyurl_code_generation_exhausted_total",
    "Creations that failed because no unique short code was found",
)
INFO_LOOKUPS_TOTAL = Counter(
    "tinyurl_info_lookups_total",
    "Total info view lookups",
    ["cache_hit"],
)
LINK_UPDATES_TOTAL = Counter(
    "tinyurl_link_updates_total",
    "Administrative link updates",
    ["field"],
)
PURGED_LINKS_TOTAL = Counter(
    "tinyurl_purged_links_total",
    "Expired links deleted by the purge job",
)


# ============================================================================
# CORE SERVICE CLASS
# ============================================================================


class TinyUrlService:
    """Core service class for short link operations.

    Every mutation of an existing link goes through ``LinkStore.update`` so
    the decision and the write happen against one locked copy of the record.
    """

    def __init__(
        self,
        store: LinkStore,
        cache: LinkInfoCache,
        settings: Settings,
        logger: logging.Logger | logging.LoggerAdapter,
        clock: Callable[[], datetime.datetime] = utc_now,
        draw: Callable[[int], str] = generate_short_code,
    ):
        self._store = store
        self._cache = cache
        self._settings = settings
        self._logger = logger
        self._clock = clock
        self._draw = draw

    @classmethod
    def from_context(cls, ctx: "RequestContext") -> "TinyUrlService":  # noqa: F821
        """Build a service from a request context's session, cache and logger."""
        return cls(
            store=SqlAlchemyLinkStore(ctx.database),
            cache=LinkInfoCache(ctx.cache_writer, ctx.settings.INFO_CACHE_TTL_SECONDS),
            settings=ctx.settings,
            logger=ctx.logger,
        )

    @property
    def settings(self) -> Settings:
        return self._settings

    def now(self) -> datetime.datetime:
        return self._clock()

    # ========================================================================
    # PUBLIC API METHODS
    # ========================================================================

    async def create(self, request: LinkCreate) -> ShortLink:
        """Create and persist a new short link.

        Raises:
            InvalidUrl: ``original_url`` is not a syntactically valid URI.
            GenerationExhausted: no free short code within the retry bound.
        """
        start_time = time.perf_counter()
        self._logger.info(f"Creating tiny URL for: {request.original_url}")

        if not is_valid_uri(request.original_url):
            LINK_CREATIONS_TOTAL.labels(status=RequestStatus.VALIDATION_ERROR).inc()
            self._logger.warning(f"Rejected invalid URL: {request.original_url!r}")
            raise InvalidUrl(request.original_url)

        try:
            stored = await self._insert_with_unique_code(request)
        except GenerationExhausted:
            LINK_CREATIONS_TOTAL.labels(status=RequestStatus.ERROR).inc()
            CODE_GENERATION_EXHAUSTED_TOTAL.inc()
            self._logger.error(
                f"Short code space exhausted after {self._settings.CODE_GENERATION_MAX_ATTEMPTS} attempts "
                f"(length {self._settings.SHORT_CODE_LENGTH})"
            )
            raise
        except Exception:
            LINK_CREATIONS_TOTAL.labels(status=RequestStatus.ERROR).inc()
            raise

        duration = time.perf_counter() - start_time
        LINK_CREATIONS_TOTAL.labels(status=RequestStatus.SUCCESS).inc()
        self._logger.info(f"Tiny URL created: {stored.short_code} in {duration:.3f}s")
        return stored

    async def resolve(self, short_code: str) -> str:
        """Record one access attempt and return the original URL if permitted.

        The attempt counter is persisted before any failure is raised.
        """
        self._logger.info(f"Resolving URL for short code: {short_code}")
        now = self.now()

        result = await self._store.update(short_code, lambda link: resolve_transition(link, now))
        if result is None:
            RESOLUTIONS_TOTAL.labels(outcome=RequestStatus.NOT_FOUND).inc()
            self._logger.warning(f"Tiny URL not found for code: {short_code}")
            raise NotFound(short_code)

        link, outcome = result
        await self._cache.invalidate(short_code)
        RESOLUTIONS_TOTAL.labels(outcome=outcome).inc()

        if outcome is ResolutionOutcome.ATTEMPTS_EXCEEDED:
            self._logger.warning(
                f"Maximum attempts exceeded for {short_code}, "
                f"attempts: {link.attempt_count}, max: {link.max_attempts}"
            )
            raise AttemptsExceeded(short_code)

        if outcome is ResolutionOutcome.EXPIRED:
            self._logger.warning(f"URL with short code {short_code} has expired or reached its usage limit")
            raise Expired(short_code)

        self._logger.info(
            f"Resolved {short_code} -> {link.original_url} "
            f"(usage {link.usage_count}, attempts {link.attempt_count})"
        )
        return link.original_url

    async def get_info(self, short_code: str) -> ShortLink:
        """Return the link without touching its counters."""
        cached = await self._cache.get(short_code)
        if cached is not None:
            INFO_LOOKUPS_TOTAL.labels(cache_hit=CacheStatus.HIT).inc()
            self._logger.debug(f"Info cache hit for {short_code}")
            return cached

        INFO_LOOKUPS_TOTAL.labels(cache_hit=CacheStatus.MISS).inc()
        link = await self._store.find_by_code(short_code)
        if link is None:
            self._logger.warning(f"Info requested for unknown code: {short_code}")
            raise NotFound(short_code)

        await self._cache.put(link)
        return link

    async def deactivate(self, short_code: str) -> None:
        self._logger.info(f"Deactivating tiny URL with short code: {short_code}")
        await self._update(short_code, "active", lambda link: link.deactivated())

    async def update_expiration(self, short_code: str, expiration_time: datetime.datetime | None) -> ShortLink:
        self._logger.info(f"Updating expiration time for {short_code} to: {expiration_time}")
        return await self._update(short_code, "expiration_time", lambda link: link.with_expiration(expiration_time))

    async def update_max_usage(self, short_code: str, max_usage: int) -> ShortLink:
        if max_usage < 0:
            raise ValueError(f"max_usage must be non-negative, got {max_usage!r}")
        self._logger.info(f"Updating maximum usage limit for {short_code} to: {max_usage}")
        return await self._update(short_code, "max_usage", lambda link: link.with_max_usage(max_usage))

    async def update_max_attempts(self, short_code: str, max_attempts: int) -> ShortLink:
        if max_attempts < 0:
            raise ValueError(f"max_attempts must be non-negative, got {max_attempts!r}")
        self._logger.info(f"Updating maximum attempts for {short_code} to: {max_attempts}")
        return await self._update(short_code, "max_attempts", lambda link: link.with_max_attempts(max_attempts))

    async def purge_expired(self) -> int:
        deleted = await self._store.delete_where_expired(self.now())
        PURGED_LINKS_TOTAL.inc(deleted)
        self._logger.info(f"Purged {deleted} expired tiny URLs")
        return deleted

    # ========================================================================
    # PRIVATE HELPER METHODS
    # ========================================================================

    async def _insert_with_unique_code(self, request: LinkCreate) -> ShortLink:
        """Draw a free code and insert the link, redrawing when the insert loses a race.

        Existence checks and lost inserts share one budget of
        ``CODE_GENERATION_MAX_ATTEMPTS`` draws.
        """
        budget = self._settings.CODE_GENERATION_MAX_ATTEMPTS
        drawn = 0

        async def exists(candidate: str) -> bool:
            nonlocal drawn
            drawn += 1
            return await self._store.exists(candidate)

        while True:
            try:
                short_code = await generate_unique_code(
                    exists,
                    length=self._settings.SHORT_CODE_LENGTH,
                    max_attempts=budget - drawn,
                    draw=self._draw,
                )
            except GenerationExhausted as exc:
                raise GenerationExhausted(budget) from exc

            link = ShortLink.new(
                request.original_url,
                short_code,
                now=self.now(),
                expiration_time=request.expiration_time,
                one_time_use=request.one_time_use,
                max_usage=request.max_usage,
                max_attempts=request.max_attempts,
            )
            try:
                return await self._store.insert(link)
            except ShortCodeConflict:
                self._logger.warning(f"Short code {short_code} was taken before insert (attempt {drawn}/{budget})")
                if drawn >= budget:
                    raise GenerationExhausted(budget)

    async def _update(self, short_code: str, field: str, change: Callable[[ShortLink], ShortLink]) -> ShortLink:
        result = await self._store.update(short_code, lambda link: (change(link), None))
        if result is None:
            self._logger.warning(f"Update of {field} failed, code not found: {short_code}")
            raise NotFound(short_code)

        link, _ = result
        await self._cache.invalidate(short_code)
        LINK_UPDATES_TOTAL.labels(field=field).inc()
        return link
