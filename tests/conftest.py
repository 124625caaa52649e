"""Shared pytest fixtures: in-memory store, fake Redis, frozen clock and API client."""

import asyncio
import dataclasses
import datetime
import logging
from collections.abc import AsyncGenerator, Callable
from typing import TypeVar
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from tinyurl.cache import LinkInfoCache
from tinyurl.config import Settings, get_settings
from tinyurl.database import get_db
from tinyurl.dependencies import get_link_service
from tinyurl.domain import ShortLink
from tinyurl.exceptions import ShortCodeConflict
from tinyurl.link_service import TinyUrlService
from tinyurl.main import app
from tinyurl.redis import get_redis

R = TypeVar("R")

START = datetime.datetime(2030, 1, 1, 12, 0, 0, tzinfo=datetime.timezone.utc)


class InMemoryLinkStore:
    """Dict-backed LinkStore that serializes updates per store with a lock."""

    def __init__(self) -> None:
        self.links: dict[str, ShortLink] = {}
        self.lookups: list[str] = []
        self.writes = 0
        self._lock = asyncio.Lock()

    async def find_by_code(self, short_code: str) -> ShortLink | None:
        return self.links.get(short_code)

    async def exists(self, short_code: str) -> bool:
        self.lookups.append(short_code)
        return short_code in self.links

    async def insert(self, link: ShortLink) -> ShortLink:
        if link.short_code in self.links:
            raise ShortCodeConflict(link.short_code)
        self.links[link.short_code] = link
        self.writes += 1
        return link

    async def save(self, link: ShortLink) -> ShortLink:
        self.links[link.short_code] = link
        self.writes += 1
        return link

    async def update(
        self, short_code: str, transition: Callable[[ShortLink], tuple[ShortLink, R]]
    ) -> tuple[ShortLink, R] | None:
        async with self._lock:
            current = self.links.get(short_code)
            if current is None:
                return None
            # Yield inside the critical section so concurrent callers really contend.
            await asyncio.sleep(0)
            updated, result = transition(current)
            self.links[short_code] = updated
            self.writes += 1
            return updated, result

    async def delete_where_expired(self, now: datetime.datetime) -> int:
        expired = [
            code
            for code, link in self.links.items()
            if link.expiration_time is not None and link.expiration_time < now
        ]
        for code in expired:
            del self.links[code]
        return len(expired)


class FakeRedis:
    """The subset of redis.asyncio.Redis used by the info cache and health check."""

    def __init__(self) -> None:
        self.data: dict[str, str] = {}
        self.ttls: dict[str, int | None] = {}

    async def get(self, key: str) -> str | None:
        return self.data.get(key)

    async def set(self, key: str, value: str, ex: int | None = None) -> bool:
        self.data[key] = value
        self.ttls[key] = ex
        return True

    async def delete(self, *keys: str) -> int:
        removed = 0
        for key in keys:
            if self.data.pop(key, None) is not None:
                removed += 1
            self.ttls.pop(key, None)
        return removed

    async def ping(self) -> bool:
        return True


@dataclasses.dataclass
class FrozenClock:
    now: datetime.datetime = START

    def __call__(self) -> datetime.datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + datetime.timedelta(**kwargs)


@pytest.fixture
def settings() -> Settings:
    return get_settings()


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
def store() -> InMemoryLinkStore:
    return InMemoryLinkStore()


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
def info_cache(fake_redis: FakeRedis, settings: Settings) -> LinkInfoCache:
    return LinkInfoCache(fake_redis, settings.INFO_CACHE_TTL_SECONDS)


@pytest.fixture
def service(store, info_cache, settings, clock) -> TinyUrlService:
    return TinyUrlService(store, info_cache, settings, logging.getLogger("tinyurl.test"), clock=clock)


@pytest_asyncio.fixture
async def client(service: TinyUrlService, fake_redis: FakeRedis) -> AsyncGenerator[AsyncClient, None]:
    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield AsyncMock(spec=AsyncSession)

    async def override_get_redis() -> FakeRedis:
        return fake_redis

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis] = override_get_redis
    app.dependency_overrides[get_link_service] = lambda: service

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
