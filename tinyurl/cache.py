"""Redis-backed cache for the read-only link info view.

The cache is a side channel: it is consulted only by ``get_info`` and is
invalidated after every mutation of a link. Redis failures are logged and
treated as misses so they never change the result of a core operation.
"""

import logging

import redis.asyncio as redis
from pydantic import ValidationError
from redis.exceptions import RedisError

from tinyurl.domain import ShortLink
from tinyurl.schemas import CachedLinkPayload

__all__ = ["LinkInfoCache", "DEFAULT_INFO_TTL_SECONDS"]

DEFAULT_INFO_TTL_SECONDS = 600

logger = logging.getLogger("tinyurl.cache")


class LinkInfoCache:
    def __init__(self, cache: redis.Redis, ttl_seconds: int = DEFAULT_INFO_TTL_SECONDS):
        self._cache = cache
        self._ttl_seconds = ttl_seconds

    @staticmethod
    def key_for(short_code: str) -> str:
        return f"link-info:{short_code}"

    async def get(self, short_code: str) -> ShortLink | None:
        try:
            cached = await self._cache.get(self.key_for(short_code))
        except RedisError as exc:
            logger.warning(f"Info cache read failed for {short_code}: {exc}")
            return None

        if not cached:
            return None

        try:
            return CachedLinkPayload.model_validate_json(cached).to_link()
        except ValidationError as exc:
            logger.error(f"Cache deserialization error for {short_code}: {exc}")
            return None

    async def put(self, link: ShortLink) -> None:
        payload = CachedLinkPayload.model_validate(link)
        try:
            await self._cache.set(self.key_for(link.short_code), payload.model_dump_json(), ex=self._ttl_seconds)
        except RedisError as exc:
            logger.warning(f"Info cache write failed for {link.short_code}: {exc}")

    async def invalidate(self, short_code: str) -> None:
        try:
            await self._cache.delete(self.key_for(short_code))
        except RedisError as exc:
            logger.warning(f"Info cache invalidation failed for {short_code}: {exc}")
