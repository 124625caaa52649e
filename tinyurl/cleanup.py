"""Periodic purge of expired links.

Deletes every link whose expiration time has passed, once per
``CLEANUP_INTERVAL_SECONDS``. The app lifespan starts ``run()`` as a task;
it can also run standalone with ``python -m tinyurl.cleanup``.
"""

import asyncio
import logging

from tinyurl.cache import LinkInfoCache
from tinyurl.config import get_settings
from tinyurl.database import async_session
from tinyurl.link_service import TinyUrlService
from tinyurl.redis import get_redis
from tinyurl.store import SqlAlchemyLinkStore

__all__ = ["purge_expired_links", "run"]

logger = logging.getLogger("tinyurl.cleanup")

settings = get_settings()


async def purge_expired_links(session_factory=async_session) -> int:
    """Delete expired links in a fresh session and return how many went."""
    cache = LinkInfoCache(await get_redis(), settings.INFO_CACHE_TTL_SECONDS)
    async with session_factory() as session:
        service = TinyUrlService(SqlAlchemyLinkStore(session), cache, settings, logger)
        return await service.purge_expired()


async def run(interval_seconds: int | None = None, session_factory=async_session) -> None:
    """Purge loop; failures are logged and retried on the next tick."""
    interval = settings.CLEANUP_INTERVAL_SECONDS if interval_seconds is None else interval_seconds
    logger.info(f"Starting cleanup job for expired tiny URLs, every {interval}s")

    while True:
        try:
            deleted = await purge_expired_links(session_factory)
            logger.info(f"Cleanup job completed. Deleted {deleted} expired tiny URLs")
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Error during cleanup job: {e}", exc_info=True)

        await asyncio.sleep(interval)


if __name__ == "__main__":
    logging.basicConfig(level=settings.LOG_LEVEL.upper())
    asyncio.run(run())
