import logging

from .memory_change_feed import InMemoryChangeFeed
from .redis_change_feed import RedisChangeFeed

logger = logging.getLogger(__name__)


def build_change_feed(settings):
    """Pick the change feed adapter the settings ask for."""
    if settings.uses_redis_feed:
        if not settings.REDIS_URL:
            raise ValueError("FEED_BACKEND=redis requires REDIS_URL")
        logger.info("Using Redis live change feed")
        return RedisChangeFeed(url=settings.REDIS_URL, prefix=settings.FEED_PREFIX)
    logger.info("Using in-process live change feed")
    return InMemoryChangeFeed()


__all__ = [
    "InMemoryChangeFeed",
    "RedisChangeFeed",
    "build_change_feed",
]
