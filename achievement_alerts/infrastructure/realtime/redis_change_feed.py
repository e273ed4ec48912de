import asyncio
import json
import logging
from typing import Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

from ...application.ports.change_feed import ChangeCallback, ChangeEvent, ChangeFeed
from ...exceptions import ChangeFeedError

logger = logging.getLogger(__name__)


class _RedisSubscription:
    def __init__(self, topic: str, task: asyncio.Task):
        self.topic = topic
        self._task = task

    def close(self) -> None:
        # the listener task unsubscribes and closes its pubsub on the way out
        if not self._task.done():
            self._task.cancel()


class RedisChangeFeed(ChangeFeed):
    """Change feed over Redis pub/sub, shared by every worker of the service."""

    name = "redis"

    def __init__(self, url: str, prefix: str = "feed:", client: Optional[redis.Redis] = None) -> None:
        self.client = client or redis.Redis.from_url(url)
        self.prefix = prefix

    def _channel(self, topic: str) -> str:
        return f"{self.prefix}{topic}"

    async def subscribe(self, topic: str, callback: ChangeCallback) -> _RedisSubscription:
        pubsub = self.client.pubsub()
        try:
            await pubsub.subscribe(self._channel(topic))
        except (RedisError, OSError) as e:
            await pubsub.aclose()
            raise ChangeFeedError(f"subscribe to {topic} failed: {e}") from e
        task = asyncio.get_running_loop().create_task(self._listen(pubsub, topic, callback))
        return _RedisSubscription(topic, task)

    async def publish(self, topic: str, event: ChangeEvent) -> None:
        try:
            await self.client.publish(self._channel(topic), json.dumps(event.to_dict()))
        except (RedisError, OSError) as e:
            raise ChangeFeedError(f"publish to {topic} failed: {e}") from e

    async def aclose(self) -> None:
        await self.client.aclose()

    async def _listen(self, pubsub, topic: str, callback: ChangeCallback) -> None:
        try:
            async for message in pubsub.listen():
                if message.get("type") != "message":
                    continue
                try:
                    data = json.loads(message.get("data") or b"{}")
                except (TypeError, ValueError):
                    data = {}
                event = ChangeEvent.from_dict(data if isinstance(data, dict) else {})
                try:
                    callback(event)
                except Exception:
                    logger.exception(f"Change feed callback failed on {topic}")
        except (RedisError, OSError) as e:
            logger.warning(f"Live feed for {topic} dropped: {e}")
        finally:
            try:
                await pubsub.unsubscribe()
                await pubsub.aclose()
            except (RedisError, OSError) as e:
                logger.debug(f"Error closing pubsub for {topic}: {e}")
