import asyncio
import logging
from typing import Dict, Set

from ...application.ports.change_feed import ChangeCallback, ChangeEvent, ChangeFeed

logger = logging.getLogger(__name__)


class _MemorySubscription:
    def __init__(self, feed: "InMemoryChangeFeed", topic: str, callback: ChangeCallback):
        self._feed = feed
        self.topic = topic
        self.callback = callback
        self.closed = False

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self._feed._remove(self)


class InMemoryChangeFeed(ChangeFeed):
    """Single-process change feed. Delivery is deferred to the next loop iteration."""

    name = "memory"

    def __init__(self) -> None:
        self._topics: Dict[str, Set[_MemorySubscription]] = {}

    def subscriber_count(self, topic: str) -> int:
        return len(self._topics.get(topic, ()))

    async def subscribe(self, topic: str, callback: ChangeCallback) -> _MemorySubscription:
        subscription = _MemorySubscription(self, topic, callback)
        self._topics.setdefault(topic, set()).add(subscription)
        return subscription

    async def publish(self, topic: str, event: ChangeEvent) -> None:
        loop = asyncio.get_running_loop()
        for subscription in list(self._topics.get(topic, ())):
            loop.call_soon(self._deliver, subscription, event)

    async def aclose(self) -> None:
        for subscriptions in list(self._topics.values()):
            for subscription in list(subscriptions):
                subscription.close()
        self._topics.clear()

    def _deliver(self, subscription: _MemorySubscription, event: ChangeEvent) -> None:
        if subscription.closed:
            return
        try:
            subscription.callback(event)
        except Exception:
            logger.exception(f"Change feed callback failed on {subscription.topic}")

    def _remove(self, subscription: _MemorySubscription) -> None:
        subscriptions = self._topics.get(subscription.topic)
        if not subscriptions:
            return
        subscriptions.discard(subscription)
        if not subscriptions:
            del self._topics[subscription.topic]
