import logging
from typing import Callable, Optional

from ..ports.change_feed import ChangeEvent, ChangeFeed, FeedSubscription, INSERT, change_topic
from ...exceptions import ChangeFeedError

logger = logging.getLogger(__name__)

NOTIFICATIONS_TABLE = "team_achievement_notifications"


class SubscriptionHandle:
    """Owned by whoever called subscribe(). unsubscribe() is idempotent.

    After unsubscribe() the callback is dropped, so a late event already
    queued by the transport cannot reach its former owner.
    """

    def __init__(self, topic: str, on_insert: Callable[[], None]):
        self.topic = topic
        self._on_insert: Optional[Callable[[], None]] = on_insert
        self._feed_subscription: Optional[FeedSubscription] = None

    @property
    def active(self) -> bool:
        return self._on_insert is not None

    @property
    def connected(self) -> bool:
        return self.active and self._feed_subscription is not None

    def unsubscribe(self) -> None:
        if self._on_insert is None:
            return
        self._on_insert = None
        subscription, self._feed_subscription = self._feed_subscription, None
        if subscription is not None:
            try:
                subscription.close()
            except Exception as e:
                logger.warning(f"Error closing live feed subscription {self.topic}: {e}")
        logger.debug(f"Unsubscribed from {self.topic}")

    def _attach(self, subscription: FeedSubscription) -> None:
        if self._on_insert is None:
            # torn down while the feed was still connecting
            subscription.close()
            return
        self._feed_subscription = subscription

    def _deliver(self, event: ChangeEvent) -> None:
        callback = self._on_insert
        if callback is None:
            return
        # the payload is not trusted; any insert notice is just a reload trigger
        callback()


class LiveChangeSubscriber:
    def __init__(self, feed: ChangeFeed, table: str = NOTIFICATIONS_TABLE):
        self.feed = feed
        self.table = table

    async def subscribe(self, user_id: str, on_insert: Callable[[], None]) -> SubscriptionHandle:
        """Open a live feed of inserts for `user_id`.

        Never raises: when the feed cannot be opened the handle stays
        disconnected and notifications only arrive through reloads.
        """
        topic = change_topic(self.table, user_id, INSERT)
        handle = SubscriptionHandle(topic, on_insert)
        try:
            subscription = await self.feed.subscribe(topic, handle._deliver)
        except ChangeFeedError as e:
            logger.warning(f"Live feed unavailable for {topic}, falling back to reloads: {e}")
            return handle
        except Exception as e:
            logger.exception(f"Unexpected error subscribing to {topic}: {e}")
            return handle
        handle._attach(subscription)
        logger.info(f"Subscribed to {topic} on {self.feed.name} feed")
        return handle
