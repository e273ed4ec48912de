import asyncio
import logging
from typing import Optional, Set

from ..ports.change_feed import ChangeFeed
from ..ports.presenter import NotificationPresenter
from .acknowledger import Acknowledger
from .live_subscriber import LiveChangeSubscriber, SubscriptionHandle
from .pending_queue import PendingQueue
from .sequencer import CelebrationFactory, Sequencer
from .store_client import NotificationStoreClient

logger = logging.getLogger(__name__)


class AchievementNotificationSession:
    """Achievement notifications for one connected user, from mount to teardown.

    Wires the store client and live feed into the pending queue, and the
    queue into the sequencer. Every insert notice triggers a full reload;
    when reloads overlap, only the most recently started one is applied.
    """

    def __init__(self, user_id: str, store_client: NotificationStoreClient, feed: ChangeFeed,
                 presenter: NotificationPresenter, settle_delay: float = 0.5,
                 celebration_factory: Optional[CelebrationFactory] = None):
        self.user_id = user_id
        self.store_client = store_client
        self.queue = PendingQueue()
        self.sequencer = Sequencer(self.queue, presenter, settle_delay=settle_delay,
                                   celebration_factory=celebration_factory)
        self.acknowledger = Acknowledger(store_client, self.queue, self.sequencer)
        self.subscriber = LiveChangeSubscriber(feed)
        self._handle: Optional[SubscriptionHandle] = None
        self._alive = False
        self._closed = False
        self._generation = 0
        self._reloads: Set[asyncio.Task] = set()

    @property
    def alive(self) -> bool:
        return self._alive

    @property
    def subscription(self) -> Optional[SubscriptionHandle]:
        return self._handle

    async def start(self) -> None:
        """Subscribe first, then load, so an insert racing the first load still triggers a reload."""
        if self._alive or self._closed:
            return
        self._alive = True
        handle = await self.subscriber.subscribe(self.user_id, self._on_insert)
        if self._closed:
            handle.unsubscribe()
            return
        self._handle = handle
        await self.reload()

    async def reload(self) -> bool:
        """Full reload of the unread set. Returns True when the result was applied."""
        if not self._alive:
            return False
        self._generation += 1
        generation = self._generation
        since = self.acknowledger.checkpoint()
        notifications = await self.store_client.fetch_unread(self.user_id)
        if not self._alive:
            return False
        if generation != self._generation:
            logger.debug(f"Discarding stale reload {generation} for user {self.user_id}")
            return False
        if notifications is None:
            # load failed; keep whatever the queue held before
            return False
        self.queue.replace(self.acknowledger.drop_dismissed(notifications, since))
        return True

    def dismiss(self, notification_id: Optional[str] = None) -> bool:
        """User closed the shown notification. An id that is not the shown one is ignored."""
        current = self.sequencer.current
        if current is None:
            return False
        if notification_id is not None and notification_id != current.id:
            logger.debug(f"Ignoring dismiss for {notification_id}, showing {current.id}")
            return False
        return self.acknowledger.acknowledge(current)

    def close(self) -> None:
        """Teardown. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        self._alive = False
        if self._handle is not None:
            self._handle.unsubscribe()
        self.sequencer.close()
        for task in list(self._reloads):
            task.cancel()
        self._reloads.clear()
        logger.info(f"Closed achievement notification session for user {self.user_id}")

    def _on_insert(self) -> None:
        if not self._alive:
            return
        task = asyncio.get_running_loop().create_task(self.reload())
        self._reloads.add(task)
        task.add_done_callback(self._reloads.discard)
