import asyncio
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ..ports.notification_store import NotificationDto
from ...exceptions import NotificationStoreError
from .pending_queue import PendingQueue
from .sequencer import Sequencer
from .store_client import NotificationStoreClient

logger = logging.getLogger(__name__)


@dataclass
class Acknowledger:
    """Handles a dismissal: local removal and release happen at once, mark-read runs behind.

    A dismissed id stays hidden from any reload whose fetch started before
    its mark-read was confirmed. A failed mark-read is only logged and the
    id is forgotten, so a later full reload can bring the notification back
    while the backend still reports it unread.
    """
    store_client: NotificationStoreClient
    queue: PendingQueue
    sequencer: Sequencer
    _in_flight: Dict[str, asyncio.Task] = field(default_factory=dict, init=False)
    # id -> checkpoint at which mark-read was confirmed, None while unconfirmed
    _dismissed: Dict[str, Optional[int]] = field(default_factory=dict, init=False)
    _checkpoint: int = field(default=0, init=False)

    def acknowledge(self, notification: NotificationDto) -> bool:
        """Returns True when this call changed local state."""
        removed = self.queue.remove_by_id(notification.id)
        released = self.sequencer.release(notification.id)
        existing = self._in_flight.get(notification.id)
        if existing is None or existing.done():
            self._dismissed[notification.id] = None
            task = asyncio.get_running_loop().create_task(self._mark_read(notification.id))
            self._in_flight[notification.id] = task
            task.add_done_callback(lambda t, nid=notification.id: self._forget(nid, t))
        return removed or released

    def checkpoint(self) -> int:
        """Marker to take before fetching; pass it to drop_dismissed with the result."""
        return self._checkpoint

    def drop_dismissed(self, notifications: List[NotificationDto], since: int) -> List[NotificationDto]:
        """Drop dismissed ids unless their mark-read was confirmed before `since` was taken."""
        return [n for n in notifications if not self._hidden(n.id, since)]

    async def wait_pending(self) -> None:
        """Wait for mark-read calls still in flight."""
        tasks = list(self._in_flight.values())
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    @property
    def pending_ids(self):
        return list(self._in_flight)

    def _hidden(self, notification_id: str, since: int) -> bool:
        if notification_id not in self._dismissed:
            return False
        confirmed = self._dismissed[notification_id]
        return confirmed is None or confirmed > since

    def _forget(self, notification_id: str, task: asyncio.Task) -> None:
        if self._in_flight.get(notification_id) is task:
            del self._in_flight[notification_id]

    async def _mark_read(self, notification_id: str) -> bool:
        try:
            await self.store_client.mark_read(notification_id)
        except NotificationStoreError as e:
            self._dismissed.pop(notification_id, None)
            logger.warning(f"Mark read failed for notification {notification_id}, dismissed locally only: {e}")
            return False
        self._checkpoint += 1
        if notification_id in self._dismissed:
            self._dismissed[notification_id] = self._checkpoint
        logger.info(f"Notification {notification_id} marked as read")
        return True
