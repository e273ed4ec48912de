import asyncio
import logging
from dataclasses import dataclass
from typing import List, Optional

from ..ports.notification_store import NotificationStore, NotificationDto
from ...exceptions import NotificationStoreError

logger = logging.getLogger(__name__)


def _created_order(notifications: List[NotificationDto]) -> List[NotificationDto]:
    # sorted() is stable, so equal timestamps keep the backend's order
    return sorted(notifications, key=lambda n: n.created_at)


@dataclass
class NotificationStoreClient:
    """Async, fail-soft access to the notification store.

    The store adapter is synchronous; every call runs in a worker thread so
    the event loop never blocks on the backend.
    """
    store: NotificationStore

    async def fetch_unread(self, user_id: str) -> Optional[List[NotificationDto]]:
        """Unread notifications oldest first, or None when the backend failed."""
        try:
            rows = await asyncio.to_thread(self.store.load_unread, user_id)
        except NotificationStoreError as e:
            logger.error(f"Error loading unread notifications for user {user_id}: {e}")
            return None
        except Exception as e:
            logger.exception(f"Unexpected error loading unread notifications for user {user_id}: {e}")
            return None
        return _created_order([n for n in rows if not n.is_read and n.user_id == user_id])

    async def load_unread(self, user_id: str) -> List[NotificationDto]:
        """Unread notifications oldest first; an empty list when the backend failed."""
        notifications = await self.fetch_unread(user_id)
        return notifications if notifications is not None else []

    async def mark_read(self, notification_id: str) -> None:
        """Remote idempotent mark-read. Failures propagate as NotificationStoreError."""
        try:
            await asyncio.to_thread(self.store.mark_read, notification_id)
        except NotificationStoreError:
            raise
        except Exception as e:
            raise NotificationStoreError(f"mark read failed for {notification_id}: {e}") from e
