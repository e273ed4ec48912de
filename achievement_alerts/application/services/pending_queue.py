from typing import Callable, Dict, Iterable, List, Optional

from ..ports.notification_store import NotificationDto


class PendingQueue:
    """Unread notifications for one user, oldest first, unique by id.

    A cache of the last observed unread set, not a replica. Every method is
    synchronous so each mutation is a single step on the event loop.
    Listeners run after every mutation that leaves the queue non-empty.
    """

    def __init__(self) -> None:
        self._items: List[NotificationDto] = []
        self._index: Dict[str, NotificationDto] = {}
        self._listeners: List[Callable[[], None]] = []

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, notification_id: object) -> bool:
        return notification_id in self._index

    def __iter__(self):
        return iter(list(self._items))

    def ids(self) -> List[str]:
        return [n.id for n in self._items]

    def add_listener(self, listener: Callable[[], None]) -> None:
        self._listeners.append(listener)

    def replace(self, notifications: Iterable[NotificationDto]) -> None:
        """Swap in a full reload. Duplicate ids keep their first occurrence."""
        items: List[NotificationDto] = []
        index: Dict[str, NotificationDto] = {}
        for n in notifications:
            if n.id in index:
                continue
            index[n.id] = n
            items.append(n)
        items.sort(key=lambda n: n.created_at)
        self._items = items
        self._index = index
        self._notify()

    def remove_by_id(self, notification_id: str) -> bool:
        """Drop one notification locally. Returns False when it was not queued."""
        if self._index.pop(notification_id, None) is None:
            return False
        self._items = [n for n in self._items if n.id != notification_id]
        self._notify()
        return True

    def head(self) -> Optional[NotificationDto]:
        return self._items[0] if self._items else None

    def _notify(self) -> None:
        if not self._items:
            return
        for listener in list(self._listeners):
            listener()
