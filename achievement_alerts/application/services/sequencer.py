import asyncio
import logging
from enum import Enum
from typing import Callable, Optional, Set

from ..ports.notification_store import NotificationDto
from ..ports.presenter import NotificationPresenter
from .celebration import Celebration, ConfettiBurst
from .pending_queue import PendingQueue

logger = logging.getLogger(__name__)

CelebrationFactory = Callable[[Callable[[ConfettiBurst], None]], Celebration]


class SequencerState(str, Enum):
    IDLE = "idle"
    SHOWING = "showing"


class Sequencer:
    """Shows queued notifications one at a time.

    IDLE -> SHOWING whenever the queue has a head, nothing is shown and no
    settling delay is pending. SHOWING -> IDLE only through release() for the
    shown id, followed by the settling delay before the next evaluation.
    All transitions are synchronous; presenter calls must not suspend.
    """

    def __init__(self, queue: PendingQueue, presenter: NotificationPresenter,
                 settle_delay: float = 0.5, celebration_factory: Optional[CelebrationFactory] = None):
        self.queue = queue
        self.presenter = presenter
        self.settle_delay = settle_delay
        self.celebration_factory = celebration_factory or (lambda sink: Celebration(sink))
        self.state = SequencerState.IDLE
        self.current: Optional[NotificationDto] = None
        self._settle_handle: Optional[asyncio.TimerHandle] = None
        self._celebrations: Set[Celebration] = set()
        self._closed = False
        queue.add_listener(self.evaluate)

    @property
    def settling(self) -> bool:
        return self._settle_handle is not None

    @property
    def closed(self) -> bool:
        return self._closed

    def evaluate(self) -> Optional[NotificationDto]:
        """Present the queue head if nothing is showing. Returns what was shown, if anything."""
        if self._closed or self.state is SequencerState.SHOWING or self._settle_handle is not None:
            return None
        head = self.queue.head()
        if head is None:
            return None

        self.state = SequencerState.SHOWING
        self.current = head
        logger.info(f"Showing achievement notification {head.id} to user {head.user_id}")
        try:
            self.presenter.show(head)
        except Exception:
            logger.exception(f"Presenter failed to show notification {head.id}")
        self._celebrate()
        return head

    def release(self, notification_id: str) -> bool:
        """Leave SHOWING for the shown id and start the settling delay."""
        if self.state is not SequencerState.SHOWING or self.current is None:
            return False
        if self.current.id != notification_id:
            return False

        shown = self.current
        self.state = SequencerState.IDLE
        self.current = None
        try:
            self.presenter.hide(shown)
        except Exception:
            logger.exception(f"Presenter failed to hide notification {shown.id}")
        if not self._closed:
            loop = asyncio.get_running_loop()
            self._settle_handle = loop.call_later(self.settle_delay, self._settled)
        return True

    def close(self) -> None:
        """Teardown: cancel the settling delay and any running celebration."""
        self._closed = True
        if self._settle_handle is not None:
            self._settle_handle.cancel()
            self._settle_handle = None
        for celebration in list(self._celebrations):
            celebration.cancel()
        self._celebrations.clear()

    def _settled(self) -> None:
        self._settle_handle = None
        if self._closed:
            return
        self.evaluate()

    def _celebrate(self) -> None:
        celebration = self.celebration_factory(self.presenter.burst)
        self._celebrations.add(celebration)
        task = celebration.start()
        task.add_done_callback(lambda _t: self._celebrations.discard(celebration))
