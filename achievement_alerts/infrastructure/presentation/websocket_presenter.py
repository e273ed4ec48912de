import asyncio
import logging
from typing import Any, Dict, Optional

from ...application.ports.notification_store import NotificationDto
from ...application.ports.presenter import NotificationPresenter
from ...application.services.celebration import ConfettiBurst
from ...schemas import HideNotificationMessage, NotificationResponse, ShowNotificationMessage

logger = logging.getLogger(__name__)


class WebSocketPresenter(NotificationPresenter):
    """Turns sequencer calls into JSON frames.

    Calls only enqueue; pump() is the single writer to the socket, so frame
    order matches call order and the sequencer never waits on the network.
    """

    def __init__(self, max_pending: int = 0) -> None:
        self.outbox: "asyncio.Queue[Optional[Dict[str, Any]]]" = asyncio.Queue(maxsize=max_pending)

    def show(self, notification: NotificationDto) -> None:
        message = ShowNotificationMessage(notification=NotificationResponse.from_dto(notification))
        self._enqueue(message.model_dump(mode="json"))

    def hide(self, notification: NotificationDto) -> None:
        self._enqueue(HideNotificationMessage(notification_id=notification.id).model_dump(mode="json"))

    def burst(self, burst: ConfettiBurst) -> None:
        self._enqueue({"type": "celebration/burst", **burst.to_dict()})

    def error(self, message: str) -> None:
        self._enqueue({"type": "error", "error": message})

    def close(self) -> None:
        self._enqueue(None)

    async def pump(self, websocket) -> None:
        """Send queued frames until close() is called."""
        while True:
            frame = await self.outbox.get()
            if frame is None:
                return
            await websocket.send_json(frame)

    def _enqueue(self, frame: Optional[Dict[str, Any]]) -> None:
        try:
            self.outbox.put_nowait(frame)
        except asyncio.QueueFull:
            logger.warning(f"Presenter outbox full, dropping {frame.get('type') if frame else 'close'} frame")
