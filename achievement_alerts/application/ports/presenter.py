from typing import Protocol, TYPE_CHECKING

from .notification_store import NotificationDto

if TYPE_CHECKING:
    from ..services.celebration import ConfettiBurst


class NotificationPresenter(Protocol):
    """UI side of the sequencer. Calls must return without suspending."""

    def show(self, notification: NotificationDto) -> None:
        ...

    def hide(self, notification: NotificationDto) -> None:
        ...

    def burst(self, burst: "ConfettiBurst") -> None:
        ...
