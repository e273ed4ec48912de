from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Protocol
from datetime import datetime, timezone


INSERT = "INSERT"


def change_topic(table: str, user_id: str, event_type: str = INSERT) -> str:
    """Topic carrying `event_type` changes on `table` rows owned by `user_id`."""
    return f"{table}:{event_type}:user_id=eq.{user_id}"


@dataclass(frozen=True)
class ChangeEvent:
    """Opaque change notice. Subscribers treat it as "something changed" only."""
    table: str
    event_type: str
    record: Dict[str, Any] = field(default_factory=dict)
    commit_timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "table": self.table,
            "event_type": self.event_type,
            "record": self.record,
            "commit_timestamp": self.commit_timestamp.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ChangeEvent":
        ts = data.get("commit_timestamp")
        try:
            commit_timestamp = datetime.fromisoformat(ts) if ts else datetime.now(timezone.utc)
        except (TypeError, ValueError):
            commit_timestamp = datetime.now(timezone.utc)
        record = data.get("record")
        return cls(
            table=str(data.get("table", "")),
            event_type=str(data.get("event_type", "")),
            record=record if isinstance(record, dict) else {},
            commit_timestamp=commit_timestamp,
        )


ChangeCallback = Callable[[ChangeEvent], None]


class FeedSubscription(Protocol):
    def close(self) -> None:
        ...


class ChangeFeed(Protocol):
    """Live change transport.

    `subscribe` raises ChangeFeedError when the feed cannot be opened.
    Callbacks run on the event loop and must not block.
    """

    name: str

    async def subscribe(self, topic: str, callback: ChangeCallback) -> FeedSubscription:
        ...

    async def publish(self, topic: str, event: ChangeEvent) -> None:
        ...

    async def aclose(self) -> None:
        ...
