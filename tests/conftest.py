import os

# the app reads settings at import time; point it at a throwaway database before any test imports it
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["FEED_BACKEND"] = "memory"
os.environ["SETTLE_DELAY_MS"] = "20"
os.environ["CELEBRATION_DURATION_MS"] = "60"
os.environ["CELEBRATION_INTERVAL_MS"] = "20"

import asyncio
import itertools
from datetime import datetime, timedelta
from typing import Dict, List

import pytest

from achievement_alerts.application.ports.notification_store import AchievementDto, NotificationDto
from achievement_alerts.exceptions import NotificationStoreError

BASE_TIME = datetime(2024, 5, 1, 12, 0, 0)
_ids = itertools.count(1)


def make_notification(nid: str = None, created_at: int = 0, user_id: str = "u1",
                      achievement_type: str = "team_streak", is_read: bool = False) -> NotificationDto:
    nid = nid or f"n{next(_ids)}"
    achievement = AchievementDto(
        id=f"a-{nid}",
        team_id="t1",
        achievement_type=achievement_type,
        title=f"Achievement {nid}",
        description="Seven days in a row",
        achieved_at=BASE_TIME,
    )
    return NotificationDto(
        id=nid,
        team_id="t1",
        user_id=user_id,
        achievement_id=achievement.id,
        is_read=is_read,
        created_at=BASE_TIME + timedelta(seconds=created_at),
        achievement=achievement,
    )


class FakeNotificationStore:
    """In-memory backend: rows keyed by id, insertion ordered."""

    def __init__(self, rows: List[NotificationDto] = None):
        self.rows: Dict[str, NotificationDto] = {}
        self.read_ids = set()
        self.mark_read_calls: List[str] = []
        self.load_calls = 0
        self.fail_loads = False
        self.fail_mark_read = False
        for n in rows or []:
            self.add(n)

    def add(self, notification: NotificationDto) -> None:
        self.rows[notification.id] = notification

    def load_unread(self, user_id: str) -> List[NotificationDto]:
        self.load_calls += 1
        if self.fail_loads:
            raise NotificationStoreError("backend unavailable")
        return sorted(
            (n for n in self.rows.values() if n.user_id == user_id and n.id not in self.read_ids),
            key=lambda n: n.created_at,
        )

    def mark_read(self, notification_id: str) -> None:
        self.mark_read_calls.append(notification_id)
        if self.fail_mark_read:
            raise NotificationStoreError("network error")
        self.read_ids.add(notification_id)


class RecordingPresenter:
    def __init__(self):
        self.events = []
        self.bursts = []

    def show(self, notification):
        self.events.append(("show", notification.id))

    def hide(self, notification):
        self.events.append(("hide", notification.id))

    def burst(self, burst):
        self.bursts.append(burst)

    @property
    def shown(self):
        return [nid for kind, nid in self.events if kind == "show"]


class CountingCelebration:
    """Stands in for confetti so tests can count celebrations."""

    def __init__(self, sink):
        self.sink = sink
        self.cancelled = False
        self._task = None

    def start(self):
        self._task = asyncio.get_running_loop().create_future()
        return self._task

    def cancel(self):
        self.cancelled = True
        if self._task is not None:
            self._task.cancel()


@pytest.fixture
def store():
    return FakeNotificationStore()


@pytest.fixture
def presenter():
    return RecordingPresenter()


@pytest.fixture
def celebrations():
    created = []

    def factory(sink):
        c = CountingCelebration(sink)
        created.append(c)
        return c

    factory.created = created
    return factory


async def wait_until(predicate, timeout: float = 1.0, interval: float = 0.005):
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met before timeout")
        await asyncio.sleep(interval)
