import asyncio

import pytest

from achievement_alerts.application.ports.change_feed import ChangeEvent, change_topic
from achievement_alerts.application.services.live_subscriber import LiveChangeSubscriber, NOTIFICATIONS_TABLE
from achievement_alerts.exceptions import ChangeFeedError
from achievement_alerts.infrastructure.realtime.memory_change_feed import InMemoryChangeFeed


def _event(user_id="u1"):
    return ChangeEvent(table=NOTIFICATIONS_TABLE, event_type="INSERT", record={"user_id": user_id})


@pytest.mark.asyncio
async def test_insert_for_user_triggers_callback_regardless_of_payload():
    feed = InMemoryChangeFeed()
    calls = []
    handle = await LiveChangeSubscriber(feed).subscribe("u1", lambda: calls.append(1))

    assert handle.topic == "team_achievement_notifications:INSERT:user_id=eq.u1"
    assert handle.connected
    await feed.publish(handle.topic, ChangeEvent(table="garbage", event_type="?", record={}))
    await feed.publish(change_topic(NOTIFICATIONS_TABLE, "u2"), _event("u2"))
    await asyncio.sleep(0)
    await asyncio.sleep(0)
    assert calls == [1]
    handle.unsubscribe()


@pytest.mark.asyncio
async def test_unsubscribe_is_idempotent_and_detaches():
    feed = InMemoryChangeFeed()
    calls = []
    handle = await LiveChangeSubscriber(feed).subscribe("u1", lambda: calls.append(1))

    handle.unsubscribe()
    handle.unsubscribe()
    assert not handle.active
    assert feed.subscriber_count(handle.topic) == 0

    await feed.publish(handle.topic, _event())
    await asyncio.sleep(0)
    assert calls == []


@pytest.mark.asyncio
async def test_event_queued_before_unsubscribe_is_not_delivered():
    feed = InMemoryChangeFeed()
    calls = []
    handle = await LiveChangeSubscriber(feed).subscribe("u1", lambda: calls.append(1))

    await feed.publish(handle.topic, _event())
    handle.unsubscribe()
    await asyncio.sleep(0)
    await asyncio.sleep(0)
    assert calls == []


@pytest.mark.asyncio
async def test_subscription_failure_returns_disconnected_handle():
    class FailingFeed(InMemoryChangeFeed):
        async def subscribe(self, topic, callback):
            raise ChangeFeedError("no route to host")

    handle = await LiveChangeSubscriber(FailingFeed()).subscribe("u1", lambda: None)
    assert handle.active
    assert not handle.connected
    handle.unsubscribe()
    assert not handle.active
