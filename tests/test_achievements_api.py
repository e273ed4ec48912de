import asyncio

import pytest
from fastapi import WebSocketDisconnect
from fastapi.testclient import TestClient

from achievement_alerts.main import app
from achievement_alerts.routers.achievements_router import stop_writer


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


def _raise(client, member_ids, title="Team streak", achievement_type="team_streak"):
    resp = client.post("/achievements", json={
        "team_id": "team-1",
        "achievement_type": achievement_type,
        "title": title,
        "description": "Seven days in a row",
        "metadata": {"days": 7},
        "member_ids": member_ids,
    })
    assert resp.status_code == 201, resp.text
    return resp.json()


def _next_frame(ws, frame_type):
    while True:
        frame = ws.receive_json()
        if frame["type"] == frame_type:
            return frame


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "ok"
    assert body["database"] is True
    assert body["feed"] == "memory"


def test_list_and_mark_read(client):
    recorded = _raise(client, ["rest-user"])
    assert recorded["achievement"]["icon"] == "users"
    assert recorded["achievement"]["metadata"] == {"days": 7}

    resp = client.get("/achievements/notifications", params={"user_id": "rest-user"})
    assert resp.status_code == 200
    items = resp.json()
    assert [n["id"] for n in items] == recorded["notification_ids"]
    assert items[0]["achievement"]["title"] == "Team streak"

    nid = recorded["notification_ids"][0]
    body = client.post(f"/achievements/notifications/{nid}/read").json()
    assert body == {"success": True, "data": {"notification_id": nid, "is_read": True}, "error": None}
    assert client.post(f"/achievements/notifications/{nid}/read").json()["success"] is True
    assert client.get("/achievements/notifications", params={"user_id": "rest-user"}).json() == []


def test_record_requires_members(client):
    resp = client.post("/achievements", json={
        "team_id": "team-1",
        "achievement_type": "team_streak",
        "title": "Nobody",
        "member_ids": [],
    })
    assert resp.status_code == 422


def test_websocket_presents_one_at_a_time(client):
    first = _raise(client, ["ws-user"], title="First")
    with client.websocket_connect("/achievements/ws?user_id=ws-user") as ws:
        shown = _next_frame(ws, "achievement/show")
        assert shown["notification"]["id"] == first["notification_ids"][0]
        assert shown["notification"]["achievement"]["icon"] == "users"

        # arrives while the first one is still on screen
        second = _raise(client, ["ws-user"], title="Second", achievement_type="team_goals_complete")

        ws.send_json({"type": "dismiss", "notification_id": "not-the-shown-one"})
        ws.send_json({"type": "reload"})
        ws.send_json({"type": "bogus"})
        assert _next_frame(ws, "error")["error"] == "unknown message type: bogus"

        ws.send_json({"type": "dismiss", "notification_id": first["notification_ids"][0]})
        hidden = _next_frame(ws, "achievement/hide")
        assert hidden["notification_id"] == first["notification_ids"][0]

        shown = _next_frame(ws, "achievement/show")
        assert shown["notification"]["id"] == second["notification_ids"][0]
        assert shown["notification"]["achievement"]["icon"] == "trophy"


@pytest.mark.asyncio
async def test_stop_writer_collects_failed_and_running_writers(caplog):
    async def disconnected():
        raise WebSocketDisconnect(code=1001)

    async def broken():
        raise RuntimeError("send failed")

    async def running():
        await asyncio.sleep(10)

    writers = [asyncio.create_task(w()) for w in (disconnected, broken, running)]
    await asyncio.sleep(0)
    for writer in writers:
        await stop_writer(writer, "gone-user")
        assert writer.done()

    assert "send failed" in caplog.text
