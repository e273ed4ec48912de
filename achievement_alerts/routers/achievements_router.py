import asyncio
import json
import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, Request, WebSocket, WebSocketDisconnect

from ..application.ports.change_feed import ChangeEvent, INSERT, change_topic
from ..application.services.celebration import Celebration
from ..application.services.live_subscriber import NOTIFICATIONS_TABLE
from ..application.services.notification_session import AchievementNotificationSession
from ..application.services.store_client import NotificationStoreClient
from ..config import settings
from ..database import engine
from ..exceptions import ChangeFeedError, NotificationStoreError, create_success_response
from ..infrastructure.persistence.sqlalchemy.repositories.notification_repository_sql import SqlNotificationStore
from ..infrastructure.presentation.websocket_presenter import WebSocketPresenter
from ..schemas import AchievementCreate, NotificationResponse, RecordedAchievementResponse, AchievementResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/achievements", tags=["Achievements"])


def get_notification_store() -> SqlNotificationStore:
    return SqlNotificationStore(engine)


def get_store_client(store: SqlNotificationStore = Depends(get_notification_store)) -> NotificationStoreClient:
    return NotificationStoreClient(store=store)


def get_change_feed(request: Request):
    return request.app.state.change_feed


@router.get("/notifications", response_model=List[NotificationResponse])
async def list_unread_notifications(
    user_id: str = Query(..., min_length=1),
    client: NotificationStoreClient = Depends(get_store_client),
):
    notifications = await client.load_unread(user_id)
    return [NotificationResponse.from_dto(n) for n in notifications]


@router.post("/notifications/{notification_id}/read")
async def mark_notification_read(notification_id: str, client: NotificationStoreClient = Depends(get_store_client)):
    try:
        await client.mark_read(notification_id)
    except NotificationStoreError as e:
        logger.error(f"Error marking notification {notification_id} as read: {e}")
        raise HTTPException(status_code=503, detail="Failed to mark notification as read")
    return create_success_response({"notification_id": notification_id, "is_read": True})


@router.post("", response_model=RecordedAchievementResponse, status_code=201)
async def record_achievement(
    payload: AchievementCreate,
    store: SqlNotificationStore = Depends(get_notification_store),
    feed=Depends(get_change_feed),
):
    try:
        recorded = await asyncio.to_thread(
            store.record_achievement,
            payload.team_id,
            payload.achievement_type,
            payload.title,
            payload.description,
            payload.metadata,
            payload.member_ids,
            payload.achieved_at,
        )
    except NotificationStoreError as e:
        logger.error(f"Error recording achievement for team {payload.team_id}: {e}")
        raise HTTPException(status_code=503, detail="Failed to record achievement")

    for n in recorded.notifications:
        event = ChangeEvent(
            table=NOTIFICATIONS_TABLE,
            event_type=INSERT,
            record={"id": n.id, "user_id": n.user_id, "achievement_id": n.achievement_id},
        )
        try:
            await feed.publish(change_topic(NOTIFICATIONS_TABLE, n.user_id), event)
        except ChangeFeedError as e:
            # rows are committed; subscribers will still see them on their next reload
            logger.warning(f"Could not publish insert for notification {n.id}: {e}")

    logger.info(f"Recorded {payload.achievement_type} achievement for team {payload.team_id} "
                f"({len(recorded.notifications)} notifications)")
    return RecordedAchievementResponse(
        achievement=AchievementResponse.from_dto(recorded.achievement),
        notification_ids=[n.id for n in recorded.notifications],
    )


def build_session(user_id: str, presenter: WebSocketPresenter, feed) -> AchievementNotificationSession:
    def celebration_factory(sink):
        return Celebration(
            sink,
            duration=settings.celebration_duration_seconds,
            interval=settings.celebration_interval_seconds,
        )

    return AchievementNotificationSession(
        user_id=user_id,
        store_client=NotificationStoreClient(store=get_notification_store()),
        feed=feed,
        presenter=presenter,
        settle_delay=settings.settle_delay_seconds,
        celebration_factory=celebration_factory,
    )


async def stop_writer(writer: asyncio.Task, user_id: str) -> None:
    """Cancel the frame writer and collect its outcome."""
    writer.cancel()
    try:
        await writer
    except (asyncio.CancelledError, WebSocketDisconnect):
        pass
    except Exception as e:
        logger.warning(f"Notification writer for user {user_id} ended with an error: {e}")


@router.websocket("/ws")
async def achievement_notifications_ws(websocket: WebSocket, user_id: str = Query(..., min_length=1)):
    """
    Live achievement notifications for one user, one at a time.

    Client frames: {"type": "dismiss", "notification_id": "..."} and {"type": "reload"}.
    """
    await websocket.accept()
    presenter = WebSocketPresenter()
    session = build_session(user_id, presenter, websocket.app.state.change_feed)
    writer = asyncio.create_task(presenter.pump(websocket))
    logger.info(f"Achievement notification socket opened for user {user_id}")

    try:
        await session.start()
        while True:
            raw = await websocket.receive_text()
            try:
                message = json.loads(raw)
            except json.JSONDecodeError:
                presenter.error("invalid JSON")
                continue
            if not isinstance(message, dict):
                presenter.error("expected an object")
                continue

            kind = message.get("type")
            if kind == "dismiss":
                session.dismiss(message.get("notification_id"))
            elif kind == "reload":
                await session.reload()
            else:
                presenter.error(f"unknown message type: {kind}")
    except WebSocketDisconnect:
        logger.info(f"Achievement notification socket closed for user {user_id}")
    finally:
        session.close()
        presenter.close()
        await stop_writer(writer, user_id)
