import json
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from .....db.models import TeamAchievement, TeamAchievementNotification
from .....application.ports.notification_store import (
    AchievementDto,
    NotificationDto,
    NotificationStore,
    RecordedAchievement,
)
from .....exceptions import NotificationStoreError

logger = logging.getLogger(__name__)


class SqlNotificationStore(NotificationStore):
    """Notification store on SQLModel tables. Opens a short-lived session per call."""

    def __init__(self, engine):
        self.engine = engine

    def _achievement_to_dto(self, achievement: TeamAchievement) -> AchievementDto:
        metadata: Dict[str, Any] = {}
        if achievement.metadata_json:
            try:
                loaded = json.loads(achievement.metadata_json)
                metadata = loaded if isinstance(loaded, dict) else {"value": loaded}
            except json.JSONDecodeError:
                metadata = {}
        return AchievementDto(
            id=achievement.id,
            team_id=achievement.team_id,
            achievement_type=achievement.achievement_type,
            title=achievement.title,
            description=achievement.description or "",
            achieved_at=achievement.achieved_at,
            metadata=metadata,
            celebrated=bool(achievement.celebrated),
        )

    def _to_dto(self, notification: TeamAchievementNotification, achievement: TeamAchievement) -> NotificationDto:
        return NotificationDto(
            id=notification.id,
            team_id=notification.team_id,
            user_id=notification.user_id,
            achievement_id=notification.achievement_id,
            is_read=bool(notification.is_read),
            created_at=notification.created_at,
            achievement=self._achievement_to_dto(achievement),
        )

    def load_unread(self, user_id: str) -> List[NotificationDto]:
        try:
            with Session(self.engine) as session:
                rows = session.exec(
                    select(TeamAchievementNotification, TeamAchievement)
                    .join(TeamAchievement, TeamAchievement.id == TeamAchievementNotification.achievement_id)
                    .where(TeamAchievementNotification.user_id == user_id)
                    .where(TeamAchievementNotification.is_read == False)  # noqa: E712
                    .order_by(TeamAchievementNotification.created_at.asc())
                ).all()
                return [self._to_dto(n, a) for n, a in rows]
        except SQLAlchemyError as e:
            raise NotificationStoreError(f"unread query failed for user {user_id}: {e}") from e

    def mark_read(self, notification_id: str) -> None:
        try:
            with Session(self.engine) as session:
                notification = session.get(TeamAchievementNotification, notification_id)
                if not notification:
                    logger.debug(f"mark_read: notification {notification_id} not found")
                    return
                if notification.is_read:
                    return
                notification.is_read = True
                session.add(notification)
                session.commit()
        except SQLAlchemyError as e:
            raise NotificationStoreError(f"mark read failed for {notification_id}: {e}") from e

    def record_achievement(self, team_id: str, achievement_type: str, title: str, description: str,
                           metadata: Optional[Dict[str, Any]], member_ids: List[str],
                           achieved_at: Optional[datetime] = None) -> RecordedAchievement:
        try:
            with Session(self.engine) as session:
                achievement = TeamAchievement(
                    team_id=team_id,
                    achievement_type=achievement_type,
                    title=title,
                    description=description or "",
                    achieved_at=achieved_at or datetime.utcnow(),
                    metadata_json=json.dumps(metadata) if metadata else None,
                )
                session.add(achievement)
                session.flush()

                notifications = []
                # one row per member; duplicates in member_ids collapse
                for user_id in dict.fromkeys(member_ids):
                    n = TeamAchievementNotification(
                        team_id=team_id,
                        user_id=user_id,
                        achievement_id=achievement.id,
                    )
                    session.add(n)
                    notifications.append(n)
                session.commit()

                session.refresh(achievement)
                for n in notifications:
                    session.refresh(n)
                return RecordedAchievement(
                    achievement=self._achievement_to_dto(achievement),
                    notifications=[self._to_dto(n, achievement) for n in notifications],
                )
        except SQLAlchemyError as e:
            raise NotificationStoreError(f"recording achievement for team {team_id} failed: {e}") from e
