# achievement_alerts/schemas/achievements/achievement.py
from pydantic import BaseModel, Field
from typing import List, Optional, Dict, Any
from datetime import datetime

from ...application.ports.notification_store import AchievementDto, NotificationDto
from ...application.services.achievement_types import icon_for

HEADLINE = "Team achievement!"
SUBTITLE = "Achieved together as a team!"
DISMISS_LABEL = "Congratulations!"


class AchievementCreate(BaseModel):
    team_id: str = Field(min_length=1, max_length=36)
    achievement_type: str = Field(min_length=1, max_length=50)
    title: str = Field(min_length=1, max_length=200)
    description: str = ""
    metadata: Optional[Dict[str, Any]] = None
    member_ids: List[str] = Field(min_length=1)
    achieved_at: Optional[datetime] = None


class AchievementResponse(BaseModel):
    id: str
    team_id: str
    achievement_type: str
    title: str
    description: str
    achieved_at: datetime
    achieved_on: str
    metadata: Dict[str, Any] = {}
    celebrated: bool = False
    icon: str

    @classmethod
    def from_dto(cls, achievement: AchievementDto) -> "AchievementResponse":
        return cls(
            id=achievement.id,
            team_id=achievement.team_id,
            achievement_type=achievement.achievement_type,
            title=achievement.title,
            description=achievement.description,
            achieved_at=achievement.achieved_at,
            achieved_on=achievement.achieved_at.date().isoformat(),
            metadata=dict(achievement.metadata),
            celebrated=achievement.celebrated,
            icon=icon_for(achievement.achievement_type).value,
        )


class NotificationResponse(BaseModel):
    id: str
    team_id: str
    user_id: str
    achievement_id: str
    is_read: bool
    created_at: datetime
    achievement: AchievementResponse

    @classmethod
    def from_dto(cls, notification: NotificationDto) -> "NotificationResponse":
        return cls(
            id=notification.id,
            team_id=notification.team_id,
            user_id=notification.user_id,
            achievement_id=notification.achievement_id,
            is_read=notification.is_read,
            created_at=notification.created_at,
            achievement=AchievementResponse.from_dto(notification.achievement),
        )


class RecordedAchievementResponse(BaseModel):
    achievement: AchievementResponse
    notification_ids: List[str]


class ShowNotificationMessage(BaseModel):
    type: str = "achievement/show"
    headline: str = HEADLINE
    subtitle: str = SUBTITLE
    dismiss_label: str = DISMISS_LABEL
    notification: NotificationResponse


class HideNotificationMessage(BaseModel):
    type: str = "achievement/hide"
    notification_id: str
