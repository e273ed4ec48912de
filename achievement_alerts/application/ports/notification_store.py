from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol
from datetime import datetime


@dataclass(frozen=True)
class AchievementDto:
    id: str
    team_id: str
    achievement_type: str
    title: str
    description: str
    achieved_at: datetime
    metadata: Dict[str, Any] = field(default_factory=dict)
    celebrated: bool = False


@dataclass(frozen=True)
class NotificationDto:
    id: str
    team_id: str
    user_id: str
    achievement_id: str
    is_read: bool
    created_at: datetime
    achievement: AchievementDto


class NotificationStore(Protocol):
    """Backend collaborator: unread query plus the mark-read RPC.

    Implementations raise NotificationStoreError on backend failure.
    """

    def load_unread(self, user_id: str) -> List[NotificationDto]:
        ...

    def mark_read(self, notification_id: str) -> None:
        ...

    def record_achievement(self, team_id: str, achievement_type: str, title: str, description: str,
                           metadata: Optional[Dict[str, Any]], member_ids: List[str],
                           achieved_at: Optional[datetime] = None) -> "RecordedAchievement":
        ...


@dataclass(frozen=True)
class RecordedAchievement:
    achievement: AchievementDto
    notifications: List[NotificationDto]
