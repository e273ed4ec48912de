# Schemas package (re-export feature modules for stable imports)
from .achievements.achievement import (
    AchievementCreate,
    AchievementResponse,
    NotificationResponse,
    RecordedAchievementResponse,
    ShowNotificationMessage,
    HideNotificationMessage,
)

__all__ = [
    "AchievementCreate",
    "AchievementResponse",
    "NotificationResponse",
    "RecordedAchievementResponse",
    "ShowNotificationMessage",
    "HideNotificationMessage",
]
