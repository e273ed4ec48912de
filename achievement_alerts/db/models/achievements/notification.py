# achievement_alerts/db/models/achievements/notification.py
from sqlmodel import SQLModel, Field
from datetime import datetime
import uuid


class TeamAchievementNotification(SQLModel, table=True):
    __tablename__ = "team_achievement_notifications"
    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    team_id: str = Field(index=True, max_length=36)
    user_id: str = Field(index=True, max_length=36)
    achievement_id: str = Field(foreign_key="team_achievements.id")
    is_read: bool = Field(default=False, index=True)
    created_at: datetime = Field(default_factory=datetime.utcnow, index=True)
