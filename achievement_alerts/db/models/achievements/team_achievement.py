# achievement_alerts/db/models/achievements/team_achievement.py
from typing import Optional
from sqlmodel import SQLModel, Field
from sqlalchemy import Column, Text
from datetime import datetime
import uuid


class TeamAchievement(SQLModel, table=True):
    __tablename__ = "team_achievements"
    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    team_id: str = Field(index=True, max_length=36)
    achievement_type: str = Field(max_length=50)
    title: str = Field(max_length=200)
    description: str = Field(default="")
    achieved_at: datetime = Field(default_factory=datetime.utcnow)
    # JSON text; "metadata" is reserved on declarative classes, so the attribute name differs from the column
    metadata_json: Optional[str] = Field(default=None, sa_column=Column("metadata", Text, nullable=True))
    celebrated: bool = Field(default=False)
