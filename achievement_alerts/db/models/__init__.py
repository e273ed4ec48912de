# Models package (re-export table modules for stable imports)
from .achievements.team_achievement import TeamAchievement
from .achievements.notification import TeamAchievementNotification

__all__ = [
    "TeamAchievement",
    "TeamAchievementNotification",
]
