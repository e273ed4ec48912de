from enum import Enum


class AchievementType(str, Enum):
    STREAK = "team_streak"
    PERSONAL_BEST = "team_personal_best"
    ACWR_SAFE = "team_acwr_safe"
    GOALS_COMPLETE = "team_goals_complete"
    OTHER = "other"

    @classmethod
    def parse(cls, value: str) -> "AchievementType":
        """Map a stored type string onto a known variant; anything unrecognized is OTHER."""
        try:
            return cls(value)
        except ValueError:
            return cls.OTHER


class AchievementIcon(str, Enum):
    USERS = "users"
    AWARD = "award"
    TRENDING_UP = "trending_up"
    TROPHY = "trophy"


_ICONS = {
    AchievementType.STREAK: AchievementIcon.USERS,
    AchievementType.PERSONAL_BEST: AchievementIcon.AWARD,
    AchievementType.ACWR_SAFE: AchievementIcon.TRENDING_UP,
    AchievementType.GOALS_COMPLETE: AchievementIcon.TROPHY,
}

DEFAULT_ICON = AchievementIcon.TROPHY


def icon_for(achievement_type: str) -> AchievementIcon:
    return _ICONS.get(AchievementType.parse(achievement_type), DEFAULT_ICON)
