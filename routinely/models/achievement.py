"""Achievement models for gamification"""
from enum import Enum
from typing import Optional

from pydantic import Field

from routinely.models.routine import CamelModel


class AchievementCriterion(str, Enum):
    """Stat an achievement threshold is measured against"""
    FIRST_ROUTINE = "first_routine"
    STREAK = "streak"
    TOTAL_XP = "total_xp"
    LEVEL = "level"
    COMPLETED_ROUTINES = "completed_routines"


class AchievementDefinition(CamelModel):
    """Catalog entry: what an achievement is and when it unlocks"""
    id: str
    title: str
    description: str
    icon: str
    criterion: AchievementCriterion
    threshold: int = 0


class Achievement(CamelModel):
    """User's achievement state (persisted under 'achievements')"""
    id: str
    title: str
    description: str
    icon: str
    unlocked: bool = False
    unlocked_at: Optional[int] = Field(default=None, description="epoch ms")
