"""
Achievement System

Threshold achievements evaluated against current progression stats:
- Consistency (streak of 7 / 30 days)
- Milestones (1000 / 5000 total XP, level 10)
- Volume (10 / 50 completed routines)
- First routine ever completed (unlocked explicitly by the completion engine)

Unlocks are monotonic: once unlocked an achievement never reverts, and
re-evaluating the same stats never unlocks it twice.

Key owned: achievements
"""

from typing import Dict, List, Optional
import logging

from pydantic import ValidationError

from routinely.models import Achievement, AchievementCriterion, AchievementDefinition
from routinely.storage import KeyValueStore, StoreKeys, read_json, write_json
from routinely.utils.datetime_helpers import Clock, now_local, to_epoch_ms

logger = logging.getLogger(__name__)

FIRST_ROUTINE = "first_routine"

ACHIEVEMENT_CATALOG: List[AchievementDefinition] = [
    AchievementDefinition(
        id=FIRST_ROUTINE,
        title="First Step",
        description="Complete your first routine",
        icon="🎯",
        criterion=AchievementCriterion.FIRST_ROUTINE,
    ),
    AchievementDefinition(
        id="streak_7",
        title="Perfect Week",
        description="Keep a 7-day streak",
        icon="🔥",
        criterion=AchievementCriterion.STREAK,
        threshold=7,
    ),
    AchievementDefinition(
        id="streak_30",
        title="Month of Success",
        description="Keep a 30-day streak",
        icon="⭐",
        criterion=AchievementCriterion.STREAK,
        threshold=30,
    ),
    AchievementDefinition(
        id="xp_1000",
        title="Expert",
        description="Reach 1000 XP",
        icon="💎",
        criterion=AchievementCriterion.TOTAL_XP,
        threshold=1000,
    ),
    AchievementDefinition(
        id="xp_5000",
        title="Master",
        description="Reach 5000 XP",
        icon="👑",
        criterion=AchievementCriterion.TOTAL_XP,
        threshold=5000,
    ),
    AchievementDefinition(
        id="level_10",
        title="High Level",
        description="Reach level 10",
        icon="🚀",
        criterion=AchievementCriterion.LEVEL,
        threshold=10,
    ),
    AchievementDefinition(
        id="routines_10",
        title="Productive",
        description="Complete 10 routines",
        icon="📚",
        criterion=AchievementCriterion.COMPLETED_ROUTINES,
        threshold=10,
    ),
    AchievementDefinition(
        id="routines_50",
        title="Super Productive",
        description="Complete 50 routines",
        icon="🏆",
        criterion=AchievementCriterion.COMPLETED_ROUTINES,
        threshold=50,
    ),
]


def _locked(definition: AchievementDefinition) -> Achievement:
    return Achievement(
        id=definition.id,
        title=definition.title,
        description=definition.description,
        icon=definition.icon,
    )


class AchievementEngine:
    """Evaluates and persists achievement unlocks"""

    def __init__(self, store: KeyValueStore, clock: Optional[Clock] = None):
        self.store = store
        self.clock = clock or now_local

    async def get_achievements(self) -> List[Achievement]:
        """
        All achievements in catalog order with their unlock state

        Stored state wins over the catalog for known ids; missing or malformed
        data yields a fresh, all-locked copy of the catalog.
        """
        raw = await read_json(self.store, StoreKeys.ACHIEVEMENTS, default=[])
        stored: Dict[str, Achievement] = {}
        if isinstance(raw, list):
            for item in raw:
                try:
                    achievement = Achievement.model_validate(item)
                except ValidationError:
                    logger.warning(f"Dropping malformed achievement entry: {item!r}")
                    continue
                stored[achievement.id] = achievement

        return [stored.get(d.id) or _locked(d) for d in ACHIEVEMENT_CATALOG]

    async def save_achievements(self, achievements: List[Achievement]) -> None:
        await write_json(self.store, StoreKeys.ACHIEVEMENTS, [a.to_storage() for a in achievements])

    async def unlock_achievement(self, achievement_id: str) -> Optional[Achievement]:
        """
        Unlock a single achievement

        Returns:
            The newly unlocked achievement, or None if unknown or already unlocked
        """
        achievements = await self.get_achievements()
        achievement = next((a for a in achievements if a.id == achievement_id), None)

        if achievement is None or achievement.unlocked:
            return None

        achievement.unlocked = True
        achievement.unlocked_at = to_epoch_ms(self.clock())
        await self.save_achievements(achievements)

        logger.info(f"Unlocked achievement: {achievement.id} ({achievement.title})")
        return achievement

    async def check_achievements(
        self,
        current_streak: int,
        total_xp: int,
        level: int,
        completed_routines: int
    ) -> List[Achievement]:
        """
        Unlock every threshold achievement the given stats satisfy

        Args:
            current_streak: Current streak in days
            total_xp: Total XP
            level: Current level
            completed_routines: Number of history entries

        Returns:
            Achievements unlocked by this call (already-unlocked ones are skipped)
        """
        values = {
            AchievementCriterion.STREAK: current_streak,
            AchievementCriterion.TOTAL_XP: total_xp,
            AchievementCriterion.LEVEL: level,
            AchievementCriterion.COMPLETED_ROUTINES: completed_routines,
        }

        achievements = await self.get_achievements()
        by_id = {a.id: a for a in achievements}
        unlocked_at = to_epoch_ms(self.clock())
        newly_unlocked = []

        for definition in ACHIEVEMENT_CATALOG:
            if definition.criterion not in values:
                continue
            achievement = by_id[definition.id]
            if achievement.unlocked:
                continue
            if values[definition.criterion] >= definition.threshold:
                achievement.unlocked = True
                achievement.unlocked_at = unlocked_at
                newly_unlocked.append(achievement)
                logger.info(f"Unlocked achievement: {achievement.id} ({achievement.title})")

        if newly_unlocked:
            await self.save_achievements(achievements)

        return newly_unlocked
