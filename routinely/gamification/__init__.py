"""
Gamification system for routinely

Progression subsystems fed by routine completion:
- XP and leveling (ProgressLedger)
- Daily streak tracking (StreakTracker)
- Achievement unlocking (AchievementEngine)
- Completion history and statistics (HistoryLog)
"""

from routinely.gamification.xp_system import ProgressLedger, calculate_level_from_xp, get_level, get_progress
from routinely.gamification.streak_system import StreakTracker
from routinely.gamification.achievement_system import AchievementEngine, ACHIEVEMENT_CATALOG, FIRST_ROUTINE
from routinely.gamification.history_log import HistoryLog

__all__ = [
    "ProgressLedger",
    "calculate_level_from_xp",
    "get_level",
    "get_progress",
    "StreakTracker",
    "AchievementEngine",
    "ACHIEVEMENT_CATALOG",
    "FIRST_ROUTINE",
    "HistoryLog",
]
