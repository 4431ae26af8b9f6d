"""Data models for routines, progression and backups"""

from routinely.models.routine import (
    RecurringType,
    Task,
    Routine,
    Direction,
    NavigationOutcome,
    NavigationResult,
    ActiveRoutineView,
    sort_routines,
    parse_routines,
)
from routinely.models.achievement import Achievement, AchievementDefinition, AchievementCriterion
from routinely.models.history import HistoryEntry, DayStats, WeeklyStats, MonthlyStats
from routinely.models.progress import LevelInfo, StreakState, ToggleResult
from routinely.models.backup import BackupData, BACKUP_VERSION

__all__ = [
    "RecurringType",
    "Task",
    "Routine",
    "Direction",
    "NavigationOutcome",
    "NavigationResult",
    "ActiveRoutineView",
    "sort_routines",
    "parse_routines",
    "Achievement",
    "AchievementDefinition",
    "AchievementCriterion",
    "HistoryEntry",
    "DayStats",
    "WeeklyStats",
    "MonthlyStats",
    "LevelInfo",
    "StreakState",
    "ToggleResult",
    "BackupData",
    "BACKUP_VERSION",
]
