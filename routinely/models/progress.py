"""Progression state models (XP, streaks, toggle outcomes)"""
from datetime import date
from typing import Optional

from pydantic import BaseModel, Field

from routinely.models.achievement import Achievement
from routinely.models.history import HistoryEntry
from routinely.models.routine import Routine


class LevelInfo(BaseModel):
    """Level derived from total XP"""
    total_xp: int
    level: int
    xp_in_current_level: int
    xp_to_next_level: int


class StreakState(BaseModel):
    """Consecutive full-completion days"""
    current: int = Field(default=0, ge=0)
    best: int = Field(default=0, ge=0)
    last_completion_date: Optional[date] = None


class ToggleResult(BaseModel):
    """
    Everything a single task toggle changed

    `changed` is False when the routine or task id was unknown (no-op).
    """
    changed: bool = False
    routine: Optional[Routine] = None
    routines: list[Routine] = Field(default_factory=list)
    task_done: Optional[bool] = None
    xp_awarded: int = 0
    total_xp: Optional[int] = None
    leveled_up: bool = False
    routine_completed: bool = False
    all_routines_completed: bool = False
    streak: Optional[StreakState] = None
    history_entry: Optional[HistoryEntry] = None
    achievements_unlocked: list[Achievement] = Field(default_factory=list)
    recurrence_reset: bool = False
