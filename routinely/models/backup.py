"""Backup payload model"""
from typing import Optional

from pydantic import Field

from routinely.models.achievement import Achievement
from routinely.models.history import HistoryEntry
from routinely.models.routine import CamelModel, Routine

BACKUP_VERSION = "1.0.0"


class BackupData(CamelModel):
    """Snapshot of everything a restore writes back"""
    routines: list[Routine] = Field(default_factory=list)
    active_routine_id: Optional[str] = None
    user_xp: Optional[int] = Field(default=None, ge=0)
    current_streak: Optional[int] = Field(default=None, ge=0)
    best_streak: Optional[int] = Field(default=None, ge=0)
    last_completion_date: Optional[str] = None
    achievements: list[Achievement] = Field(default_factory=list)
    routine_history: list[HistoryEntry] = Field(default_factory=list)
    pet_type: Optional[str] = None
    pet_name: Optional[str] = None
    user_name: Optional[str] = None
    timestamp: int
    version: str = BACKUP_VERSION
