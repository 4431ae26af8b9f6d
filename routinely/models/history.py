"""Routine completion history models"""
from pydantic import ConfigDict, Field
from pydantic.alias_generators import to_camel

from routinely.models.routine import CamelModel


class HistoryEntry(CamelModel):
    """One fully-completed routine (immutable once recorded)"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    routine_id: str
    routine_title: str
    completed_at: int
    tasks_completed: int = Field(ge=0)
    total_tasks: int = Field(ge=0)
    xp_earned: int = Field(ge=0)


class DayStats(CamelModel):
    """Completions on a single local calendar day"""
    date: str
    routines_completed: int = 0
    xp_earned: int = 0


class WeeklyStats(CamelModel):
    """Sunday-to-Saturday aggregate for the current week"""
    routines_completed: int = 0
    total_xp: int = 0
    days: list[DayStats] = Field(default_factory=list)


class MonthlyStats(CamelModel):
    """Aggregate for the current calendar month"""
    routines_completed: int = 0
    total_xp: int = 0
    average_per_day: float = 0.0
