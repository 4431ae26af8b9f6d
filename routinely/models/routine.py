"""Routine and task models"""
import logging
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator
from pydantic.alias_generators import to_camel

logger = logging.getLogger(__name__)


class CamelModel(BaseModel):
    """Base model persisted with camelCase keys"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_storage(self) -> dict[str, Any]:
        """Plain dict in the persisted (camelCase) shape"""
        return self.model_dump(by_alias=True, mode="json")


class RecurringType(str, Enum):
    """How often a recurring routine resets"""
    DAILY = "daily"
    WEEKLY = "weekly"


class Task(CamelModel):
    """A single point-valued checklist item"""
    id: str
    title: str
    points: int = Field(default=10, ge=0)
    done: bool = False


class Routine(CamelModel):
    """
    Ordered checklist of tasks

    `completed` is a cached derivation of the task list and must only be
    changed through recompute_completed() (every mutator below calls it,
    and so does validation, so loaded data is re-derived too).
    """
    id: str
    title: str
    tasks: list[Task] = Field(default_factory=list)
    completed: bool = False
    created_at: Optional[int] = None
    is_recurring: bool = False
    recurring_type: Optional[RecurringType] = None
    last_completed_date: Optional[int] = None

    @field_validator("tasks")
    @classmethod
    def unique_task_ids(cls, v: list[Task]) -> list[Task]:
        """Task ids must be unique within a routine"""
        seen = set()
        for task in v:
            if task.id in seen:
                raise ValueError(f"Duplicate task id: '{task.id}'")
            seen.add(task.id)
        return v

    @model_validator(mode="after")
    def derive_completed(self) -> "Routine":
        """Stored or restored `completed` values are never trusted"""
        self.recompute_completed()
        return self

    def find_task(self, task_id: str) -> Optional[Task]:
        for task in self.tasks:
            if task.id == task_id:
                return task
        return None

    def recompute_completed(self) -> bool:
        """Re-derive `completed` from the task list and return it"""
        self.completed = all(task.done for task in self.tasks)
        return self.completed

    def set_task_done(self, task_id: str, done: bool) -> Optional[Task]:
        """Set a task's done flag; returns the task, or None if it doesn't exist"""
        task = self.find_task(task_id)
        if task is None:
            return None
        task.done = done
        self.recompute_completed()
        return task

    def toggle_task(self, task_id: str) -> Optional[Task]:
        """Flip a task's done flag; returns the task, or None if it doesn't exist"""
        task = self.find_task(task_id)
        if task is None:
            return None
        return self.set_task_done(task_id, not task.done)

    def reset_tasks(self) -> None:
        """Mark every task as not done"""
        for task in self.tasks:
            task.done = False
        self.recompute_completed()

    def done_count(self) -> int:
        return sum(1 for task in self.tasks if task.done)

    def earned_points(self) -> int:
        """Points of the tasks currently marked done"""
        return sum(task.points for task in self.tasks if task.done)

    def progress_percent(self) -> int:
        """Rounded percentage of tasks done (0 for an empty routine)"""
        if not self.tasks:
            return 0
        return round(self.done_count() / len(self.tasks) * 100)

    def sort_key(self) -> int:
        """createdAt, falling back to the id parsed as a timestamp, then 0"""
        if self.created_at:
            return self.created_at
        try:
            return int(self.id)
        except ValueError:
            return 0


def sort_routines(routines: list[Routine]) -> list[Routine]:
    """Canonical collection order: oldest first (stable for ties)"""
    return sorted(routines, key=lambda r: r.sort_key())


def parse_routines(raw: Any) -> list[Routine]:
    """
    Build routines from decoded JSON

    Anything that isn't a list yields an empty collection; individual entries
    that fail validation are dropped.
    """
    if not isinstance(raw, list):
        if raw is not None:
            logger.warning(f"Stored routines are not a list ({type(raw).__name__}), ignoring")
        return []

    routines = []
    for item in raw:
        try:
            routines.append(Routine.model_validate(item))
        except ValidationError as e:
            logger.warning(f"Dropping malformed routine entry: {e.error_count()} validation error(s)")
    return routines


class Direction(str, Enum):
    """Navigation direction through the sorted collection"""
    NEXT = "next"
    PREVIOUS = "previous"


class NavigationOutcome(str, Enum):
    """Result of moving the active pointer"""
    MOVED = "moved"
    STAYED = "stayed"
    NO_MORE_ROUTINES = "no_more_routines"


class NavigationResult(BaseModel):
    """What move_to_adjacent() did"""
    outcome: NavigationOutcome
    routine: Optional[Routine] = None


class ActiveRoutineView(BaseModel):
    """Resolved active routine plus the sorted collection it came from"""
    active: Optional[Routine] = None
    routines: list[Routine] = Field(default_factory=list)
