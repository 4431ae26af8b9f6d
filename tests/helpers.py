"""Shared builders for routinely tests"""
import json
from datetime import datetime, timedelta
from typing import Iterable, Optional, Tuple
from zoneinfo import ZoneInfo

from routinely.models import Routine, Task, RecurringType
from routinely.storage import InMemoryStore, StoreKeys


TEST_TZ = ZoneInfo("Europe/Madrid")


class FixedClock:
    """Controllable "now" for services (call it like a function)"""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now

    def ms(self) -> int:
        return int(self.now.timestamp() * 1000)


def make_routine(
    routine_id: str,
    tasks: Iterable[Tuple[str, int, bool]] = (("t1", 10, False),),
    created_at: Optional[int] = None,
    title: Optional[str] = None,
    recurring_type: Optional[str] = None,
    last_completed_date: Optional[int] = None,
) -> Routine:
    """Build a routine with a consistent `completed` flag"""
    routine = Routine(
        id=routine_id,
        title=title or f"Routine {routine_id}",
        tasks=[Task(id=task_id, title=f"Task {task_id}", points=points, done=done) for task_id, points, done in tasks],
        created_at=created_at,
        is_recurring=recurring_type is not None,
        recurring_type=RecurringType(recurring_type) if recurring_type else None,
        last_completed_date=last_completed_date,
    )
    routine.recompute_completed()
    return routine


def seed_store(store: InMemoryStore, routines, active_id: Optional[str] = None) -> None:
    """Write routines (and optionally the active pointer) straight into the store"""
    store._data[StoreKeys.ROUTINES] = json.dumps([r.to_storage() for r in routines])
    if active_id is not None:
        store._data[StoreKeys.ACTIVE_ROUTINE_ID] = active_id


def stored_routines(store: InMemoryStore) -> list:
    """Decoded `routines` value as raw dicts"""
    return json.loads(store._data[StoreKeys.ROUTINES])
