"""
RoutineStore - Routine Collection Ownership

Owns the `routines` and `activeRoutineId` keys:
- Loading/saving the collection in canonical createdAt order
- Resolving which routine is active (with graceful fallback)
- Navigating between incomplete routines
- Authoring: create, duplicate, rename, task add/remove/reorder, recurrence
"""

import asyncio
import logging
from typing import List, Optional, Sequence, Tuple, Union

from routinely.exceptions import ValidationError
from routinely.models import (
    ActiveRoutineView,
    Direction,
    NavigationOutcome,
    NavigationResult,
    RecurringType,
    Routine,
    Task,
    parse_routines,
    sort_routines,
)
from routinely.storage import KeyValueStore, StoreKeys, read_json, write_json
from routinely.utils.datetime_helpers import Clock, now_local, to_epoch_ms

logger = logging.getLogger(__name__)

DEFAULT_ROUTINE_ID = "default"
DEFAULT_TASKS: List[Tuple[str, str]] = [
    ("wake", "Get out of bed"),
    ("wash", "Wash your face"),
    ("breakfast", "Have breakfast"),
    ("dress", "Get dressed"),
    ("work", "Work"),
]

TaskSpec = Tuple[str, int]


class RoutineStore:
    """
    Service owning the routine collection and the active-routine pointer.

    `lock` serializes every read-modify-write of the collection. Public
    mutators take it themselves; load_routines()/save_routines() do not, so a
    caller that already holds the lock (the completion engine) can use them.
    """

    def __init__(self, store: KeyValueStore, clock: Optional[Clock] = None):
        self.store = store
        self.clock = clock or now_local
        self.lock = asyncio.Lock()
        logger.debug("RoutineStore initialized")

    # ------------------------------------------------------------------
    # Raw collection access (caller holds `lock` for read-modify-write)
    # ------------------------------------------------------------------

    async def load_routines(self) -> List[Routine]:
        """All routines sorted by createdAt (malformed data = empty)"""
        raw = await read_json(self.store, StoreKeys.ROUTINES, default=None)
        return sort_routines(parse_routines(raw))

    async def save_routines(self, routines: List[Routine]) -> List[Routine]:
        """Persist the collection in canonical order and return it"""
        ordered = sort_routines(routines)
        await write_json(self.store, StoreKeys.ROUTINES, [r.to_storage() for r in ordered])
        logger.debug(f"Saved {len(ordered)} routines")
        return ordered

    async def get_routine(self, routine_id: str) -> Optional[Routine]:
        routines = await self.load_routines()
        return next((r for r in routines if r.id == routine_id), None)

    async def get_active_routine_id(self) -> Optional[str]:
        return await self.store.get(StoreKeys.ACTIVE_ROUTINE_ID)

    async def _set_active_routine_id(self, routine_id: Optional[str]) -> None:
        if routine_id is None:
            await self.store.remove(StoreKeys.ACTIVE_ROUTINE_ID)
            logger.debug("Cleared active routine")
        else:
            await self.store.set(StoreKeys.ACTIVE_ROUTINE_ID, routine_id)
            logger.debug(f"Active routine set to {routine_id}")

    # ------------------------------------------------------------------
    # Active routine resolution and navigation
    # ------------------------------------------------------------------

    @staticmethod
    def _fallback(routines: List[Routine]) -> Optional[Routine]:
        """First incomplete routine, else first overall, else None"""
        first_incomplete = next((r for r in routines if not r.completed), None)
        if first_incomplete is not None:
            return first_incomplete
        return routines[0] if routines else None

    async def _resolve_active(self) -> ActiveRoutineView:
        routines = await self.load_routines()
        stored_id = await self.get_active_routine_id()

        if not routines:
            if stored_id is not None:
                await self._set_active_routine_id(None)
            return ActiveRoutineView(active=None, routines=[])

        active = None
        if stored_id is not None:
            active = next((r for r in routines if r.id == stored_id), None)
        if active is None or active.completed:
            active = self._fallback(routines)

        if active.id != stored_id:
            logger.info(f"Active routine re-resolved: {stored_id} → {active.id}")
            await self._set_active_routine_id(active.id)

        return ActiveRoutineView(active=active, routines=routines)

    async def load_active_routine(self) -> ActiveRoutineView:
        """
        Resolve the routine to present

        Resolution order:
        1. The stored active routine, if it exists and is not completed
        2. The first incomplete routine in createdAt order
        3. The first routine overall (even if completed)
        4. None (empty collection; the stored pointer is cleared)

        A resolved id that differs from the stored pointer is persisted.
        """
        async with self.lock:
            return await self._resolve_active()

    async def set_active(self, routine_id: str) -> bool:
        """
        Point the active routine at routine_id

        Returns:
            False (no-op) if the routine doesn't exist
        """
        async with self.lock:
            routine = await self.get_routine(routine_id)
            if routine is None:
                logger.debug(f"set_active ignored: unknown routine {routine_id}")
                return False
            await self._set_active_routine_id(routine_id)
            return True

    async def move_to_adjacent(self, direction: Union[Direction, str]) -> NavigationResult:
        """
        Move to the nearest incomplete routine before/after the active one

        Returns:
            MOVED with the new routine; NO_MORE_ROUTINES when nothing is
            left going forward; STAYED when nothing is left going backward
            or there is no active routine
        """
        direction = Direction(direction)
        async with self.lock:
            view = await self._resolve_active()
            if view.active is None:
                return NavigationResult(outcome=NavigationOutcome.STAYED)

            routines = view.routines
            index = next(i for i, r in enumerate(routines) if r.id == view.active.id)

            if direction == Direction.NEXT:
                candidates = routines[index + 1:]
            else:
                candidates = list(reversed(routines[:index]))

            target = next((r for r in candidates if not r.completed), None)
            if target is None:
                if direction == Direction.NEXT:
                    logger.debug("No incomplete routine ahead")
                    return NavigationResult(outcome=NavigationOutcome.NO_MORE_ROUTINES, routine=view.active)
                return NavigationResult(outcome=NavigationOutcome.STAYED, routine=view.active)

            await self._set_active_routine_id(target.id)
            logger.info(f"Moved {direction.value} to routine {target.id} ('{target.title}')")
            return NavigationResult(outcome=NavigationOutcome.MOVED, routine=target)

    async def _active_index(self) -> Tuple[Optional[int], int]:
        view = await self.load_active_routine()
        if view.active is None:
            return None, len(view.routines)
        index = next(i for i, r in enumerate(view.routines) if r.id == view.active.id)
        return index, len(view.routines)

    async def has_previous(self) -> bool:
        """Whether any routine sorts before the active one"""
        index, _ = await self._active_index()
        return index is not None and index > 0

    async def has_next(self) -> bool:
        """Whether any routine sorts after the active one"""
        index, total = await self._active_index()
        return index is not None and index < total - 1

    async def delete_routine(self, routine_id: str) -> bool:
        """
        Delete a routine, repointing the active routine if it was the one deleted

        Returns:
            False (no-op) if the routine doesn't exist
        """
        async with self.lock:
            routines = await self.load_routines()
            remaining = [r for r in routines if r.id != routine_id]
            if len(remaining) == len(routines):
                logger.debug(f"delete ignored: unknown routine {routine_id}")
                return False

            await self.save_routines(remaining)
            logger.info(f"Deleted routine {routine_id}")

            if await self.get_active_routine_id() == routine_id:
                replacement = self._fallback(remaining)
                await self._set_active_routine_id(replacement.id if replacement else None)
            return True

    # ------------------------------------------------------------------
    # Authoring
    # ------------------------------------------------------------------

    async def initialize_default_data(self) -> bool:
        """
        Seed the default routine on first launch

        Returns:
            True if data was seeded (no `routines` key existed)
        """
        async with self.lock:
            if await self.store.get(StoreKeys.ROUTINES) is not None:
                return False

            routine = Routine(
                id=DEFAULT_ROUTINE_ID,
                title="Morning routine",
                tasks=[Task(id=task_id, title=title, points=10) for task_id, title in DEFAULT_TASKS],
                created_at=to_epoch_ms(self.clock()),
            )
            await self.save_routines([routine])
            await self._set_active_routine_id(routine.id)
            logger.info("Seeded default routine")
            return True

    def _new_id(self, taken: Sequence[str]) -> str:
        candidate = to_epoch_ms(self.clock())
        while str(candidate) in taken:
            candidate += 1
        return str(candidate)

    @staticmethod
    def _validate_title(title: str, field: str = "title") -> str:
        title = (title or "").strip()
        if not title:
            raise ValidationError("must not be empty", field=field, value=title, operation="routine_authoring")
        return title

    @staticmethod
    def _validate_points(points: int) -> int:
        if points < 0:
            raise ValidationError("must be zero or more", field="points", value=points, operation="routine_authoring")
        return points

    @staticmethod
    def _parse_recurring_type(recurring_type: Union[RecurringType, str, None]) -> Optional[RecurringType]:
        if recurring_type is None:
            return None
        try:
            return RecurringType(recurring_type)
        except ValueError:
            raise ValidationError(
                "must be 'daily' or 'weekly'",
                field="recurring_type",
                value=recurring_type,
                operation="routine_authoring",
            )

    async def create_routine(
        self,
        title: str,
        tasks: Sequence[TaskSpec] = (),
        recurring_type: Union[RecurringType, str, None] = None
    ) -> Routine:
        """
        Create a routine from (title, points) task specs

        The routine id is the creation time in epoch ms (bumped if taken).
        A recurring_type makes the routine recurring.
        """
        title = self._validate_title(title)
        parsed_type = self._parse_recurring_type(recurring_type)
        task_specs = [(self._validate_title(t, "task title"), self._validate_points(p)) for t, p in tasks]

        async with self.lock:
            routines = await self.load_routines()
            routine_id = self._new_id([r.id for r in routines])
            routine = Routine(
                id=routine_id,
                title=title,
                tasks=[
                    Task(id=f"{routine_id}-{index}", title=task_title, points=points)
                    for index, (task_title, points) in enumerate(task_specs)
                ],
                created_at=int(routine_id),
                is_recurring=parsed_type is not None,
                recurring_type=parsed_type,
            )
            routine.recompute_completed()
            await self.save_routines(routines + [routine])

        logger.info(f"Created routine {routine.id} ('{routine.title}') with {len(routine.tasks)} tasks")
        return routine

    async def duplicate_routine(self, routine_id: str) -> Optional[Routine]:
        """Copy a routine with fresh ids and every task undone"""
        async with self.lock:
            routines = await self.load_routines()
            source = next((r for r in routines if r.id == routine_id), None)
            if source is None:
                return None

            new_id = self._new_id([r.id for r in routines])
            copy = source.model_copy(deep=True)
            copy.id = new_id
            copy.title = f"{source.title} (copy)"
            copy.created_at = int(new_id)
            copy.last_completed_date = None
            copy.reset_tasks()
            await self.save_routines(routines + [copy])

        logger.info(f"Duplicated routine {routine_id} as {copy.id}")
        return copy

    async def _edit(self, routine_id: str, edit) -> Optional[Routine]:
        """Apply edit(routine) to an incomplete routine and persist it"""
        async with self.lock:
            routines = await self.load_routines()
            routine = next((r for r in routines if r.id == routine_id), None)
            if routine is None:
                logger.debug(f"edit ignored: unknown routine {routine_id}")
                return None
            if routine.completed:
                logger.info(f"edit ignored: routine {routine_id} is completed")
                return None

            if edit(routine) is False:
                return None
            routine.recompute_completed()
            await self.save_routines(routines)
            return routine

    async def rename_routine(self, routine_id: str, title: str) -> Optional[Routine]:
        title = self._validate_title(title)

        def apply(routine: Routine):
            routine.title = title

        return await self._edit(routine_id, apply)

    async def add_task(self, routine_id: str, title: str, points: int = 10) -> Optional[Routine]:
        """Append a task to the end of the routine"""
        title = self._validate_title(title, "task title")
        points = self._validate_points(points)

        def apply(routine: Routine):
            task_id = self._new_id([t.id for t in routine.tasks])
            routine.tasks.append(Task(id=task_id, title=title, points=points))

        return await self._edit(routine_id, apply)

    async def remove_task(self, routine_id: str, task_id: str) -> Optional[Routine]:
        def apply(routine: Routine):
            if routine.find_task(task_id) is None:
                return False
            routine.tasks = [t for t in routine.tasks if t.id != task_id]

        return await self._edit(routine_id, apply)

    async def reorder_task(self, routine_id: str, task_id: str, new_index: int) -> Optional[Routine]:
        """Move a task to new_index (clamped to the list bounds)"""
        def apply(routine: Routine):
            task = routine.find_task(task_id)
            if task is None:
                return False
            others = [t for t in routine.tasks if t.id != task_id]
            position = min(max(new_index, 0), len(others))
            others.insert(position, task)
            routine.tasks = others

        return await self._edit(routine_id, apply)

    async def set_recurrence(
        self,
        routine_id: str,
        recurring_type: Union[RecurringType, str, None]
    ) -> Optional[Routine]:
        """Make a routine recurring (daily/weekly) or one-off (None)"""
        parsed_type = self._parse_recurring_type(recurring_type)

        def apply(routine: Routine):
            routine.recurring_type = parsed_type
            routine.is_recurring = parsed_type is not None

        return await self._edit(routine_id, apply)
