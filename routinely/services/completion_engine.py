"""
CompletionEngine - Routine Completion Orchestrator

The only component allowed to change task/routine completion state. A task
toggle runs these steps, in order, as one serialized unit:

1. Flip the task's `done` flag (unknown routine/task: no-op)
2. Re-derive `completed` and persist the collection
3. Credit the task's points on a false → true flip (never debit)
4. If this toggle completed the routine AND every routine is now completed:
   a. count today toward the streak
   b. append a history entry
   c. evaluate achievements (plus `first_routine` on the first entry ever)
   d. apply the recurrence policy to a recurring routine
"""

import asyncio
import logging
from datetime import datetime
from typing import Optional

from routinely.gamification import (
    AchievementEngine,
    FIRST_ROUTINE,
    HistoryLog,
    ProgressLedger,
    StreakTracker,
    get_level,
)
from routinely.models import HistoryEntry, RecurringType, Routine, ToggleResult
from routinely.services.routine_store import RoutineStore
from routinely.utils.datetime_helpers import (
    Clock,
    now_local,
    to_epoch_ms,
    local_date_from_ms,
    whole_days_between,
)

logger = logging.getLogger(__name__)

WEEKLY_RESET_DAYS = 7


def is_reset_due(routine: Routine, now: datetime) -> bool:
    """
    Whether a just-completed recurring routine should start a new cycle

    - daily: no prior completion, or a different local calendar day
    - weekly: no prior completion, or at least 7 full days elapsed
    """
    if not routine.is_recurring or routine.recurring_type is None:
        return False

    last_completed = routine.last_completed_date
    if last_completed is None:
        return True

    if routine.recurring_type == RecurringType.DAILY:
        return local_date_from_ms(last_completed, now.tzinfo) != now.date()

    if routine.recurring_type == RecurringType.WEEKLY:
        return whole_days_between(last_completed, to_epoch_ms(now)) >= WEEKLY_RESET_DAYS

    return False


class CompletionEngine:
    """
    Orchestrates task toggles and their progression side effects.

    Toggles are serialized on the RoutineStore lock, so two rapid toggles
    never interleave their read-modify-write of the collection.
    """

    def __init__(
        self,
        routine_store: RoutineStore,
        progress_ledger: ProgressLedger,
        streak_tracker: StreakTracker,
        history_log: HistoryLog,
        achievement_engine: AchievementEngine,
        clock: Optional[Clock] = None
    ):
        self.routine_store = routine_store
        self.progress_ledger = progress_ledger
        self.streak_tracker = streak_tracker
        self.history_log = history_log
        self.achievement_engine = achievement_engine
        self.clock = clock or now_local
        logger.debug("CompletionEngine initialized")

    @property
    def lock(self) -> asyncio.Lock:
        return self.routine_store.lock

    async def toggle_task(self, routine_id: str, task_id: str) -> ToggleResult:
        """
        Toggle a task and cascade the consequences

        Args:
            routine_id: Routine containing the task
            task_id: Task to flip

        Returns:
            ToggleResult describing the updated routine and every side effect
            (changed=False when the routine or task doesn't exist)
        """
        async with self.lock:
            return await self._toggle_task(routine_id, task_id)

    async def _toggle_task(self, routine_id: str, task_id: str) -> ToggleResult:
        routines = await self.routine_store.load_routines()
        routine = next((r for r in routines if r.id == routine_id), None)

        if routine is None or routine.find_task(task_id) is None:
            logger.debug(f"Toggle ignored: routine={routine_id} task={task_id} not found")
            return ToggleResult(changed=False, routine=routine, routines=routines)

        # Steps 1-2: flip and persist with the re-derived invariant
        was_completed = routine.completed
        task = routine.toggle_task(task_id)
        routines = await self.routine_store.save_routines(routines)

        result = ToggleResult(
            changed=True,
            routine=routine,
            routines=routines,
            task_done=task.done,
            routine_completed=routine.completed,
        )

        # Step 3: credit on false → true only
        if task.done:
            xp_result = await self.progress_ledger.add_xp(task.points)
            result.xp_awarded = xp_result["xp_awarded"]
            result.total_xp = xp_result["new_total_xp"]
            result.leveled_up = xp_result["leveled_up"]

        # Step 4: routine just transitioned into completed
        if routine.completed and not was_completed:
            logger.info(f"Routine {routine.id} ('{routine.title}') completed")
            if all(r.completed for r in routines):
                result.all_routines_completed = True
                await self._on_all_routines_completed(routine, routines, result)

        return result

    async def _on_all_routines_completed(
        self,
        routine: Routine,
        routines: list,
        result: ToggleResult
    ) -> None:
        now = self.clock()
        logger.info("All routines completed")

        # 4a. streak
        result.streak = await self.streak_tracker.update_on_full_completion()

        # 4b. history
        entry = HistoryEntry(
            routine_id=routine.id,
            routine_title=routine.title,
            completed_at=to_epoch_ms(now),
            tasks_completed=routine.done_count(),
            total_tasks=len(routine.tasks),
            xp_earned=routine.earned_points(),
        )
        completed_count = await self.history_log.add_entry(entry)
        result.history_entry = entry

        # 4c. achievements
        current_streak = await self.streak_tracker.get_current_streak()
        total_xp = await self.progress_ledger.get_xp()
        level = get_level(total_xp)

        if completed_count == 1:
            first = await self.achievement_engine.unlock_achievement(FIRST_ROUTINE)
            if first is not None:
                result.achievements_unlocked.append(first)

        result.achievements_unlocked.extend(
            await self.achievement_engine.check_achievements(
                current_streak,
                total_xp,
                level,
                completed_count,
            )
        )
        if result.achievements_unlocked:
            logger.info(f"Achievements unlocked: {', '.join(a.id for a in result.achievements_unlocked)}")

        # 4d. recurrence
        if routine.is_recurring:
            result.recurrence_reset = await self._apply_recurrence(routine, routines, now)
            result.routine_completed = routine.completed
            result.routines = await self.routine_store.load_routines()

    async def _apply_recurrence(self, routine: Routine, routines: list, now: datetime) -> bool:
        """Reset the routine for its next cycle if due; always stamp lastCompletedDate"""
        reset_due = is_reset_due(routine, now)
        if reset_due:
            routine.reset_tasks()
            logger.info(f"Recurring routine {routine.id} reset for its next {routine.recurring_type.value} cycle")
        else:
            logger.debug(f"Recurring routine {routine.id} not due for reset yet")

        routine.last_completed_date = to_epoch_ms(now)
        await self.routine_store.save_routines(routines)
        return reset_due
