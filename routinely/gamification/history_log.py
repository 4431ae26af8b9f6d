"""
Routine Completion History

Append-only log of completed routines, capped at the most recent
HISTORY_LIMIT entries (oldest evicted first), with weekly and monthly
aggregates over local calendar days.

Key owned: routineHistory
"""

from datetime import datetime, timedelta
from typing import List, Optional
import logging

from pydantic import ValidationError

from routinely import config
from routinely.models import DayStats, HistoryEntry, MonthlyStats, WeeklyStats
from routinely.storage import KeyValueStore, StoreKeys, read_json, write_json
from routinely.utils.datetime_helpers import (
    Clock,
    now_local,
    to_epoch_ms,
    local_date_from_ms,
    start_of_week,
    end_of_day,
    start_of_month,
    end_of_month,
)

logger = logging.getLogger(__name__)


class HistoryLog:
    """Completed-routine log and statistics"""

    def __init__(
        self,
        store: KeyValueStore,
        clock: Optional[Clock] = None,
        limit: Optional[int] = None
    ):
        self.store = store
        self.clock = clock or now_local
        self.limit = limit or config.HISTORY_LIMIT

    async def get_history(self) -> List[HistoryEntry]:
        """All entries, oldest first"""
        raw = await read_json(self.store, StoreKeys.ROUTINE_HISTORY, default=[])
        if not isinstance(raw, list):
            logger.warning("Stored history is not a list, ignoring")
            return []

        entries = []
        for item in raw:
            try:
                entries.append(HistoryEntry.model_validate(item))
            except ValidationError:
                logger.warning(f"Dropping malformed history entry: {item!r}")
        return entries

    async def count(self) -> int:
        return len(await self.get_history())

    async def add_entry(self, entry: HistoryEntry) -> int:
        """
        Append an entry, evicting the oldest beyond the cap

        Returns:
            Number of entries after the append
        """
        history = await self.get_history()
        history.append(entry)
        history = history[-self.limit:]
        await write_json(self.store, StoreKeys.ROUTINE_HISTORY, [e.to_storage() for e in history])

        logger.info(
            f"Recorded completion of '{entry.routine_title}': "
            f"{entry.tasks_completed}/{entry.total_tasks} tasks, {entry.xp_earned} XP"
        )
        return len(history)

    async def get_history_by_date_range(self, start: datetime, end: datetime) -> List[HistoryEntry]:
        """Entries completed within [start, end] (inclusive)"""
        start_ms = to_epoch_ms(start)
        end_ms = to_epoch_ms(end)
        return [e for e in await self.get_history() if start_ms <= e.completed_at <= end_ms]

    async def get_weekly_stats(self) -> WeeklyStats:
        """
        Current week (Sunday through Saturday) aggregate

        Returns:
            WeeklyStats with one DayStats per day of the week
        """
        now = self.clock()
        week_start = start_of_week(now)
        week_end = end_of_day(week_start.date() + timedelta(days=6), now.tzinfo)
        week_history = await self.get_history_by_date_range(week_start, week_end)

        days = []
        for offset in range(7):
            day = week_start.date() + timedelta(days=offset)
            day_entries = [
                e for e in week_history
                if local_date_from_ms(e.completed_at, now.tzinfo) == day
            ]
            days.append(DayStats(
                date=day.isoformat(),
                routines_completed=len(day_entries),
                xp_earned=sum(e.xp_earned for e in day_entries),
            ))

        return WeeklyStats(
            routines_completed=len(week_history),
            total_xp=sum(e.xp_earned for e in week_history),
            days=days,
        )

    async def get_monthly_stats(self) -> MonthlyStats:
        """
        Current calendar month aggregate

        average_per_day divides by the days elapsed so far (today's day of month).
        """
        now = self.clock()
        month_history = await self.get_history_by_date_range(start_of_month(now), end_of_month(now))

        return MonthlyStats(
            routines_completed=len(month_history),
            total_xp=sum(e.xp_earned for e in month_history),
            average_per_day=len(month_history) / now.day,
        )
