"""
Daily Streak Tracking System

A streak day is a local calendar day on which EVERY routine was completed.

Two entry points, no scheduler:
- update_on_full_completion(): called by the completion engine when the last
  open routine of the day gets completed
- check_and_reset_if_needed(): called on app focus; lazily decays a streak
  whose last completion is older than yesterday

Keys owned: CURRENT_STREAK, BEST_STREAK, LAST_COMPLETION_DATE
"""

from datetime import date, timedelta
from typing import Optional
import logging

from routinely.models import StreakState
from routinely.storage import KeyValueStore, StoreKeys, read_int, write_int
from routinely.utils.datetime_helpers import Clock, now_local, format_date_key, parse_date_key

logger = logging.getLogger(__name__)


class StreakTracker:
    """Consecutive-day streak over local calendar dates"""

    def __init__(self, store: KeyValueStore, clock: Optional[Clock] = None):
        self.store = store
        self.clock = clock or now_local

    def _today(self) -> date:
        return self.clock().date()

    async def get_current_streak(self) -> int:
        return max(await read_int(self.store, StoreKeys.CURRENT_STREAK), 0)

    async def get_best_streak(self) -> int:
        return max(await read_int(self.store, StoreKeys.BEST_STREAK), 0)

    async def get_last_completion_date(self) -> Optional[date]:
        return parse_date_key(await self.store.get(StoreKeys.LAST_COMPLETION_DATE))

    async def get_state(self) -> StreakState:
        """Current, best and last completion date"""
        current = await self.get_current_streak()
        best = await self.get_best_streak()
        return StreakState(
            current=current,
            best=max(best, current),
            last_completion_date=await self.get_last_completion_date(),
        )

    async def update_on_full_completion(self) -> StreakState:
        """
        Count today as a streak day

        Logic:
        - Last completion today: already counted, no change
        - Last completion yesterday: streak continues (+1)
        - Anything older, or never: streak restarts at 1
        - best = max(best, current) whenever the streak changes

        Returns:
            StreakState after the update
        """
        today = self._today()
        yesterday = today - timedelta(days=1)

        state = await self.get_state()
        last_date = state.last_completion_date
        old_current = state.current

        if last_date == today:
            logger.debug(f"Streak already counted for {today}, staying at {old_current}")
            return state

        if last_date == yesterday:
            state.current = old_current + 1
        else:
            state.current = 1
            if last_date is not None:
                gap_days = (today - last_date).days
                logger.info(f"Streak broken. Was {old_current}, gap was {gap_days} days")

        state.best = max(state.best, state.current)
        state.last_completion_date = today

        await write_int(self.store, StoreKeys.CURRENT_STREAK, state.current)
        await write_int(self.store, StoreKeys.BEST_STREAK, state.best)
        await self.store.set(StoreKeys.LAST_COMPLETION_DATE, format_date_key(today))

        logger.info(f"Updated streak: {old_current} → {state.current} days (best: {state.best})")
        return state

    async def check_and_reset_if_needed(self) -> StreakState:
        """
        Decay a streak whose last completion is older than yesterday

        Must run before the streak is displayed (on app focus). `best` is
        never touched. No stored completion date means nothing to decay.

        Returns:
            StreakState after the check
        """
        today = self._today()
        yesterday = today - timedelta(days=1)

        state = await self.get_state()
        last_date = state.last_completion_date

        if last_date is None or last_date in (today, yesterday):
            return state

        if state.current != 0:
            logger.info(f"Streak reset to 0 (last completion {last_date}, was {state.current} days)")
            state.current = 0
            await write_int(self.store, StoreKeys.CURRENT_STREAK, 0)

        return state
