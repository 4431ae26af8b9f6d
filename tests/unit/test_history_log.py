"""Unit tests for completion history (routinely/gamification/history_log.py)"""
import pytest
from datetime import datetime, timedelta

from routinely.gamification.history_log import HistoryLog
from routinely.models import HistoryEntry
from routinely.storage import InMemoryStore, StoreKeys
from tests.helpers import FixedClock, TEST_TZ


def entry_at(dt: datetime, xp: int = 10, routine_id: str = "r1") -> HistoryEntry:
    return HistoryEntry(
        routine_id=routine_id,
        routine_title="Routine",
        completed_at=int(dt.timestamp() * 1000),
        tasks_completed=2,
        total_tasks=2,
        xp_earned=xp,
    )


@pytest.fixture
def history(store, clock):
    return HistoryLog(store, clock)


# ============================================================================
# Append & Cap
# ============================================================================

@pytest.mark.asyncio
async def test_add_entry_appends(history, clock):
    count = await history.add_entry(entry_at(clock()))
    assert count == 1
    assert await history.count() == 1


@pytest.mark.asyncio
async def test_cap_evicts_oldest(store, clock):
    history = HistoryLog(store, clock, limit=3)
    for i in range(5):
        await history.add_entry(entry_at(clock(), xp=i))

    entries = await history.get_history()
    assert [e.xp_earned for e in entries] == [2, 3, 4]


@pytest.mark.asyncio
async def test_malformed_history_is_empty(clock):
    store = InMemoryStore({StoreKeys.ROUTINE_HISTORY: "[{]"})
    assert await HistoryLog(store, clock).get_history() == []


@pytest.mark.asyncio
async def test_date_range_is_inclusive(history, clock):
    start = clock.now
    end = clock.now + timedelta(hours=1)
    await history.add_entry(entry_at(start, xp=1))
    await history.add_entry(entry_at(end, xp=2))
    await history.add_entry(entry_at(end + timedelta(milliseconds=1), xp=3))

    entries = await history.get_history_by_date_range(start, end)
    assert [e.xp_earned for e in entries] == [1, 2]


# ============================================================================
# Weekly Stats
# ============================================================================

@pytest.mark.asyncio
async def test_weekly_stats_sunday_to_saturday(history, clock):
    """2026-10-14 is a Wednesday; the week runs 2026-10-11 .. 2026-10-17"""
    sunday = datetime(2026, 10, 11, 0, 0, tzinfo=TEST_TZ)
    await history.add_entry(entry_at(sunday, xp=10))
    await history.add_entry(entry_at(clock(), xp=20))
    await history.add_entry(entry_at(clock() + timedelta(hours=2), xp=5))
    # Previous Saturday: outside the week
    await history.add_entry(entry_at(sunday - timedelta(minutes=1), xp=100))

    stats = await history.get_weekly_stats()

    assert stats.routines_completed == 3
    assert stats.total_xp == 35
    assert [d.date for d in stats.days] == [
        "2026-10-11", "2026-10-12", "2026-10-13", "2026-10-14",
        "2026-10-15", "2026-10-16", "2026-10-17",
    ]
    assert stats.days[0].routines_completed == 1
    assert stats.days[3].routines_completed == 2
    assert stats.days[3].xp_earned == 25


@pytest.mark.asyncio
async def test_weekly_stats_on_sunday_starts_same_day(store):
    clock = FixedClock(datetime(2026, 10, 18, 8, 0, tzinfo=TEST_TZ))
    stats = await HistoryLog(store, clock).get_weekly_stats()
    assert stats.days[0].date == "2026-10-18"


# ============================================================================
# Monthly Stats
# ============================================================================

@pytest.mark.asyncio
async def test_monthly_stats(history, clock):
    await history.add_entry(entry_at(datetime(2026, 10, 1, 7, 0, tzinfo=TEST_TZ), xp=10))
    await history.add_entry(entry_at(clock(), xp=30))
    await history.add_entry(entry_at(datetime(2026, 9, 30, 22, 0, tzinfo=TEST_TZ), xp=99))

    stats = await history.get_monthly_stats()

    assert stats.routines_completed == 2
    assert stats.total_xp == 40
    assert stats.average_per_day == pytest.approx(2 / 14)


@pytest.mark.asyncio
async def test_monthly_stats_empty(history):
    stats = await history.get_monthly_stats()
    assert stats.routines_completed == 0
    assert stats.average_per_day == 0
