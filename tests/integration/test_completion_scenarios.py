"""
Integration tests for the completion cascade

End-to-end flows through ServiceContainer: toggles, streaks, history,
achievements, recurrence and active-routine resolution, on both the
in-memory and the JSON file backends.
"""
import json
import pytest
from datetime import timedelta

from routinely.gamification import FIRST_ROUTINE
from routinely.services import ServiceContainer
from routinely.storage import JsonFileStore, StoreKeys
from tests.helpers import make_routine, seed_store, stored_routines


def assert_completed_invariant(routines):
    for routine in routines:
        assert routine.completed == all(t.done for t in routine.tasks)


# ============================================================================
# Scenarios
# ============================================================================

@pytest.mark.asyncio
async def test_two_task_routine_xp_and_completion(container, store):
    """Toggle 10xp then 20xp: XP 10 then 30, completed only at the end"""
    seed_store(store, [make_routine("r1", tasks=[("t1", 10, False), ("t2", 20, False)], created_at=1)])
    engine = container.completion_engine

    first = await engine.toggle_task("r1", "t1")
    assert first.task_done is True
    assert first.total_xp == 10
    assert first.routine.completed is False

    second = await engine.toggle_task("r1", "t2")
    assert second.total_xp == 30
    assert second.routine.completed is True
    assert_completed_invariant(second.routines)


@pytest.mark.asyncio
async def test_first_ever_completion(container, store):
    """Single routine with no streak history: streak 1, one entry, first_routine"""
    seed_store(store, [make_routine("r1", tasks=[("t1", 10, False)], created_at=1)])

    result = await container.completion_engine.toggle_task("r1", "t1")

    assert result.streak.current == 1
    assert result.streak.best == 1
    assert await container.history_log.count() == 1
    achievements = {a.id: a for a in await container.achievement_engine.get_achievements()}
    assert achievements[FIRST_ROUTINE].unlocked is True


@pytest.mark.asyncio
async def test_streak_continues_from_yesterday(container, store, clock):
    yesterday = clock().date() - timedelta(days=1)
    seed_store(store, [make_routine("r1", tasks=[("t1", 10, False)], created_at=1)])
    store._data[StoreKeys.CURRENT_STREAK] = "5"
    store._data[StoreKeys.BEST_STREAK] = "5"
    store._data[StoreKeys.LAST_COMPLETION_DATE] = yesterday.isoformat()

    result = await container.completion_engine.toggle_task("r1", "t1")

    assert result.streak.current == 6
    assert result.streak.best == 6


@pytest.mark.asyncio
async def test_streak_decays_after_absence(container, store, clock):
    three_days_ago = clock().date() - timedelta(days=3)
    store._data[StoreKeys.CURRENT_STREAK] = "5"
    store._data[StoreKeys.BEST_STREAK] = "8"
    store._data[StoreKeys.LAST_COMPLETION_DATE] = three_days_ago.isoformat()

    state = await container.streak_tracker.check_and_reset_if_needed()

    assert state.current == 0
    assert state.best == 8


@pytest.mark.asyncio
async def test_daily_routine_resets_next_day(container, store, clock):
    yesterday_ms = int((clock() - timedelta(days=1)).timestamp() * 1000)
    seed_store(store, [
        make_routine(
            "r1",
            tasks=[("t1", 10, False), ("t2", 10, True)],
            created_at=1,
            recurring_type="daily",
            last_completed_date=yesterday_ms,
        ),
    ])

    result = await container.completion_engine.toggle_task("r1", "t1")

    assert result.recurrence_reset is True
    raw = stored_routines(store)[0]
    assert [t["done"] for t in raw["tasks"]] == [False, False]
    assert raw["completed"] is False
    assert raw["lastCompletedDate"] == clock.ms()


@pytest.mark.asyncio
@pytest.mark.parametrize("remaining, expected", [
    ([("r2", True), ("r3", False)], "r3"),
    ([("r2", True), ("r3", True)], "r2"),
    ([], None),
])
async def test_deleted_active_routine_pointer(container, store, remaining, expected):
    routines = [make_routine(rid, tasks=[("t", 10, done)], created_at=i) for i, (rid, done) in enumerate(remaining, 2)]
    seed_store(store, routines, active_id="r1")

    view = await container.routine_store.load_active_routine()

    if expected is None:
        assert view.active is None
        assert StoreKeys.ACTIVE_ROUTINE_ID not in store.snapshot()
    else:
        assert view.active.id == expected
        assert store.snapshot()[StoreKeys.ACTIVE_ROUTINE_ID] == expected


# ============================================================================
# Multi-day Journey
# ============================================================================

@pytest.mark.asyncio
async def test_week_of_routines_on_file_store(tmp_path, clock):
    """Seven straight days of completing every routine, restarting the app each day"""
    path = tmp_path / "routinely.json"

    def open_app():
        return ServiceContainer(store=JsonFileStore(path), clock=clock)

    app = open_app()
    assert await app.routine_store.initialize_default_data() is True
    await app.routine_store.create_routine("Evening", [("Read", 20)], recurring_type="daily")

    for _ in range(7):
        app = open_app()
        await app.streak_tracker.check_and_reset_if_needed()

        # The one-off default routine stays completed after day 0
        for routine in await app.routine_store.load_routines():
            for task in routine.tasks:
                if not task.done:
                    await app.completion_engine.toggle_task(routine.id, task.id)

        routines = await app.routine_store.load_routines()
        assert_completed_invariant(routines)
        clock.advance(days=1)

    app = open_app()
    state = await app.streak_tracker.get_state()
    assert state.current == 7
    assert state.best == 7
    assert await app.progress_ledger.get_xp() == 50 + 7 * 20
    assert await app.history_log.count() == 7

    achievements = {a.id: a for a in await app.achievement_engine.get_achievements()}
    assert achievements[FIRST_ROUTINE].unlocked is True
    assert achievements["streak_7"].unlocked is True
    assert achievements["routines_10"].unlocked is False

    on_disk = json.loads(path.read_text(encoding="utf-8"))
    assert on_disk[StoreKeys.CURRENT_STREAK] == "7"


@pytest.mark.asyncio
async def test_missed_day_breaks_streak_on_next_launch(tmp_path, clock):
    path = tmp_path / "routinely.json"
    app = ServiceContainer(store=JsonFileStore(path), clock=clock)
    routine = await app.routine_store.create_routine("Daily", [("Walk", 10)], recurring_type="daily")
    await app.completion_engine.toggle_task(routine.id, routine.tasks[0].id)

    clock.advance(days=2)
    app = ServiceContainer(store=JsonFileStore(path), clock=clock)
    decayed = await app.streak_tracker.check_and_reset_if_needed()
    assert decayed.current == 0
    assert decayed.best == 1

    result = await app.completion_engine.toggle_task(routine.id, routine.tasks[0].id)
    assert result.streak.current == 1
