"""Command-line entry point for routinely"""
import argparse
import asyncio
import logging
import sys
from typing import List, Tuple

from routinely.config import validate_config, LOG_LEVEL, SEED_DEFAULT_ROUTINE
from routinely.exceptions import RoutinelyError
from routinely.gamification import calculate_level_from_xp
from routinely.models import NavigationOutcome, Routine, ToggleResult
from routinely.services import ServiceContainer
from routinely.storage import create_store

logger = logging.getLogger(__name__)


def format_routine(routine: Routine) -> str:
    """Checklist view of a routine"""
    lines = [f"📋 {routine.title} [{routine.id}] {routine.progress_percent()}%"]
    if routine.is_recurring and routine.recurring_type:
        lines[0] += f" 🔁 {routine.recurring_type.value}"
    for number, task in enumerate(routine.tasks, start=1):
        mark = "✅" if task.done else "⬜"
        lines.append(f"  {mark} {number}. {task.title} (+{task.points} XP) [{task.id}]")
    if not routine.tasks:
        lines.append("  (no tasks)")
    return "\n".join(lines)


def format_toggle(result: ToggleResult) -> str:
    """Summary of what a toggle did"""
    if not result.changed:
        return "Nothing to toggle: unknown routine or task."

    lines = []
    if result.task_done and result.xp_awarded:
        lines.append(f"+{result.xp_awarded} XP (total {result.total_xp})")
    if result.leveled_up:
        lines.append(f"⬆️  Level up! Now level {calculate_level_from_xp(result.total_xp).level}")
    if result.routine_completed or result.recurrence_reset:
        lines.append("🎉 Routine completed!")
    if result.streak:
        lines.append(f"🔥 Streak: {result.streak.current} days (best {result.streak.best})")
    for achievement in result.achievements_unlocked:
        lines.append(f"🏅 {achievement.icon} {achievement.title}: {achievement.description}")
    if result.recurrence_reset:
        lines.append("🔁 Recurring routine reset for its next cycle")
    if result.routine:
        lines.append(format_routine(result.routine))
    return "\n".join(lines)


def parse_task_spec(value: str) -> Tuple[str, int]:
    """Parse 'Title:points' (points default to 10)"""
    title, sep, points = value.rpartition(":")
    if not sep:
        return value, 10
    try:
        return title, int(points)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid task '{value}'. Use TITLE or TITLE:POINTS")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="routinely", description="Track routines, XP and streaks")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("status", help="Show the active routine, XP and streak")
    toggle = sub.add_parser("toggle", help="Toggle a task")
    toggle.add_argument("routine_id")
    toggle.add_argument("task_id")
    sub.add_parser("next", help="Move to the next incomplete routine")
    sub.add_parser("previous", help="Move to the previous incomplete routine")
    activate = sub.add_parser("activate", help="Make a routine active")
    activate.add_argument("routine_id")
    delete = sub.add_parser("delete", help="Delete a routine")
    delete.add_argument("routine_id")
    create = sub.add_parser("create", help="Create a routine")
    create.add_argument("title")
    create.add_argument("--task", action="append", type=parse_task_spec, default=[], help="TITLE[:POINTS], repeatable")
    create.add_argument("--recurring", choices=["daily", "weekly"], help="Reset cycle")
    duplicate = sub.add_parser("duplicate", help="Duplicate a routine")
    duplicate.add_argument("routine_id")
    add_task = sub.add_parser("add-task", help="Append a task to a routine")
    add_task.add_argument("routine_id")
    add_task.add_argument("task", type=parse_task_spec, help="TITLE[:POINTS]")
    sub.add_parser("list", help="List all routines")
    sub.add_parser("stats", help="Weekly and monthly statistics")
    sub.add_parser("achievements", help="List achievements")
    backup = sub.add_parser("backup", help="Export a backup file")
    backup.add_argument("path")
    restore = sub.add_parser("restore", help="Restore from a backup file")
    restore.add_argument("path")
    return parser


async def refresh(container: ServiceContainer) -> None:
    """Focus refresh: decay a stale streak before anything is shown"""
    await container.streak_tracker.check_and_reset_if_needed()


async def run_command(container: ServiceContainer, args: argparse.Namespace) -> List[str]:
    """Execute a parsed command and return output lines"""
    routines = container.routine_store
    out: List[str] = []

    if args.command == "status":
        view = await routines.load_active_routine()
        level = await container.progress_ledger.get_level_info()
        streak = await container.streak_tracker.get_state()
        out.append(
            f"⭐ Level {level.level} ({level.xp_in_current_level}/{level.xp_in_current_level + level.xp_to_next_level} XP, "
            f"total {level.total_xp})  🔥 {streak.current} days (best {streak.best})"
        )
        if view.active is None:
            out.append("No routines yet. Create one with `routinely create`.")
        else:
            out.append(format_routine(view.active))
            if all(r.completed for r in view.routines):
                out.append("All routines completed!")

    elif args.command == "toggle":
        result = await container.completion_engine.toggle_task(args.routine_id, args.task_id)
        out.append(format_toggle(result))

    elif args.command in ("next", "previous"):
        result = await routines.move_to_adjacent(args.command)
        if result.outcome == NavigationOutcome.MOVED:
            out.append(format_routine(result.routine))
        elif result.outcome == NavigationOutcome.NO_MORE_ROUTINES:
            out.append("No more routines ahead. Create a new one with `routinely create`.")
        else:
            out.append("No incomplete routine before this one.")

    elif args.command == "activate":
        ok = await routines.set_active(args.routine_id)
        out.append("Active routine updated." if ok else f"Unknown routine {args.routine_id}.")

    elif args.command == "delete":
        ok = await routines.delete_routine(args.routine_id)
        out.append("Routine deleted." if ok else f"Unknown routine {args.routine_id}.")

    elif args.command == "create":
        routine = await routines.create_routine(args.title, args.task, args.recurring)
        out.append(format_routine(routine))

    elif args.command == "duplicate":
        routine = await routines.duplicate_routine(args.routine_id)
        out.append(format_routine(routine) if routine else f"Unknown routine {args.routine_id}.")

    elif args.command == "add-task":
        title, points = args.task
        routine = await routines.add_task(args.routine_id, title, points)
        out.append(format_routine(routine) if routine else "Routine not found or already completed.")

    elif args.command == "list":
        view = await routines.load_active_routine()
        for routine in view.routines:
            marker = "▶" if view.active and routine.id == view.active.id else " "
            status = "✅" if routine.completed else f"{routine.progress_percent()}%"
            out.append(f"{marker} [{routine.id}] {routine.title} {status}")
        if not view.routines:
            out.append("No routines yet.")

    elif args.command == "stats":
        weekly = await container.history_log.get_weekly_stats()
        monthly = await container.history_log.get_monthly_stats()
        out.append(f"📅 This week: {weekly.routines_completed} routines, {weekly.total_xp} XP")
        for day in weekly.days:
            out.append(f"  {day.date}: {day.routines_completed} routines, {day.xp_earned} XP")
        out.append(
            f"🗓️  This month: {monthly.routines_completed} routines, {monthly.total_xp} XP, "
            f"{monthly.average_per_day:.2f}/day"
        )

    elif args.command == "achievements":
        for achievement in await container.achievement_engine.get_achievements():
            mark = achievement.icon if achievement.unlocked else "🔒"
            out.append(f"{mark} {achievement.title}: {achievement.description}")

    elif args.command == "backup":
        path = await container.backup_service.export_to_file(args.path)
        out.append(f"Backup written to {path}")

    elif args.command == "restore":
        await container.backup_service.import_from_file(args.path)
        out.append("Backup restored.")

    return out


async def main(argv=None) -> int:
    """Main application entry point"""
    args = build_parser().parse_args(argv)
    store = None
    try:
        validate_config()
        store = create_store()
        container = ServiceContainer(store=store)
        logger.info("Service container initialized")

        if SEED_DEFAULT_ROUTINE:
            await container.routine_store.initialize_default_data()
        await refresh(container)

        for line in await run_command(container, args):
            print(line)
        return 0

    except RoutinelyError as e:
        print(e.user_message, file=sys.stderr)
        return 1
    finally:
        if store is not None:
            await store.close()


def run() -> None:
    """Console script entry point"""
    logging.basicConfig(
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        level=getattr(logging, LOG_LEVEL.upper(), logging.INFO)
    )
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run()
