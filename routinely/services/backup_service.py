"""
BackupService - Export/Import of All Persisted Progress

Restores are all-or-nothing: the payload is fully validated before anything
is written, and a storage failure mid-restore rolls every key back to its
previous raw value. A key whose rollback also fails is logged and reported,
never raised as a bare StorageError.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from routinely.exceptions import BackupError, RoutinelyError
from routinely.models import BackupData
from routinely.services.routine_store import RoutineStore
from routinely.gamification import AchievementEngine, HistoryLog, ProgressLedger, StreakTracker
from routinely.storage import KeyValueStore, StoreKeys, write_json, write_int
from routinely.utils.datetime_helpers import Clock, now_local, to_epoch_ms, format_date_key, parse_date_key

logger = logging.getLogger(__name__)

BACKUP_KEYS = (
    StoreKeys.ROUTINES,
    StoreKeys.ACTIVE_ROUTINE_ID,
    StoreKeys.USER_XP,
    StoreKeys.CURRENT_STREAK,
    StoreKeys.BEST_STREAK,
    StoreKeys.LAST_COMPLETION_DATE,
    StoreKeys.ACHIEVEMENTS,
    StoreKeys.ROUTINE_HISTORY,
    StoreKeys.PET_TYPE,
    StoreKeys.PET_NAME,
    StoreKeys.USER_NAME,
)


class BackupService:
    """Create and restore full backups of the store"""

    def __init__(
        self,
        store: KeyValueStore,
        routine_store: RoutineStore,
        progress_ledger: ProgressLedger,
        streak_tracker: StreakTracker,
        history_log: HistoryLog,
        achievement_engine: AchievementEngine,
        clock: Optional[Clock] = None
    ):
        self.store = store
        self.routine_store = routine_store
        self.progress_ledger = progress_ledger
        self.streak_tracker = streak_tracker
        self.history_log = history_log
        self.achievement_engine = achievement_engine
        self.clock = clock or now_local

    async def create_backup(self) -> BackupData:
        """Snapshot every persisted key"""
        streak = await self.streak_tracker.get_state()
        backup = BackupData(
            routines=await self.routine_store.load_routines(),
            active_routine_id=await self.routine_store.get_active_routine_id(),
            user_xp=await self.progress_ledger.get_xp(),
            current_streak=await self.streak_tracker.get_current_streak(),
            best_streak=streak.best,
            last_completion_date=(
                format_date_key(streak.last_completion_date) if streak.last_completion_date else None
            ),
            achievements=await self.achievement_engine.get_achievements(),
            routine_history=await self.history_log.get_history(),
            pet_type=await self.store.get(StoreKeys.PET_TYPE),
            pet_name=await self.store.get(StoreKeys.PET_NAME),
            user_name=await self.store.get(StoreKeys.USER_NAME),
            timestamp=to_epoch_ms(self.clock()),
        )
        logger.info(
            f"Created backup: {len(backup.routines)} routines, "
            f"{len(backup.routine_history)} history entries"
        )
        return backup

    async def export_to_file(self, path: Union[str, Path]) -> Path:
        """Write a backup as pretty-printed JSON"""
        path = Path(path)
        backup = await self.create_backup()
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(json.dumps(backup.to_storage(), ensure_ascii=False, indent=2), encoding="utf-8")
        except OSError as e:
            raise BackupError(f"Could not write backup to {path}: {e}", operation="export_backup", cause=e)
        logger.info(f"Backup written to {path}")
        return path

    @staticmethod
    def parse_backup(data: Union[BackupData, Dict[str, Any]]) -> BackupData:
        """Validate a raw backup payload"""
        if isinstance(data, BackupData):
            return data
        try:
            backup = BackupData.model_validate(data)
        except PydanticValidationError as e:
            raise BackupError(
                f"Invalid backup: {e.error_count()} validation error(s)",
                operation="restore_backup",
                cause=e,
            )
        if backup.last_completion_date and parse_date_key(backup.last_completion_date) is None:
            raise BackupError(
                f"Invalid backup: bad lastCompletionDate {backup.last_completion_date!r}",
                operation="restore_backup",
            )
        return backup

    async def restore_backup(self, data: Union[BackupData, Dict[str, Any]]) -> BackupData:
        """
        Replace stored data with a backup

        Optional fields that are absent in the backup leave the current value
        in place. Raises BackupError on failure; prior state is rolled back,
        and keys that could not be rolled back are listed in its context.
        """
        backup = self.parse_backup(data)

        async with self.routine_store.lock:
            previous = {key: await self.store.get(key) for key in BACKUP_KEYS}
            try:
                await self._write_backup(backup)
            except RoutinelyError as e:
                logger.warning("Restore failed, rolling back to previous data")
                failed_keys = await self._rollback(previous)
                if failed_keys:
                    raise BackupError(
                        f"Restore failed: {e.message}; rollback incomplete for {', '.join(failed_keys)}",
                        operation="restore_backup",
                        context={"failed_keys": failed_keys},
                        cause=e,
                        user_message="The restore failed and some of your data could not be put back.",
                    )
                raise BackupError(f"Restore failed: {e.message}", operation="restore_backup", cause=e)

        logger.info(f"Restored backup from {backup.timestamp} (version {backup.version})")
        return backup

    async def import_from_file(self, path: Union[str, Path]) -> BackupData:
        """Read a backup JSON file and restore it"""
        path = Path(path)
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise BackupError(f"Could not read backup {path}: {e}", operation="import_backup", cause=e)
        return await self.restore_backup(raw)

    async def _write_backup(self, backup: BackupData) -> None:
        await self.routine_store.save_routines(backup.routines)
        await write_json(self.store, StoreKeys.ACHIEVEMENTS, [a.to_storage() for a in backup.achievements])
        await write_json(
            self.store,
            StoreKeys.ROUTINE_HISTORY,
            [e.to_storage() for e in backup.routine_history[-self.history_log.limit:]],
        )

        optional_ints = (
            (StoreKeys.USER_XP, backup.user_xp),
            (StoreKeys.CURRENT_STREAK, backup.current_streak),
            (StoreKeys.BEST_STREAK, backup.best_streak),
        )
        for key, value in optional_ints:
            if value is not None:
                await write_int(self.store, key, value)

        optional_strings = (
            (StoreKeys.ACTIVE_ROUTINE_ID, backup.active_routine_id),
            (StoreKeys.LAST_COMPLETION_DATE, backup.last_completion_date),
            (StoreKeys.PET_TYPE, backup.pet_type),
            (StoreKeys.PET_NAME, backup.pet_name),
            (StoreKeys.USER_NAME, backup.user_name),
        )
        for key, value in optional_strings:
            if value:
                await self.store.set(key, value)

    async def _rollback(self, previous: Dict[str, Optional[str]]) -> List[str]:
        """Put previous raw values back; returns keys that could not be restored"""
        failed = []
        for key, value in previous.items():
            try:
                if value is None:
                    await self.store.remove(key)
                else:
                    await self.store.set(key, value)
            except RoutinelyError as e:
                logger.error(f"Rollback of '{key}' failed: {e.message}")
                failed.append(key)
        return failed
