"""
Service Container - Dependency Injection Container

Simple DI container for managing service instances and their dependencies.
Uses lazy loading to only instantiate services when first accessed. Every
service shares the same store and clock.
"""

from dataclasses import dataclass, field
from typing import Optional
import logging

from routinely.storage import KeyValueStore
from routinely.utils.datetime_helpers import Clock

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    """
    Simple dependency injection container for services.

    Services are lazy-loaded on first access via properties.
    Infrastructure dependencies (store, clock) are injected.
    """

    # Infrastructure dependencies (injected)
    store: KeyValueStore
    clock: Optional[Clock] = None

    # Services (lazy-loaded via properties)
    _routine_store: Optional[object] = field(default=None, init=False, repr=False)
    _progress_ledger: Optional[object] = field(default=None, init=False, repr=False)
    _streak_tracker: Optional[object] = field(default=None, init=False, repr=False)
    _history_log: Optional[object] = field(default=None, init=False, repr=False)
    _achievement_engine: Optional[object] = field(default=None, init=False, repr=False)
    _completion_engine: Optional[object] = field(default=None, init=False, repr=False)
    _backup_service: Optional[object] = field(default=None, init=False, repr=False)

    @property
    def routine_store(self):
        """Get RoutineStore instance (lazy-loaded)"""
        if self._routine_store is None:
            from routinely.services.routine_store import RoutineStore
            self._routine_store = RoutineStore(self.store, self.clock)
            logger.debug("RoutineStore instantiated")
        return self._routine_store

    @property
    def progress_ledger(self):
        """Get ProgressLedger instance (lazy-loaded)"""
        if self._progress_ledger is None:
            from routinely.gamification.xp_system import ProgressLedger
            self._progress_ledger = ProgressLedger(self.store)
            logger.debug("ProgressLedger instantiated")
        return self._progress_ledger

    @property
    def streak_tracker(self):
        """Get StreakTracker instance (lazy-loaded)"""
        if self._streak_tracker is None:
            from routinely.gamification.streak_system import StreakTracker
            self._streak_tracker = StreakTracker(self.store, self.clock)
            logger.debug("StreakTracker instantiated")
        return self._streak_tracker

    @property
    def history_log(self):
        """Get HistoryLog instance (lazy-loaded)"""
        if self._history_log is None:
            from routinely.gamification.history_log import HistoryLog
            self._history_log = HistoryLog(self.store, self.clock)
            logger.debug("HistoryLog instantiated")
        return self._history_log

    @property
    def achievement_engine(self):
        """Get AchievementEngine instance (lazy-loaded)"""
        if self._achievement_engine is None:
            from routinely.gamification.achievement_system import AchievementEngine
            self._achievement_engine = AchievementEngine(self.store, self.clock)
            logger.debug("AchievementEngine instantiated")
        return self._achievement_engine

    @property
    def completion_engine(self):
        """Get CompletionEngine instance (lazy-loaded)"""
        if self._completion_engine is None:
            from routinely.services.completion_engine import CompletionEngine
            self._completion_engine = CompletionEngine(
                self.routine_store,
                self.progress_ledger,
                self.streak_tracker,
                self.history_log,
                self.achievement_engine,
                self.clock,
            )
            logger.debug("CompletionEngine instantiated")
        return self._completion_engine

    @property
    def backup_service(self):
        """Get BackupService instance (lazy-loaded)"""
        if self._backup_service is None:
            from routinely.services.backup_service import BackupService
            self._backup_service = BackupService(
                self.store,
                self.routine_store,
                self.progress_ledger,
                self.streak_tracker,
                self.history_log,
                self.achievement_engine,
                self.clock,
            )
            logger.debug("BackupService instantiated")
        return self._backup_service
