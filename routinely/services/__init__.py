"""
Service Layer Package

Business logic services between the UI layer and the key-value store.

Core Services:
- RoutineStore: Routine collection, active routine, navigation, authoring
- CompletionEngine: Task toggles and their progression side effects
- BackupService: Full export/import of persisted progress
"""

from routinely.services.container import ServiceContainer
from routinely.services.routine_store import RoutineStore
from routinely.services.completion_engine import CompletionEngine, is_reset_due
from routinely.services.backup_service import BackupService

__all__ = [
    # Service Layer Container
    "ServiceContainer",
    # Core Services
    "RoutineStore",
    "CompletionEngine",
    "is_reset_due",
    "BackupService",
]
