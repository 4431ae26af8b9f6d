"""
Key-value store contract

Every service persists through this interface: string keys mapping to
JSON-encoded string values. Implementations must be durable across restarts
(except InMemoryStore) but are not required to be atomic across keys.
"""

import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Optional

logger = logging.getLogger(__name__)


class StoreKeys:
    """Persisted key names (shared with backups)"""
    ROUTINES = "routines"
    ACTIVE_ROUTINE_ID = "activeRoutineId"
    USER_XP = "USER_XP"
    CURRENT_STREAK = "CURRENT_STREAK"
    BEST_STREAK = "BEST_STREAK"
    LAST_COMPLETION_DATE = "LAST_COMPLETION_DATE"
    ACHIEVEMENTS = "achievements"
    ROUTINE_HISTORY = "routineHistory"
    PET_TYPE = "petType"
    PET_NAME = "petName"
    USER_NAME = "userName"


class KeyValueStore(ABC):
    """Async string key-value store"""

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        """Return the stored string, or None if the key is absent"""

    @abstractmethod
    async def set(self, key: str, value: str) -> None:
        """Store a string value"""

    @abstractmethod
    async def remove(self, key: str) -> None:
        """Delete a key (no error if absent)"""

    @abstractmethod
    async def keys(self) -> list[str]:
        """All keys currently stored"""

    async def close(self) -> None:
        """Release backend resources"""


async def read_json(store: KeyValueStore, key: str, default: Any = None) -> Any:
    """
    Read and decode a JSON value

    Missing and malformed data are treated the same: the default is returned.
    """
    raw = await store.get(key)
    if raw is None:
        logger.debug(f"Key '{key}' not found, using default")
        return default
    try:
        return json.loads(raw)
    except json.JSONDecodeError as e:
        logger.warning(f"Malformed JSON under '{key}', treating as absent: {e}")
        return default


async def write_json(store: KeyValueStore, key: str, value: Any) -> None:
    """Encode a value as JSON and store it"""
    await store.set(key, json.dumps(value, ensure_ascii=False))


async def read_int(store: KeyValueStore, key: str, default: int = 0) -> int:
    """Read a stringified integer counter"""
    raw = await store.get(key)
    if raw is None:
        return default
    try:
        return int(float(raw))
    except (ValueError, OverflowError):
        logger.warning(f"Malformed integer under '{key}': {raw!r}, using {default}")
        return default


async def write_int(store: KeyValueStore, key: str, value: int) -> None:
    """Store an integer counter as a string"""
    await store.set(key, str(int(value)))
