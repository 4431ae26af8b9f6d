"""In-memory store (tests and throwaway sessions)"""

import logging
from typing import Optional

from routinely.storage.base import KeyValueStore

logger = logging.getLogger(__name__)


class InMemoryStore(KeyValueStore):
    """Process-local dict; nothing survives a restart"""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._data: dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    async def set(self, key: str, value: str) -> None:
        self._data[key] = value
        logger.debug(f"Stored {key} ({len(value)} chars)")

    async def remove(self, key: str) -> None:
        self._data.pop(key, None)

    async def keys(self) -> list[str]:
        return list(self._data)

    def snapshot(self) -> dict[str, str]:
        """Copy of the raw contents"""
        return dict(self._data)
