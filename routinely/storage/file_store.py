"""JSON file store (default durable backend)

All keys live in one JSON object on disk. Every write rewrites the document
through a temp file + os.replace, so a crash mid-write leaves the previous
version intact.
"""

import json
import logging
import os
from pathlib import Path
from typing import Optional

from routinely.config import DATA_PATH, STORE_FILENAME
from routinely.exceptions import wrap_storage_exception
from routinely.storage.base import KeyValueStore

logger = logging.getLogger(__name__)


class JsonFileStore(KeyValueStore):
    """Key-value store persisted as a single JSON document"""

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path else DATA_PATH / STORE_FILENAME
        self._data: Optional[dict[str, str]] = None

    def _load(self) -> dict[str, str]:
        if self._data is not None:
            return self._data

        if not self.path.exists():
            logger.info(f"No store file at {self.path}, starting empty")
            self._data = {}
            return self._data

        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            logger.warning(f"Store file {self.path} is corrupt, starting empty: {e}")
            raw = {}
        except OSError as e:
            raise wrap_storage_exception(e, operation="load")

        if not isinstance(raw, dict):
            logger.warning(f"Store file {self.path} is not a JSON object, starting empty")
            raw = {}

        self._data = {str(k): v for k, v in raw.items() if isinstance(v, str)}
        return self._data

    def _flush(self) -> None:
        data = self._load()
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
            os.replace(tmp_path, self.path)
        except OSError as e:
            raise wrap_storage_exception(e, operation="flush")
        logger.debug(f"Flushed {len(data)} keys to {self.path}")

    async def get(self, key: str) -> Optional[str]:
        return self._load().get(key)

    async def set(self, key: str, value: str) -> None:
        self._load()[key] = value
        self._flush()

    async def remove(self, key: str) -> None:
        data = self._load()
        if key in data:
            del data[key]
            self._flush()

    async def keys(self) -> list[str]:
        return list(self._load())
