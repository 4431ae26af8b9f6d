"""
Persistence backends

All services talk to a KeyValueStore; create_store() picks the backend
named by config.STORE_BACKEND.
"""

import logging
from typing import Optional

from routinely import config
from routinely.exceptions import ConfigurationError
from routinely.storage.base import KeyValueStore, StoreKeys, read_json, write_json, read_int, write_int
from routinely.storage.memory_store import InMemoryStore
from routinely.storage.file_store import JsonFileStore
from routinely.storage.redis_store import RedisStore

logger = logging.getLogger(__name__)


def create_store(backend: Optional[str] = None) -> KeyValueStore:
    """Instantiate the configured store backend"""
    backend = (backend or config.STORE_BACKEND).lower()
    if backend == "file":
        store = JsonFileStore()
    elif backend == "memory":
        store = InMemoryStore()
    elif backend == "redis":
        store = RedisStore()
    else:
        raise ConfigurationError(f"Unknown store backend '{backend}'", config_key="STORE_BACKEND")
    logger.info(f"Using {backend} store")
    return store


__all__ = [
    "KeyValueStore",
    "StoreKeys",
    "read_json",
    "write_json",
    "read_int",
    "write_int",
    "InMemoryStore",
    "JsonFileStore",
    "RedisStore",
    "create_store",
]
