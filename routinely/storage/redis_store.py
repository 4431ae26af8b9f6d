"""
Redis-backed key-value store.

Provides async Redis operations with:
- Key namespacing (REDIS_KEY_PREFIX)
- Graceful degradation on read failures (treated as missing data)
- Write failures surfaced as StorageError
- Operation statistics
"""

import logging
from typing import Any, Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

from routinely.config import REDIS_URL, REDIS_KEY_PREFIX
from routinely.exceptions import wrap_storage_exception
from routinely.storage.base import KeyValueStore

logger = logging.getLogger(__name__)


class RedisStore(KeyValueStore):
    """
    Key-value store on top of redis.asyncio.

    The client is created lazily on first use; pass `client` to inject one
    (tests, shared connection pools).
    """

    def __init__(
        self,
        redis_url: str = REDIS_URL,
        key_prefix: str = REDIS_KEY_PREFIX,
        client: Optional[Any] = None,
    ):
        self.redis_url = redis_url
        self.key_prefix = key_prefix
        self._client = client
        self._stats = {
            "reads": 0,
            "misses": 0,
            "writes": 0,
            "deletes": 0,
            "errors": 0,
        }

    async def connect(self):
        """Establish Redis connection."""
        if self._client is not None:
            return

        self._client = redis.from_url(
            self.redis_url,
            encoding="utf-8",
            decode_responses=True,
            max_connections=10,
        )
        try:
            await self._client.ping()
        except RedisError as e:
            self._stats["errors"] += 1
            raise wrap_storage_exception(e, operation="connect")
        logger.info(f"Redis connected: {self.redis_url}")

    async def close(self):
        """Close Redis connection."""
        if self._client:
            try:
                await self._client.aclose()
                logger.info("Redis connection closed")
            except RedisError as e:
                logger.error(f"Error closing Redis connection: {e}")
            self._client = None

    def _key(self, key: str) -> str:
        return f"{self.key_prefix}{key}"

    async def get(self, key: str) -> Optional[str]:
        """
        Get a value.

        Returns:
            Stored string, or None if absent or Redis is unreachable
        """
        await self.connect()
        try:
            value = await self._client.get(self._key(key))
        except RedisError as e:
            logger.error(f"Redis GET error for key '{key}': {e}")
            self._stats["errors"] += 1
            return None

        self._stats["reads"] += 1
        if value is None:
            self._stats["misses"] += 1
            return None
        if isinstance(value, bytes):
            value = value.decode("utf-8")
        return value

    async def set(self, key: str, value: str) -> None:
        await self.connect()
        try:
            await self._client.set(self._key(key), value)
        except RedisError as e:
            self._stats["errors"] += 1
            raise wrap_storage_exception(e, operation="set", key=key)
        self._stats["writes"] += 1
        logger.debug(f"Redis SET: {key}")

    async def remove(self, key: str) -> None:
        await self.connect()
        try:
            await self._client.delete(self._key(key))
        except RedisError as e:
            self._stats["errors"] += 1
            raise wrap_storage_exception(e, operation="remove", key=key)
        self._stats["deletes"] += 1
        logger.debug(f"Redis DELETE: {key}")

    async def keys(self) -> list[str]:
        await self.connect()
        found = []
        try:
            async for raw_key in self._client.scan_iter(match=f"{self.key_prefix}*"):
                if isinstance(raw_key, bytes):
                    raw_key = raw_key.decode("utf-8")
                found.append(raw_key[len(self.key_prefix):])
        except RedisError as e:
            logger.error(f"Redis SCAN error: {e}")
            self._stats["errors"] += 1
        return found

    def get_stats(self) -> dict[str, Any]:
        """Operation counters"""
        return dict(self._stats)
