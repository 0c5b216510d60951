"""
Redis persistence backend for the enchanted query cache.
"""

import json
from typing import Any, List, Optional, Sequence

import redis.asyncio as redis

from shared.logging import get_logger
from shared.errors import StorageError
from .base import ErrorCallback


class RedisQueryStorage:
    """JSON-encoded query values stored under prefixed Redis keys."""

    def __init__(
        self,
        redis_url: str = "redis://localhost:6379/0",
        *,
        key_prefix: str = "enchanted:",
        socket_timeout: float = 5.0,
        client: Optional[redis.Redis] = None,
    ):
        self.redis_url = redis_url
        self.key_prefix = key_prefix
        self.socket_timeout = socket_timeout
        self.logger = get_logger("enchanted_cache.storage.redis")
        self._redis: Optional[redis.Redis] = client

    @classmethod
    def from_settings(cls, settings) -> "RedisQueryStorage":
        """Build the storage from ``CacheSyncSettings``."""
        return cls(
            settings.redis_url,
            key_prefix=settings.storage_key_prefix,
            socket_timeout=settings.socket_timeout,
        )

    async def _get_redis(self) -> redis.Redis:
        """Get Redis connection."""
        if self._redis is None:
            self._redis = redis.from_url(
                self.redis_url,
                encoding="utf-8",
                decode_responses=True,
                socket_connect_timeout=self.socket_timeout,
                socket_timeout=self.socket_timeout,
                retry_on_timeout=True,
            )
        return self._redis

    async def close(self):
        """Close the Redis connection."""
        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None
            self.logger.info("Redis query storage closed")

    def _make_key(self, key: str) -> str:
        return f"{self.key_prefix}{key}"

    async def get_query(self, key: str) -> Optional[Any]:
        """Read and decode a stored query value."""
        try:
            redis_client = await self._get_redis()
            raw = await redis_client.get(self._make_key(key))
        except Exception as e:
            raise StorageError(f"Failed to read {key}", {"key": key, "error": str(e)}) from e
        return self._decode(key, raw)

    async def save_query(self, key: str, value: Any) -> None:
        """Encode and store a query value."""
        try:
            payload = json.dumps(value)
        except (TypeError, ValueError) as e:
            raise StorageError(f"Value for {key} is not JSON serializable", {"key": key, "error": str(e)}) from e

        try:
            redis_client = await self._get_redis()
            await redis_client.set(self._make_key(key), payload)
        except Exception as e:
            raise StorageError(f"Failed to save {key}", {"key": key, "error": str(e)}) from e

        self.logger.debug("Saved query", key=key)

    async def multi_get(
        self, keys: Sequence[str], error_callback: Optional[ErrorCallback] = None
    ) -> List[Optional[Any]]:
        """Read many values; failures are reported through ``error_callback``."""
        keys = list(keys)
        if not keys:
            if error_callback:
                error_callback(None)
            return []

        errors: List[Exception] = []
        values: List[Optional[Any]] = [None] * len(keys)
        try:
            redis_client = await self._get_redis()
            raw_values = await redis_client.mget([self._make_key(key) for key in keys])
        except Exception as e:
            errors.append(StorageError("Bulk read failed", {"keys": keys, "error": str(e)}))
            raw_values = [None] * len(keys)

        for index, (key, raw) in enumerate(zip(keys, raw_values)):
            try:
                values[index] = self._decode(key, raw)
            except StorageError as e:
                errors.append(e)

        if error_callback:
            error_callback(errors or None)
        return values

    async def multi_remove(self, keys: Sequence[str]) -> None:
        """Delete many keys at once."""
        keys = list(keys)
        if not keys:
            return
        try:
            redis_client = await self._get_redis()
            await redis_client.delete(*[self._make_key(key) for key in keys])
        except Exception as e:
            raise StorageError("Bulk remove failed", {"keys": keys, "error": str(e)}) from e

        self.logger.info("Removed stored queries", count=len(keys))

    def _decode(self, key: str, raw: Any) -> Optional[Any]:
        if raw is None:
            return None
        try:
            if isinstance(raw, bytes):
                raw = raw.decode("utf-8")
            return json.loads(raw)
        except (UnicodeDecodeError, ValueError) as e:
            raise StorageError(f"Corrupt value stored under {key}", {"key": key, "error": str(e)}) from e

    async def health_check(self) -> bool:
        """Check Redis health."""
        try:
            redis_client = await self._get_redis()
            await redis_client.ping()
            return True
        except Exception:
            return False
