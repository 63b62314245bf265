"""Read-through cache for case detail and statistics, backed by Redis.

The cache is advisory: a failed read is treated as a miss and a failed
write or delete is logged, so callers always fall back to the database.
"""

import json
import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import redis.asyncio as redis
from redis.exceptions import RedisError

from arbiter.config import settings

logger = logging.getLogger(__name__)

T = TypeVar("T")

CACHE_PREFIX = "arbiter"


class DisputeCache:
    """Redis-backed key/value cache with JSON values and a fixed key prefix."""

    def __init__(self, redis_client: redis.Redis | None = None) -> None:
        self._redis = redis_client

    async def _get_redis(self) -> redis.Redis:
        if self._redis is None:
            self._redis = redis.from_url(settings.redis_url, decode_responses=True)
        return self._redis

    def _make_key(self, key: str) -> str:
        return f"{CACHE_PREFIX}:{key}"

    async def get(self, key: str) -> Any | None:
        """Return the cached value for ``key``, or None on miss or cache failure."""
        try:
            client = await self._get_redis()
            raw = await client.get(self._make_key(key))
        except RedisError as exc:
            logger.warning("Cache read failed for %s: %s", key, exc)
            return None
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            logger.warning("Discarding undecodable cache entry %s", key)
            return None

    async def set(self, key: str, value: Any, ttl: int) -> None:
        """Store ``value`` under ``key`` for ``ttl`` seconds."""
        try:
            client = await self._get_redis()
            await client.set(self._make_key(key), json.dumps(value, default=str), ex=ttl)
        except RedisError as exc:
            logger.warning("Cache write failed for %s: %s", key, exc)

    async def delete(self, key: str) -> None:
        try:
            client = await self._get_redis()
            await client.delete(self._make_key(key))
        except RedisError as exc:
            logger.warning("Cache delete failed for %s: %s", key, exc)

    async def get_or_set(
        self,
        key: str,
        factory: Callable[[], Awaitable[T]],
        ttl: int,
    ) -> T:
        """Return cached value if present, otherwise compute via factory, cache, and return.

        Args:
            key: Cache key (without prefix).
            factory: Async callable that produces a JSON-serialisable value on miss.
            ttl: Time-to-live in seconds.
        """
        cached = await self.get(key)
        if cached is not None:
            return cached
        value = await factory()
        await self.set(key, value, ttl=ttl)
        return value

    async def close(self) -> None:
        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None


_cache: DisputeCache | None = None


def get_cache() -> DisputeCache:
    """FastAPI dependency returning the process-wide cache client."""
    global _cache
    if _cache is None:
        _cache = DisputeCache()
    return _cache
