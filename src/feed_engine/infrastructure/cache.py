"""Redis-backed key-value cache for timeline pages and account summaries."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from redis import asyncio as redis_async
from redis.exceptions import RedisError

from ..interfaces.services import ICache

logger = logging.getLogger(__name__)

_CACHE_ERRORS = (RedisError, OSError, asyncio.TimeoutError)


class RedisCache(ICache):
    """Read-through cache backend.

    The cache is an optimisation only: every failure is logged and reported as
    a miss (or a no-op write) so readers fall back to the store.
    """

    def __init__(self, redis_client: redis_async.Redis, key_prefix: str = ""):
        self._redis = redis_client
        self._prefix = key_prefix

    def _key(self, key: str) -> str:
        return f"{self._prefix}{key}"

    async def get(self, key: str) -> Optional[str]:
        try:
            value = await self._redis.get(self._key(key))
        except _CACHE_ERRORS as exc:
            logger.warning("Cache get failed | key=%s | error=%s", key, exc)
            return None
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return value

    async def set(self, key: str, value: str, ttl: int) -> bool:
        try:
            await self._redis.set(self._key(key), value, ex=ttl)
            return True
        except _CACHE_ERRORS as exc:
            logger.warning("Cache set failed | key=%s | error=%s", key, exc)
            return False

    async def delete(self, key: str) -> bool:
        try:
            return bool(await self._redis.delete(self._key(key)))
        except _CACHE_ERRORS as exc:
            logger.warning("Cache delete failed | key=%s | error=%s", key, exc)
            return False

    async def incr(self, key: str) -> Optional[int]:
        try:
            return int(await self._redis.incr(self._key(key)))
        except _CACHE_ERRORS as exc:
            logger.warning("Cache incr failed | key=%s | error=%s", key, exc)
            return None

    async def expire(self, key: str, ttl: int) -> bool:
        try:
            return bool(await self._redis.expire(self._key(key), ttl))
        except _CACHE_ERRORS as exc:
            logger.warning("Cache expire failed | key=%s | error=%s", key, exc)
            return False
