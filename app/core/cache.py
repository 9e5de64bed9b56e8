import json
import asyncio
import fnmatch
from abc import ABC, abstractmethod
from typing import Any, Optional, Dict
import time
import logging

import redis.asyncio as redis

from app.core.config import settings

logger = logging.getLogger(__name__)


class CacheInvalidationError(Exception):
    """A key that had to be removed could not be."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"Could not delete cache key {key}")


def _serialize(value: Any) -> str:
    return json.dumps(value, default=str)

def _deserialize(value: str) -> Any:
    try:
        return json.loads(value)
    except (json.JSONDecodeError, TypeError):
        return value


class CacheBackend(ABC):
    @abstractmethod
    async def get(self, key: str) -> Optional[Any]:
        pass

    @abstractmethod
    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        pass

    @abstractmethod
    async def delete(self, key: str, strict: bool = False) -> bool:
        """With ``strict`` a backend failure raises ``CacheInvalidationError`` instead of returning False."""
        pass

    @abstractmethod
    async def delete_pattern(self, pattern: str) -> int:
        pass

    @abstractmethod
    async def clear(self) -> bool:
        pass

    @abstractmethod
    async def exists(self, key: str) -> bool:
        pass


class MemoryCacheBackend(CacheBackend):
    """Process-local backend. Values are stored as JSON text, like Redis, so a
    cached snapshot can never be mutated through a live reference."""

    def __init__(self):
        self._cache: Dict[str, Dict] = {}
        self._lock = asyncio.Lock()

    async def get(self, key: str) -> Optional[Any]:
        async with self._lock:
            item = self._cache.get(key)
            if item is None:
                return None
            if item["expiry"] and time.time() >= item["expiry"]:
                del self._cache[key]
                return None
            return _deserialize(item["value"])

    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        if ttl is None:
            ttl = settings.CACHE_TTL
        async with self._lock:
            self._cache[key] = {
                "value": _serialize(value),
                "expiry": time.time() + ttl if ttl > 0 else 0,
                "created_at": time.time()
            }
            return True

    async def delete(self, key: str, strict: bool = False) -> bool:
        async with self._lock:
            return self._cache.pop(key, None) is not None

    async def delete_pattern(self, pattern: str) -> int:
        async with self._lock:
            keys_to_delete = [key for key in self._cache if fnmatch.fnmatch(key, pattern)]
            for key in keys_to_delete:
                del self._cache[key]
            return len(keys_to_delete)

    async def clear(self) -> bool:
        async with self._lock:
            self._cache.clear()
            return True

    async def exists(self, key: str) -> bool:
        return await self.get(key) is not None

    def keys(self):
        return list(self._cache.keys())


class RedisCacheBackend(CacheBackend):
    def __init__(self, redis_url: str):
        self.redis = redis.from_url(redis_url, decode_responses=True)

    async def get(self, key: str) -> Optional[Any]:
        try:
            value = await self.redis.get(key)
            return _deserialize(value) if value else None
        except Exception as e:
            logger.error(f"Redis GET error for key {key}: {e}")
            return None

    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        try:
            serialized = _serialize(value)
            if ttl is None:
                ttl = settings.CACHE_TTL
            if ttl == 0:
                await self.redis.set(key, serialized)
            else:
                await self.redis.setex(key, ttl, serialized)
            return True
        except Exception as e:
            logger.error(f"Redis SET error for key {key}: {e}")
            return False

    async def delete(self, key: str, strict: bool = False) -> bool:
        try:
            result = await self.redis.delete(key)
            return result > 0
        except Exception as e:
            logger.error(f"Redis DELETE error for key {key}: {e}")
            if strict:
                raise CacheInvalidationError(key) from e
            return False

    async def delete_pattern(self, pattern: str) -> int:
        try:
            keys = [key async for key in self.redis.scan_iter(match=pattern)]
            if keys:
                return await self.redis.delete(*keys)
            return 0
        except Exception as e:
            logger.error(f"Redis pattern delete error for {pattern}: {e}")
            return 0

    async def clear(self) -> bool:
        try:
            await self.redis.flushdb()
            return True
        except Exception as e:
            logger.error(f"Redis CLEAR error: {e}")
            return False

    async def exists(self, key: str) -> bool:
        try:
            return await self.redis.exists(key) > 0
        except Exception as e:
            logger.error(f"Redis EXISTS error for key {key}: {e}")
            return False


def create_cache_backend() -> CacheBackend:
    if settings.REDIS_URL:
        logger.info("Initializing Redis cache backend")
        return RedisCacheBackend(settings.REDIS_URL)

    logger.info("Using in-memory cache backend")
    return MemoryCacheBackend()


class CacheManager:
    def __init__(self, backend: CacheBackend):
        self.backend = backend

    async def get(self, key: str) -> Optional[Any]:
        if not settings.CACHE_ENABLED:
            return None
        return await self.backend.get(key)

    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        if not settings.CACHE_ENABLED:
            return False
        return await self.backend.set(key, value, ttl)

    async def delete(self, key: str, strict: bool = False) -> bool:
        return await self.backend.delete(key, strict=strict)

    async def delete_pattern(self, pattern: str) -> int:
        if any(ch in pattern for ch in "*?["):
            return await self.backend.delete_pattern(pattern)
        return int(await self.backend.delete(pattern))

    async def clear(self) -> bool:
        return await self.backend.clear()

cache = CacheManager(create_cache_backend())
