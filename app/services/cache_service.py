from typing import Optional, Dict, Any
from datetime import datetime
import logging

from fastapi import Request
from pydantic import ValidationError
from sqlalchemy.orm import Session

from app.core.cache import cache, CacheInvalidationError, MemoryCacheBackend, RedisCacheBackend
from app.core.config import settings
from app.core.cache_config import CACHE_KEYS, CACHE_TTL, INVALIDATION_PATTERNS
from app.crud.course import course as course_crud
from app.schemas.course import CourseSnapshot

logger = logging.getLogger(__name__)

CACHE_HIT = "HIT"
CACHE_MISS = "MISS"

class CacheService:

    @staticmethod
    async def _invalidate_patterns(patterns: list):
        for pattern in patterns:
            deleted = await cache.delete_pattern(pattern)
            logger.info(f"Invalidated {deleted} cache entries for pattern {pattern}")

    @staticmethod
    async def invalidate_course_cache(course_id: int):
        """Drop the course snapshot, then everything derived from the course.

        Snapshots never expire, so a snapshot that survives a write would be
        served stale indefinitely: its deletion is retried and, if it still
        fails, ``CacheInvalidationError`` reaches the caller.
        """
        await CacheService._drop_key(CACHE_KEYS["course_details"].format(course_id))
        patterns = [pattern.format(course_id) for pattern in INVALIDATION_PATTERNS["course_update"]]
        await CacheService._invalidate_patterns(patterns)

    @staticmethod
    async def _drop_key(key: str):
        attempts = max(settings.CACHE_INVALIDATION_ATTEMPTS, 1)
        for attempt in range(1, attempts + 1):
            try:
                await cache.delete(key, strict=True)
                return
            except CacheInvalidationError:
                if attempt == attempts:
                    logger.error(f"Giving up on invalidating {key} after {attempts} attempts")
                    raise
                logger.warning(f"Invalidation of {key} failed (attempt {attempt}/{attempts}), retrying")

    @staticmethod
    async def invalidate_user_cache(user_id: int):
        patterns = [pattern.format(user_id) for pattern in INVALIDATION_PATTERNS["user_update"]]
        await CacheService._invalidate_patterns(patterns)

    @staticmethod
    async def invalidate_quiz_cache(course_id: Optional[int] = None):
        await CacheService._invalidate_patterns(INVALIDATION_PATTERNS["quiz_update"])
        if course_id is not None:
            await CacheService.invalidate_course_cache(course_id)

    @staticmethod
    async def invalidate_progress_cache(user_id: int, course_id: int):
        patterns = [pattern.format(user_id, course_id) for pattern in INVALIDATION_PATTERNS["progress_update"]]
        await CacheService._invalidate_patterns(patterns)

    @staticmethod
    async def invalidate_category_cache():
        await CacheService._invalidate_patterns(INVALIDATION_PATTERNS["category_update"])

    @staticmethod
    async def invalidate_level_cache():
        await CacheService._invalidate_patterns(INVALIDATION_PATTERNS["level_update"])

    @staticmethod
    async def invalidate_notification_cache(author_id: int):
        patterns = [pattern.format(author_id) for pattern in INVALIDATION_PATTERNS["notification_update"]]
        await CacheService._invalidate_patterns(patterns)

    @staticmethod
    def build_course_snapshot(db: Session, course_id: int) -> Optional[CourseSnapshot]:
        course = course_crud.get(db, id=course_id)
        if not course:
            return None
        return CourseSnapshot.model_validate(course)

    @staticmethod
    async def get_course_snapshot(db: Session, course_id: int, request: Optional[Request] = None) -> Optional[CourseSnapshot]:
        """Read-through: the cached snapshot if present, else the store (and repopulate)."""
        key = CACHE_KEYS["course_details"].format(course_id)
        cached = await cache.get(key)
        if cached is not None:
            try:
                snapshot = CourseSnapshot.model_validate(cached)
                CacheService._record_status(request, CACHE_HIT)
                logger.debug(f"Course {course_id} served from cache")
                return snapshot
            except ValidationError as e:
                logger.warning(f"Discarding unreadable cache entry {key}: {e}")
                await cache.delete(key)

        snapshot = CacheService.build_course_snapshot(db, course_id)
        CacheService._record_status(request, CACHE_MISS)
        if snapshot is None:
            return None
        await cache.set(key, snapshot.model_dump(mode="json"), ttl=CACHE_TTL["course_details"])
        return snapshot

    @staticmethod
    def _record_status(request: Optional[Request], status: str):
        if request is not None:
            request.state.cache_status = status

    @staticmethod
    async def get_cache_stats() -> Dict[str, Any]:
        try:
            stats = {
                "backend": "Redis" if isinstance(cache.backend, RedisCacheBackend) else "Memory",
                "timestamp": datetime.utcnow().isoformat()
            }

            if isinstance(cache.backend, RedisCacheBackend):
                info = await cache.backend.redis.info()
                stats.update({
                    "redis_version": info.get("redis_version"),
                    "used_memory": info.get("used_memory_human"),
                    "connected_clients": info.get("connected_clients"),
                    "keyspace_hits": info.get("keyspace_hits", 0),
                    "keyspace_misses": info.get("keyspace_misses", 0),
                })
            elif isinstance(cache.backend, MemoryCacheBackend):
                keys = cache.backend.keys()
                stats.update({
                    "memory_cache_size": len(keys),
                    "cache_entries": keys[:10]
                })

            return stats
        except Exception as e:
            logger.error(f"Failed to get cache stats: {e}")
            return {"error": str(e)}

    @staticmethod
    async def health_check() -> bool:
        if not settings.CACHE_ENABLED:
            return True
        try:
            test_key = "health_check_test"
            test_value = {"timestamp": datetime.utcnow().isoformat()}

            await cache.set(test_key, test_value, ttl=10)
            retrieved = await cache.get(test_key)
            await cache.delete(test_key)

            return retrieved == test_value
        except Exception as e:
            logger.error(f"Cache health check failed: {e}")
            return False

cache_service = CacheService()
