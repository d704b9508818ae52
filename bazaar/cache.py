"""
Response cache (cache-aside).

Backed by Upstash Redis when configured, otherwise by an in-process
TLRU cache. Values are stored as JSON. Cache errors are logged and treated
as misses so a broken cache never fails a request.
"""
import fnmatch
import json
import time
from typing import Any, Optional

from cachetools import TLRUCache

from bazaar.config import get_settings
from bazaar.db import get_redis
from bazaar.logging import get_logger

logger = get_logger(__name__)

LOCAL_CACHE_SIZE = 2048


class CacheKeys:
    """Cache key builders."""

    PRODUCTS = "products:"
    PRODUCT = "product:"
    CATEGORIES = "categories:"
    CATEGORY = "category:"
    GATEWAY = "gql:"

    @staticmethod
    def products(page: int, limit: int) -> str:
        return f"{CacheKeys.PRODUCTS}{page}:{limit}"

    @staticmethod
    def product(product_id: str) -> str:
        return f"{CacheKeys.PRODUCT}{product_id}"

    @staticmethod
    def categories() -> str:
        return f"{CacheKeys.CATEGORIES}all"

    @staticmethod
    def category(category_id: str) -> str:
        return f"{CacheKeys.CATEGORY}{category_id}"


class CacheTTL:
    """Cache TTLs in seconds."""

    PRODUCTS = 60
    PRODUCT_DETAIL = 300
    CATEGORIES = 120
    GATEWAY_PRODUCTS = 60
    GATEWAY_CATEGORIES = 120


def _expires_at(_key, value, now):
    ttl, _ = value
    return now + ttl


class CacheService:
    """Key/value cache with TTL and glob-pattern invalidation."""

    def __init__(self, redis_client: Any = None, maxsize: int = LOCAL_CACHE_SIZE):
        self.redis = redis_client
        self._local: TLRUCache = TLRUCache(maxsize=maxsize, ttu=_expires_at, timer=time.monotonic)

    @property
    def backend(self) -> str:
        return "redis" if self.redis is not None else "memory"

    async def get(self, key: str) -> Optional[Any]:
        """Return the cached value or None on miss/error."""
        if self.redis is not None:
            try:
                raw = await self.redis.get(key)
            except Exception as e:
                logger.warning(f"Cache read failed for {key}: {e}")
                return None
            if raw is None:
                return None
            try:
                return json.loads(raw)
            except (TypeError, ValueError):
                logger.warning(f"Corrupted cache entry {key}, dropping it")
                await self.delete(key)
                return None

        entry = self._local.get(key)
        return entry[1] if entry is not None else None

    async def set(self, key: str, value: Any, ttl: int) -> None:
        """Store value for ttl seconds."""
        payload = json.dumps(value, default=str)
        if self.redis is not None:
            try:
                await self.redis.set(key, payload, ex=ttl)
            except Exception as e:
                logger.warning(f"Cache write failed for {key}: {e}")
            return

        # Round-trip through JSON so local and Redis hits look the same
        self._local[key] = (ttl, json.loads(payload))

    async def delete(self, key: str) -> None:
        if self.redis is not None:
            try:
                await self.redis.delete(key)
            except Exception as e:
                logger.warning(f"Cache delete failed for {key}: {e}")
            return
        self._local.pop(key, None)

    async def delete_pattern(self, pattern: str) -> int:
        """Delete every key matching a glob pattern (e.g. ``products:*``)."""
        if self.redis is not None:
            return await self._delete_pattern_redis(pattern)

        matched = [k for k in tuple(self._local.keys()) if fnmatch.fnmatchcase(k, pattern)]
        for key in matched:
            self._local.pop(key, None)
        if matched:
            logger.debug(f"Invalidated {len(matched)} cache keys for {pattern}")
        return len(matched)

    async def _delete_pattern_redis(self, pattern: str) -> int:
        deleted = 0
        cursor = 0
        try:
            while True:
                cursor, keys = await self.redis.scan(cursor, match=pattern, count=100)
                if keys:
                    await self.redis.delete(*keys)
                    deleted += len(keys)
                if int(cursor) == 0:
                    break
        except Exception as e:
            logger.warning(f"Cache pattern delete failed for {pattern}: {e}")
        if deleted:
            logger.debug(f"Invalidated {deleted} cache keys for {pattern}")
        return deleted

    async def clear(self) -> None:
        """Drop everything in the local cache (Redis is left alone)."""
        self._local.clear()


# Singleton instance
_cache_service: Optional[CacheService] = None


def get_cache() -> CacheService:
    """Get CacheService singleton (Redis-backed when configured)."""
    global _cache_service
    if _cache_service is None:
        redis_client = None
        if get_settings().redis_configured:
            redis_client = get_redis()
        _cache_service = CacheService(redis_client)
        logger.info(f"Cache backend: {_cache_service.backend}")
    return _cache_service


def set_cache(cache: Optional[CacheService]) -> None:
    """Replace the cache singleton (tests)."""
    global _cache_service
    _cache_service = cache
