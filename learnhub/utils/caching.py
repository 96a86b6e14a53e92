"""
Caching utility module for LearnHub.

Two interchangeable stores share one interface: a process-local memory cache
and a Redis cache. Values must be JSON serializable so either store can be
used behind the same call sites.
"""

import json
import threading
import time
from typing import Any, Callable, Dict, Optional

import redis

from learnhub.models.schemas import CacheEntry
from learnhub.utils.logger import logging


class BaseCache:
    """Interface for TTL key-value stores."""

    backend = "base"

    def get(self, key: str) -> Optional[Any]:
        raise NotImplementedError

    def set(self, key: str, value: Any, ttl_seconds: int = 3600) -> bool:
        raise NotImplementedError

    def delete(self, key: str) -> bool:
        raise NotImplementedError

    def sweep(self) -> int:
        raise NotImplementedError

    def clear(self) -> None:
        raise NotImplementedError

    def size(self) -> int:
        raise NotImplementedError


class MemoryCache(BaseCache):
    """In-memory cache with per-entry expiry."""

    backend = "memory"

    def __init__(self, clock: Callable[[], float] = time.time):
        self._store: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()
        self._clock = clock

    def get(self, key: str) -> Optional[Any]:
        """
        Get a value from the cache.

        Args:
            key: Cache key

        Returns:
            Cached value or None if not found or expired
        """
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                return None

            if self._clock() > entry.expires_at:
                # Remove expired entry
                del self._store[key]
                return None

            return entry.value

    def set(self, key: str, value: Any, ttl_seconds: int = 3600) -> bool:
        """
        Set a value in the cache.

        Args:
            key: Cache key
            value: Value to cache
            ttl_seconds: Time-to-live in seconds (default: 1 hour)

        Returns:
            True once stored
        """
        entry = CacheEntry(value=value, expires_at=self._clock() + ttl_seconds)
        with self._lock:
            self._store[key] = entry
        return True

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._store.pop(key, None) is not None

    def sweep(self) -> int:
        """Drop every expired entry and return how many were removed."""
        now = self._clock()
        with self._lock:
            expired = [key for key, entry in self._store.items() if now > entry.expires_at]
            for key in expired:
                del self._store[key]
        if expired:
            logging.debug(f"Swept {len(expired)} expired cache entries")
        return len(expired)

    def clear(self) -> None:
        with self._lock:
            self._store.clear()

    def size(self) -> int:
        """Number of entries currently held, for monitoring."""
        with self._lock:
            return len(self._store)


class RedisCache(BaseCache):
    """Redis-backed cache; Redis enforces expiry itself."""

    backend = "redis"

    def __init__(self, client: "redis.Redis"):
        self._client = client

    def get(self, key: str) -> Optional[Any]:
        value = self._client.get(key)
        if value is None:
            return None
        return json.loads(value)

    def set(self, key: str, value: Any, ttl_seconds: int = 3600) -> bool:
        try:
            serialized = json.dumps(value)
        except (TypeError, ValueError):
            logging.error(f"Error serializing value for key {key}")
            return False
        return bool(self._client.setex(key, ttl_seconds, serialized))

    def delete(self, key: str) -> bool:
        return bool(self._client.delete(key))

    def sweep(self) -> int:
        return 0

    def clear(self) -> None:
        self._client.flushdb()

    def size(self) -> int:
        return int(self._client.dbsize())


def build_cache(redis_url: Optional[str] = None) -> BaseCache:
    """
    Set up the process-wide cache.

    Args:
        redis_url: Redis connection URL; empty selects the memory cache

    Returns:
        A Redis cache when the server answers, otherwise a memory cache
    """
    if not redis_url:
        logging.info("REDIS_URL not set, using in-memory caching")
        return MemoryCache()

    try:
        client = redis.from_url(redis_url)
        client.ping()
    except redis.RedisError as e:
        logging.error(f"Error configuring Redis, falling back to memory cache: {e}")
        return MemoryCache()

    logging.info("Redis cache configured successfully")
    return RedisCache(client)
