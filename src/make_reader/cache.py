"""
Expiring key-value cache for blog post lists.

Each blog's API response is cached under a key derived from its
endpoint URL, so repeated page renders within the TTL don't hit the
network. Expired entries are treated as absent.

The contract is purely temporal: any backend that honours
get/set-with-ttl can be passed to the aggregator instead of
InMemoryCache.
"""

import copy
import hashlib
import threading
import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any

import structlog

logger = structlog.get_logger()

CACHE_KEY_PREFIX = "make_reader_"
CACHE_KEY_HASH_LENGTH = 21


def cache_key(endpoint: str) -> str:
    """
    Derive the cache key for an endpoint URL.

    A fixed prefix keeps our keys apart from unrelated cache users; the
    truncated MD5 keeps keys short and stable across processes.
    """
    digest = hashlib.md5(endpoint.encode()).hexdigest()[:CACHE_KEY_HASH_LENGTH]
    return f"{CACHE_KEY_PREFIX}{digest}"


class CacheStore(ABC):
    """Minimal interface the aggregator needs from a cache."""

    @abstractmethod
    def get(self, key: str) -> Any | None:
        """Return the cached value, or None if missing or expired."""

    @abstractmethod
    def set(self, key: str, value: Any, ttl: float) -> None:
        """Store value, expiring ttl seconds from now."""


class InMemoryCache(CacheStore):
    """
    Thread-safe in-process cache.

    Values are deep-copied on the way in and out so callers can never
    mutate a stored entry; writes to the same key are last-write-wins.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        """
        Args:
            clock: Source of the current time in seconds. Tests pass a fake.
        """
        self._clock = clock
        self._entries: dict[str, tuple[Any, float]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Any | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None

            value, expires_at = entry
            if self._clock() >= expires_at:
                del self._entries[key]
                logger.debug("Cache entry expired", key=key)
                return None

            return copy.deepcopy(value)

    def set(self, key: str, value: Any, ttl: float) -> None:
        stored = copy.deepcopy(value)
        with self._lock:
            self._entries[key] = (stored, self._clock() + ttl)

    def clear(self) -> None:
        """Drop every entry."""
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
