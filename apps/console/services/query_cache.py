"""
apps.console.services.query_cache
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~
Explicit keyed cache for store reads made by the console.

Keys are tuples, e.g. ``("apps",)`` or ``("config", app_id)``.  Entries live
until they are invalidated.  One instance is shared through the
:class:`~apps.console.context.ConsoleContext`.
"""
from __future__ import annotations

import threading
from typing import Any, Callable, Hashable

import structlog

logger = structlog.get_logger(__name__)

CacheKey = tuple[Hashable, ...]

_MISSING = object()


class QueryCache:
    """A thread-safe keyed cache with explicit invalidation."""

    def __init__(self) -> None:
        self._entries: dict[CacheKey, Any] = {}
        self._lock = threading.Lock()

    def __contains__(self, key: CacheKey) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get(self, key: CacheKey, default: Any = None) -> Any:
        with self._lock:
            return self._entries.get(key, default)

    def set(self, key: CacheKey, value: Any) -> None:
        with self._lock:
            self._entries[key] = value

    def get_or_fetch(self, key: CacheKey, fetcher: Callable[[], Any]) -> Any:
        """
        Return the cached value for *key*, calling *fetcher* on a miss.

        The fetch runs outside the lock; a failed fetch caches nothing and
        its exception propagates.
        """
        with self._lock:
            value = self._entries.get(key, _MISSING)
        if value is not _MISSING:
            return value

        value = fetcher()
        with self._lock:
            self._entries[key] = value
        logger.debug("cache_filled", key=key)
        return value

    def invalidate(self, key: CacheKey) -> bool:
        """Drop one entry.  Returns True if it was present."""
        with self._lock:
            removed = self._entries.pop(key, _MISSING) is not _MISSING
        if removed:
            logger.debug("cache_invalidated", key=key)
        return removed

    def invalidate_prefix(self, prefix: CacheKey) -> int:
        """Drop every entry whose key starts with *prefix*."""
        size = len(prefix)
        with self._lock:
            doomed = [key for key in self._entries if key[:size] == prefix]
            for key in doomed:
                del self._entries[key]
        return len(doomed)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()


def apps_key() -> CacheKey:
    return ("apps",)


def config_key(app_id: str) -> CacheKey:
    return ("config", app_id)
