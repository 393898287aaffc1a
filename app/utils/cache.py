"""
In-process TTL caches.

Three caches live per service container: the alert dedupe window
(``alert:<hive>:<type>`` -> open alert id), weather responses keyed by
rounded coordinates, and the per-user dashboard summary. The registry
exposes their statistics on ``/api/v1/health/cache``.
"""

from __future__ import annotations

import time
from collections import OrderedDict
from threading import Lock
from typing import Any, Callable, NamedTuple


class _Entry(NamedTuple):
    expires_at: float
    value: Any


class TTLCache:
    """LRU-bounded mapping whose entries expire ``ttl_seconds`` after they are set.

    ``None`` is never stored, so a loader returning ``None`` is called
    again on the next lookup. A disabled cache (``enabled=False`` or a
    non-positive ttl/maxsize) stores nothing and always calls the loader.
    """

    def __init__(self, *, enabled: bool = True, ttl_seconds: int = 30, maxsize: int = 128) -> None:
        self.enabled = enabled and ttl_seconds > 0 and maxsize > 0
        self.ttl = max(1, ttl_seconds) if self.enabled else 0
        self.maxsize = max(1, maxsize) if self.enabled else 0
        self._entries: OrderedDict[Any, _Entry] = OrderedDict()
        self._lock = Lock()
        self._hits = self._misses = self._evictions = 0

    def _live(self, key: Any, now: float) -> _Entry | None:
        # Caller holds the lock
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.expires_at <= now:
            del self._entries[key]
            return None
        return entry

    def get(self, key: Any, loader: Callable[[], Any] | None = None) -> Any:
        """Cached value for ``key``; on a miss ``loader()`` is called and its result stored."""
        if self.enabled:
            with self._lock:
                entry = self._live(key, time.monotonic())
                if entry is not None:
                    self._hits += 1
                    self._entries.move_to_end(key)
                    return entry.value
                self._misses += 1
        else:
            self._misses += 1

        if loader is None:
            return None
        value = loader()
        self.set(key, value)
        return value

    def set(self, key: Any, value: Any) -> None:
        if not self.enabled:
            return
        with self._lock:
            if value is None:
                self._entries.pop(key, None)
                return
            self._entries[key] = _Entry(time.monotonic() + self.ttl, value)
            self._entries.move_to_end(key)
            while len(self._entries) > self.maxsize:
                self._entries.popitem(last=False)
                self._evictions += 1

    def __contains__(self, key: Any) -> bool:
        if not self.enabled:
            return False
        with self._lock:
            return self._live(key, time.monotonic()) is not None

    def invalidate(self, key: Any) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def invalidate_prefix(self, prefix: str) -> int:
        """Drop every string key starting with ``prefix``; returns how many were dropped."""
        with self._lock:
            doomed = [key for key in self._entries if isinstance(key, str) and key.startswith(prefix)]
            for key in doomed:
                del self._entries[key]
        return len(doomed)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def get_stats(self) -> dict[str, Any]:
        """Enabled flag, size, maxsize, ttl_seconds, hits, misses, hit_rate (0-100) and evictions."""
        with self._lock:
            size = len(self._entries)
            hits, misses, evictions = self._hits, self._misses, self._evictions

        lookups = hits + misses
        return {
            "enabled": self.enabled,
            "size": size,
            "maxsize": self.maxsize,
            "ttl_seconds": self.ttl,
            "hits": hits,
            "misses": misses,
            "hit_rate": round(hits / lookups * 100, 2) if lookups else 0.0,
            "evictions": evictions,
        }


class CacheRegistry:
    """Named TTLCaches owned by one service container."""

    def __init__(self) -> None:
        self._caches: dict[str, TTLCache] = {}
        self._lock = Lock()

    def register(self, name: str, cache: TTLCache) -> TTLCache:
        """Track ``cache`` under ``name`` (e.g. ``"weather"``) and return it."""
        with self._lock:
            if name in self._caches:
                raise ValueError(f"Cache '{name}' is already registered")
            self._caches[name] = cache
        return cache

    def get_all_stats(self) -> dict[str, dict[str, Any]]:
        with self._lock:
            caches = dict(self._caches)
        return {name: cache.get_stats() for name, cache in caches.items()}

    def clear_all(self) -> None:
        with self._lock:
            caches = list(self._caches.values())
        for cache in caches:
            cache.clear()
