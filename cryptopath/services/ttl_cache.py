"""
In-memory TTL cache for block-explorer responses.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Hashable, Optional, Tuple


@dataclass(frozen=True)
class CacheStats:
    """Expose basic cache metrics for the health endpoint."""

    label: str
    size: int
    hits: int
    misses: int
    ttl_seconds: int


class TTLCache:
    """
    Thread-safe TTL cache with coarse-grained locking and a soft size cap.

    When the cap is reached, expired entries are purged first and then the
    entry closest to expiry is evicted.
    """

    def __init__(
        self,
        ttl_seconds: int = 120,
        *,
        max_items: int = 1024,
        label: str = "ttl_cache",
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = max(1, int(ttl_seconds))
        self.max_items = max(1, int(max_items))
        self.label = label
        self._clock = clock
        self._lock = threading.Lock()
        self._store: Dict[Hashable, Tuple[float, Any]] = {}
        self._hits = 0
        self._misses = 0

    def get(self, key: Hashable) -> Optional[Any]:
        with self._lock:
            entry = self._store.get(key)
            if not entry:
                self._misses += 1
                return None
            expires_at, value = entry
            if expires_at <= self._clock():
                self._store.pop(key, None)
                self._misses += 1
                return None
            self._hits += 1
            return value

    def set(self, key: Hashable, value: Any, *, ttl_seconds: Optional[int] = None) -> None:
        ttl = max(1, int(ttl_seconds or self.ttl_seconds))
        now = self._clock()
        with self._lock:
            if key not in self._store and len(self._store) >= self.max_items:
                self._evict(now)
            self._store[key] = (now + ttl, value)

    def get_or_load(self, key: Hashable, loader: Callable[[], Any]) -> Any:
        """Return the cached value or call ``loader`` and cache what it returns."""
        cached = self.get(key)
        if cached is not None:
            return cached
        value = loader()
        if value is not None:
            self.set(key, value)
        return value

    def invalidate(self, key: Optional[Hashable] = None) -> None:
        with self._lock:
            if key is None:
                self._store.clear()
            else:
                self._store.pop(key, None)

    def describe(self) -> CacheStats:
        with self._lock:
            return CacheStats(
                label=self.label,
                size=len(self._store),
                hits=self._hits,
                misses=self._misses,
                ttl_seconds=self.ttl_seconds,
            )

    def _evict(self, now: float) -> None:
        expired = [key for key, (expires_at, _) in self._store.items() if expires_at <= now]
        for key in expired:
            self._store.pop(key, None)
        if len(self._store) >= self.max_items:
            oldest = min(self._store, key=lambda k: self._store[k][0])
            self._store.pop(oldest, None)

    def __len__(self) -> int:  # pragma: no cover - trivial wrapper
        with self._lock:
            return len(self._store)
