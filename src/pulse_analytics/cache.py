"""
In-memory result cache for dashboard summaries.
"""

import time
from collections.abc import Callable, Hashable
from threading import Lock
from typing import Any


class ResultCache:
    """Key -> (value, stored_at) store with a fixed TTL.

    Owned by the caller and injected into the service; the aggregation
    engine never sees it. Thread-safe.
    """

    def __init__(self, ttl_seconds: float, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[Hashable, tuple[Any, float]] = {}
        self._lock = Lock()

    def get(self, key: Hashable) -> Any | None:
        """Return the cached value, or None if missing or expired."""
        now = self._clock()

        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            value, stored_at = entry
            if now - stored_at >= self.ttl_seconds:
                del self._entries[key]
                return None
            return value

    def set(self, key: Hashable, value: Any) -> None:
        """Store a value, replacing any previous entry for the key."""
        now = self._clock()

        with self._lock:
            self._entries[key] = (value, now)

    def clear(self) -> None:
        """Drop every entry."""
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
