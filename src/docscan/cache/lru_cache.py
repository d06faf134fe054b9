"""Bounded LRU cache for parsed document content."""

from __future__ import annotations

import time
from collections import OrderedDict
from dataclasses import dataclass
from threading import RLock
from typing import Any, Dict, Generic, List, Optional, TypeVar

V = TypeVar("V")

DEFAULT_MAX_ENTRIES = 1000


@dataclass(frozen=True, slots=True)
class CacheEntry(Generic[V]):
    """A cached value and the time it was last read or written.

    Entries are immutable: a cache hit replaces the entry with a fresh
    timestamp instead of touching the old one.
    """

    key: str
    value: V
    last_accessed: float


class LRUCache(Generic[V]):
    """Thread-safe least-recently-used cache keyed by absolute file path."""

    def __init__(self, max_entries: int = DEFAULT_MAX_ENTRIES) -> None:
        """
        Initialize the cache.

        Args:
            max_entries: Maximum number of entries kept before eviction
        """
        if max_entries <= 0:
            raise ValueError("max_entries must be positive")

        # Iteration order is recency order: first item is least recently used
        self._entries: OrderedDict[str, CacheEntry[V]] = OrderedDict()
        self._max_entries = max_entries
        self._lock = RLock()

    @property
    def max_entries(self) -> int:
        return self._max_entries

    def get(self, key: str) -> Optional[V]:
        """Return the cached value for `key` and mark it most recently used."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            self._entries[key] = CacheEntry(key, entry.value, time.monotonic())
            self._entries.move_to_end(key)
            return entry.value

    def set(self, key: str, value: V) -> None:
        """Store `value`, evicting the least recently used entry when full."""
        with self._lock:
            if key in self._entries:
                self._entries[key] = CacheEntry(key, value, time.monotonic())
                self._entries.move_to_end(key)
                return

            if len(self._entries) >= self._max_entries:
                self._entries.popitem(last=False)

            self._entries[key] = CacheEntry(key, value, time.monotonic())

    def clear(self) -> int:
        """Drop every entry and return how many there were."""
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
            return count

    def keys(self) -> List[str]:
        """Keys from least to most recently used."""
        with self._lock:
            return list(self._entries)

    def entry(self, key: str) -> Optional[CacheEntry[V]]:
        """Peek at an entry without refreshing its recency."""
        with self._lock:
            return self._entries.get(key)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get_stats(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "size": len(self._entries),
                "max_entries": self._max_entries,
                "usage_ratio": len(self._entries) / self._max_entries,
            }
