"""
In-memory book cache with LRU eviction and TTL expiry.

Entries expire ``ttl_millis`` after they were last *written*; reads refresh
recency but never the timestamp. When a new key arrives at capacity the least
recently used entry is evicted, whether or not it has expired yet.
"""

import logging
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Callable, Dict, Generic, Hashable, List, Optional, TypeVar

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")

DEFAULT_CAPACITY = 100
DEFAULT_TTL_MILLIS = 30 * 60 * 1000

Clock = Callable[[], int]


def system_clock() -> int:
    """Current wall-clock time in milliseconds since the Unix epoch."""
    return int(time.time() * 1000)


@dataclass
class CacheEntry(Generic[V]):
    value: V
    cached_at_millis: int


class ExpiringLRUCache(Generic[K, V]):
    """Bounded key -> value store with recency tracking and time-based expiry."""

    def __init__(
        self,
        capacity: int = DEFAULT_CAPACITY,
        ttl_millis: int = DEFAULT_TTL_MILLIS,
        clock: Optional[Clock] = None,
    ) -> None:
        if capacity <= 0:
            raise ValueError(f"Cache capacity must be positive, got {capacity}")
        if ttl_millis < 0:
            raise ValueError(f"Cache TTL must not be negative, got {ttl_millis}")

        self.capacity = capacity
        self.ttl_millis = ttl_millis
        self._clock: Clock = clock or system_clock
        # Insertion order of the OrderedDict is the recency order (LRU first, MRU last)
        self._entries: "OrderedDict[K, CacheEntry[V]]" = OrderedDict()
        self._lock = threading.RLock()
        self._stats = {
            "hits": 0,
            "misses": 0,
            "evictions": 0,
            "expirations": 0,
        }

    def get(self, key: K) -> Optional[V]:
        """Return the cached value, or None if absent or expired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._stats["misses"] += 1
                return None

            if self._clock() - entry.cached_at_millis > self.ttl_millis:
                # Expired: drop it entirely, not just hide it
                del self._entries[key]
                self._stats["expirations"] += 1
                self._stats["misses"] += 1
                logger.debug(f"Cache entry expired: {key!r}")
                return None

            self._entries.move_to_end(key)
            self._stats["hits"] += 1
            return entry.value

    def put(self, key: K, value: V) -> None:
        """Insert or replace ``key``, evicting the LRU entry if a new key hits capacity."""
        with self._lock:
            if key not in self._entries and len(self._entries) >= self.capacity:
                evicted_key, _ = self._entries.popitem(last=False)
                self._stats["evictions"] += 1
                logger.debug(f"Cache full ({self.capacity}), evicted LRU entry: {evicted_key!r}")

            self._entries[key] = CacheEntry(value, self._clock())
            self._entries.move_to_end(key)

    def remove(self, key: K) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def keys(self) -> List[K]:
        """Resident keys from least to most recently used (expired ones included)."""
        with self._lock:
            return list(self._entries)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: object) -> bool:
        # Residency check only: does not touch recency or expire anything
        with self._lock:
            return key in self._entries

    def get_stats(self) -> Dict[str, Any]:
        """Cache statistics."""
        with self._lock:
            stats: Dict[str, Any] = dict(self._stats)
            stats["size"] = len(self._entries)
            stats["capacity"] = self.capacity
            stats["ttl_millis"] = self.ttl_millis

        lookups = stats["hits"] + stats["misses"]
        stats["hit_ratio"] = stats["hits"] / lookups if lookups > 0 else 0.0
        return stats
