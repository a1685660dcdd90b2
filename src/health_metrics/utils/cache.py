# ============================================================================
# src/health_metrics/utils/cache.py
# ============================================================================
"""
In-Memory TTL Cache

Backs two short-lived stores:
- Runtime configuration overrides (read-through, one hour TTL)
- Hourly provider performance buckets

Features:
- TTL (time-to-live) expiration per entry
- LRU eviction when max_size is reached
- Thread-safe operations
- Hit/miss statistics
"""

import threading
from typing import Any, Callable, Dict, List, Optional
from datetime import datetime
from collections import OrderedDict
from dataclasses import dataclass
import logging


# Marks "use default_ttl"; an explicit None stores without expiry
_DEFAULT_TTL: Any = object()


@dataclass
class CacheEntry:
    """
    Single cache entry with metadata.

    Attributes:
        key: Cache key
        value: Cached value
        created_at: When the entry was written
        last_accessed: When the entry was last read
        access_count: Number of reads
        ttl_seconds: Time-to-live (None = no expiration)
    """
    key: str
    value: Any
    created_at: datetime
    last_accessed: datetime
    access_count: int = 0
    ttl_seconds: Optional[int] = None

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        """Check if entry has expired based on TTL"""
        if self.ttl_seconds is None:
            return False
        age = ((now or datetime.now()) - self.created_at).total_seconds()
        return age > self.ttl_seconds

    def mark_accessed(self, now: Optional[datetime] = None):
        self.last_accessed = now or datetime.now()
        self.access_count += 1


class CacheStatistics:
    """Track cache performance metrics"""

    def __init__(self):
        self.hits = 0
        self.misses = 0
        self.evictions = 0
        self.expirations = 0
        self.writes = 0

    def hit_rate(self) -> float:
        total = self.hits + self.misses
        return self.hits / total if total > 0 else 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "hits": self.hits,
            "misses": self.misses,
            "evictions": self.evictions,
            "expirations": self.expirations,
            "writes": self.writes,
            "hit_rate": self.hit_rate(),
        }


class TTLCache:
    """
    Thread-safe LRU cache with per-entry TTL.

    Example:
        cache = TTLCache(max_size=500, default_ttl=3600)
        cache.set("health_metrics_config", {"primary_provider": "claude"})
        config = cache.get("health_metrics_config")

    A `clock` callable can be injected so tests control expiry without
    sleeping.
    """

    def __init__(
        self,
        max_size: int = 1000,
        default_ttl: Optional[int] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.max_size = max_size
        self.default_ttl = default_ttl
        self._clock = clock or datetime.now

        self._cache: "OrderedDict[str, CacheEntry]" = OrderedDict()
        self._lock = threading.RLock()
        self._stats = CacheStatistics()

        self.logger = logging.getLogger(__name__)

    def get(self, key: str, default: Any = None) -> Any:
        """Return the cached value, or default when missing or expired."""
        with self._lock:
            entry = self._cache.get(key)
            if entry is None:
                self._stats.misses += 1
                return default

            now = self._clock()
            if entry.is_expired(now):
                self.logger.debug(f"Cache entry expired: {key}")
                del self._cache[key]
                self._stats.misses += 1
                self._stats.expirations += 1
                return default

            entry.mark_accessed(now)
            self._cache.move_to_end(key)
            self._stats.hits += 1
            return entry.value

    def set(self, key: str, value: Any, ttl: Optional[int] = _DEFAULT_TTL) -> None:
        """
        Store value in cache.

        Args:
            key: Cache key
            value: Value to cache
            ttl: TTL in seconds (defaults to default_ttl, None = never expires)
        """
        with self._lock:
            if key not in self._cache:
                while len(self._cache) >= self.max_size:
                    self._evict_oldest()

            now = self._clock()
            self._cache[key] = CacheEntry(
                key=key,
                value=value,
                created_at=now,
                last_accessed=now,
                ttl_seconds=self.default_ttl if ttl is _DEFAULT_TTL else ttl,
            )
            self._cache.move_to_end(key)
            self._stats.writes += 1

    def append(self, key: str, item: Any, ttl: Optional[int] = _DEFAULT_TTL) -> List[Any]:
        """
        Append item to a list stored under key, keeping the original TTL.

        Creates the list (with the given TTL) when the key is missing or expired.
        """
        with self._lock:
            entry = self._cache.get(key)
            if entry is None or entry.is_expired(self._clock()):
                items = [item]
                self.set(key, items, ttl=ttl)
                return items

            entry.value.append(item)
            self._cache.move_to_end(key)
            self._stats.writes += 1
            return entry.value

    def delete(self, key: str) -> bool:
        with self._lock:
            if key in self._cache:
                del self._cache[key]
                return True
            return False

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()
            self.logger.debug("Cache cleared")

    def cleanup_expired(self) -> int:
        """
        Remove all expired entries.

        Returns:
            Number of entries removed
        """
        with self._lock:
            now = self._clock()
            expired_keys = [
                key for key, entry in self._cache.items()
                if entry.is_expired(now)
            ]
            for key in expired_keys:
                del self._cache[key]
                self._stats.expirations += 1

            return len(expired_keys)

    def __contains__(self, key: str) -> bool:
        with self._lock:
            entry = self._cache.get(key)
            return entry is not None and not entry.is_expired(self._clock())

    def __len__(self) -> int:
        return len(self._cache)

    def get_statistics(self) -> Dict[str, Any]:
        with self._lock:
            stats = self._stats.to_dict()
            stats["entry_count"] = len(self._cache)
            stats["max_size"] = self.max_size
            stats["default_ttl"] = self.default_ttl
            return stats

    def _evict_oldest(self):
        """Evict least recently used entry"""
        if not self._cache:
            return

        oldest_key, _ = self._cache.popitem(last=False)
        self._stats.evictions += 1
        self.logger.debug(f"Evicted entry: {oldest_key}")
