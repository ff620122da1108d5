"""
In-memory result cache.

Holds one PageResult per URL for the duration of a crawl, bounded by
entry count (least recently used entries are evicted first) and by age.
Reading an entry refreshes both its recency and its expiry.
"""

from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Callable, Iterator, Optional
import logging
import time

from webscraper.models import PageResult

logger = logging.getLogger(__name__)


@dataclass
class CacheEntry:
    """A single cache entry with metadata."""
    result: PageResult
    expires_at: float
    hit_count: int = 0

    def is_expired(self, now: float) -> bool:
        """Check if this entry has expired."""
        return now >= self.expires_at


class ResultStore:
    """LRU cache with time-to-live, keyed by normalized URL."""

    def __init__(
        self,
        max_entries: int = 1000,
        ttl_seconds: float = 3600,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize the store.

        Args:
            max_entries: Capacity before least recently used entries are evicted
            ttl_seconds: Lifetime of an entry since it was last set or read
            clock: Monotonic time source, overridable for tests
        """
        if max_entries < 1:
            raise ValueError("max_entries must be >= 1")
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be > 0")

        self.max_entries = max_entries
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()
        self._hits = 0
        self._misses = 0
        self._evictions = 0
        self._expirations = 0

    def get(self, url: str) -> Optional[PageResult]:
        """Return the cached result, or None if absent or expired."""
        entry = self._entries.get(url)
        now = self._clock()

        if entry is None:
            self._misses += 1
            return None

        if entry.is_expired(now):
            del self._entries[url]
            self._expirations += 1
            self._misses += 1
            return None

        entry.hit_count += 1
        entry.expires_at = now + self.ttl_seconds
        self._entries.move_to_end(url)
        self._hits += 1
        return entry.result

    def set(self, url: str, result: PageResult) -> None:
        """Store a result, evicting the least recently used entry when full."""
        if url in self._entries:
            self._entries.move_to_end(url)
        self._entries[url] = CacheEntry(result=result, expires_at=self._clock() + self.ttl_seconds)

        while len(self._entries) > self.max_entries:
            evicted, _ = self._entries.popitem(last=False)
            self._evictions += 1
            logger.debug(f"Evicted cached result for {evicted}")

    def entries(self) -> dict[str, PageResult]:
        """Snapshot of all live results, oldest first. Does not refresh recency."""
        now = self._clock()
        return {
            url: entry.result
            for url, entry in self._entries.items()
            if not entry.is_expired(now)
        }

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        now = self._clock()
        return sum(1 for entry in self._entries.values() if not entry.is_expired(now))

    def __contains__(self, url: object) -> bool:
        entry = self._entries.get(url)  # type: ignore[arg-type]
        return entry is not None and not entry.is_expired(self._clock())

    def __iter__(self) -> Iterator[str]:
        return iter(self.entries())

    def stats(self) -> dict[str, Any]:
        """Get cache statistics."""
        total = self._hits + self._misses
        return {
            "entries": len(self),
            "max_entries": self.max_entries,
            "ttl_seconds": self.ttl_seconds,
            "hits": self._hits,
            "misses": self._misses,
            "hit_rate": self._hits / total if total else 0.0,
            "evictions": self._evictions,
            "expirations": self._expirations,
        }
