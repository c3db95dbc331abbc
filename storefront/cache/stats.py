"""Running hit/miss and residency counters for the response cache."""

from dataclasses import dataclass, field

from storefront.cache.entry_store import CacheEntry
from storefront.cache.popularity import PopularityTracker


@dataclass
class CacheStats:
    """Point-in-time copy of the cache counters.

    Safe to mutate or serialize; changes never reach the live cache.
    """

    hits: int = 0
    misses: int = 0
    entries: int = 0
    size: int = 0
    popular: dict[str, int] = field(default_factory=dict)

    @property
    def hit_ratio(self) -> float:
        return self.hits / ((self.hits + self.misses) or 1)

    @property
    def size_in_mb(self) -> float:
        return round(self.size / 1024 / 1024, 2)

    def top_resources(self, limit: int = 10) -> dict[str, int]:
        ranked = sorted(self.popular.items(), key=lambda kv: (-kv[1], kv[0]))
        return dict(ranked[:limit])


class StatsAggregator:
    """Tracks hits, misses, live entry count and resident bytes.

    ``record_insert`` / ``record_remove`` are wired as the entry store's
    listeners, so ``entries`` and ``size`` move in lockstep with store
    membership.

    Args:
        popularity: Tracker exposed read-only through :meth:`snapshot`.
    """

    def __init__(self, popularity: PopularityTracker) -> None:
        self._popularity = popularity
        self.hits = 0
        self.misses = 0
        self.entries = 0
        self.size = 0

    def record_hit(self) -> None:
        self.hits += 1

    def record_miss(self) -> None:
        self.misses += 1

    def record_insert(self, entry: CacheEntry) -> None:
        self.entries += 1
        self.size += entry.size_bytes

    def record_remove(self, entry: CacheEntry) -> None:
        self.entries -= 1
        self.size -= entry.size_bytes

    def reset(self) -> None:
        self.hits = 0
        self.misses = 0
        self.entries = 0
        self.size = 0

    def snapshot(self) -> CacheStats:
        return CacheStats(
            hits=self.hits,
            misses=self.misses,
            entries=self.entries,
            size=self.size,
            popular=self._popularity.snapshot(),
        )

    def summary(self) -> str:
        """One-line summary for debug logging."""
        return (
            f"hits={self.hits} misses={self.misses} entries={self.entries} "
            f"size={round(self.size / 1024 / 1024)}MB"
        )
