"""TTL extension and size-bounded eviction policies."""

import logging

from storefront.cache.entry_store import EntryStore
from storefront.cache.popularity import PopularityTracker
from storefront.cache.stats import StatsAggregator

logger = logging.getLogger(__name__)

DEFAULT_POPULARITY_THRESHOLD = 10
DEFAULT_MULTIPLIER = 2.0
DEFAULT_TTL_CAP_SECONDS = 3600
DEFAULT_SIZE_LIMIT_BYTES = 100 * 1024 * 1024
LOW_WATER_RATIO = 0.8


class TTLPolicy:
    """Extends the cache lifetime of frequently requested resources.

    Args:
        popularity: Source of per-key request counts (read only).
        threshold: Counts strictly above this are considered popular.
        multiplier: Factor applied to the base duration of popular keys.
        cap_seconds: Upper bound on any extended duration.
    """

    def __init__(
        self,
        popularity: PopularityTracker,
        threshold: int = DEFAULT_POPULARITY_THRESHOLD,
        multiplier: float = DEFAULT_MULTIPLIER,
        cap_seconds: float = DEFAULT_TTL_CAP_SECONDS,
    ) -> None:
        self._popularity = popularity
        self.threshold = threshold
        self.multiplier = multiplier
        self.cap_seconds = cap_seconds

    def adjust(self, key: str, base_duration: float) -> float:
        """Return the duration to store *key* for."""
        if self._popularity.count(key) > self.threshold:
            return min(base_duration * self.multiplier, self.cap_seconds)
        return base_duration


class EvictionPolicy:
    """Removes the least popular entries once resident bytes exceed a ceiling.

    A pass runs only when ``stats.size > size_limit_bytes`` and keeps
    removing until size drops to ``low_water_ratio`` of the ceiling, so a
    cache hovering near its limit does not evict on every insert.

    Args:
        store: Entry store to remove from.
        stats: Aggregator holding the resident size.
        popularity: Ranking source; counters are left untouched.
        size_limit_bytes: Soft ceiling on resident bytes.
        low_water_ratio: Fraction of the ceiling to evict down to.
        debug: Log eviction events at INFO instead of DEBUG.
    """

    def __init__(
        self,
        store: EntryStore,
        stats: StatsAggregator,
        popularity: PopularityTracker,
        size_limit_bytes: int = DEFAULT_SIZE_LIMIT_BYTES,
        low_water_ratio: float = LOW_WATER_RATIO,
        debug: bool = False,
    ) -> None:
        self._store = store
        self._stats = stats
        self._popularity = popularity
        self.size_limit_bytes = size_limit_bytes
        self.low_water_ratio = low_water_ratio
        self._event_level = logging.INFO if debug else logging.DEBUG

    @property
    def low_water_bytes(self) -> float:
        return self.size_limit_bytes * self.low_water_ratio

    def candidates(self) -> list[str]:
        """Live keys, least popular first, ties broken by key."""
        return sorted(self._store.keys(), key=lambda k: (self._popularity.count(k), k))

    def maybe_evict(self) -> int:
        """Run an eviction pass if over the ceiling. Returns entries removed."""
        self._store.purge_expired()
        if self._stats.size <= self.size_limit_bytes:
            return 0

        removed = 0
        for key in self.candidates():
            if self._stats.size <= self.low_water_bytes:
                break
            if self._store.remove(key) is not None:
                removed += 1

        if self._stats.size > self.size_limit_bytes and len(self._store) == 0:
            logger.warning(
                "Cache still holds %d bytes after evicting every entry "
                "(limit %d); size accounting has drifted",
                self._stats.size,
                self.size_limit_bytes,
            )
        logger.log(
            self._event_level,
            "[Cache] Evicted %d entries due to size limit (%s)",
            removed,
            self._stats.summary(),
        )
        return removed
