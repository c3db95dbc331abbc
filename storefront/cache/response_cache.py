"""In-process HTTP response cache: wiring and administrative operations."""

import logging
import threading
import time
from collections.abc import Callable

from storefront.cache.entry_store import EntryStore
from storefront.cache.gate import (
    CACHEABLE_METHODS,
    CacheGate,
    CacheRequest,
    CacheResult,
    KeyFunction,
    Producer,
)
from storefront.cache.policy import (
    DEFAULT_MULTIPLIER,
    DEFAULT_POPULARITY_THRESHOLD,
    DEFAULT_SIZE_LIMIT_BYTES,
    DEFAULT_TTL_CAP_SECONDS,
    EvictionPolicy,
    TTLPolicy,
)
from storefront.cache.popularity import PopularityTracker
from storefront.cache.stats import CacheStats, StatsAggregator
from storefront.config import Settings

logger = logging.getLogger(__name__)


def route_key(route: str, item_id: str | int | None = None) -> str:
    """Key the gate derives for ``GET /api/<route>`` or ``GET /api/<route>/<id>``."""
    path = f"/api/{route}" if item_id is None else f"/api/{route}/{item_id}"
    return CacheRequest("GET", path).cache_key


class ResponseCache:
    """One process-wide response cache.

    Create it once at startup (see :meth:`from_settings`) and hand it to the
    request pipeline. All mutations share one re-entrant lock, so the entry
    store, popularity counters and stats always change as a group.

    Args:
        size_limit_bytes: Soft ceiling on resident bytes.
        popularity_threshold: Request count above which TTLs are extended.
        popular_multiplier: TTL multiplier for popular resources.
        ttl_cap_seconds: Upper bound on extended TTLs.
        count_hits_toward_popularity: Count every lookup (default) or misses only.
        cacheable_methods: HTTP methods eligible for caching.
        debug: Log lifecycle events at INFO instead of DEBUG.
        clock: Monotonic time source, injectable for tests.
    """

    def __init__(
        self,
        size_limit_bytes: int = DEFAULT_SIZE_LIMIT_BYTES,
        popularity_threshold: int = DEFAULT_POPULARITY_THRESHOLD,
        popular_multiplier: float = DEFAULT_MULTIPLIER,
        ttl_cap_seconds: float = DEFAULT_TTL_CAP_SECONDS,
        count_hits_toward_popularity: bool = True,
        cacheable_methods: frozenset[str] = CACHEABLE_METHODS,
        debug: bool = False,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._lock = threading.RLock()
        self._event_level = logging.INFO if debug else logging.DEBUG
        self.popularity = PopularityTracker()
        self.stats = StatsAggregator(self.popularity)
        self.store = EntryStore(
            clock=clock,
            on_insert=self.stats.record_insert,
            on_remove=self.stats.record_remove,
        )
        self.ttl_policy = TTLPolicy(
            self.popularity,
            threshold=popularity_threshold,
            multiplier=popular_multiplier,
            cap_seconds=ttl_cap_seconds,
        )
        self.eviction = EvictionPolicy(
            self.store,
            self.stats,
            self.popularity,
            size_limit_bytes=size_limit_bytes,
            debug=debug,
        )
        self.gate = CacheGate(
            self.store,
            self.popularity,
            self.stats,
            self.ttl_policy,
            self.eviction,
            lock=self._lock,
            cacheable_methods=cacheable_methods,
            count_hits_toward_popularity=count_hits_toward_popularity,
            debug=debug,
        )

    @classmethod
    def from_settings(cls, settings: Settings, **overrides: object) -> "ResponseCache":
        """Build a cache from application settings."""
        options: dict = {
            "size_limit_bytes": settings.cache_size_limit_bytes,
            "popularity_threshold": settings.popularity_threshold,
            "popular_multiplier": settings.popular_resource_multiplier,
            "ttl_cap_seconds": settings.popular_ttl_cap,
            "count_hits_toward_popularity": settings.count_hits_toward_popularity,
            "debug": settings.cache_debug,
        }
        options.update(overrides)
        return cls(**options)

    # ── Request path ─────────────────────────────────────────────────────

    async def handle(
        self,
        request: CacheRequest,
        base_duration: float,
        producer: Producer,
        key_fn: KeyFunction | None = None,
    ) -> CacheResult:
        """Shortcut for :meth:`CacheGate.handle`."""
        return await self.gate.handle(request, base_duration, producer, key_fn=key_fn)

    # ── Admin ────────────────────────────────────────────────────────────

    def clear_all(self) -> None:
        """Drop every entry and reset all counters and popularity."""
        with self._lock:
            self.store.clear()
            self.stats.reset()
            self.popularity.reset()
        logger.log(self._event_level, "[Cache] All entries cleared")

    def clear_key(self, key: str) -> bool:
        """Remove one entry and its popularity counter.

        Returns:
            True if a live entry was removed.
        """
        with self._lock:
            removed = self.store.remove(key) is not None
            self.popularity.forget(key)
        if removed:
            logger.log(self._event_level, "[Cache] Cleared: %s", key)
        return removed

    def invalidate_route(self, route: str, item_id: str | int | None = None) -> int:
        """Clear the list entry for *route* and, with *item_id*, its item entry.

        Returns:
            Number of live entries removed.
        """
        route = route.strip("/")
        with self._lock:
            removed = int(self.clear_key(route_key(route)))
            if item_id is not None:
                removed += int(self.clear_key(route_key(route, item_id)))
        suffix = f" with ID: {item_id}" if item_id is not None else ""
        logger.log(self._event_level, "[Cache] Invalidated route: %s%s", route, suffix)
        return removed

    def get_stats(self) -> CacheStats:
        """Detached snapshot of the counters and popularity map."""
        with self._lock:
            self.store.purge_expired()
            return self.stats.snapshot()

    def shutdown(self) -> None:
        """Release everything held in memory. Safe to call more than once."""
        self.clear_all()
        logger.info("Response cache shut down")
