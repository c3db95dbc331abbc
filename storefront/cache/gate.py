"""Request-facing HIT/MISS decision for cacheable endpoints."""

import json
import logging
import threading
from collections.abc import Awaitable, Callable
from contextlib import AbstractContextManager
from dataclasses import dataclass, field
from enum import StrEnum
from urllib.parse import urlsplit

from storefront.cache.entry_store import EntryStore
from storefront.cache.policy import EvictionPolicy, TTLPolicy
from storefront.cache.popularity import PopularityTracker
from storefront.cache.stats import StatsAggregator

logger = logging.getLogger(__name__)

CACHEABLE_METHODS = frozenset({"GET"})


class CacheStatus(StrEnum):
    HIT = "HIT"
    MISS = "MISS"
    BYPASS = "BYPASS"


@dataclass(frozen=True)
class CacheRequest:
    """The parts of an HTTP request the cache keys on."""

    method: str
    path: str
    query: str = ""

    @classmethod
    def from_url(cls, method: str, url: str) -> "CacheRequest":
        parts = urlsplit(url)
        return cls(method=method.upper(), path=parts.path or "/", query=parts.query)

    @classmethod
    def from_starlette(cls, request: object) -> "CacheRequest":
        """Build from anything shaped like ``starlette.requests.Request``."""
        url = request.url  # type: ignore[attr-defined]
        return cls(
            method=request.method.upper(),  # type: ignore[attr-defined]
            path=url.path,
            query=url.query,
        )

    @property
    def cache_key(self) -> str:
        """``METHOD:/path`` or ``METHOD:/path?query`` when a query is present."""
        target = f"{self.path}?{self.query}" if self.query else self.path
        return f"{self.method.upper()}:{target}"


@dataclass
class CacheResult:
    """What the HTTP layer should send back."""

    status: CacheStatus
    status_code: int
    body: object
    headers: dict[str, str] = field(default_factory=dict)


Producer = Callable[[], Awaitable[tuple[int, object]]]
KeyFunction = Callable[[CacheRequest], str]


def measure(body: object) -> int:
    """Byte length of *body* in its serialized (JSON) form.

    Raises:
        TypeError: If *body* cannot be serialized.
        ValueError: On circular references.
        RecursionError: If *body* is nested too deeply to encode.
    """
    if isinstance(body, bytes | bytearray):
        return len(body)
    return len(json.dumps(body).encode("utf-8"))


class CacheGate:
    """Decides whether a request is served from cache or by its handler.

    The handler (*producer*) is awaited outside the lock; every piece of
    bookkeeping around it runs synchronously under the shared lock so that
    the store, popularity counters and stats change together.

    Args:
        store: Entry storage.
        popularity: Per-key request counters.
        stats: Hit/miss and residency counters.
        ttl_policy: Computes the stored duration for each response.
        eviction: Enforces the byte ceiling after each insert.
        lock: Lock shared with the admin operations.
        cacheable_methods: HTTP methods eligible for caching.
        count_hits_toward_popularity: When False only misses are counted.
        debug: Log lifecycle events at INFO instead of DEBUG.
    """

    def __init__(
        self,
        store: EntryStore,
        popularity: PopularityTracker,
        stats: StatsAggregator,
        ttl_policy: TTLPolicy,
        eviction: EvictionPolicy,
        lock: AbstractContextManager | None = None,
        cacheable_methods: frozenset[str] = CACHEABLE_METHODS,
        count_hits_toward_popularity: bool = True,
        debug: bool = False,
    ) -> None:
        self._store = store
        self._popularity = popularity
        self._stats = stats
        self._ttl_policy = ttl_policy
        self._eviction = eviction
        self._lock = lock or threading.RLock()
        self.cacheable_methods = frozenset(m.upper() for m in cacheable_methods)
        self.count_hits_toward_popularity = count_hits_toward_popularity
        self._event_level = logging.INFO if debug else logging.DEBUG

    def is_cacheable(self, request: CacheRequest) -> bool:
        return request.method.upper() in self.cacheable_methods

    def key_for(self, request: CacheRequest, key_fn: KeyFunction | None = None) -> str:
        return key_fn(request) if key_fn is not None else request.cache_key

    async def handle(
        self,
        request: CacheRequest,
        base_duration: float,
        producer: Producer,
        key_fn: KeyFunction | None = None,
    ) -> CacheResult:
        """Serve *request* from cache or run *producer* and offer its output.

        Args:
            request: Identity of the incoming request.
            base_duration: Route's cache lifetime in seconds before any
                popularity extension.
            producer: Async callable returning ``(status_code, body)``.
            key_fn: Optional custom key derivation. Must be deterministic
                and unique per logical resource.

        Returns:
            A :class:`CacheResult` carrying the body and headers to send.
        """
        if base_duration <= 0:
            raise ValueError(f"base_duration must be positive, got {base_duration}")

        if not self.is_cacheable(request):
            status_code, body = await producer()
            return CacheResult(CacheStatus.BYPASS, status_code, body)

        key = self.key_for(request, key_fn)
        max_age = f"public, max-age={int(base_duration)}"

        with self._lock:
            if self.count_hits_toward_popularity:
                self._popularity.increment(key)
            entry = self._store.get(key)
            if entry is not None:
                self._stats.record_hit()
                logger.log(self._event_level, "[Cache] HIT: %s (%s)", key, self._stats.summary())
                return CacheResult(
                    CacheStatus.HIT,
                    entry.status_code,
                    entry.value,
                    {"X-Cache": "HIT", "Cache-Control": max_age},
                )
            self._stats.record_miss()
            if not self.count_hits_toward_popularity:
                self._popularity.increment(key)
            logger.log(self._event_level, "[Cache] MISS: %s (%s)", key, self._stats.summary())

        status_code, body = await producer()

        if 200 <= status_code < 300:
            self.offer(key, body, base_duration, status_code)
            cache_control = max_age
        else:
            cache_control = "no-store"
        return CacheResult(
            CacheStatus.MISS,
            status_code,
            body,
            {"X-Cache": "MISS", "Cache-Control": cache_control},
        )

    def offer(self, key: str, body: object, base_duration: float, status_code: int = 200) -> bool:
        """Store a produced body under *key*. Returns False if it was skipped."""
        try:
            size_bytes = measure(body)
        except (TypeError, ValueError, RecursionError, OverflowError):
            logger.debug("[Cache] Not storing %s: body is not serializable", key, exc_info=True)
            return False
        if size_bytes == 0:
            return False

        with self._lock:
            duration = self._ttl_policy.adjust(key, base_duration)
            if duration != base_duration:
                logger.log(
                    self._event_level,
                    "[Cache] Adjusted TTL for popular resource: %s (%ss -> %ss)",
                    key,
                    base_duration,
                    duration,
                )
            self._store.put(key, body, duration, size_bytes, status_code=status_code)
            self._eviction.maybe_evict()
        return True
