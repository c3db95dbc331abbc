"""Keyed storage for serialized responses with lazy expiry."""

import time
from collections.abc import Callable, Iterator
from dataclasses import dataclass


@dataclass(frozen=True)
class CacheEntry:
    """A stored response body and the bookkeeping recorded at insertion."""

    key: str
    value: object
    stored_at: float
    ttl_seconds: float
    size_bytes: int
    status_code: int = 200

    @property
    def expires_at(self) -> float:
        return self.stored_at + self.ttl_seconds

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


EntryListener = Callable[[CacheEntry], None]


def _noop(entry: CacheEntry) -> None:
    return None


class EntryStore:
    """Mapping of cache key to :class:`CacheEntry`.

    No policy lives here. Every insertion and every removal (expiry,
    explicit clear, eviction, overwrite) is reported to the listeners so
    that size accounting elsewhere always matches the live entries.

    Args:
        clock: Monotonic time source in seconds.
        on_insert: Called with each entry after it is stored.
        on_remove: Called with each entry after it is removed.
    """

    def __init__(
        self,
        clock: Callable[[], float] = time.monotonic,
        on_insert: EntryListener = _noop,
        on_remove: EntryListener = _noop,
    ) -> None:
        self._clock = clock
        self._on_insert = on_insert
        self._on_remove = on_remove
        self._entries: dict[str, CacheEntry] = {}

    def now(self) -> float:
        return self._clock()

    def get(self, key: str) -> CacheEntry | None:
        """Return the live entry for *key*, dropping it first if expired."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.is_expired(self._clock()):
            self.remove(key)
            return None
        return entry

    def put(
        self,
        key: str,
        value: object,
        ttl_seconds: float,
        size_bytes: int,
        status_code: int = 200,
    ) -> CacheEntry:
        """Store *value* under *key*, replacing any previous entry."""
        if size_bytes <= 0:
            raise ValueError(f"size_bytes must be positive, got {size_bytes}")
        if key in self._entries:
            self.remove(key)
        entry = CacheEntry(
            key=key,
            value=value,
            stored_at=self._clock(),
            ttl_seconds=ttl_seconds,
            size_bytes=size_bytes,
            status_code=status_code,
        )
        self._entries[key] = entry
        self._on_insert(entry)
        return entry

    def remove(self, key: str) -> CacheEntry | None:
        """Remove *key*. Returns the removed entry, or None if absent."""
        entry = self._entries.pop(key, None)
        if entry is not None:
            self._on_remove(entry)
        return entry

    def purge_expired(self) -> int:
        """Remove every expired entry. Returns how many were dropped."""
        now = self._clock()
        expired = [k for k, e in self._entries.items() if e.is_expired(now)]
        for key in expired:
            self.remove(key)
        return len(expired)

    def clear(self) -> None:
        """Drop all entries without notifying listeners."""
        self._entries.clear()

    def keys(self) -> list[str]:
        return list(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __iter__(self) -> Iterator[CacheEntry]:
        return iter(list(self._entries.values()))

    def __len__(self) -> int:
        return len(self._entries)
