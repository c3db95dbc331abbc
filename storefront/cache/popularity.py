"""Request-frequency counters used to rank cached resources."""


class PopularityTracker:
    """Counts lookups per cache key.

    Counters outlive the entries they describe: an expired or evicted
    response keeps its count so that a hot resource is still recognised
    when it is cached again. Only :meth:`forget` and :meth:`reset` lower
    a count.
    """

    def __init__(self) -> None:
        self._counts: dict[str, int] = {}

    def increment(self, key: str) -> int:
        """Record one lookup for *key* and return the new count."""
        count = self._counts.get(key, 0) + 1
        self._counts[key] = count
        return count

    def count(self, key: str) -> int:
        return self._counts.get(key, 0)

    def forget(self, key: str) -> bool:
        """Delete the counter for *key*. Returns True if it existed."""
        return self._counts.pop(key, None) is not None

    def reset(self) -> None:
        self._counts.clear()

    def snapshot(self) -> dict[str, int]:
        """Return a detached copy of all counters."""
        return dict(self._counts)

    def __len__(self) -> int:
        return len(self._counts)
