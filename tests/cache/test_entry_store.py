"""Tests for storefront.cache.entry_store: storage, lazy expiry, listeners."""

import pytest

from storefront.cache.entry_store import CacheEntry, EntryStore
from tests.factories import FakeClock


def _recording_store(clock: FakeClock):
    inserted: list[CacheEntry] = []
    removed: list[CacheEntry] = []
    store = EntryStore(clock=clock, on_insert=inserted.append, on_remove=removed.append)
    return store, inserted, removed


class TestCacheEntry:
    def test_expires_at(self):
        entry = CacheEntry(key="k", value=1, stored_at=100.0, ttl_seconds=60, size_bytes=1)
        assert entry.expires_at == 160.0

    def test_is_expired_boundary(self):
        entry = CacheEntry(key="k", value=1, stored_at=100.0, ttl_seconds=60, size_bytes=1)
        assert entry.is_expired(159.9) is False
        assert entry.is_expired(160.0) is True


class TestEntryStore:
    def test_get_missing_returns_none(self):
        store = EntryStore(clock=FakeClock())
        assert store.get("missing") is None

    def test_put_and_get(self):
        clock = FakeClock()
        store, inserted, _ = _recording_store(clock)
        entry = store.put("GET:/api/products", [1, 2], ttl_seconds=60, size_bytes=6)
        assert store.get("GET:/api/products") is entry
        assert entry.stored_at == clock.now
        assert entry.status_code == 200
        assert inserted == [entry]

    def test_expired_entry_is_removed_on_get(self):
        clock = FakeClock()
        store, _, removed = _recording_store(clock)
        entry = store.put("k", "v", ttl_seconds=30, size_bytes=3)
        clock.advance(30)
        assert store.get("k") is None
        assert "k" not in store
        assert removed == [entry]

    def test_overwrite_reports_old_entry_removed(self):
        clock = FakeClock()
        store, inserted, removed = _recording_store(clock)
        first = store.put("k", "v1", ttl_seconds=30, size_bytes=4)
        second = store.put("k", "v22", ttl_seconds=30, size_bytes=5)
        assert removed == [first]
        assert inserted == [first, second]
        assert len(store) == 1

    def test_remove_returns_entry(self):
        store, _, removed = _recording_store(FakeClock())
        entry = store.put("k", "v", ttl_seconds=30, size_bytes=3)
        assert store.remove("k") is entry
        assert store.remove("k") is None
        assert removed == [entry]

    def test_purge_expired_only_drops_expired(self):
        clock = FakeClock()
        store, _, removed = _recording_store(clock)
        store.put("short", "a", ttl_seconds=10, size_bytes=3)
        store.put("long", "b", ttl_seconds=100, size_bytes=3)
        clock.advance(50)
        assert store.purge_expired() == 1
        assert store.keys() == ["long"]
        assert [e.key for e in removed] == ["short"]

    def test_clear_does_not_notify(self):
        store, _, removed = _recording_store(FakeClock())
        store.put("k", "v", ttl_seconds=30, size_bytes=3)
        store.clear()
        assert len(store) == 0
        assert removed == []

    def test_non_positive_size_rejected(self):
        store = EntryStore(clock=FakeClock())
        with pytest.raises(ValueError, match="positive"):
            store.put("k", "", ttl_seconds=30, size_bytes=0)

    def test_iteration_is_a_snapshot(self):
        store = EntryStore(clock=FakeClock())
        store.put("a", 1, ttl_seconds=30, size_bytes=1)
        store.put("b", 2, ttl_seconds=30, size_bytes=1)
        for entry in store:
            store.remove(entry.key)
        assert len(store) == 0
