import sqlite3

import pytest

from db import CacheStoreError, GeoCacheStore, SqliteKeyValueBackend, location_key, organizer_key
from domain.models import GeoRecord
from tests.factories import NOW, failed_record


def test_set_get_delete_roundtrip(store):
    record = GeoRecord.success("49.4", "8.7", "Heidelberg, Baden-Württemberg, Deutschland")
    store.set("484582", record)
    assert store.get("484582") == record
    store.delete("484582")
    assert store.get("484582") is None


def test_keys_are_normalized_per_region():
    assert location_key("  Halle 1, Bonn ", "Hessen") == "loc:halle 1, bonn:Hessen"
    assert organizer_key("TC Foo", "Sachsen") == "org:tc foo:Sachsen"


def test_writes_are_durable_across_reopen(cache_path):
    first = GeoCacheStore.open(cache_path, memory=False)
    first.set(location_key("Speyer", "Rheinland-Pfalz"), GeoRecord.success("49.3", "8.4"))
    first.close()

    reopened = GeoCacheStore.open(cache_path, memory=True)
    try:
        assert reopened.get(location_key("Speyer", "Rheinland-Pfalz")).lat == "49.3"
    finally:
        reopened.close()


def _fill(store):
    store.set("1", GeoRecord.success("1", "2"))
    store.set("2", failed_record(1, 2))  # due
    store.set("3", failed_record(4, 3))  # permanent, not due
    store.set("4", failed_record(4, 40))  # permanent, due, stale
    store.set(location_key("Bonn", "NRW"), GeoRecord.success("1", "2"))
    store.set(organizer_key("TC A", "NRW"), GeoRecord.success("1", "2"))


def test_statistics(store):
    _fill(store)
    stats = store.statistics(NOW)
    assert stats.total_entries == 6
    assert stats.successful == 3
    assert stats.failed == 3
    assert stats.pending_retry == 2
    assert stats.permanently_failed == 2
    assert stats.tournament_cache_size == 4
    assert stats.location_cache_size == 1
    assert stats.organizer_cache_size == 1
    assert set(stats.to_dict()) >= {"total_entries", "pending_retry", "permanently_failed"}


def test_cleanup_removes_only_stale_permanent_failures(store):
    _fill(store)
    assert store.cleanup_old_failed_entries(NOW) == 1
    assert store.get("4") is None
    assert store.get("3") is not None
    assert store.cleanup_old_failed_entries(NOW) == 0


def test_modes_are_observably_equivalent(tmp_path):
    results = []
    for memory in (True, False):
        s = GeoCacheStore.open(str(tmp_path / f"{memory}.sqlite3"), memory=memory)
        _fill(s)
        s.delete("1")
        results.append((list(s.items()), s.statistics(NOW).to_dict()))
        s.close()
    assert results[0] == results[1]


def test_mirror_not_updated_when_durable_write_fails(memory_store, monkeypatch):
    def broken_set(key, value):
        raise CacheStoreError("disk full")

    monkeypatch.setattr(memory_store._backend, "set", broken_set)
    with pytest.raises(CacheStoreError):
        memory_store.set("1", GeoRecord.success("1", "2"))
    assert memory_store.get("1") is None


def test_backend_wraps_sqlite_errors(tmp_path):
    backend = SqliteKeyValueBackend(str(tmp_path / "kv.sqlite3"))
    backend.close()
    with pytest.raises(CacheStoreError):
        backend.get(b"x")


def test_corrupt_record_raises_in_direct_mode_and_is_skipped_on_preload(cache_path):
    backend = SqliteKeyValueBackend(cache_path)
    backend.set(b"bad", b"{not json")
    backend.set(b"good", b'{"lat": "1", "lon": "2"}')
    direct = GeoCacheStore(backend, memory=False)
    with pytest.raises(CacheStoreError):
        direct.get("bad")
    mirrored = GeoCacheStore(backend, memory=True)
    assert mirrored.get("bad") is None
    assert mirrored.get("good").lat == "1"
    backend.close()


def test_sqlite_error_type_is_not_leaked(tmp_path, monkeypatch):
    backend = SqliteKeyValueBackend(str(tmp_path / "kv.sqlite3"))

    class BrokenConnection:
        def execute(self, *a, **k):
            raise sqlite3.OperationalError("database is locked")

        def rollback(self):
            pass

        def close(self):
            pass

    monkeypatch.setattr(backend, "_c", BrokenConnection())
    with pytest.raises(CacheStoreError):
        backend.set(b"k", b"v")
    with pytest.raises(CacheStoreError):
        list(backend.items())
