from __future__ import annotations

import sqlite3

from parish_office.store import LocalCache


def _build_cache(tmp_path) -> LocalCache:  # type: ignore[no-untyped-def]
    db_path = tmp_path / "nested" / "parish_office_test.db"
    cache = LocalCache(db_path)
    cache.init_db()
    return cache


def test_init_db_is_idempotent_and_adds_remote_id(tmp_path) -> None:  # type: ignore[no-untyped-def]
    cache = _build_cache(tmp_path)
    cache.init_db()

    with sqlite3.connect(cache.db_path) as connection:
        columns = {row[1] for row in connection.execute("PRAGMA table_info(audit_entries)")}
    assert "remote_id" in columns
    assert cache.db_path.exists()


def test_values_round_trip_and_overwrite(tmp_path) -> None:  # type: ignore[no-untyped-def]
    cache = _build_cache(tmp_path)

    assert cache.get_value("donations", default=[]) == []

    cache.set_value("donations", [{"id": 1, "amount": "100.00"}])
    cache.set_value("donations", [{"id": 2}])
    assert cache.get_value("donations") == [{"id": 2}]

    cache.delete_value("donations")
    assert cache.get_value("donations") is None


def test_audit_entries_are_listed_newest_first(tmp_path) -> None:  # type: ignore[no-untyped-def]
    cache = _build_cache(tmp_path)

    first_id = cache.add_audit_entry({"details": "first", "timestamp": "2025-12-01T08:00:00"}, synced=True)
    second_id = cache.add_audit_entry({"details": "second", "id": 44}, synced=False)

    entries = cache.list_audit_entries()
    assert [entry["details"] for entry in entries] == ["second", "first"]
    assert entries[0]["_local_id"] == second_id
    assert entries[0]["synced"] is False
    assert entries[1]["synced"] is True
    assert [entry["_local_id"] for entry in cache.list_audit_entries(limit=1)] == [second_id]
    assert first_id < second_id


def test_unsynced_entries_can_be_marked_synced(tmp_path) -> None:  # type: ignore[no-untyped-def]
    cache = _build_cache(tmp_path)

    older = cache.add_audit_entry({"details": "older"}, synced=False)
    cache.add_audit_entry({"details": "done"}, synced=True)
    newer = cache.add_audit_entry({"details": "newer"}, synced=False)

    pending = cache.unsynced_audit_entries()
    assert [entry["_local_id"] for entry in pending] == [older, newer]

    cache.mark_audit_entries_synced([older])
    cache.mark_audit_entries_synced([])
    assert [entry["details"] for entry in cache.unsynced_audit_entries()] == ["newer"]


def test_trim_keeps_newest_and_every_unsynced_entry(tmp_path) -> None:  # type: ignore[no-untyped-def]
    cache = _build_cache(tmp_path)

    cache.add_audit_entry({"details": "offline"}, synced=False)
    cache.add_audit_entry({"details": "a"}, synced=True)
    cache.add_audit_entry({"details": "b"}, synced=True)
    cache.add_audit_entry({"details": "c"}, synced=True)

    removed = cache.trim_audit_entries(keep=1)

    assert removed == 2
    assert [entry["details"] for entry in cache.list_audit_entries()] == ["c", "offline"]
