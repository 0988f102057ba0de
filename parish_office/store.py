"""SQLite-backed local cache for offline fallbacks and audit backups."""

from __future__ import annotations

import json
import sqlite3
from pathlib import Path
from typing import Any, Iterable


def _lastrowid(cursor: sqlite3.Cursor) -> int:
    row_id = cursor.lastrowid
    if row_id is None:
        raise RuntimeError("Insert did not return a row id.")
    return row_id


def _table_columns(connection: sqlite3.Connection, table_name: str) -> set[str]:
    rows = connection.execute(f"PRAGMA table_info({table_name})").fetchall()
    return {str(row["name"]) for row in rows}


def _ensure_column(
    connection: sqlite3.Connection,
    table_name: str,
    column_name: str,
    definition: str,
) -> None:
    if column_name in _table_columns(connection, table_name):
        return
    connection.execute(
        f"ALTER TABLE {table_name} ADD COLUMN {column_name} {definition}"
    )


class LocalCache:
    """Key-value entries plus a local copy of recent audit log entries."""

    def __init__(self, db_path: str | Path) -> None:
        self.db_path = Path(db_path)

    def _connect(self) -> sqlite3.Connection:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        connection = sqlite3.connect(self.db_path)
        connection.row_factory = sqlite3.Row
        return connection

    def init_db(self) -> None:
        with self._connect() as connection:
            connection.executescript(
                """
                CREATE TABLE IF NOT EXISTS cache_entries (
                    cache_key TEXT PRIMARY KEY,
                    value_json TEXT NOT NULL,
                    updated_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
                );

                CREATE TABLE IF NOT EXISTS audit_entries (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    entry_json TEXT NOT NULL,
                    logged_at TEXT,
                    synced INTEGER NOT NULL DEFAULT 0,
                    created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
                );

                CREATE INDEX IF NOT EXISTS idx_audit_entries_synced ON audit_entries (synced);
                """
            )
            _ensure_column(
                connection=connection,
                table_name="audit_entries",
                column_name="remote_id",
                definition="INTEGER",
            )

    def set_value(self, key: str, value: Any) -> None:
        with self._connect() as connection:
            connection.execute(
                """
                INSERT INTO cache_entries (cache_key, value_json, updated_at)
                VALUES (?, ?, CURRENT_TIMESTAMP)
                ON CONFLICT(cache_key) DO UPDATE SET
                    value_json = excluded.value_json,
                    updated_at = excluded.updated_at
                """,
                (key, json.dumps(value, default=str)),
            )

    def get_value(self, key: str, default: Any = None) -> Any:
        with self._connect() as connection:
            row = connection.execute(
                "SELECT value_json FROM cache_entries WHERE cache_key = ?",
                (key,),
            ).fetchone()
        if row is None:
            return default
        try:
            return json.loads(row["value_json"])
        except json.JSONDecodeError:
            return default

    def delete_value(self, key: str) -> None:
        with self._connect() as connection:
            connection.execute("DELETE FROM cache_entries WHERE cache_key = ?", (key,))

    def add_audit_entry(self, entry: dict[str, Any], synced: bool) -> int:
        remote_id = entry.get("id") if isinstance(entry.get("id"), int) else None
        with self._connect() as connection:
            cursor = connection.execute(
                """
                INSERT INTO audit_entries (entry_json, logged_at, synced, remote_id)
                VALUES (?, ?, ?, ?)
                """,
                (
                    json.dumps(entry, default=str),
                    entry.get("timestamp"),
                    1 if synced else 0,
                    remote_id,
                ),
            )
            return _lastrowid(cursor)

    def _entries(self, query: str, params: Iterable[Any] = ()) -> list[dict[str, Any]]:
        with self._connect() as connection:
            rows = connection.execute(query, list(params)).fetchall()

        entries: list[dict[str, Any]] = []
        for row in rows:
            try:
                entry = json.loads(row["entry_json"])
            except json.JSONDecodeError:
                continue
            if not isinstance(entry, dict):
                continue
            entry["synced"] = bool(row["synced"])
            entry["_local_id"] = int(row["id"])
            entries.append(entry)
        return entries

    def list_audit_entries(self, limit: int | None = None) -> list[dict[str, Any]]:
        query = "SELECT * FROM audit_entries ORDER BY id DESC"
        if limit is None:
            return self._entries(query)
        return self._entries(f"{query} LIMIT ?", [limit])

    def unsynced_audit_entries(self) -> list[dict[str, Any]]:
        return self._entries("SELECT * FROM audit_entries WHERE synced = 0 ORDER BY id ASC")

    def mark_audit_entries_synced(self, local_ids: Iterable[int]) -> None:
        ids = [int(local_id) for local_id in local_ids]
        if not ids:
            return
        placeholders = ", ".join("?" for _ in ids)
        with self._connect() as connection:
            connection.execute(
                f"UPDATE audit_entries SET synced = 1 WHERE id IN ({placeholders})",
                ids,
            )

    def trim_audit_entries(self, keep: int) -> int:
        """Drop the oldest synced entries beyond ``keep``; unsynced ones stay."""

        with self._connect() as connection:
            cursor = connection.execute(
                """
                DELETE FROM audit_entries
                WHERE synced = 1 AND id NOT IN (
                    SELECT id FROM audit_entries ORDER BY id DESC LIMIT ?
                )
                """,
                (max(keep, 0),),
            )
            return cursor.rowcount
