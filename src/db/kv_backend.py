"""Durable key/value backend for the geocoding cache.

A single ``kv_entry`` table in SQLite holding byte-string keys and values.
Every ``set``/``delete`` commits before returning. One connection is shared by
all callers and guarded by a lock, so concurrent writers are serialized here
rather than by the caller.
"""

from __future__ import annotations

import logging
import os
import sqlite3
from threading import RLock
from typing import Iterator, Optional, Protocol, Tuple, runtime_checkable

logger = logging.getLogger(__name__)

DDL = """
CREATE TABLE IF NOT EXISTS kv_entry (
    key BLOB PRIMARY KEY,
    value BLOB NOT NULL
);
""".strip()


class CacheStoreError(RuntimeError):
    """Durable cache storage failed (I/O, locking, corruption)."""


@runtime_checkable
class KeyValueBackend(Protocol):
    def get(self, key: bytes) -> Optional[bytes]: ...  # pragma: no cover
    def set(self, key: bytes, value: bytes) -> None: ...  # pragma: no cover
    def delete(self, key: bytes) -> None: ...  # pragma: no cover
    def items(self) -> Iterator[Tuple[bytes, bytes]]: ...  # pragma: no cover
    def close(self) -> None: ...  # pragma: no cover


class SqliteKeyValueBackend:
    def __init__(self, path: str):
        self.path = path
        if path != ":memory:":
            dir_part = os.path.dirname(path)
            if dir_part:
                os.makedirs(dir_part, exist_ok=True)
        self._lock = RLock()
        try:
            self._c = sqlite3.connect(path, check_same_thread=False)
            self._c.execute(DDL)
            self._c.commit()
        except sqlite3.Error as e:
            raise CacheStoreError(f"Failed to open cache database at {path}: {e}") from e
        logger.info("SQLite cache store initialized at: %s", path)

    def get(self, key: bytes) -> Optional[bytes]:
        with self._lock:
            try:
                row = self._c.execute("SELECT value FROM kv_entry WHERE key=?", (key,)).fetchone()
            except sqlite3.Error as e:
                raise CacheStoreError(f"Failed to get key {key!r}: {e}") from e
        return bytes(row[0]) if row else None

    def set(self, key: bytes, value: bytes) -> None:
        with self._lock:
            try:
                self._c.execute(
                    "INSERT INTO kv_entry(key, value) VALUES(?, ?) "
                    "ON CONFLICT(key) DO UPDATE SET value=excluded.value",
                    (key, value),
                )
                self._c.commit()
            except sqlite3.Error as e:
                self._c.rollback()
                raise CacheStoreError(f"Failed to set key {key!r}: {e}") from e

    def delete(self, key: bytes) -> None:
        with self._lock:
            try:
                self._c.execute("DELETE FROM kv_entry WHERE key=?", (key,))
                self._c.commit()
            except sqlite3.Error as e:
                self._c.rollback()
                raise CacheStoreError(f"Failed to delete key {key!r}: {e}") from e

    def items(self) -> Iterator[Tuple[bytes, bytes]]:
        # Snapshot so callers may delete while iterating.
        with self._lock:
            try:
                rows = self._c.execute("SELECT key, value FROM kv_entry ORDER BY key").fetchall()
            except sqlite3.Error as e:
                raise CacheStoreError(f"Failed to iterate cache: {e}") from e
        for key, value in rows:
            yield bytes(key), bytes(value)

    def close(self) -> None:
        with self._lock:
            self._c.close()
