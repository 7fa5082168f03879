"""SQLiteKVStore: file-backed key-value store for the rate-limit window.

The default store. Windows survive restarts and are shared between server
workers on the same host.

Schema:
  kv: one row per key; expires_at is an epoch timestamp. Expired rows are
      ignored on read, replaced on the next write to that key, and purged
      when the store is opened.
"""

from __future__ import annotations

import logging
import sqlite3
import threading
import time
from typing import Callable

from articlecheck_store.base import BaseKVStore

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS kv (
    key         TEXT PRIMARY KEY,
    value       TEXT NOT NULL,
    expires_at  REAL NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_kv_expires ON kv (expires_at);
"""


class SQLiteKVStore(BaseKVStore):
    """Stores key-value records in a local SQLite database file.

    The database file path defaults to `.articlecheck.db` in the current
    working directory. Configure via .articlecheck.yml: `store_path: /path/to/db`.

    The connection is opened with check_same_thread=False because the web
    server calls the store from whichever thread serves the request; a lock
    serialises access.
    """

    def __init__(self, db_path: str = ".articlecheck.db", clock: Callable[[], float] = time.time):
        self._clock = clock
        self._lock = threading.Lock()
        self._conn = sqlite3.connect(db_path, check_same_thread=False)
        self._conn.executescript(_SCHEMA)
        self._conn.commit()
        self.purge_expired()

    def get(self, key: str) -> str | None:
        with self._lock:
            row = self._conn.execute(
                "SELECT value FROM kv WHERE key=? AND expires_at > ?",
                (key, self._clock()),
            ).fetchone()
        return row[0] if row else None

    def put(self, key: str, value: str, ttl_seconds: int) -> None:
        now = self._clock()
        with self._lock:
            self._conn.execute(
                "INSERT OR REPLACE INTO kv (key, value, expires_at) VALUES (?, ?, ?)",
                (key, value, now + ttl_seconds),
            )
            self._conn.commit()

    def purge_expired(self) -> int:
        """Delete every expired row and return how many were removed."""
        with self._lock:
            cursor = self._conn.execute("DELETE FROM kv WHERE expires_at <= ?", (self._clock(),))
            self._conn.commit()
        if cursor.rowcount:
            logger.debug("Purged %d expired key(s)", cursor.rowcount)
        return cursor.rowcount

    def close(self) -> None:
        with self._lock:
            self._conn.close()
