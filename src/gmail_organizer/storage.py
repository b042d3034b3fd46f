"""SQLite key-value store for persisted organizer state."""

from __future__ import annotations

import json
import sqlite3
import threading
import time
import uuid
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator

from gmail_organizer import constants

_CREATE_TABLES_SQL = """
CREATE TABLE IF NOT EXISTS kv (
    key TEXT PRIMARY KEY,
    value_json TEXT NOT NULL,
    updated_at REAL NOT NULL
);

CREATE TABLE IF NOT EXISTS leases (
    name TEXT PRIMARY KEY,
    token TEXT NOT NULL,
    expires_at REAL NOT NULL
);
"""


class StateStore:
    """Persistent state, atomic at key granularity.

    Read-modify-write sequences must run inside `locked()`, which holds a
    process-local lock and an immediate SQLite write transaction so that
    concurrent writers (a running cycle and an interactive approval, possibly
    in another process) serialize instead of losing updates.
    """

    def __init__(self, db_path: Path | None = None) -> None:
        self.db_path = Path(db_path or constants.STATE_DB_PATH)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(
            str(self.db_path), timeout=30, isolation_level=None, check_same_thread=False
        )
        self._conn.row_factory = sqlite3.Row
        self._lock = threading.RLock()
        self._depth = 0
        self._create_tables()

    def _create_tables(self) -> None:
        with self._lock:
            self._conn.executescript(_CREATE_TABLES_SQL)

    # --- public API ---

    @contextmanager
    def locked(self) -> Iterator[StateStore]:
        """Serialize a read-modify-write sequence; commits on success."""
        with self._lock:
            outermost = self._depth == 0
            if outermost:
                self._conn.execute("BEGIN IMMEDIATE")
            self._depth += 1
            try:
                yield self
            except BaseException:
                self._depth -= 1
                if outermost:
                    self._conn.execute("ROLLBACK")
                raise
            self._depth -= 1
            if outermost:
                self._conn.execute("COMMIT")

    def load(self, key: str, default: Any = None) -> Any:
        """Return the stored value for key, or default when absent."""
        with self._lock:
            row = self._conn.execute("SELECT value_json FROM kv WHERE key = ?", (key,)).fetchone()
        if row is None:
            return default
        return json.loads(row["value_json"])

    def save(self, key: str, value: Any) -> None:
        """Store a JSON-serializable value under key."""
        payload = json.dumps(value)
        with self._lock:
            self._conn.execute(
                "INSERT INTO kv (key, value_json, updated_at) VALUES (?, ?, ?) "
                "ON CONFLICT(key) DO UPDATE SET value_json = excluded.value_json, "
                "updated_at = excluded.updated_at",
                (key, payload, time.time()),
            )

    def try_acquire_lease(self, name: str, ttl_seconds: float) -> str | None:
        """Take a named lease unless another holder's lease is still live.

        Returns the lease token, or None when the lease is held elsewhere.
        """
        token = uuid.uuid4().hex
        now = time.time()
        with self.locked():
            row = self._conn.execute("SELECT expires_at FROM leases WHERE name = ?", (name,)).fetchone()
            if row is not None and row["expires_at"] > now:
                return None
            self._conn.execute(
                "INSERT INTO leases (name, token, expires_at) VALUES (?, ?, ?) "
                "ON CONFLICT(name) DO UPDATE SET token = excluded.token, expires_at = excluded.expires_at",
                (name, token, now + ttl_seconds),
            )
        return token

    def release_lease(self, name: str, token: str) -> None:
        with self.locked():
            self._conn.execute("DELETE FROM leases WHERE name = ? AND token = ?", (name, token))

    def clear(self) -> None:
        """Drop and recreate all tables."""
        with self._lock:
            self._conn.executescript("DROP TABLE IF EXISTS kv;" "DROP TABLE IF EXISTS leases;")
        self._create_tables()

    def get_info(self) -> dict:
        """Return store statistics."""
        file_size = self.db_path.stat().st_size if self.db_path.exists() else 0

        with self._lock:
            rows = self._conn.execute("SELECT key, updated_at FROM kv ORDER BY key").fetchall()

        return {
            "db_path": str(self.db_path),
            "db_file_size": file_size,
            "keys": {r["key"]: r["updated_at"] for r in rows},
        }

    def close(self) -> None:
        """Close the database connection."""
        self._conn.close()

    # --- context manager ---

    def __enter__(self) -> StateStore:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        self.close()
