# src/storage/local_store.py

"""Key-value persistence port for per-device state (favorites, drafts)."""

import logging
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Protocol

from src.config.settings import Settings

logger = logging.getLogger("shoplink.storage")

# Faults a storage backend may raise; anything else is a bug
STORAGE_ERRORS: tuple[type[Exception], ...] = (sqlite3.Error, OSError)

_SCHEMA = """\
CREATE TABLE IF NOT EXISTS kv_store (
    key        TEXT PRIMARY KEY,
    value      TEXT NOT NULL,
    updated_at TEXT NOT NULL
);
"""


class KeyValueStore(Protocol):
    """String-keyed string storage; implementations may raise on faults."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...


class MemoryKeyValueStore:
    """Process-local store, used by tests and the headless CLI."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return sorted(self._data)


class SQLiteKeyValueStore:
    """Single-table SQLite store; every write is one committed statement."""

    def __init__(self, db_path: Path | None = None) -> None:
        path = db_path or Settings.LOCAL_STORE_PATH
        path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(str(path), check_same_thread=False)
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.executescript(_SCHEMA)
        logger.debug("Local store opened at %s", path)

    def close(self) -> None:
        """Close the database connection."""
        self._conn.close()

    def get(self, key: str) -> str | None:
        row = self._conn.execute(
            "SELECT value FROM kv_store WHERE key = ?", (key,),
        ).fetchone()
        return None if row is None else str(row[0])

    def set(self, key: str, value: str) -> None:
        with self._conn:
            self._conn.execute(
                "INSERT INTO kv_store (key, value, updated_at) "
                "VALUES (?, ?, ?) "
                "ON CONFLICT(key) DO UPDATE SET "
                "value=excluded.value, updated_at=excluded.updated_at",
                (key, value, datetime.now().isoformat()),
            )

    def remove(self, key: str) -> None:
        with self._conn:
            self._conn.execute("DELETE FROM kv_store WHERE key = ?", (key,))

    def keys(self) -> list[str]:
        rows = self._conn.execute(
            "SELECT key FROM kv_store ORDER BY key"
        ).fetchall()
        return [str(row[0]) for row in rows]
