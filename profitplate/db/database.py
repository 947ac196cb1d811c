"""SQLite-backed key-value storage for the three ProfitPlate collections.

The data lives in a single-file database at ~/.profitplate/profitplate.db
(or DB_PATH) inside one table, kv_store, holding JSON text per key. Keys are
namespaced as "profitplate:<collection>" so several apps can share a file.
Every public method opens a connection, uses it, and closes it in a finally
block.
"""

import json
import logging
import os
import sqlite3
from pathlib import Path
from typing import Optional

from profitplate.errors import StorageWriteError

logger = logging.getLogger(__name__)

NAMESPACE = "profitplate"


def get_db_path() -> Path:
    """Return the active DB path.

    Priority order:
    1. DB_PATH environment variable (used by Docker / local dev / tests)
    2. Default ~/.profitplate/profitplate.db
    """
    env_path = os.environ.get("DB_PATH")
    if env_path:
        p = Path(env_path)
        p.parent.mkdir(parents=True, exist_ok=True)
        return p
    db_dir = Path.home() / ".profitplate"
    db_dir.mkdir(exist_ok=True)
    return db_dir / "profitplate.db"


def get_connection(db_path: Path = None) -> sqlite3.Connection:
    """Return a new SQLite connection with Row factory.

    Callers are responsible for closing the connection when done.
    """
    if db_path is None:
        db_path = get_db_path()
    conn = sqlite3.connect(str(db_path))
    conn.row_factory = sqlite3.Row
    return conn


def init_db(db_path: Path = None) -> None:
    """Create the key-value table if it doesn't already exist.

    Called once at application startup from app/main.py.
    """
    conn = get_connection(db_path)
    try:
        conn.execute("""
            CREATE TABLE IF NOT EXISTS kv_store (
                key   TEXT PRIMARY KEY,
                value TEXT
            )
        """)
        conn.commit()
    finally:
        conn.close()


class SQLiteStorage:
    """Key-value storage port backed by the kv_store table."""

    def __init__(self, db_path: Path = None, namespace: str = NAMESPACE):
        self.db_path = db_path if db_path is not None else get_db_path()
        self.namespace = namespace
        init_db(self.db_path)

    def _key(self, key: str) -> str:
        return f"{self.namespace}:{key}"

    def get_item(self, key: str) -> Optional[str]:
        conn = get_connection(self.db_path)
        try:
            row = conn.execute(
                "SELECT value FROM kv_store WHERE key = ?", (self._key(key),)
            ).fetchone()
            return row["value"] if row else None
        finally:
            conn.close()

    def set_item(self, key: str, value: str) -> None:
        conn = get_connection(self.db_path)
        try:
            conn.execute(
                "INSERT INTO kv_store (key, value) VALUES (?, ?) "
                "ON CONFLICT(key) DO UPDATE SET value=excluded.value",
                (self._key(key), value),
            )
            conn.commit()
        except sqlite3.Error as exc:
            logger.error("Write of %s failed: %s", self._key(key), exc)
            raise StorageWriteError(f"Could not write {key}: {exc}") from exc
        finally:
            conn.close()

    def remove_item(self, key: str) -> None:
        conn = get_connection(self.db_path)
        try:
            conn.execute("DELETE FROM kv_store WHERE key = ?", (self._key(key),))
            conn.commit()
        finally:
            conn.close()


class MemoryStorage:
    """In-process storage port with the same contract as SQLiteStorage.

    Used by tests and anywhere a throwaway store is enough.
    """

    def __init__(self, initial: dict = None):
        self.items: dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> Optional[str]:
        return self.items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self.items[key] = value

    def remove_item(self, key: str) -> None:
        self.items.pop(key, None)


def load_collection(storage, key: str, default):
    """Read and decode a JSON collection.

    An absent value, invalid JSON, or a value of the wrong shape (e.g. an
    object where a list is expected) is replaced by ``default``, which is
    also written back so the next load is clean.
    """
    raw = storage.get_item(key)
    if raw is None:
        return _reset(storage, key, default)
    try:
        data = json.loads(raw)
    except (TypeError, ValueError) as exc:
        logger.warning("Collection %r is corrupted, resetting: %s", key, exc)
        return _reset(storage, key, default)
    if not isinstance(data, type(default)):
        logger.warning(
            "Collection %r has type %s, expected %s; resetting",
            key, type(data).__name__, type(default).__name__,
        )
        return _reset(storage, key, default)
    return data


def save_collection(storage, key: str, data) -> None:
    """Encode and persist an entire collection. Raises StorageWriteError."""
    storage.set_item(key, json.dumps(data, ensure_ascii=False))


def _reset(storage, key: str, default):
    try:
        save_collection(storage, key, default)
    except StorageWriteError:
        # Default is still served from memory; the next mutation rewrites it.
        logger.error("Could not reset collection %r", key)
    return json.loads(json.dumps(default))
