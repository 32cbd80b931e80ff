import sqlite3
import logging
from contextlib import closing
from typing import Optional
import config

logger = logging.getLogger(__name__)


def _connect() -> sqlite3.Connection:
    if not config.DB_FILE:
        raise sqlite3.OperationalError("Database path not configured")
    return sqlite3.connect(config.DB_FILE)


def init_db() -> None:
    """
    Initializes the SQLite database.
    Creates the key-value table used as the local durable store if it does not exist.
    """
    if not config.DB_FILE:
        logger.warning("Database path not found in config.")
        return

    with closing(_connect()) as conn:
        c = conn.cursor()
        c.execute("""
            CREATE TABLE IF NOT EXISTS kv_store (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)
        conn.commit()


def kv_get(key: str) -> Optional[str]:
    """
    Reads the value stored under a key.

    Returns:
        str: The stored text, or None if the key has never been written.

    Raises:
        sqlite3.Error: If the database cannot be read.
    """
    with closing(_connect()) as conn:
        c = conn.cursor()
        c.execute("SELECT value FROM kv_store WHERE key=?", (key,))
        row = c.fetchone()
    return row[0] if row else None


def kv_set(key: str, value: str) -> None:
    """
    Writes (or fully overwrites) the value under a key.

    Raises:
        sqlite3.Error: If the write fails (disk full, read-only file, locked DB).
    """
    with closing(_connect()) as conn:
        c = conn.cursor()
        c.execute(
            "INSERT OR REPLACE INTO kv_store (key, value, updated_at) VALUES (?, ?, CURRENT_TIMESTAMP)",
            (key, value),
        )
        conn.commit()


def kv_delete(key: str) -> None:
    """Removes a key. Missing keys are ignored."""
    with closing(_connect()) as conn:
        c = conn.cursor()
        c.execute("DELETE FROM kv_store WHERE key=?", (key,))
        conn.commit()
