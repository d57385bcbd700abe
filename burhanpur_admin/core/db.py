"""
SQLite persistence for the local override store.
"""

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Generator, Optional

from . import config


@contextmanager
def get_db(path: Optional[str] = None) -> Generator[sqlite3.Connection, None, None]:
    """Get a SQLite database connection."""
    conn = sqlite3.connect(path or config.OVERRIDE_DB_PATH)
    try:
        yield conn
    finally:
        conn.close()


def init_db(path: Optional[str] = None):
    """Initialize the database with required tables."""
    Path(path or config.OVERRIDE_DB_PATH).parent.mkdir(parents=True, exist_ok=True)

    with get_db(path) as conn:
        cursor = conn.cursor()

        # One row per local flag, keyed like the browser store: pending_<kind>_<id>
        cursor.execute('''
            CREATE TABLE IF NOT EXISTS overrides (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
        ''')

        conn.commit()


def health_check(path: Optional[str] = None):
    """Check database health."""
    try:
        with get_db(path) as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT name FROM sqlite_master WHERE type='table';")
            table_names = [row[0] for row in cursor.fetchall()]
            return 'overrides' in table_names
    except sqlite3.Error:
        return False
