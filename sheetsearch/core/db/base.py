"""
SQLite connection handling for the preference store.

Only user preferences live here (source URLs, refresh interval, sheet
display names and order). Inventory data is never persisted.
"""
import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path

from ..config import settings

logger = logging.getLogger(__name__)

DB_PATH = Path(settings.DB_PATH)

# Seconds a writer waits on a locked database; refresh jobs and API requests share it
LOCK_TIMEOUT = 5.0


@contextmanager
def get_db():
    """Yield a connection that commits on success and rolls back on error."""
    conn = sqlite3.connect(str(DB_PATH), timeout=LOCK_TIMEOUT)
    conn.row_factory = sqlite3.Row
    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


SCHEMA = """
    -- Key/value preferences (source URLs, refresh interval, storage capacity)
    CREATE TABLE IF NOT EXISTS preferences (
        key TEXT PRIMARY KEY,
        value TEXT,
        updated_at TEXT DEFAULT CURRENT_TIMESTAMP
    );

    -- Custom sidebar names, keyed by the sheet name found in the page
    CREATE TABLE IF NOT EXISTS sheet_display_names (
        sheet_name TEXT PRIMARY KEY,
        display_name TEXT,
        created_at TEXT DEFAULT CURRENT_TIMESTAMP,
        updated_at TEXT DEFAULT CURRENT_TIMESTAMP
    );

    -- User-chosen sidebar order
    CREATE TABLE IF NOT EXISTS sheet_order (
        sheet_name TEXT PRIMARY KEY,
        sort_order INTEGER NOT NULL,
        updated_at TEXT DEFAULT CURRENT_TIMESTAMP
    );

    CREATE INDEX IF NOT EXISTS idx_sheet_order_sort ON sheet_order(sort_order);
"""


def init_db():
    """Create the preference tables if they don't exist yet."""
    DB_PATH.parent.mkdir(parents=True, exist_ok=True)

    with get_db() as conn:
        # Readers keep working while a refresh job writes the sheet order
        conn.execute("PRAGMA journal_mode=WAL")
        conn.executescript(SCHEMA)

    logger.info(f"Preference database ready at {DB_PATH}")
