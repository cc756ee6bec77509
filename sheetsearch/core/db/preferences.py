"""
Preference database operations.

Values are stored as text; the typed helpers convert and fall back to the
environment defaults from config when nothing has been saved yet.
"""
from datetime import datetime
from typing import Optional, Tuple

from ..config import settings
from .base import get_db

SOURCE_URL_KEY = "last_used_sheet_url"
ACCOUNTS_URL_KEY = "user_accounts_sheet_url"
REFRESH_INTERVAL_KEY = "auto_refresh_interval"
STORAGE_CAPACITY_KEY = "total_storage_capacity"
STORAGE_UNIT_KEY = "storage_unit"

STORAGE_UNITS = ("TB", "GB")


def get_preference(key: str, default: Optional[str] = None) -> Optional[str]:
    with get_db() as conn:
        row = conn.execute(
            "SELECT value FROM preferences WHERE key = ?",
            (key,)
        ).fetchone()
    return row["value"] if row else default


def set_preference(key: str, value: Optional[str]):
    now = datetime.utcnow().isoformat()
    with get_db() as conn:
        conn.execute("""
            INSERT INTO preferences (key, value, updated_at) VALUES (?, ?, ?)
            ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at
        """, (key, value, now))


def delete_preference(key: str) -> bool:
    with get_db() as conn:
        cur = conn.execute("DELETE FROM preferences WHERE key = ?", (key,))
        return cur.rowcount > 0


# ============== Sources ==============

def get_source_url() -> str:
    return get_preference(SOURCE_URL_KEY, settings.SOURCE_URL) or ""


def set_source_url(url: str):
    set_preference(SOURCE_URL_KEY, url)


def get_accounts_url() -> str:
    return get_preference(ACCOUNTS_URL_KEY, settings.ACCOUNTS_URL) or ""


def set_accounts_url(url: str):
    set_preference(ACCOUNTS_URL_KEY, url)


# ============== Auto refresh ==============

def get_refresh_interval() -> int:
    """Auto-refresh period in seconds, 0 when disabled."""
    value = get_preference(REFRESH_INTERVAL_KEY)
    if value is None:
        return settings.REFRESH_INTERVAL
    try:
        return max(0, int(float(value)))
    except ValueError:
        return settings.REFRESH_INTERVAL


def set_refresh_interval(seconds: int):
    set_preference(REFRESH_INTERVAL_KEY, str(int(seconds)))


# ============== Storage calculator ==============

def get_storage_capacity() -> Tuple[float, str]:
    """(capacity, unit) entered by the user, (0.0, "TB") when unset."""
    unit = get_preference(STORAGE_UNIT_KEY, "TB")
    if unit not in STORAGE_UNITS:
        unit = "TB"
    try:
        capacity = float(get_preference(STORAGE_CAPACITY_KEY, "0") or 0)
    except ValueError:
        capacity = 0.0
    return capacity, unit


def set_storage_capacity(capacity: float, unit: str = "TB"):
    set_preference(STORAGE_CAPACITY_KEY, str(float(capacity)))
    set_preference(STORAGE_UNIT_KEY, unit)


def reset_storage_capacity():
    delete_preference(STORAGE_CAPACITY_KEY)
    delete_preference(STORAGE_UNIT_KEY)
