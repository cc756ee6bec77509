"""
Database package for SheetSearch.

Persists user preferences only:

    from sheetsearch.core.db import get_source_url, list_display_names
"""

# Base - connection, initialization
from .base import (
    DB_PATH,
    get_db,
    init_db,
)

# Preferences
from .preferences import (
    ACCOUNTS_URL_KEY,
    REFRESH_INTERVAL_KEY,
    SOURCE_URL_KEY,
    STORAGE_UNITS,
    delete_preference,
    get_accounts_url,
    get_preference,
    get_refresh_interval,
    get_source_url,
    get_storage_capacity,
    reset_storage_capacity,
    set_accounts_url,
    set_preference,
    set_refresh_interval,
    set_source_url,
    set_storage_capacity,
)

# Sheet overlays
from .sheets import (
    get_display_name,
    get_sheet_order,
    list_display_names,
    move_sheet,
    reset_display_names,
    save_sheet_order,
    sync_sheet_order,
    update_display_name,
)

__all__ = [
    "DB_PATH",
    "get_db",
    "init_db",
    "ACCOUNTS_URL_KEY",
    "REFRESH_INTERVAL_KEY",
    "SOURCE_URL_KEY",
    "STORAGE_UNITS",
    "delete_preference",
    "get_accounts_url",
    "get_preference",
    "get_refresh_interval",
    "get_source_url",
    "get_storage_capacity",
    "reset_storage_capacity",
    "set_accounts_url",
    "set_preference",
    "set_refresh_interval",
    "set_source_url",
    "set_storage_capacity",
    "get_display_name",
    "get_sheet_order",
    "list_display_names",
    "move_sheet",
    "reset_display_names",
    "save_sheet_order",
    "sync_sheet_order",
    "update_display_name",
]
