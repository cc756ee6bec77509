"""
Test configuration and fixtures for the SheetSearch test suite.

Provides:
- In-memory SQLite preference database (isolated per test)
- Published-page builder and a fake requests session
- Controllers wired to the fake session
- FastAPI TestClient fixture
"""
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from html import escape
from typing import List, Optional, Sequence, Tuple
from unittest.mock import patch

import pytest
import requests
from fastapi.testclient import TestClient

from sheetsearch.core import db
from sheetsearch.core.controllers import ACCOUNTS, INVENTORY, Controllers, get_controllers
from sheetsearch.core.db.base import SCHEMA
from sheetsearch.core.models import FileRecord, InventorySnapshot, SheetSnapshot
from sheetsearch.core.reconciler import ChangeFeed
from sheetsearch.core.refresh import RefreshController

INVENTORY_URL = "https://docs.google.com/spreadsheets/d/e/inventory/pubhtml"
ACCOUNTS_URL = "https://docs.google.com/spreadsheets/d/e/accounts/pubhtml"

HEADER_ROW = ("Folder Name", "Name", "Created", "Size", "Description")


# ---------------------------------------------------------------------------
# Database fixtures
# ---------------------------------------------------------------------------

def _create_test_db() -> sqlite3.Connection:
    """Create an in-memory SQLite database with the preference schema."""
    conn = sqlite3.connect(":memory:", check_same_thread=False)
    conn.row_factory = sqlite3.Row
    conn.executescript(SCHEMA)
    return conn


@contextmanager
def _test_get_db(conn: sqlite3.Connection):
    """Replacement for get_db() that uses the shared test connection."""
    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise


@pytest.fixture()
def test_db():
    """Provide a fresh in-memory SQLite database for each test."""
    conn = _create_test_db()
    yield conn
    conn.close()


@pytest.fixture()
def patch_db(test_db):
    """
    Patch the get_db context manager across all db modules so that
    every database call uses the in-memory test database.
    """
    cm = lambda: _test_get_db(test_db)  # noqa: E731

    with (
        patch("sheetsearch.core.db.base.get_db", cm),
        patch("sheetsearch.core.db.preferences.get_db", cm),
        patch("sheetsearch.core.db.sheets.get_db", cm),
    ):
        yield test_db


# ---------------------------------------------------------------------------
# Published pages
# ---------------------------------------------------------------------------

def build_page(
    sheets: Sequence[Tuple[Optional[str], Sequence[Sequence[str]]]],
    modified: Optional[str] = "2024-05-01T10:00:00Z",
) -> bytes:
    """
    Render a page shaped like a spreadsheet "publish to the web" export.

    `sheets` is a list of (tab name, data rows); a tab name of None leaves
    the tab button out. Every grid gets the column-letter header row, the
    row-number <th> cells and the sheet's own header row.
    """
    parts = ['<!DOCTYPE html><html><head><meta charset="utf-8">']
    if modified:
        parts.append(f'<meta property="og:updated_time" content="{modified}">')
    parts.append('<title>Inventory</title></head><body>')

    parts.append('<div id="top-bar"><ul id="sheet-menu">')
    for i, (name, _) in enumerate(sheets):
        if name is not None:
            parts.append(f'<li id="sheet-button-{i}"><a href="#">{escape(name)}</a></li>')
    parts.append('</ul></div><div id="sheets-viewport">')

    for i, (_, rows) in enumerate(sheets):
        parts.append(
            f'<div id="{i}" style="display:none;position:relative;" dir="ltr">'
            '<div class="ritz grid-container" dir="ltr">'
            '<table class="waffle" cellspacing="0" cellpadding="0"><thead><tr>'
            '<th class="row-header freezebar-origin-ltr"></th>'
            '<th>A</th><th>B</th><th>C</th><th>D</th><th>E</th>'
            '</tr></thead><tbody>'
        )
        for n, row in enumerate([HEADER_ROW, *rows], 1):
            cells = "".join(f'<td class="s0">{escape(cell)}</td>' for cell in row)
            parts.append(
                f'<tr style="height: 20px"><th class="row-headers-background">'
                f'<div class="row-header-wrapper">{n}</div></th>{cells}</tr>'
            )
        parts.append('</tbody></table></div></div>')

    parts.append('</div></body></html>')
    return "".join(parts).encode("utf-8")


PHOTOS_ROWS = [
    ("Photos/2023", "Holiday Report Q3", "120 GB", "2 GB", "Beach trip"),
    ("Photos/2024", "Birthday", "80 GB", "1 GB", ""),
]
VIDEOS_ROWS = [
    ("Videos/Raw", "Q3 report footage", "900 GB", "40 GB", "Unedited"),
]


@pytest.fixture()
def inventory_page() -> bytes:
    return build_page([("Photos", PHOTOS_ROWS), ("Videos", VIDEOS_ROWS)])


# ---------------------------------------------------------------------------
# Fake transport
# ---------------------------------------------------------------------------

class FakeResponse:
    def __init__(self, content: bytes = b"", status_code: int = 200):
        self.content = content
        self.status_code = status_code


class FakeSession:
    """
    Stand-in for requests.Session.

    Serves `pages` in order (the last one repeats), or raises `error`.
    Every call is recorded in `calls`.
    """

    def __init__(self, pages: Sequence[bytes] = (), status_code: int = 200, error: Optional[Exception] = None):
        self.pages: List[bytes] = list(pages)
        self.status_code = status_code
        self.error = error
        self.calls: List[dict] = []

    def get(self, url, params=None, headers=None, timeout=None):
        self.calls.append({"url": url, "params": params, "headers": headers, "timeout": timeout})
        if self.error is not None:
            raise self.error
        content = self.pages.pop(0) if len(self.pages) > 1 else (self.pages[0] if self.pages else b"")
        return FakeResponse(content, self.status_code)


def connection_error() -> requests.ConnectionError:
    return requests.ConnectionError("Connection refused")


# ---------------------------------------------------------------------------
# Snapshot factories
# ---------------------------------------------------------------------------

def make_record(location: str, name: str, created: Optional[str] = None, size: Optional[str] = None,
                description: Optional[str] = None) -> FileRecord:
    return FileRecord(name=name, location=location, created_label=created, size_label=size,
                      description=description)


def make_snapshot(*sheets: Tuple[str, Sequence[FileRecord]]) -> InventorySnapshot:
    """make_snapshot(("Photos", [record, ...]), ("Videos", [...]))"""
    return InventorySnapshot(
        sheets=tuple(SheetSnapshot(sheet_name=name, records=tuple(records)) for name, records in sheets),
        fetched_at=datetime(2024, 5, 1, tzinfo=timezone.utc),
    )


# ---------------------------------------------------------------------------
# Controllers and client
# ---------------------------------------------------------------------------

@pytest.fixture()
def inventory_session(inventory_page):
    return FakeSession([inventory_page])


@pytest.fixture()
def accounts_session():
    rows = [("alice", "Alice Smith", "", "", "Admin"), ("bob", "Bob Jones", "", "", "")]
    return FakeSession([build_page([("Users", rows)])])


@pytest.fixture()
def controllers(patch_db, inventory_session, accounts_session):
    """Both controllers with fake transports and no source configured yet."""
    inventory = RefreshController(
        INVENTORY,
        session=inventory_session,
        feed=ChangeFeed(limit=1000),
        save_url=db.set_source_url,
        save_interval=db.set_refresh_interval,
    )
    accounts = RefreshController(
        ACCOUNTS,
        session=accounts_session,
        save_url=db.set_accounts_url,
    )
    return Controllers(inventory=inventory, accounts=accounts)


@pytest.fixture()
def client(patch_db, controllers):
    """
    Provide a FastAPI TestClient bound to the test controllers.

    Skips the lifespan (worker init/shutdown) to avoid APScheduler side effects.
    """
    from sheetsearch.api.main import app

    app.dependency_overrides[get_controllers] = lambda: controllers
    # Disable lifespan so worker doesn't start during tests
    with patch("sheetsearch.api.main.init_worker"), \
         patch("sheetsearch.api.main.stop_scheduler"):
        with TestClient(app) as c:
            yield c
    app.dependency_overrides.clear()
