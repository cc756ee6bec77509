"""
Published-spreadsheet HTML parsing.

Turns the page produced by a spreadsheet "publish to the web" export into an
InventorySnapshot:
- Document-level last-modified timestamp from <meta> tags
- Sheet names from the tab buttons
- One sheet per grid container, rows read by fixed column position

The page carries no semantic column headers, only the visual layout the
producer commits to, so every layout assumption lives in SheetLayout.
"""
import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from html.parser import HTMLParser
from typing import Dict, Iterator, List, Optional, Tuple

from .exceptions import ParseError, ParseErrorKind
from .models import FileRecord, InventorySnapshot, SheetSnapshot, is_valid_row

logger = logging.getLogger(__name__)


# =============================================================================
# Layout
# =============================================================================

@dataclass(frozen=True)
class SheetLayout:
    """Markup conventions of the published-spreadsheet renderer."""
    # Both class tokens together mark a per-sheet grid
    container_classes: frozenset = frozenset({"ritz", "grid-container"})
    tab_id_prefix: str = "sheet-button-"
    # (attribute, value) of candidate <meta> tags, highest priority first
    modified_meta: Tuple[Tuple[str, str], ...] = (
        ("property", "og:updated_time"),
        ("name", "revised"),
        ("name", "last-modified"),
    )
    header_rows: int = 1
    location_col: int = 0
    name_col: int = 1
    created_col: int = 2
    size_col: int = 3
    description_col: int = 4
    min_cells: int = 5


DEFAULT_LAYOUT = SheetLayout()


# =============================================================================
# Utility Functions
# =============================================================================

def clean_text(text: str) -> str:
    """Collapse whitespace runs and trim."""
    if not text:
        return ""
    return " ".join(text.split())


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp, returning None when it can't be read."""
    if not value:
        return None
    value = value.strip()
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        return None


# =============================================================================
# Markup scanner
# =============================================================================

class _Grid:
    """A grid container seen while scanning, with the rows of its first table."""

    def __init__(self, index: int):
        self.index = index
        self.has_table = False
        self.rows: List[List[str]] = []


class PublishedSheetParser(HTMLParser):
    """
    Event-driven scanner for published-spreadsheet pages.

    Tolerates unclosed and stray tags; anything still open when the input
    ends is finalized by close(). Only <td> cells count, the renderer's <th>
    row headers are ignored.
    """

    def __init__(self, layout: SheetLayout = DEFAULT_LAYOUT):
        super().__init__(convert_charrefs=True)
        self.layout = layout
        self.meta: Dict[Tuple[str, str], str] = {}
        self.tab_names: List[str] = []
        self.grids: List[_Grid] = []

        self._li_stack: List[bool] = []
        self._tab_text: Optional[List[str]] = None
        self._div_depth = 0
        self._grid: Optional[_Grid] = None
        self._grid_depth = 0
        self._table_depth = 0
        self._row: Optional[List[str]] = None
        self._cell: Optional[List[str]] = None

    # -- helpers -------------------------------------------------------------

    def _is_grid(self, attributes: Dict[str, Optional[str]]) -> bool:
        classes = set((attributes.get("class") or "").split())
        return self.layout.container_classes <= classes

    def _close_cell(self):
        if self._cell is not None and self._row is not None:
            self._row.append(clean_text("".join(self._cell)))
        self._cell = None

    def _close_row(self):
        self._close_cell()
        if self._row is not None and self._grid is not None:
            self._grid.rows.append(self._row)
        self._row = None

    def _close_grid(self):
        self._close_row()
        self._table_depth = 0
        self._grid = None

    # -- HTMLParser hooks ----------------------------------------------------

    def handle_starttag(self, tag, attrs):
        attributes = dict(attrs)

        if tag == "meta":
            for key in self.layout.modified_meta:
                attr, value = key
                if attributes.get(attr) == value and key not in self.meta:
                    self.meta[key] = attributes.get("content") or ""
            return

        if tag == "li":
            li_id = attributes.get("id") or ""
            self._li_stack.append(li_id.startswith(self.layout.tab_id_prefix))
            return

        if tag == "a":
            if self._li_stack and self._li_stack[-1]:
                self._tab_text = []
            return

        if tag == "div":
            self._div_depth += 1
            if self._grid is None and self._is_grid(attributes):
                self._grid = _Grid(len(self.grids))
                self.grids.append(self._grid)
                self._grid_depth = self._div_depth
            return

        if tag == "br":
            self.handle_data(" ")
            return

        if self._grid is None:
            return

        if tag == "table":
            if self._table_depth:
                self._table_depth += 1
            elif not self._grid.has_table:
                self._grid.has_table = True
                self._table_depth = 1
            return

        if self._table_depth != 1:
            return

        if tag == "tr":
            self._close_row()
            self._row = []
        elif tag in ("td", "th"):
            self._close_cell()
            if tag == "td" and self._row is not None:
                self._cell = []

    def handle_endtag(self, tag):
        if tag == "li":
            if self._li_stack:
                self._li_stack.pop()
            return

        if tag == "a":
            if self._tab_text is not None:
                name = clean_text("".join(self._tab_text))
                if name:
                    self.tab_names.append(name)
                self._tab_text = None
            return

        if tag == "div":
            if self._grid is not None and self._div_depth == self._grid_depth:
                self._close_grid()
            self._div_depth = max(0, self._div_depth - 1)
            return

        if self._grid is None or not self._table_depth:
            return

        if tag == "table":
            self._table_depth -= 1
            if self._table_depth == 0:
                self._close_row()
        elif self._table_depth == 1:
            if tag == "td":
                self._close_cell()
            elif tag == "tr":
                self._close_row()

    def handle_data(self, data):
        if self._cell is not None:
            self._cell.append(data)
        if self._tab_text is not None:
            self._tab_text.append(data)

    def close(self):
        super().close()
        if self._grid is not None:
            self._close_grid()

    # -- results -------------------------------------------------------------

    def last_modified(self) -> Optional[datetime]:
        """Timestamp from the highest-priority meta tag present."""
        for key in self.layout.modified_meta:
            if key in self.meta:
                return parse_timestamp(self.meta[key])
        return None

    def sheet_name(self, index: int) -> str:
        if index < len(self.tab_names):
            return self.tab_names[index]
        return f"Sheet {index + 1}"


# =============================================================================
# Extraction
# =============================================================================

def _rows_to_records(rows: List[List[str]], layout: SheetLayout) -> Iterator[FileRecord]:
    """Turn raw table rows into valid records, skipping the header row."""
    for cells in rows[layout.header_rows:]:
        # No partial records
        if len(cells) < layout.min_cells:
            continue

        location = cells[layout.location_col]
        name = cells[layout.name_col]
        if not is_valid_row(location, name):
            continue

        yield FileRecord(
            name=name,
            location=location,
            created_label=cells[layout.created_col] or None,
            size_label=cells[layout.size_col] or None,
            description=cells[layout.description_col] or None,
        )


def extract(raw: bytes, layout: SheetLayout = DEFAULT_LAYOUT) -> InventorySnapshot:
    """
    Parse a published-spreadsheet page into an InventorySnapshot.

    Args:
        raw: Response body as received
        layout: Markup conventions to apply

    Returns:
        Snapshot with at least one sheet

    Raises:
        ParseError: body is not UTF-8, has no grid, or yields no sheet
    """
    started = time.perf_counter()

    try:
        html = raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise ParseError(ParseErrorKind.ENCODING, f"Failed to decode page as UTF-8: {e}") from e

    parser = PublishedSheetParser(layout)
    parser.feed(html)
    parser.close()

    if not parser.grids:
        raise ParseError(ParseErrorKind.NO_GRID_FOUND, "No spreadsheet grid found in page")

    last_modified = parser.last_modified()
    sheets = []

    for grid in parser.grids:
        if not grid.has_table:
            continue

        sheet = SheetSnapshot(
            sheet_name=parser.sheet_name(grid.index),
            records=tuple(_rows_to_records(grid.rows, layout)),
            last_modified=last_modified,
        )
        if sheet.should_retain():
            sheets.append(sheet)
        else:
            logger.debug(f"Dropping empty unnamed sheet '{sheet.sheet_name}'")

    if not sheets:
        raise ParseError(ParseErrorKind.NO_DATA, "No files found in sheets")

    snapshot = InventorySnapshot(sheets=tuple(sheets), fetched_at=datetime.now(timezone.utc))

    logger.info(
        f"Parsed {len(sheets)} sheets with {snapshot.record_count} files "
        f"({len(raw)} bytes) in {time.perf_counter() - started:.2f}s"
    )
    return snapshot
