"""
Query and filter engine over the current inventory.
"""
import re
from typing import Any, Iterable, List, Optional, Tuple

from .exceptions import ValidationError
from .models import FileRecord, InventorySnapshot

SheetResults = List[Tuple[str, List[FileRecord]]]

SORTABLE_FIELDS = ("location", "name", "created_label", "size_label", "description")

_DIGITS = re.compile(r"(\d+)")


def tokenize(query: Optional[str]) -> List[str]:
    """Lowercase whitespace-separated search terms."""
    if not query:
        return []
    return query.lower().split()


def matches(record: FileRecord, terms: Iterable[str]) -> bool:
    """Every term must appear in the name or in the location."""
    name = record.name.lower()
    location = record.location.lower()
    return all(term in name or term in location for term in terms)


def search(snapshot: Optional[InventorySnapshot], query: str) -> SheetResults:
    """
    Matching records per sheet, in source order.

    Sheets without a match are left out. A blank query has no terms and
    matches nothing; showing everything is a separate mode (see view_results).
    """
    terms = tokenize(query)
    if snapshot is None or not terms:
        return []

    results = []
    for sheet in snapshot.sheets:
        hits = [record for record in sheet.records if matches(record, terms)]
        if hits:
            results.append((sheet.sheet_name, hits))
    return results


def view_results(
    snapshot: Optional[InventorySnapshot],
    query: Optional[str] = None,
    selected_sheet: Optional[str] = None,
    show_all: bool = False,
) -> SheetResults:
    """
    Records for whichever mode the caller is in.

    A non-blank query means search results; otherwise all sheets, otherwise
    the selected sheet, otherwise nothing.
    """
    if snapshot is None:
        return []
    if tokenize(query):
        return search(snapshot, query)
    if show_all:
        return [(sheet.sheet_name, list(sheet.records)) for sheet in snapshot.sheets]
    if selected_sheet:
        for sheet in snapshot.sheets:
            if sheet.sheet_name == selected_sheet:
                return [(sheet.sheet_name, list(sheet.records))]
    return []


def natural_key(value: str) -> Tuple[Any, ...]:
    """Case-insensitive key that orders "disk 2" before "disk 10"."""
    parts = _DIGITS.split(value.lower())
    # split() with a capture group puts the digit runs at odd positions
    return tuple(int(part) if i % 2 else part for i, part in enumerate(parts))


def sort_records(
    records: Iterable[FileRecord],
    key: str = "location",
    descending: bool = False,
) -> List[FileRecord]:
    """
    Sort records by one field.

    Missing values go last in either direction.
    """
    if key not in SORTABLE_FIELDS:
        raise ValidationError(f"Cannot sort by '{key}'")

    records = list(records)
    present = [r for r in records if getattr(r, key)]
    missing = [r for r in records if not getattr(r, key)]
    present.sort(key=lambda r: natural_key(getattr(r, key)), reverse=descending)
    return present + missing
