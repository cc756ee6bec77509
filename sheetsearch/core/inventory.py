"""
In-memory inventory store.

Holds the current and the immediately previous InventorySnapshot and
derives the aggregates shown next to the tables (total size, per-sheet
counts, storage usage).
"""
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from .models import FileRecord, InventorySnapshot, SheetSnapshot

SIZE_SUFFIX = " GB"


# =============================================================================
# Size helpers
# =============================================================================

def parse_size_label(label: Optional[str]) -> Optional[float]:
    """Read a size token such as "120 GB" or "120" as gigabytes."""
    if not label:
        return None
    try:
        return float(label.replace(SIZE_SUFFIX, "").strip())
    except ValueError:
        return None


def format_size(size_gb: Optional[float]) -> Tuple[float, str]:
    """Express a gigabyte total in GB, or TB from 1000 GB up."""
    if size_gb is None:
        return 0.0, "GB"
    if size_gb >= 1000:
        return size_gb / 1000, "TB"
    return size_gb, "GB"


def total_size(records: Iterable[FileRecord]) -> Tuple[float, str]:
    """
    Sum the size carried in `created_label` across records.

    Non-numeric or missing labels contribute nothing.
    """
    total = 0.0
    for record in records:
        size = parse_size_label(record.created_label)
        if size is not None:
            total += size
    return format_size(total)


def storage_stats(used: Tuple[float, str], capacity: float, unit: str = "TB") -> Dict[str, float]:
    """
    Compare used space against a user-entered capacity.

    Everything is converted to TB. A capacity of 0 means "not configured"
    and yields 0% usage.
    """
    used_value, used_unit = used
    used_tb = used_value if used_unit == "TB" else used_value / 1000
    capacity_tb = capacity if unit == "TB" else capacity / 1000

    free_tb = max(0.0, capacity_tb - used_tb)
    used_pct = (used_tb / capacity_tb) * 100 if capacity_tb > 0 else 0.0

    return {
        "used_tb": round(used_tb, 3),
        "free_tb": round(free_tb, 3),
        "capacity_tb": round(capacity_tb, 3),
        "used_percentage": round(used_pct, 1),
    }


# =============================================================================
# Overlays
# =============================================================================

def display_name(sheet_name: str, custom_names: Mapping[str, str]) -> str:
    return custom_names.get(sheet_name) or sheet_name


def ordered_sheets(sheets: Sequence[SheetSnapshot], order: Sequence[str]) -> List[SheetSnapshot]:
    """
    Sort sheets by a stored order list.

    Sheets missing from the list keep their source order after the listed ones.
    """
    position = {name: i for i, name in enumerate(order)}
    indexed = list(enumerate(sheets))
    indexed.sort(key=lambda item: (position.get(item[1].sheet_name, len(position) + item[0])))
    return [sheet for _, sheet in indexed]


# =============================================================================
# Store
# =============================================================================

class InventoryStore:
    """
    Owner of the current and previous snapshot.

    Both are kept in one immutable pair that replace() swaps as a single
    reference assignment, so readers on other threads always see a fully
    installed snapshot.
    """

    def __init__(self):
        self._state: Tuple[Optional[InventorySnapshot], Optional[InventorySnapshot]] = (None, None)

    @property
    def current(self) -> Optional[InventorySnapshot]:
        return self._state[0]

    @property
    def previous(self) -> Optional[InventorySnapshot]:
        return self._state[1]

    def state(self) -> Tuple[Optional[InventorySnapshot], Optional[InventorySnapshot]]:
        """(current, previous) read together."""
        return self._state

    def replace(self, snapshot: InventorySnapshot) -> Optional[InventorySnapshot]:
        """Install a new snapshot; returns the one it displaced."""
        current, _ = self._state
        self._state = (snapshot, current)
        return current

    def clear(self):
        self._state = (None, None)

    def sheets(self) -> Tuple[SheetSnapshot, ...]:
        current = self.current
        return current.sheets if current else ()

    def sheet_by_name(self, name: str) -> Optional[SheetSnapshot]:
        for sheet in self.sheets():
            if sheet.sheet_name == name:
                return sheet
        return None

    def record_counts(self) -> Dict[str, int]:
        return {sheet.sheet_name: len(sheet.records) for sheet in self.sheets()}

    def total_records(self) -> int:
        current = self.current
        return current.record_count if current else 0

    def current_total_size(self) -> Tuple[float, str]:
        current = self.current
        if current is None:
            return format_size(0.0)
        return total_size(record for _, record in current.records())
