"""
Data models for the sheet inventory.

All structured data uses dataclasses. Records and snapshots are frozen:
a "modification" between fetches is detected by the reconciler, never
applied in place.
"""
import re
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Iterator, Optional, Tuple


# Rows whose first two cells carry these values are the sheet's own header row
HEADER_SENTINELS = frozenset({"Name", "Folder Name"})
SENTINEL_PREFIX = "All files"

# Names the extractor gives to sheets without a tab label
FALLBACK_SHEET_NAME = re.compile(r"^Sheet \d+$")


def _new_id() -> str:
    return str(uuid.uuid4())


@dataclass(frozen=True)
class FileRecord:
    """
    One inventory row.

    `created_label` is free form: depending on the sheet it holds a date or a
    size token such as "120 GB". `id` is minted per instance, so two rows with
    identical fields are still distinct records.
    """
    name: str
    location: str                       # "Folder Name" column
    created_label: Optional[str] = None
    size_label: Optional[str] = None
    description: Optional[str] = None
    id: str = field(default_factory=_new_id)

    @property
    def is_valid(self) -> bool:
        return is_valid_row(self.location, self.name)

    def content(self) -> Tuple[str, str, Optional[str], Optional[str], Optional[str]]:
        """Field values without the id, for comparisons across fetches."""
        return (self.location, self.name, self.created_label, self.size_label, self.description)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "location": self.location,
            "created_label": self.created_label,
            "size_label": self.size_label,
            "description": self.description,
        }


def is_valid_row(location: Optional[str], name: Optional[str]) -> bool:
    """A row counts only if both identifying cells hold real content."""
    if not location or not name:
        return False
    if location in HEADER_SENTINELS or name in HEADER_SENTINELS:
        return False
    if name.startswith(SENTINEL_PREFIX):
        return False
    return True


@dataclass(frozen=True)
class SheetSnapshot:
    """One parsed table (one spreadsheet tab)."""
    sheet_name: str
    records: Tuple[FileRecord, ...] = ()
    last_modified: Optional[datetime] = None

    @property
    def has_fallback_name(self) -> bool:
        return bool(FALLBACK_SHEET_NAME.match(self.sheet_name))

    def should_retain(self) -> bool:
        # Explicitly named empty tabs are kept, anonymous empty ones are not
        return bool(self.records) or not self.has_fallback_name


@dataclass(frozen=True)
class InventorySnapshot:
    """The full result of one fetch."""
    sheets: Tuple[SheetSnapshot, ...]
    fetched_at: datetime

    def records(self) -> Iterator[Tuple[str, FileRecord]]:
        """All records as (sheet_name, record) pairs, in sheet then row order."""
        for sheet in self.sheets:
            for record in sheet.records:
                yield sheet.sheet_name, record

    @property
    def record_count(self) -> int:
        return sum(len(sheet.records) for sheet in self.sheets)

    def sheet_names(self) -> list[str]:
        return [sheet.sheet_name for sheet in self.sheets]

    @property
    def last_modified(self) -> Optional[datetime]:
        return self.sheets[0].last_modified if self.sheets else None


class ChangeKind(str, Enum):
    ADDED = "added"
    MODIFIED = "modified"
    REMOVED = "removed"


@dataclass(frozen=True)
class ChangeEvent:
    """
    A single add/modify/remove detected between two snapshots.

    `key` is the record's location, the only identity that survives across
    fetches.
    """
    key: str
    kind: ChangeKind
    sheet_name: str
    timestamp: datetime
    details: str = ""
    id: str = field(default_factory=_new_id)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "key": self.key,
            "kind": self.kind.value,
            "sheet_name": self.sheet_name,
            "timestamp": self.timestamp.isoformat(),
            "details": self.details,
        }
