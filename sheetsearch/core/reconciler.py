"""
Change detection between two inventory snapshots.

Records are matched by `location` across all sheets. Record ids are minted
on every fetch and never survive one, while the location is effectively a
stable filesystem path. A record that moves to another sheet under the same
location is therefore the same entity, and same-location rows in unrelated
sheets collapse into one.
"""
import threading
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Tuple

from .models import ChangeEvent, ChangeKind, FileRecord, InventorySnapshot

DEFAULT_CHANGE_LIMIT = 1000

UNKNOWN = "Unknown"

# (label, attribute) compared between fetches
TRACKED_FIELDS = (
    ("Created", "created_label"),
    ("Name", "name"),
    ("Size", "size_label"),
)


def _group_by_location(snapshot: Optional[InventorySnapshot]) -> Dict[str, Tuple[str, FileRecord]]:
    """First (sheet_name, record) seen for every location, in snapshot order."""
    grouped: Dict[str, Tuple[str, FileRecord]] = {}
    if snapshot is None:
        return grouped
    for sheet_name, record in snapshot.records():
        grouped.setdefault(record.location, (sheet_name, record))
    return grouped


def _value(record: FileRecord, attribute: str) -> str:
    return getattr(record, attribute) or UNKNOWN


def _describe(record: FileRecord, prefix: str = "") -> str:
    return "\n".join(
        f"{prefix}{label if not prefix else label.lower()}: {_value(record, attribute)}"
        for label, attribute in TRACKED_FIELDS
    )


def _field_changes(previous: FileRecord, current: FileRecord) -> List[str]:
    changes = []
    for label, attribute in TRACKED_FIELDS:
        old = getattr(previous, attribute)
        new = getattr(current, attribute)
        if old != new:
            changes.append(f"{label} changed: {old or UNKNOWN} → {new or UNKNOWN}")
    return changes


def diff(
    previous: Optional[InventorySnapshot],
    current: InventorySnapshot,
    now: Optional[datetime] = None,
    limit: int = DEFAULT_CHANGE_LIMIT,
) -> List[ChangeEvent]:
    """
    Compare two snapshots and describe what changed.

    Args:
        previous: Snapshot before the fetch, None on the first fetch
        current: Newly installed snapshot
        now: Timestamp stamped on every event (defaults to the current time)
        limit: Maximum number of events returned

    Returns:
        Events, newest first. On the first fetch every location is ADDED.
    """
    now = now or datetime.now(timezone.utc)
    previous_files = _group_by_location(previous)
    current_files = _group_by_location(current)

    events: List[ChangeEvent] = []

    for location, (sheet_name, record) in current_files.items():
        before = previous_files.get(location)
        if before is None:
            events.append(ChangeEvent(
                key=location,
                kind=ChangeKind.ADDED,
                sheet_name=sheet_name,
                timestamp=now,
                details=_describe(record),
            ))
            continue

        changes = _field_changes(before[1], record)
        if changes:
            events.append(ChangeEvent(
                key=location,
                kind=ChangeKind.MODIFIED,
                sheet_name=sheet_name,
                timestamp=now,
                details="\n".join(changes),
            ))

    for location, (sheet_name, record) in previous_files.items():
        if location not in current_files:
            events.append(ChangeEvent(
                key=location,
                kind=ChangeKind.REMOVED,
                sheet_name=sheet_name,
                timestamp=now,
                details=_describe(record, prefix="Last known "),
            ))

    # Stable sort keeps detection order within one pass
    events.sort(key=lambda event: event.timestamp, reverse=True)
    return events[:limit]


class ChangeFeed:
    """
    Dismissible list of change events, newest first.

    Replaced wholesale by every reconciliation pass.
    """

    def __init__(self, limit: int = DEFAULT_CHANGE_LIMIT):
        self.limit = limit
        self._events: List[ChangeEvent] = []
        self._lock = threading.Lock()

    def replace(self, events: Iterable[ChangeEvent]):
        ordered = sorted(events, key=lambda event: event.timestamp, reverse=True)
        with self._lock:
            self._events = ordered[:self.limit]

    def dismiss(self, event_id: str) -> bool:
        with self._lock:
            remaining = [event for event in self._events if event.id != event_id]
            dismissed = len(remaining) != len(self._events)
            self._events = remaining
        return dismissed

    def dismiss_all(self):
        with self._lock:
            self._events = []

    def list(self) -> List[ChangeEvent]:
        with self._lock:
            return list(self._events)

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)
