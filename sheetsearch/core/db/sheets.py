"""
Sheet overlay database operations: custom display names and sidebar order.

Both are keyed by the sheet name found in the published page.
"""
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from .base import get_db


# ============== Display names ==============

def get_display_name(sheet_name: str) -> str:
    """Custom name for a sheet, or the sheet name itself."""
    with get_db() as conn:
        row = conn.execute(
            "SELECT display_name FROM sheet_display_names WHERE sheet_name = ?",
            (sheet_name,)
        ).fetchone()
    if row and row["display_name"]:
        return row["display_name"]
    return sheet_name


def list_display_names() -> Dict[str, str]:
    """All custom names, sheet_name -> display_name."""
    with get_db() as conn:
        rows = conn.execute(
            "SELECT sheet_name, display_name FROM sheet_display_names WHERE display_name IS NOT NULL"
        ).fetchall()
    return {row["sheet_name"]: row["display_name"] for row in rows}


def update_display_name(sheet_name: str, display_name: Optional[str]) -> Dict[str, object]:
    """Set a sheet's display name. Pass None or an empty string to reset it."""
    display_name = (display_name or "").strip() or None
    now = datetime.utcnow().isoformat()

    with get_db() as conn:
        if display_name is None:
            conn.execute(
                "DELETE FROM sheet_display_names WHERE sheet_name = ?",
                (sheet_name,)
            )
        else:
            conn.execute("""
                INSERT INTO sheet_display_names (sheet_name, display_name, created_at, updated_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(sheet_name) DO UPDATE SET
                    display_name = excluded.display_name,
                    updated_at = excluded.updated_at
            """, (sheet_name, display_name, now, now))

    return {
        "sheet_name": sheet_name,
        "display_name": display_name or sheet_name,
        "is_custom": display_name is not None,
    }


def reset_display_names():
    with get_db() as conn:
        conn.execute("DELETE FROM sheet_display_names")


# ============== Sidebar order ==============

def get_sheet_order() -> List[str]:
    with get_db() as conn:
        rows = conn.execute(
            "SELECT sheet_name FROM sheet_order ORDER BY sort_order, sheet_name"
        ).fetchall()
    return [row["sheet_name"] for row in rows]


def save_sheet_order(sheet_names: Sequence[str]) -> List[str]:
    """Replace the stored order; duplicates keep their first position."""
    order = list(dict.fromkeys(sheet_names))
    now = datetime.utcnow().isoformat()

    with get_db() as conn:
        conn.execute("DELETE FROM sheet_order")
        conn.executemany(
            "INSERT INTO sheet_order (sheet_name, sort_order, updated_at) VALUES (?, ?, ?)",
            [(name, i, now) for i, name in enumerate(order)]
        )
    return order


def sync_sheet_order(current_names: Sequence[str]) -> List[str]:
    """
    Reconcile the stored order with the sheets currently in the page.

    Sheets that disappeared are dropped, new sheets are appended in
    their source order.
    """
    stored = get_sheet_order()
    present = set(current_names)

    order = [name for name in stored if name in present]
    known = set(order)
    order.extend(name for name in current_names if name not in known)

    if order != stored:
        save_sheet_order(order)
    return order


def move_sheet(sheet_name: str, position: int) -> List[str]:
    """Move one sheet to a new position in the stored order."""
    order = get_sheet_order()
    if sheet_name in order:
        order.remove(sheet_name)
    position = max(0, min(position, len(order)))
    order.insert(position, sheet_name)
    return save_sheet_order(order)
