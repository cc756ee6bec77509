"""
Inventory API router.
"""
from fastapi import APIRouter, Depends, HTTPException, Query
from typing import Dict, List, Optional

from sheetsearch.api.models import (
    FileRecordResponse, ResultsResponse, SheetResultsResponse, SheetSummaryResponse
)
from sheetsearch.core.controllers import Controllers, get_controllers
from sheetsearch.core.db import get_sheet_order, get_storage_capacity, list_display_names
from sheetsearch.core.exceptions import ValidationError
from sheetsearch.core.inventory import (
    InventoryStore, display_name, ordered_sheets, storage_stats, total_size
)
from sheetsearch.core.search import SheetResults, sort_records

router = APIRouter(prefix="/api/inventory", tags=["Inventory"])


# ============== Helpers ==============

def sheet_summaries(store: InventoryStore, custom_names: Dict[str, str]) -> List[SheetSummaryResponse]:
    """Sidebar entries in the user's order, with their display names."""
    return [
        SheetSummaryResponse(
            sheet_name=sheet.sheet_name,
            display_name=display_name(sheet.sheet_name, custom_names),
            file_count=len(sheet.records),
        )
        for sheet in ordered_sheets(store.sheets(), get_sheet_order())
    ]


def build_results(
    results: SheetResults,
    mode: str,
    query: Optional[str] = None,
    sort: Optional[str] = None,
    desc: bool = False,
) -> ResultsResponse:
    """Serialize (sheet_name, records) pairs, sorting each sheet when asked."""
    custom_names = list_display_names()
    sheets = []
    all_records = []

    for sheet_name, records in results:
        if sort:
            try:
                records = sort_records(records, key=sort, descending=desc)
            except ValidationError as e:
                raise HTTPException(status_code=400, detail=str(e))
        all_records.extend(records)
        sheets.append(SheetResultsResponse(
            sheet_name=sheet_name,
            display_name=display_name(sheet_name, custom_names),
            files=[FileRecordResponse(**record.to_dict()) for record in records],
        ))

    size, unit = total_size(all_records)
    return ResultsResponse(
        mode=mode,
        query=query,
        total_files=len(all_records),
        total_size=round(size, 2),
        size_unit=unit,
        results=sheets,
    )


# ============== Endpoints ==============

@router.get("")
def get_inventory(controllers: Controllers = Depends(get_controllers)):
    """
    Refresh status, totals and the ordered sheet list.
    """
    controller = controllers.inventory
    store = controller.store
    size, unit = store.current_total_size()
    sheets = sheet_summaries(store, list_display_names())

    return {
        "status": controller.status(),
        "total_files": store.total_records(),
        "total_size": round(size, 2),
        "size_unit": unit,
        "sheets": sheets,
        "sheet_count": len(sheets),
    }


@router.get("/sheet", response_model=ResultsResponse)
def get_sheet(
    name: str = Query(..., min_length=1),
    sort: Optional[str] = Query(None),
    desc: bool = Query(False),
    controllers: Controllers = Depends(get_controllers),
):
    """All files of one sheet."""
    sheet = controllers.inventory.store.sheet_by_name(name)
    if not sheet:
        raise HTTPException(status_code=404, detail="Sheet not found")
    return build_results([(sheet.sheet_name, list(sheet.records))], mode="sheet", sort=sort, desc=desc)


@router.get("/storage")
def get_storage(controllers: Controllers = Depends(get_controllers)):
    """Used space against the configured capacity."""
    used = controllers.inventory.store.current_total_size()
    capacity, unit = get_storage_capacity()
    return {
        "total_size": round(used[0], 2),
        "size_unit": used[1],
        "capacity": capacity,
        "capacity_unit": unit,
        **storage_stats(used, capacity, unit),
    }
