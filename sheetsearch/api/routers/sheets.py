"""
Sheets API router: sidebar display names and order.
"""
from fastapi import APIRouter, Depends, HTTPException

from sheetsearch.api.models import DisplayNameRequest, MoveSheetRequest, SheetOrderRequest
from sheetsearch.api.routers.inventory import sheet_summaries
from sheetsearch.core.controllers import Controllers, get_controllers
from sheetsearch.core.db import (
    list_display_names, move_sheet, save_sheet_order, update_display_name
)

router = APIRouter(prefix="/api/sheets", tags=["Sheets"])


@router.get("")
def get_all_sheets(controllers: Controllers = Depends(get_controllers)):
    """
    List sheets in sidebar order with their display names.
    Sheets without a custom name show the name found in the page.
    """
    sheets = sheet_summaries(controllers.inventory.store, list_display_names())
    return {
        "sheets": sheets,
        "count": len(sheets)
    }


@router.put("/display-name")
def update_sheet_name(body: DisplayNameRequest):
    """
    Update the display name for a sheet.
    Pass display_name=None or empty string to reset it.
    """
    sheet = update_display_name(body.sheet_name, body.display_name)
    return {
        "success": True,
        "sheet": sheet
    }


@router.put("/order")
def update_sheet_order(body: SheetOrderRequest):
    order = save_sheet_order(body.sheet_names)
    return {"success": True, "order": order}


@router.post("/move")
def move_sheet_position(body: MoveSheetRequest, controllers: Controllers = Depends(get_controllers)):
    """Drag-and-drop a sheet to a new sidebar position."""
    if controllers.inventory.store.sheet_by_name(body.sheet_name) is None:
        raise HTTPException(status_code=404, detail="Sheet not found")
    order = move_sheet(body.sheet_name, body.position)
    return {"success": True, "order": order}
