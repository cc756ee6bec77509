"""
Source API router: published-sheet URL, manual refresh and auto refresh.
"""
from fastapi import APIRouter, Depends, HTTPException

from sheetsearch.api.models import RefreshIntervalRequest, RefreshRequest, SourceUrlRequest
from sheetsearch.core.controllers import Controllers, get_controllers
from sheetsearch.core.exceptions import ValidationError
from sheetsearch.core.worker import get_scheduler_status

router = APIRouter(prefix="/api/source", tags=["Source"])


@router.get("")
def get_source_status(controllers: Controllers = Depends(get_controllers)):
    """State of the inventory source: loading, last refresh, current error."""
    return controllers.inventory.status()


@router.put("")
def update_source(body: SourceUrlRequest, controllers: Controllers = Depends(get_controllers)):
    """
    Point the inventory at a published sheet and fetch it.
    An empty URL clears the inventory.
    """
    controller = controllers.inventory
    try:
        updated = controller.set_source_url(body.url)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"updated": updated, "status": controller.status()}


@router.post("/refresh")
def refresh_source(body: RefreshRequest = RefreshRequest(), controllers: Controllers = Depends(get_controllers)):
    """
    Fetch the sheet now. Ignored while a refresh is already running.
    """
    controller = controllers.inventory
    updated = controller.refresh(force=body.force)
    return {"updated": updated, "status": controller.status()}


@router.put("/interval")
def update_refresh_interval(body: RefreshIntervalRequest, controllers: Controllers = Depends(get_controllers)):
    """Set the auto-refresh period in seconds; 0 turns it off."""
    try:
        scheduled = controllers.set_auto_refresh_interval(body.seconds)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"seconds": body.seconds, "scheduled": scheduled}


@router.get("/scheduler")
def scheduler_status():
    return get_scheduler_status()
