"""
Change feed API router.
"""
from fastapi import APIRouter, Depends, HTTPException, Query

from sheetsearch.api.models import ChangeListResponse
from sheetsearch.core.controllers import Controllers, get_controllers

router = APIRouter(prefix="/api/changes", tags=["Changes"])


@router.get("", response_model=ChangeListResponse)
def list_changes(
    limit: int = Query(100, ge=1, le=1000),
    controllers: Controllers = Depends(get_controllers),
):
    """Recent changes from the last refresh, newest first."""
    events = controllers.inventory.feed.list()
    return {
        "changes": [event.to_dict() for event in events[:limit]],
        "count": len(events),
    }


@router.delete("/{event_id}")
def dismiss_change(event_id: str, controllers: Controllers = Depends(get_controllers)):
    if not controllers.inventory.feed.dismiss(event_id):
        raise HTTPException(status_code=404, detail="Change not found")
    return {"success": True}


@router.delete("")
def dismiss_all_changes(controllers: Controllers = Depends(get_controllers)):
    controllers.inventory.feed.dismiss_all()
    return {"success": True}
