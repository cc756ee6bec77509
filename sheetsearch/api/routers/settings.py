"""
Settings API router: persisted preferences and reset.
"""
from fastapi import APIRouter, Depends

from sheetsearch.api.models import StorageCapacityRequest
from sheetsearch.api.security import require_api_key
from sheetsearch.core.controllers import Controllers, get_controllers
from sheetsearch.core.db import (
    get_storage_capacity, reset_storage_capacity, set_storage_capacity
)

router = APIRouter(prefix="/api/settings", tags=["Settings"])


@router.get("")
def get_settings_view(controllers: Controllers = Depends(get_controllers)):
    capacity, unit = get_storage_capacity()
    return {
        "source_url": controllers.inventory.source_url,
        "accounts_url": controllers.accounts.source_url,
        "auto_refresh_interval": controllers.inventory.refresh_interval,
        "storage_capacity": capacity,
        "storage_unit": unit,
    }


@router.put("/storage")
def update_storage_capacity(body: StorageCapacityRequest):
    """Total capacity used by the storage calculator."""
    set_storage_capacity(body.capacity, body.unit)
    return {"success": True, "storage_capacity": body.capacity, "storage_unit": body.unit}


@router.post("/reset", dependencies=[Depends(require_api_key)])
def reset_settings(controllers: Controllers = Depends(get_controllers)):
    """Clear the source URL and the storage calculator."""
    controllers.inventory.set_source_url("")
    reset_storage_capacity()
    return {"success": True}
