"""
User accounts API router.

Second published sheet, fetched by its own controller; no change feed.
"""
from fastapi import APIRouter, Depends, HTTPException

from sheetsearch.api.models import RefreshRequest, SourceUrlRequest
from sheetsearch.api.routers.inventory import build_results
from sheetsearch.core.controllers import Controllers, get_controllers
from sheetsearch.core.exceptions import ValidationError
from sheetsearch.core.search import view_results

router = APIRouter(prefix="/api/accounts", tags=["Accounts"])


@router.get("")
def get_accounts(controllers: Controllers = Depends(get_controllers)):
    controller = controllers.accounts
    results = view_results(controller.store.current, show_all=True)
    return {
        "status": controller.status(),
        "accounts": build_results(results, mode="all"),
    }


@router.put("/source")
def update_accounts_source(body: SourceUrlRequest, controllers: Controllers = Depends(get_controllers)):
    controller = controllers.accounts
    try:
        updated = controller.set_source_url(body.url)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"updated": updated, "status": controller.status()}


@router.post("/refresh")
def refresh_accounts(body: RefreshRequest = RefreshRequest(), controllers: Controllers = Depends(get_controllers)):
    controller = controllers.accounts
    updated = controller.refresh(force=body.force)
    return {"updated": updated, "status": controller.status()}
