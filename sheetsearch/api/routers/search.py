"""
Search API router.
"""
import logging
from fastapi import APIRouter, Depends, Query
from typing import Optional

from sheetsearch.api.models import ResultsResponse
from sheetsearch.api.routers.inventory import build_results
from sheetsearch.core.controllers import Controllers, get_controllers
from sheetsearch.core.search import tokenize, view_results

router = APIRouter(tags=["Search"])
logger = logging.getLogger(__name__)


# ============== Search API ==============

@router.get("/api/search", response_model=ResultsResponse)
def search_files(
    q: Optional[str] = Query(None),
    sheet: Optional[str] = Query(None),
    all_sheets: bool = Query(False, alias="all"),
    sort: Optional[str] = Query(None),
    desc: bool = Query(False),
    controllers: Controllers = Depends(get_controllers),
):
    """
    Files matching every term of `q` in their name or location.

    Without a query this returns all sheets (`all=true`), the sheet named
    by `sheet`, or nothing.
    """
    snapshot = controllers.inventory.store.current
    results = view_results(snapshot, q, selected_sheet=sheet, show_all=all_sheets)

    if tokenize(q):
        mode = "search"
    elif all_sheets:
        mode = "all"
    elif sheet:
        mode = "sheet"
    else:
        mode = "none"

    response = build_results(results, mode=mode, query=q, sort=sort, desc=desc)
    if mode == "search":
        logger.debug(f"Search '{q}' matched {response.total_files} files")
    return response
