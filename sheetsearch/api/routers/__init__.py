"""
API Routers package.

Each module contains a FastAPI router for a specific domain.
"""

from .inventory import router as inventory_router
from .search import router as search_router
from .source import router as source_router
from .changes import router as changes_router
from .sheets import router as sheets_router
from .accounts import router as accounts_router
from .settings import router as settings_router

__all__ = [
    "inventory_router",
    "search_router",
    "source_router",
    "changes_router",
    "sheets_router",
    "accounts_router",
    "settings_router",
]
