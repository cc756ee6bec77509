import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from sheetsearch import __version__
from sheetsearch.api.routers import (
    accounts_router, changes_router, inventory_router, search_router,
    settings_router, sheets_router, source_router
)
from sheetsearch.core.config import settings
from sheetsearch.core.controllers import init_controllers, reset_controllers
from sheetsearch.core.db import init_db, sync_sheet_order
from sheetsearch.core.refresh import UPDATED
from sheetsearch.core.worker import run_soon, start_scheduler, stop_scheduler

# Configure logging
logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


def _sync_sidebar(controller):
    """Keep the stored sheet order in step with the sheets in the page."""
    current = controller.store.current
    if current is not None:
        sync_sheet_order(current.sheet_names())


def init_worker():
    """Start the scheduler, wire the sources and load them once."""
    init_db()
    start_scheduler()
    controllers = init_controllers()
    controllers.inventory.subscribe(UPDATED, _sync_sidebar)
    # Initial load runs on the scheduler so startup is not blocked on the network
    run_soon(controllers.refresh_all, "initial_refresh", force=True)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle - startup and shutdown."""
    # Startup
    try:
        init_worker()
    except Exception as e:
        logger.warning(f"Failed to start worker: {e}")

    yield  # Application runs here

    # Shutdown
    stop_scheduler()
    reset_controllers()


app = FastAPI(title="SheetSearch", version=__version__, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(inventory_router)
app.include_router(search_router)
app.include_router(source_router)
app.include_router(changes_router)
app.include_router(sheets_router)
app.include_router(accounts_router)
app.include_router(settings_router)


@app.get("/api/health")
def health_check():
    return {"status": "ok", "version": __version__}
