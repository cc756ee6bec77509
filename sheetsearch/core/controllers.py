"""
Application wiring for the two published-sheet sources.

The file inventory and the user-account inventory run identical,
independent controllers: they share the extractor and the scheduler but
never a FETCHING state. Only the file inventory is reconciled into the
change feed.
"""
import logging
from dataclasses import dataclass
from typing import Optional, Tuple

from . import db
from .config import settings
from .reconciler import ChangeFeed
from .refresh import RefreshController

logger = logging.getLogger(__name__)

INVENTORY = "inventory"
ACCOUNTS = "accounts"


@dataclass
class Controllers:
    inventory: RefreshController
    accounts: RefreshController

    def all(self) -> Tuple[RefreshController, RefreshController]:
        return (self.inventory, self.accounts)

    def set_auto_refresh_interval(self, seconds: int) -> bool:
        """One period drives every source; persisted once by the inventory controller."""
        scheduled = self.inventory.set_auto_refresh_interval(seconds)
        self.accounts.set_auto_refresh_interval(seconds)
        return scheduled

    def schedule(self):
        for controller in self.all():
            controller.schedule()

    def refresh_all(self, force: bool = False):
        for controller in self.all():
            controller.refresh(force=force)


_controllers: Optional[Controllers] = None


def build_controllers() -> Controllers:
    """Create both controllers from the persisted preferences."""
    interval = db.get_refresh_interval()

    inventory = RefreshController(
        INVENTORY,
        source_url=db.get_source_url(),
        feed=ChangeFeed(limit=settings.CHANGE_LIMIT),
        save_url=db.set_source_url,
        save_interval=db.set_refresh_interval,
        refresh_interval=interval,
    )
    accounts = RefreshController(
        ACCOUNTS,
        source_url=db.get_accounts_url(),
        save_url=db.set_accounts_url,
        refresh_interval=interval,
    )
    return Controllers(inventory=inventory, accounts=accounts)


def init_controllers() -> Controllers:
    """Build the controllers once and schedule their auto refresh."""
    global _controllers

    if _controllers is None:
        _controllers = build_controllers()
        _controllers.schedule()
        logger.info("Source controllers initialized")
    return _controllers


def get_controllers() -> Controllers:
    """FastAPI dependency returning the initialized controllers."""
    if _controllers is None:
        return init_controllers()
    return _controllers


def reset_controllers():
    global _controllers
    _controllers = None
