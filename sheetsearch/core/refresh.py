"""
Fetch lifecycle for a published spreadsheet source.

A RefreshController owns one source URL and one InventoryStore:
- single flight: a refresh requested while one is running is dropped
- cache busting on forced refreshes
- one "current error" slot, cleared when the next attempt starts
- "updated" / "error" signals for anyone who needs push updates

The auto-refresh timer and manual refreshes both go through refresh().
"""
import logging
import random
import threading
import time
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Dict, List, Optional
from urllib.parse import urlparse

import requests

from .config import settings
from .exceptions import NetworkError, ParseError, SheetSearchError, ValidationError
from .inventory import InventoryStore
from .models import InventorySnapshot
from .parsers import extract
from .reconciler import ChangeFeed, diff
from .worker import schedule_auto_refresh

logger = logging.getLogger(__name__)

UPDATED = "updated"
ERROR = "error"
SIGNALS = (UPDATED, ERROR)

# The publisher's caching is outside our control; ask intermediaries not to serve stale copies
NO_CACHE_HEADERS = {
    "Cache-Control": "no-cache",
    "Pragma": "no-cache",
}


class RefreshState(str, Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


def validate_url(url: str) -> str:
    """Return the trimmed URL, or raise ValidationError if it isn't http(s)."""
    url = (url or "").strip()
    if not url:
        raise ValidationError("Source URL is empty")
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValidationError(f"Invalid source URL: {url}")
    return url


def cache_busting_params() -> Dict[str, str]:
    """Query parameters that make every forced request unique."""
    return {
        "t": str(int(time.time())),
        "r": str(random.randint(0, 10000)),
    }


def describe_error(error: Optional[Exception]) -> Optional[dict]:
    if error is None:
        return None
    result = {"type": type(error).__name__, "message": str(error)}
    if isinstance(error, NetworkError):
        result["status"] = error.status
    if isinstance(error, ParseError):
        result["kind"] = error.kind.value
    return result


class RefreshController:
    """
    State machine IDLE -> FETCHING -> SUCCEEDED/FAILED -> IDLE for one source.

    `state` is IDLE or FETCHING; `last_outcome` keeps how the latest
    attempt ended. The lock guards the state check-and-set, source URL
    changes and installing a snapshot; it is never held across the network
    call or the parse.
    """

    def __init__(
        self,
        name: str,
        store: Optional[InventoryStore] = None,
        source_url: str = "",
        session: Optional[requests.Session] = None,
        extractor: Callable[[bytes], InventorySnapshot] = extract,
        feed: Optional[ChangeFeed] = None,
        save_url: Optional[Callable[[str], None]] = None,
        save_interval: Optional[Callable[[int], None]] = None,
        refresh_interval: int = 0,
        timeout: Optional[float] = None,
    ):
        self.name = name
        self.store = store or InventoryStore()
        self.source_url = (source_url or "").strip()
        self.session = session or requests.Session()
        self.extractor = extractor
        # None disables reconciliation for this source
        self.feed = feed
        self.refresh_interval = max(0, int(refresh_interval))
        self.timeout = timeout if timeout is not None else settings.HTTP_TIMEOUT

        self.state = RefreshState.IDLE
        self.last_outcome: Optional[RefreshState] = None
        self.error: Optional[SheetSearchError] = None
        self.last_refresh: Optional[datetime] = None
        self.loading_message = ""

        self._save_url = save_url
        self._save_interval = save_interval
        self._lock = threading.Lock()
        self._listeners: Dict[str, List[Callable]] = {signal: [] for signal in SIGNALS}

    @property
    def job_id(self) -> str:
        return f"auto_refresh_{self.name}"

    @property
    def is_loading(self) -> bool:
        return self.state == RefreshState.FETCHING

    # -- signals -------------------------------------------------------------

    def subscribe(self, signal: str, callback: Callable[["RefreshController"], None]):
        if signal not in self._listeners:
            raise ValidationError(f"Unknown signal '{signal}'")
        self._listeners[signal].append(callback)

    def unsubscribe(self, signal: str, callback: Callable[["RefreshController"], None]) -> bool:
        listeners = self._listeners.get(signal, [])
        if callback in listeners:
            listeners.remove(callback)
            return True
        return False

    def _emit(self, signal: str):
        for callback in list(self._listeners[signal]):
            try:
                callback(self)
            except Exception:
                logger.exception(f"[{self.name}] '{signal}' subscriber failed")

    # -- commands ------------------------------------------------------------

    def set_source_url(self, url: str) -> bool:
        """
        Point the controller at a new published page.

        An empty URL is the explicit "no source" state: the snapshot is
        cleared and no error is raised. A changed URL is persisted and
        fetched right away with cache busting.

        Returns:
            True when a new snapshot was installed
        """
        url = (url or "").strip()

        if not url:
            with self._lock:
                self.source_url = ""
                self.store.clear()
                if self.feed is not None:
                    self.feed.dismiss_all()
                self.error = None
                self.last_refresh = None
            if self._save_url:
                self._save_url("")
            logger.info(f"[{self.name}] Source cleared")
            self._emit(UPDATED)
            return False

        url = validate_url(url)
        with self._lock:
            changed = url != self.source_url
            if not changed and self.store.current is not None:
                return False
            self.source_url = url

        if changed:
            if self._save_url:
                self._save_url(url)
            logger.info(f"[{self.name}] Source set to {url}")

        return self.refresh(force=True)

    def set_auto_refresh_interval(self, seconds: int) -> bool:
        """
        Change the auto-refresh period; 0 disables it.

        The interval job is replaced in one step, so the old period never
        fires after the change. Returns True when a job is scheduled.
        """
        try:
            seconds = int(seconds)
        except (TypeError, ValueError):
            raise ValidationError(f"Invalid refresh interval: {seconds!r}")
        if seconds < 0:
            raise ValidationError("Refresh interval cannot be negative")

        self.refresh_interval = seconds
        if self._save_interval:
            self._save_interval(seconds)
        return self.schedule()

    def schedule(self) -> bool:
        """(Re)apply the current interval to the background scheduler."""
        return schedule_auto_refresh(
            self.job_id,
            self.refresh,
            self.refresh_interval,
            name=f"Auto refresh {self.name}",
        )

    def refresh(self, force: bool = False) -> bool:
        """
        Fetch, parse and install the latest snapshot.

        Dropped (returns False) if a fetch is already running or no source
        is configured. Failures keep the last good snapshot and land in
        the error slot; nothing is retried here. If the source URL changes
        while the fetch is in flight, the result is discarded and the new
        source is fetched once the controller is idle again.

        Returns:
            True when a new snapshot was installed
        """
        with self._lock:
            if self.state != RefreshState.IDLE:
                logger.debug(f"[{self.name}] Refresh already in progress, request dropped")
                return False
            url = self.source_url
            if not url:
                return False
            self.state = RefreshState.FETCHING
            self.error = None
            self.loading_message = "Fetching latest data..."

        started = time.perf_counter()
        installed = False
        try:
            snapshot = self._fetch(url, force)
            installed = self._install(url, snapshot)
        except SheetSearchError as e:
            self.error = e
            self.last_outcome = RefreshState.FAILED
            logger.warning(f"[{self.name}] Refresh failed: {e}")
        finally:
            self.loading_message = ""
            with self._lock:
                self.state = RefreshState.IDLE
                superseded = self.source_url != url

        if superseded:
            # Outcome belongs to a source that is no longer configured
            self.error = None
            if self.source_url:
                logger.info(f"[{self.name}] Source changed during fetch, fetching {self.source_url}")
                return self.refresh(force=True)
            return False

        if self.error is not None:
            self._emit(ERROR)
        elif installed:
            logger.info(
                f"[{self.name}] Refresh complete in {time.perf_counter() - started:.2f}s "
                f"({self.store.total_records()} files)"
            )
            self._emit(UPDATED)
        return installed

    # -- internals -----------------------------------------------------------

    def _fetch(self, url: str, force: bool) -> InventorySnapshot:
        params = cache_busting_params() if force else None
        logger.info(f"[{self.name}] Fetching {url}{' (forced)' if force else ''}")

        try:
            response = self.session.get(
                url,
                params=params,
                headers=NO_CACHE_HEADERS,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise NetworkError(f"Failed to fetch {url}: {e}") from e

        if response.status_code != 200:
            raise NetworkError(
                f"Server returned status code {response.status_code}",
                status=response.status_code,
            )

        self.loading_message = "Processing data..."
        return self.extractor(response.content)

    def _install(self, url: str, snapshot: InventorySnapshot) -> bool:
        with self._lock:
            if url != self.source_url:
                # Source changed or cleared while this fetch was in flight
                logger.info(f"[{self.name}] Discarding result for stale source {url}")
                self.last_outcome = RefreshState.SUCCEEDED
                return False

            previous = self.store.replace(snapshot)
            if self.feed is not None:
                events = diff(previous, snapshot, limit=self.feed.limit)
                self.feed.replace(events)
                logger.info(f"[{self.name}] {len(events)} changes since last refresh")

            self.last_refresh = datetime.now(timezone.utc)
            self.last_outcome = RefreshState.SUCCEEDED
        return True

    def status(self) -> dict:
        current = self.store.current
        return {
            "name": self.name,
            "state": self.state.value,
            "is_loading": self.is_loading,
            "loading_message": self.loading_message,
            "last_outcome": self.last_outcome.value if self.last_outcome else None,
            "source_url": self.source_url,
            "last_refresh": self.last_refresh.isoformat() if self.last_refresh else None,
            "last_modified": current.last_modified.isoformat() if current and current.last_modified else None,
            "auto_refresh_interval": self.refresh_interval,
            "error": describe_error(self.error),
        }
