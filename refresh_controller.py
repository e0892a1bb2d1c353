"""Cached upload and timed re-decoding

One RefreshController owns the uploaded bytes, the auto-refresh timer and the
last published snapshot. Its status moves through

    EMPTY -> CACHED -> REFRESHING -> CACHED | ERROR

staging or teardown return it to EMPTY from anywhere. Auto-refresh is a
separate flag that can only be set while a file is cached.

Everything runs on the asyncio event loop. A refresh is single-flight: a
request arriving while one is in progress is dropped, not queued. The timer is
a loop.call_later handle whose ticks spawn refresh tasks, so cancelling the
timer never interrupts a refresh that has already started.
"""
from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional, Callable, Set, Sequence
from datetime import datetime
import asyncio
import logging

from config import monitor_config
from exceptions import FileValidationError, FileProcessingError
from file_handler import (
    Decoder, PROCESSING_FAILED_MESSAGE, validate_excel_file, create_file_cache, read_and_process_file
)
from excel_processor import process_excel_file
from models import FileCache, DashboardSnapshot
from services import build_dashboard

logger = logging.getLogger(__name__)

NO_FILE_MESSAGE = 'No file available. Please upload a file.'


class RefreshStatus(str, Enum):
    EMPTY = 'empty'
    CACHED = 'cached'
    REFRESHING = 'refreshing'
    ERROR = 'error'


@dataclass(frozen=True)
class ControllerState:
    status: RefreshStatus = RefreshStatus.EMPTY
    file_name: Optional[str] = None
    error: Optional[str] = None
    is_refreshing: bool = False
    is_auto_refresh_enabled: bool = False
    last_refresh: Optional[datetime] = None

    def to_dict(self):
        return {
            'status': self.status.value,
            'file_name': self.file_name,
            'error': self.error,
            'is_refreshing': self.is_refreshing,
            'is_auto_refresh_enabled': self.is_auto_refresh_enabled,
            'last_refresh': self.last_refresh.isoformat() if self.last_refresh else None
        }


# State transitions. Pure: each returns a new ControllerState.

def reset(state: ControllerState) -> ControllerState:
    return ControllerState(is_refreshing=state.is_refreshing, last_refresh=state.last_refresh)


def validation_failed(state: ControllerState, message: str) -> ControllerState:
    return replace(reset(state), error=message)


def staged(state: ControllerState, file_name: str) -> ControllerState:
    return replace(reset(state), status=RefreshStatus.CACHED, file_name=file_name)


def missing_file(state: ControllerState) -> ControllerState:
    return replace(state, error=NO_FILE_MESSAGE)


def refresh_started(state: ControllerState) -> ControllerState:
    return replace(state, status=RefreshStatus.REFRESHING, error=None, is_refreshing=True)


def refresh_finished(state: ControllerState) -> ControllerState:
    status = RefreshStatus.CACHED if state.status == RefreshStatus.REFRESHING else state.status
    return replace(state, status=status, is_refreshing=False)


def refresh_succeeded(state: ControllerState, refreshed_at: datetime) -> ControllerState:
    return replace(refresh_finished(state), status=RefreshStatus.CACHED, last_refresh=refreshed_at)


def refresh_failed(state: ControllerState, message: str) -> ControllerState:
    return ControllerState(
        status=RefreshStatus.ERROR,
        error=message,
        last_refresh=state.last_refresh
    )


def auto_refresh_changed(state: ControllerState, enabled: bool) -> ControllerState:
    return replace(state, is_auto_refresh_enabled=enabled)


class RefreshController:
    """
    Owner of the cached upload and its refresh timer.

    Args:
        decoder: Callable turning workbook bytes into row dicts (sync or async)
        on_data: Called with every published DashboardSnapshot
        refresh_interval: Auto-refresh period in seconds
        display_lines: Line ids the snapshot is built for
        auto_refresh_on_upload: Start the timer after a successful upload
    """

    def __init__(
        self,
        decoder: Optional[Decoder] = None,
        on_data: Optional[Callable[[DashboardSnapshot], None]] = None,
        refresh_interval: Optional[float] = None,
        display_lines: Optional[Sequence[str]] = None,
        auto_refresh_on_upload: Optional[bool] = None
    ):
        self._decoder = decoder or process_excel_file
        self._on_data = on_data
        self.refresh_interval = (
            refresh_interval if refresh_interval is not None
            else monitor_config.refresh_interval_seconds
        )
        self.display_lines = list(display_lines or monitor_config.display_lines)
        self.auto_refresh_on_upload = (
            auto_refresh_on_upload if auto_refresh_on_upload is not None
            else monitor_config.auto_refresh_on_upload
        )

        self.state = ControllerState()
        self.snapshot: Optional[DashboardSnapshot] = None

        self._cache: Optional[FileCache] = None
        self._timer: Optional[asyncio.TimerHandle] = None
        self._busy = False
        # Bumped whenever the cache is replaced or dropped
        self._generation = 0
        self._tasks: Set[asyncio.Task] = set()

    @property
    def file_name(self) -> Optional[str]:
        return self.state.file_name

    @property
    def cache(self) -> Optional[FileCache]:
        return self._cache

    @property
    def is_refreshing(self) -> bool:
        return self._busy

    @property
    def is_auto_refresh_enabled(self) -> bool:
        return self.state.is_auto_refresh_enabled

    def stage(self, file_name: str, content: bytes, content_type: Optional[str] = None) -> FileCache:
        """
        Replace the cached file with a new upload.

        The previous cache and timer are dropped before validation, so a
        rejected upload leaves the controller EMPTY. Auto-refresh starts off.

        Raises:
            FileValidationError: Bad extension, empty or oversized file
        """
        self._drop_cache()
        self.state = reset(self.state)

        validation = validate_excel_file(file_name, len(content), content_type)
        if not validation.is_valid:
            logger.warning(f"Rejected upload {file_name!r}: {validation.error}")
            self.state = validation_failed(self.state, validation.error)
            raise FileValidationError(validation.error)

        self._cache = create_file_cache(file_name, content, content_type)
        self.state = staged(self.state, file_name)
        logger.info(f"Cached {file_name} ({self._cache.size} bytes)")
        return self._cache

    async def refresh(self) -> bool:
        """
        Re-decode the cached file and publish a new snapshot.

        Returns:
            True when a snapshot was published. False when the request was
            dropped (refresh already running, nothing cached), when decoding
            or building the snapshot failed, or when the cache changed
            underneath it.
        """
        if self._busy:
            logger.debug("Refresh already in progress, request dropped")
            return False

        if self._cache is None:
            self.state = missing_file(self.state)
            return False

        self._busy = True
        generation = self._generation
        file_cache = self._cache
        self.state = refresh_started(self.state)

        try:
            rows = await read_and_process_file(file_cache, self._decoder)
        except FileProcessingError as e:
            if generation == self._generation:
                self._fail(str(e))
            return False
        finally:
            self._busy = False
            if self.state.is_refreshing:
                self.state = refresh_finished(self.state)

        if generation != self._generation:
            logger.info(f"Discarding refresh of {file_cache.file_name}: file was replaced")
            return False

        try:
            snapshot = build_dashboard(rows, self.display_lines, source_file=file_cache.file_name)
        except Exception as e:
            logger.error(f"Error building dashboard from {file_cache.file_name}: {e}")
            self._fail(PROCESSING_FAILED_MESSAGE)
            return False

        self.snapshot = snapshot
        self.state = refresh_succeeded(self.state, snapshot.refreshed_at)

        if self._on_data is not None:
            self._on_data(snapshot)
        return True

    async def upload(self, file_name: str, content: bytes, content_type: Optional[str] = None) -> bool:
        """Stage a file, decode it once, then start auto-refresh if configured"""
        self.stage(file_name, content, content_type)
        published = await self.refresh()
        if published and self.auto_refresh_on_upload:
            self.enable_auto_refresh()
        return published

    def enable_auto_refresh(self) -> bool:
        """Start the refresh timer; refused when nothing is cached"""
        if self._cache is None:
            logger.warning("Auto-refresh requested with no cached file")
            return False

        self._cancel_timer()
        self._schedule_tick()
        self.state = auto_refresh_changed(self.state, True)
        logger.info(f"Auto-refresh enabled every {self.refresh_interval}s")
        return True

    def disable_auto_refresh(self) -> None:
        """Cancel the timer. A refresh already running still completes."""
        was_enabled = self._timer is not None
        self._cancel_timer()
        self.state = auto_refresh_changed(self.state, False)
        if was_enabled:
            logger.info("Auto-refresh disabled")

    def toggle_auto_refresh(self) -> bool:
        if self.state.is_auto_refresh_enabled:
            self.disable_auto_refresh()
            return False
        return self.enable_auto_refresh()

    def teardown(self) -> None:
        """Cancel the timer, drop the cache and go back to EMPTY"""
        self._drop_cache()
        self.state = reset(self.state)
        logger.info("Refresh controller reset")

    async def aclose(self) -> None:
        """Teardown, then wait for refreshes spawned by the timer to finish"""
        self.teardown()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.aclose()

    def _fail(self, message: str) -> None:
        self._drop_cache()
        self.state = refresh_failed(self.state, message)
        logger.error(f"Refresh failed, cached file discarded: {message}")

    def _drop_cache(self) -> None:
        self._cancel_timer()
        self._cache = None
        self._generation += 1

    def _schedule_tick(self) -> None:
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(self.refresh_interval, self._on_tick)

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _on_tick(self) -> None:
        self._schedule_tick()
        task = asyncio.get_running_loop().create_task(self.refresh())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
