"""
Watches a JSON settings file for edits made by other processes.
"""

import asyncio
from typing import Optional

from devmenu.settings.store import JSONSettingsStore
from devmenu.utils.logging import get_logger

logger = get_logger(__name__)


class SettingsWatcher:
    """Polls the settings file and refreshes the store when it changes."""

    def __init__(self, store: JSONSettingsStore, interval: float = 1.0,
                 error_interval: float = 5.0):
        self.store = store
        self.interval = interval
        self.error_interval = error_interval
        self._task: Optional[asyncio.Task] = None
        self._stop_event: Optional[asyncio.Event] = None
        self._last_stamp = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self):
        """Start the watch task on the running loop."""
        if self.is_running:
            logger.warning("Settings watcher already running")
            return

        self._stop_event = asyncio.Event()
        self._last_stamp = self.store.modification_stamp()
        self._task = asyncio.get_running_loop().create_task(self._watch())
        logger.info(f"Watching settings file {self.store.path}")

    async def _watch(self):
        while not self._stop_event.is_set():
            try:
                await self.check()
                await asyncio.sleep(self.interval)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error(f"Error watching settings file: {str(e)}")
                await asyncio.sleep(self.error_interval)

    async def check(self) -> bool:
        """Refresh the store if the file stamp moved since the last check."""
        stamp = self.store.modification_stamp()
        if stamp == self._last_stamp:
            return False
        self._last_stamp = stamp
        return await self.store.refresh()

    def stop(self):
        """Cancel the watch task; safe when not running."""
        if self._stop_event is not None:
            self._stop_event.set()
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    async def aclose(self):
        task = self._task
        self.stop()
        if task is not None:
            try:
                await task
            except asyncio.CancelledError:
                pass
