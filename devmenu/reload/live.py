"""
DevMenu Live Reload

Long-polls the development server's ``/onchange`` endpoint. The server
holds each request open until the bundle changes (status 205) or its own
timeout elapses; anything other than 205 means "nothing yet" and the
request is issued again.
"""

import asyncio
from enum import Enum
from typing import Callable, Optional

import httpx

from devmenu.utils.logging import get_logger

logger = get_logger(__name__)

CHANGED_STATUS = 205


class LoopState(Enum):
    """Live reload loop states."""
    IDLE = "idle"
    POLLING = "polling"
    RELOADING = "reloading"


class LiveReloadLoop:
    """
    Cancellable long-poll cycle with at most one request in flight.

    Runs on the owning event loop; completion handling happens on the same
    loop as the task, after checking that live reload is still enabled.
    """

    def __init__(
        self,
        is_enabled: Callable[[], bool],
        on_change: Callable[[], None],
        client: Optional[httpx.AsyncClient] = None,
        retry_delay: float = 0.0,
        max_retry_delay: float = 30.0,
    ):
        """
        Initialize the loop.

        Args:
            is_enabled: Returns whether live reload is currently enabled
            on_change: Called once when the server reports a change
            client: HTTP client to poll with; one is created on demand otherwise
            retry_delay: Base delay after a transport error (0 = retry immediately)
            max_retry_delay: Upper bound for the doubling error delay
        """
        self._is_enabled = is_enabled
        self._on_change = on_change
        self._client = client
        self._owns_client = client is None
        self.retry_delay = retry_delay
        self.max_retry_delay = max_retry_delay

        self.url: Optional[str] = None
        self.script_loaded = False
        self.state = LoopState.IDLE
        self.poll_count = 0
        self._consecutive_errors = 0
        self._task: Optional[asyncio.Task] = None

    @property
    def in_flight(self) -> bool:
        return self._task is not None

    def prepare(self, url: Optional[str]):
        """Record the endpoint derived for the loaded script."""
        self.url = url
        self.script_loaded = True
        logger.debug(f"Live reload endpoint: {url}")

    def can_poll(self) -> bool:
        return self.script_loaded and bool(self.url) and self._is_enabled()

    def start(self):
        """
        Begin polling.

        No-op unless the script has loaded, live reload is enabled and an
        endpoint is known. A call while a poll is in flight cancels it
        instead of starting a second one.
        """
        if not self.can_poll():
            return

        if self._task is not None:
            self.cancel()
            return

        self._schedule(0.0)

    def restart(self):
        """Cancel any in-flight poll and start a fresh one."""
        self.cancel()
        self.start()

    def cancel(self):
        """Abort the in-flight poll, if any."""
        task = self._task
        self._task = None
        if task is not None and not task.done():
            task.cancel()
            logger.debug("Live reload poll cancelled")
        if self.state == LoopState.POLLING:
            self.state = LoopState.IDLE

    def _schedule(self, delay: float):
        self.state = LoopState.POLLING
        self._task = asyncio.get_running_loop().create_task(self._poll(delay))

    async def _poll(self, delay: float):
        if delay > 0:
            await asyncio.sleep(delay)

        status = None
        error = None
        self.poll_count += 1
        try:
            response = await self._get_client().get(self.url)
            status = response.status_code
        except asyncio.CancelledError:
            raise
        except Exception as e:
            # InvalidURL or a client closed by the host are not HTTPError
            error = e

        self._on_complete(asyncio.current_task(), status, error)

    def _on_complete(self, task, status: Optional[int], error: Optional[Exception]):
        if task is not self._task:
            # superseded by cancel() or restart()
            return
        self._task = None

        if not self._is_enabled():
            self.state = LoopState.IDLE
            logger.debug("Live reload disabled while polling, discarding result")
            return

        if error is None and status == CHANGED_STATUS:
            self._consecutive_errors = 0
            self.state = LoopState.RELOADING
            logger.info("Bundle changed, reloading")
            self._on_change()
            return

        if error is not None:
            self._consecutive_errors += 1
            logger.debug(f"Live reload poll failed: {error}")
        else:
            self._consecutive_errors = 0

        if not self.can_poll():
            self.state = LoopState.IDLE
            return
        self._schedule(self._next_delay())

    def _next_delay(self) -> float:
        if self.retry_delay <= 0 or self._consecutive_errors == 0:
            return 0.0
        delay = self.retry_delay * (2 ** (self._consecutive_errors - 1))
        return min(delay, self.max_retry_delay)

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=httpx.Timeout(None))
            self._owns_client = True
        return self._client

    async def aclose(self):
        """Cancel polling and close the HTTP client if this loop created it."""
        self.cancel()
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None
