"""
Uploads captured profiling traces to the development server.
"""

import asyncio
from typing import Callable, Optional, Set

import httpx

from devmenu.utils.logging import get_logger
from devmenu.utils.urls import systrace_url

logger = get_logger(__name__)


class PackagerProfileReporter:
    """
    Sends traces to ``{scheme}://{host}:{port}/systrace`` on the server the
    bundle was loaded from.
    """

    def __init__(self, bundle_url: Callable[[], Optional[str]],
                 client: Optional[httpx.AsyncClient] = None):
        self._bundle_url = bundle_url
        self._client = client
        self._owns_client = client is None
        self._pending: Set[asyncio.Task] = set()

    def report(self, kind: str, data: bytes) -> None:
        url = systrace_url(self._bundle_url())
        if url is None:
            logger.warning(f"No development server to send {kind} trace to, dropping it")
            return

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning(f"No running event loop to send {kind} trace from, dropping it")
            return

        task = loop.create_task(self.send(url, kind, data))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def send(self, url: str, kind: str, data: bytes) -> bool:
        try:
            response = await self._get_client().post(
                url,
                content=data,
                headers={'Content-Type': 'application/json', 'X-Trace-Kind': kind},
            )
        except httpx.HTTPError as e:
            logger.warning(f"Failed to send {kind} trace to {url}: {e}")
            return False

        if response.is_success:
            logger.info(f"Sent {kind} trace ({len(data)} bytes) to {url}")
            return True

        logger.warning(f"Server rejected {kind} trace: HTTP {response.status_code}")
        return False

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient()
            self._owns_client = True
        return self._client

    async def aclose(self):
        for task in list(self._pending):
            task.cancel()
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None
