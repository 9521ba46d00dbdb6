"""
The single execution context that owns controller state.

All settings, command and live-reload state belongs to one asyncio event
loop running on one thread. Events that originate elsewhere (file
watchers, socket threads, host callbacks) must go through dispatch()
before they touch that state.
"""

import asyncio
import threading
from typing import Any, Callable, Optional

from devmenu.utils.errors import ExecutionContextError
from devmenu.utils.logging import get_logger

logger = get_logger(__name__)


class MainContext:
    """Owning thread plus the event loop that runs on it."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop
        self._thread_id = threading.get_ident()
        if self._loop is None:
            try:
                self._loop = asyncio.get_running_loop()
            except RuntimeError:
                pass

    @property
    def loop(self) -> Optional[asyncio.AbstractEventLoop]:
        return self._loop

    def bind(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        """
        Bind the context to ``loop`` (default: the running loop) and the
        current thread.
        """
        self._loop = loop or asyncio.get_running_loop()
        self._thread_id = threading.get_ident()

    def is_current(self) -> bool:
        return threading.get_ident() == self._thread_id

    def ensure(self, operation: str = "operation"):
        """Raise ExecutionContextError when called off the owning thread."""
        if not self.is_current():
            raise ExecutionContextError(
                f"{operation} must run on the owning execution context",
                details={
                    'owner_thread': self._thread_id,
                    'current_thread': threading.get_ident(),
                }
            )

    def dispatch(self, callback: Callable[..., Any], *args: Any) -> None:
        """
        Schedule ``callback(*args)`` on the owning loop.

        Safe to call from any thread.
        """
        loop = self._loop
        if loop is None and self.is_current():
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                loop = None
            self._loop = loop

        if loop is None:
            raise ExecutionContextError(
                "No event loop bound to the execution context",
                details={'callback': getattr(callback, '__name__', repr(callback))}
            )

        if self.is_current():
            loop.call_soon(callback, *args)
        else:
            loop.call_soon_threadsafe(callback, *args)
