"""
Registry of optional collaborators.

Optional features (remote debugging, the packager socket, trace upload)
are enabled by registering an implementation at startup. A missing
registration means the feature is unavailable.
"""

from typing import Optional

from devmenu.core.host import DebugExecutorProvider, ProfileReporter, SocketProxy
from devmenu.utils.logging import get_logger

logger = get_logger(__name__)


class Capabilities:
    """Holds at most one implementation per optional capability."""

    def __init__(self):
        self._debug_executor: Optional[DebugExecutorProvider] = None
        self._socket_proxy: Optional[SocketProxy] = None
        self._profile_reporter: Optional[ProfileReporter] = None

    def register_debug_executor(self, provider: DebugExecutorProvider):
        if self._debug_executor is not None:
            logger.warning("Debug executor already registered, overwriting")
        self._debug_executor = provider
        logger.debug(f"Registered debug executor: {provider.executor_name}")

    def register_socket_proxy(self, proxy: SocketProxy):
        self._socket_proxy = proxy
        logger.debug("Registered socket proxy")

    def register_profile_reporter(self, reporter: ProfileReporter):
        self._profile_reporter = reporter
        logger.debug("Registered profile reporter")

    @property
    def debug_executor(self) -> Optional[DebugExecutorProvider]:
        return self._debug_executor

    @property
    def debug_executor_name(self) -> Optional[str]:
        if self._debug_executor is None:
            return None
        return self._debug_executor.executor_name

    @property
    def socket_proxy(self) -> Optional[SocketProxy]:
        return self._socket_proxy

    @property
    def profile_reporter(self) -> Optional[ProfileReporter]:
        return self._profile_reporter
