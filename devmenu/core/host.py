"""
Interfaces of the collaborators the controller drives.

The host application provides a HostBridge (reload, bundle URL, executor
selection, profiling, event broadcast). Everything else is optional and is
registered through Capabilities.
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Optional, Protocol


class HostBridge(ABC):
    """What the controller needs from the running application."""

    @property
    @abstractmethod
    def bundle_url(self) -> Optional[str]:
        """URL the application bundle is loaded from."""
        pass

    @bundle_url.setter
    @abstractmethod
    def bundle_url(self, value: Optional[str]) -> None:
        pass

    @property
    @abstractmethod
    def executor_class(self) -> Optional[str]:
        """Name of the configured executor, None for the default one."""
        pass

    @executor_class.setter
    @abstractmethod
    def executor_class(self, value: Optional[str]) -> None:
        pass

    @property
    @abstractmethod
    def is_profiling(self) -> bool:
        pass

    @abstractmethod
    def reload(self) -> None:
        pass

    @abstractmethod
    def start_profiling(self) -> None:
        pass

    @abstractmethod
    def stop_profiling(self, callback: Callable[[bytes], None]) -> None:
        """Stop profiling and pass the captured trace to ``callback``."""
        pass

    @abstractmethod
    def send_event(self, name: str, body: Any = None) -> None:
        """Broadcast a named event to the running application."""
        pass


class ScriptSource(Protocol):
    """Where the running script was loaded from."""

    script_url: Optional[str]


class SocketProxy(Protocol):
    """Shared websocket connection to the development server."""

    def register_handler(self, url: str, handler: Callable[[Any], None]) -> None:
        ...

    def unregister_handler(self, url: str) -> None:
        ...


class DebugExecutorProvider(Protocol):
    """Remote debugging executor, present only when its package is installed."""

    executor_name: str
    display_name: str


class ProfileReporter(Protocol):
    def report(self, kind: str, data: bytes) -> None:
        ...


class AlertPresenter(Protocol):
    """UI collaborator for user-visible explanations."""

    def show_alert(self, title: str, message: str) -> None:
        ...
