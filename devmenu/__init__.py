"""
DevMenu - in-process developer tools controller

DevMenu lets a running application be commanded by a development server,
keeps developer settings (live reload, hot loading, profiling, FPS
overlay, remote debugging) in sync with a persistent store, and
long-polls the server for bundle changes.
"""

__version__ = "0.1.0"
__author__ = "DevMenu Team"
__license__ = "MIT"

from devmenu.core.controller import DevController
from devmenu.core.context import MainContext
from devmenu.core.capabilities import Capabilities
from devmenu.core.host import HostBridge

from devmenu.commands import CommandMessage, CommandRouter, SUPPORTED_VERSIONS

from devmenu.reload import LiveReloadLoop, LoopState, PackagerProfileReporter

from devmenu.settings import (
    ButtonItem,
    JSONSettingsStore,
    MemorySettingsStore,
    SettingsEngine,
    SettingsStore,
    ToggleItem,
)

from devmenu.utils.config import ConfigManager
from devmenu.utils.errors import (
    DevMenuError,
    SettingsError,
    ProtocolError,
    ConfigError,
    ExecutionContextError,
)

VERSION_INFO = tuple(int(part) for part in __version__.split('.') if part.isdigit())

__all__ = [
    # Controller
    "DevController",
    "MainContext",
    "Capabilities",
    "HostBridge",

    # Commands
    "CommandMessage",
    "CommandRouter",
    "SUPPORTED_VERSIONS",

    # Live reload
    "LiveReloadLoop",
    "LoopState",
    "PackagerProfileReporter",

    # Settings
    "ButtonItem",
    "JSONSettingsStore",
    "MemorySettingsStore",
    "SettingsEngine",
    "SettingsStore",
    "ToggleItem",

    # Config
    "ConfigManager",

    # Exceptions
    "DevMenuError",
    "SettingsError",
    "ProtocolError",
    "ConfigError",
    "ExecutionContextError",

    "__version__",
    "VERSION_INFO",
]


def create_controller(bridge: HostBridge, **kwargs) -> DevController:
    """
    Create a controller with default configuration.

    Example:
        >>> controller = devmenu.create_controller(bridge)
        >>> controller.start()
    """
    return DevController(bridge, **kwargs)
