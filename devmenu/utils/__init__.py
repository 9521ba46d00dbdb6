"""
Utility modules

This package provides error types, logging, launch configuration
and URL helpers shared by the rest of DevMenu.
"""

from devmenu.utils.errors import (
    DevMenuError,
    SettingsError,
    ProtocolError,
    ConfigError,
    ExecutionContextError,
)
from devmenu.utils.logging import get_logger, configure_logging
from devmenu.utils.config import ConfigManager

__all__ = [
    # Exceptions
    "DevMenuError",
    "SettingsError",
    "ProtocolError",
    "ConfigError",
    "ExecutionContextError",

    # Utilities
    "get_logger",
    "configure_logging",
    "ConfigManager",
]
