"""
Core DevMenu modules

This package contains the execution context, the interfaces of the
host-side collaborators and the capability registry. The controller
itself lives in devmenu.core.controller.
"""

from devmenu.core.context import MainContext
from devmenu.core.host import (
    AlertPresenter,
    DebugExecutorProvider,
    HostBridge,
    ProfileReporter,
    ScriptSource,
    SocketProxy,
)
from devmenu.core.capabilities import Capabilities

__all__ = [
    "MainContext",
    "AlertPresenter",
    "DebugExecutorProvider",
    "HostBridge",
    "ProfileReporter",
    "ScriptSource",
    "SocketProxy",
    "Capabilities",
]
