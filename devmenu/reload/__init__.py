"""
Live reload and profiling support

Long-polling for bundle changes and uploading captured traces to the
development server.
"""

from devmenu.reload.live import LiveReloadLoop, LoopState
from devmenu.reload.profiling import PackagerProfileReporter

__all__ = [
    "LiveReloadLoop",
    "LoopState",
    "PackagerProfileReporter",
]
