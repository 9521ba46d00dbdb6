"""
Developer settings

Persistent preference storage, menu items and the engine that keeps
the two in sync.
"""

from devmenu.settings.store import SettingsStore, MemorySettingsStore, JSONSettingsStore
from devmenu.settings.watcher import SettingsWatcher
from devmenu.settings.items import ButtonItem, ToggleItem
from devmenu.settings.engine import SettingsEngine, SETTINGS_KEY

__all__ = [
    "SettingsStore",
    "MemorySettingsStore",
    "JSONSettingsStore",
    "SettingsWatcher",
    "ButtonItem",
    "ToggleItem",
    "SettingsEngine",
    "SETTINGS_KEY",
]
