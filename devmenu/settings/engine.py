"""
DevMenu Settings Engine

Owns the in-memory copy of the developer settings, keeps it in step with
the durable store and applies each setting's side effects on the host.

The whole settings map lives in the store under SETTINGS_KEY. Every change
replaces the in-memory snapshot with a fresh read-only copy, so values
handed out by ``settings`` never alias what gets persisted.
"""

import copy
from types import MappingProxyType
from typing import Any, Iterator, List, Mapping, Optional

from devmenu.core.context import MainContext
from devmenu.core.host import HostBridge, ProfileReporter
from devmenu.reload.live import LiveReloadLoop
from devmenu.settings.items import ToggleItem
from devmenu.settings.store import SettingsStore
from devmenu.utils.errors import SettingsError
from devmenu.utils.logging import get_logger
from devmenu.utils.urls import flag_value, get_query_param, is_file_url, replace_query_param

logger = get_logger(__name__)

SETTINGS_KEY = "DevMenu"

PROFILING_ENABLED = "profilingEnabled"
LIVE_RELOAD_ENABLED = "liveReloadEnabled"
HOT_LOADING_ENABLED = "hotLoadingEnabled"
SHOW_FPS = "showFPS"
EXECUTOR_CLASS = "executorClass"


def _freeze(values: Mapping[str, Any]) -> Mapping[str, Any]:
    return MappingProxyType(copy.deepcopy(dict(values)))


def as_bool(value: Any) -> bool:
    """Read a stored flag; anything unrecognised counts as False."""
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        return flag_value(value)
    return False


def _as_name(value: Any) -> Optional[str]:
    if isinstance(value, str) and value:
        return value
    return None


class SettingsEngine:
    """
    Canonical developer settings plus the typed setters that act on them.

    Must only be used from the owning MainContext.
    """

    def __init__(
        self,
        store: SettingsStore,
        bridge: HostBridge,
        live_reload: LiveReloadLoop,
        context: MainContext,
        items: List[Any],
        debug_executor_name: Optional[str] = None,
        executor_override: Optional[str] = None,
        profile_reporter: Optional[ProfileReporter] = None,
    ):
        """
        Initialize the engine with the store's current snapshot.

        Args:
            store: Durable settings store
            bridge: Host application bridge
            live_reload: Live reload loop driven by the liveReloadEnabled setting
            context: Owning execution context
            items: Menu item list shared with the controller
            debug_executor_name: Executor the "clear executor" guard protects
            executor_override: Launch-time executor that shadows the stored one
            profile_reporter: Receives traces when profiling stops
        """
        self._store = store
        self._bridge = bridge
        self._live_reload = live_reload
        self._context = context
        self._items = items
        self.debug_executor_name = debug_executor_name
        self._executor_override = executor_override
        self.profile_reporter = profile_reporter

        stored = store.get(SETTINGS_KEY)
        self._settings = _freeze(stored if isinstance(stored, Mapping) else {})

        self._profiling_enabled = False
        self._live_reload_enabled = False
        self._hot_loading_enabled = False
        self._show_fps = False
        self._executor_class: Optional[str] = None

    # Read-only state

    @property
    def settings(self) -> Mapping[str, Any]:
        return self._settings

    @property
    def profiling_enabled(self) -> bool:
        return self._profiling_enabled

    @property
    def live_reload_enabled(self) -> bool:
        return self._live_reload_enabled

    @property
    def hot_loading_enabled(self) -> bool:
        return self._hot_loading_enabled

    @property
    def show_fps(self) -> bool:
        return self._show_fps

    @property
    def executor_class(self) -> Optional[str]:
        return self._executor_class

    @property
    def executor_override(self) -> Optional[str]:
        return self._executor_override

    def _toggle_items(self) -> Iterator[ToggleItem]:
        for item in list(self._items):
            if isinstance(item, ToggleItem) and item.key:
                yield item

    # Reconciliation

    def reconcile(self, snapshot: Optional[Mapping[str, Any]]):
        """
        Replace the in-memory settings with ``snapshot`` and apply them.

        Only toggle items whose value changed fire. Every typed setter runs
        again so its side effects follow the new values.
        """
        self._context.ensure("reconcile")

        if not isinstance(snapshot, Mapping):
            if snapshot is not None:
                logger.warning(f"Ignoring malformed settings snapshot: {type(snapshot).__name__}")
            snapshot = {}

        incoming = _freeze(snapshot)
        self._settings = incoming

        for item in self._toggle_items():
            if item.key in incoming:
                item.apply(incoming[item.key])

        self.set_profiling_enabled(as_bool(incoming.get(PROFILING_ENABLED)))
        self.set_live_reload_enabled(as_bool(incoming.get(LIVE_RELOAD_ENABLED)))
        self.set_hot_loading_enabled(as_bool(incoming.get(HOT_LOADING_ENABLED)))
        self.set_show_fps(as_bool(incoming.get(SHOW_FPS)))
        self.set_executor_class(self._executor_override or _as_name(incoming.get(EXECUTOR_CLASS)))

    def reconcile_item(self, item: Any) -> bool:
        """Apply the stored value of a single item; returns True if it fired."""
        self._context.ensure("reconcile_item")
        if not isinstance(item, ToggleItem) or not item.key:
            return False
        stored = self._store.get(SETTINGS_KEY)
        if not isinstance(stored, Mapping) or item.key not in stored:
            return False
        return item.apply(stored[item.key])

    def set(self, name: str, value: Any):
        """
        Update one setting and persist the map if the value changed.

        Args:
            name: Setting key
            value: New value; None removes the key
        """
        self._context.ensure("set")

        for item in self._toggle_items():
            if item.key == name:
                item.apply(value)
                break

        if self._settings.get(name) == value:
            return

        updated = dict(self._settings)
        if value is None:
            updated.pop(name, None)
        else:
            updated[name] = copy.deepcopy(value)
        self._settings = MappingProxyType(updated)
        self._persist(updated)

    def _persist(self, values: Mapping[str, Any]):
        try:
            self._store.set(SETTINGS_KEY, dict(values))
            self._store.synchronize()
        except SettingsError as e:
            logger.warning(f"Failed to persist developer settings: {e}")

    # Typed setters

    def set_profiling_enabled(self, enabled: bool):
        self._profiling_enabled = bool(enabled)
        self.set(PROFILING_ENABLED, self._profiling_enabled)

        if self._live_reload.url and self._profiling_enabled != self._bridge.is_profiling:
            if self._profiling_enabled:
                logger.info("Starting profiler")
                self._bridge.start_profiling()
            else:
                logger.info("Stopping profiler")
                self._bridge.stop_profiling(self._report_trace)

    def _report_trace(self, data: bytes):
        reporter = self.profile_reporter
        if reporter is None:
            logger.warning("No profile reporter registered, dropping trace")
            return
        if self._context.is_current():
            reporter.report("systrace", data)
        else:
            self._context.dispatch(reporter.report, "systrace", data)

    def set_live_reload_enabled(self, enabled: bool):
        self._live_reload_enabled = bool(enabled)
        self.set(LIVE_RELOAD_ENABLED, self._live_reload_enabled)

        if self._live_reload_enabled:
            self._live_reload.restart()
        else:
            self._live_reload.cancel()

    def hot_loading_available(self) -> bool:
        """Hot loading needs a bundle served over the network."""
        url = self._bridge.bundle_url
        return bool(url) and not is_file_url(url)

    def set_hot_loading_enabled(self, enabled: bool):
        self._hot_loading_enabled = bool(enabled)
        self.set(HOT_LOADING_ENABLED, self._hot_loading_enabled)

        actually_enabled = self.hot_loading_available() and self._hot_loading_enabled
        bundle_url = self._bridge.bundle_url
        if flag_value(get_query_param(bundle_url, "hot")) != actually_enabled:
            self._bridge.bundle_url = replace_query_param(
                bundle_url, "hot", "true" if actually_enabled else None
            )
            logger.info(f"Hot loading {'enabled' if actually_enabled else 'disabled'}, reloading")
            self._bridge.reload()

    def set_show_fps(self, show: bool):
        self._show_fps = bool(show)
        self.set(SHOW_FPS, self._show_fps)

    def set_executor_class(self, executor_class: Optional[str]):
        executor_class = executor_class or None
        if self._executor_class != executor_class:
            self._executor_class = executor_class
            if executor_class != self._executor_override:
                self._executor_override = None
            self.set(EXECUTOR_CLASS, executor_class)

        current = self._bridge.executor_class
        if current != executor_class:
            # A bare "clear" must not replace a custom executor the host set itself
            if executor_class is None and current != self.debug_executor_name:
                logger.debug(f"Keeping host executor {current}")
                return

            logger.info(f"Switching executor to {executor_class or 'default'}")
            self._bridge.executor_class = executor_class
            self._bridge.reload()
