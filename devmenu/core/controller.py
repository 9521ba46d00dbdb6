"""
DevMenu Controller

This module provides DevController, the composition root that wires the
settings engine, the command router and the live reload loop to a host
application and exposes the public developer-menu API.
"""

import asyncio
import os
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import httpx

from devmenu.commands.router import CommandRouter, command
from devmenu.core.capabilities import Capabilities
from devmenu.core.context import MainContext
from devmenu.core.host import AlertPresenter, HostBridge, ScriptSource
from devmenu.reload.live import LiveReloadLoop
from devmenu.reload.profiling import PackagerProfileReporter
from devmenu.settings.engine import (
    HOT_LOADING_ENABLED,
    LIVE_RELOAD_ENABLED,
    PROFILING_ENABLED,
    SETTINGS_KEY,
    SHOW_FPS,
    SettingsEngine,
    as_bool,
)
from devmenu.settings.items import ButtonItem, ToggleItem
from devmenu.settings.store import JSONSettingsStore, SettingsStore
from devmenu.settings.watcher import SettingsWatcher
from devmenu.utils.config import ConfigManager
from devmenu.utils.logging import get_logger
from devmenu.utils.urls import live_reload_url, packager_url

logger = get_logger(__name__)

SHOW_INSPECTOR = "showInspector"
TOGGLE_INSPECTOR_EVENT = "toggleElementInspector"


def default_settings_path() -> Path:
    return Path.home() / '.devmenu' / 'settings.json'


class DevController:
    """
    Developer controller for one host application.

    Create it once the host bridge exists, call start() on the owning
    event loop, and forward the host's "script loaded" event to
    on_script_loaded().
    """

    def __init__(
        self,
        bridge: HostBridge,
        store: Optional[SettingsStore] = None,
        config: Optional[ConfigManager] = None,
        capabilities: Optional[Capabilities] = None,
        context: Optional[MainContext] = None,
        alert_presenter: Optional[AlertPresenter] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize the controller.

        Args:
            bridge: Host application bridge
            store: Settings store (JSON file from config, or ~/.devmenu/settings.json)
            config: Launch configuration
            capabilities: Optional collaborators (debugger, socket, trace upload)
            context: Owning execution context, defaults to the current thread
            alert_presenter: Shows explanations to the user
            http_client: Shared HTTP client for polling and trace upload
        """
        self.bridge = bridge
        self.config = config or ConfigManager()
        self.capabilities = capabilities or Capabilities()
        self.context = context or MainContext()
        self.alert_presenter = alert_presenter

        if store is None:
            store = JSONSettingsStore(self.config.get('settings_file') or default_settings_path())
        self.store = store

        # Read once; later config changes do not affect a running controller
        self.executor_override: Optional[str] = self.config.get('executor_override') or None
        self.websocket_executor_name: str = self.config.get('websocket_executor_name') or 'Chrome'

        self._items: List[Any] = []
        self._started = False
        self._invalidated = False
        self._packager_url: Optional[str] = None
        self._watcher: Optional[SettingsWatcher] = None
        self._owned_reporter: Optional[PackagerProfileReporter] = None

        self.live_reload = LiveReloadLoop(
            is_enabled=lambda: self.engine.live_reload_enabled,
            on_change=self.reload,
            client=http_client,
            retry_delay=self.config.get_float('live_reload.retry_delay', 0.0),
            max_retry_delay=self.config.get_float('live_reload.max_retry_delay', 30.0),
        )

        reporter = self.capabilities.profile_reporter
        if reporter is None:
            self._owned_reporter = PackagerProfileReporter(lambda: self.bridge.bundle_url, client=http_client)
            reporter = self._owned_reporter

        self.engine = SettingsEngine(
            store=self.store,
            bridge=self.bridge,
            live_reload=self.live_reload,
            context=self.context,
            items=self._items,
            debug_executor_name=self.capabilities.debug_executor_name,
            executor_override=self.executor_override,
            profile_reporter=reporter,
        )

        self.router = CommandRouter()
        self.router.register_object(self)

        self._store_token = self.store.subscribe(self._settings_did_change)

        self._items.append(ToggleItem(
            key=SHOW_INSPECTOR,
            title="Show Inspector",
            selected_title="Hide Inspector",
            hotkey="I",
            handler=lambda enabled: self.toggle_inspector(),
        ))

        logger.info("DevController initialized")

    # Lifecycle

    def start(self):
        """Apply stored settings and connect to the development server."""
        self.context.ensure("start")
        if self._started:
            logger.warning("DevController already started")
            return
        self._started = True

        self.engine.reconcile(self.store.get(SETTINGS_KEY))
        self.connect_packager()
        self._start_watcher()

    def _start_watcher(self):
        if not isinstance(self.store, JSONSettingsStore):
            return
        interval = self.config.get_float('watch_interval', 1.0)
        if interval <= 0:
            return
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop, settings file will not be watched")
            return
        self._watcher = SettingsWatcher(self.store, interval=interval)
        self._watcher.start()

    def connect_packager(self) -> bool:
        """Register for shell commands on the server the bundle came from."""
        proxy = self.capabilities.socket_proxy
        if proxy is None:
            logger.debug("No socket proxy registered, remote commands disabled")
            return False

        url = packager_url(self.bridge.bundle_url)
        if url is None:
            logger.info("Bundle is not served by a development server, remote commands disabled")
            return False

        proxy.register_handler(url, self._socket_did_receive)
        self._packager_url = url
        logger.info(f"Listening for commands on {url}")
        return True

    def invalidate(self):
        """Stop polling, drop every subscription and forget registered items."""
        self._invalidated = True
        self.live_reload.cancel()

        if self._watcher is not None:
            self._watcher.stop()

        if self._store_token is not None:
            self.store.unsubscribe(self._store_token)
            self._store_token = None

        proxy = self.capabilities.socket_proxy
        if proxy is not None and self._packager_url is not None:
            proxy.unregister_handler(self._packager_url)
            self._packager_url = None

        self._items.clear()
        logger.info("DevController invalidated")

    async def aclose(self):
        """invalidate() plus closing background tasks and HTTP clients."""
        self.invalidate()
        if self._watcher is not None:
            await self._watcher.aclose()
            self._watcher = None
        await self.live_reload.aclose()
        if self._owned_reporter is not None:
            await self._owned_reporter.aclose()

    # External events

    def _settings_did_change(self):
        snapshot = self.store.get(SETTINGS_KEY)
        self.context.dispatch(self._apply_settings, snapshot)

    def _apply_settings(self, snapshot: Any):
        # queued before invalidate()
        if self._invalidated:
            return
        self.engine.reconcile(snapshot)

    def _socket_did_receive(self, message: Any):
        self.context.dispatch(self._handle_command, message)

    def _handle_command(self, message: Any):
        if self._invalidated:
            logger.debug("Dropping command received after invalidate")
            return
        self.router.handle_message(message)

    def on_script_loaded(self, bridge: HostBridge, source: Optional[ScriptSource] = None):
        """Host notification that a script finished loading; safe from any thread."""
        self.context.dispatch(self._script_did_load, bridge, source)

    def _script_did_load(self, bridge: HostBridge, source: Optional[ScriptSource]):
        if bridge is not self.bridge or self._invalidated:
            return

        url = None
        script_url = getattr(source, 'script_url', None) if source is not None else None
        if not script_url:
            if source is None:
                logger.warning("Script source module not found")
            elif not os.environ.get("DEVMENU_TEST_MODE"):
                logger.warning("Script source URL has not been set")
        else:
            # None for scripts loaded from a bundled file
            url = live_reload_url(script_url)

        self.live_reload.prepare(url)

        # These depend on the loaded script, so apply them again
        self.engine.set_profiling_enabled(self.engine.profiling_enabled)
        self.engine.set_live_reload_enabled(self.engine.live_reload_enabled)
        self.engine.set_executor_class(self.engine.executor_class)

        if as_bool(self.engine.settings.get(SHOW_INSPECTOR)):
            self.bridge.send_event(TOGGLE_INSPECTOR_EVENT)

    # Commands

    @command("bridge", "reload")
    def _command_reload(self, options: Dict[str, Any]):
        if as_bool(options.get('debug')):
            provider = self.capabilities.debug_executor
            if provider is None:
                logger.warning("Debug reload requested but no debug executor is registered")
            else:
                self.bridge.executor_class = provider.executor_name
        self.bridge.reload()

    # Public API

    @property
    def items(self) -> List[Any]:
        return list(self._items)

    @property
    def settings(self):
        return self.engine.settings

    def add_item(self, item: Any):
        """Register a menu item and apply any value already stored for it."""
        self.context.ensure("add_item")
        self._items.append(item)
        self.engine.reconcile_item(item)

    def add_button(self, title: str, handler: Callable[[], None]) -> ButtonItem:
        item = ButtonItem(title=title, handler=handler)
        self.add_item(item)
        return item

    def _typed_setters(self) -> Dict[str, Callable[[bool], None]]:
        return {
            PROFILING_ENABLED: self.engine.set_profiling_enabled,
            LIVE_RELOAD_ENABLED: self.engine.set_live_reload_enabled,
            HOT_LOADING_ENABLED: self.engine.set_hot_loading_enabled,
            SHOW_FPS: self.engine.set_show_fps,
        }

    def toggle_setting(self, key: str) -> bool:
        """
        Flip a boolean setting and persist it.

        Typed settings go through their setter so side effects run; toggle
        items fire their handler.

        Returns:
            bool: The new value
        """
        self.context.ensure("toggle_setting")
        item = next((i for i in self._items if isinstance(i, ToggleItem) and i.key == key), None)
        setter = self._typed_setters().get(key)

        if item is not None and setter is None:
            # fires here; the apply inside engine.set then sees no change
            new_value = item.toggle()
            self.engine.set(key, new_value)
            return new_value

        current = item.selected if item is not None else as_bool(self.engine.settings.get(key))
        new_value = not current
        if setter is not None:
            setter(new_value)
        else:
            self.engine.set(key, new_value)
        return new_value

    def reload(self):
        logger.info("Reloading")
        self.bridge.reload()

    def reload_in_normal_mode(self):
        """Switch back to the default executor."""
        self.engine.set_executor_class(None)

    def toggle_inspector(self):
        self.bridge.send_event(TOGGLE_INSPECTOR_EVENT)

    def show_alert(self, title: str, message: str):
        if self.alert_presenter is None:
            logger.warning(f"{title}: {message}")
            return
        self.alert_presenter.show_alert(title, message)

    def menu_items(self) -> List[Any]:
        """Items to render, built-in entries first."""
        engine = self.engine
        items: List[Any] = [ButtonItem("Reload", self.reload)]

        provider = self.capabilities.debug_executor
        name = self.websocket_executor_name
        if provider is None:
            title = f"{name} Debugger Unavailable"
            message = f"You need to install a remote debugging executor to enable {name} debugging"
            items.append(ButtonItem(title, lambda: self.show_alert(title, message)))
        else:
            is_debugging = engine.executor_class is not None and engine.executor_class == provider.executor_name
            if is_debugging:
                title = f"Disable {provider.display_name} Debugging"
                target = None
            else:
                title = f"Debug {name}"
                target = provider.executor_name
            items.append(ButtonItem(title, lambda: engine.set_executor_class(target)))

        if self.live_reload.url:
            live_title = "Disable Live Reload" if engine.live_reload_enabled else "Enable Live Reload"
            items.append(ButtonItem(
                live_title, lambda: engine.set_live_reload_enabled(not engine.live_reload_enabled)))

            profiling_title = "Stop Systrace" if self.bridge.is_profiling else "Start Systrace"
            items.append(ButtonItem(
                profiling_title, lambda: engine.set_profiling_enabled(not engine.profiling_enabled)))

        if engine.hot_loading_available():
            hot_title = "Disable Hot Reloading" if engine.hot_loading_enabled else "Enable Hot Reloading"
            items.append(ButtonItem(
                hot_title, lambda: engine.set_hot_loading_enabled(not engine.hot_loading_enabled)))

        items.extend(self._items)
        return items

    def __repr__(self) -> str:
        status = "started" if self._started else "idle"
        return f"DevController(status='{status}', items={len(self._items)})"
