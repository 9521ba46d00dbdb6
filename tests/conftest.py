"""
DevMenu test configuration and fixtures

Shared fakes for the host-side collaborators plus helpers for driving
the event loop in async tests.
"""

import asyncio
import os
import shutil
import tempfile
import time
from pathlib import Path
from typing import Any, Callable, Dict, Generator, List, Optional

import httpx
import pytest

# Set test environment variable
os.environ["DEVMENU_TEST_MODE"] = "1"

from devmenu.core.capabilities import Capabilities
from devmenu.core.context import MainContext
from devmenu.core.controller import DevController
from devmenu.core.host import HostBridge
from devmenu.reload.live import LiveReloadLoop
from devmenu.settings.engine import SettingsEngine
from devmenu.settings.store import MemorySettingsStore
from devmenu.utils.config import ConfigManager

DEBUG_EXECUTOR = "WebSocketExecutor"


class FakeBridge(HostBridge):
    """Records every call the controller makes on the host."""

    def __init__(self, bundle_url: Optional[str] = "http://localhost:8081/index.bundle?platform=macos",
                 executor_class: Optional[str] = None):
        self._bundle_url = bundle_url
        self._executor_class = executor_class
        self._profiling = False
        self.reload_count = 0
        self.events: List[str] = []
        self.trace = b'{"traceEvents":[]}'
        self.executor_history: List[Optional[str]] = []

    @property
    def bundle_url(self):
        return self._bundle_url

    @bundle_url.setter
    def bundle_url(self, value):
        self._bundle_url = value

    @property
    def executor_class(self):
        return self._executor_class

    @executor_class.setter
    def executor_class(self, value):
        self.executor_history.append(value)
        self._executor_class = value

    @property
    def is_profiling(self):
        return self._profiling

    def reload(self):
        self.reload_count += 1

    def start_profiling(self):
        self._profiling = True

    def stop_profiling(self, callback):
        self._profiling = False
        callback(self.trace)

    def send_event(self, name, body=None):
        self.events.append(name)


class FakeScriptSource:
    def __init__(self, script_url: Optional[str]):
        self.script_url = script_url


class FakeSocketProxy:
    def __init__(self):
        self.handlers: Dict[str, Callable[[Any], None]] = {}

    def register_handler(self, url, handler):
        self.handlers[url] = handler

    def unregister_handler(self, url):
        self.handlers.pop(url, None)


class FakeDebugExecutor:
    executor_name = DEBUG_EXECUTOR
    display_name = "Remote JS"


class RecordingReporter:
    def __init__(self):
        self.reports = []

    def report(self, kind, data):
        self.reports.append((kind, data))


class RecordingAlerts:
    def __init__(self):
        self.alerts = []

    def show_alert(self, title, message):
        self.alerts.append((title, message))


class PollServer:
    """
    httpx handler standing in for the /onchange endpoint.

    Each request takes the next queued outcome: an int status, an
    exception instance to raise, or None to hang until released.
    """

    def __init__(self, outcomes=None):
        self.outcomes = list(outcomes or [])
        self.requests: List[httpx.Request] = []
        self.release = asyncio.Event()

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        outcome = self.outcomes.pop(0) if self.outcomes else None
        if outcome is None:
            await self.release.wait()
            return httpx.Response(200)
        if isinstance(outcome, Exception):
            raise outcome
        return httpx.Response(outcome)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self))


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    temp_dir = Path(tempfile.mkdtemp(prefix="devmenu_test_"))
    try:
        yield temp_dir
    finally:
        shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture
def bridge() -> FakeBridge:
    return FakeBridge()


@pytest.fixture
def store() -> MemorySettingsStore:
    return MemorySettingsStore()


@pytest.fixture
def context() -> MainContext:
    return MainContext()


@pytest.fixture
def capabilities() -> Capabilities:
    caps = Capabilities()
    caps.register_debug_executor(FakeDebugExecutor())
    return caps


@pytest.fixture
def config() -> ConfigManager:
    return ConfigManager(environ={})


@pytest.fixture
def make_engine(store, bridge, context):
    """Build a SettingsEngine wired to a LiveReloadLoop and a shared item list."""
    def factory(items=None, override=None, debug_executor_name=DEBUG_EXECUTOR,
                reporter=None, client=None):
        items = [] if items is None else items
        holder = {}
        loop = LiveReloadLoop(
            is_enabled=lambda: holder['engine'].live_reload_enabled,
            on_change=bridge.reload,
            client=client,
        )
        engine = SettingsEngine(
            store=store,
            bridge=bridge,
            live_reload=loop,
            context=context,
            items=items,
            debug_executor_name=debug_executor_name,
            executor_override=override,
            profile_reporter=reporter,
        )
        holder['engine'] = engine
        return engine
    return factory


@pytest.fixture
def make_controller(bridge, store, config, capabilities):
    """Build a DevController; call inside a running loop for async tests."""
    def factory(**kwargs):
        kwargs.setdefault('store', store)
        kwargs.setdefault('config', config)
        kwargs.setdefault('capabilities', capabilities)
        return DevController(bridge, **kwargs)
    return factory


async def wait_for_condition(condition_func, timeout: float = 2.0, interval: float = 0.01) -> bool:
    """Wait for a condition to become true."""
    start_time = time.monotonic()

    while time.monotonic() - start_time < timeout:
        if condition_func():
            return True
        await asyncio.sleep(interval)

    return condition_func()


async def settle(rounds: int = 10):
    """Let scheduled callbacks and tasks run."""
    for _ in range(rounds):
        await asyncio.sleep(0)


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "slow: mark test as slow running")
    config.addinivalue_line("markers", "integration: mark test as integration test")
