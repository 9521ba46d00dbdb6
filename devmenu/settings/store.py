"""
DevMenu Settings Store

Durable key/value storage for developer preferences. A store holds
top-level keys (the controller keeps its whole settings map under one
namespaced key) and tells subscribers when the data was changed from
outside the process. Writes made through the store itself never notify.
"""

import copy
import json
import os
import uuid
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Callable, Dict, Union

import aiofiles

from devmenu.utils.errors import SettingsError
from devmenu.utils.logging import get_logger

logger = get_logger(__name__)


class SettingsStore(ABC):
    """Abstract base class for preference stores."""

    def __init__(self):
        self._data: Dict[str, Any] = {}
        self._subscribers: Dict[str, Callable[[], None]] = {}

    def get(self, key: str, default: Any = None) -> Any:
        """Return a private copy of the value stored under ``key``."""
        if key not in self._data:
            return default
        return copy.deepcopy(self._data[key])

    def set(self, key: str, value: Any):
        """
        Store ``value`` under ``key``.

        Args:
            key: Top-level key
            value: JSON serializable value; None removes the key
        """
        if value is None:
            self.remove(key)
            return
        try:
            json.dumps(value)
        except (TypeError, ValueError) as e:
            raise SettingsError(
                f"Setting value must be JSON serializable: {str(e)}",
                details={'key': key, 'value_type': type(value).__name__}
            ) from e
        self._data[key] = copy.deepcopy(value)

    def remove(self, key: str) -> bool:
        return self._data.pop(key, None) is not None

    def keys(self):
        return list(self._data.keys())

    @abstractmethod
    def synchronize(self) -> None:
        """Force pending writes to durable storage."""
        pass

    def subscribe(self, callback: Callable[[], None]) -> str:
        """
        Register a callback for external change notifications.

        Returns:
            str: Token for unsubscribe()
        """
        token = str(uuid.uuid4())
        self._subscribers[token] = callback
        logger.debug(f"Registered settings subscriber {token}")
        return token

    def unsubscribe(self, token: str) -> bool:
        return self._subscribers.pop(token, None) is not None

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def notify_changed(self):
        """Signal that the stored data changed outside this process."""
        for token, callback in list(self._subscribers.items()):
            try:
                callback()
            except Exception as e:
                logger.error(f"Error in settings subscriber {token}: {e}")


class MemorySettingsStore(SettingsStore):
    """
    In-process store, used for embedding and tests.

    ``flush_count`` counts synchronize() calls so callers can observe
    how often settings were persisted.
    """

    def __init__(self, initial: Union[Dict[str, Any], None] = None):
        super().__init__()
        if initial:
            self._data = copy.deepcopy(dict(initial))
        self.flush_count = 0

    def synchronize(self) -> None:
        self.flush_count += 1

    def edit(self, key: str, value: Any):
        """Change a value as an external editor would, then notify."""
        self.set(key, value)
        self.notify_changed()


class JSONSettingsStore(SettingsStore):
    """
    Store backed by a single JSON file.

    The file is read at construction. synchronize() rewrites it atomically.
    refresh() re-reads it and notifies subscribers when another process
    changed it.
    """

    def __init__(self, path: Union[str, Path]):
        super().__init__()
        self.path = Path(path)
        self._data = self._parse(self._read_text())
        logger.debug(f"JSONSettingsStore opened {self.path}")

    def _read_text(self) -> str:
        try:
            return self.path.read_text(encoding='utf-8')
        except FileNotFoundError:
            return ''
        except OSError as e:
            logger.warning(f"Failed to read settings file {self.path}: {e}")
            return ''

    def _parse(self, text: str) -> Dict[str, Any]:
        if not text.strip():
            return {}
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            logger.warning(f"Ignoring corrupt settings file {self.path}: {e}")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Ignoring settings file with non-object root: {self.path}")
            return {}
        return data

    def synchronize(self) -> None:
        temp_path = self.path.with_suffix(self.path.suffix + '.tmp')
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(temp_path, 'w', encoding='utf-8') as f:
                json.dump(self._data, f, indent=2, sort_keys=True)
                f.flush()
                os.fsync(f.fileno())
            temp_path.replace(self.path)
            logger.debug(f"Saved settings to {self.path}")
        except (IOError, OSError) as e:
            if temp_path.exists():
                temp_path.unlink()
            raise SettingsError(
                f"Failed to save settings to {self.path}: {str(e)}",
                details={'settings_file': str(self.path), 'error': str(e)}
            ) from e

    async def refresh(self) -> bool:
        """
        Re-read the file and notify subscribers if it changed.

        Returns:
            bool: True if the content differed from the cached copy
        """
        try:
            async with aiofiles.open(self.path, 'r', encoding='utf-8') as f:
                text = await f.read()
        except FileNotFoundError:
            text = ''
        except OSError as e:
            logger.warning(f"Failed to refresh settings from {self.path}: {e}")
            return False

        data = self._parse(text)
        if data == self._data:
            return False

        self._data = data
        logger.info(f"Settings file changed externally: {self.path}")
        self.notify_changed()
        return True

    def modification_stamp(self):
        """(mtime_ns, size) of the backing file, None when missing."""
        try:
            stat = self.path.stat()
        except OSError:
            return None
        return (stat.st_mtime_ns, stat.st_size)
