"""
DevMenu Configuration Management

Launch-time configuration for the developer controller. Values come from
built-in defaults, an optional JSON file and DEVMENU_* environment
variables, in increasing order of precedence. Configuration is read once;
runtime preferences live in the settings store instead.
"""

import json
import os
from pathlib import Path
from typing import Any, Dict, Optional, Union

from devmenu.utils.errors import ConfigError
from devmenu.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_CONFIG: Dict[str, Any] = {
    'settings_file': None,
    'executor_override': None,
    'websocket_executor_name': 'Chrome',
    'watch_interval': 1.0,
    'live_reload': {
        'retry_delay': 0.0,
        'max_retry_delay': 30.0,
    },
}

# env var -> (config key, converter)
ENV_OVERRIDES = {
    'DEVMENU_SETTINGS_FILE': ('settings_file', str),
    'DEVMENU_EXECUTOR_OVERRIDE': ('executor_override', str),
    'DEVMENU_WEBSOCKET_EXECUTOR_NAME': ('websocket_executor_name', str),
    'DEVMENU_WATCH_INTERVAL': ('watch_interval', float),
    'DEVMENU_LIVE_RELOAD_RETRY_DELAY': ('live_reload.retry_delay', float),
    'DEVMENU_LIVE_RELOAD_MAX_RETRY_DELAY': ('live_reload.max_retry_delay', float),
}


class ConfigManager:
    """
    Configuration lookup with JSON file and environment support.

    Keys support dot notation (``live_reload.retry_delay``).
    """

    def __init__(
        self,
        config_file: Optional[Union[str, Path]] = None,
        environ: Optional[Dict[str, str]] = None,
        **overrides
    ):
        """
        Initialize configuration manager.

        Args:
            config_file: Optional path to a JSON configuration file
            environ: Environment mapping, defaults to os.environ
            **overrides: Explicit values, applied last
        """
        self.config_file = Path(config_file) if config_file else None
        self._environ = os.environ if environ is None else environ
        self._config: Dict[str, Any] = json.loads(json.dumps(DEFAULT_CONFIG))

        self._load_file()
        self._apply_environment()

        for key, value in overrides.items():
            self._set(key, value)

        logger.debug(f"ConfigManager loaded ({len(self._config)} keys)")

    def _load_file(self):
        """Merge the JSON configuration file, if any."""
        if self.config_file is None:
            return

        if not self.config_file.exists():
            logger.info(f"Config file not found, using defaults: {self.config_file}")
            return

        try:
            with open(self.config_file, 'r') as f:
                data = json.load(f)
        except (json.JSONDecodeError, IOError) as e:
            raise ConfigError(
                f"Failed to load configuration from {self.config_file}: {str(e)}",
                details={'config_file': str(self.config_file), 'error': str(e)}
            ) from e

        if not isinstance(data, dict):
            raise ConfigError(
                f"Configuration root must be an object: {self.config_file}",
                details={'config_file': str(self.config_file)}
            )

        self._deep_update(self._config, data)
        logger.debug(f"Loaded configuration from {self.config_file}")

    def _apply_environment(self):
        for env_name, (key, convert) in ENV_OVERRIDES.items():
            raw = self._environ.get(env_name)
            if raw is None or raw == '':
                continue
            try:
                self._set(key, convert(raw))
            except ValueError as e:
                raise ConfigError(
                    f"Invalid value for {env_name}: {raw!r}",
                    details={'variable': env_name, 'error': str(e)}
                ) from e

    def _set(self, key: str, value: Any):
        config = self._config
        parts = key.split('.')
        for part in parts[:-1]:
            if not isinstance(config.get(part), dict):
                config[part] = {}
            config = config[part]
        config[parts[-1]] = value

    def _deep_update(self, target: Dict[str, Any], source: Dict[str, Any]):
        """Deep update dictionary."""
        for key, value in source.items():
            if (key in target and
                    isinstance(target[key], dict) and
                    isinstance(value, dict)):
                self._deep_update(target[key], value)
            else:
                target[key] = value

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value.

        Args:
            key: Configuration key (supports dot notation)
            default: Default value if key not found

        Returns:
            Configuration value
        """
        try:
            value = self._config
            for part in key.split('.'):
                value = value[part]
            return value
        except (KeyError, TypeError):
            return default

    def get_float(self, key: str, default: float) -> float:
        """Get a numeric value, falling back to default when unusable."""
        value = self.get(key, default)
        try:
            return float(value)
        except (TypeError, ValueError):
            logger.warning(f"Ignoring non-numeric config value {key}={value!r}")
            return default

    def has(self, key: str) -> bool:
        """Check if configuration key exists."""
        marker = object()
        return self.get(key, marker) is not marker

    def get_all(self) -> Dict[str, Any]:
        """Get all configuration as a dictionary."""
        return json.loads(json.dumps(self._config))

    def __contains__(self, key: str) -> bool:
        return self.has(key)

    def __repr__(self) -> str:
        source = self.config_file or 'defaults'
        return f"ConfigManager(source='{source}', keys={len(self._config)})"
