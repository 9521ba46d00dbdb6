"""
DevMenu exception classes

This module defines the exceptions raised inside the developer-tools
controller. Most failures in this package are recovered internally
(dropped commands, retried polls, logged persistence failures); the
exceptions exist so those recovery points can tell failures apart.
"""

from typing import Optional


class DevMenuError(Exception):
    """Base exception for all DevMenu errors"""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class SettingsError(DevMenuError):
    """Errors reading or writing the settings store"""
    pass


class ProtocolError(DevMenuError):
    """Malformed or unsupported command messages"""
    pass


class ConfigError(DevMenuError):
    """Errors related to configuration management"""
    pass


class ExecutionContextError(DevMenuError):
    """State touched from outside the owning execution context"""
    pass
