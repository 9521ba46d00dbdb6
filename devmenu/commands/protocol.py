"""
DevMenu Command Protocol

Messages pushed by the development server over the shell socket:

    {"version": 1, "target": "bridge", "action": "reload", "options": {...}}

The protocol is advisory and never acknowledged. Messages that do not
have this shape, or that carry a version this client does not speak,
are dropped so client and server versions can drift apart safely.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Union

from devmenu.utils.errors import ProtocolError
from devmenu.utils.logging import get_logger

logger = get_logger(__name__)

SUPPORTED_VERSIONS = frozenset({1})


@dataclass(frozen=True)
class CommandMessage:
    """One inbound command."""

    version: int
    target: str
    action: str
    options: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_supported(self) -> bool:
        return is_supported_version(self.version)


def is_supported_version(version: Any) -> bool:
    if isinstance(version, bool) or not isinstance(version, (int, float)):
        return False
    return version in SUPPORTED_VERSIONS


def decode_message(raw: Union[str, bytes, Mapping[str, Any]]) -> CommandMessage:
    """
    Decode a raw frame into a CommandMessage.

    Raises:
        ProtocolError: If the frame is not a well-formed command
    """
    if isinstance(raw, (bytes, bytearray)):
        try:
            raw = raw.decode('utf-8')
        except UnicodeDecodeError as e:
            raise ProtocolError("Command frame is not UTF-8") from e

    if isinstance(raw, str):
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise ProtocolError(f"Command frame is not JSON: {e}") from e
    else:
        data = raw

    if not isinstance(data, Mapping):
        raise ProtocolError(
            "Command must be an object",
            details={'type': type(data).__name__}
        )

    version = data.get('version')
    if isinstance(version, bool) or not isinstance(version, (int, float)):
        raise ProtocolError("Command version must be a number", details={'version': version})

    target = data.get('target')
    action = data.get('action')
    if not isinstance(target, str) or not isinstance(action, str):
        raise ProtocolError(
            "Command target and action must be strings",
            details={'target': target, 'action': action}
        )

    options = data.get('options')
    if options is None:
        options = {}
    elif not isinstance(options, Mapping):
        raise ProtocolError("Command options must be an object", details={'options': options})

    return CommandMessage(version=version, target=target, action=action, options=dict(options))


def parse_message(raw: Any) -> Optional[CommandMessage]:
    """Like decode_message, but returns None instead of raising."""
    try:
        return decode_message(raw)
    except ProtocolError as e:
        logger.debug(f"Dropping malformed command: {e}")
        return None

