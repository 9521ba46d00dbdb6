"""
Remote command protocol

Decoding and dispatch of the fire-and-forget commands a development
server sends over the shell socket.
"""

from .protocol import (
    CommandMessage,
    SUPPORTED_VERSIONS,
    decode_message,
    parse_message,
)
from .router import CommandRouter, command

__all__ = [
    'CommandMessage',
    'SUPPORTED_VERSIONS',
    'decode_message',
    'parse_message',
    'CommandRouter',
    'command',
]
