"""
DevMenu Command Router

Maps ``(target, action)`` pairs to handlers. Handlers take the message's
options dict. Unknown pairs are ignored so newer servers can send
commands this client has never heard of.
"""

from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from devmenu.commands.protocol import CommandMessage, parse_message
from devmenu.utils.logging import get_logger

logger = get_logger(__name__)

CommandHandler = Callable[[Mapping[str, Any]], None]


class CommandRouter:
    """Decodes inbound frames and dispatches them to registered handlers."""

    def __init__(self):
        self._handlers: Dict[Tuple[str, str], CommandHandler] = {}
        self.dropped_count = 0

        logger.debug("CommandRouter initialized")

    def register(self, target: str, action: str, handler: CommandHandler):
        """
        Register the handler for a command.

        Args:
            target: Command target (e.g. "bridge")
            action: Command action (e.g. "reload")
            handler: Called with the options dict
        """
        if not callable(handler):
            raise ValueError(f"Handler for {target}.{action} must be callable")

        if (target, action) in self._handlers:
            logger.warning(f"Command {target}.{action} already registered, overwriting")

        self._handlers[(target, action)] = handler
        logger.debug(f"Registered command: {target}.{action}")

    def register_object(self, obj: Any):
        """Register every method of ``obj`` decorated with @command."""
        # look on the class so properties are not evaluated
        for attr_name in dir(type(obj)):
            key = getattr(getattr(type(obj), attr_name, None), '_devmenu_command', None)
            if key is not None:
                self.register(key[0], key[1], getattr(obj, attr_name))

    def unregister(self, target: str, action: str) -> bool:
        removed = self._handlers.pop((target, action), None) is not None
        if removed:
            logger.debug(f"Unregistered command: {target}.{action}")
        return removed

    def get_handler(self, target: str, action: str) -> Optional[CommandHandler]:
        return self._handlers.get((target, action))

    def registered_commands(self) -> List[Tuple[str, str]]:
        return sorted(self._handlers)

    def handle_message(self, raw: Any) -> None:
        """Decode ``raw`` and dispatch it; malformed or unsupported frames are dropped."""
        message = parse_message(raw)
        if message is None:
            self.dropped_count += 1
            return

        if not message.is_supported:
            self.dropped_count += 1
            logger.debug(f"Dropping command with unsupported version {message.version!r}")
            return

        self.dispatch(message)

    def dispatch(self, message: CommandMessage) -> bool:
        """
        Run the handler for ``message``.

        Returns:
            bool: True if a handler was found
        """
        handler = self._handlers.get((message.target, message.action))
        if handler is None:
            logger.debug(f"No handler for command {message.target}.{message.action}")
            return False

        logger.info(f"Command {message.target}.{message.action}")
        try:
            handler(message.options)
        except Exception as e:
            logger.error(f"Command {message.target}.{message.action} failed: {e}")
        return True


def command(target: str, action: str):
    """
    Decorator marking a method as the handler of ``target.action``.

    Collected by CommandRouter.register_object().
    """
    def decorator(func: Callable):
        func._devmenu_command = (target, action)
        return func

    return decorator
