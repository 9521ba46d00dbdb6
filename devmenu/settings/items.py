"""
Developer menu items.

A ButtonItem runs its handler whenever it is invoked. A ToggleItem is
bound to a persisted setting and only runs its handler when the value
actually changes.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from devmenu.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class ButtonItem:
    """Stateless menu action."""

    title: str
    handler: Optional[Callable[[], None]] = None
    key: Optional[str] = field(default=None, init=False)

    @property
    def display_title(self) -> str:
        return self.title

    def invoke(self):
        if self.handler is not None:
            self.handler()


@dataclass
class ToggleItem:
    """
    Boolean setting with a change handler.

    ``current_value`` holds the last value seen for ``key`` (None until the
    first change). The handler receives the new selected state.
    """

    key: str
    title: str
    selected_title: Optional[str] = None
    hotkey: str = ""
    handler: Optional[Callable[[bool], None]] = None
    current_value: Any = None

    @property
    def selected(self) -> bool:
        return bool(self.current_value)

    @property
    def display_title(self) -> str:
        if self.selected and self.selected_title:
            return self.selected_title
        return self.title

    def apply(self, value: Any) -> bool:
        """
        Record ``value`` and fire the handler if it differs from the current one.

        Returns:
            bool: True if the handler fired
        """
        if value == self.current_value:
            return False
        self.current_value = value
        self._fire()
        return True

    def toggle(self) -> bool:
        """Flip the selected state and fire; returns the new state."""
        self.current_value = not self.selected
        self._fire()
        return self.current_value

    def _fire(self):
        if self.handler is not None:
            logger.debug(f"Toggle {self.key} -> {self.selected}")
            self.handler(self.selected)
