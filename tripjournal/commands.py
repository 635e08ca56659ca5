"""Command pattern implementation for toolbar and shortcut actions."""

from abc import ABC, abstractmethod
from typing import Dict, Optional, TYPE_CHECKING

from .style import StyleDimension
from .toggle import ToggleResult

if TYPE_CHECKING:
    from .session import EditingSession


class EditorCommand(ABC):
    """Base class for editing-session commands."""

    @abstractmethod
    def execute(self, session: 'EditingSession') -> bool:
        """Execute the command.

        Returns:
            True if the command modified the document
        """
        pass


class ToggleStyleCommand(EditorCommand):
    def __init__(self, dimension: StyleDimension):
        self.dimension = dimension

    def execute(self, session):
        result = session.toggle(self.dimension)
        if result is ToggleResult.REJECTED_LINK_UNDERLINE:
            session.status_message = "Photo links are always underlined"
        return result is ToggleResult.APPLIED


class SaveCommand(EditorCommand):
    def execute(self, session):
        session.save()
        return False


class CommandRegistry:
    """Maps shortcut names to commands."""

    def __init__(self):
        self._commands: Dict[str, EditorCommand] = {}
        self._register_defaults()

    def register(self, shortcut: str, command: EditorCommand):
        self._commands[shortcut] = command

    def get(self, shortcut: str) -> Optional[EditorCommand]:
        return self._commands.get(shortcut)

    def _register_defaults(self):
        self.register('ctrl+b', ToggleStyleCommand(StyleDimension.BOLD))
        self.register('ctrl+i', ToggleStyleCommand(StyleDimension.ITALIC))
        self.register('ctrl+u', ToggleStyleCommand(StyleDimension.UNDERLINE))
        self.register('ctrl+shift+x', ToggleStyleCommand(StyleDimension.STRIKETHROUGH))
        self.register('ctrl+s', SaveCommand())
