"""
Shell context.

Provides the object handed to built-in commands, with access to the registry,
configuration, and history, plus session-level actions.
"""

from typing import TYPE_CHECKING, List

from module_shell.registry import ModuleRegistry

from .builtins import BuiltinTable
from .config import ShellConfig
from .theme import Theme, get_theme

if TYPE_CHECKING:
    from .shell import ShellSession


class ShellContext:
    """
    Context object for built-in command execution.
    """

    def __init__(self, session: "ShellSession"):
        """
        Initialize shell context.

        Args:
            session: Owning shell session
        """
        self.session = session

    @property
    def registry(self) -> ModuleRegistry:
        return self.session.registry

    @property
    def config(self) -> ShellConfig:
        return self.session.config

    @property
    def builtins(self) -> BuiltinTable:
        return self.session.builtins

    @property
    def history(self) -> List[str]:
        """Submitted lines, oldest first."""
        return self.session.state.history.get_history()

    @property
    def theme(self) -> Theme:
        return get_theme(self.config.theme)

    def paint(self, role: str, text: str) -> str:
        return self.theme.paint(role, text)

    def set_theme(self, name: str) -> None:
        self.config.theme = name
        self.session.redraw_chrome()

    def apply_config(self) -> None:
        """Make in-memory config changes take effect in the running session."""
        self.session.apply_config()

    def clear_output(self) -> None:
        self.session.content.clear()

    def request_exit(self) -> None:
        """Terminate the session gracefully after the current command."""
        self.session.terminate()
