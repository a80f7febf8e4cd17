"""
Exception hierarchy for Module Shell.

Provides structured exceptions for registry, dispatch and terminal errors with
JSON serialization support.
"""

from dataclasses import dataclass, asdict, field
from typing import Dict, List, Optional


@dataclass
class ShellError(Exception):
    """Base exception for Module Shell errors."""

    message: str
    code: str = "SHELL_ERROR"
    module: Optional[str] = None

    def __str__(self) -> str:
        """Return human-readable error message."""
        return self.message

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return asdict(self)


@dataclass
class RegistrationError(ShellError):
    """A capability module failed structural validation at registration."""

    code: str = "VALIDATION_ERROR"
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


@dataclass
class NotFoundError(ShellError):
    """A module, UI binding or command could not be resolved."""

    code: str = "NOT_FOUND"


@dataclass
class UsageError(ShellError):
    """Tokens or flags do not match a command's declared parameters."""

    code: str = "USAGE_ERROR"
    command_name: str = ""


@dataclass
class HandlerError(ShellError):
    """A dispatched command handler raised."""

    code: str = "HANDLER_ERROR"
    command_name: str = ""

    def __str__(self) -> str:
        """Return human-readable error message with command context."""
        if self.command_name:
            return f"Command '{self.command_name}' failed: {self.message}"
        return self.message


@dataclass
class InitializationError(ShellError):
    """One or more modules failed their initialize() hook."""

    code: str = "INIT_ERROR"
    failures: Dict[str, str] = field(default_factory=dict)


@dataclass
class ConfigError(ShellError):
    """Configuration or manifest file could not be loaded."""

    code: str = "CONFIG_ERROR"
    path: Optional[str] = None


@dataclass
class TerminalIOError(ShellError):
    """Writing to the terminal stream failed. Not recoverable."""

    code: str = "TERMINAL_IO"


__all__ = [
    "ShellError",
    "RegistrationError",
    "NotFoundError",
    "UsageError",
    "HandlerError",
    "InitializationError",
    "ConfigError",
    "TerminalIOError",
]
