"""
Interactive shell for Module Shell.

Provides the shell session state machine, command routing, built-ins,
configuration, and the process entry point.
"""

from .builtins import BuiltinTable, build_builtin_table
from .config import ShellConfig, load_config
from .context import ShellContext
from .keys import KeyDecoder, KeyEvent, KeyKind, QueueKeySource, TerminalKeySource
from .router import CommandRouter, ParsedCommand, parse_line
from .session import CommandHistory, ShellMode, ShellState
from .shell import ShellSession

__all__ = [
    "BuiltinTable",
    "build_builtin_table",
    "ShellConfig",
    "load_config",
    "ShellContext",
    "KeyDecoder",
    "KeyEvent",
    "KeyKind",
    "QueueKeySource",
    "TerminalKeySource",
    "CommandRouter",
    "ParsedCommand",
    "parse_line",
    "CommandHistory",
    "ShellMode",
    "ShellState",
    "ShellSession",
]
