"""
Session state for the interactive shell.

Holds the session mode, input buffer, command history, and the force-exit
deadline.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class ShellMode(str, Enum):
    WELCOME = "welcome"
    PROMPT = "prompt"
    EXECUTING = "executing"
    TERMINATED = "terminated"


class CommandHistory:
    """
    Ordered history of submitted lines with a browsing cursor.

    The cursor ranges over [0, len]; ``len`` means "one past last", i.e.
    not browsing.
    """

    def __init__(self, limit: Optional[int] = None):
        """
        Initialize history.

        Args:
            limit: Maximum entries kept (oldest dropped first); None for unbounded
        """
        self.limit = limit
        self._entries: List[str] = []
        self._cursor = 0
        self._draft = ""

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def browsing(self) -> bool:
        return self._cursor < len(self._entries)

    def append(self, line: str) -> None:
        """Record a submitted line and reset the cursor. Blank lines are skipped."""
        if line.strip():
            self._entries.append(line)
            self._trim()
        self.reset()

    def set_limit(self, limit: Optional[int]) -> None:
        """Change the entry limit, dropping the oldest entries over it."""
        self.limit = limit
        self._trim()
        self.reset()

    def _trim(self) -> None:
        if self.limit is not None and self.limit > 0 and len(self._entries) > self.limit:
            del self._entries[: len(self._entries) - self.limit]

    def reset(self) -> None:
        self._cursor = len(self._entries)
        self._draft = ""

    def previous(self, current: str) -> Optional[str]:
        """
        Move one entry back.

        Args:
            current: Input currently displayed; saved as the draft when
                browsing begins

        Returns:
            Entry to display, or None when already at the oldest entry
        """
        if self._cursor == 0:
            return None
        if not self.browsing:
            self._draft = current
        self._cursor -= 1
        return self._entries[self._cursor]

    def next(self) -> Optional[str]:
        """
        Move one entry forward.

        Returns:
            Entry to display, the saved draft on reaching "one past last",
            or None when not browsing
        """
        if not self.browsing:
            return None
        self._cursor += 1
        if self._cursor == len(self._entries):
            return self._draft
        return self._entries[self._cursor]

    def get_history(self) -> List[str]:
        return self._entries.copy()


@dataclass
class ShellState:
    """Mutable state of one shell session."""

    mode: ShellMode = ShellMode.WELCOME
    history: CommandHistory = field(default_factory=CommandHistory)
    buffer: str = ""
    force_exit_deadline: Optional[float] = None
