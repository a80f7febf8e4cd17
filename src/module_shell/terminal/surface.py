"""
Terminal surface for Module Shell.

Primitive operations on the terminal device, expressed as ANSI escape
sequences written to an output stream.
"""

import logging
import os
import shutil
import sys
import termios
import tty
from typing import Any, List, Optional, TextIO, Tuple

from module_shell.exceptions import TerminalIOError

logger = logging.getLogger(__name__)

ESC = "\x1b["

CLEAR_SCREEN = f"{ESC}2J"
CLEAR_LINE = f"{ESC}2K"
HIDE_CURSOR = f"{ESC}?25l"
SHOW_CURSOR = f"{ESC}?25h"
SAVE_CURSOR = "\x1b7"
RESTORE_CURSOR = "\x1b8"
ALT_SCREEN_ON = f"{ESC}?1049h"
ALT_SCREEN_OFF = f"{ESC}?1049l"
RESET_SCROLL_REGION = f"{ESC}r"
RESET_STYLE = f"{ESC}0m"


class TerminalSurface:
    """
    Writes cursor, clearing, and screen-buffer control sequences.

    Rows and columns are 1-based, as in the terminal's own addressing.
    """

    def __init__(
        self,
        stream: Optional[TextIO] = None,
        input_fd: Optional[int] = None,
        size: Optional[Tuple[int, int]] = None,
    ):
        """
        Initialize a surface.

        Args:
            stream: Output stream (defaults to the current sys.stdout)
            input_fd: File descriptor switched into raw mode (defaults to stdin)
            size: Fixed (columns, rows) used instead of querying the terminal
        """
        self.stream = stream if stream is not None else sys.stdout
        self.input_fd = input_fd if input_fd is not None else _stdin_fd()
        self._fixed_size = size
        self._saved_attrs: Optional[List[Any]] = None
        self._alt_screen = False
        self._cursor_hidden = False
        self._scroll_region = False

    def write(self, text: str) -> None:
        """
        Write text and flush.

        Raises:
            TerminalIOError: If the underlying stream fails
        """
        try:
            self.stream.write(text)
            self.stream.flush()
        except (OSError, ValueError) as e:
            raise TerminalIOError(f"Terminal write failed: {e}")

    def move_to(self, row: int, col: int = 1) -> None:
        self.write(f"{ESC}{max(row, 1)};{max(col, 1)}H")

    def move_up(self, n: int = 1) -> None:
        if n > 0:
            self.write(f"{ESC}{n}A")

    def move_down(self, n: int = 1) -> None:
        if n > 0:
            self.write(f"{ESC}{n}B")

    def move_right(self, n: int = 1) -> None:
        if n > 0:
            self.write(f"{ESC}{n}C")

    def move_left(self, n: int = 1) -> None:
        if n > 0:
            self.write(f"{ESC}{n}D")

    def save_cursor(self) -> None:
        self.write(SAVE_CURSOR)

    def restore_cursor(self) -> None:
        self.write(RESTORE_CURSOR)

    def clear_screen(self) -> None:
        self.write(f"{CLEAR_SCREEN}{ESC}H")

    def clear_line(self, row: Optional[int] = None) -> None:
        """Clear the whole line at ``row`` (or the cursor's line)."""
        if row is not None:
            self.move_to(row, 1)
        self.write(CLEAR_LINE)

    def clear_span(self, row: int, col: int, width: int) -> None:
        """Overwrite ``width`` cells with spaces, leaving the cursor at the span start."""
        if width <= 0:
            return
        self.move_to(row, col)
        self.write(" " * width)
        self.move_to(row, col)

    def hide_cursor(self) -> None:
        self._cursor_hidden = True
        self.write(HIDE_CURSOR)

    def show_cursor(self) -> None:
        self._cursor_hidden = False
        self.write(SHOW_CURSOR)

    def enter_alt_screen(self) -> None:
        self._alt_screen = True
        self.write(ALT_SCREEN_ON)

    def exit_alt_screen(self) -> None:
        self._alt_screen = False
        self.write(ALT_SCREEN_OFF)

    def set_scroll_region(self, top: int, bottom: int) -> None:
        """Confine scrolling to rows ``top`` through ``bottom`` (DECSTBM)."""
        self._scroll_region = True
        self.write(f"{ESC}{top};{bottom}r")

    def reset_scroll_region(self) -> None:
        self._scroll_region = False
        self.write(RESET_SCROLL_REGION)

    def scroll_up(self, n: int) -> None:
        """Scroll the active region up ``n`` lines; vacated lines come in blank."""
        if n > 0:
            self.write(f"{ESC}{n}S")

    def is_tty(self) -> bool:
        isatty = getattr(self.stream, "isatty", None)
        try:
            return bool(isatty and isatty())
        except ValueError:
            return False

    def size(self) -> Tuple[int, int]:
        """Return (columns, rows)."""
        if self._fixed_size is not None:
            return self._fixed_size
        columns, rows = shutil.get_terminal_size((80, 24))
        return columns, rows

    @property
    def raw(self) -> bool:
        return self._saved_attrs is not None

    def enable_raw_mode(self) -> None:
        """
        Put the input descriptor into cbreak mode.

        Echo and line buffering are disabled; ISIG stays on, so Ctrl+C still
        arrives as SIGINT. No-op when input is not a TTY.
        """
        if self._saved_attrs is not None or self.input_fd < 0:
            return
        if not os.isatty(self.input_fd):
            logger.debug("Input fd %d is not a TTY; raw mode skipped", self.input_fd)
            return
        try:
            self._saved_attrs = termios.tcgetattr(self.input_fd)
            tty.setcbreak(self.input_fd)
        except termios.error as e:
            self._saved_attrs = None
            raise TerminalIOError(f"Failed to enable raw mode: {e}")

    def disable_raw_mode(self) -> None:
        if self._saved_attrs is None:
            return
        attrs, self._saved_attrs = self._saved_attrs, None
        try:
            termios.tcsetattr(self.input_fd, termios.TCSADRAIN, attrs)
        except termios.error as e:
            raise TerminalIOError(f"Failed to restore terminal mode: {e}")

    def acquire(self) -> None:
        """Take over the screen: alternate buffer, cleared, raw input."""
        self.enter_alt_screen()
        self.clear_screen()
        self.enable_raw_mode()

    def release(self) -> None:
        """
        Restore the terminal. Safe to call more than once.

        Every step is attempted even if an earlier one fails; the first
        failure is re-raised afterwards.
        """
        steps = [self.disable_raw_mode, self.reset_scroll_region, self.show_cursor]
        if self._alt_screen:
            steps.append(self.exit_alt_screen)
        first_error: Optional[TerminalIOError] = None
        for step in steps:
            try:
                step()
            except TerminalIOError as e:
                logger.debug("Terminal release step failed: %s", e)
                first_error = first_error or e
        if first_error is not None:
            raise first_error


def _stdin_fd() -> int:
    try:
        return sys.stdin.fileno()
    except (AttributeError, OSError, ValueError):
        return -1
