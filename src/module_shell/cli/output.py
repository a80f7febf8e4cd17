"""
Content area for shell output.

Output rows advance between a fixed header and the prompt row; when they
reach the bottom, the region scrolls up by a batch of rows.
"""

import io
import logging
from typing import Callable, List, Optional

from module_shell.terminal import TerminalSurface

logger = logging.getLogger(__name__)

HEADER_ROWS = 4


def wrap_line(text: str, width: int) -> List[str]:
    """Split one logical line into rows of at most ``width`` characters."""
    text = text.expandtabs(4).rstrip("\r")
    if width <= 0 or len(text) <= width:
        return [text]
    return [text[i : i + width] for i in range(0, len(text), width)]


class ContentArea:
    """
    Advancing output cursor confined to the content region.

    Layout, top to bottom: ``header_rows`` header rows, content rows, one
    spacer row, the prompt row (two rows above the bottom edge), and the
    footer row(s).
    """

    def __init__(self, surface: TerminalSurface, batch: int = 10, header_rows: int = HEADER_ROWS):
        self.surface = surface
        self.batch = batch
        self.header_rows = header_rows
        self.row = self.top

    @property
    def top(self) -> int:
        return self.header_rows + 1

    @property
    def prompt_row(self) -> int:
        _, rows = self.surface.size()
        return max(rows - 2, self.top + 2)

    @property
    def bottom(self) -> int:
        return max(self.prompt_row - 2, self.top)

    @property
    def width(self) -> int:
        columns, _ = self.surface.size()
        return max(columns, 1)

    def reset(self) -> None:
        self.row = self.top

    def clear(self) -> None:
        """Blank the content region and move the cursor to its top."""
        for row in range(self.top, self.bottom + 1):
            self.surface.clear_line(row)
        self.reset()

    def scroll(self) -> int:
        """
        Scroll the region up by one batch and move the cursor up with it.

        Returns:
            Number of rows scrolled
        """
        height = self.bottom - self.top + 1
        amount = max(1, min(self.batch, height))
        self.surface.set_scroll_region(self.top, self.bottom)
        self.surface.scroll_up(amount)
        self.surface.reset_scroll_region()
        for row in range(self.bottom - amount + 1, self.bottom + 1):
            self.surface.clear_line(row)
        self.row = max(self.top, self.row - amount)
        logger.debug("Scrolled content region by %d rows", amount)
        return amount

    def write_line(self, text: str = "", paint: Optional[Callable[[str], str]] = None) -> None:
        for logical in text.split("\n"):
            for piece in wrap_line(logical, self.width):
                if self.row > self.bottom:
                    self.scroll()
                self.surface.clear_line(self.row)
                self.surface.write(paint(piece) if paint else piece)
                self.row += 1


class ContentWriter(io.TextIOBase):
    """Line-buffered text stream that writes complete lines into a ContentArea."""

    def __init__(self, area: ContentArea):
        super().__init__()
        self.area = area
        self._partial = ""

    def writable(self) -> bool:
        return True

    def write(self, s: str) -> int:
        text = self._partial + s
        *lines, self._partial = text.split("\n")
        for line in lines:
            self.area.write_line(line)
        return len(s)

    def finish(self) -> None:
        """Emit any trailing text that was not newline-terminated."""
        if self._partial:
            partial, self._partial = self._partial, ""
            self.area.write_line(partial)
