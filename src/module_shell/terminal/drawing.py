"""Border, box, and progress-bar rendering.

The ``render_*`` functions are pure and return strings; the ``draw_*``
helpers position and write them through a TerminalSurface.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Sequence

from .surface import TerminalSurface


class BorderStyle(str, Enum):
    SINGLE = "single"
    DOUBLE = "double"
    ROUNDED = "rounded"
    THICK = "thick"


@dataclass(frozen=True)
class BorderGlyphs:
    top_left: str
    top_right: str
    bottom_left: str
    bottom_right: str
    horizontal: str
    vertical: str


BORDER_GLYPHS: Dict[BorderStyle, BorderGlyphs] = {
    BorderStyle.SINGLE: BorderGlyphs("┌", "┐", "└", "┘", "─", "│"),
    BorderStyle.DOUBLE: BorderGlyphs("╔", "╗", "╚", "╝", "═", "║"),
    BorderStyle.ROUNDED: BorderGlyphs("╭", "╮", "╰", "╯", "─", "│"),
    BorderStyle.THICK: BorderGlyphs("┏", "┓", "┗", "┛", "━", "┃"),
}


class ProgressStyle(str, Enum):
    BLOCKS = "blocks"
    SMOOTH = "smooth"
    DOTS = "dots"
    BARS = "bars"


# Index n holds the glyph for n eighths of a cell.
EIGHTH_BLOCKS = ["", "▏", "▎", "▍", "▌", "▋", "▊", "▉", "█"]

_RUN_GLYPHS = {
    ProgressStyle.BLOCKS: ("█", "░"),
    ProgressStyle.DOTS: ("●", "○"),
    ProgressStyle.BARS: ("▌", "░"),
}


def _top_edge(width: int, glyphs: BorderGlyphs, title: Optional[str]) -> str:
    plain = glyphs.top_left + glyphs.horizontal * (width - 2) + glyphs.top_right
    if not title:
        return plain
    title_text = f" {title} "
    # Title plus both corners must fit; otherwise it is dropped, never truncated.
    if len(title_text) + 2 > width:
        return plain
    start = (width - len(title_text)) // 2
    left = max(start - 1, 0)
    right = width - 2 - left - len(title_text)
    return glyphs.top_left + glyphs.horizontal * left + title_text + glyphs.horizontal * right + glyphs.top_right


def render_border(
    width: int,
    height: int,
    style: BorderStyle = BorderStyle.ROUNDED,
    title: Optional[str] = None,
) -> List[str]:
    """
    Render a rectangle outline as a list of rows.

    Every row is exactly ``width`` characters. Interior cells are spaces.

    Raises:
        ValueError: If width or height is below 2
    """
    if width < 2 or height < 2:
        raise ValueError(f"Border must be at least 2x2, got {width}x{height}")
    glyphs = BORDER_GLYPHS[BorderStyle(style)]
    rows = [_top_edge(width, glyphs, title)]
    middle = glyphs.vertical + " " * (width - 2) + glyphs.vertical
    rows.extend(middle for _ in range(height - 2))
    rows.append(glyphs.bottom_left + glyphs.horizontal * (width - 2) + glyphs.bottom_right)
    return rows


def fit_line(text: str, width: int) -> str:
    """Truncate ``text`` to ``width`` characters, ending in ``...`` when cut."""
    if width <= 0:
        return ""
    if len(text) <= width:
        return text
    if width <= 3:
        return text[:width]
    return text[: width - 3] + "..."


def render_box(
    width: int,
    height: int,
    content: Sequence[str] = (),
    style: BorderStyle = BorderStyle.ROUNDED,
    title: Optional[str] = None,
    padding: int = 1,
) -> List[str]:
    """Render a border with ``content`` lines placed inside the padding."""
    rows = render_border(width, height, style, title)
    inner_width = width - 2 - padding * 2
    inner_height = height - 2 - padding * 2
    if inner_width <= 0 or inner_height <= 0:
        return rows
    glyphs = BORDER_GLYPHS[BorderStyle(style)]
    for index, line in enumerate(list(content)[:inner_height]):
        text = fit_line(line, inner_width).ljust(inner_width)
        pad = " " * padding
        rows[1 + padding + index] = glyphs.vertical + pad + text + pad + glyphs.vertical
    return rows


def render_progress_bar(
    progress: float,
    width: int = 40,
    style: ProgressStyle = ProgressStyle.BLOCKS,
    show_percent: bool = True,
    label: Optional[str] = None,
) -> str:
    """
    Render ``label [bar] NN%``.

    ``progress`` is clamped to [0, 1]; the bar between the brackets is
    exactly ``width`` characters in every style.
    """
    progress = min(max(float(progress), 0.0), 1.0)
    width = max(int(width), 0)
    style = ProgressStyle(style)

    if style is ProgressStyle.SMOOTH:
        eighths = math.floor(progress * width * 8)
        full, partial = divmod(eighths, 8)
        partial_glyph = EIGHTH_BLOCKS[partial] if partial else ""
        bar = "█" * full + partial_glyph + "░" * (width - full - len(partial_glyph))
    else:
        filled_glyph, empty_glyph = _RUN_GLYPHS[style]
        filled = math.floor(progress * width)
        bar = filled_glyph * filled + empty_glyph * (width - filled)

    percent = f" {math.floor(progress * 100 + 0.5)}%" if show_percent else ""
    prefix = f"{label} " if label else ""
    return f"{prefix}[{bar}]{percent}"


def center_text(text: str, width: int) -> str:
    return " " * max(0, (width - len(text)) // 2) + text


def right_align(text: str, width: int) -> str:
    return " " * max(0, width - len(text)) + text


def draw_rows(surface: TerminalSurface, rows: Sequence[str], row: int = 1, col: int = 1) -> None:
    """Write pre-rendered rows starting at (row, col), preserving the cursor."""
    surface.save_cursor()
    for offset, text in enumerate(rows):
        surface.move_to(row + offset, col)
        surface.write(text)
    surface.restore_cursor()


def draw_border(
    surface: TerminalSurface,
    width: int,
    height: int,
    style: BorderStyle = BorderStyle.ROUNDED,
    title: Optional[str] = None,
    row: int = 1,
    col: int = 1,
) -> None:
    draw_rows(surface, render_border(width, height, style, title), row, col)


def draw_box(
    surface: TerminalSurface,
    x: int,
    y: int,
    width: int,
    height: int,
    content: Sequence[str] = (),
    style: BorderStyle = BorderStyle.ROUNDED,
    title: Optional[str] = None,
    padding: int = 1,
) -> None:
    draw_rows(surface, render_box(width, height, content, style, title, padding), y, x)


__all__ = [
    "BorderStyle",
    "BorderGlyphs",
    "BORDER_GLYPHS",
    "ProgressStyle",
    "EIGHTH_BLOCKS",
    "render_border",
    "render_box",
    "render_progress_bar",
    "fit_line",
    "center_text",
    "right_align",
    "draw_rows",
    "draw_border",
    "draw_box",
]
