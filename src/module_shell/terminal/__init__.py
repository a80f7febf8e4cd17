"""Terminal device primitives and renderers."""

from .surface import TerminalSurface
from .drawing import (
    BorderStyle,
    ProgressStyle,
    render_border,
    render_box,
    render_progress_bar,
    draw_border,
    draw_box,
    center_text,
    right_align,
)

__all__ = [
    "TerminalSurface",
    "BorderStyle",
    "ProgressStyle",
    "render_border",
    "render_box",
    "render_progress_bar",
    "draw_border",
    "draw_box",
    "center_text",
    "right_align",
]
