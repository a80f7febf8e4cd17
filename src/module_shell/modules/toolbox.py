"""Bundled toolbox module: text, boxes, and progress bars."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Optional

from module_shell.schemas import (
    CapabilityModule,
    Category,
    Command,
    FlagSpec,
    FlagType,
    FlagValue,
    ValidationResult,
)
from module_shell.terminal import BorderStyle, ProgressStyle, render_box, render_progress_bar

logger = logging.getLogger(__name__)

_STYLE_CHOICES = [style.value for style in ProgressStyle]
_BORDER_CHOICES = [style.value for style in BorderStyle]


class ToolboxModule(CapabilityModule):
    """Small utilities that exercise the handler contract and terminal rendering.

    Config keys:
        default_width: Default progress bar width (default 30)
        max_sleep: Upper bound in seconds for ``sleep`` (default 60)
    """

    name = "toolbox"
    description = "Text, box and progress-bar utilities"
    version = "1.0.0"

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        super().__init__(config)
        self.default_width = int(self.config.get("default_width", 30))
        self.max_sleep = float(self.config.get("max_sleep", 60))
        self.initialized = False
        self.categories = [
            Category(label="text", command_count=2),
            Category(label="progress", command_count=2),
        ]
        self.commands = [
            Command(
                name="echo",
                description="Print text back",
                handler=self.echo,
                category="text",
                usage="toolbox echo <text> [--upper] [--repeat N]",
                examples=["toolbox echo hello --repeat 3"],
                aliases=["say"],
                positionals=["text"],
                flags=[
                    FlagSpec(name="text", required=True, description="Text to print"),
                    FlagSpec(name="upper", type=FlagType.BOOLEAN, default=False),
                    FlagSpec(name="repeat", type=FlagType.INTEGER, default=1),
                ],
            ),
            Command(
                name="box",
                description="Draw a bordered box",
                handler=self.box,
                category="text",
                usage="toolbox box <title> [--text T] [--width N] [--style S]",
                examples=["toolbox box Notes --text hello --style double"],
                positionals=["title"],
                flags=[
                    FlagSpec(name="title", default=""),
                    FlagSpec(name="text", default=""),
                    FlagSpec(name="width", type=FlagType.INTEGER, default=40),
                    FlagSpec(name="style", default="rounded", choices=_BORDER_CHOICES),
                ],
            ),
            Command(
                name="progress",
                description="Render a progress bar",
                handler=self.progress,
                category="progress",
                usage="toolbox progress <fraction> [--width N] [--style S] [--label L]",
                examples=["toolbox progress 0.42 --style smooth"],
                aliases=["bar"],
                positionals=["value"],
                flags=[
                    FlagSpec(name="value", type=FlagType.NUMBER, required=True),
                    FlagSpec(name="width", type=FlagType.INTEGER),
                    FlagSpec(name="style", default="blocks", choices=_STYLE_CHOICES),
                    FlagSpec(name="label"),
                ],
            ),
            Command(
                name="sleep",
                description="Wait, reporting progress (interruptible)",
                handler=self.sleep,
                category="progress",
                usage="toolbox sleep [seconds] [--steps N]",
                positionals=["seconds"],
                flags=[
                    FlagSpec(name="seconds", type=FlagType.NUMBER, default=1.0),
                    FlagSpec(name="steps", type=FlagType.INTEGER, default=5),
                ],
            ),
        ]

    async def initialize(self) -> None:
        self.initialized = True
        logger.debug("Toolbox initialized (default_width=%d)", self.default_width)

    def validate(self) -> ValidationResult:
        errors = []
        if self.default_width < 1:
            errors.append("default_width must be positive")
        if self.max_sleep < 0:
            errors.append("max_sleep must not be negative")
        return ValidationResult(is_valid=not errors, errors=errors)

    async def echo(self, flags: Dict[str, FlagValue]) -> None:
        text = str(flags["text"])
        if flags.get("upper"):
            text = text.upper()
        for _ in range(max(int(flags.get("repeat", 1)), 1)):
            print(text)

    async def box(self, flags: Dict[str, FlagValue]) -> None:
        text = str(flags.get("text", ""))
        lines = text.split("\\n") if text else []
        height = max(len(lines), 1) + 4
        for row in render_box(
            int(flags["width"]),
            height,
            lines,
            style=BorderStyle(flags["style"]),
            title=str(flags.get("title", "")) or None,
        ):
            print(row)

    async def progress(self, flags: Dict[str, FlagValue]) -> None:
        width = flags.get("width")
        print(
            render_progress_bar(
                float(flags["value"]),
                width=int(width) if width is not None else self.default_width,
                style=ProgressStyle(flags["style"]),
                label=flags.get("label"),
            )
        )

    async def sleep(self, flags: Dict[str, FlagValue]) -> None:
        seconds = float(flags["seconds"])
        if seconds < 0 or seconds > self.max_sleep:
            raise ValueError(f"seconds must be between 0 and {self.max_sleep:g}")
        steps = max(int(flags["steps"]), 1)
        for step in range(1, steps + 1):
            await asyncio.sleep(seconds / steps)
            print(render_progress_bar(step / steps, width=self.default_width, style=ProgressStyle.SMOOTH))
        print("Done")
