"""
Interactive shell session.

Implements the WELCOME -> PROMPT -> EXECUTING -> PROMPT / TERMINATED state
machine on top of a TerminalSurface. Keys come from a KeySource; everything
else (rendering, history, dispatch, the interrupt protocol) lives here so a
session can be driven with synthetic keys and a fake clock.
"""

import asyncio
import logging
import time
from contextlib import redirect_stdout
from typing import Any, Awaitable, Callable, Optional

from module_shell.exceptions import HandlerError, NotFoundError, ShellError, TerminalIOError, UsageError
from module_shell.registry import ModuleRegistry
from module_shell.terminal import BorderStyle, TerminalSurface, center_text, draw_box, render_border
from module_shell.terminal.drawing import draw_rows, fit_line

from .builtins import BuiltinTable, build_builtin_table
from .config import ShellConfig
from .context import ShellContext
from .keys import CONTROL_KINDS, KeyEvent, KeyKind, KeySource
from .output import ContentArea, ContentWriter
from .router import HELP_HINT, CommandRouter, ParsedCommand, apply_completion, parse_line
from .session import CommandHistory, ShellMode, ShellState
from .theme import Theme, get_theme

logger = logging.getLogger(__name__)

FORCED_EXIT_CODE = 130
SIGNAL_EXIT_CODE = 143

TITLE = "Module Shell"
INTERRUPT_NOTICE = 'Press Ctrl+C again to force quit, or type "exit" to quit gracefully'
FOOTER_HINT = "Tab: complete  Up/Down: history  Ctrl+C twice: force quit  exit: quit"

_TERMINATED = object()


class ShellSession:
    """
    One interactive shell session.

    Owns the terminal surface between start() and release(), the input
    history, and the content-area scroll cursor.
    """

    def __init__(
        self,
        registry: ModuleRegistry,
        surface: Optional[TerminalSurface] = None,
        config: Optional[ShellConfig] = None,
        builtins: Optional[BuiltinTable] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize a session.

        Args:
            registry: Registry that module commands resolve against
            surface: Terminal surface (defaults to one on the current stdout)
            config: Shell configuration
            builtins: Built-in table (defaults to the standard built-ins)
            clock: Monotonic clock used for the force-exit window
        """
        self.registry = registry
        self.surface = surface or TerminalSurface()
        self.config = config or ShellConfig()
        self.builtins = builtins or build_builtin_table()
        self.clock = clock
        self.state = ShellState(history=CommandHistory(limit=self.config.history_limit))
        self.router = CommandRouter(registry, self.builtins)
        self.content = ContentArea(self.surface, batch=self.config.scroll_batch)
        self.context = ShellContext(self)
        self.exit_code = 0
        self.forced = False
        self._acquired = False
        self._terminated: Optional[asyncio.Event] = None

    @property
    def mode(self) -> ShellMode:
        return self.state.mode

    @property
    def theme(self) -> Theme:
        return get_theme(self.config.theme)

    @property
    def force_exit_armed(self) -> bool:
        deadline = self.state.force_exit_deadline
        return deadline is not None and self.clock() < deadline

    def apply_config(self) -> None:
        """Push config values that running components copied at startup."""
        self.content.batch = self.config.scroll_batch
        self.state.history.set_limit(self.config.history_limit)
        self.redraw_chrome()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Acquire the terminal and show the welcome banner."""
        self.surface.acquire()
        self._acquired = True
        self.state.mode = ShellMode.WELCOME
        self.render_welcome()

    def release(self) -> None:
        if self._acquired:
            self._acquired = False
            self.surface.release()

    def enter_prompt(self) -> None:
        self.state.mode = ShellMode.PROMPT
        self.surface.clear_screen()
        self.surface.show_cursor()
        self.redraw_chrome()
        self.content.reset()
        self.content.write_line(HELP_HINT, self.theme_role("muted"))
        self.render_prompt()

    def terminate(self, forced: bool = False, exit_code: Optional[int] = None) -> None:
        """
        Move to TERMINATED.

        A graceful exit returns 0; a forced exit returns 130 unless
        ``exit_code`` says otherwise. The terminal is released by run().
        """
        if self.state.mode is ShellMode.TERMINATED:
            return
        self.state.mode = ShellMode.TERMINATED
        self.forced = forced
        if exit_code is None:
            exit_code = FORCED_EXIT_CODE if forced else 0
        self.exit_code = exit_code
        logger.info("Shell session terminated (forced=%s, exit_code=%d)", forced, exit_code)
        if self._terminated is not None:
            self._terminated.set()

    def terminate_from_signal(self) -> None:
        self.terminate(forced=True, exit_code=SIGNAL_EXIT_CODE)

    async def run(self, key_source: KeySource) -> int:
        """
        Run the session until it terminates.

        Returns:
            Process exit code: 0 after a graceful exit, 130 after a forced
            double interrupt, 143 after SIGTERM/SIGHUP
        """
        self._terminated = asyncio.Event()
        try:
            self.start()
            key_source.start(self.interrupt, self.terminate_from_signal)
            while self.state.mode is not ShellMode.TERMINATED:
                event = await self._until_terminated(key_source.get())
                if event is _TERMINATED:
                    break
                await self._until_terminated(self.handle_key(event))
        finally:
            key_source.stop()
            self.release()
        return self.exit_code

    async def _until_terminated(self, awaitable: Awaitable[Any]) -> Any:
        """Await ``awaitable`` unless the session terminates first; then cancel it."""
        task = asyncio.ensure_future(awaitable)
        waiter = asyncio.ensure_future(self._terminated.wait())
        try:
            done, _ = await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            waiter.cancel()
        if task in done:
            return task.result()
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            logger.debug("Cancelled in-flight work on termination")
        return _TERMINATED

    # ------------------------------------------------------------------
    # Input
    # ------------------------------------------------------------------

    async def handle_key(self, event: KeyEvent) -> None:
        """Apply one key event to the state machine."""
        mode = self.state.mode
        if mode is ShellMode.TERMINATED:
            return
        if event.kind is KeyKind.INTERRUPT:
            self.interrupt()
            return
        if event.kind is KeyKind.EOF:
            self.terminate()
            return

        self._expire_force_exit()

        if mode is ShellMode.WELCOME:
            if event.kind not in CONTROL_KINDS:
                self.enter_prompt()
            return
        if mode is ShellMode.EXECUTING:
            return

        state = self.state
        kind = event.kind
        if kind is KeyKind.ENTER:
            line, state.buffer = state.buffer, ""
            await self.submit(line)
            return
        if kind is KeyKind.CHAR:
            state.buffer += event.char
        elif kind is KeyKind.BACKSPACE:
            state.buffer = state.buffer[:-1]
        elif kind is KeyKind.TAB:
            self.complete()
        elif kind is KeyKind.UP:
            entry = state.history.previous(state.buffer)
            if entry is not None:
                state.buffer = entry
        elif kind is KeyKind.DOWN:
            entry = state.history.next()
            if entry is not None:
                state.buffer = entry
        self.render_prompt()

    def interrupt(self) -> None:
        """
        Handle an interrupt in any live mode.

        The first interrupt arms the force-exit window; a second one inside
        the window forces termination.
        """
        if self.state.mode is ShellMode.TERMINATED:
            return
        if self.force_exit_armed:
            logger.info("Second interrupt inside force-exit window")
            self.terminate(forced=True)
            return
        self.state.force_exit_deadline = self.clock() + self.config.force_exit_window
        self._status_line(INTERRUPT_NOTICE, "warning")

    def _expire_force_exit(self) -> None:
        if self.state.force_exit_deadline is not None and not self.force_exit_armed:
            self.state.force_exit_deadline = None
            self._status_line("", None)

    def complete(self) -> None:
        candidates = self.router.complete(self.state.buffer)
        if not candidates:
            return
        self.state.buffer = apply_completion(self.state.buffer, candidates)
        if len(candidates) > 1:
            self.content.write_line("  ".join(candidates), self.theme_role("muted"))

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    async def submit(self, line: str) -> None:
        """Record ``line`` in history and execute it."""
        self.state.history.append(line)
        parsed = parse_line(line)
        if parsed is None:
            self.render_prompt()
            return

        self.state.mode = ShellMode.EXECUTING
        self.content.write_line(self.prompt_text() + line, self.theme_role("muted"))
        self.render_prompt()
        try:
            await self.execute(parsed)
        finally:
            if self.state.mode is ShellMode.EXECUTING:
                self.state.mode = ShellMode.PROMPT
                self.render_prompt()

    async def execute(self, parsed: ParsedCommand) -> None:
        """
        Resolve and run one command, rendering any failure inline.

        Raises:
            TerminalIOError: If the terminal itself fails
        """
        try:
            route = self.router.resolve(parsed)
        except NotFoundError as e:
            self.show_error(str(e), hint=True)
            return
        except UsageError as e:
            self.show_error(str(e))
            command = self._usage_for(parsed)
            if command:
                self.content.write_line(f"Usage: {command}", self.theme_role("muted"))
            return

        writer = ContentWriter(self.content)
        try:
            with redirect_stdout(writer):
                try:
                    await route.run(self.context)
                finally:
                    writer.finish()
        except TerminalIOError:
            raise
        except ShellError as e:
            logger.debug("Command '%s' failed", route.name, exc_info=True)
            self.show_error(str(e), hint=isinstance(e, NotFoundError))
        except Exception as e:
            error = HandlerError(
                message=str(e) or e.__class__.__name__,
                module=route.module_name,
                command_name=route.name,
            )
            logger.debug("Command '%s' raised", route.name, exc_info=True)
            self.show_error(str(error))

    def _usage_for(self, parsed: ParsedCommand) -> Optional[str]:
        module = self.registry.get(parsed.name)
        if module is None or not parsed.args:
            return None
        command = module.get_command(parsed.args[0])
        return command.usage if command else None

    def show_error(self, message: str, hint: bool = False) -> None:
        self.content.write_line(f"✗ Error: {message}", self.theme_role("error"))
        if hint:
            self.content.write_line(HELP_HINT, self.theme_role("muted"))

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def theme_role(self, role: str) -> Callable[[str], str]:
        theme = self.theme
        return lambda text: theme.paint(role, text)

    def prompt_text(self) -> str:
        return f"{self.config.prompt} $ "

    def render_welcome(self) -> None:
        columns, rows = self.surface.size()
        self.surface.clear_screen()
        self.surface.hide_cursor()
        statuses = self.registry.get_all_statuses()
        active = sum(1 for status in statuses.values() if status.is_active)
        lines = [
            f"{active}/{len(statuses)} modules active",
            "",
            "Press any key to continue",
            "Ctrl+C twice to quit",
        ]
        width = min(columns, 48)
        height = min(rows, len(lines) + 4)
        if width < 2 or height < 2:
            return
        inner = width - 4
        centered = [center_text(line, inner) for line in lines]
        x = max(1, (columns - width) // 2 + 1)
        y = max(1, (rows - height) // 2 + 1)
        draw_box(self.surface, x, y, width, height, centered, BorderStyle.ROUNDED, title=TITLE)

    def redraw_chrome(self) -> None:
        """Redraw the header and footer rows."""
        if self.state.mode in (ShellMode.WELCOME, ShellMode.TERMINATED):
            return
        columns, rows = self.surface.size()
        if columns < 2:
            return
        theme = self.theme
        border = [theme.paint("primary", row) for row in render_border(columns, 3, BorderStyle.ROUNDED, TITLE)]
        draw_rows(self.surface, border, 1, 1)

        statuses = self.registry.get_all_statuses()
        active = sum(1 for status in statuses.values() if status.is_active)
        left = f"Modules: {active}/{len(statuses)} active"
        right = f"Theme: {self.config.theme}"
        inner = columns - 4
        if inner > 0:
            self.surface.move_to(2, 3)
            self.surface.write(fit_line(left, inner))
            if len(left) + len(right) + 2 <= inner:
                self.surface.move_to(2, columns - 1 - len(right))
                self.surface.write(theme.paint("accent", right))

        self.surface.clear_line(4)
        self.surface.clear_line(rows)
        self.surface.write(theme.paint("muted", fit_line(FOOTER_HINT, columns)))

    def render_prompt(self) -> None:
        row = self.content.prompt_row
        self.surface.clear_line(row)
        if self.state.mode is not ShellMode.PROMPT:
            return
        columns, _ = self.surface.size()
        prompt = self.prompt_text()
        room = max(columns - len(prompt) - 1, 0)
        shown = self.state.buffer[-room:] if room else ""
        self.surface.write(self.theme.paint("primary", prompt) + shown)

    def _status_line(self, text: str, role: Optional[str]) -> None:
        columns, rows = self.surface.size()
        row = max(rows - 1, 1)
        self.surface.save_cursor()
        self.surface.clear_line(row)
        if text:
            fitted = fit_line(text, columns)
            self.surface.write(self.theme.paint(role, fitted) if role else fitted)
        self.surface.restore_cursor()
