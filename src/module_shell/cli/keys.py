"""
Key input for the interactive shell.

Decodes raw terminal bytes into key events and delivers them to the session,
either from a terminal file descriptor via the asyncio event loop or from an
in-memory queue.
"""

import asyncio
import codecs
import logging
import os
import signal
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable, List, Optional

logger = logging.getLogger(__name__)


class KeyKind(str, Enum):
    CHAR = "char"
    ENTER = "enter"
    BACKSPACE = "backspace"
    TAB = "tab"
    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"
    ESCAPE = "escape"
    INTERRUPT = "interrupt"
    EOF = "eof"


# Keys that never count as "any key" on the welcome screen.
CONTROL_KINDS = frozenset(
    {
        KeyKind.ESCAPE,
        KeyKind.UP,
        KeyKind.DOWN,
        KeyKind.LEFT,
        KeyKind.RIGHT,
        KeyKind.INTERRUPT,
        KeyKind.EOF,
    }
)


@dataclass(frozen=True)
class KeyEvent:
    kind: KeyKind
    char: str = ""

    @classmethod
    def text(cls, text: str) -> List["KeyEvent"]:
        """One CHAR event per character of ``text``."""
        return [cls(KeyKind.CHAR, ch) for ch in text]


ENTER = KeyEvent(KeyKind.ENTER)
BACKSPACE = KeyEvent(KeyKind.BACKSPACE)
TAB = KeyEvent(KeyKind.TAB)
UP = KeyEvent(KeyKind.UP)
DOWN = KeyEvent(KeyKind.DOWN)
ESCAPE = KeyEvent(KeyKind.ESCAPE)
INTERRUPT = KeyEvent(KeyKind.INTERRUPT)
EOF = KeyEvent(KeyKind.EOF)

_ARROWS = {"A": KeyKind.UP, "B": KeyKind.DOWN, "C": KeyKind.RIGHT, "D": KeyKind.LEFT}
_SINGLE = {
    "\r": KeyKind.ENTER,
    "\n": KeyKind.ENTER,
    "\t": KeyKind.TAB,
    "\x7f": KeyKind.BACKSPACE,
    "\x08": KeyKind.BACKSPACE,
    "\x03": KeyKind.INTERRUPT,
    "\x04": KeyKind.EOF,
}


class KeyDecoder:
    """Incremental decoder from terminal input bytes to key events."""

    def __init__(self):
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._pending = ""
        self._after_cr = False

    def feed(self, data: bytes) -> List[KeyEvent]:
        text = self._pending + self._decoder.decode(data)
        self._pending = ""
        events: List[KeyEvent] = []
        i = 0
        while i < len(text):
            ch = text[i]
            if ch == "\n" and self._after_cr:
                self._after_cr = False
                i += 1
                continue
            self._after_cr = ch == "\r"

            if ch == "\x1b":
                consumed = self._escape(text, i, events)
                if consumed == 0:
                    self._pending = text[i:]
                    break
                i += consumed
                continue

            kind = _SINGLE.get(ch)
            if kind is not None:
                events.append(KeyEvent(kind))
            elif ch >= " ":
                events.append(KeyEvent(KeyKind.CHAR, ch))
            i += 1
        return events

    @staticmethod
    def _escape(text: str, start: int, events: List[KeyEvent]) -> int:
        """Decode an escape sequence at ``start``; 0 means incomplete."""
        if start + 1 >= len(text):
            # A lone ESC at the end of a read is the Escape key.
            events.append(ESCAPE)
            return 1
        intro = text[start + 1]
        if intro not in "[O":
            events.append(ESCAPE)
            return 1
        end = start + 2
        while end < len(text) and not ("\x40" <= text[end] <= "\x7e"):
            end += 1
        if end >= len(text):
            return 0
        final = text[end]
        if final in _ARROWS:
            events.append(KeyEvent(_ARROWS[final]))
        else:
            logger.debug("Ignoring escape sequence %r", text[start : end + 1])
        return end + 1 - start


class KeySource:
    """Source of key events for a shell session."""

    def start(self, on_interrupt: Callable[[], None], on_terminate: Callable[[], None]) -> None:
        """Begin delivering keys; interrupts may be delivered out of band."""

    def stop(self) -> None:
        """Stop delivering keys and remove any handlers."""

    async def get(self) -> KeyEvent:
        raise NotImplementedError


class QueueKeySource(KeySource):
    """In-memory key source for scripted sessions."""

    def __init__(self, events: Optional[Iterable[KeyEvent]] = None):
        self._queue: "asyncio.Queue[KeyEvent]" = asyncio.Queue()
        for event in events or ():
            self._queue.put_nowait(event)

    def push(self, *events: KeyEvent) -> None:
        for event in events:
            self._queue.put_nowait(event)

    async def get(self) -> KeyEvent:
        return await self._queue.get()


class TerminalKeySource(KeySource):
    """
    Reads keys from a terminal file descriptor with ``loop.add_reader``.

    SIGINT (Ctrl+C while ISIG is on) and a raw ``\\x03`` byte both go straight
    to ``on_interrupt`` so interrupts reach the session while a handler runs.
    SIGTERM and SIGHUP go to ``on_terminate``.
    """

    def __init__(self, fd: int, read_size: int = 1024):
        self.fd = fd
        self.read_size = read_size
        self._decoder = KeyDecoder()
        self._queue: "asyncio.Queue[KeyEvent]" = asyncio.Queue()
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._on_interrupt: Callable[[], None] = lambda: None
        self._signals: List[int] = []
        self._reading = False

    def start(self, on_interrupt: Callable[[], None], on_terminate: Callable[[], None]) -> None:
        self._loop = asyncio.get_running_loop()
        self._on_interrupt = on_interrupt
        self._loop.add_reader(self.fd, self._on_readable)
        self._reading = True
        for signum, callback in (
            (signal.SIGINT, on_interrupt),
            (signal.SIGTERM, on_terminate),
            (signal.SIGHUP, on_terminate),
        ):
            try:
                self._loop.add_signal_handler(signum, callback)
                self._signals.append(signum)
            except (NotImplementedError, RuntimeError, ValueError) as e:
                logger.debug("Cannot install handler for signal %s: %s", signum, e)

    def stop(self) -> None:
        if self._loop is None:
            return
        self._stop_reading()
        for signum in self._signals:
            self._loop.remove_signal_handler(signum)
        self._signals = []

    def _stop_reading(self) -> None:
        if self._reading and self._loop is not None:
            self._loop.remove_reader(self.fd)
            self._reading = False

    def _on_readable(self) -> None:
        try:
            data = os.read(self.fd, self.read_size)
        except OSError as e:
            logger.debug("Key read failed: %s", e)
            data = b""
        if not data:
            self._stop_reading()
            self._queue.put_nowait(EOF)
            return
        for event in self._decoder.feed(data):
            if event.kind is KeyKind.INTERRUPT:
                self._on_interrupt()
            else:
                self._queue.put_nowait(event)

    async def get(self) -> KeyEvent:
        return await self._queue.get()
