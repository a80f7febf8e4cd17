"""
Tests for key decoding and key sources.
"""

import asyncio
import os
from unittest.mock import MagicMock

from module_shell.cli.keys import (
    EOF,
    KeyDecoder,
    KeyEvent,
    KeyKind,
    QueueKeySource,
    TerminalKeySource,
)


def kinds(events):
    return [event.kind for event in events]


class TestKeyDecoder:
    """Tests for KeyDecoder.feed()."""

    def test_printable_characters(self):
        events = KeyDecoder().feed(b"ab c")
        assert events == KeyEvent.text("ab c")

    def test_enter_variants(self):
        decoder = KeyDecoder()
        assert kinds(decoder.feed(b"\r")) == [KeyKind.ENTER]
        assert kinds(decoder.feed(b"\n")) == []
        assert kinds(decoder.feed(b"\n")) == [KeyKind.ENTER]
        assert kinds(decoder.feed(b"x\r\ny")) == [KeyKind.CHAR, KeyKind.ENTER, KeyKind.CHAR]

    def test_control_keys(self):
        events = KeyDecoder().feed(b"\t\x7f\x08\x03\x04")
        assert kinds(events) == [
            KeyKind.TAB,
            KeyKind.BACKSPACE,
            KeyKind.BACKSPACE,
            KeyKind.INTERRUPT,
            KeyKind.EOF,
        ]

    def test_arrow_sequences(self):
        events = KeyDecoder().feed(b"\x1b[A\x1b[B\x1bOC\x1b[D")
        assert kinds(events) == [KeyKind.UP, KeyKind.DOWN, KeyKind.RIGHT, KeyKind.LEFT]

    def test_lone_escape(self):
        assert kinds(KeyDecoder().feed(b"\x1b")) == [KeyKind.ESCAPE]

    def test_escape_followed_by_char(self):
        assert kinds(KeyDecoder().feed(b"\x1bx")) == [KeyKind.ESCAPE, KeyKind.CHAR]

    def test_other_csi_sequences_are_ignored(self):
        assert KeyDecoder().feed(b"\x1b[3~\x1b[2~z") == [KeyEvent(KeyKind.CHAR, "z")]

    def test_sequence_split_across_reads(self):
        decoder = KeyDecoder()
        assert decoder.feed(b"\x1b[") == []
        assert kinds(decoder.feed(b"A")) == [KeyKind.UP]

    def test_utf8_split_across_reads(self):
        decoder = KeyDecoder()
        data = "é".encode("utf-8")
        assert decoder.feed(data[:1]) == []
        assert decoder.feed(data[1:]) == [KeyEvent(KeyKind.CHAR, "é")]

    def test_other_control_bytes_dropped(self):
        assert KeyDecoder().feed(b"\x01\x02a") == [KeyEvent(KeyKind.CHAR, "a")]


class TestQueueKeySource:
    """Tests for the in-memory key source."""

    def test_preserves_order(self):
        async def scenario():
            source = QueueKeySource(KeyEvent.text("hi"))
            source.push(EOF)
            return [await source.get() for _ in range(3)]

        events = asyncio.run(scenario())
        assert kinds(events) == [KeyKind.CHAR, KeyKind.CHAR, KeyKind.EOF]


class TestTerminalKeySource:
    """Tests for the file-descriptor key source."""

    def test_reads_keys_from_pipe(self):
        async def scenario():
            read_fd, write_fd = os.pipe()
            source = TerminalKeySource(read_fd)
            on_interrupt = MagicMock()
            try:
                source.start(on_interrupt, MagicMock())
                os.write(write_fd, b"ok\x03\r")
                events = [await asyncio.wait_for(source.get(), 2) for _ in range(3)]
                os.close(write_fd)
                events.append(await asyncio.wait_for(source.get(), 2))
            finally:
                source.stop()
                os.close(read_fd)
            return events, on_interrupt

        events, on_interrupt = asyncio.run(scenario())
        assert kinds(events) == [KeyKind.CHAR, KeyKind.CHAR, KeyKind.ENTER, KeyKind.EOF]
        on_interrupt.assert_called_once()
