"""Terminal input for the dashboard.

Stdin is switched to a non-canonical, non-echoing mode with signal keys
disabled, so Ctrl-C arrives as a key press and the control loop decides
what it means. The original settings are restored on exit.
"""

import asyncio
import codecs
import logging
import os
import signal
import sys
import termios
from typing import Any, TextIO

from snapmixer.ui.keys import ESC, InputEvent, Resize, decode_keys

logger = logging.getLogger(__name__)

_READ_SIZE = 1024

# How long a lone escape waits for the rest of a sequence before it is Esc
ESCAPE_DELAY = 0.1


class TerminalInput:
    """Async iterator of key presses and resize events from a TTY.

    Example:
        async with TerminalInput() as events:
            async for event in events:
                print(event)
    """

    def __init__(self, stream: TextIO = sys.stdin) -> None:
        """Initialize for the given input stream (must be a TTY)."""
        self._fd = stream.fileno()
        self._queue: asyncio.Queue[InputEvent | None] = asyncio.Queue()
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._saved: list[Any] | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._pending = ""
        self._escape_timer: asyncio.TimerHandle | None = None

    async def __aenter__(self) -> "TerminalInput":
        """Enter key-at-a-time mode and start watching stdin."""
        self._saved = termios.tcgetattr(self._fd)
        attrs = termios.tcgetattr(self._fd)
        attrs[3] &= ~(termios.ECHO | termios.ICANON | termios.ISIG | termios.IEXTEN)
        attrs[6][termios.VMIN] = 1
        attrs[6][termios.VTIME] = 0
        termios.tcsetattr(self._fd, termios.TCSAFLUSH, attrs)

        self._loop = asyncio.get_running_loop()
        self._loop.add_reader(self._fd, self._on_readable)
        self._loop.add_signal_handler(signal.SIGWINCH, self._queue.put_nowait, Resize())
        return self

    async def __aexit__(self, *args: Any) -> None:
        """Stop watching stdin and restore the terminal settings."""
        self._cancel_escape_timer()
        if self._loop is not None:
            self._loop.remove_reader(self._fd)
            self._loop.remove_signal_handler(signal.SIGWINCH)
            self._loop = None
        if self._saved is not None:
            try:
                termios.tcsetattr(self._fd, termios.TCSADRAIN, self._saved)
            except termios.error as e:
                # Terminal already hung up; nothing left to restore
                logger.debug("Could not restore terminal settings: %s", e)
            self._saved = None

    def __aiter__(self) -> "TerminalInput":
        return self

    async def __anext__(self) -> InputEvent:
        event = await self._queue.get()
        if event is None:
            raise StopAsyncIteration
        return event

    def _on_readable(self) -> None:
        self._cancel_escape_timer()
        try:
            data = os.read(self._fd, _READ_SIZE)
        except OSError as e:
            logger.warning("Reading from terminal failed: %s", e)
            data = b""
        if not data:
            # EOF: end the stream and stop polling a closed descriptor
            if self._loop is not None:
                self._loop.remove_reader(self._fd)
            self._pending = ""
            self._queue.put_nowait(None)
            return

        keys, self._pending = decode_keys(self._pending + self._decoder.decode(data))
        for key in keys:
            self._queue.put_nowait(key)
        if self._pending == ESC and self._loop is not None:
            self._escape_timer = self._loop.call_later(ESCAPE_DELAY, self._flush_escape)

    def _flush_escape(self) -> None:
        """Nothing followed a lone escape in time: it was the Esc key."""
        self._escape_timer = None
        keys, self._pending = decode_keys(self._pending, final=True)
        for key in keys:
            self._queue.put_nowait(key)

    def _cancel_escape_timer(self) -> None:
        if self._escape_timer is not None:
            self._escape_timer.cancel()
            self._escape_timer = None
