"""Terminal abstraction for raw-mode stdin/stdout interaction.

Provides a ``Terminal`` protocol and a concrete ``ProcessTerminal``
implementation that manages raw mode, the alternate screen, cursor
visibility and SIGWINCH-based resize detection via ANSI escape sequences.
"""

from __future__ import annotations

import asyncio
import logging
import os
import signal
import sys
import termios
import tty
from typing import Callable, Protocol

from mdpager.config import FALLBACK_COLUMNS, FALLBACK_ROWS
from mdpager.errors import RunLoopError

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# ANSI escape constants
# ---------------------------------------------------------------------------

_ALT_SCREEN_ENABLE = "\x1b[?1049h"
_ALT_SCREEN_DISABLE = "\x1b[?1049l"
_HIDE_CURSOR = "\x1b[?25l"
_SHOW_CURSOR = "\x1b[?25h"
_CLEAR_SCREEN = "\x1b[2J\x1b[H"


def terminal_size() -> tuple[int, int]:
    """Return ``(columns, rows)`` of stdout, or 80x24 when it is not a tty."""
    try:
        size = os.get_terminal_size(sys.stdout.fileno())
    except (ValueError, OSError):
        return FALLBACK_COLUMNS, FALLBACK_ROWS
    return size.columns or FALLBACK_COLUMNS, size.lines or FALLBACK_ROWS


# ---------------------------------------------------------------------------
# Terminal protocol
# ---------------------------------------------------------------------------


class Terminal(Protocol):
    """Interface for terminal I/O operations."""

    def start(
        self,
        on_input: Callable[[str], None],
        on_resize: Callable[[], None],
    ) -> None: ...

    def stop(self) -> None: ...

    def write(self, data: str) -> None: ...

    @property
    def columns(self) -> int: ...

    @property
    def rows(self) -> int: ...

    def hide_cursor(self) -> None: ...

    def show_cursor(self) -> None: ...

    def clear_screen(self) -> None: ...

    def enter_alt_screen(self) -> None: ...

    def exit_alt_screen(self) -> None: ...


# ---------------------------------------------------------------------------
# ProcessTerminal implementation
# ---------------------------------------------------------------------------


class ProcessTerminal:
    """Concrete terminal implementation backed by ``sys.stdin``/``sys.stdout``.

    Manages raw mode via :mod:`tty` and :mod:`termios` and forwards SIGWINCH
    into the running event loop.  Must be started from inside that loop.
    """

    def __init__(self) -> None:
        self._input_handler: Callable[[str], None] | None = None
        self._resize_handler: Callable[[], None] | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._stdin_reader_active: bool = False
        self._original_termios: list | None = None
        self._prev_sigwinch_handler: signal.Handlers | None = None

    # -- properties ---------------------------------------------------------

    @property
    def columns(self) -> int:
        return terminal_size()[0]

    @property
    def rows(self) -> int:
        return terminal_size()[1]

    # -- start / stop -------------------------------------------------------

    def start(
        self,
        on_input: Callable[[str], None],
        on_resize: Callable[[], None],
    ) -> None:
        """Enable raw mode and begin reading stdin."""
        self._input_handler = on_input
        self._resize_handler = on_resize
        self._loop = asyncio.get_running_loop()

        try:
            fd = sys.stdin.fileno()
            self._original_termios = termios.tcgetattr(fd)
        except (OSError, termios.error) as e:
            raise RunLoopError(f"stdin is not a terminal: {e}") from e
        tty.setraw(fd)

        self._prev_sigwinch_handler = signal.getsignal(signal.SIGWINCH)
        signal.signal(signal.SIGWINCH, self._on_sigwinch)

        self._loop.add_reader(fd, self._on_stdin_readable)
        self._stdin_reader_active = True

    def stop(self) -> None:
        """Restore terminal state and clean up all handlers."""
        fd = sys.stdin.fileno()

        if self._stdin_reader_active and self._loop is not None:
            self._loop.remove_reader(fd)
            self._stdin_reader_active = False

        if self._prev_sigwinch_handler is not None:
            signal.signal(signal.SIGWINCH, self._prev_sigwinch_handler)
            self._prev_sigwinch_handler = None

        if self._original_termios is not None:
            termios.tcsetattr(fd, termios.TCSADRAIN, self._original_termios)
            self._original_termios = None

        self._input_handler = None
        self._resize_handler = None
        self._loop = None

    # -- write --------------------------------------------------------------

    def write(self, data: str) -> None:
        """Write directly to stdout, bypassing buffering."""
        sys.stdout.write(data)
        sys.stdout.flush()

    # -- cursor / screen manipulation --------------------------------------

    def hide_cursor(self) -> None:
        self.write(_HIDE_CURSOR)

    def show_cursor(self) -> None:
        self.write(_SHOW_CURSOR)

    def clear_screen(self) -> None:
        self.write(_CLEAR_SCREEN)

    def enter_alt_screen(self) -> None:
        self.write(_ALT_SCREEN_ENABLE)

    def exit_alt_screen(self) -> None:
        self.write(_ALT_SCREEN_DISABLE)

    # -- private: stdin reading --------------------------------------------

    def _on_stdin_readable(self) -> None:
        """Callback invoked by the event loop when stdin has data."""
        try:
            raw = os.read(sys.stdin.fileno(), 4096)
        except BlockingIOError:
            return

        if not raw:
            logger.debug("stdin closed")
            if self._loop is not None:
                self._loop.remove_reader(sys.stdin.fileno())
            self._stdin_reader_active = False
            return

        if self._input_handler is not None:
            self._input_handler(raw.decode("utf-8", errors="replace"))

    # -- private: SIGWINCH -------------------------------------------------

    def _on_sigwinch(self, signum: int, frame: object) -> None:
        """Hand the resize over to the event loop thread."""
        if self._loop is not None and self._resize_handler is not None:
            self._loop.call_soon_threadsafe(self._resize_handler)
