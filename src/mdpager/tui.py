"""Event loop and differential renderer for full-screen models.

An :class:`App` owns a :class:`~mdpager.terminal.Terminal` and a model.
Terminal input is decoded into :class:`KeyEvent` objects, resizes become
:class:`SizeEvent` objects, and both are handed to ``model.update`` one at a
time.  After every event the model's view is drawn on the alternate screen,
rewriting only the rows that changed since the previous frame.
"""

from __future__ import annotations

import asyncio
import enum
import logging
from dataclasses import dataclass
from typing import Protocol, Union

from mdpager.errors import RunLoopError
from mdpager.keys import KeyId, parse_key, split_keys
from mdpager.terminal import Terminal

logger = logging.getLogger(__name__)

_CLEAR_TO_EOL = "\x1b[K"


@dataclass(frozen=True)
class SizeEvent:
    width: int
    height: int


@dataclass(frozen=True)
class KeyEvent:
    key: KeyId


Event = Union[SizeEvent, KeyEvent]


class Command(enum.Enum):
    QUIT = "quit"


class Model(Protocol):
    def update(self, event: Event) -> Command | None: ...

    def view(self) -> list[str]: ...


class App:
    """Runs *model* on *terminal* until the model asks to quit.

    Exceptions raised while the model handles an event stop the loop and
    are re-raised from :meth:`run` as :class:`RunLoopError`.
    """

    def __init__(self, terminal: Terminal, model: Model) -> None:
        self.terminal = terminal
        self.model = model

        # Previous render state (for differential updates)
        self._previous_lines: list[str] = []
        self._previous_width: int = 0
        self._full_redraw_count: int = 0

        self._done: asyncio.Future[None] | None = None
        self._error: BaseException | None = None
        self._stopped: bool = True

    @property
    def full_redraws(self) -> int:
        return self._full_redraw_count

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Take over the terminal and announce its size to the model."""
        self.terminal.start(self.handle_input, self.handle_resize)
        self._stopped = False
        self.terminal.enter_alt_screen()
        self.terminal.hide_cursor()
        self.terminal.clear_screen()
        self.dispatch(SizeEvent(self.terminal.columns, self.terminal.rows))

    async def run(self) -> None:
        """Start the app and wait until it stops."""
        self._done = asyncio.get_running_loop().create_future()
        self._error = None
        try:
            self.start()
            await self._done
        finally:
            self.stop()
        if self._error is not None:
            raise RunLoopError(str(self._error) or type(self._error).__name__) from self._error

    def stop(self) -> None:
        """Give the terminal back and wake up :meth:`run`."""
        if not self._stopped:
            self._stopped = True
            self.terminal.show_cursor()
            self.terminal.exit_alt_screen()
            self.terminal.stop()
        if self._done is not None and not self._done.done():
            self._done.set_result(None)

    # ------------------------------------------------------------------
    # Event dispatch
    # ------------------------------------------------------------------

    def handle_input(self, data: str) -> None:
        """Decode raw terminal input and dispatch each key."""
        for sequence in split_keys(data):
            if self._stopped:
                return
            key = parse_key(sequence)
            if key is None:
                logger.debug("ignoring unknown input %r", sequence)
                continue
            self.dispatch(KeyEvent(key))

    def handle_resize(self) -> None:
        if self._stopped:
            return
        self.dispatch(SizeEvent(self.terminal.columns, self.terminal.rows))

    def dispatch(self, event: Event) -> None:
        """Feed *event* to the model, then redraw or stop."""
        try:
            command = self.model.update(event)
            if command is Command.QUIT:
                self.stop()
                return
            self.do_render()
        except Exception as e:
            logger.exception("event loop failed while handling %r", event)
            self._error = e
            self.stop()

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def do_render(self) -> None:
        """Draw the model's view, rewriting only changed rows.

        A width change forces a full redraw.
        """
        if self._stopped:
            return

        width = self.terminal.columns
        height = self.terminal.rows
        lines = self.model.view()[:height]

        force_full = width != self._previous_width
        out: list[str] = []

        if force_full:
            self._full_redraw_count += 1
            out.append("\x1b[2J")
            previous: list[str] = []
        else:
            previous = self._previous_lines

        for row in range(max(len(lines), len(previous))):
            new_line = lines[row] if row < len(lines) else ""
            old_line = previous[row] if row < len(previous) else None
            if new_line == old_line:
                continue
            out.append(f"\x1b[{row + 1};1H{new_line}{_CLEAR_TO_EOL}")

        self._previous_lines = lines
        self._previous_width = width

        if out:
            self.terminal.write("".join(out))
