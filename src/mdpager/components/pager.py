"""Scrollable pager over a rendered document.

The pager starts uninitialized and becomes ready on the first
:class:`~mdpager.tui.SizeEvent`.  Later size events only resize the viewport;
the rendered text is never re-wrapped.
"""

from __future__ import annotations

import enum
import logging
import os
from dataclasses import dataclass
from typing import TYPE_CHECKING

from mdpager.styles import color_code
from mdpager.tui import Command, Event, KeyEvent, SizeEvent
from mdpager.utils import RESET, truncate_to_width

if TYPE_CHECKING:
    from mdpager.render.pipeline import RenderedDocument

logger = logging.getLogger(__name__)

TITLE_STYLE = "\x1b[1m" + color_code("205")
DIVIDER_STYLE = color_code("238")
FOOTER_STYLE = color_code("241")

FOOTER_HELP = "  ↑/↓ j/k  •  l/p page up/down  •  f/b scroll full page  •  g/G top/bottom  •  q/esc quit  •  {percent}%"

QUIT_KEYS = frozenset({"q", "Q", "escape", "ctrl+c"})


@dataclass
class ViewportState:
    """Visible window into the rendered lines."""

    offset: int = 0
    height: int = 0
    width: int = 0
    total_lines: int = 0

    @property
    def max_offset(self) -> int:
        return max(0, self.total_lines - self.height)

    def clamp(self) -> None:
        self.offset = min(max(self.offset, 0), self.max_offset)

    def scroll_percent(self) -> float:
        if self.height >= self.total_lines:
            return 1.0
        return min(max(self.offset / (self.total_lines - self.height), 0.0), 1.0)


class PagerState(enum.Enum):
    UNINITIALIZED = "uninitialized"
    READY = "ready"


class Pager:
    """Pages through an immutable :class:`RenderedDocument`."""

    def __init__(
        self,
        document: RenderedDocument,
        filename: str,
        *,
        page_lines: int = 15,
        header_height: int = 2,
        footer_height: int = 2,
    ) -> None:
        self.document = document
        self.filename = filename
        self.page_lines = page_lines
        self.header_height = header_height
        self.footer_height = footer_height
        self.state = PagerState.UNINITIALIZED
        self.viewport = ViewportState(total_lines=len(document.lines))
        self._bindings = {
            "g": self.goto_top,
            "G": self.goto_bottom,
            "l": lambda: self.line_down(self.page_lines),
            "p": lambda: self.line_up(self.page_lines),
            "down": lambda: self.line_down(1),
            "j": lambda: self.line_down(1),
            "up": lambda: self.line_up(1),
            "k": lambda: self.line_up(1),
            "pageDown": self.page_down,
            "space": self.page_down,
            "f": self.page_down,
            "pageUp": self.page_up,
            "b": self.page_up,
            "d": self.half_page_down,
            "ctrl+d": self.half_page_down,
            "u": self.half_page_up,
            "ctrl+u": self.half_page_up,
        }

    @property
    def ready(self) -> bool:
        return self.state is PagerState.READY

    # -- update -------------------------------------------------------------

    def update(self, event: Event) -> Command | None:
        if isinstance(event, SizeEvent):
            self._resize(event.width, event.height)
            return None

        if isinstance(event, KeyEvent):
            if event.key in QUIT_KEYS:
                return Command.QUIT
            action = self._bindings.get(event.key)
            if action is not None and self.ready:
                action()
        return None

    def _resize(self, width: int, height: int) -> None:
        vp = self.viewport
        vp.width = width
        vp.height = max(0, height - self.header_height - self.footer_height)
        if not self.ready:
            self.state = PagerState.READY
            logger.debug("pager ready at %dx%d", width, height)
        vp.clamp()

    # -- navigation ---------------------------------------------------------

    def set_offset(self, offset: int) -> None:
        self.viewport.offset = offset
        self.viewport.clamp()

    def goto_top(self) -> None:
        self.set_offset(0)

    def goto_bottom(self) -> None:
        self.set_offset(self.viewport.max_offset)

    def line_down(self, n: int = 1) -> None:
        self.set_offset(self.viewport.offset + n)

    def line_up(self, n: int = 1) -> None:
        self.set_offset(self.viewport.offset - n)

    def page_down(self) -> None:
        self.line_down(self.viewport.height)

    def page_up(self) -> None:
        self.line_up(self.viewport.height)

    def half_page_down(self) -> None:
        self.line_down(self.viewport.height // 2)

    def half_page_up(self) -> None:
        self.line_up(self.viewport.height // 2)

    # -- view ---------------------------------------------------------------

    def visible_lines(self) -> list[str]:
        vp = self.viewport
        window = self.document.lines[vp.offset : vp.offset + vp.height]
        lines = [truncate_to_width(line, vp.width) for line in window]
        return lines + [""] * (vp.height - len(lines))

    def view(self) -> list[str]:
        if not self.ready:
            return ["", "  Rendering..."]

        vp = self.viewport
        title = f"{TITLE_STYLE} {os.path.basename(self.filename)} {RESET}"
        divider = f"{DIVIDER_STYLE}{'─' * vp.width}{RESET}"
        percent = int(vp.scroll_percent() * 100)
        footer = f"{FOOTER_STYLE}{FOOTER_HELP.format(percent=percent)}{RESET}"
        return [title, divider, *self.visible_lines(), footer]
