"""Code panel renderer.

A fenced block is formatted on its own, then every line is given the same
background and padded to a common width so the block reads as one solid
rectangle.  Highlighters reset colours per token, which would punch holes in
the background, so the background is switched back on after each reset.
"""

from __future__ import annotations

import logging
import re
from typing import Callable

from mdpager.errors import FormatterError
from mdpager.styles import MarkdownStyle
from mdpager.utils import RESET, SGR_RE, pad_to_width, visible_width

logger = logging.getLogger(__name__)

Formatter = Callable[[MarkdownStyle, int, str], str]

PANEL_BACKGROUND = "\x1b[48;5;235m"

_TRAILING_PADDING_RE = re.compile(r"(\x1b\[[0-9;]*m| )*$")
_TILDE_RUN_RE = re.compile(r"~{3,}")

# SGR parameters that leave the background at its default.
_BACKGROUND_CLEARING = {"", "0", "00", "49"}

# Extended colour introducers and the argument counts of their 5/2 forms.
_EXTENDED_COLOUR = {"38", "48", "58"}
_EXTENDED_ARGS = {"5": 2, "2": 4}


def _clears_background(params: str) -> bool:
    parts = params.split(";")
    i = 0
    while i < len(parts):
        part = parts[i]
        if part in _EXTENDED_COLOUR:
            # Skip the colour arguments, whose values are never parameters.
            mode = parts[i + 1] if i + 1 < len(parts) else ""
            i += 1 + _EXTENDED_ARGS.get(mode, 0)
            continue
        if part in _BACKGROUND_CLEARING:
            return True
        i += 1
    return False


def reinject_background(line: str, background: str = PANEL_BACKGROUND) -> str:
    """Switch *background* back on after every SGR in *line* that clears it."""

    def repl(m: re.Match[str]) -> str:
        if _clears_background(m.group(1)):
            return m.group(0) + background
        return m.group(0)

    return SGR_RE.sub(repl, line)


def pad_with_background(line: str, width: int, background: str = PANEL_BACKGROUND) -> str:
    """Paint *line* on *background*, right-padded with spaces to *width*."""
    return f"{background}{pad_to_width(reinject_background(line, background), width)}{RESET}"


def panel_width(code: str, indent: int) -> int:
    return max(visible_width(line.replace("\t", "   ")) for line in code.split("\n")) + indent


def fence_for(code: str) -> str:
    """Return a tilde fence longer than any tilde run in *code*."""
    longest = max((len(run) for run in _TILDE_RUN_RE.findall(code)), default=0)
    return "~" * max(3, longest + 1)


def _trim_blank(lines: list[str]) -> list[str]:
    start, end = 0, len(lines)
    while start < end and not lines[start].strip():
        start += 1
    while end > start and not lines[end - 1].strip():
        end -= 1
    return lines[start:end]


def render_code_block(
    lang: str,
    code: str,
    width: int,
    style: MarkdownStyle,
    formatter: Formatter,
    *,
    raw: str | None = None,
) -> str:
    """Render one fenced block as a background panel.

    The panel is framed by one blank line above and below.  If *formatter*
    fails, *raw* (the block exactly as written in the document) is returned
    with a trailing newline.
    """
    fence = fence_for(code)
    try:
        rendered = formatter(style, width, f"{fence}{lang}\n{code}\n{fence}\n")
    except FormatterError as e:
        logger.info("code block (%s) left unrendered: %s", lang or "plain", e)
        if raw is None:
            raw = f"```{lang}\n{code}\n```"
        return raw + "\n"

    lines = _trim_blank(rendered.rstrip("\n").split("\n"))
    target = panel_width(code, style.code_indent)

    body = "".join(
        pad_with_background(_TRAILING_PADDING_RE.sub("", line), target) + "\n" for line in lines
    )
    return f"\n{body}\n"
