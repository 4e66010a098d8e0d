"""Inline styling for text fragments the formatter never sees.

Table cells and link labels are rendered here: code spans, bold, italic and
``[label](url)`` links become SGR-styled text or OSC 8 hyperlinks.
"""

from __future__ import annotations

import re

from mdpager.styles import color_code
from mdpager.utils import RESET

LINK_RE = re.compile(r"\[([^\]]+)\]\(([^)]+)\)")

_CODE_RE = re.compile(r"`([^`]+)`")
_BOLD_RE = re.compile(r"\*\*([^*]+)\*\*")
_EM_RE = re.compile(r"\*([^*]+)\*")

# Private-use codepoints fence off spans that later passes must skip.
_SHIELD_OPEN = "\ue000"
_SHIELD_CLOSE = "\ue001"
_SHIELD_RE = re.compile(f"{_SHIELD_OPEN}(\\d+){_SHIELD_CLOSE}")

CODE_STYLE = color_code("147") + color_code("236", background=True)
BOLD_STYLE = "\x1b[1m"
EM_STYLE = "\x1b[3m"
LINK_TEXT_STYLE = color_code("87") + "\x1b[1m\x1b[4m"

OSC8_OPEN = "\x1b]8;;{url}\x1b\\"
OSC8_CLOSE = "\x1b]8;;\x1b\\"


def _wrap(on: str, text: str) -> str:
    return f"{on}{text}{RESET}"


def annotate_link(label: str, url: str) -> str:
    """Return *label* as an OSC 8 hyperlink to *url*.

    The label goes through :func:`style_inline` first and the link style is
    switched back on after every reset it contains, so nested bold or code
    spans keep the link colour around them.
    """
    styled = style_inline(label).replace(RESET, RESET + LINK_TEXT_STYLE)
    return OSC8_OPEN.format(url=url) + _wrap(LINK_TEXT_STYLE, styled) + OSC8_CLOSE


def style_inline(text: str) -> str:
    """Render code spans, links, bold and italic inside *text*.

    Code spans are rendered first and shielded, so markup inside them stays
    literal.  Bold runs before italic so ``**`` is not read as two ``*``.
    """
    shielded: list[str] = []

    def shield(rendered: str) -> str:
        shielded.append(rendered)
        return f"{_SHIELD_OPEN}{len(shielded) - 1}{_SHIELD_CLOSE}"

    text = _CODE_RE.sub(lambda m: shield(_wrap(CODE_STYLE, m.group(1))), text)
    text = LINK_RE.sub(lambda m: shield(annotate_link(m.group(1), m.group(2))), text)
    text = _BOLD_RE.sub(lambda m: _wrap(BOLD_STYLE, m.group(1)), text)
    text = _EM_RE.sub(lambda m: _wrap(EM_STYLE, m.group(1)), text)

    def unshield(m: re.Match[str]) -> str:
        index = int(m.group(1))
        return shielded[index] if index < len(shielded) else m.group(0)

    return _SHIELD_RE.sub(unshield, text)
