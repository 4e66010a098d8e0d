"""Syntax highlighting for code blocks via Pygments."""

from __future__ import annotations

import logging
from functools import lru_cache

from pygments import highlight
from pygments.formatters import Terminal256Formatter
from pygments.lexer import Lexer
from pygments.lexers import TextLexer, get_lexer_by_name
from pygments.style import Style
from pygments.util import ClassNotFound

logger = logging.getLogger(__name__)


@lru_cache(maxsize=64)
def _lexer_for(lang: str) -> Lexer:
    # Leading/trailing blank lines belong to the code and must survive.
    try:
        return get_lexer_by_name(lang, stripnl=False, ensurenl=False)
    except ClassNotFound:
        logger.debug("no lexer for %r, highlighting as plain text", lang)
        return TextLexer(stripnl=False, ensurenl=False)


def highlight_code(code: str, lang: str, theme: type[Style]) -> str:
    """Colour *code* as *lang* with the 256-colour terminal formatter.

    The result has exactly as many lines as *code*; every escape sequence
    opened on a line is closed on the same line.
    """
    lexer = _lexer_for(lang.strip().lower())
    highlighted = highlight(code, lexer, Terminal256Formatter(style=theme))
    if highlighted.endswith("\n") and not code.endswith("\n"):
        highlighted = highlighted[:-1]
    return highlighted
