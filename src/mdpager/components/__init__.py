"""Pager components."""

from mdpager.components.markdown import MarkdownFormatter, format_markdown
from mdpager.components.pager import Pager, PagerState, ViewportState

__all__ = [
    "MarkdownFormatter",
    "Pager",
    "PagerState",
    "ViewportState",
    "format_markdown",
]
