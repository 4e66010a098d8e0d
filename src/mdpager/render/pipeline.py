"""Render a markdown document once into styled terminal text."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import cached_property

from mdpager.components.markdown import format_markdown
from mdpager.render.code import Formatter
from mdpager.render.islands import escape_open_fence, extract, restore
from mdpager.styles import DEFAULT_STYLE, MarkdownStyle

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Document:
    """Markdown source and the width it is laid out at."""

    text: str
    width: int


@dataclass(frozen=True)
class RenderedDocument:
    text: str

    @cached_property
    def lines(self) -> list[str]:
        return self.text.split("\n")


def render_document(
    document: Document,
    style: MarkdownStyle = DEFAULT_STYLE,
    formatter: Formatter = format_markdown,
) -> RenderedDocument:
    """Protect code blocks, tables and links, format the prose, then restore.

    A failure of *formatter* on the prose propagates as
    :class:`~mdpager.errors.FormatterRenderError`; code blocks it cannot
    render are kept as source instead.
    """
    extraction = extract(document.text, document.width, style, formatter)
    prose = escape_open_fence(extraction.content)
    rendered = formatter(style, document.width, prose)
    text = restore(rendered, extraction.islands)
    logger.debug("rendered %d characters into %d lines", len(document.text), text.count("\n") + 1)
    return RenderedDocument(text)
