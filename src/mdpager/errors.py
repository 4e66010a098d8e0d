"""Exceptions raised by md-pager."""

from __future__ import annotations


class MdPagerError(Exception):
    """Base class for every fatal md-pager error."""


class DocumentReadError(MdPagerError):
    """The markdown file could not be read."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason


class FormatterError(MdPagerError):
    """Base class for errors coming out of the prose formatter."""


class FormatterInitError(FormatterError):
    """The styling rules or wrap width handed to the formatter are invalid."""


class FormatterRenderError(FormatterError):
    """The formatter failed while rendering a document."""


class RunLoopError(MdPagerError):
    """The terminal event loop failed."""
