"""md-pager: render a markdown file once and page through it in the terminal."""

from mdpager.errors import (
    DocumentReadError,
    FormatterError,
    FormatterInitError,
    FormatterRenderError,
    MdPagerError,
    RunLoopError,
)
from mdpager.render import Document, RenderedDocument, render_document
from mdpager.styles import DEFAULT_STYLE, MarkdownStyle, load_style

__version__ = "0.1.0"

__all__ = [
    "DEFAULT_STYLE",
    "Document",
    "DocumentReadError",
    "FormatterError",
    "FormatterInitError",
    "FormatterRenderError",
    "MarkdownStyle",
    "MdPagerError",
    "RenderedDocument",
    "RunLoopError",
    "__version__",
    "load_style",
    "render_document",
]
