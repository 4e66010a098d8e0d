"""Protect-and-restore rendering of markdown documents."""

from mdpager.render.code import render_code_block
from mdpager.render.inline import annotate_link, style_inline
from mdpager.render.islands import Extraction, Island, IslandKind, escape_open_fence, extract, restore
from mdpager.render.pipeline import Document, RenderedDocument, render_document
from mdpager.render.tables import render_table

__all__ = [
    "Document",
    "Extraction",
    "Island",
    "IslandKind",
    "RenderedDocument",
    "annotate_link",
    "escape_open_fence",
    "extract",
    "render_code_block",
    "render_document",
    "render_table",
    "restore",
    "style_inline",
]
