"""Markdown formatter -- renders prose markdown to styled terminal text.

Built on ``markdown-it-py``.  The parser uses an open/close token model
(``heading_open`` / ``heading_close``); inline content lives in the
``children`` of ``inline`` tokens and fences arrive as ``fence`` tokens with
the language in ``token.info``.

The formatter lays a document out once at a fixed wrap width: every output
line starts with the document margin and is right-padded with spaces to the
full width, and the whole text is framed by the document block prefix and
suffix.  Code blocks are indented by the code block margin, highlighted with
Pygments and padded to the content width before a closing reset.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable

from markdown_it import MarkdownIt
from markdown_it.token import Token

from mdpager.errors import FormatterInitError, FormatterRenderError
from mdpager.highlight import highlight_code
from mdpager.styles import MarkdownStyle, TextStyle
from mdpager.utils import RESET, visible_width, wrap_text_with_ansi

_HTML_TAG_RE = re.compile(r"<[^>]+>")

SyntaxHighlightFn = Callable[[str, str], str]  # (code, language) -> highlighted

# Tables are never handed to the formatter, so only strikethrough is added
# on top of CommonMark.
_md_parser = MarkdownIt("commonmark").enable("strikethrough")


@dataclass
class _InlineStyleContext:
    """Tracks active emphasis while walking inline tokens."""

    bold: bool = False
    italic: bool = False
    strikethrough: bool = False
    link_href: str | None = None
    link_text: str = ""


def _reapply_after_resets(text: str, codes: str) -> str:
    """Re-open *codes* after every reset inside *text*."""
    if not codes:
        return text
    return text.replace(RESET, RESET + codes)


def _block(lines: list[str], style: TextStyle) -> list[str]:
    """Surround *lines* with the blank lines requested by *style*."""
    before = [""] * style.block_prefix.count("\n")
    after = [""] * style.block_suffix.count("\n")
    return before + lines + after


class MarkdownFormatter:
    """Formats a markdown string at a fixed wrap width."""

    def __init__(
        self,
        style: MarkdownStyle,
        width: int,
        *,
        syntax_highlight_fn: SyntaxHighlightFn | None = None,
    ) -> None:
        if width < 1:
            raise FormatterInitError(f"wrap width must be positive, got {width}")
        self._style = style
        self._width = width
        self._margin = style.document.margin
        if syntax_highlight_fn is None:
            theme = style.code_theme()

            def syntax_highlight_fn(code: str, lang: str) -> str:
                return highlight_code(code, lang, theme)

        self._syntax_highlight_fn = syntax_highlight_fn

    # -- public API ---------------------------------------------------------

    def format(self, text: str) -> str:
        """Render *text* and return the styled document.

        Raises :class:`FormatterRenderError` if parsing or rendering fails.
        """
        doc = self._style.document
        try:
            lines = self._render_markdown(text)
        except FormatterRenderError:
            raise
        except Exception as e:
            raise FormatterRenderError(f"cannot render markdown: {e}") from e
        return doc.block_prefix + "\n".join(lines) + doc.block_suffix

    # -- default text style prefix / suffix ---------------------------------

    def _default_style_prefix(self) -> str:
        return self._style.document.sgr()

    def _default_style_suffix(self) -> str:
        return RESET if self._default_style_prefix() else ""

    def _plain(self, text: str, width: int) -> list[str]:
        """Wrap *text* in the document's default colours."""
        prefix = self._default_style_prefix()
        return wrap_text_with_ansi(prefix + _reapply_after_resets(text, prefix) + self._default_style_suffix(), width)

    # -- main rendering entry -----------------------------------------------

    def _render_markdown(self, text: str) -> list[str]:
        if not text.strip():
            return []
        content_width = max(1, self._width - self._margin * 2)
        tokens = _md_parser.parse(text)
        raw_lines = self._render_tokens(tokens, content_width)
        return [self._pad(line) for line in raw_lines]

    def _pad(self, line: str) -> str:
        padded = " " * self._margin + line
        return padded + " " * max(0, self._width - visible_width(padded))

    # -- block-level token dispatch -----------------------------------------

    def _render_tokens(self, tokens: list[Token], width: int) -> list[str]:
        """Walk a block token list and dispatch to renderers."""
        lines: list[str] = []
        i = 0
        n = len(tokens)

        while i < n:
            tok = tokens[i]
            t = tok.type

            if t == "heading_open":
                level = int(tok.tag[1]) if tok.tag.startswith("h") else 1
                text = self._render_inline(tokens[i + 1]) if i + 1 < n else ""
                lines.extend(self._render_heading(text, level, width))
                i = self._skip_to_close(tokens, i, "heading_close") + 1
                continue

            if t == "paragraph_open":
                text = self._render_inline(tokens[i + 1]) if i + 1 < n else ""
                lines.extend(self._render_paragraph(text, width))
                i = self._skip_to_close(tokens, i, "paragraph_close") + 1
                continue

            if t in ("fence", "code_block"):
                lang = tok.info.strip().split()[0] if t == "fence" and tok.info.strip() else ""
                code = tok.content[:-1] if tok.content.endswith("\n") else tok.content
                lines.extend(self._render_code_block(code, lang, width))
                i += 1
                continue

            if t in ("bullet_list_open", "ordered_list_open"):
                ordered = t == "ordered_list_open"
                close_type = "ordered_list_close" if ordered else "bullet_list_close"
                close_idx = self._find_matching_close(tokens, i, t, close_type)
                lines.extend(
                    self._render_list(
                        tokens[i + 1 : close_idx],
                        ordered=ordered,
                        width=width,
                        depth=0,
                        start=self._list_start(tok),
                    )
                )
                i = close_idx + 1
                continue

            if t == "blockquote_open":
                close_idx = self._find_matching_close(tokens, i, "blockquote_open", "blockquote_close")
                lines.extend(self._render_blockquote(tokens[i + 1 : close_idx], width))
                i = close_idx + 1
                continue

            if t == "hr":
                lines.extend(self._render_hr(width))
                i += 1
                continue

            if t == "html_block":
                content = tok.content.rstrip("\n")
                if content:
                    for line in content.split("\n"):
                        lines.extend(self._plain(line, width))
                    lines.append("")
                i += 1
                continue

            if t == "inline":
                text = self._render_inline(tok)
                if text:
                    lines.extend(self._plain(text, width))
                    lines.append("")
                i += 1
                continue

            i += 1

        while lines and lines[-1] == "":
            lines.pop()

        return lines

    # -- heading ------------------------------------------------------------

    def _render_heading(self, text: str, level: int, width: int) -> list[str]:
        style = self._style.heading_style(level)
        on = style.sgr()
        styled = style.render(_reapply_after_resets(text, on))
        wrapped = wrap_text_with_ansi(styled, width)
        if not style.block_suffix:
            return _block(wrapped, self._style.heading)
        return _block(wrapped, style)

    # -- paragraph ----------------------------------------------------------

    def _render_paragraph(self, text: str, width: int) -> list[str]:
        return self._plain(text, width) + [""]

    # -- code block ---------------------------------------------------------

    def _render_code_block(self, code: str, lang: str, width: int) -> list[str]:
        style = self._style.code_block
        indent = " " * style.margin
        fg = style.sgr()

        highlighted = self._syntax_highlight_fn(code, lang) if lang else code

        lines: list[str] = []
        for code_line in highlighted.split("\n"):
            code_line = code_line.replace("\t", "   ")
            styled = f"{indent}{fg}{code_line}"
            padding = " " * max(0, width - visible_width(styled))
            lines.append(f"{styled}{padding}{RESET}")

        lines.append("")
        return lines

    # -- inline rendering ---------------------------------------------------

    def _render_inline(self, tok: Token) -> str:
        """Render an ``inline`` token's children into a flat styled string."""
        if tok.type != "inline":
            return ""
        if tok.children is None:
            return tok.content

        parts: list[str] = []
        ctx = _InlineStyleContext()
        style = self._style
        prefix = self._default_style_prefix()

        for child in tok.children:
            ct = child.type

            if ct == "text":
                parts.append(self._styled_text(child.content, ctx))
            elif ct == "softbreak":
                parts.append(" ")
            elif ct == "hardbreak":
                parts.append("\n")
            elif ct in ("strong_open", "strong_close"):
                ctx.bold = ct == "strong_open"
            elif ct in ("em_open", "em_close"):
                ctx.italic = ct == "em_open"
            elif ct in ("s_open", "s_close"):
                ctx.strikethrough = ct == "s_open"
            elif ct == "code_inline":
                parts.append(f"{RESET}{style.code.render(f' {child.content} ')}{prefix}")
            elif ct == "link_open":
                href = child.attrs.get("href", "")
                ctx.link_href = str(href) if href else None
                ctx.link_text = ""
            elif ct == "link_close":
                href = ctx.link_href
                if href and href != ctx.link_text and f"mailto:{ctx.link_text}" != href:
                    parts.append(f" {style.link.render(href)}{prefix}")
                ctx.link_href = None
            elif ct == "image":
                alt = child.content or "image"
                label = style.image_text.format.format(text=alt) if style.image_text.format else alt
                parts.append(f"{style.image_text.render(label)}{prefix}")
                src = child.attrs.get("src", "")
                if src:
                    parts.append(f" {style.image.render(str(src))}{prefix}")
            elif ct == "html_inline":
                stripped = _HTML_TAG_RE.sub("", child.content)
                if stripped:
                    parts.append(self._styled_text(stripped, ctx))
            elif child.content:
                parts.append(self._styled_text(child.content, ctx))

        return "".join(parts)

    def _styled_text(self, text: str, ctx: _InlineStyleContext) -> str:
        """Apply the active inline styles to plain text."""
        if not text:
            return ""

        style = self._style
        codes: list[str] = []
        if ctx.link_href:
            ctx.link_text += text
            codes.append(style.link_text.sgr())
        if ctx.bold:
            codes.append(style.strong.sgr())
        if ctx.italic:
            codes.append(style.emph.sgr())
        if ctx.strikethrough:
            codes.append(style.strikethrough.sgr())

        on = "".join(codes)
        if on:
            return f"{on}{text}{RESET}{self._default_style_prefix()}"
        return text

    # -- list ---------------------------------------------------------------

    @staticmethod
    def _list_start(tok: Token) -> int:
        start_attr = tok.attrs.get("start")
        if start_attr is None:
            return 1
        try:
            return int(start_attr)
        except (ValueError, TypeError):
            return 1

    def _render_list(
        self,
        tokens: list[Token],
        *,
        ordered: bool,
        width: int,
        depth: int,
        start: int = 1,
    ) -> list[str]:
        lines: list[str] = []
        item_index = start
        i = 0
        n = len(tokens)

        while i < n:
            tok = tokens[i]
            if tok.type != "list_item_open":
                i += 1
                continue

            close_idx = self._find_matching_close(tokens, i, "list_item_open", "list_item_close")

            if ordered:
                bullet = f"{item_index}{self._style.enumeration.block_prefix}"
                item_index += 1
            else:
                bullet = self._style.item.block_prefix

            bullet_width = visible_width(bullet)
            item_lines = self._render_list_item(tokens[i + 1 : close_idx], max(1, width - bullet_width), depth)
            for j, item_line in enumerate(item_lines):
                if j == 0:
                    lines.append(bullet + item_line)
                elif item_line == "":
                    lines.append("")
                else:
                    lines.append(" " * bullet_width + item_line)

            i = close_idx + 1

        if depth == 0:
            lines.append("")

        return lines

    def _render_list_item(self, tokens: list[Token], width: int, depth: int) -> list[str]:
        """Render the content inside a list item."""
        lines: list[str] = []
        i = 0
        n = len(tokens)

        while i < n:
            tok = tokens[i]
            t = tok.type

            if t == "paragraph_open":
                text = self._render_inline(tokens[i + 1]) if i + 1 < n else ""
                lines.extend(self._plain(text, width))
                i = self._skip_to_close(tokens, i, "paragraph_close") + 1
                continue

            if t == "inline":
                lines.extend(self._plain(self._render_inline(tok), width))
                i += 1
                continue

            if t in ("bullet_list_open", "ordered_list_open"):
                ordered = t == "ordered_list_open"
                close_type = "ordered_list_close" if ordered else "bullet_list_close"
                close_idx = self._find_matching_close(tokens, i, t, close_type)
                lines.extend(
                    self._render_list(
                        tokens[i + 1 : close_idx],
                        ordered=ordered,
                        width=width,
                        depth=depth + 1,
                        start=self._list_start(tok),
                    )
                )
                i = close_idx + 1
                continue

            if t == "blockquote_open":
                close_idx = self._find_matching_close(tokens, i, "blockquote_open", "blockquote_close")
                lines.extend(self._render_blockquote(tokens[i + 1 : close_idx], width))
                i = close_idx + 1
                continue

            if t in ("fence", "code_block"):
                lang = tok.info.strip().split()[0] if t == "fence" and tok.info.strip() else ""
                code = tok.content[:-1] if tok.content.endswith("\n") else tok.content
                lines.extend(self._render_code_block(code, lang, width))
                i += 1
                continue

            i += 1

        return lines

    # -- blockquote ---------------------------------------------------------

    def _render_blockquote(self, tokens: list[Token], width: int) -> list[str]:
        style = self._style.block_quote
        token = style.indent_token or "│ "
        border = style.render(token * max(1, style.indent))
        on = style.sgr()

        inner_width = max(1, width - visible_width(border))
        inner_lines = self._render_tokens(tokens, inner_width)

        lines = [f"{border}{on}{_reapply_after_resets(line, on)}{RESET if on else ''}" for line in inner_lines]
        lines.append("")
        return lines

    # -- horizontal rule ----------------------------------------------------

    def _render_hr(self, width: int) -> list[str]:
        style = self._style.hr
        if not style.format:
            return [style.render("─" * width), ""]
        pieces = style.format.split("\n")
        if len(pieces) > 1:
            pieces = pieces[:-1]
        return [style.render(piece) if piece else "" for piece in pieces]

    # -- token navigation helpers -------------------------------------------

    @staticmethod
    def _skip_to_close(tokens: list[Token], start: int, close_type: str) -> int:
        """Return the index of the next token of *close_type*."""
        i = start + 1
        while i < len(tokens):
            if tokens[i].type == close_type:
                return i
            i += 1
        return len(tokens) - 1

    @staticmethod
    def _find_matching_close(tokens: list[Token], start: int, open_type: str, close_type: str) -> int:
        """Find the close token matching the open token at *start*, respecting nesting."""
        depth = 0
        i = start
        while i < len(tokens):
            if tokens[i].type == open_type:
                depth += 1
            elif tokens[i].type == close_type:
                depth -= 1
                if depth == 0:
                    return i
            i += 1
        return len(tokens) - 1


def format_markdown(style: MarkdownStyle, width: int, text: str) -> str:
    """Format *text* with *style* at wrap *width*.

    This is the formatter contract used by the rendering pipeline: styling
    rules, wrap width and markdown in, styled text out, or a
    :class:`~mdpager.errors.FormatterError`.
    """
    return MarkdownFormatter(style, width).format(text)
