"""End-to-end tests for mdpager.render.pipeline."""

from __future__ import annotations

import pytest

from mdpager.errors import FormatterRenderError
from mdpager.render.code import PANEL_BACKGROUND
from mdpager.render.inline import annotate_link
from mdpager.render.pipeline import Document, RenderedDocument, render_document
from mdpager.styles import MarkdownStyle
from mdpager.utils import strip_ansi, visible_width


def _stripped(rendered: RenderedDocument) -> list[str]:
    return [strip_ansi(line).strip() for line in rendered.lines]


class TestRenderDocument:
    def test_table_sits_between_its_neighbours(self) -> None:
        text = "a\n\n| a | b |\n|---|---|\n| 1 | 2 |\n\nend"
        lines = _stripped(render_document(Document(text, 60)))

        header = next(i for i, line in enumerate(lines) if "a │ b" in line)
        row = next(i for i, line in enumerate(lines) if "1 │ 2" in line)
        assert lines.index("a") < header < row < lines.index("end")

    def test_code_block_becomes_a_panel(self) -> None:
        rendered = render_document(Document("```go\nx := 1\n```", 60))
        panel = [line for line in rendered.lines if PANEL_BACKGROUND in line]
        assert len(panel) == 1
        assert visible_width(panel[0]) == len("x := 1") + 4
        assert strip_ansi(panel[0]).strip() == "x := 1"

    def test_longer_backtick_fence_is_rectangular(self) -> None:
        rendered = render_document(Document("````\nx\n````", 60))
        panel = [line for line in rendered.lines if PANEL_BACKGROUND in line]
        assert [strip_ansi(line).rstrip() for line in panel] == ["    x"]
        assert {visible_width(line) for line in panel} == {5}

    def test_literal_placeholder_text_is_kept(self) -> None:
        rendered = render_document(Document("The token MDLINK0000 is literal. [a](b)", 60))
        assert rendered.text.count("\x1b]8;;") == 2
        assert any("The token MDLINK0000 is literal. a" in line for line in _stripped(rendered))

    def test_link_becomes_one_hyperlink(self) -> None:
        rendered = render_document(Document("Go [click](http://x) now", 60))
        assert rendered.text.count("\x1b]8;;http://x\x1b\\") == 1
        assert "[click]" not in rendered.text
        assert any(line == "Go click now" for line in _stripped(rendered))

    def test_unterminated_fence_is_shown_literally(self) -> None:
        rendered = render_document(Document("```python\nprint(1)", 60))
        assert PANEL_BACKGROUND not in rendered.text
        assert any("```python" in line for line in _stripped(rendered))

    def test_no_placeholder_survives(self) -> None:
        text = "# T\n\n[a](b)\n\n```\nx\n```\n\n| h |\n|---|\n| [c](d) |"
        rendered = render_document(Document(text, 60))
        for prefix in ("MDFENCE", "MDTABLE", "MDLINK"):
            assert prefix not in rendered.text


class TestInjectedFormatter:
    def test_formatter_receives_placeholders(self) -> None:
        seen: list[str] = []

        def recorder(style: MarkdownStyle, width: int, text: str) -> str:
            seen.append(text)
            return text

        rendered = render_document(Document("text [a](b)", 40), formatter=recorder)
        assert seen == ["text MDLINK0000"]
        assert rendered.text == "text " + annotate_link("a", "b")

    def test_prose_failure_propagates(self) -> None:
        def failing(style: MarkdownStyle, width: int, text: str) -> str:
            raise FormatterRenderError("broken")

        with pytest.raises(FormatterRenderError, match="broken"):
            render_document(Document("just prose", 40), formatter=failing)

    def test_code_failure_keeps_source(self) -> None:
        def picky(style: MarkdownStyle, width: int, text: str) -> str:
            if text.startswith("~~~"):
                raise FormatterRenderError("no code here")
            return text

        rendered = render_document(Document("```sh\nls\n```", 40), formatter=picky)
        assert rendered.text == "```sh\nls\n```\n"

        unlabelled = render_document(Document("```\nls\n```", 40), formatter=picky)
        assert unlabelled.text == "```\nls\n```\n"

        indented = render_document(Document("  ```sh\n  ls\n  ```", 40), formatter=picky)
        assert indented.text == "  ```sh\n  ls\n  ```\n"


def test_rendered_lines() -> None:
    assert RenderedDocument("a\nb\n").lines == ["a", "b", ""]
