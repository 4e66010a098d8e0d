"""Tests for mdpager.render.inline -- inline styling and link annotation."""

from __future__ import annotations

from mdpager.render.inline import (
    BOLD_STYLE,
    CODE_STYLE,
    EM_STYLE,
    LINK_TEXT_STYLE,
    OSC8_CLOSE,
    annotate_link,
    style_inline,
)
from mdpager.utils import RESET, strip_ansi, visible_width


class TestAnnotateLink:
    def test_osc8_envelope(self) -> None:
        assert annotate_link("click", "http://x") == (
            "\x1b]8;;http://x\x1b\\" + LINK_TEXT_STYLE + "click" + RESET + OSC8_CLOSE
        )

    def test_link_style_is_87_bold_underline(self) -> None:
        assert LINK_TEXT_STYLE == "\x1b[38;5;87m\x1b[1m\x1b[4m"

    def test_only_label_is_visible(self) -> None:
        assert visible_width(annotate_link("click", "http://example.com/long")) == 5

    def test_link_style_reapplied_after_nested_reset(self) -> None:
        result = annotate_link("**big** deal", "u")
        assert BOLD_STYLE + "big" + RESET + LINK_TEXT_STYLE + " deal" in result


class TestStyleInline:
    def test_plain_text_unchanged(self) -> None:
        assert style_inline("plain cell") == "plain cell"

    def test_bold(self) -> None:
        assert style_inline("**b**") == BOLD_STYLE + "b" + RESET

    def test_italic(self) -> None:
        assert style_inline("*i*") == EM_STYLE + "i" + RESET

    def test_bold_is_not_read_as_two_italics(self) -> None:
        assert EM_STYLE not in style_inline("**b**")

    def test_code_span(self) -> None:
        assert style_inline("`x`") == CODE_STYLE + "x" + RESET

    def test_markup_inside_code_stays_literal(self) -> None:
        assert style_inline("`**a**`") == CODE_STYLE + "**a**" + RESET

    def test_link_inside_code_stays_literal(self) -> None:
        result = style_inline("`[a](b)`")
        assert "\x1b]8;;" not in result
        assert strip_ansi(result) == "[a](b)"

    def test_link(self) -> None:
        result = style_inline("see [docs](http://d)")
        assert result.startswith("see \x1b]8;;http://d\x1b\\")
        assert strip_ansi(result) == "see docs"

    def test_url_with_asterisks_is_not_styled(self) -> None:
        result = style_inline("[x](http://a/*b*)")
        assert "\x1b]8;;http://a/*b*\x1b\\" in result

    def test_stray_marker_characters_pass_through(self) -> None:
        assert style_inline("a\ue0007\ue001b") == "a\ue0007\ue001b"
