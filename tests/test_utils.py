"""Tests for mdpager.utils -- terminal text utilities."""

from __future__ import annotations

from mdpager.utils import (
    RESET,
    AnsiCodeTracker,
    pad_to_width,
    strip_ansi,
    truncate_to_width,
    visible_width,
    wrap_text_with_ansi,
)

# ---------------------------------------------------------------------------
# visible_width
# ---------------------------------------------------------------------------


class TestVisibleWidth:
    def test_plain_ascii(self) -> None:
        assert visible_width("hello") == 5

    def test_empty_string(self) -> None:
        assert visible_width("") == 0

    def test_ansi_codes_do_not_count(self) -> None:
        assert visible_width("\x1b[1m\x1b[31mabc\x1b[0m") == 3

    def test_wide_cjk_characters_count_as_two(self) -> None:
        assert visible_width("A世B") == 4

    def test_tab_counts_as_three_spaces(self) -> None:
        assert visible_width("\t") == 3

    def test_osc8_hyperlink_with_st_terminator(self) -> None:
        text = "\x1b]8;;http://x\x1b\\click\x1b]8;;\x1b\\"
        assert visible_width(text) == 5

    def test_osc8_hyperlink_with_bel_terminator(self) -> None:
        text = "\x1b]8;;https://example.com\x07link\x1b]8;;\x07"
        assert visible_width(text) == 4


class TestStripAnsi:
    def test_removes_sgr_and_osc(self) -> None:
        text = "\x1b[38;5;87m\x1b]8;;u\x1b\\a\x1b]8;;\x1b\\\x1b[0m b"
        assert strip_ansi(text) == "a b"


# ---------------------------------------------------------------------------
# wrap_text_with_ansi
# ---------------------------------------------------------------------------


class TestWrapTextWithAnsi:
    def test_short_text_is_single_line(self) -> None:
        assert wrap_text_with_ansi("hello", 10) == ["hello"]

    def test_wraps_at_word_boundary(self) -> None:
        assert wrap_text_with_ansi("hello world", 8) == ["hello", "world"]

    def test_space_at_break_is_dropped(self) -> None:
        assert wrap_text_with_ansi("hello world", 5) == ["hello", "world"]

    def test_long_word_is_split(self) -> None:
        lines = wrap_text_with_ansi("abcdefghij", 4)
        assert [strip_ansi(line) for line in lines] == ["abcd", "efgh", "ij"]

    def test_embedded_newlines_start_new_lines(self) -> None:
        assert wrap_text_with_ansi("a\nb", 10) == ["a", "b"]

    def test_styles_carry_over_wrapped_lines(self) -> None:
        lines = wrap_text_with_ansi("\x1b[1mhello world\x1b[0m", 6)
        assert len(lines) == 2
        assert lines[0].endswith(RESET)
        assert lines[1].startswith("\x1b[1m")

    def test_every_line_fits(self) -> None:
        text = "the quick brown fox jumps over the lazy dog " * 5
        for line in wrap_text_with_ansi(text, 13):
            assert visible_width(line) <= 13


# ---------------------------------------------------------------------------
# truncate_to_width / pad_to_width
# ---------------------------------------------------------------------------


class TestTruncateToWidth:
    def test_text_that_fits_is_unchanged(self) -> None:
        assert truncate_to_width("hello", 10) == "hello"

    def test_cut_text_ends_with_reset(self) -> None:
        result = truncate_to_width("\x1b[31mhello world\x1b[0m", 5)
        assert strip_ansi(result) == "hello"
        assert result.endswith(RESET)

    def test_ellipsis_counts_towards_width(self) -> None:
        result = truncate_to_width("hello world", 6, ellipsis="…")
        assert strip_ansi(result) == "hello…"

    def test_hyperlink_is_closed_after_cut(self) -> None:
        text = "\x1b]8;;http://x\x1b\\clickable\x1b]8;;\x1b\\"
        result = truncate_to_width(text, 5)
        assert strip_ansi(result) == "click"
        assert "\x1b]8;;\x1b\\" in result

    def test_zero_width(self) -> None:
        assert truncate_to_width("abc", 0) == ""


class TestPadToWidth:
    def test_pads_visible_width(self) -> None:
        assert pad_to_width("\x1b[1mab\x1b[0m", 4) == "\x1b[1mab\x1b[0m  "

    def test_never_truncates(self) -> None:
        assert pad_to_width("abcdef", 3) == "abcdef"


# ---------------------------------------------------------------------------
# AnsiCodeTracker
# ---------------------------------------------------------------------------


class TestAnsiCodeTracker:
    def test_tracks_256_colour(self) -> None:
        tracker = AnsiCodeTracker()
        tracker.process("\x1b[38;5;252m")
        assert tracker.get_active_codes() == "\x1b[38;5;252m"

    def test_reset_clears_everything(self) -> None:
        tracker = AnsiCodeTracker()
        tracker.process("\x1b[1;3m")
        tracker.process("\x1b[0m")
        assert not tracker.has_active_codes()

    def test_background_reset(self) -> None:
        tracker = AnsiCodeTracker()
        tracker.process("\x1b[48;5;235m")
        tracker.process("\x1b[49m")
        assert tracker.get_active_codes() == ""
