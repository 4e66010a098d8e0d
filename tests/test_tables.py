"""Tests for mdpager.render.tables -- the compact table compositor."""

from __future__ import annotations

import pytest

from mdpager.render.tables import (
    BORDER_STYLE,
    HEADER_STYLE,
    is_separator_row,
    is_table_row,
    parse_row,
    render_table,
)
from mdpager.utils import strip_ansi, visible_width


class TestRowDetection:
    @pytest.mark.parametrize("line", ["| a | b |", "  |x|  ", "||"])
    def test_rows(self, line: str) -> None:
        assert is_table_row(line)

    @pytest.mark.parametrize("line", ["|", "a | b", "| a | b", ""])
    def test_not_rows(self, line: str) -> None:
        assert not is_table_row(line)

    @pytest.mark.parametrize("line", ["|---|---|", "| :-- | --: |", "|:-:|"])
    def test_separators(self, line: str) -> None:
        assert is_separator_row(line)

    @pytest.mark.parametrize("line", ["| a | b |", "|---|-x-|", "---|---"])
    def test_not_separators(self, line: str) -> None:
        assert not is_separator_row(line)


def test_parse_row_trims_and_styles_cells() -> None:
    cells = parse_row("|  a | **b** |")
    assert cells[0] == "a"
    assert strip_ansi(cells[1]) == "b"


class TestRenderTable:
    LINES = ["| Name | Qty |", "|------|-----|", "| apple | 3 |", "| kiwi | 12 |"]

    def _plain(self, lines: list[str]) -> list[str]:
        return [strip_ansi(line) for line in render_table(lines).split("\n")]

    def test_framed_by_blank_lines(self) -> None:
        out = render_table(self.LINES)
        assert out.startswith("\n  ")
        assert out.endswith("\n\n")

    def test_layout(self) -> None:
        assert self._plain(self.LINES) == [
            "",
            "   Name  │ Qty ",
            "  ───────┼─────",
            "   apple │ 3   ",
            "   kiwi  │ 12  ",
            "",
            "",
        ]

    def test_header_is_bold_75(self) -> None:
        header = render_table(self.LINES).split("\n")[1]
        assert HEADER_STYLE == "\x1b[1m\x1b[38;5;75m"
        assert HEADER_STYLE + " Name" in header

    def test_borders_are_muted(self) -> None:
        assert BORDER_STYLE + "│" in render_table(self.LINES)

    def test_missing_cells_are_empty(self) -> None:
        plain = self._plain(["| a | b | c |", "|---|---|---|", "| 1 |"])
        assert plain[3] == "   1 │   │   "

    def test_blank_body_rows_are_skipped(self) -> None:
        plain = self._plain(["| a |", "|---|", "", "| 1 |"])
        assert plain[1:4] == ["   a ", "  ───", "   1 "]

    def test_rows_share_one_width(self) -> None:
        rows = [line for line in render_table(self.LINES).split("\n") if line]
        assert len({visible_width(row) for row in rows}) == 1

    def test_links_in_cells_become_hyperlinks(self) -> None:
        out = render_table(["| site |", "|---|", "| [home](http://h) |"])
        assert "\x1b]8;;http://h\x1b\\" in out
        assert "   home " in [strip_ansi(line) for line in out.split("\n")]

    def test_single_line_is_returned_unrendered(self) -> None:
        assert render_table(["| a |"]) == "| a |"
