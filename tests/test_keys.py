"""Tests for mdpager.keys -- raw key decoding."""

from __future__ import annotations

import pytest

from mdpager.keys import parse_key, split_keys


class TestParseKey:
    @pytest.mark.parametrize(
        ("data", "expected"),
        [
            ("\x1b[A", "up"),
            ("\x1b[B", "down"),
            ("\x1bOB", "down"),
            ("\x1b[5~", "pageUp"),
            ("\x1b[6~", "pageDown"),
            ("\x1b", "escape"),
            (" ", "space"),
            ("\r", "enter"),
            ("\x03", "ctrl+c"),
            ("\x04", "ctrl+d"),
            ("\x15", "ctrl+u"),
        ],
    )
    def test_named_keys(self, data: str, expected: str) -> None:
        assert parse_key(data) == expected

    def test_letters_keep_their_case(self) -> None:
        assert parse_key("g") == "g"
        assert parse_key("G") == "G"
        assert parse_key("Q") == "Q"

    def test_alt_prefix(self) -> None:
        assert parse_key("\x1bx") == "alt+x"

    def test_empty_and_unknown(self) -> None:
        assert parse_key("") is None
        assert parse_key("\x1b[99~") is None


class TestSplitKeys:
    def test_plain_characters(self) -> None:
        assert split_keys("jjk") == ["j", "j", "k"]

    def test_csi_sequences(self) -> None:
        assert split_keys("\x1b[B\x1b[6~j") == ["\x1b[B", "\x1b[6~", "j"]

    def test_ss3_sequence(self) -> None:
        assert split_keys("\x1bOA") == ["\x1bOA"]

    def test_lone_trailing_escape(self) -> None:
        assert split_keys("j\x1b") == ["j", "\x1b"]

    def test_double_escape(self) -> None:
        assert split_keys("\x1b\x1b") == ["\x1b", "\x1b"]

    def test_alt_key(self) -> None:
        assert split_keys("\x1bxq") == ["\x1bx", "q"]
