"""Terminal text utilities: ANSI handling, width measurement, word wrapping.

Everything here operates on already-styled strings: SGR colour sequences,
OSC 8 hyperlinks (BEL or ST terminated) and APC payloads are skipped when
measuring, and carried along when wrapping or cutting.
"""

from __future__ import annotations

import re
import unicodedata

import grapheme
import wcwidth as _wcwidth

RESET = "\x1b[0m"

# ---------------------------------------------------------------------------
# Regex patterns for ANSI / OSC / APC sequences
# ---------------------------------------------------------------------------

_STRIP_RE = re.compile(
    r"\x1b\[[0-9;]*[mGKHJ]"                   # CSI
    r"|\x1b\][^\x07\x1b]*(?:\x07|\x1b\\)"     # OSC (hyperlinks, titles)
    r"|\x1b_[^\x07\x1b]*(?:\x07|\x1b\\)"      # APC
)

# SGR sequences only, used to find colour resets inside a styled line.
SGR_RE = re.compile(r"\x1b\[([0-9;]*)m")

# ---------------------------------------------------------------------------
# Width cache (capped at 512 entries)
# ---------------------------------------------------------------------------

_width_cache: dict[str, int] = {}
_WIDTH_CACHE_MAX = 512


def _cache_width(key: str, value: int) -> int:
    if len(_width_cache) >= _WIDTH_CACHE_MAX:
        _width_cache.clear()
    _width_cache[key] = value
    return value


def strip_ansi(text: str) -> str:
    """Remove every escape sequence from *text*, keeping visible characters."""
    return _STRIP_RE.sub("", text)


# ---------------------------------------------------------------------------
# Grapheme width
# ---------------------------------------------------------------------------

def _grapheme_width(g: str) -> int:
    """Return the terminal display width of a single grapheme cluster.

    Zero-width characters count as 0, emoji sequences as 2, and anything else
    is delegated to wcwidth for its first codepoint.
    """
    if not g:
        return 0

    if len(g) == 1:
        cp = ord(g)
        if cp < 0x20 or (0x7F <= cp <= 0x9F):
            return 0
        return max(_wcwidth.wcwidth(g), 0)

    for ch in g:
        cp = ord(ch)
        # VS16, ZWJ, skin tones, regional indicators
        if cp in (0xFE0F, 0x200D) or 0x1F3FB <= cp <= 0x1F3FF or 0x1F1E6 <= cp <= 0x1F1FF:
            return 2

    first_cp = ord(g[0])
    if first_cp >= 0x1F000 or 0x2600 <= first_cp <= 0x27BF:
        return 2

    cat = unicodedata.category(g[0])
    if cat.startswith("M") or cat == "Cf":
        return 0

    return max(_wcwidth.wcwidth(g[0]), 0)


# ---------------------------------------------------------------------------
# visible_width
# ---------------------------------------------------------------------------

def visible_width(text: str) -> int:
    """Calculate the visible terminal width of *text*.

    Escape sequences are ignored and tabs count as 3 columns.  Pure
    printable-ASCII strings take a fast path; everything else is measured
    per grapheme cluster and cached.
    """
    if not text:
        return 0

    stripped = _STRIP_RE.sub("", text)
    if not stripped:
        return 0
    stripped = stripped.replace("\t", "   ")

    if all(0x20 <= ord(ch) <= 0x7E for ch in stripped):
        return len(stripped)

    cached = _width_cache.get(stripped)
    if cached is not None:
        return cached

    total = sum(_grapheme_width(g) for g in grapheme.graphemes(stripped))
    return _cache_width(stripped, total)


# ---------------------------------------------------------------------------
# extract_ansi_code
# ---------------------------------------------------------------------------

def extract_ansi_code(text: str, pos: int) -> tuple[str, int] | None:
    """Extract an escape sequence starting at *pos* in *text*.

    Returns ``(code, length)`` or ``None`` when *pos* does not start a
    recognised CSI, OSC or APC sequence.
    """
    if pos + 1 >= len(text) or text[pos] != "\x1b":
        return None

    kind = text[pos + 1]

    if kind == "[":
        i = pos + 2
        while i < len(text):
            ch = text[i]
            if ch in "mGKHJ":
                return (text[pos : i + 1], i + 1 - pos)
            if not (ch.isdigit() or ch == ";"):
                break
            i += 1
        return None

    if kind in "]_":
        i = pos + 2
        while i < len(text):
            ch = text[i]
            if ch == "\x07":
                return (text[pos : i + 1], i + 1 - pos)
            if ch == "\x1b" and i + 1 < len(text) and text[i + 1] == "\\":
                return (text[pos : i + 2], i + 2 - pos)
            i += 1
        return None

    return None


# ---------------------------------------------------------------------------
# AnsiCodeTracker
# ---------------------------------------------------------------------------

# SGR parameter -> (attribute, code to store or None to clear)
_SGR_ATTRIBUTES: dict[int, tuple[str, str | None]] = {
    1: ("bold", "\x1b[1m"),
    2: ("dim", "\x1b[2m"),
    3: ("italic", "\x1b[3m"),
    4: ("underline", "\x1b[4m"),
    7: ("inverse", "\x1b[7m"),
    9: ("strikethrough", "\x1b[9m"),
    23: ("italic", None),
    24: ("underline", None),
    27: ("inverse", None),
    29: ("strikethrough", None),
    39: ("fg_color", None),
    49: ("bg_color", None),
}

_TRACKED = ("bold", "dim", "italic", "underline", "inverse", "strikethrough", "fg_color", "bg_color")


class AnsiCodeTracker:
    """Track active SGR state so it can be re-applied after a line break."""

    def __init__(self) -> None:
        self.clear()

    def clear(self) -> None:
        for name in _TRACKED:
            setattr(self, name, None)

    def process(self, code: str) -> None:
        """Update tracked state from an SGR sequence like ``\\x1b[1;31m``."""
        match = SGR_RE.fullmatch(code)
        if match is None:
            return

        params = match.group(1).split(";") if match.group(1) else ["0"]
        i = 0
        while i < len(params):
            val = int(params[i]) if params[i] else 0

            if val == 0:
                self.clear()
            elif val == 22:
                self.bold = None
                self.dim = None
            elif val in _SGR_ATTRIBUTES:
                name, stored = _SGR_ATTRIBUTES[val]
                setattr(self, name, stored)
            elif 30 <= val <= 37 or 90 <= val <= 97:
                self.fg_color = f"\x1b[{val}m"
            elif 40 <= val <= 47 or 100 <= val <= 107:
                self.bg_color = f"\x1b[{val}m"
            elif val in (38, 48) and i + 1 < len(params):
                attr = "fg_color" if val == 38 else "bg_color"
                mode = params[i + 1]
                if mode == "5" and i + 2 < len(params):
                    setattr(self, attr, f"\x1b[{val};5;{params[i + 2]}m")
                    i += 2
                elif mode == "2" and i + 4 < len(params):
                    rgb = ";".join(params[i + 2 : i + 5])
                    setattr(self, attr, f"\x1b[{val};2;{rgb}m")
                    i += 4
                else:
                    i += 1
            i += 1

    def get_active_codes(self) -> str:
        """Return the codes that reactivate the current state."""
        return "".join(getattr(self, name) for name in _TRACKED if getattr(self, name) is not None)

    def has_active_codes(self) -> bool:
        return any(getattr(self, name) is not None for name in _TRACKED)


# ---------------------------------------------------------------------------
# wrap_text_with_ansi
# ---------------------------------------------------------------------------

def wrap_text_with_ansi(text: str, width: int) -> list[str]:
    """Word-wrap *text* to *width* columns, preserving ANSI escape codes.

    Embedded newlines start new physical lines.  SGR state is tracked across
    lines: every wrapped line is closed with a reset when attributes are
    active, and the next line re-opens them.
    """
    if width <= 0:
        return [text]

    tracker = AnsiCodeTracker()
    result: list[str] = []
    for physical_line in text.split("\n"):
        result.extend(_wrap_single_line(physical_line, width, tracker))
    return result


def _wrap_single_line(line: str, width: int, tracker: AnsiCodeTracker) -> list[str]:
    if not line:
        return [""]

    result_lines: list[str] = []
    current: list[str] = []
    current_width = 0

    active = tracker.get_active_codes()
    if active:
        current.append(active)

    def flush(content: str) -> None:
        if tracker.has_active_codes():
            content += RESET
        result_lines.append(content)

    i = 0
    while i < len(line):
        extracted = extract_ansi_code(line, i)
        if extracted is not None:
            code, length = extracted
            tracker.process(code)
            current.append(code)
            i += length
            continue

        ch = line[i]
        if ch == "\t":
            ch, ch_width = "   ", 3
        else:
            ch_width = _grapheme_width(ch)

        if current_width + ch_width > width and current_width > 0:
            if ch == " ":
                # A space at the break is dropped.
                flush("".join(current))
                current = [tracker.get_active_codes()]
                current_width = 0
                i += 1
                continue
            split = _find_word_break(current)
            if split is not None:
                before, after = split
                flush(before)
                current = [tracker.get_active_codes(), after]
                current_width = visible_width(after)
            else:
                flush("".join(current))
                current = [tracker.get_active_codes()]
                current_width = 0

        current.append(ch)
        current_width += ch_width
        i += 1

    flush("".join(current))
    return result_lines


def _find_word_break(parts: list[str]) -> tuple[str, str] | None:
    """Split accumulated *parts* at the last visible space.

    Returns ``(before, after)`` with leading spaces removed from *after*, or
    ``None`` when there is no usable space.
    """
    joined = "".join(parts)
    last_space = _STRIP_RE.sub("", joined).rfind(" ")
    if last_space <= 0:
        return None

    visible_idx = 0
    split_pos = 0
    i = 0
    while i < len(joined):
        extracted = extract_ansi_code(joined, i)
        if extracted is not None:
            i += extracted[1]
            continue
        if visible_idx == last_space:
            split_pos = i
            break
        visible_idx += 1
        i += 1

    if split_pos <= 0:
        return None

    before = joined[:split_pos]
    after: list[str] = []
    leading = True
    j = split_pos
    while j < len(joined):
        extracted = extract_ansi_code(joined, j)
        if extracted is not None:
            after.append(extracted[0])
            j += extracted[1]
            continue
        if not (leading and joined[j] == " "):
            leading = False
            after.append(joined[j])
        j += 1

    return (before, "".join(after))


# ---------------------------------------------------------------------------
# truncate_to_width / pad_to_width
# ---------------------------------------------------------------------------

def truncate_to_width(text: str, max_width: int, ellipsis: str = "") -> str:
    """Cut *text* so it fits within *max_width* visible columns.

    Escape sequences are preserved.  When the text is cut, *ellipsis* is
    appended (it counts towards the width) followed by a reset so no style
    leaks past the cut.
    """
    if max_width <= 0:
        return ""
    if visible_width(text) <= max_width:
        return text

    target = max_width - visible_width(ellipsis)
    if target <= 0:
        return _take_columns(ellipsis, max_width)
    return _take_columns(text, target) + ellipsis + RESET


def _take_columns(text: str, max_cols: int) -> str:
    """Return the prefix of *text* that fits in *max_cols* columns.

    Escape sequences that follow the cut are still copied, so hyperlinks
    and colours opened before the cut are also closed.
    """
    result: list[str] = []
    cols = 0
    full = False
    i = 0
    while i < len(text):
        extracted = extract_ansi_code(text, i)
        if extracted is not None:
            result.append(extracted[0])
            i += extracted[1]
            continue
        if not full:
            w = _grapheme_width(text[i])
            if cols + w > max_cols:
                full = True
            else:
                result.append(text[i])
                cols += w
        i += 1
    return "".join(result)


def pad_to_width(text: str, width: int) -> str:
    """Right-pad *text* with spaces to *width* visible columns."""
    return text + " " * max(0, width - visible_width(text))
