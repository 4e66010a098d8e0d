"""Island extraction and restoration.

Fenced code blocks, tables and inline links do not survive the prose
formatter intact, so they are lifted out of the document first, rendered on
their own, and replaced by placeholder tokens.  Once the formatter has laid
out the remaining prose, every token is swapped back for its rendering.

Scanners run in a fixed order (code blocks, then tables, then links) and
each one only sees what the earlier ones left behind.  Tokens are a per-kind
prefix plus a zero-padded ordinal, e.g. ``MDFENCE0000`` or ``MDLINK0012``.
"""

from __future__ import annotations

import enum
import logging
import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field

from mdpager.config import DEFAULT_CODE_LANGUAGE
from mdpager.render.code import Formatter, render_code_block
from mdpager.render.inline import LINK_RE, annotate_link
from mdpager.render.tables import is_separator_row, is_table_row, render_table
from mdpager.styles import MarkdownStyle

logger = logging.getLogger(__name__)

FENCE = "```"


class IslandKind(enum.Enum):
    CODE_BLOCK = "MDFENCE"
    TABLE = "MDTABLE"
    LINK = "MDLINK"

    @property
    def prefix(self) -> str:
        return self.value


@dataclass(frozen=True)
class Island:
    """One lifted region: its source span and its pre-rendered form."""

    kind: IslandKind
    index: int
    raw: str
    rendered: str

    @property
    def token(self) -> str:
        return f"{self.kind.prefix}{self.index:04d}"


@dataclass
class Extraction:
    content: str
    islands: list[Island] = field(default_factory=list)

    def of_kind(self, kind: IslandKind) -> list[Island]:
        return [island for island in self.islands if island.kind is kind]


class _Accumulator:
    """Collects the islands of a single :func:`extract` call.

    Ordinals whose token already occurs in *source* are skipped, so a
    placeholder is never confused with literal document text.
    """

    def __init__(self, source: str) -> None:
        self.islands: list[Island] = []
        self._source = source
        self._counts: dict[IslandKind, int] = {kind: 0 for kind in IslandKind}

    def _next_index(self, kind: IslandKind) -> int:
        index = self._counts[kind]
        while Island(kind, index, "", "").token in self._source:
            index += 1
        self._counts[kind] = index + 1
        return index

    def add(self, kind: IslandKind, raw: str, rendered: str) -> str:
        island = Island(kind, self._next_index(kind), raw, rendered)
        self.islands.append(island)
        return island.token


class _LineState(enum.Enum):
    NORMAL = enum.auto()
    IN_FENCE = enum.auto()
    IN_TABLE = enum.auto()


def is_fence_line(line: str) -> bool:
    return line.strip().startswith(FENCE)


# ---------------------------------------------------------------------------
# Scanners
# ---------------------------------------------------------------------------


def _extract_code_blocks(
    content: str,
    width: int,
    style: MarkdownStyle,
    formatter: Formatter,
    acc: _Accumulator,
) -> str:
    result: list[str] = []
    fence: list[str] = []
    lang = ""
    state = _LineState.NORMAL

    for line in content.split("\n"):
        if state is _LineState.NORMAL:
            if is_fence_line(line):
                state = _LineState.IN_FENCE
                lang = line.strip().lstrip("`").strip() or DEFAULT_CODE_LANGUAGE
                fence = [line]
            else:
                result.append(line)
            continue

        fence.append(line)
        if is_fence_line(line):
            raw = "\n".join(fence)
            code = "\n".join(fence[1:-1])
            rendered = render_code_block(lang, code, width, style, formatter, raw=raw)
            result.append(acc.add(IslandKind.CODE_BLOCK, raw, rendered))
            fence = []
            state = _LineState.NORMAL

    if fence:
        logger.debug("unterminated code fence left in place: %r", fence[0])
        result.extend(fence)

    return "\n".join(result)


def _extract_tables(content: str, acc: _Accumulator) -> str:
    lines = content.split("\n")
    result: list[str] = []
    table: list[str] = []
    state = _LineState.NORMAL
    i = 0

    while i < len(lines):
        line = lines[i]
        if state is _LineState.IN_TABLE:
            if is_table_row(line):
                table.append(line)
                i += 1
                continue
            result.append(acc.add(IslandKind.TABLE, "\n".join(table), render_table(table)))
            table = []
            state = _LineState.NORMAL
            # The line that ended the table is scanned again as normal text.
            continue

        if is_table_row(line) and i + 1 < len(lines) and is_separator_row(lines[i + 1]):
            table = [line, lines[i + 1]]
            state = _LineState.IN_TABLE
            i += 2
            continue

        result.append(line)
        i += 1

    if table:
        result.append(acc.add(IslandKind.TABLE, "\n".join(table), render_table(table)))

    return "\n".join(result)


def _extract_links(content: str, acc: _Accumulator) -> str:
    def repl(m: re.Match[str]) -> str:
        return acc.add(IslandKind.LINK, m.group(0), annotate_link(m.group(1), m.group(2)))

    return LINK_RE.sub(repl, content)


def extract(
    content: str,
    width: int,
    style: MarkdownStyle,
    formatter: Formatter,
) -> Extraction:
    """Lift code blocks, tables and links out of *content*.

    Code blocks are rendered through *formatter* at *width* as they are
    found.  Returns the content with placeholders and the islands in order
    of extraction.
    """
    acc = _Accumulator(content)
    content = _extract_code_blocks(content, width, style, formatter, acc)
    content = _extract_tables(content, acc)
    content = _extract_links(content, acc)
    logger.debug(
        "extracted %s",
        ", ".join(f"{len([i for i in acc.islands if i.kind is kind])} {kind.name.lower()}" for kind in IslandKind),
    )
    return Extraction(content, acc.islands)


# ---------------------------------------------------------------------------
# Restoration
# ---------------------------------------------------------------------------


def _substitute(text: str, islands: Iterable[Island], pick: Callable[[Island], str]) -> str:
    replacements = {island.token: pick(island) for island in islands}
    if not replacements:
        return text
    # Longest first, so MDLINK10000 is never read as MDLINK1000 plus "0".
    alternatives = sorted(replacements, key=len, reverse=True)
    pattern = re.compile("|".join(re.escape(token) for token in alternatives))
    return pattern.sub(lambda m: replacements[m.group(0)], text)


def restore(rendered: str, islands: list[Island], raw: bool = False) -> str:
    """Replace every placeholder in *rendered* with its island.

    Links are restored first, then tables, then code blocks.  With *raw*
    set the original source spans are put back instead of the renderings.
    """
    pick: Callable[[Island], str] = (lambda i: i.raw) if raw else (lambda i: i.rendered)
    for kind in (IslandKind.LINK, IslandKind.TABLE, IslandKind.CODE_BLOCK):
        rendered = _substitute(rendered, (i for i in islands if i.kind is kind), pick)
    return rendered


def escape_open_fence(content: str) -> str:
    """Backslash-escape the backticks of fence lines left after extraction.

    Only an unterminated fence survives :func:`extract`; escaping it makes
    the formatter print the line as text instead of opening a code block
    that swallows the rest of the document.
    """
    lines = content.split("\n")
    for i, line in enumerate(lines):
        if is_fence_line(line):
            lines[i] = line.replace(FENCE, "\\`\\`\\`", 1)
    return "\n".join(lines)
