"""Compact table compositor.

Matched markdown table lines are laid out as an auto-sized grid: columns are
as wide as their widest cell, borders appear only between columns and under
the header, and the whole grid is indented to the document margin.
"""

from __future__ import annotations

from mdpager.render.inline import style_inline
from mdpager.styles import color_code
from mdpager.utils import RESET, visible_width

HEADER_STYLE = "\x1b[1m" + color_code("75")
CELL_STYLE = color_code("252")
BORDER_STYLE = color_code("238")

CELL_PADDING = 1
TABLE_INDENT = "  "


def is_table_row(line: str) -> bool:
    t = line.strip()
    return len(t) > 1 and t.startswith("|") and t.endswith("|")


def is_separator_row(line: str) -> bool:
    """True for a header separator such as ``|---|:--:|``."""
    if not is_table_row(line):
        return False
    return all(c in "-:| " for c in line.strip().strip("|"))


def parse_row(line: str) -> list[str]:
    """Split a row into trimmed, inline-styled cells."""
    return [style_inline(cell.strip()) for cell in line.strip().strip("|").split("|")]


def _border(text: str) -> str:
    return f"{BORDER_STYLE}{text}{RESET}"


def _cell(text: str, width: int, on: str) -> str:
    pad = " " * CELL_PADDING
    fill = " " * max(0, width - visible_width(text))
    # Re-open the cell style after resets left by inline spans.
    body = text.replace(RESET, RESET + on)
    return f"{on}{pad}{body}{fill}{pad}{RESET}"


def render_table(lines: list[str]) -> str:
    """Render table *lines* (header, separator, body rows) as a grid.

    Fewer than two lines come back joined and unrendered.
    """
    if len(lines) < 2:
        return "\n".join(lines)

    header = parse_row(lines[0])
    body = [parse_row(line) for line in lines[2:] if line.strip()]

    columns = max(len(row) for row in [header, *body])
    rows = [row + [""] * (columns - len(row)) for row in [header, *body]]
    widths = [max(visible_width(row[col]) for row in rows) for col in range(columns)]

    separator = _border("│")
    out: list[str] = []
    for index, row in enumerate(rows):
        on = HEADER_STYLE if index == 0 else CELL_STYLE
        out.append(separator.join(_cell(cell, widths[col], on) for col, cell in enumerate(row)))
        if index == 0:
            rule = "┼".join("─" * (w + 2 * CELL_PADDING) for w in widths)
            out.append(_border(rule))

    indented = "".join(f"{TABLE_INDENT}{line}\n" for line in out)
    return f"\n{indented}\n"
