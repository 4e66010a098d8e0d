"""Configuration for the pager."""

from __future__ import annotations

from dataclasses import dataclass

# Unlabelled fences are highlighted as this language.
DEFAULT_CODE_LANGUAGE = "go"

FALLBACK_COLUMNS = 80
FALLBACK_ROWS = 24

# Columns taken by the document margin on each side of the page.
PAGE_GUTTER = 4


@dataclass
class Config:
    """Runtime options collected from the command line."""

    path: str
    width: int | None = None
    page_lines: int = 15
    header_height: int = 2
    footer_height: int = 2
    style_path: str | None = None
    print_only: bool = False
    log_level: str = "warning"
    log_file: str | None = None

    def wrap_width(self, columns: int) -> int:
        """Return the fixed wrap width for a terminal *columns* wide."""
        if self.width is not None:
            return max(1, self.width)
        return max(1, columns - PAGE_GUTTER)
