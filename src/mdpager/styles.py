"""Styling rules for the markdown formatter.

The rule set follows the shape of a glamour JSON style: one entry per
markdown element (``document``, ``h1`` ... ``h6``, ``code_block`` and so on),
each holding colours, attributes and decorations.  Code block token colours
live under ``code_block.chroma`` and are turned into a Pygments style class.
"""

from __future__ import annotations

import copy
import json
import logging
import re
from dataclasses import dataclass, field, fields
from typing import Any

from pygments.style import Style
from pygments.token import (
    Comment,
    Error,
    Generic,
    Keyword,
    Name,
    Number,
    Operator,
    Punctuation,
    String,
    Text,
    _TokenType,
)

from mdpager.errors import FormatterInitError
from mdpager.utils import RESET

logger = logging.getLogger(__name__)

_HEX_RE = re.compile(r"^#[0-9a-fA-F]{6}$")

# Glamour elements with no counterpart here; accepted and ignored.
IGNORED_RULES = frozenset(
    {"task", "table", "definition_list", "definition_term", "definition_description", "html_block", "html_span"}
)

# ---------------------------------------------------------------------------
# Default rules
# ---------------------------------------------------------------------------

# Terminals cannot change font size, so headings are told apart by
# background, spacing, weight, colour brightness and prefix glyphs.
DEFAULT_STYLE_RULES: dict[str, dict[str, Any]] = {
    "document": {"block_prefix": "\n", "block_suffix": "\n", "color": "252", "margin": 2},
    "block_quote": {"indent": 1, "indent_token": "│ ", "color": "246", "italic": True},
    "paragraph": {},
    "list": {"level_indent": 2},
    "heading": {"block_suffix": "\n"},
    "h1": {
        "block_prefix": "\n",
        "block_suffix": "\n\n",
        "prefix": " ",
        "suffix": " ",
        "color": "231",
        "background_color": "63",
        "bold": True,
    },
    "h2": {"block_prefix": "\n", "prefix": "▌ ", "color": "75", "bold": True, "block_suffix": "\n"},
    "h3": {"prefix": "  ◆ ", "color": "85", "bold": True},
    "h4": {"prefix": "    ◇ ", "color": "183", "bold": True},
    "h5": {"prefix": "      · ", "color": "183"},
    "h6": {"prefix": "        ‣ ", "color": "243"},
    "text": {},
    "strikethrough": {"crossed_out": True},
    "emph": {"italic": True},
    "strong": {"bold": True},
    "hr": {"color": "240", "format": "\n──────────────────────────────────────────\n\n"},
    "item": {"block_prefix": "• "},
    "enumeration": {"block_prefix": ". "},
    "link": {"color": "30", "underline": True},
    "link_text": {"color": "35", "bold": True},
    "image": {"color": "212", "underline": True},
    "image_text": {"color": "243", "format": "Image: {text} →"},
    "code": {"color": "147", "background_color": "236"},
    "code_block": {
        "color": "244",
        "margin": 2,
        "chroma": {
            "text": {"color": "#C4C4C4"},
            "error": {"color": "#F1F1F1", "background_color": "#F05B5B"},
            "comment": {"color": "#676767"},
            "comment_preproc": {"color": "#FF875F"},
            "keyword": {"color": "#00AAFF"},
            "keyword_reserved": {"color": "#FF5FD2"},
            "keyword_namespace": {"color": "#FF5F87"},
            "keyword_type": {"color": "#6E6ED8"},
            "operator": {"color": "#EF8080"},
            "punctuation": {"color": "#E8E8A8"},
            "name": {"color": "#C4C4C4"},
            "name_builtin": {"color": "#FF8EC7"},
            "name_tag": {"color": "#B083EA"},
            "name_attribute": {"color": "#7A7AE6"},
            "name_class": {"color": "#F1F1F1", "underline": True, "bold": True},
            "name_constant": {},
            "name_decorator": {"color": "#FFFF87"},
            "name_exception": {},
            "name_function": {"color": "#00D787"},
            "literal_number": {"color": "#6EEFC0"},
            "literal_string": {"color": "#C69669"},
            "literal_string_escape": {"color": "#AFFFD7"},
            "generic_deleted": {"color": "#FD5B5B"},
            "generic_emph": {"italic": True},
            "generic_inserted": {"color": "#00D787"},
            "generic_strong": {"bold": True},
            "generic_subheading": {"color": "#777777"},
            "background": {},
        },
    },
}

_CHROMA_TOKENS: dict[str, _TokenType] = {
    "text": Text,
    "error": Error,
    "comment": Comment,
    "comment_preproc": Comment.Preproc,
    "keyword": Keyword,
    "keyword_reserved": Keyword.Reserved,
    "keyword_namespace": Keyword.Namespace,
    "keyword_type": Keyword.Type,
    "operator": Operator,
    "punctuation": Punctuation,
    "name": Name,
    "name_builtin": Name.Builtin,
    "name_tag": Name.Tag,
    "name_attribute": Name.Attribute,
    "name_class": Name.Class,
    "name_constant": Name.Constant,
    "name_decorator": Name.Decorator,
    "name_exception": Name.Exception,
    "name_function": Name.Function,
    "literal_number": Number,
    "literal_string": String,
    "literal_string_escape": String.Escape,
    "generic_deleted": Generic.Deleted,
    "generic_emph": Generic.Emph,
    "generic_inserted": Generic.Inserted,
    "generic_strong": Generic.Strong,
    "generic_subheading": Generic.Subheading,
}


# ---------------------------------------------------------------------------
# Colours
# ---------------------------------------------------------------------------

def _validate_color(value: str) -> str:
    if _HEX_RE.match(value):
        return value
    if value.isdigit() and 0 <= int(value) <= 255:
        return value
    raise FormatterInitError(f"invalid colour {value!r}: expected 0-255 or #RRGGBB")


def color_code(value: str, background: bool = False) -> str:
    """Return the SGR sequence selecting colour *value* (``"252"`` or ``"#C4C4C4"``)."""
    base = 48 if background else 38
    if value.startswith("#"):
        r, g, b = (int(value[i : i + 2], 16) for i in (1, 3, 5))
        return f"\x1b[{base};2;{r};{g};{b}m"
    return f"\x1b[{base};5;{value}m"


def xterm_to_hex(index: int) -> str:
    """Map an xterm-256 colour index to its ``#RRGGBB`` value."""
    basic = [
        "000000", "800000", "008000", "808000", "000080", "800080", "008080", "c0c0c0",
        "808080", "ff0000", "00ff00", "ffff00", "0000ff", "ff00ff", "00ffff", "ffffff",
    ]
    if index < 16:
        return "#" + basic[index]
    if index < 232:
        index -= 16
        steps = [0, 95, 135, 175, 215, 255]
        r, g, b = steps[index // 36], steps[(index // 6) % 6], steps[index % 6]
        return f"#{r:02x}{g:02x}{b:02x}"
    level = 8 + (index - 232) * 10
    return f"#{level:02x}{level:02x}{level:02x}"


# ---------------------------------------------------------------------------
# TextStyle
# ---------------------------------------------------------------------------


@dataclass
class TextStyle:
    """Styling for one markdown element."""

    color: str | None = None
    background_color: str | None = None
    bold: bool = False
    italic: bool = False
    underline: bool = False
    crossed_out: bool = False
    faint: bool = False
    prefix: str = ""
    suffix: str = ""
    block_prefix: str = ""
    block_suffix: str = ""
    margin: int = 0
    indent: int = 0
    indent_token: str = ""
    level_indent: int = 0
    format: str = ""

    @classmethod
    def from_dict(cls, name: str, rules: dict[str, Any]) -> TextStyle:
        known = {f.name for f in fields(cls)}
        unknown = set(rules) - known
        if unknown:
            raise FormatterInitError(f"unknown keys in style rule {name!r}: {', '.join(sorted(unknown))}")
        style = cls(**rules)
        if style.color is not None:
            style.color = _validate_color(str(style.color))
        if style.background_color is not None:
            style.background_color = _validate_color(str(style.background_color))
        return style

    def sgr(self) -> str:
        """Return the SGR sequences that switch this style on."""
        parts: list[str] = []
        if self.color:
            parts.append(color_code(self.color))
        if self.background_color:
            parts.append(color_code(self.background_color, background=True))
        if self.bold:
            parts.append("\x1b[1m")
        if self.faint:
            parts.append("\x1b[2m")
        if self.italic:
            parts.append("\x1b[3m")
        if self.underline:
            parts.append("\x1b[4m")
        if self.crossed_out:
            parts.append("\x1b[9m")
        return "".join(parts)

    def render(self, text: str) -> str:
        """Wrap prefix + *text* + suffix in this style's colours."""
        body = f"{self.prefix}{text}{self.suffix}"
        on = self.sgr()
        if not on:
            return body
        return f"{on}{body}{RESET}"

    def pygments_rule(self) -> str:
        parts: list[str] = []
        if self.bold:
            parts.append("bold")
        if self.italic:
            parts.append("italic")
        if self.underline:
            parts.append("underline")
        if self.color:
            parts.append(_as_hex(self.color))
        if self.background_color:
            parts.append("bg:" + _as_hex(self.background_color))
        return " ".join(parts)


def _as_hex(value: str) -> str:
    return value if value.startswith("#") else xterm_to_hex(int(value))


# ---------------------------------------------------------------------------
# MarkdownStyle
# ---------------------------------------------------------------------------


@dataclass
class MarkdownStyle:
    """The full styling ruleset handed to the formatter."""

    document: TextStyle = field(default_factory=TextStyle)
    block_quote: TextStyle = field(default_factory=TextStyle)
    paragraph: TextStyle = field(default_factory=TextStyle)
    list: TextStyle = field(default_factory=TextStyle)
    heading: TextStyle = field(default_factory=TextStyle)
    h1: TextStyle = field(default_factory=TextStyle)
    h2: TextStyle = field(default_factory=TextStyle)
    h3: TextStyle = field(default_factory=TextStyle)
    h4: TextStyle = field(default_factory=TextStyle)
    h5: TextStyle = field(default_factory=TextStyle)
    h6: TextStyle = field(default_factory=TextStyle)
    text: TextStyle = field(default_factory=TextStyle)
    strikethrough: TextStyle = field(default_factory=TextStyle)
    emph: TextStyle = field(default_factory=TextStyle)
    strong: TextStyle = field(default_factory=TextStyle)
    hr: TextStyle = field(default_factory=TextStyle)
    item: TextStyle = field(default_factory=TextStyle)
    enumeration: TextStyle = field(default_factory=TextStyle)
    link: TextStyle = field(default_factory=TextStyle)
    link_text: TextStyle = field(default_factory=TextStyle)
    image: TextStyle = field(default_factory=TextStyle)
    image_text: TextStyle = field(default_factory=TextStyle)
    code: TextStyle = field(default_factory=TextStyle)
    code_block: TextStyle = field(default_factory=TextStyle)
    chroma: dict[str, TextStyle] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, rules: dict[str, Any]) -> MarkdownStyle:
        """Build a style from glamour-shaped *rules*.

        Raises :class:`FormatterInitError` for unknown elements, unknown keys
        or malformed colours.
        """
        rules = copy.deepcopy(rules)
        element_names = {f.name for f in fields(cls)} - {"chroma"}
        kwargs: dict[str, Any] = {}

        for name, element in rules.items():
            if name in IGNORED_RULES:
                logger.debug("ignoring style rule %r", name)
                continue
            if name not in element_names:
                raise FormatterInitError(f"unknown style rule {name!r}")
            if not isinstance(element, dict):
                raise FormatterInitError(f"style rule {name!r} must be an object")
            if name == "code_block":
                chroma = element.pop("chroma", {}) or {}
                kwargs["chroma"] = {
                    token: TextStyle.from_dict(f"chroma.{token}", token_rules)
                    for token, token_rules in chroma.items()
                }
            kwargs[name] = TextStyle.from_dict(name, element)

        return cls(**kwargs)

    def heading_style(self, level: int) -> TextStyle:
        return getattr(self, f"h{min(max(level, 1), 6)}")

    @property
    def code_indent(self) -> int:
        """Columns the formatter puts in front of every code block line."""
        return self.document.margin + self.code_block.margin

    def code_theme(self) -> type[Style]:
        """Build a Pygments style class from the ``chroma`` token colours."""
        token_rules: dict[_TokenType, str] = {}
        for name, token_style in self.chroma.items():
            token = _CHROMA_TOKENS.get(name)
            if token is None:
                continue
            rule = token_style.pygments_rule()
            if rule:
                token_rules[token] = rule

        background = self.chroma.get("background")
        bg = Style.background_color
        if background is not None and background.background_color:
            bg = _as_hex(background.background_color)

        # StyleMeta reads these while the class is created.
        class ChromaStyle(Style):
            background_color = bg
            styles = token_rules

        return ChromaStyle


def merge_rules(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Overlay *override* on *base* one element (and chroma token) at a time."""
    merged = copy.deepcopy(base)
    for name, element in override.items():
        if not isinstance(element, dict) or not isinstance(merged.get(name), dict):
            merged[name] = copy.deepcopy(element)
            continue
        target = merged[name]
        for key, value in element.items():
            if key == "chroma" and isinstance(value, dict) and isinstance(target.get("chroma"), dict):
                target["chroma"].update(copy.deepcopy(value))
            else:
                target[key] = copy.deepcopy(value)
    return merged


def load_style(path: str | None) -> MarkdownStyle:
    """Load JSON style rules from *path* on top of the defaults.

    With no path the default style is returned.
    """
    if path is None:
        return MarkdownStyle.from_dict(DEFAULT_STYLE_RULES)
    try:
        with open(path, encoding="utf-8") as f:
            override = json.load(f)
    except OSError as e:
        raise FormatterInitError(f"cannot read style {path}: {e.strerror or e}") from e
    except json.JSONDecodeError as e:
        raise FormatterInitError(f"invalid style JSON in {path}: {e}") from e
    if not isinstance(override, dict):
        raise FormatterInitError(f"style {path} must contain a JSON object")
    return MarkdownStyle.from_dict(merge_rules(DEFAULT_STYLE_RULES, override))


DEFAULT_STYLE = MarkdownStyle.from_dict(DEFAULT_STYLE_RULES)
