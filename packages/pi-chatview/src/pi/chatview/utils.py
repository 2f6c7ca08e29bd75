"""Cell-width measurement and ANSI-aware text layout.

Everything here works in terminal cells: escape sequences are zero width,
wide CJK and emoji glyphs take two cells and combining marks take none.
Lines are wrapped only at whitespace and styling is carried across breaks.
"""

from __future__ import annotations

import re
import unicodedata
from typing import Iterator

import grapheme
import wcwidth as _wcwidth

RESET = "\x1b[0m"

# ---------------------------------------------------------------------------
# Escape sequences
# ---------------------------------------------------------------------------

# CSI (SGR and cursor codes), OSC terminated by BEL or ST, APC
_ESCAPE_RE = re.compile(
    r"\x1b\[[0-9;]*[mGKHJ]"
    r"|\x1b\][^\x07\x1b]*(?:\x07|\x1b\\)"
    r"|\x1b_[^\x07\x1b]*(?:\x07|\x1b\\)"
)

_WHITESPACE = " \t"
_TAB_TEXT = "   "


def strip_ansi(text: str) -> str:
    """Drop every escape sequence from *text*."""
    return _ESCAPE_RE.sub("", text)


def iter_ansi_units(text: str) -> Iterator[tuple[bool, str]]:
    """Yield ``(is_code, unit)`` pairs: whole escape sequences or graphemes."""
    pos = 0
    for match in _ESCAPE_RE.finditer(text):
        if match.start() > pos:
            for g in grapheme.graphemes(text[pos : match.start()]):
                yield (False, g)
        yield (True, match.group())
        pos = match.end()
    if pos < len(text):
        for g in grapheme.graphemes(text[pos:]):
            yield (False, g)


# ---------------------------------------------------------------------------
# Widths
# ---------------------------------------------------------------------------

# Codepoints that force a cluster to emoji presentation
_EMOJI_JOINERS = frozenset({0xFE0F, 0x200D})
_EMOJI_RANGES = (
    (0x1F1E6, 0x1F1FF),  # regional indicators
    (0x1F3FB, 0x1F3FF),  # skin tones
)


def _is_emoji_cluster(g: str) -> bool:
    for ch in g:
        cp = ord(ch)
        if cp in _EMOJI_JOINERS:
            return True
        if any(lo <= cp <= hi for lo, hi in _EMOJI_RANGES):
            return True
    first = ord(g[0])
    return first >= 0x1F000 or 0x2600 <= first <= 0x27BF


def grapheme_width(g: str) -> int:
    """Cells occupied by one grapheme cluster (0, 1 or 2; tabs count 3)."""
    if not g:
        return 0
    if g == "\t":
        return len(_TAB_TEXT)

    if len(g) == 1:
        if unicodedata.category(g) == "Cc":
            return 0
        return max(_wcwidth.wcwidth(g), 0)

    if _is_emoji_cluster(g):
        return 2
    if unicodedata.category(g[0]) in ("Mn", "Me", "Mc", "Cf"):
        return 0
    # The base character decides; attached marks add nothing
    return max(_wcwidth.wcwidth(g[0]), 0)


_width_cache: dict[str, int] = {}
_WIDTH_CACHE_LIMIT = 512


def visible_width(text: str) -> int:
    """Cells *text* occupies once escape sequences are removed."""
    if not text:
        return 0
    plain = strip_ansi(text)
    if plain.isascii() and plain.isprintable():
        return len(plain)

    width = _width_cache.get(plain)
    if width is None:
        width = sum(grapheme_width(g) for g in grapheme.graphemes(plain))
        if len(_width_cache) >= _WIDTH_CACHE_LIMIT:
            _width_cache.clear()
        _width_cache[plain] = width
    return width


# ---------------------------------------------------------------------------
# AnsiCodeTracker
# ---------------------------------------------------------------------------

class AnsiCodeTracker:
    """Running SGR state of a styled string.

    Fed every escape code in order, it knows which attributes and colours
    are on at any point, so a wrapped or restyled line can turn them back on.
    """

    _ATTRS = {
        1: "bold",
        2: "dim",
        3: "italic",
        4: "underline",
        5: "blink",
        7: "inverse",
        8: "hidden",
        9: "strikethrough",
    }
    _RESETS = {
        23: ("italic",),
        24: ("underline",),
        25: ("blink",),
        27: ("inverse",),
        28: ("hidden",),
        29: ("strikethrough",),
        22: ("bold", "dim"),
    }

    def __init__(self) -> None:
        self.attrs: dict[str, str] = {}
        self.fg_color: str | None = None
        self.bg_color: str | None = None

    def process(self, code: str) -> None:
        """Apply one SGR sequence such as ``\\x1b[1;31m``; other codes are ignored."""
        if not code.startswith("\x1b[") or not code.endswith("m"):
            return

        params_str = code[2:-1]
        if not params_str:
            self.clear()
            return

        params = params_str.split(";")
        i = 0
        while i < len(params):
            val = int(params[i]) if params[i] else 0

            if val == 0:
                self.clear()
            elif val in self._ATTRS:
                self.attrs[self._ATTRS[val]] = f"\x1b[{val}m"
            elif val in self._RESETS:
                for name in self._RESETS[val]:
                    self.attrs.pop(name, None)
            elif 30 <= val <= 37 or 90 <= val <= 97:
                self.fg_color = f"\x1b[{val}m"
            elif 40 <= val <= 47 or 100 <= val <= 107:
                self.bg_color = f"\x1b[{val}m"
            elif val == 39:
                self.fg_color = None
            elif val == 49:
                self.bg_color = None
            elif val in (38, 48) and i + 1 < len(params):
                mode = int(params[i + 1]) if params[i + 1] else 0
                if mode == 5 and i + 2 < len(params):
                    color = f"\x1b[{val};5;{params[i + 2]}m"
                    i += 2
                elif mode == 2 and i + 4 < len(params):
                    rgb = ";".join(params[i + 2 : i + 5])
                    color = f"\x1b[{val};2;{rgb}m"
                    i += 4
                else:
                    color = None
                    i += 1
                if color is not None:
                    if val == 38:
                        self.fg_color = color
                    else:
                        self.bg_color = color

            i += 1

    def clear(self) -> None:
        """Forget every attribute and colour."""
        self.attrs.clear()
        self.fg_color = None
        self.bg_color = None

    def get_active_codes(self) -> str:
        """Codes that switch the current state back on."""
        parts = list(self.attrs.values())
        if self.fg_color is not None:
            parts.append(self.fg_color)
        if self.bg_color is not None:
            parts.append(self.bg_color)
        return "".join(parts)

    def has_active_codes(self) -> bool:
        """Whether any attribute or colour is on."""
        return bool(self.attrs) or self.fg_color is not None or self.bg_color is not None

    def get_line_end_reset(self) -> str:
        """A reset to close a line that ends while styled."""
        return RESET if self.has_active_codes() else ""


# ---------------------------------------------------------------------------
# wrap_text_with_ansi
# ---------------------------------------------------------------------------

def wrap_text_with_ansi(text: str, width: int) -> list[str]:
    """Break *text* into lines at most *width* cells wide.

    Breaks happen only at spaces and tabs; a word wider than *width* gets a
    line to itself instead of being cut. Escape codes cost nothing, and a
    line ending while styled is closed with a reset and its style is turned
    back on at the start of the next line. ``\\n`` always starts a new line.
    ``width <= 0`` returns *text* unchanged.
    """
    if width <= 0:
        return [text]

    tracker = AnsiCodeTracker()
    lines: list[str] = []
    for source_line in text.split("\n"):
        lines.extend(_wrap_single_line(source_line, width, tracker))
    return lines


class _Token:
    """A run of whitespace, a word, or a lone escape code."""

    __slots__ = ("kind", "parts", "width")

    def __init__(self, kind: str) -> None:
        self.kind = kind
        self.parts: list[str] = []
        self.width = 0

    @property
    def text(self) -> str:
        return "".join(self.parts)

    def codes(self) -> Iterator[str]:
        return (p for p in self.parts if p.startswith("\x1b"))


def _tokenize(line: str) -> list[_Token]:
    tokens: list[_Token] = []
    current: _Token | None = None
    for is_code, unit in iter_ansi_units(line):
        if is_code:
            if current is not None and current.kind == "word":
                current.parts.append(unit)
            else:
                code_token = _Token("code")
                code_token.parts.append(unit)
                tokens.append(code_token)
                current = None
            continue

        kind = "space" if unit in _WHITESPACE else "word"
        if current is None or current.kind != kind:
            current = _Token(kind)
            tokens.append(current)
        current.parts.append(_TAB_TEXT if unit == "\t" else unit)
        current.width += grapheme_width(unit)
    return tokens


def _wrap_single_line(
    line: str,
    width: int,
    tracker: AnsiCodeTracker,
) -> list[str]:
    """Wrap a single line (no embedded newlines) to *width* columns."""
    if not line:
        return [""]

    result_lines: list[str] = []
    current: list[str] = []
    prefix = tracker.get_active_codes()
    if prefix:
        current.append(prefix)
    current_width = 0
    has_word = False
    indent: list[str] = []
    indent_width = 0
    pending: list[_Token] = []

    for token in _tokenize(line):
        if token.kind == "code":
            if pending:
                pending.append(token)
            else:
                current.append(token.text)
            tracker.process(token.text)
            continue

        if token.kind == "space":
            if has_word:
                pending.append(token)
            else:
                indent.append(token.text)
                indent_width += token.width
            continue

        if not has_word:
            # Leading indentation survives unless it pushes the first word over
            if indent_width + token.width <= width:
                current.extend(indent)
                current_width += indent_width
        else:
            gap = sum(t.width for t in pending)
            if current_width + gap + token.width > width:
                current.extend(t.text for t in pending if t.kind == "code")
                result_lines.append("".join(current) + tracker.get_line_end_reset())
                active = tracker.get_active_codes()
                current = [active] if active else []
                current_width = 0
            else:
                current.extend(t.text for t in pending)
                current_width += gap
        pending = []

        current.append(token.text)
        current_width += token.width
        has_word = True
        for code in token.codes():
            tracker.process(code)

    if not has_word:
        current.extend(indent)
    current.extend(t.text for t in pending if t.kind == "code")
    result_lines.append("".join(current) + tracker.get_line_end_reset())
    return result_lines


# ---------------------------------------------------------------------------
# pad_to_width
# ---------------------------------------------------------------------------

def pad_to_width(text: str, width: int) -> str:
    """Append spaces until *text* fills *width* cells."""
    return text + " " * max(0, width - visible_width(text))


# ---------------------------------------------------------------------------
# break_to_width
# ---------------------------------------------------------------------------

def break_to_width(line: str, width: int) -> list[str]:
    """Cut a single line into pieces of at most *width* cells.

    Unlike :func:`wrap_text_with_ansi` this breaks inside words. Styling is
    closed at each cut and reopened on the next piece. A glyph wider than
    *width* still gets a piece of its own.
    """
    if width <= 0 or visible_width(line) <= width:
        return [line]

    tracker = AnsiCodeTracker()
    pieces: list[str] = []
    current: list[str] = []
    current_width = 0
    for is_code, unit in iter_ansi_units(line):
        if is_code:
            current.append(unit)
            tracker.process(unit)
            continue
        w = grapheme_width(unit)
        if current_width and current_width + w > width:
            pieces.append("".join(current) + tracker.get_line_end_reset())
            active = tracker.get_active_codes()
            current = [active] if active else []
            current_width = 0
        current.append(_TAB_TEXT if unit == "\t" else unit)
        current_width += w
    pieces.append("".join(current))
    return pieces


# ---------------------------------------------------------------------------
# style_columns
# ---------------------------------------------------------------------------

def style_columns(line: str, start_col: int, end_col: int, style: str) -> str:
    """Restyle the cells ``[start_col, end_col)`` of *line* with *style*.

    Styling outside the range is preserved: the SGR state active at
    *end_col* is re-applied after the restyled span. Cells past the end of
    the text are rendered as styled blanks, and a wide glyph cut by either
    boundary is replaced by blanks on the cut side.
    """
    if end_col <= start_col:
        return line

    before: list[str] = []
    middle: list[str] = []
    after: list[str] = []
    tracker = AnsiCodeTracker()
    col = 0
    middle_width = 0
    reapplied = False

    for is_code, unit in iter_ansi_units(line):
        if col >= end_col and not reapplied:
            after.append(tracker.get_active_codes())
            reapplied = True

        if is_code:
            if col < start_col:
                before.append(unit)
            elif col >= end_col:
                after.append(unit)
            tracker.process(unit)
            continue

        w = grapheme_width(unit)
        text = _TAB_TEXT if unit == "\t" else unit
        if col + w <= start_col:
            before.append(text)
        elif col < start_col:
            before.append(" " * (start_col - col))
            overlap = min(col + w, end_col) - start_col
            middle.append(" " * overlap)
            middle_width += overlap
            if col + w > end_col:
                after.append(" " * (col + w - end_col))
        elif col < end_col:
            if col + w > end_col:
                middle.append(" " * (end_col - col))
                middle_width += end_col - col
                after.append(" " * (col + w - end_col))
            else:
                middle.append(text)
                middle_width += w
        else:
            after.append(text)
        col += w

    if col < start_col:
        before.append(" " * (start_col - col))
    span = end_col - start_col
    if middle_width < span:
        middle.append(" " * (span - middle_width))

    return "".join(before) + RESET + style + "".join(middle) + RESET + "".join(after)
