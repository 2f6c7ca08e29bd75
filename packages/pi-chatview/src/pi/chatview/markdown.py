"""Markdown renderer for chat messages.

Renders the markdown subset assistants produce (headers, lists,
blockquotes, fenced code, pipe tables, inline emphasis, code and links) to
width-bounded ANSI terminal lines. Input is classified line by line with
prefix and regex matching; anything that does not match a block rule is a
paragraph.

Rendering never raises. A line that cannot be classified cleanly is emitted
as wrapped plain text.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Callable

from pi.chatview.highlight import SyntaxHighlighter
from pi.chatview.table import MIN_COLUMN_WIDTH, TableSpec, parse_table_row, render_table
from pi.chatview.theme import ThemeContext, ThemeStyles
from pi.chatview.utils import RESET, strip_ansi, wrap_text_with_ansi

logger = logging.getLogger(__name__)

DEFAULT_WRAP_WIDTH = 80
HR_MAX_WIDTH = 32
LIST_PREFIX_WIDTH = 4
BLOCKQUOTE_PREFIX_WIDTH = 2

# Reserved tool-use marker glyphs, recoloured wherever they appear
TOOL_USE_IN_PROGRESS = "○"
TOOL_USE_COMPLETE = "●"

SyntaxHighlightFn = Callable[[str, str], str]  # (code, language) -> highlighted

# ---------------------------------------------------------------------------
# Patterns
# ---------------------------------------------------------------------------

_INLINE_CODE_RE = re.compile(r"`([^`]+)`")
_BOLD_RE = re.compile(r"\*\*([^*]+)\*\*")
_ITALIC_RE = re.compile(r"(?<![A-Za-z0-9_])_([^_]+)_(?![A-Za-z0-9_])")
_LINK_RE = re.compile(r"\[([^\]]+)\]\(([^)]+)\)")
_PLACEHOLDER_RE = re.compile(r"\x00CODE(\d+)\x00")

_HEADER_RE = re.compile(r"^(#{1,4}) (.*)$")
_HR_LINES = frozenset({"---", "***", "___"})
_NUMBERED_RE = re.compile(r"^([1-9]\d?)\. (.*)$")
_TABLE_SEPARATOR_RE = re.compile(r"^\|[-:\s]+(\|[-:\s]+)*\|$")

FENCE = "```"


def is_table_row(line: str) -> bool:
    stripped = line.strip()
    return (
        len(stripped) > 1
        and stripped.startswith("|")
        and stripped.endswith("|")
        and stripped.count("|") >= 3
    )


def is_table_separator(line: str) -> bool:
    stripped = line.strip()
    return "-" in stripped and _TABLE_SEPARATOR_RE.match(stripped) is not None


# ---------------------------------------------------------------------------
# Inline formatting
# ---------------------------------------------------------------------------


def _span(style: str, text: str, base: str) -> str:
    if not style:
        return text
    return f"{style}{text}{RESET}{base}"


def render_inline_markdown(line: str, styles: ThemeStyles, base: str = "") -> str:
    """Apply inline formatting to a single line of text.

    *base* is the style the surrounding text is drawn in; it is re-applied
    after every styled span. Code spans are swapped for placeholders first so
    that their content is never formatted, and restored last.
    """
    code_spans: list[str] = []

    def _stash_code(match: re.Match[str]) -> str:
        code_spans.append(_span(styles.inline_code, match.group(1), base))
        return f"\x00CODE{len(code_spans) - 1}\x00"

    line = _INLINE_CODE_RE.sub(_stash_code, line)
    line = _BOLD_RE.sub(lambda m: _span(styles.bold, m.group(1), base), line)
    line = _ITALIC_RE.sub(lambda m: _span(styles.italic, m.group(1), base), line)
    line = _LINK_RE.sub(
        lambda m: (
            _span(styles.link, m.group(1), base)
            + " ("
            + _span(styles.link, m.group(2), base)
            + ")"
        ),
        line,
    )
    line = line.replace(
        TOOL_USE_IN_PROGRESS, _span(styles.tool_in_progress, TOOL_USE_IN_PROGRESS, base)
    )
    line = line.replace(
        TOOL_USE_COMPLETE, _span(styles.tool_complete, TOOL_USE_COMPLETE, base)
    )
    if code_spans:
        line = _PLACEHOLDER_RE.sub(lambda m: code_spans[int(m.group(1))], line)
    return base + line if base else line


# ---------------------------------------------------------------------------
# Render pass
# ---------------------------------------------------------------------------


@dataclass
class _CodeBlock:
    language: str
    lines: list[str] = field(default_factory=list)


class _RenderPass:
    """State for rendering one document: output lines plus open blocks."""

    def __init__(
        self,
        width: int,
        styles: ThemeStyles,
        highlight_fn: SyntaxHighlightFn,
        min_column_width: int,
    ) -> None:
        self.width = width
        self.styles = styles
        self.highlight_fn = highlight_fn
        self.min_column_width = min_column_width
        self.lines: list[str] = []
        self.code: _CodeBlock | None = None
        self.table: TableSpec | None = None

    def run(self, content: str) -> list[str]:
        for line in content.split("\n"):
            self._feed(line)

        self._flush_table()
        if self.code is not None:
            self._emit_code_block()

        while self.lines and not strip_ansi(self.lines[-1]).strip():
            self.lines.pop()
        return self.lines

    def _feed(self, line: str) -> None:
        if line.startswith(FENCE):
            self._flush_table()
            if self.code is None:
                self.code = _CodeBlock(language=line[len(FENCE):].strip())
            else:
                self._emit_code_block()
            return

        if self.code is not None:
            self.code.lines.append(line)
            return

        if is_table_row(line):
            if is_table_separator(line):
                if self.table is not None:
                    self._mark_header(self.table)
                    return
            else:
                if self.table is None:
                    self.table = TableSpec()
                self.table.rows.append(parse_table_row(line))
                return

        self._flush_table()
        try:
            self.lines.extend(self.render_line(line, self.width))
        except Exception:
            logger.debug("Falling back to plain text for line %r", line, exc_info=True)
            self.lines.extend(wrap_text_with_ansi(line, self.width))

    # -- blocks --------------------------------------------------------------

    def _flush_table(self) -> None:
        if self.table is None:
            return
        table, self.table = self.table, None
        self.lines.extend(
            render_table(
                table,
                self.width,
                self.styles,
                lambda text: render_inline_markdown(text, self.styles),
                self.min_column_width,
            )
        )

    def _mark_header(self, table: TableSpec) -> None:
        """Make the last buffered row the header of the table that follows.

        Rows above it are flushed as a table of their own.
        """
        if len(table.rows) > 1:
            header = table.rows.pop()
            self._flush_table()
            table = self.table = TableSpec(rows=[header])
        table.has_header = True

    def _emit_code_block(self) -> None:
        if self.code is None:
            return
        block, self.code = self.code, None
        code = "\n".join(block.lines)
        try:
            highlighted = self.highlight_fn(code, block.language)
        except Exception:
            logger.debug("Highlighter raised for %r block", block.language, exc_info=True)
            highlighted = code
        if self.lines:
            self.lines.append("")
        self.lines.extend(highlighted.split("\n"))
        self.lines.append("")

    # -- single lines --------------------------------------------------------

    def render_line(self, line: str, width: int, base: str = "") -> list[str]:
        """Classify and render one non-code, non-table source line."""
        styles = self.styles
        trimmed = line.strip()

        header = _HEADER_RE.match(trimmed)
        if header:
            level = len(header.group(1))
            style = (styles.h1, styles.h2, styles.h3, styles.h4)[level - 1]
            out = [_span(style, header.group(2), "")]
            if level <= 2 and self.lines and strip_ansi(self.lines[-1]).strip():
                out.insert(0, "")
            return out

        if trimmed in _HR_LINES:
            return [_span(styles.hr, "─" * min(width, HR_MAX_WIDTH), "")]

        if trimmed.startswith("> ") or trimmed == ">":
            inner_width = max(1, width - BLOCKQUOTE_PREFIX_WIDTH)
            inner = self.render_line(trimmed[2:], inner_width, styles.blockquote)
            bar = _span(styles.blockquote_bar, "┃", "") + " "
            return [bar + text for text in inner]

        if trimmed.startswith(("- ", "* ")):
            bullet = "  " + _span(styles.list_bullet, "•", "") + " "
            return self._render_item(trimmed[2:], bullet, LIST_PREFIX_WIDTH, width, base)

        numbered = _NUMBERED_RE.match(trimmed)
        if numbered:
            number = numbered.group(1)
            prefix = "  " + _span(styles.list_bullet, f"{number}.", "") + " "
            prefix_width = len(number) + 4
            return self._render_item(numbered.group(2), prefix, prefix_width, width, base)

        if not trimmed:
            return [""]

        return wrap_text_with_ansi(render_inline_markdown(line, styles, base), width)

    def _render_item(
        self, content: str, prefix: str, prefix_width: int, width: int, base: str
    ) -> list[str]:
        inner_width = max(1, width - prefix_width)
        wrapped = wrap_text_with_ansi(render_inline_markdown(content, self.styles, base), inner_width)
        indent = " " * prefix_width
        return [prefix + wrapped[0]] + [indent + text for text in wrapped[1:]]


def render_markdown(
    content: str,
    width: int,
    styles: ThemeStyles | None = None,
    highlight_fn: SyntaxHighlightFn | None = None,
    min_column_width: int = MIN_COLUMN_WIDTH,
) -> list[str]:
    """Render markdown *content* to terminal lines at most *width* wide.

    ``width <= 0`` falls back to :data:`DEFAULT_WRAP_WIDTH`. Without
    *styles* the output carries no colour codes except those added by the
    syntax highlighter.
    """
    if width <= 0:
        width = DEFAULT_WRAP_WIDTH
    styles = styles or ThemeStyles.plain()
    if highlight_fn is None:
        highlight_fn = SyntaxHighlighter(styles.syntax_style)
    return _RenderPass(width, styles, highlight_fn, min_column_width).run(content)


# ---------------------------------------------------------------------------
# MarkdownRenderer
# ---------------------------------------------------------------------------

_RENDER_CACHE_MAX = 256


class MarkdownRenderer:
    """Renders chat markdown with the active theme, memoizing results.

    Output is a pure function of content, width and theme, so results are
    cached under ``(content, width, theme version)``. Switching the theme on
    the shared :class:`ThemeContext` bumps its version, which invalidates
    older entries.
    """

    def __init__(
        self,
        theme: ThemeContext | None = None,
        *,
        highlight_fn: SyntaxHighlightFn | None = None,
        min_column_width: int = MIN_COLUMN_WIDTH,
    ) -> None:
        self._theme = theme or ThemeContext()
        self._highlight_fn = highlight_fn
        self._min_column_width = min_column_width
        self._cache: dict[tuple[str, int, int], list[str]] = {}

    @property
    def theme(self) -> ThemeContext:
        return self._theme

    def render(self, content: str, width: int) -> list[str]:
        key = (content, width, self._theme.version)
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        lines = render_markdown(
            content,
            width,
            self._theme.styles,
            self._highlight_fn,
            self._min_column_width,
        )
        if len(self._cache) >= _RENDER_CACHE_MAX:
            self._cache.clear()
        self._cache[key] = lines
        return lines

    def invalidate(self) -> None:
        self._cache.clear()
