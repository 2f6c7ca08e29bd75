"""Pipe-table layout: column width distribution and box-drawing output."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable

from pi.chatview.theme import ThemeStyles
from pi.chatview.utils import RESET, break_to_width, pad_to_width, visible_width, wrap_text_with_ansi

MIN_COLUMN_WIDTH = 3

InlineFormatter = Callable[[str], str]


# ---------------------------------------------------------------------------
# TableSpec
# ---------------------------------------------------------------------------


@dataclass
class TableSpec:
    """A buffered pipe table: raw cell strings per row plus a header flag."""

    rows: list[list[str]] = field(default_factory=list)
    has_header: bool = False

    @property
    def num_columns(self) -> int:
        return max((len(row) for row in self.rows), default=0)

    def natural_widths(self, min_width: int = MIN_COLUMN_WIDTH) -> list[int]:
        """Widest cell per column, floored at *min_width*."""
        widths = [min_width] * self.num_columns
        for row in self.rows:
            for i, cell in enumerate(row):
                widths[i] = max(widths[i], visible_width(cell))
        return widths

    def final_widths(self, width: int, min_width: int = MIN_COLUMN_WIDTH) -> list[int]:
        """Column widths after fitting the table into *width* terminal columns."""
        return distribute_table_columns(
            self.natural_widths(min_width),
            table_content_width(width, self.num_columns),
            min_width,
        )


def parse_table_row(line: str) -> list[str]:
    """Split ``| a | b |`` into ``["a", "b"]``."""
    inner = line.strip()
    if inner.startswith("|"):
        inner = inner[1:]
    if inner.endswith("|"):
        inner = inner[:-1]
    return [cell.strip() for cell in inner.split("|")]


def table_content_width(width: int, num_cols: int) -> int:
    """Width left for cell content once borders and padding are drawn.

    Each column costs one border plus a padding space on either side, and
    the row is closed by one more border: ``3 * n + 1``.
    """
    return width - (3 * num_cols + 1)


# ---------------------------------------------------------------------------
# Column distribution
# ---------------------------------------------------------------------------


def distribute_table_columns(
    natural_widths: list[int],
    available_width: int,
    min_width: int = MIN_COLUMN_WIDTH,
) -> list[int]:
    """Fit column widths into *available_width*.

    Narrow columns (at most the average share) keep their natural width and
    the wide columns split whatever is left evenly. Every column is clamped
    to at least *min_width*, so a budget smaller than ``n * min_width``
    yields a table wider than requested.
    """
    if not natural_widths:
        return []
    if sum(natural_widths) <= available_width:
        return list(natural_widths)

    num_cols = len(natural_widths)
    avg = max(min_width, available_width // num_cols)
    remaining = available_width
    final = list(natural_widths)
    wide: list[int] = []

    for i, natural in enumerate(natural_widths):
        if natural <= avg:
            remaining -= natural
        else:
            wide.append(i)

    if wide:
        share = max(min_width, remaining // len(wide))
        for i in wide:
            final[i] = share

    return [max(min_width, w) for w in final]


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


def _border(widths: list[int], left: str, mid: str, right: str, color: str) -> str:
    segments = ["─" * (w + 2) for w in widths]
    line = left + mid.join(segments) + right
    return f"{color}{line}{RESET}" if color else line


def _render_row(
    cells: list[str],
    widths: list[int],
    styles: ThemeStyles,
    cell_style: str,
) -> list[str]:
    wrapped: list[list[str]] = []
    for i, w in enumerate(widths):
        text = cells[i] if i < len(cells) else ""
        # Words too long for the column are cut so the box stays closed
        cell_lines = [
            piece for line in wrap_text_with_ansi(text, w) for piece in break_to_width(line, w)
        ]
        wrapped.append(cell_lines or [""])

    height = max(len(cell_lines) for cell_lines in wrapped)
    bar = f"{styles.table_border}│{RESET}" if styles.table_border else "│"

    row_lines: list[str] = []
    for line_idx in range(height):
        parts = [bar]
        for i, w in enumerate(widths):
            cell_line = wrapped[i][line_idx] if line_idx < len(wrapped[i]) else ""
            if cell_style and cell_line:
                cell_line = f"{cell_style}{cell_line}{RESET}"
            parts.append(f" {pad_to_width(cell_line, w)} ")
            parts.append(bar)
        row_lines.append("".join(parts))
    return row_lines


def render_table(
    table: TableSpec,
    width: int,
    styles: ThemeStyles,
    format_inline: InlineFormatter | None = None,
    min_width: int = MIN_COLUMN_WIDTH,
) -> list[str]:
    """Render *table* with box-drawing borders within *width* columns.

    Cells are inline-formatted before measuring, so column widths follow
    what is shown rather than the raw markdown.
    """
    if not table.rows:
        return []

    fmt = format_inline or (lambda text: text)
    formatted = TableSpec(
        rows=[[fmt(cell) for cell in row] for row in table.rows],
        has_header=table.has_header,
    )
    widths = formatted.final_widths(width, min_width)
    color = styles.table_border

    lines = [_border(widths, "┌", "┬", "┐", color)]
    for row_idx, row in enumerate(formatted.rows):
        is_header = formatted.has_header and row_idx == 0
        lines.extend(_render_row(row, widths, styles, styles.table_header if is_header else ""))
        if is_header and len(table.rows) > 1:
            lines.append(_border(widths, "├", "┼", "┤", color))
    lines.append(_border(widths, "└", "┴", "┘", color))
    return lines
