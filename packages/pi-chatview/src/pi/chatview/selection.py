"""Mouse text selection over the rendered chat viewport.

Selection coordinates are visual cells relative to the viewport's top-left
corner: a column is a terminal cell, not a character or byte index. Lines
are read from the viewport's current view with ANSI codes stripped, so the
cells a user sees are exactly the cells that get selected.

Columns map to UTF-8 byte offsets by walking grapheme clusters and summing
their widths. A column inside a wide glyph resolves to the glyph's first
byte, so ``column -> byte -> column`` lands on the glyph's left edge.

Nothing here raises on bad geometry: negative or out-of-range coordinates
and reversed drags are treated as "no selection" or ignored.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, Literal

import grapheme
from uniseg.wordbreak import words

from pi.chatview.animation import SELECTION_FLASH_INTERVAL, TickScheduler
from pi.chatview.clipboard import ClipboardProvider
from pi.chatview.theme import ThemeStyles
from pi.chatview.utils import grapheme_width, strip_ansi, style_columns, visible_width
from pi.chatview.viewport import Viewport

logger = logging.getLogger(__name__)

DOUBLE_CLICK_THRESHOLD = 0.5  # seconds
CLICK_TOLERANCE = 2  # cells

MouseAction = Literal["click", "motion", "release"]


# ---------------------------------------------------------------------------
# Column <-> byte mapping
# ---------------------------------------------------------------------------


def column_to_byte_offset(s: str, col: int) -> int:
    """UTF-8 byte offset of the grapheme covering visual column *col*.

    Columns at or before 0 map to 0; columns past the end map to the byte
    length of *s*.
    """
    if col <= 0:
        return 0

    current_col = 0
    byte_offset = 0
    for g in grapheme.graphemes(s):
        w = grapheme_width(g)
        if current_col + w > col:
            return byte_offset
        current_col += w
        byte_offset += len(g.encode("utf-8"))
    return byte_offset


def byte_offset_to_column(s: str, offset: int) -> int:
    """Visual column at which the grapheme containing byte *offset* starts."""
    if offset <= 0:
        return 0
    if offset >= len(s.encode("utf-8")):
        return visible_width(s)

    current_col = 0
    byte_pos = 0
    for g in grapheme.graphemes(s):
        if byte_pos >= offset:
            return current_col
        current_col += grapheme_width(g)
        byte_pos += len(g.encode("utf-8"))
    return current_col


def _slice_columns(line: str, start_col: int, end_col: int) -> str:
    data = line.encode("utf-8")
    start = column_to_byte_offset(line, start_col)
    end = column_to_byte_offset(line, end_col)
    if start >= end:
        return ""
    return data[start:end].decode("utf-8", errors="ignore")


# ---------------------------------------------------------------------------
# State
# ---------------------------------------------------------------------------


@dataclass
class TextSelection:
    """Selection coordinates plus click tracking and flash animation state.

    Coordinates are either all -1 (no selection) or all non-negative.
    ``flash_frame`` is -1 when idle, 0 while the copy flash is visible and
    1 or more once it has finished.
    """

    start_col: int = -1
    start_line: int = -1
    end_col: int = -1
    end_line: int = -1
    active: bool = False
    last_click_time: float | None = None
    last_click_x: int = 0
    last_click_y: int = 0
    click_count: int = 0
    flash_frame: int = -1


@dataclass(frozen=True)
class CopyResult:
    """Outcome of writing the selection to the clipboard."""

    text: str
    ok: bool
    error: str | None = None


@dataclass(frozen=True)
class MouseEvent:
    """A mouse event in viewport cell coordinates."""

    x: int
    y: int
    action: MouseAction


# ---------------------------------------------------------------------------
# SelectionEngine
# ---------------------------------------------------------------------------


class SelectionEngine:
    """Click, drag, copy and highlight over a :class:`Viewport`."""

    def __init__(
        self,
        viewport: Viewport,
        styles: ThemeStyles,
        clipboard: ClipboardProvider | None = None,
        scheduler: TickScheduler | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
        double_click_threshold: float = DOUBLE_CLICK_THRESHOLD,
        click_tolerance: int = CLICK_TOLERANCE,
        flash_interval: float = SELECTION_FLASH_INTERVAL,
        on_change: Callable[[], None] | None = None,
    ) -> None:
        self.viewport = viewport
        self.styles = styles
        self.clipboard = clipboard
        self.scheduler = scheduler or TickScheduler(flash_interval, self.handle_flash_tick)
        self.state = TextSelection()
        self._clock = clock
        self.double_click_threshold = double_click_threshold
        self._click_tolerance = click_tolerance
        self._on_change = on_change

    # -- state transitions ----------------------------------------------------

    def start_selection(self, col: int, line: int) -> None:
        s = self.state
        col, line = max(0, col), max(0, line)
        s.start_col = s.end_col = col
        s.start_line = s.end_line = line
        s.active = True

    def end_selection(self, col: int, line: int) -> None:
        """Move the end of an in-progress drag; ignored when not dragging."""
        if not self.state.active:
            return
        self.state.end_col = max(0, col)
        self.state.end_line = max(0, line)

    def selection_stop(self) -> None:
        """Finish the drag but keep the selection visible."""
        self.state.active = False

    def selection_clear(self) -> None:
        s = self.state
        s.start_col = s.start_line = s.end_col = s.end_line = -1
        s.active = False

    def has_text_selection(self) -> bool:
        s = self.state
        if min(s.start_col, s.start_line, s.end_col, s.end_line) < 0:
            return False
        return (s.start_col, s.start_line) != (s.end_col, s.end_line)

    @property
    def is_flashing(self) -> bool:
        return self.state.flash_frame >= 0

    def selection_area(self) -> tuple[int, int, int, int]:
        """Return ``(start_col, start_line, end_col, end_line)`` in reading order."""
        s = self.state
        start_col, start_line, end_col, end_line = s.start_col, s.start_line, s.end_col, s.end_line
        if (start_line, start_col) > (end_line, end_col):
            start_col, end_col = end_col, start_col
            start_line, end_line = end_line, start_line
        return start_col, start_line, end_col, end_line

    # -- mouse ----------------------------------------------------------------

    def handle_mouse_click(self, x: int, y: int) -> CopyResult | None:
        """Single click starts a drag, double selects a word, triple a paragraph.

        Double and triple clicks copy immediately. Returns the copy outcome
        when a copy happened.
        """
        s = self.state
        now = self._clock()
        if (
            s.last_click_time is not None
            and now - s.last_click_time <= self.double_click_threshold
            and abs(x - s.last_click_x) <= self._click_tolerance
            and abs(y - s.last_click_y) <= self._click_tolerance
        ):
            s.click_count += 1
        else:
            s.click_count = 1

        s.last_click_time = now
        s.last_click_x = x
        s.last_click_y = y

        if s.click_count == 1:
            self.start_selection(x, y)
        elif s.click_count == 2:
            self.select_word(x, y)
            return self.copy_selected_text()
        elif s.click_count == 3:
            self.select_paragraph(x, y)
            s.click_count = 0
            return self.copy_selected_text()
        return None

    def handle_mouse(self, event: MouseEvent) -> CopyResult | None:
        """Dispatch a viewport-relative mouse event."""
        if event.action == "click":
            return self.handle_mouse_click(event.x, event.y)
        if event.action == "motion":
            self.end_selection(event.x, event.y)
            return None
        if event.action == "release":
            was_dragging = self.state.active
            self.selection_stop()
            # Multi-clicks have already copied their selection
            if was_dragging and self.has_text_selection():
                return self.copy_selected_text()
        return None

    # -- word / paragraph -------------------------------------------------------

    def _lines(self) -> list[str]:
        return self.viewport.view().split("\n")

    def select_word(self, col: int, line: int) -> None:
        """Select the Unicode word under ``(col, line)``."""
        lines = self._lines()
        if line < 0 or line >= len(lines) or col < 0:
            return

        text = strip_ansi(lines[line])
        if col >= visible_width(text):
            return

        click_byte = column_to_byte_offset(text, col)
        start_col = 0
        byte_pos = 0
        for word in words(text):
            word_bytes = len(word.encode("utf-8"))
            end_col = start_col + visible_width(word)
            if byte_pos + word_bytes > click_byte:
                self._set_selection(start_col, line, end_col, line)
                return
            byte_pos += word_bytes
            start_col = end_col

    def select_paragraph(self, col: int, line: int) -> None:
        """Select the block of non-blank lines around *line*."""
        lines = self._lines()
        if line < 0 or line >= len(lines) or col < 0:
            return

        def _blank(idx: int) -> bool:
            return not strip_ansi(lines[idx]).strip()

        start_line = line
        while start_line > 0 and not _blank(start_line - 1):
            start_line -= 1
        end_line = line
        while end_line < len(lines) - 1 and not _blank(end_line + 1):
            end_line += 1

        last_width = visible_width(strip_ansi(lines[end_line]))
        self._set_selection(0, start_line, last_width, end_line)

    def _set_selection(self, start_col: int, start_line: int, end_col: int, end_line: int) -> None:
        s = self.state
        s.start_col, s.start_line = start_col, start_line
        s.end_col, s.end_line = end_col, end_line
        s.active = False

    # -- extraction and copy ------------------------------------------------------

    def get_selected_text(self) -> str:
        """Plain text under the selection, stripped of surrounding whitespace."""
        if not self.has_text_selection():
            return ""

        lines = self._lines()
        start_col, start_line, end_col, end_line = self.selection_area()
        parts: list[str] = []
        for y in range(start_line, min(end_line + 1, len(lines))):
            text = strip_ansi(lines[y])
            width = visible_width(text)
            line_start = start_col if y == start_line else 0
            line_end = end_col if y == end_line else width
            line_start = max(0, line_start)
            line_end = min(line_end, width)
            line_start = min(line_start, line_end)
            parts.append(_slice_columns(text, line_start, line_end))
        return "\n".join(parts).strip()

    def copy_selected_text(self) -> CopyResult | None:
        """Copy the selection and start the flash animation.

        Returns ``None`` when there is nothing to copy.
        """
        if not self.has_text_selection():
            return None
        text = self.get_selected_text()
        if not text:
            return None

        self.state.flash_frame = 0
        ok, error = self._write_clipboard(text)
        self.scheduler.start()
        self._changed()
        return CopyResult(text=text, ok=ok, error=error)

    def _write_clipboard(self, text: str) -> tuple[bool, str | None]:
        if self.clipboard is None:
            return False, "no clipboard configured"
        try:
            ok = self.clipboard.copy(text)
        except Exception as e:
            logger.error("Failed to write to clipboard: %s", e)
            return False, str(e)
        if ok:
            return True, None
        error = getattr(self.clipboard, "last_error", None) or f"{self.clipboard.name} copy failed"
        logger.error("Failed to write to clipboard: %s", error)
        return False, error

    def handle_flash_tick(self) -> bool:
        """Advance the copy flash. Returns whether another tick is needed."""
        s = self.state
        if s.flash_frame < 0:
            return False
        s.flash_frame += 1
        if s.flash_frame > 0:
            self.selection_clear()
            s.flash_frame = -1
        self._changed()
        return s.flash_frame >= 0

    def _changed(self) -> None:
        if self._on_change is not None:
            self._on_change()

    # -- rendering ---------------------------------------------------------------

    def selection_view(self, view: str) -> str:
        """Overlay the selection highlight onto a rendered viewport frame."""
        if not self.has_text_selection():
            return view
        width, height = self.viewport.width, self.viewport.height
        if width <= 0 or height <= 0:
            return view

        style = self.styles.selection_flash if self.is_flashing else self.styles.selection
        start_col, start_line, end_col, end_line = self.selection_area()
        lines = view.split("\n")

        for y in range(start_line, min(end_line + 1, height, len(lines))):
            if y == start_line and y == end_line:
                x_start, x_end = start_col, end_col
            elif y == start_line:
                x_start, x_end = start_col, width
            elif y == end_line:
                x_start, x_end = 0, end_col
            else:
                x_start, x_end = 0, width
            x_end = min(x_end, width)
            if x_start < x_end:
                lines[y] = style_columns(lines[y], x_start, x_end, style)

        return "\n".join(lines)
