"""Shared layout state for the chat panel.

:class:`ViewContext` is created once by the application and handed to
every component that needs panel sizes. Resize callbacks and render calls
may reach it from different sources, so all reads and writes go through a
lock.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Layout constants
# ---------------------------------------------------------------------------

HEADER_HEIGHT = 1
FOOTER_HEIGHT = 1
BORDER_SIZE = 2
SIDEBAR_WIDTH_RATIO = 3
MIN_TERMINAL_WIDTH = 40
MIN_TERMINAL_HEIGHT = 10

TEXTAREA_HEIGHT = 3
TEXTAREA_BORDER_HEIGHT = 2
INPUT_TOTAL_HEIGHT = TEXTAREA_HEIGHT + TEXTAREA_BORDER_HEIGHT


@dataclass(frozen=True)
class LayoutSnapshot:
    """A consistent copy of the computed layout."""

    terminal_width: int
    terminal_height: int
    content_height: int
    sidebar_width: int
    chat_width: int


class ViewContext:
    """Centralized layout calculations, safe to share across callers."""

    def __init__(self, width: int = 0, height: int = 0) -> None:
        self._lock = threading.Lock()
        self.header_height = HEADER_HEIGHT
        self.footer_height = FOOTER_HEIGHT
        self.terminal_width = 0
        self.terminal_height = 0
        self.content_height = 0
        self.sidebar_width = 0
        self.chat_width = 0
        if width or height:
            self.update_terminal_size(width, height)

    def update_terminal_size(self, width: int, height: int) -> LayoutSnapshot:
        """Recompute every derived dimension for a new terminal size.

        Sizes below the minimum are clamped so no derived value can go
        negative. Returns the new layout.
        """
        with self._lock:
            width = max(width, MIN_TERMINAL_WIDTH)
            height = max(height, MIN_TERMINAL_HEIGHT)

            self.terminal_width = width
            self.terminal_height = height
            self.content_height = height - self.header_height - self.footer_height
            self.sidebar_width = width // SIDEBAR_WIDTH_RATIO
            self.chat_width = width - self.sidebar_width
            snapshot = self._snapshot()

        logger.debug(
            "Terminal size updated: %dx%d content_height=%d sidebar=%d chat=%d",
            width,
            height,
            snapshot.content_height,
            snapshot.sidebar_width,
            snapshot.chat_width,
        )
        return snapshot

    def snapshot(self) -> LayoutSnapshot:
        with self._lock:
            return self._snapshot()

    def _snapshot(self) -> LayoutSnapshot:
        return LayoutSnapshot(
            terminal_width=self.terminal_width,
            terminal_height=self.terminal_height,
            content_height=self.content_height,
            sidebar_width=self.sidebar_width,
            chat_width=self.chat_width,
        )

    @staticmethod
    def inner_width(panel_width: int) -> int:
        """Usable width inside a bordered panel."""
        return panel_width - BORDER_SIZE

    @staticmethod
    def inner_height(panel_height: int) -> int:
        """Usable height inside a bordered panel."""
        return panel_height - BORDER_SIZE

    def chat_viewport_size(self) -> tuple[int, int]:
        """Width and height of the scrollable chat area inside its border."""
        with self._lock:
            width = self.inner_width(self.chat_width)
            height = self.inner_height(self.content_height - INPUT_TOTAL_HEIGHT)
        return max(0, width), max(0, height)
