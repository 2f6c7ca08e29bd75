"""Scrollable window over rendered chat lines."""

from __future__ import annotations


class Viewport:
    """Shows ``height`` lines of content starting at ``y_offset``."""

    def __init__(self, width: int = 0, height: int = 0) -> None:
        self.width = max(0, width)
        self.height = max(0, height)
        self.y_offset = 0
        self._lines: list[str] = []

    def set_size(self, width: int, height: int) -> None:
        self.width = max(0, width)
        self.height = max(0, height)
        self._clamp_offset()

    def set_content(self, content: str | list[str]) -> None:
        self._lines = content.split("\n") if isinstance(content, str) else list(content)
        self._clamp_offset()

    @property
    def line_count(self) -> int:
        return len(self._lines)

    @property
    def max_offset(self) -> int:
        return max(0, len(self._lines) - self.height)

    def at_bottom(self) -> bool:
        return self.y_offset >= self.max_offset

    def goto_top(self) -> None:
        self.y_offset = 0

    def goto_bottom(self) -> None:
        self.y_offset = self.max_offset

    def scroll_up(self, n: int = 1) -> None:
        self.y_offset = max(0, self.y_offset - n)

    def scroll_down(self, n: int = 1) -> None:
        self.y_offset = min(self.max_offset, self.y_offset + n)

    def _clamp_offset(self) -> None:
        self.y_offset = max(0, min(self.y_offset, self.max_offset))

    def visible_lines(self) -> list[str]:
        """Exactly ``height`` lines, padded with blanks past the content."""
        lines = self._lines[self.y_offset : self.y_offset + self.height]
        return lines + [""] * (self.height - len(lines))

    def view(self) -> str:
        return "\n".join(self.visible_lines())
