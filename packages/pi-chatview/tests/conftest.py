"""Shared fixtures: a recording clipboard, a manual clock, engine factories."""

from __future__ import annotations

from typing import Callable

import pytest

from pi.chatview.selection import SelectionEngine
from pi.chatview.theme import ThemeStyles
from pi.chatview.viewport import Viewport

# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class FakeClipboard:
    """Records copied text; set ``fail`` to simulate a broken clipboard."""

    def __init__(self) -> None:
        self.copied: list[str] = []
        self.fail = False
        self.last_error: str | None = None

    @property
    def name(self) -> str:
        return "fake"

    def copy(self, text: str) -> bool:
        if self.fail:
            self.last_error = "clipboard unavailable"
            return False
        self.copied.append(text)
        return True


class FakeClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, start: float = 100.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def fake_highlight(code: str, language: str) -> str:
    """Deterministic stand-in for the Pygments adapter."""
    return f"[{language}]{code}"


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def clipboard() -> FakeClipboard:
    return FakeClipboard()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def highlighter() -> Callable[[str, str], str]:
    return fake_highlight


@pytest.fixture
def marked_styles() -> ThemeStyles:
    """Styles with short, recognizable SGR codes."""
    return ThemeStyles(
        bold="\x1b[1m",
        italic="\x1b[3m",
        inline_code="\x1b[36m",
        link="\x1b[4m",
        tool_in_progress="\x1b[37m",
        tool_complete="\x1b[32m",
        selection="\x1b[7m",
        selection_flash="\x1b[42m",
    )


@pytest.fixture
def make_engine(
    clipboard: FakeClipboard,
    clock: FakeClock,
    marked_styles: ThemeStyles,
) -> Callable[..., SelectionEngine]:
    """Build a selection engine over the given viewport lines."""

    def _make(lines: list[str], width: int = 40, height: int = 10) -> SelectionEngine:
        viewport = Viewport(width, height)
        viewport.set_content(lines)
        return SelectionEngine(viewport, marked_styles, clipboard, clock=clock)

    return _make
