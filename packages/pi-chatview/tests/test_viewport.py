"""Tests for pi.chatview.viewport -- the scrollable line window."""

from __future__ import annotations

from pi.chatview.viewport import Viewport


def numbered(n: int) -> list[str]:
    return [f"line {i}" for i in range(n)]


class TestViewport:
    """Scrolling and padding."""

    def test_pads_to_height(self) -> None:
        vp = Viewport(10, 4)
        vp.set_content("a\nb")
        assert vp.visible_lines() == ["a", "b", "", ""]
        assert vp.view() == "a\nb\n\n"

    def test_scroll_bounds(self) -> None:
        vp = Viewport(10, 3)
        vp.set_content(numbered(10))
        vp.scroll_down(100)
        assert vp.y_offset == vp.max_offset == 7
        assert vp.at_bottom()
        vp.scroll_up(2)
        assert vp.visible_lines() == ["line 5", "line 6", "line 7"]
        vp.scroll_up(100)
        assert vp.y_offset == 0

    def test_goto(self) -> None:
        vp = Viewport(10, 3)
        vp.set_content(numbered(5))
        vp.goto_bottom()
        assert vp.visible_lines()[-1] == "line 4"
        vp.goto_top()
        assert vp.visible_lines()[0] == "line 0"

    def test_shrinking_content_clamps_offset(self) -> None:
        vp = Viewport(10, 2)
        vp.set_content(numbered(10))
        vp.goto_bottom()
        vp.set_content(numbered(3))
        assert vp.y_offset == 1

    def test_negative_size_clamped(self) -> None:
        vp = Viewport(-3, -1)
        assert (vp.width, vp.height) == (0, 0)
        assert vp.view() == ""
