"""Tests for pi.chatview.markdown -- line classifier and inline formatting."""

from __future__ import annotations

from typing import Callable

import pytest

from pi.chatview.markdown import (
    HR_MAX_WIDTH,
    MarkdownRenderer,
    is_table_row,
    is_table_separator,
    render_inline_markdown,
    render_markdown,
)
from pi.chatview.theme import ThemeContext, ThemeStyles
from pi.chatview.utils import RESET, strip_ansi, visible_width

Highlighter = Callable[[str, str], str]


def render(content: str, width: int, highlighter: Highlighter, styles: ThemeStyles | None = None) -> list[str]:
    return render_markdown(content, width, styles, highlighter)


# ---------------------------------------------------------------------------
# Inline formatting
# ---------------------------------------------------------------------------


class TestInlineMarkdown:
    """Bold, italic, code spans, links and tool markers."""

    def test_bold(self, marked_styles: ThemeStyles) -> None:
        assert render_inline_markdown("a **b** c", marked_styles) == f"a \x1b[1mb{RESET} c"

    def test_italic(self, marked_styles: ThemeStyles) -> None:
        assert render_inline_markdown("_it_", marked_styles) == f"\x1b[3mit{RESET}"

    def test_identifier_underscores_untouched(self, marked_styles: ThemeStyles) -> None:
        assert render_inline_markdown("foo_bar_baz", marked_styles) == "foo_bar_baz"

    def test_code_span_content_not_formatted(self, marked_styles: ThemeStyles) -> None:
        result = render_inline_markdown("`**x**`", marked_styles)
        assert result == f"\x1b[36m**x**{RESET}"

    def test_link(self, marked_styles: ThemeStyles) -> None:
        result = render_inline_markdown("[label](http://x)", marked_styles)
        assert strip_ansi(result) == "label (http://x)"
        assert result.startswith("\x1b[4mlabel")

    def test_tool_markers(self, marked_styles: ThemeStyles) -> None:
        assert render_inline_markdown("done ●", marked_styles) == f"done \x1b[32m●{RESET}"
        assert render_inline_markdown("○ run", marked_styles) == f"\x1b[37m○{RESET} run"

    def test_base_style_restored_after_span(self, marked_styles: ThemeStyles) -> None:
        base = "\x1b[2m"
        result = render_inline_markdown("x **y** z", marked_styles, base)
        assert result == f"{base}x \x1b[1my{RESET}{base} z"

    def test_plain_styles_only_strip_syntax(self) -> None:
        line = "**bold** text and `code` and [label](http://x)"
        assert render_inline_markdown(line, ThemeStyles.plain()) == (
            "bold text and code and label (http://x)"
        )


# ---------------------------------------------------------------------------
# Table row detection
# ---------------------------------------------------------------------------


class TestTableDetection:
    """Pipe-row and separator classification."""

    @pytest.mark.parametrize("line", ["| a | b |", "|a|b|", "  | x | y | z |  "])
    def test_rows(self, line: str) -> None:
        assert is_table_row(line)

    @pytest.mark.parametrize("line", ["| a |", "a | b", "|", "plain"])
    def test_not_rows(self, line: str) -> None:
        assert not is_table_row(line)

    def test_separator(self) -> None:
        assert is_table_separator("|---|:---:|")
        assert is_table_separator("| --- | --- |")

    def test_separator_needs_dash(self) -> None:
        assert not is_table_separator("|   |   |")


# ---------------------------------------------------------------------------
# Block rendering
# ---------------------------------------------------------------------------


class TestRenderMarkdownBlocks:
    """Line classification into headers, lists, quotes and rules."""

    def test_paragraph_with_inline(self, highlighter: Highlighter) -> None:
        lines = render("**bold** text and `code` and [label](http://x)", 80, highlighter)
        assert lines == ["bold text and code and label (http://x)"]
        assert "**" not in lines[0]
        assert "`" not in lines[0]
        assert "](" not in lines[0]

    def test_headers_drop_hashes(self, highlighter: Highlighter) -> None:
        assert render("# Title", 80, highlighter) == ["Title"]
        assert render("#### Four", 80, highlighter) == ["Four"]

    def test_five_hashes_is_paragraph(self, highlighter: Highlighter) -> None:
        assert render("##### five", 80, highlighter) == ["##### five"]

    def test_blank_line_before_major_header(self, highlighter: Highlighter) -> None:
        assert render("para\n## Sub", 80, highlighter) == ["para", "", "Sub"]

    def test_no_blank_line_before_minor_header(self, highlighter: Highlighter) -> None:
        assert render("para\n### Three", 80, highlighter) == ["para", "Three"]

    def test_no_double_blank_before_header(self, highlighter: Highlighter) -> None:
        assert render("para\n\n# Top", 80, highlighter) == ["para", "", "Top"]

    def test_header_style(self, highlighter: Highlighter) -> None:
        styles = ThemeStyles(h1="\x1b[1;35m")
        assert render("# T", 80, highlighter, styles) == [f"\x1b[1;35mT{RESET}"]

    @pytest.mark.parametrize("rule", ["---", "***", "___"])
    def test_horizontal_rule(self, highlighter: Highlighter, rule: str) -> None:
        assert render(rule, 80, highlighter) == ["─" * HR_MAX_WIDTH]

    def test_horizontal_rule_narrow(self, highlighter: Highlighter) -> None:
        assert render("---", 10, highlighter) == ["─" * 10]

    def test_bullet_list(self, highlighter: Highlighter) -> None:
        assert render("- item one\n* item two", 80, highlighter) == [
            "  • item one",
            "  • item two",
        ]

    def test_bullet_continuation_indent(self, highlighter: Highlighter) -> None:
        assert render("- aaa bbb ccc", 10, highlighter) == ["  • aaa", "    bbb", "    ccc"]

    def test_numbered_list(self, highlighter: Highlighter) -> None:
        assert render("1. first\n10. tenth", 80, highlighter) == ["  1. first", "  10. tenth"]

    def test_numbered_continuation_indent(self, highlighter: Highlighter) -> None:
        assert render("12. aaa bbb", 10, highlighter) == ["  12. aaa", "      bbb"]

    def test_three_digit_number_is_paragraph(self, highlighter: Highlighter) -> None:
        assert render("100. big", 80, highlighter) == ["100. big"]

    def test_list_item_inline(self, highlighter: Highlighter) -> None:
        assert render("- **b** and `c`", 80, highlighter) == ["  • b and c"]

    def test_blockquote(self, highlighter: Highlighter) -> None:
        assert render("> quoted text", 80, highlighter) == ["┃ quoted text"]

    def test_blockquote_wraps_inside_bar(self, highlighter: Highlighter) -> None:
        lines = render("> aaa bbb ccc", 6, highlighter)
        assert lines == ["┃ aaa", "┃ bbb", "┃ ccc"]

    def test_blockquote_containing_list(self, highlighter: Highlighter) -> None:
        assert render("> - item", 80, highlighter) == ["┃   • item"]

    def test_trailing_blank_lines_trimmed(self, highlighter: Highlighter) -> None:
        assert render("text\n\n\n", 80, highlighter) == ["text"]

    def test_inner_blank_lines_kept(self, highlighter: Highlighter) -> None:
        assert render("a\n\nb", 80, highlighter) == ["a", "", "b"]

    def test_empty_content(self, highlighter: Highlighter) -> None:
        assert render("", 80, highlighter) == []

    def test_non_positive_width_uses_default(self, highlighter: Highlighter) -> None:
        text = " ".join(["word"] * 40)
        lines = render(text, 0, highlighter)
        assert len(lines) > 1
        assert all(visible_width(line) <= 80 for line in lines)

    def test_lines_fit_width(self, highlighter: Highlighter) -> None:
        content = (
            "# Short heading\n"
            "Some **bold** words and `code` in a paragraph that needs wrapping.\n"
            "- a list item with enough words to wrap around\n"
            "> a quote with enough words to wrap around too\n"
            "12. numbered item with enough words to wrap"
        )
        for line in render(content, 24, highlighter, ThemeContext().styles):
            assert visible_width(line) <= 24


# ---------------------------------------------------------------------------
# Code blocks
# ---------------------------------------------------------------------------


class TestCodeBlocks:
    """Fenced code goes through the highlighter untouched by markdown rules."""

    def test_fenced_block(self, highlighter: Highlighter) -> None:
        content = "intro\n```python\nx = 1\n```\noutro"
        assert render(content, 80, highlighter) == ["intro", "", "[python]x = 1", "", "outro"]

    def test_multiline_block_highlighted_once(self, highlighter: Highlighter) -> None:
        content = "```sh\necho a\necho b\n```"
        assert render(content, 80, highlighter) == ["[sh]echo a", "echo b"]

    def test_block_content_not_formatted(self, highlighter: Highlighter) -> None:
        content = "```\n**not bold**\n# not a header\n```"
        assert render(content, 80, highlighter) == ["[]**not bold**", "# not a header"]

    def test_unclosed_fence_flushed(self, highlighter: Highlighter) -> None:
        assert render("```\nabc", 80, highlighter) == ["[]abc"]

    def test_highlighter_failure_falls_back(self) -> None:
        def broken(code: str, language: str) -> str:
            raise RuntimeError("boom")

        assert render_markdown("```py\nx\n```", 80, None, broken) == ["x"]

    def test_default_highlighter_keeps_text(self) -> None:
        lines = render_markdown("```python\nprint('hi')\n```", 80)
        assert [strip_ansi(line) for line in lines] == ["print('hi')"]


# ---------------------------------------------------------------------------
# Tables
# ---------------------------------------------------------------------------


class TestTables:
    """Pipe tables inside markdown."""

    def test_table_with_header(self, highlighter: Highlighter) -> None:
        content = "| A | B |\n|---|---|\n| 1 | 2 |"
        assert render(content, 80, highlighter) == [
            "┌─────┬─────┐",
            "│ A   │ B   │",
            "├─────┼─────┤",
            "│ 1   │ 2   │",
            "└─────┴─────┘",
        ]

    def test_table_without_separator(self, highlighter: Highlighter) -> None:
        lines = render("| A | B |\n| 1 | 2 |", 80, highlighter)
        assert len(lines) == 4

    def test_table_ends_at_non_row(self, highlighter: Highlighter) -> None:
        lines = render("| A | B |\nafter", 80, highlighter)
        assert lines[-1] == "after"
        assert lines[-2].startswith("└")

    def test_lone_separator_is_paragraph(self, highlighter: Highlighter) -> None:
        assert render("|---|---|", 80, highlighter) == ["|---|---|"]

    def test_cells_get_inline_formatting(self, highlighter: Highlighter) -> None:
        lines = render("| **x** | `y` |", 80, highlighter)
        assert lines[1] == "│ x   │ y   │"

    def test_long_cell_keeps_box_closed(self, highlighter: Highlighter) -> None:
        lines = render("| a | b |\n|---|---|\n| x | " + "y" * 40 + " |", 30, highlighter)
        assert len(lines) == 6
        assert all(visible_width(line) == 30 for line in lines)

    def test_separator_after_several_rows(self, highlighter: Highlighter) -> None:
        content = "| A | B |\n| C | D |\n|---|---|\n| 1 | 2 |"
        assert render(content, 80, highlighter) == [
            "┌─────┬─────┐",
            "│ A   │ B   │",
            "└─────┴─────┘",
            "┌─────┬─────┐",
            "│ C   │ D   │",
            "├─────┼─────┤",
            "│ 1   │ 2   │",
            "└─────┴─────┘",
        ]

    def test_table_fits_width(self, highlighter: Highlighter) -> None:
        content = (
            "| Name | Description |\n"
            "|------|-------------|\n"
            "| alpha | a fairly long description of the first thing |\n"
            "| beta | short |"
        )
        lines = render(content, 30, highlighter)
        assert all(visible_width(line) == 30 for line in lines)


# ---------------------------------------------------------------------------
# MarkdownRenderer
# ---------------------------------------------------------------------------


class TestMarkdownRenderer:
    """Memoized rendering keyed on content, width and theme."""

    def test_cached_result_reused(self, highlighter: Highlighter) -> None:
        renderer = MarkdownRenderer(ThemeContext(), highlight_fn=highlighter)
        first = renderer.render("**x**", 40)
        assert renderer.render("**x**", 40) is first

    def test_width_is_part_of_key(self, highlighter: Highlighter) -> None:
        renderer = MarkdownRenderer(ThemeContext(), highlight_fn=highlighter)
        assert renderer.render("x", 40) is not renderer.render("x", 41)

    def test_theme_switch_invalidates(self, highlighter: Highlighter) -> None:
        theme = ThemeContext()
        renderer = MarkdownRenderer(theme, highlight_fn=highlighter)
        before = renderer.render("# Title", 40)
        theme.set_theme("nord")
        after = renderer.render("# Title", 40)
        assert after is not before
        assert after != before
        assert strip_ansi(after[0]) == strip_ansi(before[0]) == "Title"

    def test_invalidate(self, highlighter: Highlighter) -> None:
        renderer = MarkdownRenderer(ThemeContext(), highlight_fn=highlighter)
        first = renderer.render("x", 40)
        renderer.invalidate()
        assert renderer.render("x", 40) is not first
