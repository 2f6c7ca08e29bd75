"""pi-chatview: markdown rendering and mouse selection for terminal chat panels."""

# Layout context
from pi.chatview.context import LayoutSnapshot, ViewContext

# Diff colouring
from pi.chatview.diff import highlight_diff

# Syntax highlighting
from pi.chatview.highlight import SyntaxHighlighter, highlight_code

# Markdown
from pi.chatview.markdown import (
    DEFAULT_WRAP_WIDTH,
    TOOL_USE_COMPLETE,
    TOOL_USE_IN_PROGRESS,
    MarkdownRenderer,
    render_inline_markdown,
    render_markdown,
)

# Chat panel
from pi.chatview.panel import ChatMessage, ChatView

# Selection
from pi.chatview.selection import (
    CopyResult,
    MouseEvent,
    SelectionEngine,
    TextSelection,
    byte_offset_to_column,
    column_to_byte_offset,
)

# Settings
from pi.chatview.settings import ChatViewSettings, SelectionSettings

# Tables
from pi.chatview.table import MIN_COLUMN_WIDTH, TableSpec, distribute_table_columns, render_table

# Themes
from pi.chatview.theme import (
    BUILTIN_THEMES,
    ChatTheme,
    ThemeContext,
    ThemeStyles,
    get_theme,
    theme_names,
)

# Utilities
from pi.chatview.utils import strip_ansi, visible_width, wrap_text_with_ansi

__all__ = [
    # Context
    "LayoutSnapshot",
    "ViewContext",
    # Diff
    "highlight_diff",
    # Highlight
    "SyntaxHighlighter",
    "highlight_code",
    # Markdown
    "DEFAULT_WRAP_WIDTH",
    "TOOL_USE_COMPLETE",
    "TOOL_USE_IN_PROGRESS",
    "MarkdownRenderer",
    "render_inline_markdown",
    "render_markdown",
    # Panel
    "ChatMessage",
    "ChatView",
    # Selection
    "CopyResult",
    "MouseEvent",
    "SelectionEngine",
    "TextSelection",
    "byte_offset_to_column",
    "column_to_byte_offset",
    # Settings
    "ChatViewSettings",
    "SelectionSettings",
    # Tables
    "MIN_COLUMN_WIDTH",
    "TableSpec",
    "distribute_table_columns",
    "render_table",
    # Themes
    "BUILTIN_THEMES",
    "ChatTheme",
    "ThemeContext",
    "ThemeStyles",
    "get_theme",
    "theme_names",
    # Utils
    "strip_ansi",
    "visible_width",
    "wrap_text_with_ansi",
]
