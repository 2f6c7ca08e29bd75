"""Syntax highlighting for fenced code blocks.

Thin adapter around Pygments. Unknown languages fall back to the plain text
lexer, unknown styles to the default style, and any failure inside Pygments
returns the code untouched so rendering never breaks.
"""

from __future__ import annotations

import logging
from functools import lru_cache

from pygments import highlight
from pygments.formatters import Terminal256Formatter
from pygments.lexer import Lexer
from pygments.lexers import get_lexer_by_name
from pygments.lexers.special import TextLexer
from pygments.styles import get_style_by_name
from pygments.util import ClassNotFound

from pi.chatview.theme import DEFAULT_SYNTAX_STYLE

logger = logging.getLogger(__name__)


@lru_cache(maxsize=64)
def _get_lexer(language: str) -> Lexer:
    """Get a Pygments lexer for a fence language tag (cached)."""
    if not language:
        return TextLexer(stripnl=False)
    try:
        return get_lexer_by_name(language.lower(), stripnl=False)
    except ClassNotFound:
        return TextLexer(stripnl=False)


@lru_cache(maxsize=16)
def _get_formatter(style_name: str) -> Terminal256Formatter:
    """Get a 256-colour terminal formatter for *style_name* (cached)."""
    try:
        style = get_style_by_name(style_name)
    except ClassNotFound:
        style = get_style_by_name(DEFAULT_SYNTAX_STYLE)
    return Terminal256Formatter(style=style)


def highlight_code(code: str, language: str = "", style_name: str = DEFAULT_SYNTAX_STYLE) -> str:
    """Return *code* with ANSI syntax colouring.

    Args:
        code: Raw source text (may span several lines).
        language: Fence info string, e.g. ``"python"``. Empty or unknown tags
            are rendered with the plain text lexer.
        style_name: Pygments style name.

    Returns:
        Highlighted text without a trailing newline, or *code* itself if
        highlighting fails.
    """
    try:
        highlighted = highlight(code, _get_lexer(language), _get_formatter(style_name))
    except Exception:
        logger.debug("Highlighting failed for language %r", language, exc_info=True)
        return code
    if highlighted.endswith("\n") and not code.endswith("\n"):
        highlighted = highlighted[:-1]
    return highlighted


class SyntaxHighlighter:
    """Callable ``(code, language) -> str`` bound to a style name."""

    def __init__(self, style_name: str = DEFAULT_SYNTAX_STYLE) -> None:
        self.style_name = style_name

    def __call__(self, code: str, language: str) -> str:
        return highlight_code(code, language, self.style_name)
