"""Chat panel colour themes.

A :class:`ChatTheme` is a palette of hex colours. :class:`ThemeStyles`
turns a palette into the ANSI SGR prefixes the renderer and selection
overlay use, and :class:`ThemeContext` owns the active palette so that every
consumer shares one source of truth.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

DEFAULT_THEME = "dark-purple"
DEFAULT_SYNTAX_STYLE = "monokai"

_BOLD = "\x1b[1m"
_ITALIC = "\x1b[3m"
_UNDERLINE = "\x1b[4m"


def _rgb(hex_color: str) -> tuple[int, int, int]:
    value = hex_color.lstrip("#")
    return int(value[0:2], 16), int(value[2:4], 16), int(value[4:6], 16)


def fg(hex_color: str) -> str:
    """Return a 24-bit foreground SGR sequence for *hex_color*."""
    r, g, b = _rgb(hex_color)
    return f"\x1b[38;2;{r};{g};{b}m"


def bg(hex_color: str) -> str:
    """Return a 24-bit background SGR sequence for *hex_color*."""
    r, g, b = _rgb(hex_color)
    return f"\x1b[48;2;{r};{g};{b}m"


# ---------------------------------------------------------------------------
# ChatTheme
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ChatTheme:
    """A named colour palette for the chat panel."""

    name: str
    primary: str
    secondary: str
    bg: str
    text: str
    text_muted: str
    text_inverse: str
    warning: str
    error: str
    border: str
    diff_added: str
    diff_removed: str
    diff_header: str
    diff_hunk: str
    markdown_h1: str
    markdown_h2: str
    markdown_h3: str
    markdown_code: str
    markdown_code_bg: str
    markdown_link: str
    markdown_list_item: str
    syntax_style: str = DEFAULT_SYNTAX_STYLE


BUILTIN_THEMES: dict[str, ChatTheme] = {
    "dark-purple": ChatTheme(
        name="Dark Purple",
        primary="#7C3AED",
        secondary="#06B6D4",
        bg="#1F2937",
        text="#F9FAFB",
        text_muted="#9CA3AF",
        text_inverse="#1F2937",
        warning="#F59E0B",
        error="#EF4444",
        border="#374151",
        diff_added="#4ADE80",
        diff_removed="#F87171",
        diff_header="#60A5FA",
        diff_hunk="#C084FC",
        markdown_h1="#A78BFA",
        markdown_h2="#C4B5FD",
        markdown_h3="#22D3EE",
        markdown_code="#67E8F9",
        markdown_code_bg="#1E1E2E",
        markdown_link="#67E8F9",
        markdown_list_item="#06B6D4",
        syntax_style="monokai",
    ),
    "nord": ChatTheme(
        name="Nord",
        primary="#88C0D0",
        secondary="#81A1C1",
        bg="#2E3440",
        text="#ECEFF4",
        text_muted="#D8DEE9",
        text_inverse="#2E3440",
        warning="#EBCB8B",
        error="#BF616A",
        border="#4C566A",
        diff_added="#A3BE8C",
        diff_removed="#BF616A",
        diff_header="#81A1C1",
        diff_hunk="#B48EAD",
        markdown_h1="#88C0D0",
        markdown_h2="#81A1C1",
        markdown_h3="#5E81AC",
        markdown_code="#A3BE8C",
        markdown_code_bg="#242933",
        markdown_link="#88C0D0",
        markdown_list_item="#81A1C1",
        syntax_style="nord",
    ),
    "dracula": ChatTheme(
        name="Dracula",
        primary="#BD93F9",
        secondary="#8BE9FD",
        bg="#282A36",
        text="#F8F8F2",
        text_muted="#6272A4",
        text_inverse="#282A36",
        warning="#FFB86C",
        error="#FF5555",
        border="#44475A",
        diff_added="#50FA7B",
        diff_removed="#FF5555",
        diff_header="#8BE9FD",
        diff_hunk="#BD93F9",
        markdown_h1="#BD93F9",
        markdown_h2="#FF79C6",
        markdown_h3="#8BE9FD",
        markdown_code="#50FA7B",
        markdown_code_bg="#21222C",
        markdown_link="#8BE9FD",
        markdown_list_item="#BD93F9",
        syntax_style="dracula",
    ),
    "gruvbox": ChatTheme(
        name="Gruvbox Dark",
        primary="#FE8019",
        secondary="#83A598",
        bg="#282828",
        text="#EBDBB2",
        text_muted="#A89984",
        text_inverse="#282828",
        warning="#FE8019",
        error="#FB4934",
        border="#504945",
        diff_added="#B8BB26",
        diff_removed="#FB4934",
        diff_header="#83A598",
        diff_hunk="#D3869B",
        markdown_h1="#FE8019",
        markdown_h2="#FABD2F",
        markdown_h3="#83A598",
        markdown_code="#B8BB26",
        markdown_code_bg="#1D2021",
        markdown_link="#83A598",
        markdown_list_item="#FE8019",
        syntax_style="gruvbox-dark",
    ),
    "tokyo-night": ChatTheme(
        name="Tokyo Night",
        primary="#7AA2F7",
        secondary="#BB9AF7",
        bg="#1A1B26",
        text="#C0CAF5",
        text_muted="#565F89",
        text_inverse="#1A1B26",
        warning="#E0AF68",
        error="#F7768E",
        border="#3B4261",
        diff_added="#9ECE6A",
        diff_removed="#F7768E",
        diff_header="#7AA2F7",
        diff_hunk="#BB9AF7",
        markdown_h1="#7AA2F7",
        markdown_h2="#BB9AF7",
        markdown_h3="#7DCFFF",
        markdown_code="#9ECE6A",
        markdown_code_bg="#16161E",
        markdown_link="#7DCFFF",
        markdown_list_item="#BB9AF7",
        syntax_style="one-dark",
    ),
    "catppuccin": ChatTheme(
        name="Catppuccin Mocha",
        primary="#CBA6F7",
        secondary="#89DCEB",
        bg="#1E1E2E",
        text="#CDD6F4",
        text_muted="#6C7086",
        text_inverse="#1E1E2E",
        warning="#FAB387",
        error="#F38BA8",
        border="#313244",
        diff_added="#A6E3A1",
        diff_removed="#F38BA8",
        diff_header="#89DCEB",
        diff_hunk="#CBA6F7",
        markdown_h1="#CBA6F7",
        markdown_h2="#F5C2E7",
        markdown_h3="#89DCEB",
        markdown_code="#A6E3A1",
        markdown_code_bg="#181825",
        markdown_link="#89DCEB",
        markdown_list_item="#CBA6F7",
        syntax_style="material",
    ),
    "science-fiction": ChatTheme(
        name="Science Fiction",
        primary="#E50914",
        secondary="#8B0000",
        bg="#0A0A0A",
        text="#E8E8E8",
        text_muted="#666666",
        text_inverse="#0A0A0A",
        warning="#FF6600",
        error="#FF0000",
        border="#330000",
        diff_added="#00AA00",
        diff_removed="#FF4444",
        diff_header="#E50914",
        diff_hunk="#8B0000",
        markdown_h1="#E50914",
        markdown_h2="#CC0000",
        markdown_h3="#AA0000",
        markdown_code="#FF6666",
        markdown_code_bg="#1A0000",
        markdown_link="#FF4444",
        markdown_list_item="#E50914",
        syntax_style="fruity",
    ),
    "light": ChatTheme(
        name="Light",
        primary="#6366F1",
        secondary="#0891B2",
        bg="#FFFFFF",
        text="#1F2937",
        text_muted="#6B7280",
        text_inverse="#FFFFFF",
        warning="#D97706",
        error="#DC2626",
        border="#D1D5DB",
        diff_added="#16A34A",
        diff_removed="#DC2626",
        diff_header="#2563EB",
        diff_hunk="#7C3AED",
        markdown_h1="#6366F1",
        markdown_h2="#7C3AED",
        markdown_h3="#0891B2",
        markdown_code="#059669",
        markdown_code_bg="#F3F4F6",
        markdown_link="#0891B2",
        markdown_list_item="#6366F1",
        syntax_style="friendly",
    ),
}


def theme_names() -> list[str]:
    """Return the built-in theme identifiers in display order."""
    return list(BUILTIN_THEMES)


def get_theme(name: str) -> ChatTheme:
    """Look up a built-in theme, falling back to the default palette."""
    theme = BUILTIN_THEMES.get(name)
    if theme is None:
        logger.debug("Unknown theme %r, using %s", name, DEFAULT_THEME)
        return BUILTIN_THEMES[DEFAULT_THEME]
    return theme


# ---------------------------------------------------------------------------
# ThemeStyles
# ---------------------------------------------------------------------------


@dataclass
class ThemeStyles:
    """ANSI SGR prefixes derived from a :class:`ChatTheme`.

    Every field is a string of escape codes to place before styled text;
    callers close spans with a reset.
    """

    h1: str = ""
    h2: str = ""
    h3: str = ""
    h4: str = ""
    bold: str = ""
    italic: str = ""
    inline_code: str = ""
    list_bullet: str = ""
    blockquote: str = ""
    blockquote_bar: str = ""
    hr: str = ""
    link: str = ""
    table_border: str = ""
    table_header: str = ""
    tool_in_progress: str = ""
    tool_complete: str = ""
    diff_added: str = ""
    diff_removed: str = ""
    diff_header: str = ""
    diff_hunk: str = ""
    user_label: str = ""
    assistant_label: str = ""
    muted: str = ""
    selection: str = ""
    selection_flash: str = ""
    syntax_style: str = DEFAULT_SYNTAX_STYLE

    @classmethod
    def from_theme(cls, theme: ChatTheme) -> ThemeStyles:
        return cls(
            h1=_BOLD + fg(theme.markdown_h1),
            h2=_BOLD + fg(theme.markdown_h2),
            h3=_BOLD + fg(theme.markdown_h3),
            h4=_BOLD + fg(theme.text_muted),
            bold=_BOLD + fg(theme.text),
            italic=_ITALIC + fg(theme.text),
            inline_code=fg(theme.markdown_code) + bg(theme.markdown_code_bg),
            list_bullet=fg(theme.markdown_list_item),
            blockquote=_ITALIC + fg(theme.text_muted),
            blockquote_bar=fg(theme.border),
            hr=fg(theme.border),
            link=_UNDERLINE + fg(theme.markdown_link),
            table_border=fg(theme.border),
            table_header=_BOLD + fg(theme.markdown_h3),
            tool_in_progress=fg(theme.text),
            tool_complete=fg(theme.secondary),
            diff_added=fg(theme.diff_added),
            diff_removed=fg(theme.diff_removed),
            diff_header=_BOLD + fg(theme.diff_header),
            diff_hunk=fg(theme.diff_hunk),
            user_label=_BOLD + fg(theme.secondary),
            assistant_label=_BOLD + fg(theme.primary),
            muted=fg(theme.text_muted),
            selection=fg(theme.text_inverse) + bg(theme.primary),
            selection_flash=fg(theme.text_inverse) + bg(theme.secondary),
            syntax_style=theme.syntax_style,
        )

    @classmethod
    def plain(cls) -> ThemeStyles:
        """Styles with no escape codes, handy for asserting on layout."""
        return cls()


# ---------------------------------------------------------------------------
# ThemeContext
# ---------------------------------------------------------------------------


@dataclass
class ThemeContext:
    """Owns the active theme and its derived styles.

    Constructed once and shared by reference. :meth:`set_theme` regenerates
    ``styles`` in place and bumps ``version`` so render caches keyed on it
    are invalidated.
    """

    theme: ChatTheme = field(default_factory=lambda: BUILTIN_THEMES[DEFAULT_THEME])
    styles: ThemeStyles = field(init=False)
    version: int = field(default=0, init=False)

    def __post_init__(self) -> None:
        self.styles = ThemeStyles.from_theme(self.theme)

    @classmethod
    def named(cls, name: str, syntax_style: str | None = None) -> ThemeContext:
        ctx = cls(get_theme(name))
        if syntax_style:
            ctx.styles.syntax_style = syntax_style
        return ctx

    def set_theme(self, name: str, syntax_style: str | None = None) -> None:
        self.theme = get_theme(name)
        self._rebuild(syntax_style)
        logger.debug("Theme switched to %s (version %d)", self.theme.name, self.version)

    def set_syntax_style(self, syntax_style: str | None) -> None:
        """Change only the code palette; ``None`` goes back to the theme's."""
        self._rebuild(syntax_style)

    def _rebuild(self, syntax_style: str | None) -> None:
        new_styles = ThemeStyles.from_theme(self.theme)
        if syntax_style:
            new_styles.syntax_style = syntax_style
        # Update in place so holders of ``styles`` see the change
        self.styles.__dict__.update(new_styles.__dict__)
        self.version += 1
