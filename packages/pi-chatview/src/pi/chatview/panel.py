"""Chat panel: rendered messages in a scrollable viewport with mouse selection.

:class:`ChatView` ties the markdown renderer, viewport and selection engine
together. It does not own sessions or streaming itself; the application
pushes messages and streaming text in and forwards mouse events.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Literal

from pi.chatview.clipboard import ClipboardProvider, create_provider
from pi.chatview.context import INPUT_TOTAL_HEIGHT, ViewContext
from pi.chatview.markdown import MarkdownRenderer, SyntaxHighlightFn
from pi.chatview.selection import CopyResult, MouseEvent, SelectionEngine
from pi.chatview.settings import ChatViewSettings
from pi.chatview.theme import ThemeContext, theme_names
from pi.chatview.utils import RESET
from pi.chatview.viewport import Viewport

logger = logging.getLogger(__name__)

PANEL_BORDER_WIDTH = 1

NO_SESSION_TEXT = "No session selected"
EMPTY_SESSION_TEXT = "Start a conversation..."


@dataclass
class ChatMessage:
    role: Literal["user", "assistant"]
    content: str


class ChatView:
    """Renders a conversation and handles text selection over it."""

    def __init__(
        self,
        theme: ThemeContext,
        view_context: ViewContext,
        settings: ChatViewSettings | None = None,
        *,
        clipboard: ClipboardProvider | None = None,
        highlight_fn: SyntaxHighlightFn | None = None,
        assistant_name: str = "Claude",
        on_change: Callable[[], None] | None = None,
    ) -> None:
        self.theme = theme
        self.view_context = view_context
        self.settings = settings or ChatViewSettings.in_memory()
        if settings is not None:
            # Configured theme wins over whatever the context was built with
            theme.set_theme(settings.get_theme(), settings.get_syntax_style())
        self.assistant_name = assistant_name
        self.viewport = Viewport()
        self.renderer = MarkdownRenderer(
            theme,
            highlight_fn=highlight_fn,
            min_column_width=self.settings.get_min_column_width(),
        )

        selection_settings = self.settings.get_selection_settings()
        self.selection = SelectionEngine(
            self.viewport,
            theme.styles,
            clipboard if clipboard is not None else create_provider(
                self.settings.get_clipboard_mechanism()
            ),
            double_click_threshold=selection_settings.double_click_ms / 1000,
            click_tolerance=selection_settings.click_tolerance,
            flash_interval=selection_settings.flash_ms / 1000,
            on_change=on_change,
        )

        self.messages: list[ChatMessage] = []
        self.streaming = ""
        self.has_session = False

    # -- layout --------------------------------------------------------------

    def set_size(self, width: int, height: int) -> None:
        """Size the panel, including its border and the input area below it."""
        inner_width = self.view_context.inner_width(width)
        viewport_height = max(1, self.view_context.inner_height(height - INPUT_TOTAL_HEIGHT))
        self.viewport.set_size(inner_width, viewport_height)
        logger.debug("Chat viewport: w=%d, h=%d", self.viewport.width, self.viewport.height)
        self.update_content()

    def sync_layout(self) -> None:
        """Pick up the chat area size from the shared layout context."""
        snapshot = self.view_context.snapshot()
        self.set_size(snapshot.chat_width, snapshot.content_height)

    # -- content -------------------------------------------------------------

    def set_messages(self, messages: list[ChatMessage]) -> None:
        """Replace the conversation, keeping any selection in place."""
        self.has_session = True
        self.messages = list(messages)
        self.update_content()

    def switch_session(self, messages: list[ChatMessage]) -> None:
        self.selection.selection_clear()
        self.selection.state.flash_frame = -1
        self.streaming = ""
        self.set_messages(messages)

    def clear_session(self) -> None:
        self.selection.selection_clear()
        self.has_session = False
        self.messages = []
        self.streaming = ""
        self.update_content()

    def add_message(self, message: ChatMessage) -> None:
        self.messages.append(message)
        self.update_content()

    def append_streaming(self, chunk: str) -> None:
        self.streaming += chunk
        self.update_content()

    def finish_streaming(self) -> None:
        """Turn the streamed text into a finished assistant message."""
        if self.streaming:
            self.messages.append(ChatMessage("assistant", self.streaming))
        self.streaming = ""
        self.update_content()

    def set_theme(self, name: str) -> None:
        """Switch palettes and remember the choice in settings."""
        if name not in theme_names():
            logger.warning("Unknown theme %r, keeping %s", name, self.theme.theme.name)
            return
        self.settings.set_theme(name)
        self.theme.set_theme(name, self.settings.get_syntax_style())
        self.update_content()

    def set_syntax_style(self, style: str | None) -> None:
        """Override the theme's code palette; ``None`` restores the theme's own."""
        self.settings.set_syntax_style(style)
        self.theme.set_syntax_style(style)
        self.update_content()

    def set_double_click_ms(self, ms: int) -> None:
        self.settings.set_double_click_ms(ms)
        self.selection.double_click_threshold = (
            self.settings.get_selection_settings().double_click_ms / 1000
        )

    def _label(self, role: str) -> str:
        styles = self.theme.styles
        if role == "user":
            style, name = styles.user_label, "You"
        else:
            style, name = styles.assistant_label, self.assistant_name
        return f"{style}{name}:{RESET}" if style else f"{name}:"

    def _muted(self, text: str) -> str:
        style = self.theme.styles.muted
        return f"{style}{text}{RESET}" if style else text

    def render_lines(self) -> list[str]:
        """All content lines for the current conversation state."""
        width = self.viewport.width
        if width <= 0:
            width = self.settings.get_default_wrap_width()

        if not self.has_session:
            return [self._muted(NO_SESSION_TEXT)]
        if not self.messages and not self.streaming:
            return [self._muted(EMPTY_SESSION_TEXT)]

        entries = [(m.role, m.content) for m in self.messages]
        if self.streaming:
            entries.append(("assistant", self.streaming))

        lines: list[str] = []
        for role, content in entries:
            if lines:
                lines.append("")
            lines.append(self._label(role))
            lines.extend(self.renderer.render(content.strip(), width))
        return lines

    def update_content(self) -> None:
        self.viewport.set_content(self.render_lines())
        self.viewport.goto_bottom()

    # -- input ---------------------------------------------------------------

    def handle_mouse(self, event: MouseEvent) -> CopyResult | None:
        """Handle a mouse event in panel coordinates (border included)."""
        inner = MouseEvent(
            event.x - PANEL_BORDER_WIDTH,
            event.y - PANEL_BORDER_WIDTH,
            event.action,
        )
        return self.selection.handle_mouse(inner)

    def handle_flash_tick(self) -> bool:
        return self.selection.handle_flash_tick()

    # -- output --------------------------------------------------------------

    def view(self) -> str:
        return self.selection.selection_view(self.viewport.view())
