"""Chat view settings with JSON persistence.

Global settings live in ``~/.pi/chatview.json`` and project settings in
``<cwd>/.pi/chatview.json``; project values win. Only keys changed in this
session are written back, so edits made by other processes survive.
"""

from __future__ import annotations

import json
import logging
import os
from copy import deepcopy
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from pi.chatview.theme import DEFAULT_THEME

logger = logging.getLogger(__name__)

CONFIG_DIR_NAME = ".pi"
SETTINGS_FILE_NAME = "chatview.json"
THEME_ENV_VAR = "PI_CHATVIEW_THEME"

DEFAULT_DOUBLE_CLICK_MS = 500
DEFAULT_CLICK_TOLERANCE = 2
DEFAULT_FLASH_MS = 150
DEFAULT_WRAP_WIDTH = 80
DEFAULT_MIN_COLUMN_WIDTH = 3
DEFAULT_CLIPBOARD = "auto"
CLIPBOARD_MECHANISMS = ("auto", "osc52", "native")


# --- Settings schema ---


@dataclass
class SelectionSettings:
    """Mouse selection timing and tolerance."""

    double_click_ms: int = DEFAULT_DOUBLE_CLICK_MS
    click_tolerance: int = DEFAULT_CLICK_TOLERANCE
    flash_ms: int = DEFAULT_FLASH_MS


def deep_merge_settings(base: dict[str, Any], overrides: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge *overrides* into *base*; ``None`` values are skipped."""
    merged = dict(base)
    for key, value in overrides.items():
        if value is None:
            continue
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = deep_merge_settings(current, value)
        else:
            merged[key] = value
    return merged


def _int_or(value: Any, default: int, minimum: int = 0) -> int:
    # bool is an int subclass but never a sensible size
    if isinstance(value, bool) or not isinstance(value, int) or value < minimum:
        return default
    return value


# --- ChatViewSettings ---


class ChatViewSettings:
    """Settings for the chat view.

    Use the factory methods (create, in_memory) instead of calling the
    constructor directly.
    """

    def __init__(
        self,
        *,
        global_path: str | None,
        project_path: str | None,
        initial: dict[str, Any],
        load_error: Exception | None = None,
    ) -> None:
        self._global_path = global_path
        self._project_path = project_path
        self._global = dict(initial)
        self._load_error = load_error
        # key -> changed nested keys, or None when the whole value changed
        self._dirty: dict[str, set[str] | None] = {}
        self._merged = self._merge()

    # --- Factory methods ---

    @classmethod
    def create(cls, cwd: str, agent_dir: str | None = None) -> ChatViewSettings:
        """Create settings backed by the global and project JSON files."""
        global_path = os.path.join(agent_dir or _user_dir(), SETTINGS_FILE_NAME)
        initial, error = _read_json(global_path)
        return cls(
            global_path=global_path,
            project_path=os.path.join(cwd, CONFIG_DIR_NAME, SETTINGS_FILE_NAME),
            initial=initial,
            load_error=error,
        )

    @classmethod
    def in_memory(cls, settings: dict[str, Any] | None = None) -> ChatViewSettings:
        """Create settings that never touch the filesystem."""
        return cls(global_path=None, project_path=None, initial=settings or {})

    # --- Core operations ---

    @property
    def settings(self) -> dict[str, Any]:
        """Current merged settings (read-only view)."""
        return self._merged

    @property
    def load_error(self) -> Exception | None:
        """Why the global file could not be read, if it could not."""
        return self._load_error

    def get_global_settings(self) -> dict[str, Any]:
        return deepcopy(self._global)

    def reload(self) -> None:
        """Re-read both files, discarding unsaved change tracking."""
        if self._global_path:
            self._global, self._load_error = _read_json(self._global_path)
        self._dirty.clear()
        self._merged = self._merge()

    def _merge(self) -> dict[str, Any]:
        project: dict[str, Any] = {}
        if self._project_path:
            project, _ = _read_json(self._project_path)
        return deep_merge_settings(self._global, project)

    def _update(self, key: str, value: Any, nested_key: str | None = None) -> None:
        if nested_key is None:
            self._global[key] = value
            self._dirty[key] = None
        else:
            section = self._global.get(key)
            if not isinstance(section, dict):
                section = self._global[key] = {}
            section[nested_key] = value
            changed = self._dirty.get(key, set())
            if changed is not None:
                changed.add(nested_key)
                self._dirty[key] = changed
        self._flush()
        self._merged = self._merge()

    # --- Persistence ---

    def _flush(self) -> None:
        """Write changed keys over the file's current contents."""
        if not self._global_path:
            return
        if self._load_error is not None:
            logger.warning(
                "Not saving %s: file could not be read (%s)",
                self._global_path,
                self._load_error,
            )
            return

        on_disk, _ = _read_json(self._global_path)
        for key, nested in self._dirty.items():
            value = self._global.get(key)
            if nested is None or not isinstance(value, dict):
                on_disk[key] = value
                continue
            target = on_disk.get(key)
            if not isinstance(target, dict):
                target = on_disk[key] = {}
            for nested_key in nested:
                target[nested_key] = value.get(nested_key)

        payload = {k: v for k, v in on_disk.items() if v is not None}
        path = Path(self._global_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(payload, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")

    def _section(self, name: str) -> dict[str, Any]:
        value = self._merged.get(name)
        return value if isinstance(value, dict) else {}

    # --- Getters: Appearance ---

    def get_theme(self) -> str:
        theme = self._merged.get("theme")
        if isinstance(theme, str) and theme:
            return theme
        return os.environ.get(THEME_ENV_VAR) or DEFAULT_THEME

    def get_syntax_style(self) -> str | None:
        style = self._merged.get("syntaxStyle")
        return style if isinstance(style, str) and style else None

    def get_default_wrap_width(self) -> int:
        return _int_or(self._section("wrap").get("defaultWidth"), DEFAULT_WRAP_WIDTH, 1)

    def get_min_column_width(self) -> int:
        return _int_or(self._section("table").get("minColumnWidth"), DEFAULT_MIN_COLUMN_WIDTH, 1)

    # --- Getters: Selection ---

    def get_selection_settings(self) -> SelectionSettings:
        selection = self._section("selection")
        return SelectionSettings(
            double_click_ms=_int_or(selection.get("doubleClickMs"), DEFAULT_DOUBLE_CLICK_MS),
            click_tolerance=_int_or(selection.get("clickTolerance"), DEFAULT_CLICK_TOLERANCE),
            flash_ms=_int_or(selection.get("flashMs"), DEFAULT_FLASH_MS, 1),
        )

    def get_clipboard_mechanism(self) -> str:
        mechanism = self._merged.get("clipboard")
        return mechanism if mechanism in CLIPBOARD_MECHANISMS else DEFAULT_CLIPBOARD

    # --- Setters ---

    def set_theme(self, theme: str) -> None:
        self._update("theme", theme)

    def set_syntax_style(self, style: str | None) -> None:
        self._update("syntaxStyle", style)

    def set_double_click_ms(self, ms: int) -> None:
        self._update("selection", max(100, min(2000, int(ms))), "doubleClickMs")


# --- File I/O helpers ---


def _read_json(path: str) -> tuple[dict[str, Any], Exception | None]:
    """Read a settings object from *path*. Returns (settings, error)."""
    if not os.path.exists(path):
        return {}, None
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        logger.warning("Failed to load settings from %s: %s", path, e)
        return {}, e
    if not isinstance(data, dict):
        err = ValueError(f"{path}: expected a JSON object")
        logger.warning("Failed to load settings: %s", err)
        return {}, err
    return data, None


def _user_dir() -> str:
    """Per-user config directory (~/.pi)."""
    return os.path.join(os.path.expanduser("~"), CONFIG_DIR_NAME)
