"""Clipboard writers used when copying selected chat text.

Providers never raise: ``copy`` returns ``False`` on failure and, where a
reason is known, keeps it in ``last_error``.
"""

from __future__ import annotations

import base64
import logging
import os
import shutil
import subprocess
import sys
from typing import Protocol, TextIO

logger = logging.getLogger(__name__)

# Some terminals cap OSC 52 payloads (base64) at about 74KB
OSC52_MAX_BYTES = 74994
NATIVE_TIMEOUT = 5.0


class ClipboardProvider(Protocol):
    """Anything that can put text on the system clipboard."""

    @property
    def name(self) -> str: ...

    def copy(self, text: str) -> bool: ...


# ---------------------------------------------------------------------------
# OSC 52
# ---------------------------------------------------------------------------


class OSC52Provider:
    """Write to the clipboard with the OSC 52 terminal escape sequence.

    Works over SSH and needs no external tools, but success cannot be
    observed: the terminal may silently ignore the request.
    """

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream
        self.last_error: str | None = None

    @property
    def name(self) -> str:
        return "OSC 52"

    def copy(self, text: str) -> bool:
        if not text:
            return False

        data = text.encode("utf-8")
        encoded = base64.b64encode(data).decode("ascii")
        if len(encoded) > OSC52_MAX_BYTES:
            max_text_bytes = (OSC52_MAX_BYTES * 3) // 4
            truncated = data[:max_text_bytes].decode("utf-8", errors="ignore")
            encoded = base64.b64encode(truncated.encode("utf-8")).decode("ascii")
            logger.debug("OSC 52 payload truncated to %d bytes", max_text_bytes)

        stream = self._stream or sys.stdout
        try:
            stream.write(f"\x1b]52;c;{encoded}\x07")
            stream.flush()
        except (OSError, ValueError) as e:
            self.last_error = str(e)
            return False
        self.last_error = None
        return True


# ---------------------------------------------------------------------------
# Native tools
# ---------------------------------------------------------------------------


def detect_native_tool() -> tuple[str, list[str]] | None:
    """Find a clipboard command for this platform.

    Returns ``(tool_name, argv)`` or ``None`` when nothing is installed.
    """
    if sys.platform == "darwin":
        if shutil.which("pbcopy"):
            return ("pbcopy", ["pbcopy"])
        return None
    if sys.platform == "win32":
        if shutil.which("clip"):
            return ("clip", ["clip"])
        return None

    candidates = [
        ("wl-copy", ["wl-copy"]),
        ("xclip", ["xclip", "-selection", "clipboard"]),
        ("xsel", ["xsel", "--clipboard", "--input"]),
    ]
    # Prefer X11 tools on an X session, Wayland otherwise
    session_type = os.environ.get("XDG_SESSION_TYPE", "").lower()
    if session_type == "x11" or (session_type != "wayland" and os.environ.get("DISPLAY")):
        candidates = candidates[1:] + candidates[:1]
    for tool, argv in candidates:
        if shutil.which(argv[0]):
            return (tool, argv)
    return None


class NativeProvider:
    """Pipe text into pbcopy, clip, wl-copy, xclip or xsel."""

    def __init__(self, tool: tuple[str, list[str]] | None = None) -> None:
        self._tool = tool if tool is not None else detect_native_tool()
        self.last_error: str | None = None

    @property
    def name(self) -> str:
        return f"Native ({self._tool[0] if self._tool else 'unavailable'})"

    @property
    def available(self) -> bool:
        return self._tool is not None

    def copy(self, text: str) -> bool:
        if not text:
            return False
        if not self._tool:
            self.last_error = "no clipboard tool found"
            return False

        try:
            proc = subprocess.run(
                self._tool[1],
                input=text.encode("utf-8"),
                capture_output=True,
                timeout=NATIVE_TIMEOUT,
            )
        except (subprocess.TimeoutExpired, OSError) as e:
            self.last_error = str(e)
            return False

        if proc.returncode != 0:
            stderr = proc.stderr.decode("utf-8", errors="replace").strip()
            self.last_error = stderr or f"{self._tool[0]} exited with {proc.returncode}"
            return False
        self.last_error = None
        return True


# ---------------------------------------------------------------------------
# Fallback
# ---------------------------------------------------------------------------


class FallbackProvider:
    """Try several providers, succeeding if any of them does."""

    def __init__(self, providers: list[ClipboardProvider]) -> None:
        self._providers = providers
        self.last_error: str | None = None

    @property
    def name(self) -> str:
        return " + ".join(p.name for p in self._providers)

    def copy(self, text: str) -> bool:
        ok = False
        errors: list[str] = []
        for provider in self._providers:
            if provider.copy(text):
                ok = True
            else:
                err = getattr(provider, "last_error", None)
                errors.append(f"{provider.name}: {err or 'failed'}")
        self.last_error = None if ok else "; ".join(errors)
        return ok


def create_provider(mechanism: str = "auto") -> ClipboardProvider:
    """Build a provider for ``"osc52"``, ``"native"`` or ``"auto"``."""
    if mechanism == "osc52":
        return OSC52Provider()
    if mechanism == "native":
        return NativeProvider()
    native = NativeProvider()
    if native.available:
        return FallbackProvider([native, OSC52Provider()])
    return OSC52Provider()
