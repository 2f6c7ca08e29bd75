"""Colouring for unified diff text."""

from __future__ import annotations

from pi.chatview.theme import ThemeStyles
from pi.chatview.utils import RESET

_HEADER_PREFIXES = ("diff --git", "index ", "new file mode", "deleted file mode")


def _diff_line_style(line: str, styles: ThemeStyles) -> str | None:
    # File headers must be checked before single +/- markers
    if line.startswith(("+++", "---")):
        return styles.diff_header
    if line.startswith("@@"):
        return styles.diff_hunk
    if line.startswith("+"):
        return styles.diff_added
    if line.startswith("-"):
        return styles.diff_removed
    if line.startswith(_HEADER_PREFIXES):
        return styles.diff_header
    return None


def highlight_diff(diff: str, styles: ThemeStyles) -> str:
    """Colour each line of *diff* by its prefix.

    Lines that are not headers, hunk markers, additions or removals are
    passed through unchanged. Trailing newlines are dropped.
    """
    if not diff:
        return diff

    out: list[str] = []
    for line in diff.split("\n"):
        style = _diff_line_style(line, styles)
        if style:
            out.append(f"{style}{line}{RESET}")
        else:
            out.append(line)
    return "\n".join(out).rstrip("\n")
