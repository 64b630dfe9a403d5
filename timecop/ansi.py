"""ANSI-aware text measurement and line shaping utilities.

Escape sequences are preserved and never count toward width; East Asian wide
characters take two columns and combining marks none.
"""

from __future__ import annotations

import re
import unicodedata

ANSI_ESCAPE_RE = re.compile(r"\x1b\[[0-9;?]*[ -/]*[@-~]")
TAB_STOP = 4


def char_display_width(ch: str, col: int) -> int:
    """Return terminal column width for one character at visual column ``col``."""
    if ch == "\t":
        return TAB_STOP - (col % TAB_STOP)
    if unicodedata.combining(ch):
        return 0
    if unicodedata.east_asian_width(ch) in {"W", "F"}:
        return 2
    return 1


def strip_ansi(text: str) -> str:
    return ANSI_ESCAPE_RE.sub("", text)


def display_width(text: str) -> int:
    col = 0
    for ch in strip_ansi(text):
        col += char_display_width(ch, col)
    return col


def clip_ansi_line(text: str, max_cols: int) -> str:
    """Trim a styled line to at most ``max_cols`` display columns.

    ANSI escape sequences are preserved verbatim and do not count toward width.
    Tabs are expanded into spaces so clipping aligns with rendered terminal cells.
    """
    if max_cols <= 0 or not text:
        return ""

    out: list[str] = []
    col = 0
    i = 0
    n = len(text)
    while i < n and col < max_cols:
        if text[i] == "\x1b":
            match = ANSI_ESCAPE_RE.match(text, i)
            if match:
                out.append(match.group(0))
                i = match.end()
                continue
        ch = text[i]
        w = char_display_width(ch, col)
        if col + w > max_cols:
            break
        out.append(" " * w if ch == "\t" else ch)
        col += w
        i += 1

    return "".join(out)


def _is_reset(seq: str) -> bool:
    return seq in {"\x1b[m", "\x1b[0m"}


def slice_ansi_line(text: str, start_cols: int, max_cols: int) -> str:
    """Return columns ``start_cols`` .. ``start_cols + max_cols`` of a styled line.

    SGR sequences seen since the last reset before the slice are replayed at
    its start so the visible part keeps its styling.
    """
    if max_cols <= 0 or not text:
        return ""
    start_cols = max(0, start_cols)

    out: list[str] = []
    pending: list[str] = []
    col = 0
    shown = 0
    i = 0
    n = len(text)
    while i < n and shown < max_cols:
        if text[i] == "\x1b":
            match = ANSI_ESCAPE_RE.match(text, i)
            if match:
                seq = match.group(0)
                if col >= start_cols:
                    out.append(seq)
                elif seq.endswith("m"):
                    pending = [] if _is_reset(seq) else [*pending, seq]
                i = match.end()
                continue
        ch = text[i]
        w = char_display_width(ch, col)
        i += 1
        if col + w <= start_cols:
            col += w
            continue
        # Columns of this character inside the slice; less than ``w`` when a
        # wide character or tab straddles the slice start.
        visible = w - max(0, start_cols - col)
        col += w
        if ch == "\t":
            visible = min(visible, max_cols - shown)
        if shown + visible > max_cols:
            break
        if pending:
            out.extend(pending)
            pending = []
        out.append(ch if visible == w and ch != "\t" else " " * visible)
        shown += visible

    return "".join(out)


def fit_ansi_line(text: str, width: int, reset: str = "\033[0m") -> str:
    """Clip or pad ``text`` to exactly ``width`` columns, closing any open style."""
    clipped = clip_ansi_line(text, width)
    padding = " " * max(0, width - display_width(clipped))
    if "\x1b" in clipped and reset:
        # Padding keeps the line's background (diff highlight) to the edge.
        return f"{clipped}{padding}{reset}"
    return clipped + padding


def truncate_text(text: str, width: int, ellipsis: str = "…") -> str:
    """Plain-text truncation with an ellipsis when ``text`` overflows ``width``."""
    if width <= 0:
        return ""
    if display_width(text) <= width:
        return text
    if width == 1:
        return ellipsis
    return clip_ansi_line(text, width - 1) + ellipsis
