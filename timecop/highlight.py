"""Source loading, sanitization, and Pygments syntax highlighting.

Highlighting works per displayed line list: lines are joined, highlighted in
one pass for correct multi-line tokens, then split back. Any mismatch falls
back to the plain lines.
"""

from __future__ import annotations

import re
from functools import lru_cache
from pathlib import Path

from pygments import highlight as pygments_highlight
from pygments.formatters import Terminal256Formatter
from pygments.lexer import Lexer
from pygments.lexers import TextLexer, get_lexer_for_filename
from pygments.styles import get_style_by_name
from pygments.util import ClassNotFound

DEFAULT_STYLE = "monokai"
TAB_SPACES = "    "

_CONTROL_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f-\x9f]")
_SGR_RE = re.compile(r"\x1b\[([0-9;]*)m")


def read_text(path: Path) -> str:
    for encoding in ("utf-8", "utf-8-sig"):
        try:
            return path.read_text(encoding=encoding)
        except UnicodeDecodeError:
            continue
    return path.read_bytes().decode("latin-1")


def sanitize_terminal_text(source: str) -> str:
    """Escape terminal control bytes to avoid side effects (bell, cursor moves, etc.)."""
    if _CONTROL_RE.search(source) is None:
        return source

    out: list[str] = []
    for ch in source:
        code = ord(ch)
        if ch in {"\n", "\r", "\t"}:
            out.append(ch)
            continue
        # C0 controls + DEL + C1 controls.
        if code < 32 or code == 127 or 0x80 <= code <= 0x9F:
            out.append(f"\\x{code:02x}")
            continue
        out.append(ch)
    return "".join(out)


def display_text(text: str) -> str:
    """Text as drawn: control bytes escaped, tabs expanded to four spaces."""
    return sanitize_terminal_text(text).replace("\t", TAB_SPACES)


@lru_cache(maxsize=16)
def normalize_style(style: str) -> str:
    try:
        get_style_by_name(style)
    except ClassNotFound:
        return DEFAULT_STYLE
    return style


@lru_cache(maxsize=16)
def _formatter_for_style(style: str) -> Terminal256Formatter:
    return Terminal256Formatter(style=normalize_style(style))


@lru_cache(maxsize=256)
def _lexer_for_name(name: str) -> Lexer:
    try:
        return get_lexer_for_filename(name, stripnl=False, ensurenl=False)
    except ClassNotFound:
        return TextLexer(stripnl=False, ensurenl=False)


def highlight_lines(lines: list[str], path: str, style: str = DEFAULT_STYLE) -> list[str] | None:
    """Highlight already display-ready ``lines`` as the file type of ``path``.

    Returns ``None`` for plain-text files or when the highlighted output does
    not split back into the same number of lines.
    """
    if not lines:
        return []
    lexer = _lexer_for_name(Path(path).name)
    if isinstance(lexer, TextLexer):
        return None
    rendered = pygments_highlight("\n".join(lines), lexer, _formatter_for_style(style))
    rendered_lines = rendered.split("\n")
    if rendered_lines and rendered_lines[-1] == "" and len(rendered_lines) == len(lines) + 1:
        rendered_lines.pop()
    if len(rendered_lines) != len(lines):
        return None
    return rendered_lines


def _drop_faint(params: str) -> str:
    # Faint text is unreadable on the added/removed backgrounds.
    parts = params.split(";")
    kept: list[str] = []
    index = 0
    while index < len(parts):
        part = parts[index]
        if part in {"38", "48"} and index + 1 < len(parts):
            # Extended colors: 5;N or 2;R;G;B arguments are not attributes.
            width = 2 if parts[index + 1] == "5" else 4
            kept.extend(parts[index : index + 1 + width])
            index += 1 + width
            continue
        if part and part != "2":
            kept.append(part)
        index += 1
    return ";".join(kept)


def apply_line_background(code_line: str, bg_sgr: str) -> str:
    """Keep ``bg_sgr`` active across every SGR reset inside ``code_line``."""
    if not bg_sgr:
        return code_line

    def _inject_bg(match: re.Match[str]) -> str:
        params = _drop_faint(match.group(1))
        if params and params != "0":
            return f"\033[{params};{bg_sgr}m"
        return f"\033[0;{bg_sgr}m"

    line_with_persistent_bg = _SGR_RE.sub(_inject_bg, code_line)
    return f"\033[{bg_sgr}m{line_with_persistent_bg}"
