"""External editor and clipboard helpers.

Both return UI-friendly results (an error string, or ``bool``) instead of
raising, since failures are only ever reported in the status bar.
"""

from __future__ import annotations

import os
import shlex
import shutil
import subprocess
import sys
from collections.abc import Callable
from pathlib import Path

DEFAULT_EDITOR = "vim"


def editor_command(target: Path, line: int | None, fallback: str = DEFAULT_EDITOR) -> list[str] | None:
    """Build the editor argv; ``$EDITOR`` wins over the configured fallback."""
    editor = os.environ.get("EDITOR", "").strip() or fallback.strip()
    cmd = shlex.split(editor) if editor else []
    if not cmd:
        return None
    if line is not None and line > 0:
        cmd.append(f"+{line}")
    cmd.append(str(target))
    return cmd


def launch_editor(
    target: Path,
    line: int | None,
    disable_tui_mode: Callable[[], None],
    enable_tui_mode: Callable[[], None],
    fallback: str = DEFAULT_EDITOR,
) -> str | None:
    """Run the editor in the foreground with the TUI suspended."""
    cmd = editor_command(target, line, fallback)
    if cmd is None:
        return "Cannot edit: no editor configured."

    disable_tui_mode()
    try:
        subprocess.run(cmd, check=False)
    except OSError as exc:
        return f"Failed to launch editor: {exc}"
    finally:
        enable_tui_mode()
    return None


def copy_text_to_clipboard(text: str) -> bool:
    """Best-effort clipboard copy across macOS, Windows, and common Linux tools."""
    if not text:
        return False

    command_candidates: list[list[str]] = []
    if sys.platform == "darwin":
        command_candidates.append(["pbcopy"])
    elif os.name == "nt":
        command_candidates.append(["clip"])
    else:
        command_candidates.extend(
            [
                ["wl-copy"],
                ["xclip", "-selection", "clipboard"],
                ["xsel", "--clipboard", "--input"],
            ]
        )

    for command in command_candidates:
        if shutil.which(command[0]) is None:
            continue
        try:
            proc = subprocess.run(command, input=text, text=True, check=False, timeout=5)
        except (OSError, subprocess.TimeoutExpired):
            continue
        if proc.returncode == 0:
            return True
    return False
