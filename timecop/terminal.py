"""Terminal control helpers for the TUI session.

Owns raw-mode lifecycle, alternate-screen switching, and frame output.
Setup or teardown failures surface as ``TerminalError``.
"""

from __future__ import annotations

import contextlib
import os
import termios
import tty

from .errors import TerminalError

ENTER_TUI = b"\x1b[?1049h\x1b[?25l"
LEAVE_TUI = b"\x1b[?25h\x1b[?1049l"


class TerminalController:
    def __init__(self, stdin_fd: int, stdout_fd: int) -> None:
        self.stdin_fd = stdin_fd
        self.stdout_fd = stdout_fd
        try:
            self._saved_tty_state = termios.tcgetattr(stdin_fd)
        except termios.error as exc:
            raise TerminalError(f"cannot read terminal attributes: {exc}") from exc

    def enable_tui_mode(self) -> None:
        try:
            tty.setraw(self.stdin_fd, termios.TCSAFLUSH)
            # Enter alternate screen and hide cursor.
            os.write(self.stdout_fd, ENTER_TUI)
        except (termios.error, OSError) as exc:
            raise TerminalError(f"cannot enter raw mode: {exc}") from exc

    def disable_tui_mode(self) -> None:
        try:
            # Show cursor and restore the main screen buffer.
            os.write(self.stdout_fd, LEAVE_TUI)
            termios.tcsetattr(self.stdin_fd, termios.TCSAFLUSH, self._saved_tty_state)
        except (termios.error, OSError) as exc:
            raise TerminalError(f"cannot restore terminal: {exc}") from exc

    def write(self, data: str) -> None:
        payload = data.encode("utf-8", errors="replace")
        while payload:
            written = os.write(self.stdout_fd, payload)
            payload = payload[written:]

    @contextlib.contextmanager
    def raw_mode(self):
        try:
            self.enable_tui_mode()
            yield
        finally:
            self.disable_tui_mode()
