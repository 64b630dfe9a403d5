"""Low-level terminal input decoding and key-combo dispatch.

Reads raw bytes from stdin and translates them into normalized key tokens
(``"j"``, ``"UP"``, ``"ESC"``, ``"ENTER_CR"``, ``"CTRL_D"`` ...).
"""

from __future__ import annotations

import os
import select
from collections.abc import Callable
from dataclasses import dataclass

ESC_SEQUENCE_TIMEOUT_MS = 25

_CONTROL_KEYS = {
    b"\t": "TAB",
    b"\x08": "BACKSPACE",
    b"\x7f": "BACKSPACE",
    b"\x15": "CTRL_U",
    b"\x04": "CTRL_D",
    b"\x03": "CTRL_C",
    b"\r": "ENTER_CR",
    b"\n": "ENTER_LF",
}
_CSI_KEYS = {b"A": "UP", b"B": "DOWN", b"C": "RIGHT", b"D": "LEFT", b"H": "HOME", b"F": "END"}
_TILDE_KEYS = {b"3": "DELETE", b"5": "PAGE_UP", b"6": "PAGE_DOWN"}


class KeyReader:
    """Stateful decoder; bytes read past an ESC are replayed on the next call."""

    def __init__(self) -> None:
        self._pending: list[bytes] = []

    def _read_ready_byte(self, fd: int, timeout_ms: int) -> bytes | None:
        ready, _, _ = select.select([fd], [], [], max(0.0, timeout_ms / 1000.0))
        if not ready:
            return None
        ch = os.read(fd, 1)
        return ch or None

    def _read_utf8_tail(self, fd: int, lead: bytes) -> str:
        first = lead[0]
        if first >= 0xF0:
            extra = 3
        elif first >= 0xE0:
            extra = 2
        elif first >= 0xC0:
            extra = 1
        else:
            extra = 0
        data = lead
        for _ in range(extra):
            nxt = self._read_ready_byte(fd, ESC_SEQUENCE_TIMEOUT_MS)
            if nxt is None:
                break
            data += nxt
        return data.decode("utf-8", errors="replace")

    def read_key(self, fd: int, timeout_ms: int | None = None) -> str:
        """Return one key token, or ``""`` on timeout or EOF."""
        if self._pending:
            ch = self._pending.pop(0)
        else:
            if timeout_ms is not None:
                ready, _, _ = select.select([fd], [], [], max(0.0, timeout_ms / 1000.0))
                if not ready:
                    return ""
            ch = os.read(fd, 1)
            if not ch:
                return ""

        named = _CONTROL_KEYS.get(ch)
        if named is not None:
            return named
        if ch != b"\x1b":
            return self._read_utf8_tail(fd, ch)

        seq = self._read_ready_byte(fd, ESC_SEQUENCE_TIMEOUT_MS)
        if seq is None:
            return "ESC"
        if seq not in {b"[", b"O"}:
            self._pending.append(seq)
            return "ESC"
        seq = self._read_ready_byte(fd, ESC_SEQUENCE_TIMEOUT_MS)
        if seq is None:
            return "ESC"
        if seq in _CSI_KEYS:
            return _CSI_KEYS[seq]
        if seq == b"Z":
            return "SHIFT_TAB"
        if seq in _TILDE_KEYS:
            tail = self._read_ready_byte(fd, ESC_SEQUENCE_TIMEOUT_MS)
            if tail == b"~":
                return _TILDE_KEYS[seq]
        return "ESC"


@dataclass(frozen=True)
class KeyComboBinding:
    """Mapping from one or more key tokens to a single action callback."""

    combos: tuple[str, ...]
    handler: Callable[[], bool | None]


class KeyComboRegistry:
    """Small key-dispatch table with optional key normalization strategy."""

    def __init__(self, normalize: Callable[[str], str] | None = None) -> None:
        self._normalize = normalize if normalize is not None else self._identity
        self._handlers: dict[str, Callable[[], bool | None]] = {}

    @staticmethod
    def _identity(key: str) -> str:
        return key

    def register_binding(self, binding: KeyComboBinding) -> KeyComboRegistry:
        """Register one binding, overwriting existing handlers for same combos."""
        for combo in binding.combos:
            self._handlers[self._normalize(combo)] = binding.handler
        return self

    def register_bindings(self, *bindings: KeyComboBinding) -> KeyComboRegistry:
        for binding in bindings:
            self.register_binding(binding)
        return self

    def dispatch(self, key: str) -> bool | None:
        """Invoke the bound handler for ``key``; ``None`` when nothing is bound."""
        handler = self._handlers.get(self._normalize(key))
        if handler is None:
            return None
        return handler()
