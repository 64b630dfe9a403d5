"""Cursor and scroll-offset state shared by every scrollable pane.

Visible height is never stored; callers pass the pane height at render or
key-handling time. ``reserved_rows`` covers border, title, and footer chrome.
"""

from __future__ import annotations

from dataclasses import dataclass

DEFAULT_RESERVED_ROWS = 3
FAST_STEP = 5


@dataclass
class Viewport:
    cursor: int = 0
    offset: int = 0
    item_count: int = 0
    reserved_rows: int = DEFAULT_RESERVED_ROWS

    def visible_rows(self, height: int) -> int:
        return max(1, height - self.reserved_rows)

    def _last_index(self) -> int:
        return max(0, self.item_count - 1)

    def set_item_count(self, item_count: int) -> None:
        """Update the item count, pulling the cursor back inside the list."""
        self.item_count = max(0, item_count)
        self.cursor = min(self.cursor, self._last_index())
        self.offset = min(self.offset, self.cursor)

    def reset(self, item_count: int | None = None) -> None:
        if item_count is not None:
            self.item_count = max(0, item_count)
        self.cursor = 0
        self.offset = 0

    def move_down(self, by: int = 1) -> bool:
        """Move toward the end; returns whether the cursor changed."""
        before = self.cursor
        self.cursor = min(self.cursor + max(0, by), self._last_index())
        return self.cursor != before

    def move_up(self, by: int = 1) -> bool:
        before = self.cursor
        self.cursor = max(0, self.cursor - max(0, by))
        return self.cursor != before

    def move_down_n(self, n: int) -> bool:
        return self.move_down(n)

    def move_up_n(self, n: int) -> bool:
        return self.move_up(n)

    def page_down(self, height: int) -> bool:
        """Half-page step down."""
        return self.move_down(max(0, height) // 2)

    def page_up(self, height: int) -> bool:
        return self.move_up(max(0, height) // 2)

    def go_top(self) -> bool:
        before = self.cursor
        self.cursor = 0
        self.offset = 0
        return self.cursor != before

    def go_bottom(self) -> bool:
        # Offset is corrected by the next ensure_visible pass.
        before = self.cursor
        self.cursor = self._last_index()
        return self.cursor != before

    def ensure_visible(self, height: int) -> None:
        """Scroll so the cursor row lies inside the visible window."""
        visible = self.visible_rows(height)
        if self.item_count <= visible:
            self.offset = 0
            return
        if self.cursor < self.offset:
            self.offset = self.cursor
        elif self.cursor >= self.offset + visible:
            self.offset = self.cursor - visible + 1

    def visible_range(self, height: int) -> range:
        """Item indices drawn for ``height``, after ``ensure_visible``."""
        visible = self.visible_rows(height)
        return range(self.offset, min(self.item_count, self.offset + visible))

    def scroll_percent(self, height: int) -> str:
        """Return ``"NN%"`` for long lists, or ``""`` when everything fits."""
        visible = self.visible_rows(height)
        if self.item_count == 0 or self.item_count <= visible:
            return ""
        percent = (self.offset * 100) // max(self.item_count - visible, 1)
        return f"{percent}%"

    def handle_scroll_key(self, key: str, height: int) -> bool:
        """Apply one of the shared scrolling keys; returns whether it was one."""
        if key in {"j", "DOWN"}:
            self.move_down()
        elif key in {"k", "UP"}:
            self.move_up()
        elif key == "J":
            self.move_down_n(FAST_STEP)
        elif key == "K":
            self.move_up_n(FAST_STEP)
        elif key == "g":
            self.go_top()
        elif key == "G":
            self.go_bottom()
        elif key == "CTRL_D":
            self.page_down(self.visible_rows(height))
        elif key == "CTRL_U":
            self.page_up(self.visible_rows(height))
        else:
            return False
        self.ensure_visible(height)
        return True
