"""Preview pane: diffs, whole files, and commit/PR summaries."""

from __future__ import annotations

from ..actions import (
    IGNORED,
    NONE,
    Action,
    Approve,
    BlameRequested,
    Comment,
    LineComment,
    OpenReviewModal,
    RequestChanges,
)
from ..content import (
    DiffLine,
    Empty,
    FileContent,
    LineType,
    PreviewContent,
    SplitRow,
    parse_preview,
    preview_path,
    preview_title,
    split_rows,
)
from ..models import FileBlame
from ..viewport import Viewport


class DiffViewPane:
    def __init__(self, split: bool = False) -> None:
        self.viewport = Viewport()
        self.content: PreviewContent = Empty()
        self.lines: list[DiffLine] = []
        self.rows: list[SplitRow] = []
        self.split = split
        self.loading = False
        self.error: str | None = None
        self.blame: FileBlame | None = None
        self.pr_number: int | None = None

    @property
    def title(self) -> str:
        return preview_title(self.content)

    @property
    def path(self) -> str | None:
        return preview_path(self.content)

    def set_content(self, content: PreviewContent, keep_position: bool = False) -> None:
        """Replace the preview wholesale and rebuild its lines.

        ``keep_position`` leaves the cursor and scroll offset where they were
        (clamped), for background refreshes of the same selection.
        """
        same_path = preview_path(content) == self.path
        self.content = content
        self.lines = parse_preview(content)
        self.rows = split_rows(self.lines)
        self.loading = False
        self.error = None
        if keep_position:
            if not same_path:
                self.blame = None
            self.viewport.set_item_count(self._display_count())
            return
        self.blame = None
        self.viewport.reset(self._display_count())

    def set_loading(self) -> None:
        self.set_content(Empty())
        self.loading = True

    def set_error(self, message: str) -> None:
        self.set_content(Empty())
        self.error = message

    def set_blame(self, blame: FileBlame | None) -> None:
        if blame is not None and blame.path != self.path:
            return
        self.blame = blame

    def _display_count(self) -> int:
        return len(self.rows) if self.split else len(self.lines)

    def toggle_split(self) -> None:
        """Switch layouts, keeping the cursor on the same underlying line."""
        anchor = self.cursor_index()
        self.split = not self.split
        self.viewport.set_item_count(self._display_count())
        if anchor is None:
            return
        if self.split:
            for idx, row in enumerate(self.rows):
                if row.index >= anchor or row.right_index == anchor:
                    self.viewport.cursor = idx
                    return
            self.viewport.cursor = max(0, len(self.rows) - 1)
        else:
            self.viewport.cursor = anchor

    def cursor_index(self) -> int | None:
        """Index into ``lines`` under the cursor."""
        if self.split:
            if not self.rows:
                return None
            return self.rows[self.viewport.cursor].index
        if not self.lines:
            return None
        return self.viewport.cursor

    def cursor_line(self) -> DiffLine | None:
        if self.split:
            if not self.rows:
                return None
            row = self.rows[self.viewport.cursor]
            return row.right if row.right is not None else row.left
        index = self.cursor_index()
        return self.lines[index] if index is not None else None

    def cursor_line_number(self) -> int | None:
        """New-side line number under the cursor, for comments and the editor."""
        line = self.cursor_line()
        if line is None:
            return None
        return line.right_num

    def handle_key(self, key: str, height: int) -> Action:
        if self.viewport.handle_scroll_key(key, height):
            return NONE
        if key == "s":
            self.toggle_split()
            self.viewport.ensure_visible(height)
            return NONE
        if key == "b":
            return self._toggle_blame()
        if key in {"a", "x", "c"}:
            return self._review_action(key)
        return IGNORED

    def _toggle_blame(self) -> Action:
        if not isinstance(self.content, FileContent):
            return NONE
        if self.blame is not None:
            self.blame = None
            return NONE
        return BlameRequested(self.content.path)

    def _review_action(self, key: str) -> Action:
        pr = self.pr_number
        if pr is None:
            return NONE
        if key == "a":
            return OpenReviewModal(Approve(pr))
        if key == "x":
            return OpenReviewModal(RequestChanges(pr))
        line = self.cursor_line()
        path = self.path
        if path is not None and line is not None and line.right_num is not None and line.line_type in {
            LineType.ADDED,
            LineType.CONTEXT,
        }:
            return OpenReviewModal(LineComment(pr, path, line.right_num))
        return OpenReviewModal(Comment(pr))
