"""Changed-file tree shown in the left-top pane.

Rows are derived from the flat status list: folders first, then files,
case-insensitive within each level. Folders start expanded.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..actions import IGNORED, NONE, Action, FileSelected, FolderSelected
from ..models import FileStatus, StatusEntry
from ..viewport import Viewport

_ENTER_KEYS = {"ENTER_CR", "ENTER_LF"}


@dataclass(frozen=True)
class TreeRow:
    """One visible row in the file tree."""

    path: str
    name: str
    depth: int
    is_dir: bool
    status: FileStatus = FileStatus.UNCHANGED
    uncommitted: bool = False


def _parent_of(path: str) -> str:
    head, _sep, _tail = path.rpartition("/")
    return head


def _build_rows(entries: list[StatusEntry], collapsed: set[str]) -> list[TreeRow]:
    tree: dict[str, dict] = {}
    by_path = {entry.path: entry for entry in entries}
    for entry in entries:
        node = tree
        for part in entry.path.split("/")[:-1]:
            node = node.setdefault(part + "/", {})
        node[entry.path.split("/")[-1]] = None

    rows: list[TreeRow] = []

    def walk(node: dict[str, dict | None], prefix: str, depth: int) -> None:
        def sort_key(name: str) -> tuple[bool, str]:
            return (node[name] is None, name.lower())

        for name in sorted(node, key=sort_key):
            child = node[name]
            if child is None:
                path = prefix + name
                entry = by_path[path]
                rows.append(TreeRow(path, name, depth, False, entry.status, entry.uncommitted))
                continue
            folder = prefix + name[:-1]
            rows.append(TreeRow(folder, name[:-1], depth, True))
            if folder not in collapsed:
                walk(child, folder + "/", depth + 1)

    walk(tree, "", 0)
    return rows


class FileListPane:
    def __init__(self) -> None:
        self.viewport = Viewport()
        self.entries: list[StatusEntry] = []
        self.rows: list[TreeRow] = []
        self.collapsed: set[str] = set()
        self.loading = True
        self.error: str | None = None

    def set_entries(self, entries: list[StatusEntry]) -> None:
        """Replace the status list, keeping the cursor on the same path if it survives."""
        previous = self.selected_row()
        self.entries = list(entries)
        self.loading = False
        self.error = None
        self._rebuild(previous.path if previous is not None else None)

    def set_error(self, message: str) -> None:
        self.loading = False
        self.error = message

    def _rebuild(self, keep_path: str | None = None) -> None:
        self.rows = _build_rows(self.entries, self.collapsed)
        self.viewport.set_item_count(len(self.rows))
        if keep_path is None:
            return
        for idx, row in enumerate(self.rows):
            if row.path == keep_path:
                self.viewport.cursor = idx
                return

    def selected_row(self) -> TreeRow | None:
        if not self.rows:
            return None
        return self.rows[self.viewport.cursor]

    def children_of(self, folder: str) -> tuple[str, ...]:
        """All changed file paths below ``folder``, collapsed or not."""
        prefix = folder.rstrip("/") + "/"
        return tuple(entry.path for entry in self.entries if entry.path.startswith(prefix))

    def _collapse_or_parent(self, row: TreeRow) -> None:
        if row.is_dir and row.path not in self.collapsed:
            self.collapsed.add(row.path)
            self._rebuild(row.path)
            return
        parent = _parent_of(row.path)
        if not parent:
            return
        for idx, candidate in enumerate(self.rows):
            if candidate.is_dir and candidate.path == parent:
                self.viewport.cursor = idx
                return

    def handle_key(self, key: str, height: int) -> Action:
        if self.viewport.handle_scroll_key(key, height):
            return NONE

        row = self.selected_row()
        if key in {"h", "LEFT"}:
            if row is not None:
                self._collapse_or_parent(row)
                self.viewport.ensure_visible(height)
            return NONE
        if key in {"l", "RIGHT"}:
            if row is None:
                return NONE
            if row.is_dir:
                if row.path in self.collapsed:
                    self.collapsed.discard(row.path)
                    self._rebuild(row.path)
                return NONE
            return FileSelected(row.path)
        if key in _ENTER_KEYS:
            if row is None:
                return NONE
            if row.is_dir:
                return FolderSelected(row.path, self.children_of(row.path))
            return FileSelected(row.path)
        return IGNORED
