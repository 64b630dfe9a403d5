"""Screen geometry: timeline bar on top, files top-left, PRs bottom-left,
preview right, status bar last."""

from __future__ import annotations

from dataclasses import dataclass

MIN_LEFT_WIDTH = 24
LEFT_PERCENT = 35
FILES_PERCENT = 60
MIN_PANE_HEIGHT = 4


@dataclass(frozen=True)
class Rect:
    x: int
    y: int
    width: int
    height: int


@dataclass(frozen=True)
class Layout:
    timeline_row: int
    files: Rect
    prs: Rect
    preview: Rect
    status_row: int
    columns: int
    rows: int


def compute_layout(columns: int, rows: int) -> Layout:
    """Split a ``columns`` x ``rows`` terminal into the bars and the three panes."""
    columns = max(20, columns)
    rows = max(2 * MIN_PANE_HEIGHT + 2, rows)
    body_top = 1
    body_rows = rows - 2
    left_width = max(MIN_LEFT_WIDTH, columns * LEFT_PERCENT // 100)
    left_width = min(left_width, columns - 10)
    files_height = max(MIN_PANE_HEIGHT, body_rows * FILES_PERCENT // 100)
    files_height = min(files_height, body_rows - MIN_PANE_HEIGHT)
    return Layout(
        timeline_row=0,
        files=Rect(0, body_top, left_width, files_height),
        prs=Rect(0, body_top + files_height, left_width, body_rows - files_height),
        preview=Rect(left_width, body_top, columns - left_width, body_rows),
        status_row=rows - 1,
        columns=columns,
        rows=rows,
    )
