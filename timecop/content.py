"""Turn raw diff text, file snapshots, and commit/PR metadata into lines.

Everything here is pure: the same ``PreviewContent`` always yields the same
``DiffLine`` list. Malformed diff input never raises; hunk headers that do
not parse leave the line counters where they were.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Union

from .errors import ParseError
from .models import Commit, DiffStats, PrInfo

BINARY_SNIFF_BYTES = 8192
SUMMARY_RULE = "─" * 40
NO_PR_MESSAGE = "No PR found for this branch"

_DIGITS_RE = re.compile(r"[0-9]+", re.ASCII)
_METADATA_PREFIXES = ("diff --git", "index ", "---", "+++", "new file", "deleted file")
_REVIEW_LINE_TYPES = {
    "APPROVED": "added",
    "CHANGES_REQUESTED": "removed",
}


class LineType(Enum):
    CONTEXT = "context"
    ADDED = "added"
    REMOVED = "removed"
    HEADER = "header"
    INFO = "info"


@dataclass(frozen=True)
class DiffLine:
    text: str
    line_type: LineType
    left_num: int | None = None
    right_num: int | None = None

    @property
    def number(self) -> int | None:
        """Gutter number: the new-side number when present, else the old side."""
        return self.right_num if self.right_num is not None else self.left_num


@dataclass(frozen=True)
class Empty:
    pass


@dataclass(frozen=True)
class FileDiff:
    path: str
    raw: str


@dataclass(frozen=True)
class FolderDiff:
    path: str
    raw: str


@dataclass(frozen=True)
class FileContent:
    path: str
    raw: str


@dataclass(frozen=True)
class CommitSummary:
    commit: Commit
    pr: PrInfo | None = None


PreviewContent = Union[Empty, FileDiff, FolderDiff, FileContent, CommitSummary]


def _plain(text: str, line_type: LineType = LineType.CONTEXT) -> DiffLine:
    return DiffLine(text=text, line_type=line_type)


def split_lines(raw: str) -> list[str]:
    """Split on ``\\n`` like a line iterator: no trailing empty line, ``\\r\\n`` tolerated."""
    if not raw:
        return []
    lines = raw.split("\n")
    if lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


def is_binary(raw: str) -> bool:
    """Return whether a NUL byte appears in the first 8 KiB of ``raw``."""
    return b"\0" in raw[:BINARY_SNIFF_BYTES].encode("utf-8", "surrogateescape")[:BINARY_SNIFF_BYTES]


def _binary_lines() -> list[DiffLine]:
    return [_plain("Binary file", LineType.INFO)]


def _hunk_starts(line: str) -> tuple[int, int]:
    parts = line.split()
    if len(parts) < 3:
        raise ParseError(f"hunk header has too few fields: {line!r}")
    left_text = parts[1].lstrip("-").split(",", 1)[0]
    right_text = parts[2].lstrip("+").split(",", 1)[0]
    if not _DIGITS_RE.fullmatch(left_text) or not _DIGITS_RE.fullmatch(right_text):
        raise ParseError(f"hunk header has non-numeric start: {line!r}")
    return int(left_text), int(right_text)


def parse_hunk_header(line: str) -> tuple[int, int] | None:
    """Extract ``(left_start, right_start)`` from ``@@ -l,c +r,c @@``.

    Line counts are ignored and not cross-checked against the hunk body.
    Returns ``None`` when the header cannot be read.
    """
    try:
        return _hunk_starts(line)
    except ParseError:
        return None


def parse_diff(raw: str) -> list[DiffLine]:
    """Parse unified diff text into typed, numbered lines."""
    lines: list[DiffLine] = []
    left_num = 0
    right_num = 0

    for line in split_lines(raw):
        if line.startswith("@@"):
            starts = parse_hunk_header(line)
            if starts is not None:
                left_num, right_num = starts
            lines.append(_plain(line, LineType.HEADER))
        elif line.startswith(_METADATA_PREFIXES):
            lines.append(_plain(line, LineType.HEADER))
        elif line.startswith("+"):
            lines.append(DiffLine(line[1:], LineType.ADDED, right_num=right_num))
            right_num += 1
        elif line.startswith("-"):
            lines.append(DiffLine(line[1:], LineType.REMOVED, left_num=left_num))
            left_num += 1
        elif line.startswith(" "):
            lines.append(DiffLine(line[1:], LineType.CONTEXT, left_num=left_num, right_num=right_num))
            left_num += 1
            right_num += 1
        else:
            lines.append(_plain(line))

    return lines


def parse_file_content(raw: str) -> list[DiffLine]:
    """Number every line of a file snapshot; both sides share the number."""
    return [
        DiffLine(text, LineType.CONTEXT, left_num=idx, right_num=idx)
        for idx, text in enumerate(split_lines(raw), start=1)
    ]


def _review_line_type(state: str) -> LineType:
    return LineType(_REVIEW_LINE_TYPES.get(state.upper(), LineType.CONTEXT.value))


def parse_commit_summary(commit: Commit, pr: PrInfo | None) -> list[DiffLine]:
    """Build the commit header block followed by PR details or a no-PR note."""
    lines = [
        _plain("Commit", LineType.HEADER),
        _plain(SUMMARY_RULE, LineType.INFO),
        _plain(f"Hash:   {commit.hash}"),
        _plain(f"Author: {commit.author}"),
        _plain(f"Date:   {commit.date}"),
        _plain(""),
        _plain(commit.subject, LineType.INFO),
        _plain(""),
    ]

    if pr is None:
        lines.append(_plain(""))
        lines.append(_plain(NO_PR_MESSAGE, LineType.INFO))
        return lines

    lines.extend(
        [
            _plain(""),
            _plain("Pull Request", LineType.HEADER),
            _plain(SUMMARY_RULE, LineType.INFO),
            _plain(pr.title, LineType.INFO),
            _plain(f"#{pr.number} by {pr.author} [{pr.state}]"),
            _plain(pr.url),
        ]
    )

    if pr.body:
        lines.append(_plain(""))
        lines.extend(_plain(body_line) for body_line in split_lines(pr.body))

    if pr.reviews:
        lines.append(_plain(""))
        lines.append(_plain("Reviews", LineType.HEADER))
        for review in pr.reviews:
            lines.append(_plain(f"{review.author} - {review.state}", _review_line_type(review.state)))
            lines.extend(_plain(f"  {body_line}") for body_line in split_lines(review.body))

    return lines


def parse_preview(content: PreviewContent) -> list[DiffLine]:
    """Dispatch ``content`` to its parser."""
    if isinstance(content, Empty):
        return []
    if isinstance(content, (FileDiff, FolderDiff)):
        return _binary_lines() if is_binary(content.raw) else parse_diff(content.raw)
    if isinstance(content, FileContent):
        return _binary_lines() if is_binary(content.raw) else parse_file_content(content.raw)
    if isinstance(content, CommitSummary):
        return parse_commit_summary(content.commit, content.pr)
    raise TypeError(f"not preview content: {content!r}")


def preview_title(content: PreviewContent) -> str:
    if isinstance(content, (FileDiff, FileContent)):
        return content.path
    if isinstance(content, FolderDiff):
        return f"{content.path}/"
    if isinstance(content, CommitSummary):
        return "Commit & PR Summary"
    return "Preview"


def preview_path(content: PreviewContent) -> str | None:
    """Repository-relative path shown by ``content``, if it is about one path."""
    if isinstance(content, (FileDiff, FolderDiff, FileContent)):
        return content.path
    return None


def diff_stats(lines: list[DiffLine]) -> DiffStats:
    """Count added and removed lines."""
    added = sum(1 for line in lines if line.line_type is LineType.ADDED)
    removed = sum(1 for line in lines if line.line_type is LineType.REMOVED)
    return DiffStats(added=added, removed=removed)


@dataclass(frozen=True)
class SplitRow:
    """One side-by-side row; ``index`` points back into the unified line list."""

    index: int
    left: DiffLine | None
    right: DiffLine | None
    full_width: bool = False
    right_index: int | None = None


def split_rows(lines: list[DiffLine]) -> list[SplitRow]:
    """Pair removed/added runs into side-by-side rows.

    Headers and info lines span both columns. Context lines appear on both
    sides. A run of removed lines followed by a run of added lines is zipped
    row by row; the shorter side is padded with ``None``.
    """
    rows: list[SplitRow] = []
    idx = 0
    total = len(lines)
    while idx < total:
        line = lines[idx]
        if line.line_type in {LineType.HEADER, LineType.INFO}:
            rows.append(SplitRow(idx, line, None, full_width=True))
            idx += 1
            continue
        if line.line_type is LineType.CONTEXT:
            rows.append(SplitRow(idx, line, line, right_index=idx))
            idx += 1
            continue

        removed_start = idx
        while idx < total and lines[idx].line_type is LineType.REMOVED:
            idx += 1
        removed = list(range(removed_start, idx))
        added_start = idx
        while idx < total and lines[idx].line_type is LineType.ADDED:
            idx += 1
        added = list(range(added_start, idx))

        for offset in range(max(len(removed), len(added))):
            left_idx = removed[offset] if offset < len(removed) else None
            right_idx = added[offset] if offset < len(added) else None
            anchor = left_idx if left_idx is not None else right_idx
            rows.append(
                SplitRow(
                    anchor,
                    lines[left_idx] if left_idx is not None else None,
                    lines[right_idx] if right_idx is not None else None,
                    right_index=right_idx,
                )
            )
    return rows
