"""Value types exchanged with the git and code-hosting collaborators.

Everything here is immutable once constructed so worker threads can hand
results to the render thread without copying.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class FileStatus(Enum):
    """Change kind of one path within the selected timeline range."""

    MODIFIED = "M"
    ADDED = "A"
    DELETED = "D"
    RENAMED = "R"
    UNCHANGED = " "

    @property
    def char(self) -> str:
        return self.value

    @classmethod
    def from_code(cls, code: str) -> FileStatus:
        """Map a git status letter (``M``, ``A``, ``R100``, ``??`` ...) to a status."""
        letter = code.strip()[:1].upper()
        if letter in {"A", "?", "C"}:
            return cls.ADDED
        if letter == "D":
            return cls.DELETED
        if letter == "R":
            return cls.RENAMED
        if letter in {"M", "T", "U"}:
            return cls.MODIFIED
        return cls.UNCHANGED


@dataclass(frozen=True)
class StatusEntry:
    path: str
    status: FileStatus
    uncommitted: bool = False


@dataclass(frozen=True)
class DiffStats:
    added: int = 0
    removed: int = 0


@dataclass(frozen=True)
class BlameInfo:
    line: int
    author: str
    date: str
    commit_id: str
    summary: str


@dataclass(frozen=True)
class FileBlame:
    path: str
    lines: tuple[BlameInfo, ...] = ()

    def for_line(self, line: int) -> BlameInfo | None:
        """Return blame for 1-based ``line`` if known."""
        if 1 <= line <= len(self.lines) and self.lines[line - 1].line == line:
            return self.lines[line - 1]
        for info in self.lines:
            if info.line == line:
                return info
        return None


@dataclass(frozen=True)
class Commit:
    hash: str
    author: str
    date: str
    subject: str

    @property
    def short_hash(self) -> str:
        return self.hash[:7]


@dataclass(frozen=True)
class Review:
    author: str
    state: str
    body: str = ""


@dataclass(frozen=True)
class PrSummary:
    number: int
    author: str
    title: str
    state: str
    url: str
    updated_at: str


@dataclass(frozen=True)
class PrInfo(PrSummary):
    body: str = ""
    reviews: tuple[Review, ...] = field(default_factory=tuple)
