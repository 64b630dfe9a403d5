"""Timeline positions and the transitions between them.

Order, newest to oldest: browse -> wip -> all (full diff) -> -1 -> -2 ... -16.
``FullDiff`` is the default review view. Positions are plain values; only the
application controller replaces the current one.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

MAX_COMMIT_DEPTH = 16


@dataclass(frozen=True)
class Browse:
    """Whole-file content of the working tree, no diff."""


@dataclass(frozen=True)
class Wip:
    """Uncommitted changes: HEAD -> working tree."""


@dataclass(frozen=True)
class FullDiff:
    """All committed branch changes: merge base -> HEAD."""


@dataclass(frozen=True)
class CommitDiff:
    """Changes of the n-th most recent commit (1 = HEAD)."""

    n: int


TimelinePosition = Union[Browse, Wip, FullDiff, CommitDiff]

DEFAULT_POSITION: TimelinePosition = FullDiff()


def commit_cap(max_commits: int) -> int:
    """Deepest reachable ``CommitDiff`` index for ``max_commits`` commits."""
    return max(0, min(max_commits, MAX_COMMIT_DEPTH))


def rank(position: TimelinePosition) -> int:
    """Sort key giving ``Browse < Wip < FullDiff < CommitDiff(1) < ...``."""
    if isinstance(position, Browse):
        return 0
    if isinstance(position, Wip):
        return 1
    if isinstance(position, FullDiff):
        return 2
    if isinstance(position, CommitDiff):
        return 2 + position.n
    raise TypeError(f"not a timeline position: {position!r}")


def next_position(position: TimelinePosition, max_commits: int) -> TimelinePosition:
    """Step one position toward older history, saturating at the commit cap."""
    if isinstance(position, Browse):
        return Wip()
    if isinstance(position, Wip):
        return FullDiff()
    if isinstance(position, FullDiff):
        return CommitDiff(1) if commit_cap(max_commits) > 0 else position
    if isinstance(position, CommitDiff):
        if position.n < commit_cap(max_commits):
            return CommitDiff(position.n + 1)
        return position
    raise TypeError(f"not a timeline position: {position!r}")


def prev_position(position: TimelinePosition) -> TimelinePosition:
    """Step one position toward newer history; ``Browse`` is a fixed point."""
    if isinstance(position, Browse):
        return position
    if isinstance(position, Wip):
        return Browse()
    if isinstance(position, FullDiff):
        return Wip()
    if isinstance(position, CommitDiff):
        return FullDiff() if position.n <= 1 else CommitDiff(position.n - 1)
    raise TypeError(f"not a timeline position: {position!r}")


def clamp_position(position: TimelinePosition, max_commits: int) -> TimelinePosition:
    """Pull a ``CommitDiff`` back inside the cap after history shrank."""
    if not isinstance(position, CommitDiff):
        return position
    cap = commit_cap(max_commits)
    if cap == 0:
        return FullDiff()
    if position.n > cap:
        return CommitDiff(cap)
    return position


def label(position: TimelinePosition) -> str:
    """Short label used by the timeline bar and status line."""
    if isinstance(position, Browse):
        return "browse"
    if isinstance(position, Wip):
        return "wip"
    if isinstance(position, FullDiff):
        return "all"
    if isinstance(position, CommitDiff):
        return f"-{position.n}"
    raise TypeError(f"not a timeline position: {position!r}")


def timeline_slots(max_commits: int) -> list[TimelinePosition]:
    """All reachable positions, oldest first (left to right on the bar)."""
    slots: list[TimelinePosition] = [CommitDiff(n) for n in range(commit_cap(max_commits), 0, -1)]
    slots.extend([FullDiff(), Wip(), Browse()])
    return slots
