"""Closed vocabulary panes return from key handling.

``NONE`` means the pane consumed the key locally. ``IGNORED`` asks the
application to try its global bindings. Every other value names an effect
only the application controller may carry out.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class Approve:
    pr: int


@dataclass(frozen=True)
class RequestChanges:
    pr: int


@dataclass(frozen=True)
class Comment:
    pr: int


@dataclass(frozen=True)
class LineComment:
    pr: int
    path: str
    line: int


ReviewActionType = Union[Approve, RequestChanges, Comment, LineComment]


def review_title(review: ReviewActionType) -> str:
    """Modal heading for ``review``."""
    if isinstance(review, Approve):
        return f"Approve PR #{review.pr}"
    if isinstance(review, RequestChanges):
        return f"Request changes on PR #{review.pr}"
    if isinstance(review, Comment):
        return f"Comment on PR #{review.pr}"
    if isinstance(review, LineComment):
        return f"Comment on {review.path}:{review.line} (PR #{review.pr})"
    raise TypeError(f"not a review action: {review!r}")


def body_required(review: ReviewActionType) -> bool:
    """Approvals may be empty; everything else needs text."""
    return not isinstance(review, Approve)


@dataclass(frozen=True)
class NoOp:
    pass


@dataclass(frozen=True)
class Ignored:
    pass


@dataclass(frozen=True)
class FileSelected:
    path: str


@dataclass(frozen=True)
class FolderSelected:
    path: str
    children: tuple[str, ...]


@dataclass(frozen=True)
class PrSelected:
    number: int


@dataclass(frozen=True)
class CheckoutPr:
    number: int


@dataclass(frozen=True)
class OpenReviewModal:
    review: ReviewActionType


@dataclass(frozen=True)
class SubmitReview:
    review: ReviewActionType
    body: str


@dataclass(frozen=True)
class BlameRequested:
    path: str


Action = Union[
    NoOp,
    Ignored,
    FileSelected,
    FolderSelected,
    PrSelected,
    CheckoutPr,
    OpenReviewModal,
    SubmitReview,
    BlameRequested,
]

NONE = NoOp()
IGNORED = Ignored()
