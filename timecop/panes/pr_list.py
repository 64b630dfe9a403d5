"""Open pull requests shown in the left-bottom pane."""

from __future__ import annotations

from ..actions import (
    IGNORED,
    NONE,
    Action,
    Approve,
    CheckoutPr,
    Comment,
    OpenReviewModal,
    PrSelected,
    RequestChanges,
)
from ..models import PrSummary
from ..viewport import Viewport

_REVIEW_KEYS = {"a": Approve, "x": RequestChanges, "c": Comment}


class PrListPane:
    def __init__(self) -> None:
        self.viewport = Viewport()
        self.prs: list[PrSummary] = []
        self.loading = True
        self.error: str | None = None

    def set_prs(self, prs: list[PrSummary]) -> None:
        """Replace the list, keeping the cursor on the same PR number if present."""
        selected = self.selected()
        self.prs = list(prs)
        self.loading = False
        self.error = None
        self.viewport.set_item_count(len(self.prs))
        if selected is None:
            return
        for idx, pr in enumerate(self.prs):
            if pr.number == selected.number:
                self.viewport.cursor = idx
                return

    def set_error(self, message: str) -> None:
        self.loading = False
        self.error = message

    def selected(self) -> PrSummary | None:
        if not self.prs:
            return None
        return self.prs[self.viewport.cursor]

    def handle_key(self, key: str, height: int) -> Action:
        before = self.viewport.cursor
        if self.viewport.handle_scroll_key(key, height):
            selected = self.selected()
            if selected is not None and self.viewport.cursor != before:
                return PrSelected(selected.number)
            return NONE

        selected = self.selected()
        if key in {"ENTER_CR", "ENTER_LF"}:
            return CheckoutPr(selected.number) if selected is not None else NONE
        review_type = _REVIEW_KEYS.get(key)
        if review_type is not None:
            return OpenReviewModal(review_type(selected.number)) if selected is not None else NONE
        return IGNORED
