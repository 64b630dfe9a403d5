"""Single-line text prompt for approve/request-changes/comment reviews."""

from __future__ import annotations

from ..actions import IGNORED, NONE, Action, ReviewActionType, SubmitReview, body_required, review_title

_ENTER_KEYS = {"ENTER_CR", "ENTER_LF"}


class ReviewModal:
    def __init__(self, review: ReviewActionType) -> None:
        self.review = review
        self.body = ""
        self.error: str | None = None

    @property
    def title(self) -> str:
        return review_title(self.review)

    def handle_key(self, key: str, height: int) -> Action:
        """Edit the body; Enter submits and Esc is left for the controller."""
        if key == "ESC":
            return IGNORED
        if key in _ENTER_KEYS:
            body = self.body.strip()
            if not body and body_required(self.review):
                self.error = "A message is required"
                return NONE
            return SubmitReview(self.review, body)
        if key == "BACKSPACE":
            self.body = self.body[:-1]
        elif key == "CTRL_U":
            self.body = ""
        elif key == "TAB":
            self.body += "    "
        elif len(key) == 1 and key.isprintable():
            self.body += key
        else:
            return NONE
        self.error = None
        return NONE
