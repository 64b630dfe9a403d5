"""Application controller: owns pane state, the timeline, focus, and requests.

Runs only on the UI thread. Key events go to the focused pane (or the open
modal) first; ``IGNORED`` falls through to the global bindings. Background
work is issued through the dispatcher and comes back as completion events,
which are applied only when their request id is still the latest one for
their resource.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from . import workers
from .actions import (
    Action,
    BlameRequested,
    CheckoutPr,
    FileSelected,
    FolderSelected,
    Ignored,
    NoOp,
    OpenReviewModal,
    PrSelected,
    SubmitReview,
    review_title,
)
from .config import Settings
from .content import CommitSummary, Empty, FileContent, FileDiff, FolderDiff, PreviewContent
from .events import CompletionEvent, Event, FilesChangedEvent, KeyEvent, ResizeEvent, TickEvent
from .git_client import GitClient
from .hosting import GitHubClient
from .input import KeyComboBinding, KeyComboRegistry
from .layout import compute_layout
from .models import Commit, DiffStats, PrInfo
from .panes import DiffViewPane, FileListPane, HelpPane, PrListPane, ReviewModal
from .timeline import (
    DEFAULT_POSITION,
    Browse,
    CommitDiff,
    TimelinePosition,
    clamp_position,
    label,
    next_position,
    prev_position,
)
from .workers import RequestTracker

logger = logging.getLogger(__name__)

STATUS_MESSAGE_SECONDS = 2.0


class Focus(Enum):
    FILES = "files"
    PREVIEW = "preview"
    PRS = "prs"


FOCUS_ORDER = (Focus.FILES, Focus.PREVIEW, Focus.PRS)


@dataclass(frozen=True)
class Selection:
    kind: str = "none"  # "none", "file" or "folder"
    path: str = ""
    children: tuple[str, ...] = ()


NO_SELECTION = Selection()


@dataclass(frozen=True)
class AppServices:
    """Side effects that need the terminal or the desktop, injected by the runner."""

    open_editor: Callable[[Path, int | None], str | None]
    copy_to_clipboard: Callable[[str], bool]
    save_split_view: Callable[[bool], None] = lambda _split: None


def _no_editor(_target: Path, _line: int | None) -> str | None:
    return "Editor unavailable"


def _no_clipboard(_text: str) -> bool:
    return False


class App:
    def __init__(
        self,
        git: GitClient,
        hosting: GitHubClient,
        dispatcher,
        settings: Settings | None = None,
        services: AppServices | None = None,
        size: tuple[int, int] = (80, 24),
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.git = git
        self.hosting = hosting
        self.dispatcher = dispatcher
        self.settings = settings if settings is not None else Settings()
        self.services = services if services is not None else AppServices(_no_editor, _no_clipboard)
        self.size = size
        self.clock = clock

        self.running = True
        self.dirty = True
        self.focus = Focus.FILES
        self.position: TimelinePosition = DEFAULT_POSITION
        self.selection = NO_SELECTION
        self.commits: list[Commit] = []
        self.branch = ""
        self.branch_pr: PrInfo | None = None
        self.shown_pr: PrInfo | None = None
        self.stats = DiffStats()

        self.files = FileListPane()
        self.preview = DiffViewPane(split=self.settings.split_view)
        self.prs = PrListPane()
        self.help = HelpPane()
        self.help_open = False
        self.review_modal: ReviewModal | None = None

        self.requests = RequestTracker()
        self._keep_preview_position = False
        self.status_message = ""
        self.status_until = 0.0
        self.last_pr_poll = clock()

        self.keys = KeyComboRegistry().register_bindings(
            KeyComboBinding(("q", "CTRL_C"), self.quit),
            KeyComboBinding(("?",), self.toggle_help),
            KeyComboBinding(("r",), self.refresh),
            KeyComboBinding(("TAB",), lambda: self.cycle_focus(1)),
            KeyComboBinding(("SHIFT_TAB",), lambda: self.cycle_focus(-1)),
            KeyComboBinding((",",), self.timeline_older),
            KeyComboBinding((".",), self.timeline_newer),
            KeyComboBinding(("ESC",), self.focus_files),
            KeyComboBinding(("o",), self.open_current),
            KeyComboBinding(("y",), self.yank_current),
        )
        self._completion_handlers: dict[str, Callable[[object, Exception | None], None]] = {
            workers.STATUS: self._on_status,
            workers.COMMITS: self._on_commits,
            workers.BRANCH: self._on_branch,
            workers.CONTENT: self._on_content,
            workers.DIFF_STATS: self._on_diff_stats,
            workers.PR_LIST: self._on_pr_list,
            workers.PR_BRANCH: self._on_pr_branch,
            workers.PR_DETAIL: self._on_pr_detail,
            workers.BLAME: self._on_blame,
            workers.CHECKOUT: self._on_checkout,
            workers.REVIEW: self._on_review,
            workers.BROWSER: self._on_browser,
            workers.CLIPBOARD: self._on_clipboard,
        }

    # -- geometry ---------------------------------------------------------

    def pane_height(self, focus: Focus) -> int:
        layout = compute_layout(*self.size)
        if focus is Focus.FILES:
            return layout.files.height
        if focus is Focus.PRS:
            return layout.prs.height
        return layout.preview.height

    def help_height(self) -> int:
        return max(3, self.size[1] - 4)

    def _focused_pane(self):
        if self.focus is Focus.FILES:
            return self.files
        if self.focus is Focus.PRS:
            return self.prs
        return self.preview

    # -- status bar -------------------------------------------------------

    def show_status(self, message: str) -> None:
        self.status_message = message
        self.status_until = self.clock() + STATUS_MESSAGE_SECONDS
        self.dirty = True

    # -- requests ---------------------------------------------------------

    def _request(self, resource: str, job: Callable[[], object]) -> int:
        request_id = self.requests.issue(resource)
        logger.debug("request %s #%d", resource, request_id)
        self.dispatcher.submit(resource, request_id, job)
        return request_id

    def start(self) -> None:
        """Issue the initial round of requests."""
        self.preview.loading = True
        self.refresh()

    def refresh(self) -> None:
        """Reload everything; clears pane errors."""
        self.files.error = None
        self.prs.error = None
        self._request(workers.BRANCH, self.git.current_branch)
        self._request_commits()
        self._refresh_views()
        self._request_prs()

    def _refresh_views(self, keep_position: bool = False) -> None:
        self._request_status()
        self._request_diff_stats()
        self._request_content(keep_position=keep_position)

    def _request_commits(self) -> None:
        max_count = self.settings.max_commits
        self._request(workers.COMMITS, lambda: self.git.log(max_count))

    def _request_status(self) -> None:
        position, commits = self.position, list(self.commits)
        self._request(workers.STATUS, lambda: self.git.status(position, commits))

    def _request_diff_stats(self) -> None:
        position, commits = self.position, list(self.commits)
        self._request(workers.DIFF_STATS, lambda: self.git.diff_stats(position, commits))

    def _request_prs(self) -> None:
        self.last_pr_poll = self.clock()
        self._request(workers.PR_LIST, self.hosting.list_prs)
        self._request(workers.PR_BRANCH, self.hosting.pr_for_branch)

    def _request_content(self, keep_position: bool = False) -> None:
        selection, position, commits = self.selection, self.position, list(self.commits)
        self._keep_preview_position = keep_position
        if selection.kind == "none":
            self._show_summary(keep_position=keep_position)
            return
        if not keep_position:
            self.preview.set_loading()

        git = self.git
        if selection.kind == "folder":
            paths = list(selection.children) or [selection.path]

            def job() -> PreviewContent:
                return FolderDiff(selection.path, git.diff(position, commits, paths))

        elif isinstance(position, Browse):

            def job() -> PreviewContent:
                return FileContent(selection.path, git.read_file(selection.path))

        else:

            def job() -> PreviewContent:
                return FileDiff(selection.path, git.diff(position, commits, [selection.path]))

        self._request(workers.CONTENT, job)

    def summary_commit(self) -> Commit | None:
        """Commit the timeline points at: HEAD, or the n-th commit for ``CommitDiff(n)``."""
        if not self.commits:
            return None
        if isinstance(self.position, CommitDiff) and self.position.n <= len(self.commits):
            return self.commits[self.position.n - 1]
        return self.commits[0]

    def _show_summary(self, keep_position: bool = False) -> None:
        self.requests.cancel(workers.CONTENT)
        commit = self.summary_commit()
        pr = self.shown_pr if self.shown_pr is not None else self.branch_pr
        content: PreviewContent = CommitSummary(commit, pr) if commit is not None else Empty()
        loading = self.preview.loading and not self.commits and self.requests.is_pending(workers.COMMITS)
        self.preview.set_content(content, keep_position=keep_position)
        self.preview.loading = loading

    # -- events -----------------------------------------------------------

    def handle_event(self, event: Event) -> None:
        if isinstance(event, KeyEvent):
            self.handle_key(event.key)
        elif isinstance(event, ResizeEvent):
            self.size = (event.columns, event.rows)
            self.dirty = True
        elif isinstance(event, TickEvent):
            self.on_tick(event.now)
        elif isinstance(event, FilesChangedEvent):
            self.on_files_changed()
        elif isinstance(event, CompletionEvent):
            self.apply_completion(event)

    def on_tick(self, now: float) -> None:
        if self.status_message and now >= self.status_until:
            self.status_message = ""
            self.dirty = True
        if now - self.last_pr_poll >= self.settings.pr_poll_seconds:
            self._request_prs()

    def on_files_changed(self) -> None:
        logger.debug("repository changed")
        self._request(workers.BRANCH, self.git.current_branch)
        self._request_commits()
        self._refresh_views(keep_position=True)

    def handle_key(self, key: str) -> None:
        self.dirty = True
        if self.review_modal is not None:
            action = self.review_modal.handle_key(key, self.help_height())
            if isinstance(action, Ignored):
                self.review_modal = None
            else:
                self.apply_action(action)
            return

        if self.help_open:
            if key in {"q", "CTRL_C"}:
                self.quit()
                return
            action = self.help.handle_key(key, self.help_height())
            if isinstance(action, Ignored) and key in {"?", "ESC"}:
                self.help_open = False
            return

        split = self.preview.split
        action = self._focused_pane().handle_key(key, self.pane_height(self.focus))
        if self.preview.split != split:
            self.services.save_split_view(self.preview.split)
        self.apply_action(action)
        if isinstance(action, Ignored):
            self.keys.dispatch(key)

    def apply_action(self, action: Action) -> None:
        if isinstance(action, (NoOp, Ignored)):
            return
        if isinstance(action, FileSelected):
            self._select(Selection("file", action.path))
        elif isinstance(action, FolderSelected):
            self._select(Selection("folder", action.path, action.children))
        elif isinstance(action, PrSelected):
            number = action.number
            self._request(workers.PR_DETAIL, lambda: self.hosting.pr_detail(number))
        elif isinstance(action, CheckoutPr):
            number = action.number
            self.show_status(f"Checking out PR #{number}...")
            self._request(workers.CHECKOUT, lambda: self.hosting.checkout(number))
        elif isinstance(action, OpenReviewModal):
            self.review_modal = ReviewModal(action.review)
        elif isinstance(action, SubmitReview):
            self.review_modal = None
            review, body = action.review, action.body
            self.show_status(f"{review_title(review)}: submitting...")
            self._request(workers.REVIEW, lambda: self.hosting.submit_review(review, body))
        elif isinstance(action, BlameRequested):
            path = action.path
            self._request(workers.BLAME, lambda: self.git.blame(path))
        else:
            raise TypeError(f"not an action: {action!r}")

    def _select(self, selection: Selection) -> None:
        self.selection = selection
        self.shown_pr = None
        self._request_content()

    # -- global bindings --------------------------------------------------

    def quit(self) -> None:
        self.running = False

    def toggle_help(self) -> None:
        self.help_open = not self.help_open

    def cycle_focus(self, step: int) -> None:
        idx = FOCUS_ORDER.index(self.focus)
        self.focus = FOCUS_ORDER[(idx + step) % len(FOCUS_ORDER)]

    def focus_files(self) -> None:
        self.focus = Focus.FILES

    def set_position(self, position: TimelinePosition) -> None:
        if position == self.position:
            return
        self.position = position
        self.files.error = None
        self.show_status(f"Timeline: {label(position)}")
        self._refresh_views()

    def timeline_older(self) -> None:
        self.set_position(next_position(self.position, len(self.commits)))

    def timeline_newer(self) -> None:
        self.set_position(prev_position(self.position))

    def _current_path(self) -> str | None:
        if self.focus is Focus.FILES:
            row = self.files.selected_row()
            return row.path if row is not None else None
        if self.focus is Focus.PREVIEW:
            return self.preview.path
        return None

    def _current_line(self) -> int | None:
        if self.focus is Focus.PREVIEW and self.preview.path is not None:
            return self.preview.cursor_line_number()
        return None

    def open_current(self) -> None:
        if self.focus is Focus.PRS:
            pr = self.prs.selected()
            if pr is None:
                return
            number = pr.number
            self._request(workers.BROWSER, lambda: self.hosting.open_in_browser(number))
            self.show_status(f"Opening PR #{number} in browser")
            return
        path = self._current_path()
        if path is None:
            self.show_status("Nothing to open")
            return
        error = self.services.open_editor(self.git.repo_root / path, self._current_line())
        if error:
            self.show_status(error)

    def yank_current(self) -> None:
        path = self._current_path()
        if path is None:
            return
        line = self._current_line()
        text = f"{path}:{line}" if line is not None else path
        copy = self.services.copy_to_clipboard
        self._request(workers.CLIPBOARD, lambda: text if copy(text) else None)

    # -- completions ------------------------------------------------------

    def apply_completion(self, event: CompletionEvent) -> None:
        if not self.requests.is_current(event.resource, event.request_id):
            logger.debug("dropping stale %s completion #%d", event.resource, event.request_id)
            return
        self.requests.complete(event.resource, event.request_id)
        handler = self._completion_handlers.get(event.resource)
        if handler is None:
            logger.warning("no handler for %s completion", event.resource)
            return
        handler(event.result, event.error)
        self.dirty = True

    def _on_status(self, result: object, error: Exception | None) -> None:
        if error is not None:
            self.files.set_error(str(error))
            return
        self.files.set_entries(result)

    def _on_commits(self, result: object, error: Exception | None) -> None:
        if error is not None:
            self.show_status(f"git log failed: {error}")
            if self.selection.kind == "none":
                self._show_summary()
            return
        previous = [commit.hash for commit in self.commits]
        self.commits = list(result)
        clamped = clamp_position(self.position, len(self.commits))
        if clamped != self.position:
            self.position = clamped
            self._refresh_views()
        elif previous != [commit.hash for commit in self.commits] and isinstance(self.position, CommitDiff):
            self._refresh_views(keep_position=True)
        elif self.selection.kind == "none":
            self._show_summary(keep_position=bool(previous))

    def _on_branch(self, result: object, error: Exception | None) -> None:
        if error is not None:
            logger.warning("branch lookup failed: %s", error)
            return
        self.branch = str(result)

    def _on_content(self, result: object, error: Exception | None) -> None:
        if error is not None:
            self.preview.set_error(str(error))
            return
        self.preview.set_content(result, keep_position=self._keep_preview_position)

    def _on_diff_stats(self, result: object, error: Exception | None) -> None:
        if error is not None:
            logger.warning("diff stats failed: %s", error)
            return
        self.stats = result

    def _on_pr_list(self, result: object, error: Exception | None) -> None:
        if error is not None:
            self.prs.set_error(str(error))
            return
        self.prs.set_prs(result)

    def _on_pr_branch(self, result: object, error: Exception | None) -> None:
        if error is not None:
            logger.warning("branch PR lookup failed: %s", error)
            return
        changed = result != self.branch_pr
        self.branch_pr = result
        self.preview.pr_number = result.number if result is not None else None
        if changed and self.selection.kind == "none" and self.shown_pr is None:
            self._show_summary(keep_position=True)

    def _on_pr_detail(self, result: object, error: Exception | None) -> None:
        if error is not None:
            self.prs.set_error(str(error))
            return
        self.shown_pr = result
        self.selection = NO_SELECTION
        self._show_summary()

    def _on_blame(self, result: object, error: Exception | None) -> None:
        if error is not None:
            self.show_status(f"Blame failed: {error}")
            return
        self.preview.set_blame(result)

    def _on_checkout(self, result: object, error: Exception | None) -> None:
        if error is not None:
            self.show_status(f"Checkout failed: {error}")
            return
        self.show_status("Checked out PR branch")
        self.refresh()

    def _on_review(self, result: object, error: Exception | None) -> None:
        if error is not None:
            self.show_status(f"Review failed: {error}")
            return
        self.show_status("Review submitted")
        self._request(workers.PR_BRANCH, self.hosting.pr_for_branch)

    def _on_browser(self, result: object, error: Exception | None) -> None:
        if error is not None:
            self.show_status(f"Cannot open browser: {error}")

    def _on_clipboard(self, result: object, error: Exception | None) -> None:
        if error is not None or result is None:
            self.show_status("Clipboard unavailable")
            return
        self.show_status(f"Copied {result}")
