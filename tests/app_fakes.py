"""Fake collaborators and a base test case for driving ``App`` directly.

A manual dispatcher records submitted jobs so tests decide when (and in which
order) background work completes, which makes supersession deterministic.
"""

from __future__ import annotations

import unittest
from pathlib import Path

from timecop.app import App, AppServices
from timecop.config import Settings
from timecop.events import CompletionEvent, KeyEvent
from timecop.models import Commit, DiffStats, FileBlame, FileStatus, PrInfo, PrSummary, StatusEntry


DIFF = "@@ -1,2 +1,2 @@\n keep\n-old\n+new\n"
COMMITS = [
    Commit("1" * 40, "ann", "2024-01-03", "third"),
    Commit("2" * 40, "bob", "2024-01-02", "second"),
    Commit("3" * 40, "cid", "2024-01-01", "first"),
]
BRANCH_PR = PrInfo(4, "ann", "Feature", "OPEN", "https://example.com/4", "2024-01-03")


class FakeGit:
    def __init__(self) -> None:
        self.repo_root = Path("/repo")
        self.calls: list[tuple] = []
        self.commits = list(COMMITS)
        self.diff_text = DIFF

    def current_branch(self) -> str:
        return "feature"

    def log(self, max_count: int) -> list[Commit]:
        self.calls.append(("log", max_count))
        return list(self.commits)

    def status(self, position, commits) -> list[StatusEntry]:
        self.calls.append(("status", position))
        return [StatusEntry("a.py", FileStatus.MODIFIED), StatusEntry("pkg/b.py", FileStatus.ADDED)]

    def diff_stats(self, position, commits) -> DiffStats:
        return DiffStats(3, 1)

    def diff(self, position, commits, paths) -> str:
        self.calls.append(("diff", position, tuple(paths)))
        return self.diff_text

    def read_file(self, path: str) -> str:
        self.calls.append(("read_file", path))
        return "line one\nline two\n"

    def blame(self, path: str) -> FileBlame:
        return FileBlame(path)


class FakeHosting:
    def __init__(self) -> None:
        self.reviews: list[tuple] = []
        self.checked_out: list[int] = []
        self.browsed: list[int] = []

    def list_prs(self) -> list[PrSummary]:
        return [PrSummary(4, "ann", "Feature", "OPEN", "https://example.com/4", "2024-01-03")]

    def pr_for_branch(self) -> PrInfo | None:
        return BRANCH_PR

    def pr_detail(self, number: int) -> PrInfo:
        return PrInfo(number, "zed", f"PR {number}", "OPEN", "u", "d", body="detail body")

    def checkout(self, number: int) -> None:
        self.checked_out.append(number)

    def open_in_browser(self, number: int) -> None:
        self.browsed.append(number)

    def submit_review(self, review, body: str) -> None:
        self.reviews.append((review, body))


class ManualDispatcher:
    def __init__(self) -> None:
        self.pending: list[tuple[str, int, object]] = []

    def submit(self, resource, request_id, job) -> None:
        self.pending.append((resource, request_id, job))

    def take(self, resource: str) -> list[tuple[str, int, object]]:
        taken = [item for item in self.pending if item[0] == resource]
        self.pending = [item for item in self.pending if item[0] != resource]
        return taken


class FakeClock:
    def __init__(self) -> None:
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


class AppTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.git = FakeGit()
        self.hosting = FakeHosting()
        self.dispatcher = ManualDispatcher()
        self.clock = FakeClock()
        self.opened: list[tuple[Path, int | None]] = []
        self.copied: list[str] = []
        self.saved_split: list[bool] = []
        services = AppServices(
            open_editor=lambda path, line: self.opened.append((path, line)),
            copy_to_clipboard=lambda text: self.copied.append(text) or True,
            save_split_view=self.saved_split.append,
        )
        self.app = App(
            self.git,
            self.hosting,
            self.dispatcher,
            settings=Settings(pr_poll_seconds=60.0),
            services=services,
            size=(120, 40),
            clock=self.clock,
        )

    def run_pending(self) -> None:
        """Complete every queued job, including ones queued by completions."""
        while self.dispatcher.pending:
            resource, request_id, job = self.dispatcher.pending.pop(0)
            self._complete(resource, request_id, job)

    def _complete(self, resource, request_id, job) -> None:
        try:
            result = job()
        except Exception as exc:
            self.app.handle_event(CompletionEvent(resource, request_id, error=exc))
            return
        self.app.handle_event(CompletionEvent(resource, request_id, result=result))

    def start(self) -> None:
        self.app.start()
        self.run_pending()

    def keys(self, *keys: str) -> None:
        for key in keys:
            self.app.handle_event(KeyEvent(key))

