"""Background request dispatch with per-resource supersession.

Every request is tagged with an id from ``RequestTracker``. Workers never
touch UI state: they post a ``CompletionEvent`` and the UI thread decides,
by id, whether the result is still wanted.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor

from .events import CompletionEvent, Event

logger = logging.getLogger(__name__)

DEFAULT_MAX_WORKERS = 4

STATUS = "status"
COMMITS = "commits"
BRANCH = "branch"
CONTENT = "content"
DIFF_STATS = "diff_stats"
PR_LIST = "pr_list"
PR_BRANCH = "pr_branch"
PR_DETAIL = "pr_detail"
BLAME = "blame"
CHECKOUT = "checkout"
REVIEW = "review"
BROWSER = "browser"
CLIPBOARD = "clipboard"


class RequestTracker:
    """Latest issued request id per logical resource."""

    def __init__(self) -> None:
        self._next_id = 1
        self._latest: dict[str, int] = {}

    def issue(self, resource: str) -> int:
        request_id = self._next_id
        self._next_id += 1
        self._latest[resource] = request_id
        return request_id

    def latest(self, resource: str) -> int | None:
        return self._latest.get(resource)

    def is_current(self, resource: str, request_id: int) -> bool:
        return self._latest.get(resource) == request_id

    def is_pending(self, resource: str) -> bool:
        return resource in self._latest

    def cancel(self, resource: str) -> None:
        """Make any in-flight request for ``resource`` stale."""
        self._latest.pop(resource, None)

    def complete(self, resource: str, request_id: int) -> None:
        """Forget ``resource`` once its current request has been applied."""
        if self.is_current(resource, request_id):
            del self._latest[resource]


class BackgroundDispatcher:
    """Thread-pool runner that turns results and exceptions into completion events."""

    def __init__(self, post: Callable[[Event], None], max_workers: int = DEFAULT_MAX_WORKERS) -> None:
        self._post = post
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="timecop-worker")

    def submit(self, resource: str, request_id: int, job: Callable[[], object]) -> None:
        self._executor.submit(self._run, resource, request_id, job)

    def _run(self, resource: str, request_id: int, job: Callable[[], object]) -> None:
        try:
            result = job()
        except Exception as exc:
            logger.warning("%s request %d failed: %s", resource, request_id, exc)
            self._post(CompletionEvent(resource, request_id, error=exc))
            return
        self._post(CompletionEvent(resource, request_id, result=result))

    def shutdown(self) -> None:
        self._executor.shutdown(wait=False, cancel_futures=True)
