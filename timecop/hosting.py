"""GitHub collaborator driving the ``gh`` CLI with JSON output.

Authentication and repository detection are left to ``gh`` itself. Every
failure, including a missing ``gh`` binary and timeouts, raises
``NetworkError`` so callers can show it in the PR pane.
"""

from __future__ import annotations

import json
import logging
import subprocess
from pathlib import Path

from .actions import Approve, Comment, LineComment, RequestChanges, ReviewActionType
from .errors import NetworkError
from .models import PrInfo, PrSummary, Review

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 15.0
PR_LIST_LIMIT = 50
SUMMARY_FIELDS = "number,title,author,state,url,updatedAt"
DETAIL_FIELDS = SUMMARY_FIELDS + ",body,reviews"
_NO_PR_MARKERS = ("no pull requests found", "no open pull requests")


def _login(value: object) -> str:
    if isinstance(value, dict):
        login = value.get("login")
        return login if isinstance(login, str) else ""
    return value if isinstance(value, str) else ""


def _text(data: dict, key: str) -> str:
    value = data.get(key)
    return value if isinstance(value, str) else ""


def parse_pr_summary(data: object) -> PrSummary:
    if not isinstance(data, dict) or not isinstance(data.get("number"), int):
        raise NetworkError(f"unexpected pull request payload: {data!r}")
    return PrSummary(
        number=data["number"],
        author=_login(data.get("author")),
        title=_text(data, "title"),
        state=_text(data, "state"),
        url=_text(data, "url"),
        updated_at=_text(data, "updatedAt"),
    )


def parse_pr_info(data: object) -> PrInfo:
    if not isinstance(data, dict):
        raise NetworkError(f"unexpected pull request payload: {data!r}")
    summary = parse_pr_summary(data)
    reviews = tuple(
        Review(author=_login(item.get("author")), state=_text(item, "state"), body=_text(item, "body"))
        for item in data.get("reviews") or ()
        if isinstance(item, dict)
    )
    return PrInfo(
        number=summary.number,
        author=summary.author,
        title=summary.title,
        state=summary.state,
        url=summary.url,
        updated_at=summary.updated_at,
        body=_text(data, "body"),
        reviews=reviews,
    )


class GitHubClient:
    def __init__(self, repo_root: Path, timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS, gh: str = "gh") -> None:
        self.repo_root = repo_root
        self.timeout_seconds = timeout_seconds
        self.gh = gh

    def _run(self, args: list[str]) -> subprocess.CompletedProcess[str]:
        try:
            return subprocess.run(
                [self.gh, *args],
                cwd=str(self.repo_root),
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                encoding="utf-8",
                errors="replace",
                check=False,
                timeout=self.timeout_seconds,
            )
        except subprocess.TimeoutExpired as exc:
            raise NetworkError(f"gh {args[0]} timed out after {self.timeout_seconds:g}s") from exc
        except FileNotFoundError as exc:
            raise NetworkError("gh CLI not found; install it to load pull requests") from exc
        except OSError as exc:
            raise NetworkError(f"cannot run gh: {exc}") from exc

    def _check(self, args: list[str]) -> str:
        proc = self._run(args)
        if proc.returncode != 0:
            message = proc.stderr.strip() or f"exit status {proc.returncode}"
            raise NetworkError(f"gh {' '.join(args[:2])} failed: {message}")
        return proc.stdout

    def _json(self, args: list[str]) -> object:
        output = self._check(args)
        try:
            return json.loads(output)
        except ValueError as exc:
            raise NetworkError(f"gh {' '.join(args[:2])} returned invalid JSON") from exc

    def list_prs(self) -> list[PrSummary]:
        data = self._json(["pr", "list", "--state", "open", "--limit", str(PR_LIST_LIMIT), "--json", SUMMARY_FIELDS])
        if not isinstance(data, list):
            raise NetworkError("gh pr list returned an unexpected payload")
        return [parse_pr_summary(item) for item in data]

    def pr_for_branch(self) -> PrInfo | None:
        """PR of the checked-out branch, or ``None`` when the branch has none."""
        args = ["pr", "view", "--json", DETAIL_FIELDS]
        proc = self._run(args)
        if proc.returncode != 0:
            stderr = proc.stderr.strip()
            if any(marker in stderr.lower() for marker in _NO_PR_MARKERS):
                return None
            raise NetworkError(f"gh pr view failed: {stderr or f'exit status {proc.returncode}'}")
        try:
            return parse_pr_info(json.loads(proc.stdout))
        except ValueError as exc:
            raise NetworkError("gh pr view returned invalid JSON") from exc

    def pr_detail(self, number: int) -> PrInfo:
        return parse_pr_info(self._json(["pr", "view", str(number), "--json", DETAIL_FIELDS]))

    def checkout(self, number: int) -> None:
        self._check(["pr", "checkout", str(number)])

    def open_in_browser(self, number: int) -> None:
        self._check(["pr", "view", str(number), "--web"])

    def _head_sha(self, number: int) -> str:
        data = self._json(["pr", "view", str(number), "--json", "headRefOid"])
        sha = data.get("headRefOid") if isinstance(data, dict) else None
        if not isinstance(sha, str) or not sha:
            raise NetworkError(f"cannot resolve head commit of PR #{number}")
        return sha

    def submit_review(self, review: ReviewActionType, body: str) -> None:
        if isinstance(review, LineComment):
            sha = self._head_sha(review.pr)
            self._check(
                [
                    "api",
                    f"repos/{{owner}}/{{repo}}/pulls/{review.pr}/comments",
                    "-f",
                    f"body={body}",
                    "-f",
                    f"path={review.path}",
                    "-F",
                    f"line={review.line}",
                    "-f",
                    "side=RIGHT",
                    "-f",
                    f"commit_id={sha}",
                ]
            )
            logger.info("posted line comment on PR #%d %s:%d", review.pr, review.path, review.line)
            return

        if isinstance(review, Approve):
            flag = "--approve"
        elif isinstance(review, RequestChanges):
            flag = "--request-changes"
        elif isinstance(review, Comment):
            flag = "--comment"
        else:
            raise TypeError(f"not a review action: {review!r}")
        args = ["pr", "review", str(review.pr), flag]
        if body:
            args.extend(["--body", body])
        self._check(args)
        logger.info("submitted %s review on PR #%d", flag[2:], review.pr)
