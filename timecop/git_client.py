"""Git collaborator: every repository query the UI needs, via the ``git`` CLI.

Calls are blocking and meant to run on worker threads. Each one is bounded by
a timeout; failures and timeouts raise ``GitError``.
"""

from __future__ import annotations

import hashlib
import logging
import subprocess
from datetime import datetime
from pathlib import Path

from .errors import GitError
from .highlight import read_text
from .models import BlameInfo, Commit, DiffStats, FileBlame, FileStatus, StatusEntry
from .timeline import Browse, CommitDiff, FullDiff, TimelinePosition, Wip

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 10.0
EMPTY_TREE = "4b825dc642cb6eb9a060e54bf8d69288fbee4904"
BASE_BRANCH_CANDIDATES = ("main", "master", "origin/main", "origin/master")
_LOG_FORMAT = "%H%x1f%an%x1f%ad%x1f%s"
_FIELD_SEP = "\x1f"


def iter_porcelain_records(output: str) -> list[tuple[str, str]]:
    """Parse ``git status --porcelain=v1 -z`` into ``(XY, path)`` records."""
    records: list[tuple[str, str]] = []
    tokens = output.split("\0")
    index = 0
    while index < len(tokens):
        token = tokens[index]
        index += 1
        if len(token) < 4 or token[2] != " ":
            continue
        status = token[:2]
        records.append((status, token[3:]))
        # Renames and copies carry the source path as an extra token.
        if "R" in status or "C" in status:
            index += 1
    return records


def porcelain_status(code: str) -> FileStatus:
    """Collapse a two-letter porcelain code to one status, index side first."""
    if code == "??":
        return FileStatus.ADDED
    index_code, worktree_code = code[0], code[1]
    if index_code not in {" ", "?"}:
        return FileStatus.from_code(index_code)
    return FileStatus.from_code(worktree_code)


def parse_name_status(output: str) -> list[tuple[FileStatus, str]]:
    """Parse ``git diff --name-status -z`` output; renames report the new path."""
    tokens = output.split("\0")
    out: list[tuple[FileStatus, str]] = []
    index = 0
    while index < len(tokens):
        code = tokens[index]
        index += 1
        if not code:
            continue
        if code[0] in {"R", "C"}:
            path = tokens[index + 1] if index + 1 < len(tokens) else ""
            index += 2
        else:
            path = tokens[index] if index < len(tokens) else ""
            index += 1
        if path:
            out.append((FileStatus.from_code(code), path))
    return out


def parse_numstat(output: str) -> DiffStats:
    """Sum ``git diff --numstat`` rows; binary rows (``-``) count as zero."""
    added = 0
    removed = 0
    for line in output.splitlines():
        parts = line.split("\t", 2)
        if len(parts) < 3:
            continue
        if parts[0].isdigit():
            added += int(parts[0])
        if parts[1].isdigit():
            removed += int(parts[1])
    return DiffStats(added=added, removed=removed)


def parse_log(output: str) -> list[Commit]:
    commits: list[Commit] = []
    for line in output.splitlines():
        fields = line.split(_FIELD_SEP)
        if len(fields) != 4 or not fields[0]:
            continue
        commits.append(Commit(hash=fields[0], author=fields[1], date=fields[2], subject=fields[3]))
    return commits


def parse_blame_porcelain(path: str, output: str) -> FileBlame:
    """Parse ``git blame --line-porcelain`` into per-line blame records."""
    infos: list[BlameInfo] = []
    commit_id = ""
    final_line = 0
    author = ""
    author_time = ""
    summary = ""
    expect_header = True
    for line in output.splitlines():
        if expect_header:
            parts = line.split()
            if len(parts) < 3:
                continue
            commit_id = parts[0]
            final_line = int(parts[2]) if parts[2].isdigit() else 0
            author = author_time = summary = ""
            expect_header = False
            continue
        if line.startswith("\t"):
            infos.append(
                BlameInfo(
                    line=final_line,
                    author=author,
                    date=_format_epoch(author_time),
                    commit_id=commit_id,
                    summary=summary,
                )
            )
            expect_header = True
        elif line.startswith("author "):
            author = line[len("author ") :]
        elif line.startswith("author-time "):
            author_time = line[len("author-time ") :]
        elif line.startswith("summary "):
            summary = line[len("summary ") :]
    return FileBlame(path=path, lines=tuple(infos))


def _format_epoch(value: str) -> str:
    if not value.isdigit():
        return ""
    return datetime.fromtimestamp(int(value)).strftime("%Y-%m-%d")


def resolve_repo_and_git_dir(path: Path, timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS) -> tuple[Path, Path]:
    """Return ``(repo_root, git_dir)`` for ``path`` or raise ``GitError``."""
    try:
        proc = subprocess.run(
            ["git", "-C", str(path), "rev-parse", "--show-toplevel", "--git-dir"],
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            encoding="utf-8",
            errors="replace",
            check=False,
            timeout=timeout_seconds,
        )
    except subprocess.TimeoutExpired as exc:
        raise GitError(f"git rev-parse timed out after {timeout_seconds:g}s") from exc
    except OSError as exc:
        raise GitError(f"cannot run git: {exc}") from exc
    if proc.returncode != 0:
        raise GitError(f"not a git repository: {path}")

    lines = [line.strip() for line in proc.stdout.splitlines() if line.strip()]
    if len(lines) < 2:
        raise GitError(f"not a git repository: {path}")
    repo_root = Path(lines[0]).resolve()
    git_dir_raw = Path(lines[1])
    git_dir = git_dir_raw if git_dir_raw.is_absolute() else (repo_root / git_dir_raw)
    return repo_root, git_dir.resolve()


class GitClient:
    def __init__(self, repo_root: Path, git_dir: Path, timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS) -> None:
        self.repo_root = repo_root
        self.git_dir = git_dir
        self.timeout_seconds = timeout_seconds

    @classmethod
    def discover(cls, path: Path, timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS) -> GitClient:
        repo_root, git_dir = resolve_repo_and_git_dir(path, timeout_seconds)
        return cls(repo_root, git_dir, timeout_seconds)

    def _run(self, args: list[str], *, check: bool = True, ok_codes: tuple[int, ...] = (0,)) -> str:
        try:
            proc = subprocess.run(
                ["git", "-C", str(self.repo_root), *args],
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                encoding="utf-8",
                errors="replace",
                check=False,
                timeout=self.timeout_seconds,
            )
        except subprocess.TimeoutExpired as exc:
            raise GitError(f"git {args[0]} timed out after {self.timeout_seconds:g}s") from exc
        except OSError as exc:
            raise GitError(f"cannot run git: {exc}") from exc
        if check and proc.returncode not in ok_codes:
            message = proc.stderr.strip() or f"exit status {proc.returncode}"
            raise GitError(f"git {args[0]} failed: {message}")
        logger.debug("git %s -> %d", " ".join(args[:3]), proc.returncode)
        return proc.stdout if proc.returncode in ok_codes else ""

    def _verify(self, rev: str) -> str | None:
        out = self._run(["rev-parse", "--verify", "--quiet", f"{rev}^{{commit}}"], check=False).strip()
        return out or None

    def head(self) -> str | None:
        return self._verify("HEAD")

    def current_branch(self) -> str:
        name = self._run(["symbolic-ref", "--short", "-q", "HEAD"], check=False).strip()
        if name:
            return name
        head = self.head()
        return head[:7] if head else "unknown"

    def base_branch(self) -> str | None:
        for candidate in BASE_BRANCH_CANDIDATES:
            if self._verify(candidate) is not None:
                return candidate
        return None

    def merge_base(self) -> str | None:
        """Merge base of HEAD with the base branch, if both exist."""
        base = self.base_branch()
        if base is None or self.head() is None:
            return None
        out = self._run(["merge-base", base, "HEAD"], check=False).strip()
        return out or None

    def log(self, max_count: int) -> list[Commit]:
        """Branch commits since the merge base, else the latest ``max_count`` commits."""
        head = self.head()
        if head is None or max_count <= 0:
            return []
        args = ["log", f"-n{max_count}", f"--format={_LOG_FORMAT}", "--date=short"]
        merge_base = self.merge_base()
        if merge_base is not None and merge_base != head:
            args.append(f"{merge_base}..HEAD")
        return parse_log(self._run(args))

    def _parent_of(self, commit: str) -> str:
        return self._verify(f"{commit}^") or EMPTY_TREE

    def diff_range(self, position: TimelinePosition, commits: list[Commit]) -> list[str] | None:
        """Revisions passed to ``git diff`` for ``position``; ``None`` means nothing to diff."""
        if isinstance(position, Browse):
            return None
        if isinstance(position, Wip):
            return ["HEAD"] if self.head() is not None else [EMPTY_TREE]
        if isinstance(position, FullDiff):
            if self.head() is None:
                return None
            return [self.merge_base() or EMPTY_TREE, "HEAD"]
        if isinstance(position, CommitDiff):
            if position.n < 1 or position.n > len(commits):
                return None
            commit = commits[position.n - 1].hash
            return [self._parent_of(commit), commit]
        raise TypeError(f"not a timeline position: {position!r}")

    def _porcelain(self) -> dict[str, str]:
        output = self._run(["status", "--porcelain=v1", "-z", "--untracked-files=all"])
        return {path: code for code, path in iter_porcelain_records(output) if code != "!!"}

    def diff(self, position: TimelinePosition, commits: list[Commit], paths: list[str] | tuple[str, ...] = ()) -> str:
        """Unified diff for ``paths`` (all files when empty) over ``position``'s range."""
        rev_range = self.diff_range(position, commits)
        if rev_range is None:
            return ""
        out = self._run(["diff", "--no-color", "--no-ext-diff", "-M", *rev_range, "--", *paths])
        if isinstance(position, Wip):
            out += self._untracked_diff(paths)
        return out

    def _untracked_diff(self, paths: list[str] | tuple[str, ...]) -> str:
        untracked = [path for path, code in self._porcelain().items() if code == "??"]
        if paths:
            wanted = tuple(paths)
            untracked = [p for p in untracked if p in wanted or any(p.startswith(w.rstrip("/") + "/") for w in wanted)]
        chunks = [
            self._run(["diff", "--no-color", "--no-index", "--", "/dev/null", path], ok_codes=(0, 1))
            for path in sorted(untracked)
        ]
        return "".join(chunks)

    def read_file(self, path: str) -> str:
        target = (self.repo_root / path).resolve()
        if not target.is_relative_to(self.repo_root):
            raise GitError(f"path outside repository: {path}")
        try:
            return read_text(target)
        except OSError as exc:
            raise GitError(f"cannot read {path}: {exc.strerror or exc}") from exc

    def status(self, position: TimelinePosition, commits: list[Commit]) -> list[StatusEntry]:
        """Files to list for ``position``, with their change kind and dirty flag."""
        porcelain = self._porcelain()
        if isinstance(position, Browse):
            tracked = [p for p in self._run(["ls-files", "-z"]).split("\0") if p]
            paths = set(tracked) | {p for p, code in porcelain.items() if code == "??"}
            entries = [
                StatusEntry(
                    path,
                    porcelain_status(porcelain[path]) if path in porcelain else FileStatus.UNCHANGED,
                    path in porcelain,
                )
                for path in paths
            ]
        elif isinstance(position, Wip):
            entries = [StatusEntry(path, porcelain_status(code), True) for path, code in porcelain.items()]
        else:
            rev_range = self.diff_range(position, commits)
            if rev_range is None:
                return []
            output = self._run(["diff", "--name-status", "-z", "-M", *rev_range])
            entries = [StatusEntry(path, status, path in porcelain) for status, path in parse_name_status(output)]
        return sorted(entries, key=lambda entry: entry.path)

    def diff_stats(self, position: TimelinePosition, commits: list[Commit]) -> DiffStats:
        rev_range = self.diff_range(position, commits)
        if rev_range is None:
            return DiffStats()
        return parse_numstat(self._run(["diff", "--numstat", "-M", *rev_range]))

    def blame(self, path: str) -> FileBlame:
        return parse_blame_porcelain(path, self._run(["blame", "--line-porcelain", "--", path]))

    def status_signature(self) -> str:
        """Digest of worktree status plus stat data of dirty paths.

        Stat data catches further edits to files that were already modified,
        which leave the porcelain text unchanged.
        """
        output = self._run(["status", "--porcelain=v1", "-z", "--untracked-files=normal"], check=False)
        digest = hashlib.blake2b(digest_size=20)
        digest.update(output.encode("utf-8", errors="surrogateescape"))
        for _code, path in iter_porcelain_records(output):
            try:
                st = (self.repo_root / path).stat()
            except OSError:
                continue
            digest.update(f"\0{path}:{st.st_mtime_ns}:{st.st_size}".encode("utf-8", errors="surrogateescape"))
        return digest.hexdigest()
