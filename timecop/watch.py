"""Poll-based repository watcher.

Combines a stat digest of git control files (index, HEAD, the current ref,
in-progress merge markers) with the worktree status digest. A change is
reported once it has been stable for the debounce interval.
"""

from __future__ import annotations

import hashlib
import logging
import threading
import time
from collections.abc import Callable
from pathlib import Path

from .errors import GitError
from .events import Event, FilesChangedEvent

logger = logging.getLogger(__name__)

POLL_SECONDS = 0.5
DEBOUNCE_SECONDS = 0.5


def _update_digest(digest, token: str) -> None:
    digest.update(token.encode("utf-8", errors="surrogateescape"))
    digest.update(b"\0")


def _path_stat_signature(path: Path) -> tuple[str, int, int, int]:
    try:
        st = path.stat()
    except FileNotFoundError:
        return ("missing", 0, 0, 0)
    except OSError:
        return ("error", 0, 0, 0)
    return ("ok", st.st_mtime_ns, st.st_size, st.st_mode)


def build_git_watch_signature(git_dir: Path) -> str:
    """Digest over git metadata files that change on commit, checkout, or staging."""
    digest = hashlib.blake2b(digest_size=20)
    _update_digest(digest, f"git_dir:{git_dir}")

    def add_path_token(label: str, path: Path) -> None:
        state, mtime_ns, size, mode = _path_stat_signature(path)
        _update_digest(digest, f"{label}:{state}:{mtime_ns}:{size}:{mode}")

    add_path_token("index", git_dir / "index")
    head_path = git_dir / "HEAD"
    add_path_token("head", head_path)

    ref_name = ""
    try:
        head_text = head_path.read_text(encoding="utf-8", errors="replace").strip()
    except OSError:
        head_text = ""
    if head_text.startswith("ref: "):
        ref_name = head_text[5:].strip()
    _update_digest(digest, f"head_ref:{ref_name}")
    if ref_name:
        add_path_token("head_ref_file", git_dir / ref_name)

    add_path_token("packed_refs", git_dir / "packed-refs")
    add_path_token("merge_head", git_dir / "MERGE_HEAD")
    add_path_token("cherry_pick_head", git_dir / "CHERRY_PICK_HEAD")
    add_path_token("rebase_head", git_dir / "REBASE_HEAD")
    return digest.hexdigest()


class RepoWatcher:
    """Thread posting ``FilesChangedEvent`` when the repository signature settles on a new value."""

    def __init__(
        self,
        post: Callable[[Event], None],
        git_dir: Path,
        status_signature: Callable[[], str],
        poll_seconds: float = POLL_SECONDS,
        debounce_seconds: float = DEBOUNCE_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._post = post
        self._git_dir = git_dir
        self._status_signature = status_signature
        self._poll_seconds = poll_seconds
        self._debounce_seconds = debounce_seconds
        self._clock = clock
        self._stop = threading.Event()
        self._last_signature: str | None = None
        self._changed_at: float | None = None

    def signature(self) -> str:
        return build_git_watch_signature(self._git_dir) + ":" + self._status_signature()

    def start(self) -> None:
        self._last_signature = self._safe_signature()
        threading.Thread(target=self._run, name="timecop-watch", daemon=True).start()

    def stop(self) -> None:
        self._stop.set()

    def _safe_signature(self) -> str | None:
        try:
            return self.signature()
        except GitError as exc:
            logger.debug("watch signature failed: %s", exc)
            return None

    def poll_once(self) -> bool:
        """Sample once; returns whether a change notification was posted."""
        current = self._safe_signature()
        if current is None:
            return False
        now = self._clock()
        if current != self._last_signature:
            self._last_signature = current
            self._changed_at = now
            return False
        if self._changed_at is not None and now - self._changed_at >= self._debounce_seconds:
            self._changed_at = None
            self._post(FilesChangedEvent())
            return True
        return False

    def _run(self) -> None:
        while not self._stop.wait(self._poll_seconds):
            self.poll_once()
