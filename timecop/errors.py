"""Error kinds shared across collaborators and the runtime.

Only ``TerminalError`` is allowed to end the process; the others are caught
at pane boundaries and rendered inline.
"""

from __future__ import annotations


class TimecopError(Exception):
    """Base class for all timecop errors."""


class ParseError(TimecopError):
    """Malformed diff input. The parser degrades instead of raising this."""


class GitError(TimecopError):
    """A git invocation failed, timed out, or returned unusable output."""


class NetworkError(TimecopError):
    """A code-hosting call failed or timed out."""


class TerminalError(TimecopError):
    """Raw-mode or alternate-screen setup/teardown failed."""
