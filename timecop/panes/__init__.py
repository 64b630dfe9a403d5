"""Panes: each owns its own state and turns keys into actions."""

from .diff_view import DiffViewPane
from .file_list import FileListPane, TreeRow
from .help import HELP_LINES, HELP_TITLE, HelpLine, HelpPane
from .pr_list import PrListPane
from .review_modal import ReviewModal

__all__ = [
    "DiffViewPane",
    "FileListPane",
    "TreeRow",
    "HELP_LINES",
    "HELP_TITLE",
    "HelpLine",
    "HelpPane",
    "PrListPane",
    "ReviewModal",
]
