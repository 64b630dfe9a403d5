"""Scrollable key-binding overlay."""

from __future__ import annotations

from dataclasses import dataclass

from ..actions import IGNORED, NONE, Action
from ..viewport import Viewport

HELP_TITLE = "TIMECOP - Time-Travel Code Review"


@dataclass(frozen=True)
class HelpLine:
    kind: str  # "text", "muted", "heading" or "binding"
    text: str = ""
    key: str = ""


def _binding(key: str, description: str) -> HelpLine:
    return HelpLine("binding", description, key)


HELP_LINES: tuple[HelpLine, ...] = (
    HelpLine("text"),
    HelpLine("muted", "  Navigate through commit history. The TIMECOP title is your timeline."),
    HelpLine("muted", "  Selected position glows red. Use , and . to time-travel."),
    HelpLine("text"),
    HelpLine("heading", "Timeline"),
    HelpLine("muted", "  T─I─M─E─C─O─P─○─○─○─ ... ─○─○─○─[all]─[wip]─[browse]"),
    HelpLine("muted", "                -16          -1   all   wip   browse"),
    HelpLine("muted", "  ← older                                   newer →"),
    HelpLine("text"),
    HelpLine("heading", "Navigation"),
    _binding("j/k", "Move up/down"),
    _binding("J/K", "Move fast (5 lines)"),
    _binding("g/G", "Jump to top/bottom"),
    _binding("Ctrl+D/U", "Half page down/up"),
    _binding("h/l", "Collapse/expand folders"),
    _binding("Tab", "Cycle panes (Files → Preview → PRs)"),
    _binding("Enter", "Open diff / Checkout PR"),
    _binding("Esc", "Back to file list"),
    _binding(",", "Timeline: older commit"),
    _binding(".", "Timeline: newer / full diff"),
    HelpLine("text"),
    HelpLine("heading", "Diff View"),
    _binding("s", "Toggle split/unified view"),
    _binding("b", "Toggle blame (browse mode)"),
    HelpLine("text"),
    HelpLine("heading", "Actions"),
    _binding("o", "Open in $EDITOR (or PR in browser)"),
    _binding("y", "Copy path to clipboard"),
    _binding("r", "Refresh"),
    _binding("q", "Quit"),
    HelpLine("text"),
    HelpLine("heading", "PR Review"),
    _binding("a", "Approve"),
    _binding("x", "Request changes"),
    _binding("c", "Comment (PR or line)"),
    HelpLine("text"),
    HelpLine("muted", "Press ? or Esc to close  |  j/k to scroll"),
)


class HelpPane:
    def __init__(self) -> None:
        self.viewport = Viewport(item_count=len(HELP_LINES), reserved_rows=2)

    def handle_key(self, key: str, height: int) -> Action:
        # The cursor doubles as the first visible row; help has no highlight.
        visible = self.viewport.visible_rows(height)
        self.viewport.set_item_count(max(0, len(HELP_LINES) - visible) + 1)
        if not self.viewport.handle_scroll_key(key, height):
            return IGNORED
        self.viewport.offset = self.viewport.cursor
        return NONE
