"""Full-frame ANSI composition for the review screen.

Reads application state and returns one string per frame; never mutates the
panes. Viewport windows are computed on copies so a resize between key
presses still draws the cursor on screen.
"""

from __future__ import annotations

from dataclasses import replace

from .actions import ReviewActionType, body_required
from .ansi import clip_ansi_line, display_width, fit_ansi_line, slice_ansi_line, truncate_text
from .app import App, Focus
from .content import (
    DiffLine,
    Empty,
    FileContent,
    FileDiff,
    FolderDiff,
    LineType,
    PreviewContent,
    diff_stats,
)
from .highlight import DEFAULT_STYLE, apply_line_background, display_text, highlight_lines
from .layout import Rect, compute_layout
from .models import FileBlame, FileStatus, PrSummary
from .panes import HELP_LINES, HELP_TITLE, HelpLine, TreeRow
from .timeline import CommitDiff, label, timeline_slots
from .ui_theme import UITheme
from .viewport import Viewport

HELP_MAX_WIDTH = 66
MODAL_MAX_WIDTH = 60
GUTTER_WIDTH = 4
BLAME_AUTHOR_WIDTH = 10
LOADING_TEXT = "Loading..."

_CODE_LINE_TYPES = {LineType.CONTEXT, LineType.ADDED, LineType.REMOVED}
_DIFF_MARKERS = {LineType.ADDED: "+", LineType.REMOVED: "-"}


def selected_with_ansi(text: str) -> str:
    """Apply selection styling without discarding existing ANSI colors."""
    if not text:
        return text

    # Keep reverse video active even when the text contains internal resets.
    return "\033[7m" + text.replace("\033[0m", "\033[0;7m") + "\033[0m"


def _window(viewport: Viewport, height: int) -> Viewport:
    window = replace(viewport)
    window.ensure_visible(height)
    return window


class Renderer:
    def __init__(self, theme: UITheme, syntax_style: str = DEFAULT_STYLE, highlight: bool = True) -> None:
        self.theme = theme
        self.syntax_style = syntax_style
        self.highlight = highlight
        self._highlight_key: tuple[PreviewContent, str] | None = None
        self._highlighted: list[str | None] = []

    def render(self, app: App) -> str:
        """Compose the whole screen for ``app``."""
        layout = compute_layout(*app.size)
        columns = layout.columns
        screen = [""] * layout.rows
        screen[layout.timeline_row] = self.timeline_bar(app, columns)

        left = self._files_box(app, layout.files) + self._prs_box(app, layout.prs)
        right = self._preview_box(app, layout.preview)
        for idx in range(layout.preview.height):
            screen[layout.preview.y + idx] = left[idx] + right[idx]
        screen[layout.status_row] = self.status_bar(app, columns)

        if app.review_modal is not None:
            self._overlay_review(app, screen, columns, layout.rows)
        elif app.help_open:
            self._overlay_help(app, screen, columns, layout.rows)

        return "\033[H\033[J" + "\r\n".join(screen)

    # -- chrome -----------------------------------------------------------

    def _box(self, rect: Rect, title: str, body: list[str], footer: str | None, focused: bool) -> list[str]:
        """Bordered pane of exactly ``rect.height`` lines; ``footer`` adds a row above the bottom border."""
        t = self.theme
        border = t.border_focused if focused else t.border
        title_style = t.title_focused if focused else t.title
        inner = max(0, rect.width - 2)

        label_text = truncate_text(f" {display_text(title)} ", max(0, inner - 1))
        fill = "─" * max(0, inner - 1 - display_width(label_text))
        lines = [f"{border}┌─{t.reset}{title_style}{label_text}{t.reset}{border}{fill}┐{t.reset}"]

        content_rows = max(0, rect.height - (3 if footer is not None else 2))
        for idx in range(content_rows):
            text = body[idx] if idx < len(body) else ""
            lines.append(f"{border}│{t.reset}{fit_ansi_line(text, inner)}{border}│{t.reset}")
        if footer is not None:
            footer_text = truncate_text(footer, inner)
            padded = " " * max(0, inner - display_width(footer_text)) + footer_text
            lines.append(f"{border}│{t.reset}{t.muted}{padded}{t.reset}{border}│{t.reset}")
        lines.append(f"{border}└{'─' * inner}┘{t.reset}")
        return lines[: rect.height]

    def _message(self, text: str, style: str) -> list[str]:
        return [f" {style}{text}{self.theme.reset}"]

    def _list_footer(self, viewport: Viewport, height: int) -> str:
        if viewport.item_count == 0:
            return ""
        percent = viewport.scroll_percent(height)
        position = f"{viewport.cursor + 1} of {viewport.item_count}"
        return f"{position} {percent} " if percent else f"{position} "

    def timeline_bar(self, app: App, width: int) -> str:
        """``T─I─M─E─C─O─P─○─...─[all]─[wip]─[browse]`` with the current slot lit."""
        t = self.theme
        parts = [f"{t.title_focused}{'─'.join('TIMECOP')}{t.reset}"]
        for slot in timeline_slots(len(app.commits)):
            active = slot == app.position
            if isinstance(slot, CommitDiff):
                glyph = "●" if active else "○"
            else:
                glyph = f"[{label(slot)}]"
            style = t.timeline_active if active else t.timeline_inactive
            parts.append(f"{style}{glyph}{t.reset}")
        separator = f"{t.timeline_inactive}─{t.reset}"
        return fit_ansi_line(" " + separator.join(parts), width)

    def status_bar(self, app: App, width: int) -> str:
        t = self.theme
        bar = t.status_bar
        left = "  ".join([app.branch or "unknown", f"[{label(app.position)}]", f"{len(app.files.entries)} files"])
        if app.stats.added or app.stats.removed:
            left += (
                f"  {t.diff_added}+{app.stats.added}{t.reset}{bar}"
                f" {t.diff_removed}-{app.stats.removed}{t.reset}{bar}"
            )
        if app.branch_pr is not None:
            left += f"  PR #{app.branch_pr.number}"
        if app.status_message:
            left += f"{t.muted} │ {display_text(app.status_message)}{t.reset}{bar}"
        right = "[?]"
        padding = max(1, width - 2 - display_width(left) - len(right))
        line = f" {left}{' ' * padding}{right} "
        return f"{bar}{fit_ansi_line(line, width, '')}{t.reset}"

    # -- file list --------------------------------------------------------

    def _status_style(self, status: FileStatus) -> str:
        t = self.theme
        if status is FileStatus.ADDED:
            return t.status_added
        if status is FileStatus.DELETED:
            return t.status_deleted
        if status is FileStatus.RENAMED:
            return t.status_renamed
        if status is FileStatus.MODIFIED:
            return t.status_modified
        return t.muted

    def file_row(self, row: TreeRow, collapsed: bool) -> str:
        t = self.theme
        indent = "  " * row.depth
        if row.is_dir:
            arrow = "▸" if collapsed else "▾"
            return f" {indent}{t.folder}{arrow} {display_text(row.name)}/{t.reset}"
        mark = f" {t.uncommitted}●{t.reset}" if row.uncommitted else ""
        status = f"{self._status_style(row.status)}{row.status.char}{t.reset}"
        return f" {indent}{status} {display_text(row.name)}{mark}"

    def _files_box(self, app: App, rect: Rect) -> list[str]:
        pane = app.files
        focused = app.focus is Focus.FILES
        inner = rect.width - 2
        viewport = _window(pane.viewport, rect.height)
        if pane.error is not None:
            body = self._message(pane.error, self.theme.error)
        elif pane.loading:
            body = self._message(LOADING_TEXT, self.theme.muted)
        elif not pane.rows:
            body = self._message("No changes", self.theme.muted)
        else:
            body = []
            for idx in viewport.visible_range(rect.height):
                row = pane.rows[idx]
                text = self.file_row(row, row.path in pane.collapsed)
                if idx == viewport.cursor:
                    text = selected_with_ansi(fit_ansi_line(text, inner))
                body.append(text)
        return self._box(rect, "Files", body, self._list_footer(viewport, rect.height), focused)

    # -- PR list ----------------------------------------------------------

    def pr_row(self, pr: PrSummary) -> str:
        t = self.theme
        return f" {t.diff_info}#{pr.number}{t.reset} {display_text(pr.title)} {t.muted}@{pr.author}{t.reset}"

    def _prs_box(self, app: App, rect: Rect) -> list[str]:
        pane = app.prs
        focused = app.focus is Focus.PRS
        inner = rect.width - 2
        viewport = _window(pane.viewport, rect.height)
        if pane.error is not None:
            body = self._message(pane.error, self.theme.error)
        elif pane.loading:
            body = self._message(LOADING_TEXT, self.theme.muted)
        elif not pane.prs:
            body = self._message("No open pull requests", self.theme.muted)
        else:
            body = []
            for idx in viewport.visible_range(rect.height):
                text = self.pr_row(pane.prs[idx])
                if idx == viewport.cursor:
                    text = selected_with_ansi(fit_ansi_line(text, inner))
                body.append(text)
        return self._box(rect, "Pull Requests", body, self._list_footer(viewport, rect.height), focused)

    # -- preview ----------------------------------------------------------

    def highlighted_lines(self, content: PreviewContent, lines: list[DiffLine]) -> list[str | None]:
        """Syntax-highlighted code text per line, ``None`` where plain text is used."""
        key = (content, self.syntax_style)
        if key == self._highlight_key and len(self._highlighted) == len(lines):
            return self._highlighted
        result: list[str | None] = [None] * len(lines)
        if self.highlight and isinstance(content, (FileDiff, FileContent)):
            code_indexes = [idx for idx, line in enumerate(lines) if line.line_type in _CODE_LINE_TYPES]
            rendered = highlight_lines(
                [display_text(lines[idx].text) for idx in code_indexes],
                content.path,
                self.syntax_style,
            )
            if rendered:
                for idx, text in zip(code_indexes, rendered):
                    result[idx] = text
        self._highlight_key = key
        self._highlighted = result
        return result

    def styled_text(self, line: DiffLine, highlighted: str | None = None) -> str:
        t = self.theme
        plain = display_text(line.text)
        if line.line_type is LineType.HEADER:
            return f"{t.diff_header}{plain}{t.reset}"
        if line.line_type is LineType.INFO:
            return f"{t.diff_info}{plain}{t.reset}"
        if line.line_type is LineType.ADDED:
            if highlighted is not None and t.added_bg:
                return apply_line_background(highlighted, t.added_bg)
            return f"{t.diff_added}{plain}{t.reset}"
        if line.line_type is LineType.REMOVED:
            if highlighted is not None and t.removed_bg:
                return apply_line_background(highlighted, t.removed_bg)
            return f"{t.diff_removed}{plain}{t.reset}"
        return highlighted if highlighted is not None else plain

    def _gutter(self, number: int | None) -> str:
        text = f"{number:>{GUTTER_WIDTH}}" if number is not None else " " * GUTTER_WIDTH
        return f"{self.theme.gutter}{text}{self.theme.reset}"

    def _blame_column(self, blame: FileBlame, line: DiffLine) -> str:
        t = self.theme
        info = blame.for_line(line.right_num) if line.right_num is not None else None
        if info is None:
            text = " " * (8 + BLAME_AUTHOR_WIDTH + 12)
        else:
            author = truncate_text(info.author, BLAME_AUTHOR_WIDTH)
            author += " " * (BLAME_AUTHOR_WIDTH - display_width(author))
            text = f"{info.commit_id[:7]} {author} {info.date:<10} "
        return f"{t.blame}{text}{t.reset}"

    def unified_line(
        self,
        line: DiffLine,
        highlighted: str | None = None,
        is_diff: bool = False,
        blame: FileBlame | None = None,
    ) -> str:
        t = self.theme
        if line.number is None and not is_diff and blame is None:
            return f" {self.styled_text(line, highlighted)}"
        prefix = self._blame_column(blame, line) if blame is not None else ""
        marker = _DIFF_MARKERS.get(line.line_type, " ") if is_diff else " "
        marker_style = t.diff_added if marker == "+" else t.diff_removed if marker == "-" else ""
        return (
            f"{prefix}{self._gutter(line.number)} {t.gutter}│{t.reset}"
            f"{marker_style}{marker}{t.reset if marker_style else ''} "
            f"{self.styled_text(line, highlighted)}"
        )

    def _split_side(self, line: DiffLine | None, number: int | None, highlighted: str | None, width: int) -> str:
        if line is None:
            return " " * width
        text = f"{self._gutter(number)} {self.styled_text(line, highlighted)}"
        return fit_ansi_line(text, width)

    def _preview_body(self, app: App, rect: Rect, viewport: Viewport, focused: bool) -> list[str]:
        t = self.theme
        pane = app.preview
        if pane.error is not None:
            return self._message(pane.error, t.error)
        if pane.loading:
            return self._message(LOADING_TEXT, t.muted)
        if not pane.lines:
            text = "Select a file to view" if isinstance(pane.content, Empty) else "No content"
            return self._message(text, t.muted)

        inner = rect.width - 2
        highlighted = self.highlighted_lines(pane.content, pane.lines)
        is_diff = isinstance(pane.content, (FileDiff, FolderDiff))
        blame = pane.blame if isinstance(pane.content, FileContent) else None
        body: list[str] = []
        for idx in viewport.visible_range(rect.height):
            if pane.split:
                row = pane.rows[idx]
                if row.full_width:
                    text = f" {self.styled_text(row.left)}" if row.left is not None else ""
                else:
                    left_width = (inner - 1) // 2
                    right_width = inner - 1 - left_width
                    left = self._split_side(
                        row.left,
                        row.left.left_num if row.left is not None else None,
                        highlighted[row.index] if row.left is not None else None,
                        left_width,
                    )
                    right = self._split_side(
                        row.right,
                        row.right.right_num if row.right is not None else None,
                        highlighted[row.right_index] if row.right_index is not None else None,
                        right_width,
                    )
                    text = f"{left}{t.border}│{t.reset}{right}"
            else:
                text = self.unified_line(pane.lines[idx], highlighted[idx], is_diff, blame)
            if focused and idx == viewport.cursor:
                text = selected_with_ansi(fit_ansi_line(text, inner))
            body.append(text)
        return body

    def _preview_box(self, app: App, rect: Rect) -> list[str]:
        pane = app.preview
        focused = app.focus is Focus.PREVIEW
        viewport = _window(pane.viewport, rect.height)
        title = pane.title
        if pane.split:
            title += " [split]"
        if pane.blame is not None:
            title += " [blame]"

        footer_parts: list[str] = []
        if isinstance(pane.content, (FileDiff, FolderDiff)) and not pane.loading:
            stats = diff_stats(pane.lines)
            footer_parts.append(f"+{stats.added} -{stats.removed}")
        percent = viewport.scroll_percent(rect.height)
        if percent:
            footer_parts.append(percent)
        footer = " ".join(footer_parts) + " " if footer_parts else ""
        body = self._preview_body(app, rect, viewport, focused)
        return self._box(rect, title, body, footer, focused)

    # -- overlays ---------------------------------------------------------

    def _overlay(self, screen: list[str], box: list[str], x: int, y: int, columns: int) -> None:
        for idx, box_line in enumerate(box):
            row = y + idx
            if row >= len(screen):
                break
            base = screen[row]
            width = display_width(box_line)
            screen[row] = (
                clip_ansi_line(base, x)
                + "\033[0m"
                + box_line
                + "\033[0m"
                + slice_ansi_line(base, x + width, columns - x - width)
            )

    def help_line(self, line: HelpLine) -> str:
        t = self.theme
        if line.kind == "heading":
            return f" {t.help_heading}{line.text}{t.reset}"
        if line.kind == "binding":
            return f"   {t.help_key}{line.key:<10}{t.reset} {line.text}"
        if line.kind == "muted":
            return f" {t.muted}{line.text}{t.reset}"
        return f" {line.text}"

    def _overlay_help(self, app: App, screen: list[str], columns: int, rows: int) -> None:
        width = min(HELP_MAX_WIDTH, columns - 4)
        height = min(len(HELP_LINES) + 2, app.help_height())
        visible = max(0, height - 2)
        offset = min(app.help.viewport.offset, max(0, len(HELP_LINES) - visible))
        body = [self.help_line(line) for line in HELP_LINES[offset : offset + visible]]
        box = self._box(Rect(0, 0, width, height), HELP_TITLE, body, None, True)
        self._overlay(screen, box, (columns - width) // 2, max(0, (rows - height) // 2), columns)

    def review_lines(self, review: ReviewActionType, body: str, error: str | None, width: int) -> list[str]:
        t = self.theme
        context = "Message" if body_required(review) else "Message (optional)"
        available = max(1, width - 4)
        shown = display_text(body)
        if display_width(shown) >= available:
            # Keep the end of the text, where typing happens, in view.
            shown = "…" + shown[-(available - 2) :]
        hint = f"{t.error}{error}{t.reset}" if error else f"{t.muted}Enter submit  Esc cancel{t.reset}"
        return [f" {t.muted}{context}{t.reset}", "", f" > {shown}█", "", f" {hint}"]

    def _overlay_review(self, app: App, screen: list[str], columns: int, rows: int) -> None:
        modal = app.review_modal
        if modal is None:
            return
        width = min(MODAL_MAX_WIDTH, columns - 4)
        body = self.review_lines(modal.review, modal.body, modal.error, width - 2)
        height = len(body) + 2
        box = self._box(Rect(0, 0, width, height), modal.title, body, None, True)
        self._overlay(screen, box, (columns - width) // 2, max(0, (rows - height) // 2), columns)
