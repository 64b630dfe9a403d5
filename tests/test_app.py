"""Application controller behavior against fake collaborators."""

from __future__ import annotations

import unittest
from pathlib import Path

from app_fakes import BRANCH_PR, COMMITS, DIFF, AppTestCase

from timecop import workers
from timecop.actions import Approve, Comment, LineComment
from timecop.app import AppServices, Focus
from timecop.content import CommitSummary, Empty, FileContent, FileDiff, FolderDiff
from timecop.errors import GitError, NetworkError
from timecop.events import CompletionEvent, FilesChangedEvent, ResizeEvent, TickEvent
from timecop.models import DiffStats, PrSummary
from timecop.timeline import Browse, CommitDiff, FullDiff, Wip


class StartupTests(AppTestCase):
    def test_start_requests_everything(self) -> None:
        self.app.start()
        resources = {item[0] for item in self.dispatcher.pending}
        self.assertEqual(
            resources,
            {workers.BRANCH, workers.COMMITS, workers.STATUS, workers.DIFF_STATS, workers.PR_LIST, workers.PR_BRANCH},
        )
        self.assertTrue(self.app.preview.loading)

    def test_completions_fill_panes_and_summary(self) -> None:
        self.start()
        self.assertEqual(self.app.branch, "feature")
        self.assertEqual(self.app.stats, DiffStats(3, 1))
        self.assertEqual(len(self.app.files.rows), 3)
        self.assertEqual(len(self.app.prs.prs), 1)
        self.assertEqual(self.app.preview.content, CommitSummary(COMMITS[0], BRANCH_PR))
        self.assertFalse(self.app.preview.loading)
        self.assertEqual(self.app.preview.pr_number, 4)


class SelectionTests(AppTestCase):
    def test_enter_on_file_loads_its_diff(self) -> None:
        self.start()
        self.keys("G", "ENTER_CR")
        self.assertTrue(self.app.preview.loading)
        self.run_pending()
        self.assertEqual(self.app.preview.content, FileDiff("a.py", DIFF))
        self.assertIn(("diff", FullDiff(), ("a.py",)), self.git.calls)

    def test_enter_on_folder_loads_folder_diff(self) -> None:
        self.start()
        self.keys("ENTER_CR")
        self.run_pending()
        self.assertEqual(self.app.preview.content, FolderDiff("pkg", DIFF))
        self.assertIn(("diff", FullDiff(), ("pkg/b.py",)), self.git.calls)

    def test_browse_mode_reads_whole_file(self) -> None:
        self.start()
        self.keys("G", "ENTER_CR")
        self.run_pending()
        self.keys(".", ".")
        self.assertEqual(self.app.position, Browse())
        self.run_pending()
        self.assertEqual(self.app.preview.content, FileContent("a.py", "line one\nline two\n"))

    def test_stale_content_completion_is_dropped(self) -> None:
        self.start()
        self.keys("G", "ENTER_CR")
        first = self.dispatcher.take(workers.CONTENT)
        self.keys("g", "ENTER_CR")
        self.git.diff_text = "@@ -1 +1 @@\n-x\n+y\n"
        self.run_pending()
        self.assertEqual(self.app.preview.content, FolderDiff("pkg", "@@ -1 +1 @@\n-x\n+y\n"))

        # The superseded request finishing late changes nothing.
        resource, request_id, job = first[0]
        self.app.handle_event(CompletionEvent(resource, request_id, result=FileDiff("a.py", DIFF)))
        self.assertEqual(self.app.preview.content.path, "pkg")

    def test_content_error_shows_in_preview(self) -> None:
        self.start()

        def fail(*_args):
            raise GitError("diff exploded")

        self.git.diff = fail
        self.keys("G", "ENTER_CR")
        self.run_pending()
        self.assertEqual(self.app.preview.error, "diff exploded")


class TimelineTests(AppTestCase):
    def test_comma_and_period_move_and_refresh(self) -> None:
        self.start()
        self.keys(",")
        self.assertEqual(self.app.position, CommitDiff(1))
        pending = {item[0] for item in self.dispatcher.pending}
        self.assertTrue({workers.STATUS, workers.DIFF_STATS} <= pending)
        self.run_pending()
        self.assertEqual(self.app.preview.content, CommitSummary(COMMITS[0], BRANCH_PR))
        self.keys(",")
        self.run_pending()
        self.assertEqual(self.app.preview.content, CommitSummary(COMMITS[1], BRANCH_PR))
        self.keys(".", ".", ".")
        self.assertEqual(self.app.position, Wip())

    def test_self_loop_issues_no_requests(self) -> None:
        self.start()
        self.keys(".", ".")
        self.run_pending()
        self.keys(".")
        self.assertEqual(self.app.position, Browse())
        self.assertEqual(self.dispatcher.pending, [])

    def test_transition_invalidates_selected_preview(self) -> None:
        self.start()
        self.keys("G", "ENTER_CR")
        self.run_pending()
        self.keys(",")
        self.assertTrue(self.app.preview.loading)
        self.assertIsInstance(self.app.preview.content, Empty)

    def test_shrinking_history_clamps_position(self) -> None:
        self.start()
        self.keys(",", ",", ",")
        self.run_pending()
        self.assertEqual(self.app.position, CommitDiff(3))
        self.git.commits = COMMITS[:1]
        self.app.handle_event(FilesChangedEvent())
        self.run_pending()
        self.assertEqual(self.app.position, CommitDiff(1))


class ReviewFlowTests(AppTestCase):
    def test_approve_from_pr_list(self) -> None:
        self.start()
        self.keys("TAB", "TAB")
        self.assertEqual(self.app.focus, Focus.PRS)
        self.keys("a")
        self.assertIsNotNone(self.app.review_modal)
        self.keys("ENTER_CR")
        self.assertIsNone(self.app.review_modal)
        self.run_pending()
        self.assertEqual(self.hosting.reviews, [(Approve(4), "")])
        self.assertEqual(self.app.status_message, "Review submitted")

    def test_modal_swallows_global_keys_and_escape_closes(self) -> None:
        self.start()
        self.keys("TAB", "TAB", "c", "q", "?")
        self.assertTrue(self.app.running)
        self.assertFalse(self.app.help_open)
        self.assertEqual(self.app.review_modal.body, "q?")
        self.keys("ESC")
        self.assertIsNone(self.app.review_modal)
        self.assertEqual(self.hosting.reviews, [])

    def test_line_comment_from_preview(self) -> None:
        self.start()
        self.keys("G", "ENTER_CR")
        self.run_pending()
        self.keys("TAB", "j", "c", "h", "i", "ENTER_LF")
        self.run_pending()
        self.assertEqual(self.hosting.reviews, [(LineComment(4, "a.py", 1), "hi")])

    def test_review_failure_reports_in_status_bar(self) -> None:
        self.start()

        def fail(review, body):
            raise NetworkError("gh: forbidden")

        self.hosting.submit_review = fail
        self.keys("TAB", "TAB", "c", "x", "ENTER_CR")
        self.run_pending()
        self.assertEqual(self.app.status_message, "Review failed: gh: forbidden")

    def test_checkout_refreshes_everything(self) -> None:
        self.start()
        self.keys("TAB", "TAB", "ENTER_CR")
        self.run_pending()
        self.assertEqual(self.hosting.checked_out, [4])
        self.assertEqual(self.app.status_message, "Checked out PR branch")

    def test_pr_selection_shows_its_detail(self) -> None:
        self.start()
        self.hosting.list_prs = lambda: [
            PrSummary(4, "ann", "Feature", "OPEN", "u", "d"),
            PrSummary(9, "zed", "Other", "OPEN", "u", "d"),
        ]
        self.keys("r")
        self.run_pending()
        self.keys("TAB", "TAB", "j")
        self.run_pending()
        self.assertEqual(self.app.preview.content.pr.number, 9)
        self.assertEqual(self.app.shown_pr.body, "detail body")

    def test_comment_in_preview_without_pr_does_nothing(self) -> None:
        self.hosting.pr_for_branch = lambda: None
        self.start()
        self.keys("TAB", "c")
        self.assertIsNone(self.app.review_modal)
        self.assertEqual(self.app.preview.content, CommitSummary(COMMITS[0], None))


class GlobalBindingTests(AppTestCase):
    def test_quit(self) -> None:
        self.keys("q")
        self.assertFalse(self.app.running)

    def test_help_routes_keys_and_closes(self) -> None:
        self.keys("?")
        self.assertTrue(self.app.help_open)
        self.keys("j", ",")
        self.assertEqual(self.app.position, FullDiff())
        self.keys("ESC")
        self.assertFalse(self.app.help_open)
        self.keys("?", "q")
        self.assertFalse(self.app.running)

    def test_tab_cycles_and_escape_returns_to_files(self) -> None:
        self.keys("TAB")
        self.assertEqual(self.app.focus, Focus.PREVIEW)
        self.keys("SHIFT_TAB", "SHIFT_TAB")
        self.assertEqual(self.app.focus, Focus.PRS)
        self.keys("ESC")
        self.assertEqual(self.app.focus, Focus.FILES)

    def test_open_editor_at_cursor_line(self) -> None:
        self.start()
        self.keys("G", "ENTER_CR")
        self.run_pending()
        self.keys("o")
        self.assertEqual(self.opened, [(Path("/repo/a.py"), None)])
        self.keys("TAB", "j", "o")
        self.assertEqual(self.opened[-1], (Path("/repo/a.py"), 1))

    def test_open_pr_in_browser(self) -> None:
        self.start()
        self.keys("TAB", "TAB", "o")
        self.run_pending()
        self.assertEqual(self.hosting.browsed, [4])

    def test_yank_copies_path_and_line(self) -> None:
        self.start()
        self.keys("G", "ENTER_CR")
        self.run_pending()
        self.keys("y")
        self.assertEqual(self.copied, [])
        self.run_pending()
        self.keys("TAB", "j", "y")
        self.run_pending()
        self.assertEqual(self.copied, ["a.py", "a.py:1"])
        self.assertEqual(self.app.status_message, "Copied a.py:1")

    def test_yank_reports_missing_clipboard(self) -> None:
        self.app.services = AppServices(
            open_editor=lambda path, line: None,
            copy_to_clipboard=lambda text: False,
            save_split_view=self.saved_split.append,
        )
        self.start()
        self.keys("G", "y")
        self.assertEqual([item[0] for item in self.dispatcher.pending], [workers.CLIPBOARD])
        self.run_pending()
        self.assertEqual(self.app.status_message, "Clipboard unavailable")

    def test_split_toggle_is_persisted(self) -> None:
        self.keys("TAB", "s")
        self.assertEqual(self.saved_split, [True])

    def test_refresh_clears_pane_errors(self) -> None:
        self.app.files.set_error("old failure")
        self.keys("r")
        self.assertIsNone(self.app.files.error)


class TickAndResizeTests(AppTestCase):
    def test_status_message_expires(self) -> None:
        self.app.show_status("hello")
        self.app.handle_event(TickEvent(self.clock.now + 1.0))
        self.assertEqual(self.app.status_message, "hello")
        self.app.handle_event(TickEvent(self.clock.now + 2.5))
        self.assertEqual(self.app.status_message, "")

    def test_pr_poll_runs_on_interval(self) -> None:
        self.start()
        self.app.handle_event(TickEvent(self.clock.now + 10))
        self.assertEqual(self.dispatcher.pending, [])
        self.clock.now += 61
        self.app.handle_event(TickEvent(self.clock.now))
        self.assertEqual({item[0] for item in self.dispatcher.pending}, {workers.PR_LIST, workers.PR_BRANCH})

    def test_older_pr_list_completion_is_dropped(self) -> None:
        self.start()
        self.clock.now += 61
        self.app.handle_event(TickEvent(self.clock.now))
        [(_, first_id, _)] = self.dispatcher.take(workers.PR_LIST)
        self.keys("r")
        [(_, second_id, _)] = self.dispatcher.take(workers.PR_LIST)
        newer = [PrSummary(2, "bo", "Newer", "OPEN", "u2", "2024-01-05")]
        older = [PrSummary(1, "al", "Older", "OPEN", "u1", "2024-01-04")]
        self.app.handle_event(CompletionEvent(workers.PR_LIST, second_id, result=newer))
        self.app.handle_event(CompletionEvent(workers.PR_LIST, first_id, result=older))
        self.assertEqual([pr.number for pr in self.app.prs.prs], [2])

    def test_resize_updates_size(self) -> None:
        self.app.dirty = False
        self.app.handle_event(ResizeEvent(90, 30))
        self.assertEqual(self.app.size, (90, 30))
        self.assertTrue(self.app.dirty)

    def test_files_changed_keeps_preview_cursor(self) -> None:
        self.start()
        self.keys("G", "ENTER_CR")
        self.run_pending()
        self.keys("TAB", "G")
        cursor = self.app.preview.viewport.cursor
        self.app.handle_event(FilesChangedEvent())
        self.assertFalse(self.app.preview.loading)
        self.run_pending()
        self.assertEqual(self.app.preview.viewport.cursor, cursor)


class CommentWithoutLineTests(AppTestCase):
    def test_comment_on_header_is_pr_comment(self) -> None:
        self.start()
        self.keys("G", "ENTER_CR")
        self.run_pending()
        self.keys("TAB", "c", "o", "k", "ENTER_CR")
        self.run_pending()
        self.assertEqual(self.hosting.reviews, [(Comment(4), "ok")])


if __name__ == "__main__":
    unittest.main()
