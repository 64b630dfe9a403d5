"""Tests for argument parsing and startup failure handling in ``timecop.cli``."""

from __future__ import annotations

import contextlib
import io
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from timecop import cli
from timecop.config import Settings
from timecop.errors import GitError, TerminalError
from timecop.ui_theme import OCEAN_THEME, PLAIN_THEME


class CliMainTests(unittest.TestCase):
    def setUp(self) -> None:
        for target, value in (
            ("timecop.cli.load_settings", Settings()),
            ("timecop.cli.configure_logging", None),
        ):
            patcher = mock.patch(target, return_value=value)
            patcher.start()
            self.addCleanup(patcher.stop)
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.repo = Path(self._tmp.name)

    def _main(self, *argv: str) -> tuple[int, str]:
        stderr = io.StringIO()
        with contextlib.redirect_stderr(stderr):
            code = cli.main(list(argv))
        return code, stderr.getvalue()

    def test_missing_path_fails(self) -> None:
        code, err = self._main(str(self.repo / "nope"))
        self.assertEqual(code, 1)
        self.assertIn("path not found", err)

    def test_non_repository_fails(self) -> None:
        with mock.patch("timecop.cli.GitClient.discover", side_effect=GitError(f"not a git repository: {self.repo}")):
            code, err = self._main(str(self.repo))
        self.assertEqual(code, 1)
        self.assertIn("not a git repository", err)

    def test_requires_interactive_terminal(self) -> None:
        with mock.patch("timecop.cli.GitClient.discover", return_value=mock.Mock(repo_root=self.repo)), mock.patch(
            "timecop.cli.sys.stdin"
        ) as stdin_mock:
            stdin_mock.isatty.return_value = False
            code, err = self._main(str(self.repo))
        self.assertEqual(code, 1)
        self.assertIn("interactive terminal", err)

    def _run_to_session(self, *argv: str, env: dict[str, str] | None = None) -> mock.Mock:
        with mock.patch("timecop.cli.GitClient.discover", return_value=mock.Mock(repo_root=self.repo)), mock.patch(
            "timecop.cli.sys.stdin"
        ) as stdin_mock, mock.patch("timecop.cli.sys.stdout") as stdout_mock, mock.patch(
            "timecop.cli.TerminalController"
        ), mock.patch(
            "timecop.cli.run_session", return_value=0
        ) as session_mock, mock.patch.dict(
            "timecop.cli.os.environ", env or {}, clear=True
        ):
            stdin_mock.isatty.return_value = True
            stdout_mock.isatty.return_value = True
            self.assertEqual(cli.main([str(self.repo), *argv]), 0)
        return session_mock

    def test_theme_and_style_options_reach_renderer(self) -> None:
        session_mock = self._run_to_session("--theme", "ocean", "--style", "no-such-style")
        renderer = session_mock.call_args.args[4]
        self.assertIs(renderer.theme, OCEAN_THEME)
        self.assertEqual(renderer.syntax_style, "monokai")
        self.assertTrue(renderer.highlight)

    def test_no_color_flag_and_environment(self) -> None:
        for argv, env in ((("--no-color",), None), ((), {"NO_COLOR": "1"})):
            with self.subTest(argv=argv, env=env):
                renderer = self._run_to_session(*argv, env=env).call_args.args[4]
                self.assertIs(renderer.theme, PLAIN_THEME)
                self.assertFalse(renderer.highlight)

    def test_version_flag_exits(self) -> None:
        with contextlib.redirect_stdout(io.StringIO()) as out:
            with self.assertRaises(SystemExit) as raised:
                cli.main(["--version"])
        self.assertEqual(raised.exception.code, 0)
        self.assertIn("timecop", out.getvalue())


class _FailingTerminal:
    stdin_fd = 0

    def __init__(self) -> None:
        self.writes: list[str] = []

    @contextlib.contextmanager
    def raw_mode(self):
        raise TerminalError("cannot enter raw mode: boom")
        yield

    def write(self, data: str) -> None:
        self.writes.append(data)

    def enable_tui_mode(self) -> None:
        pass

    def disable_tui_mode(self) -> None:
        pass


class RunSessionTests(unittest.TestCase):
    def test_terminal_failure_is_reported_with_exit_code(self) -> None:
        git = mock.Mock(git_dir=Path("/repo/.git"), repo_root=Path("/repo"))
        terminal = _FailingTerminal()
        stderr = io.StringIO()
        with contextlib.redirect_stderr(stderr):
            code = cli.run_session(git, mock.Mock(), Settings(), terminal, mock.Mock())  # type: ignore[arg-type]
        self.assertEqual(code, 1)
        self.assertIn("boom", stderr.getvalue())
        self.assertEqual(terminal.writes, [])


if __name__ == "__main__":
    unittest.main()
