"""Command-line front door for timecop.

Parses CLI options, resolves the repository, and wires the collaborators,
producer threads, and renderer into one interactive session.
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path

from . import __version__
from .app import App, AppServices
from .config import Settings, load_settings, save_split_view
from .editor import copy_text_to_clipboard, launch_editor
from .errors import GitError, TerminalError
from .events import EventStream, InputReader, Ticker, terminal_size
from .git_client import GitClient
from .highlight import normalize_style
from .hosting import GitHubClient
from .input import KeyReader
from .log import configure_logging
from .loop import run_loop
from .render import Renderer
from .terminal import TerminalController
from .ui_theme import available_theme_names, resolve_theme
from .watch import RepoWatcher
from .workers import BackgroundDispatcher

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="timecop",
        description="Review a git branch's history, diffs, and pull requests in the terminal.",
    )
    parser.add_argument("path", nargs="?", default=None, help="Repository path. Defaults to current directory.")
    parser.add_argument("--style", default=None, help="Pygments style name for syntax highlighting.")
    parser.add_argument(
        "--theme",
        default=None,
        help=f"UI theme name ({', '.join(available_theme_names())}).",
    )
    parser.add_argument("--no-color", action="store_true", help="Disable color output.")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def run_session(
    git: GitClient,
    hosting: GitHubClient,
    settings: Settings,
    terminal: TerminalController,
    renderer: Renderer,
) -> int:
    """Run the TUI until quit; returns the process exit code."""
    stream = EventStream()
    dispatcher = BackgroundDispatcher(stream.post)
    reader = InputReader(stream.post, KeyReader().read_key, terminal.stdin_fd)
    ticker = Ticker(stream.post)
    watcher = RepoWatcher(stream.post, git.git_dir, git.status_signature)

    def open_editor(target: Path, line: int | None) -> str | None:
        reader.pause()
        try:
            return launch_editor(
                target,
                line,
                terminal.disable_tui_mode,
                terminal.enable_tui_mode,
                fallback=settings.editor,
            )
        finally:
            reader.resume()

    services = AppServices(
        open_editor=open_editor,
        copy_to_clipboard=copy_text_to_clipboard,
        save_split_view=save_split_view,
    )
    app = App(git, hosting, dispatcher, settings=settings, services=services, size=terminal_size())

    exit_code = 0
    try:
        with terminal.raw_mode():
            reader.start()
            ticker.start()
            watcher.start()
            app.start()
            run_loop(app, stream, lambda current: terminal.write(renderer.render(current)))
    except TerminalError as exc:
        logger.error("terminal failure: %s", exc)
        print(f"timecop: {exc}", file=sys.stderr)
        exit_code = 1
    except Exception:
        logger.exception("fatal error in event loop")
        print("timecop: fatal error, see the log file for details", file=sys.stderr)
        exit_code = 1
    finally:
        reader.stop()
        ticker.stop()
        watcher.stop()
        dispatcher.shutdown()
    return exit_code


def main(argv: list[str] | None = None) -> int:
    """Parse CLI arguments and launch timecop on a repository."""
    args = build_parser().parse_args(argv)
    settings = load_settings()
    log_path = configure_logging(settings.log_level)
    logger.info("starting timecop %s (log: %s)", __version__, log_path)

    target = Path(args.path) if args.path else Path.cwd()
    if not target.exists():
        print(f"timecop: path not found: {target}", file=sys.stderr)
        return 1
    try:
        git = GitClient.discover(target, timeout_seconds=settings.git_timeout_seconds)
    except GitError as exc:
        print(f"timecop: {exc}", file=sys.stderr)
        return 1
    if not (sys.stdin.isatty() and sys.stdout.isatty()):
        print("timecop: an interactive terminal is required", file=sys.stderr)
        return 1

    no_color = args.no_color or bool(os.environ.get("NO_COLOR"))
    theme = resolve_theme(args.theme or settings.theme, no_color=no_color)
    style = normalize_style(args.style or settings.syntax_style)
    renderer = Renderer(theme, syntax_style=style, highlight=not no_color)
    hosting = GitHubClient(git.repo_root, timeout_seconds=settings.network_timeout_seconds)

    try:
        terminal = TerminalController(sys.stdin.fileno(), sys.stdout.fileno())
    except TerminalError as exc:
        print(f"timecop: {exc}", file=sys.stderr)
        return 1
    return run_session(git, hosting, settings, terminal, renderer)
