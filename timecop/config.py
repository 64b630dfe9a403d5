"""Persistent JSON config helpers.

Stores UI theme, syntax style, diff layout, editor, and timing preferences.
All access is defensive: malformed or missing config falls back safely.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path

from platformdirs import user_config_dir

APP_NAME = "timecop"
CONFIG_FILENAME = "config.json"
CONFIG_PATH = Path(user_config_dir(APP_NAME, appauthor=False)) / CONFIG_FILENAME

MAX_COMMITS_LIMIT = 50
_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


@dataclass(frozen=True)
class Settings:
    theme: str | None = None
    syntax_style: str = "monokai"
    split_view: bool = False
    editor: str = "vim"
    pr_poll_seconds: float = 60.0
    network_timeout_seconds: float = 15.0
    git_timeout_seconds: float = 10.0
    max_commits: int = 20
    log_level: str = "WARNING"


def load_config() -> dict[str, object]:
    """Load the persisted JSON config object.

    Returns an empty dict when the file is missing, unreadable, malformed, or
    does not decode to a top-level JSON object.
    """
    try:
        data = json.loads(CONFIG_PATH.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return {}
    return data if isinstance(data, dict) else {}


def save_config(data: dict[str, object]) -> None:
    """Persist config data as pretty-printed JSON.

    Filesystem and serialization errors are ignored; a read-only config
    directory must never break the UI.
    """
    try:
        CONFIG_PATH.parent.mkdir(parents=True, exist_ok=True)
        CONFIG_PATH.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
    except (OSError, TypeError, ValueError):
        pass


def _load_str(data: dict[str, object], key: str, default: str | None) -> str | None:
    value = data.get(key)
    if isinstance(value, str) and value.strip():
        return value.strip()
    return default


def _load_positive_number(data: dict[str, object], key: str, default: float) -> float:
    value = data.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
        return default
    return float(value)


def _load_bool(data: dict[str, object], key: str, default: bool) -> bool:
    value = data.get(key)
    return value if isinstance(value, bool) else default


def _load_max_commits(data: dict[str, object], default: int) -> int:
    value = data.get("max_commits")
    if isinstance(value, bool) or not isinstance(value, int):
        return default
    return max(1, min(MAX_COMMITS_LIMIT, value))


def load_settings() -> Settings:
    """Read every setting, substituting the default for anything invalid."""
    data = load_config()
    defaults = Settings()
    log_level = (_load_str(data, "log_level", defaults.log_level) or defaults.log_level).upper()
    return Settings(
        theme=_load_str(data, "theme", defaults.theme),
        syntax_style=_load_str(data, "syntax_style", defaults.syntax_style) or defaults.syntax_style,
        split_view=_load_bool(data, "split_view", defaults.split_view),
        editor=_load_str(data, "editor", defaults.editor) or defaults.editor,
        pr_poll_seconds=_load_positive_number(data, "pr_poll_seconds", defaults.pr_poll_seconds),
        network_timeout_seconds=_load_positive_number(
            data, "network_timeout_seconds", defaults.network_timeout_seconds
        ),
        git_timeout_seconds=_load_positive_number(data, "git_timeout_seconds", defaults.git_timeout_seconds),
        max_commits=_load_max_commits(data, defaults.max_commits),
        log_level=log_level if log_level in _LOG_LEVELS else defaults.log_level,
    )


def save_split_view(split_view: bool) -> None:
    """Persist the preferred diff layout."""
    config = load_config()
    config["split_view"] = bool(split_view)
    save_config(config)
