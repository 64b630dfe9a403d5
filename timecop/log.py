"""File logging setup.

The terminal is in raw/alternate-screen mode while running, so log records go
to a file under the platform log directory instead of stderr.
"""

from __future__ import annotations

import logging
from pathlib import Path

from platformdirs import user_log_dir

from .config import APP_NAME

LOG_FORMAT = "%(asctime)s %(levelname)7s %(name)s %(message)s"


def default_log_path() -> Path:
    return Path(user_log_dir(APP_NAME, appauthor=False)) / f"{APP_NAME}.log"


def configure_logging(level: str = "WARNING", path: Path | None = None) -> Path | None:
    """Attach a file handler to the package logger; returns the log path.

    Returns ``None`` when the log file cannot be opened, leaving logging
    unconfigured rather than failing startup.
    """
    target = path if path is not None else default_log_path()
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(target, encoding="utf-8")
    except OSError:
        return None
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger = logging.getLogger(APP_NAME)
    logger.handlers.clear()
    logger.addHandler(handler)
    logger.setLevel(getattr(logging, level.upper(), logging.WARNING))
    logger.propagate = False
    return target
