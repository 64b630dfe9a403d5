from __future__ import annotations

import json
import logging
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from timecop import config
from timecop.log import configure_logging


class ConfigBehaviorTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.config_path = Path(self._tmp.name) / "nested" / "config.json"
        patcher = mock.patch("timecop.config.CONFIG_PATH", self.config_path)
        patcher.start()
        self.addCleanup(patcher.stop)
        self.addCleanup(self._tmp.cleanup)

    def _write(self, data: object) -> None:
        self.config_path.parent.mkdir(parents=True, exist_ok=True)
        self.config_path.write_text(json.dumps(data), encoding="utf-8")

    def test_missing_file_gives_defaults(self) -> None:
        self.assertEqual(config.load_settings(), config.Settings())

    def test_non_object_json_gives_defaults(self) -> None:
        self._write(["not", "an", "object"])
        self.assertEqual(config.load_config(), {})

    def test_valid_values_are_loaded(self) -> None:
        self._write(
            {
                "theme": "ocean",
                "syntax_style": "dracula",
                "split_view": True,
                "editor": "nvim",
                "pr_poll_seconds": 30,
                "max_commits": 5,
                "log_level": "debug",
            }
        )
        settings = config.load_settings()
        self.assertEqual(settings.theme, "ocean")
        self.assertEqual(settings.syntax_style, "dracula")
        self.assertTrue(settings.split_view)
        self.assertEqual(settings.editor, "nvim")
        self.assertEqual(settings.pr_poll_seconds, 30.0)
        self.assertEqual(settings.max_commits, 5)
        self.assertEqual(settings.log_level, "DEBUG")

    def test_invalid_values_fall_back_per_key(self) -> None:
        self._write(
            {
                "split_view": "yes",
                "pr_poll_seconds": -1,
                "git_timeout_seconds": True,
                "max_commits": 1000,
                "log_level": "loud",
                "editor": "   ",
            }
        )
        settings = config.load_settings()
        defaults = config.Settings()
        self.assertEqual(settings.split_view, defaults.split_view)
        self.assertEqual(settings.pr_poll_seconds, defaults.pr_poll_seconds)
        self.assertEqual(settings.git_timeout_seconds, defaults.git_timeout_seconds)
        self.assertEqual(settings.max_commits, config.MAX_COMMITS_LIMIT)
        self.assertEqual(settings.log_level, defaults.log_level)
        self.assertEqual(settings.editor, defaults.editor)

    def test_save_split_view_keeps_other_keys(self) -> None:
        self._write({"theme": "ocean"})
        config.save_split_view(True)
        self.assertEqual(config.load_config(), {"theme": "ocean", "split_view": True})
        self.assertTrue(config.load_settings().split_view)


class LoggingSetupTests(unittest.TestCase):
    def test_records_go_to_the_log_file(self) -> None:
        logger = logging.getLogger(config.APP_NAME)
        saved = (list(logger.handlers), logger.level, logger.propagate)
        with tempfile.TemporaryDirectory() as tmp:
            target = Path(tmp) / "logs" / "timecop.log"
            try:
                self.assertEqual(configure_logging("info", target), target)
                logging.getLogger("timecop.app").info("hello log")
                logging.getLogger("timecop.app").debug("too chatty")
                for handler in logger.handlers:
                    handler.flush()
                text = target.read_text(encoding="utf-8")
            finally:
                for handler in logger.handlers:
                    handler.close()
                logger.handlers[:] = saved[0]
                logger.setLevel(saved[1])
                logger.propagate = saved[2]
        self.assertIn("hello log", text)
        self.assertNotIn("too chatty", text)


if __name__ == "__main__":
    unittest.main()
