# tests/test_logging_config.py

"""Tests for the per-run logging configuration."""

import logging
import tempfile
import unittest
from pathlib import Path

from src.config.logging_config import ROOT_LOGGER_NAME, setup_logging


class TestLoggingConfig(unittest.TestCase):
    """Verify logging setup behaviour."""

    def setUp(self) -> None:
        """Start each test with a bare ime_crawler logger and temp dir."""
        self.tmp = tempfile.TemporaryDirectory()
        self.logs_dir = Path(self.tmp.name) / "logs"
        self.logger = logging.getLogger(ROOT_LOGGER_NAME)
        self._clear()

    def tearDown(self) -> None:
        self._clear()
        self.tmp.cleanup()

    def _clear(self) -> None:
        for handler in list(self.logger.handlers):
            handler.close()
            self.logger.removeHandler(handler)

    def test_setup_creates_log_file(self) -> None:
        """setup_logging returns a path that exists on disk."""
        log_path = setup_logging(self.logs_dir)
        self.assertTrue(log_path.exists())

    def test_creates_missing_directory(self) -> None:
        """A missing logs directory is created."""
        setup_logging(self.logs_dir / "nested")
        self.assertTrue((self.logs_dir / "nested").is_dir())

    def test_log_file_naming_convention(self) -> None:
        """Log file name matches run_YYYYMMDD_HHMMSS.log format."""
        log_path = setup_logging(self.logs_dir)
        self.assertRegex(log_path.name, r"^run_\d{8}_\d{6}\.log$")

    def test_log_file_inside_logs_dir(self) -> None:
        """The log file is placed in the requested directory."""
        log_path = setup_logging(self.logs_dir)
        self.assertEqual(log_path.parent, self.logs_dir)

    def test_file_handler_level_debug(self) -> None:
        """File handler should be set to DEBUG level."""
        setup_logging(self.logs_dir)
        file_handlers = [
            h for h in self.logger.handlers
            if isinstance(h, logging.FileHandler)
        ]
        self.assertEqual(len(file_handlers), 1)
        self.assertEqual(file_handlers[0].level, logging.DEBUG)

    def test_console_handler_level_warning(self) -> None:
        """Console handler should be set to WARNING level."""
        setup_logging(self.logs_dir)
        stream_handlers = [
            h for h in self.logger.handlers
            if isinstance(h, logging.StreamHandler)
            and not isinstance(h, logging.FileHandler)
        ]
        self.assertEqual(len(stream_handlers), 1)
        self.assertEqual(stream_handlers[0].level, logging.WARNING)

    def test_repeated_calls_no_duplicate_handlers(self) -> None:
        """Calling setup_logging twice does not duplicate handlers."""
        setup_logging(self.logs_dir)
        count_before = len(self.logger.handlers)
        setup_logging(self.logs_dir)
        self.assertEqual(len(self.logger.handlers), count_before)

    def test_root_logger_level_is_debug(self) -> None:
        """The ime_crawler logger is set to DEBUG."""
        setup_logging(self.logs_dir)
        self.assertEqual(self.logger.level, logging.DEBUG)

    def test_child_logger_reaches_file(self) -> None:
        """Messages from ime_crawler.* modules land in the run file."""
        log_path = setup_logging(self.logs_dir)
        logging.getLogger("ime_crawler.store").debug("child message 42")
        for handler in self.logger.handlers:
            handler.flush()
        self.assertIn("child message 42", log_path.read_text("utf-8"))


if __name__ == "__main__":
    unittest.main()
