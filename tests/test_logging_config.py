# tests/test_logging_config.py

"""Tests for the per-run logging configuration."""

import logging
import unittest

from src.config.logging_config import setup_logging


def _reset_handlers() -> None:
    root_logger = logging.getLogger("shoplink")
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()


class TestLoggingConfig(unittest.TestCase):
    """Verify logging setup behaviour."""

    def setUp(self) -> None:
        _reset_handlers()

    def tearDown(self) -> None:
        _reset_handlers()

    def test_setup_creates_log_file(self) -> None:
        """setup_logging returns a path that exists on disk."""
        log_path = setup_logging()
        self.assertTrue(log_path.exists())

    def test_log_file_naming_convention(self) -> None:
        """Log file name matches run_YYYYMMDD_HHMMSS.log format."""
        log_path = setup_logging()
        self.assertRegex(log_path.name, r"^run_\d{8}_\d{6}\.log$")

    def test_file_and_console_handlers(self) -> None:
        setup_logging()
        handlers = logging.getLogger("shoplink").handlers
        file_handlers = [
            h for h in handlers if isinstance(h, logging.FileHandler)
        ]
        console_handlers = [
            h for h in handlers
            if isinstance(h, logging.StreamHandler)
            and not isinstance(h, logging.FileHandler)
        ]
        self.assertEqual(file_handlers[0].level, logging.DEBUG)
        self.assertEqual(console_handlers[0].level, logging.WARNING)

    def test_verbose_lowers_console_level(self) -> None:
        setup_logging(verbose=True)
        console_handlers = [
            h for h in logging.getLogger("shoplink").handlers
            if not isinstance(h, logging.FileHandler)
        ]
        self.assertEqual(console_handlers[0].level, logging.DEBUG)

    def test_repeated_calls_no_duplicate_handlers(self) -> None:
        """Calling setup_logging twice does not duplicate handlers."""
        setup_logging()
        count_before = len(logging.getLogger("shoplink").handlers)
        setup_logging()
        self.assertEqual(
            len(logging.getLogger("shoplink").handlers), count_before
        )

    def test_child_loggers_reach_file(self) -> None:
        log_path = setup_logging()
        logging.getLogger("shoplink.remote").info("fetched s1")
        for handler in logging.getLogger("shoplink").handlers:
            handler.flush()
        self.assertIn("fetched s1", log_path.read_text(encoding="utf-8"))

    def test_third_party_loggers_quieted(self) -> None:
        setup_logging()
        self.assertEqual(
            logging.getLogger("curl_cffi").level, logging.WARNING
        )


if __name__ == "__main__":
    unittest.main()
