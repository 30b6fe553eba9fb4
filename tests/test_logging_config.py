"""Tests for logging setup."""

import logging
import sys

from markdowndown.logging_config import level_from_flags, setup_logging


class TestSetupLogging:
    """Tests for setup_logging()."""

    def test_logs_to_stderr(self):
        """Test that the console handler writes to stderr."""
        logger = setup_logging("INFO", force=True)

        assert logger.name == "markdowndown"
        assert logger.level == logging.INFO
        assert logger.handlers[0].stream is sys.stderr
        assert logger.propagate is False

    def test_unknown_level_falls_back_to_warning(self):
        """Test an invalid level name."""
        assert setup_logging("LOUD", force=True).level == logging.WARNING

    def test_log_file(self, tmp_path):
        """Test the optional file handler."""
        log_file = tmp_path / "markdowndown.log"
        logger = setup_logging("DEBUG", log_file=str(log_file), force=True)

        logging.getLogger("markdowndown.http.client").debug("hello from the client")
        for handler in logger.handlers:
            handler.flush()

        assert "hello from the client" in log_file.read_text()
        for handler in list(logger.handlers):
            handler.close()
        logger.handlers.clear()

    def test_keeps_handlers_without_force(self):
        """Test that repeated calls do not duplicate handlers."""
        setup_logging("WARNING", force=True)
        logger = setup_logging("WARNING")
        assert len(logger.handlers) == 1


class TestLevelFromFlags:
    """Tests for level_from_flags()."""

    def test_precedence(self):
        """Test --debug over -v over -q."""
        assert level_from_flags(debug=True, verbose=True, quiet=True) == "DEBUG"
        assert level_from_flags(verbose=True, quiet=True) == "INFO"
        assert level_from_flags(quiet=True) == "ERROR"

    def test_default(self):
        """Test the level with no flags."""
        assert level_from_flags() == "WARNING"
        assert level_from_flags(default=None) is None
