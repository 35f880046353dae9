"""Tests for logging setup."""

import logging

import pytest

from toolhost.utils.logging import configure_logging


@pytest.fixture(autouse=True)
def restore_package_logger():
    """Undo handler and level changes on the package logger."""
    package_logger = logging.getLogger("toolhost")
    handlers, level = list(package_logger.handlers), package_logger.level
    yield
    package_logger.handlers = handlers
    package_logger.setLevel(level)


class TestConfigureLogging:
    """Test the package logger configuration."""

    @pytest.mark.unit
    def test_sets_level(self):
        """Test the level name is applied case-insensitively."""
        assert configure_logging("warning").level == logging.WARNING

    @pytest.mark.unit
    def test_debug_overrides_level(self):
        """Test debug forces DEBUG."""
        assert configure_logging("ERROR", debug=True).level == logging.DEBUG

    @pytest.mark.unit
    def test_unknown_level_falls_back(self):
        """Test unknown names fall back to INFO."""
        assert configure_logging("loud").level == logging.INFO

    @pytest.mark.unit
    def test_idempotent(self):
        """Test repeated calls keep a single handler."""
        configure_logging()
        package_logger = configure_logging()

        named = [h for h in package_logger.handlers if h.get_name() == "toolhost-stderr"]
        assert len(named) == 1
