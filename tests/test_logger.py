"""
Tests for logging infrastructure.

Verifies logger configuration, file creation, and rotation.
"""

import logging
from logging.handlers import RotatingFileHandler
from unittest.mock import patch

import pytest

import src.whisperlink.utils.logger as logger_module
from src.whisperlink.utils.logger import get_log_dir, get_logger, shutdown_logging


@pytest.fixture
def fresh_logging(tmp_path):
    """Re-initialize the package logger with its files under tmp_path."""
    shutdown_logging()
    with patch.object(logger_module, "get_log_dir", return_value=tmp_path):
        yield tmp_path
        shutdown_logging()


class TestLoggerConfiguration:
    """Tests for logger setup and configuration."""

    def test_get_logger_returns_logger(self):
        """Test get_logger returns a Logger instance."""
        logger = get_logger("test")
        assert isinstance(logger, logging.Logger)

    def test_get_logger_singleton(self):
        """Test get_logger returns same instance for the package logger."""
        logger1 = get_logger("whisperlink")
        logger2 = get_logger("whisperlink")
        assert logger1 is logger2

    def test_source_tree_names_fold_into_package(self):
        """Modules imported through src. log under the package logger."""
        logger = get_logger("src.whisperlink.core.lifecycle")
        assert logger.name == "whisperlink.core.lifecycle"
        assert get_logger("src.whisperlink") is get_logger("whisperlink")

    def test_log_directory_creation(self, tmp_path):
        """Test log directory is created."""
        with patch.object(
            logger_module, "user_log_path", return_value=tmp_path / "logs"
        ) as mock_path:
            mock_path.return_value.mkdir()
            log_dir = get_log_dir()

        assert log_dir.exists()
        assert log_dir.is_dir()
        mock_path.assert_called_once_with(
            "whisperlink", appauthor=False, ensure_exists=True
        )

    def test_logger_writes_to_file(self, fresh_logging):
        """Test logger writes messages to file."""
        logger = get_logger("whisperlink.tests")
        logger.info("Test message")

        for handler in logging.getLogger("whisperlink").handlers:
            handler.flush()

        log_file = fresh_logging / "app.log"
        assert log_file.exists()

        content = log_file.read_text(encoding="utf-8")
        assert "Test message" in content
        assert "INFO" in content
        assert "whisperlink.tests" in content

    def test_package_logger_does_not_propagate(self, fresh_logging):
        get_logger()
        assert logging.getLogger("whisperlink").propagate is False

    def test_file_handler_rotates(self, fresh_logging):
        get_logger()
        handlers = [
            h
            for h in logging.getLogger("whisperlink").handlers
            if isinstance(h, RotatingFileHandler)
        ]

        assert len(handlers) == 1
        assert handlers[0].maxBytes == 10 * 1024 * 1024
        assert handlers[0].backupCount == 5

    def test_shutdown_releases_handlers(self, fresh_logging):
        get_logger()
        shutdown_logging()
        assert logging.getLogger("whisperlink").handlers == []


class TestQtMessages:
    def test_qt_warnings_are_logged(self, whisperlink_caplog):
        from PySide6.QtCore import QtMsgType

        with patch("PySide6.QtCore.qInstallMessageHandler") as mock_install:
            logger_module.install_qt_message_handler()

        handler = mock_install.call_args[0][0]
        handler(QtMsgType.QtWarningMsg, None, "QObject: destroyed while running")

        record = whisperlink_caplog.records[-1]
        assert record.name == "whisperlink.qt"
        assert record.levelno == logging.WARNING
        assert record.getMessage() == "QObject: destroyed while running"
