import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from platformdirs import user_log_path

APP_NAME = "whisperlink"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_MAX_BYTES = 10 * 1024 * 1024  # 10MB
LOG_BACKUP_COUNT = 5


def get_log_dir() -> Path:
    return user_log_path(APP_NAME, appauthor=False, ensure_exists=True)


_logger_instance: Optional[logging.Logger] = None


def _package_name(name: str) -> str:
    # Tests import the package as src.whisperlink
    if name == f"src.{APP_NAME}":
        return APP_NAME
    if name.startswith(f"src.{APP_NAME}."):
        return name[len("src.") :]
    return name


def _configure(package_logger: logging.Logger) -> None:
    from ..config import LOG_TO_CONSOLE, get_log_level

    level = get_log_level()
    package_logger.setLevel(level)
    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    file_handler = RotatingFileHandler(
        get_log_dir() / "app.log",
        maxBytes=LOG_MAX_BYTES,
        backupCount=LOG_BACKUP_COUNT,
        encoding="utf-8",
    )
    file_handler.setLevel(level)
    file_handler.setFormatter(formatter)
    package_logger.addHandler(file_handler)

    if LOG_TO_CONSOLE:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        package_logger.addHandler(console_handler)

    package_logger.propagate = False


def get_logger(name: str = APP_NAME) -> logging.Logger:
    global _logger_instance

    name = _package_name(name)

    if _logger_instance is None:
        package_logger = logging.getLogger(APP_NAME)
        if not package_logger.handlers:
            _configure(package_logger)
        _logger_instance = package_logger

    if name == APP_NAME:
        return _logger_instance

    return logging.getLogger(name)


def install_qt_message_handler() -> None:
    """Route Qt's own warnings (qWarning, qCritical, ...) into the package log."""
    from PySide6.QtCore import QtMsgType, qInstallMessageHandler

    qt_logger = get_logger(f"{APP_NAME}.qt")
    levels = {
        QtMsgType.QtDebugMsg: logging.DEBUG,
        QtMsgType.QtInfoMsg: logging.INFO,
        QtMsgType.QtWarningMsg: logging.WARNING,
        QtMsgType.QtCriticalMsg: logging.ERROR,
        QtMsgType.QtFatalMsg: logging.CRITICAL,
    }

    def handler(msg_type, context, message):
        qt_logger.log(levels.get(msg_type, logging.WARNING), message)

    qInstallMessageHandler(handler)


def shutdown_logging() -> None:
    """Shutdown logging and close all file handlers to release file locks."""
    global _logger_instance
    package_logger = logging.getLogger(APP_NAME)
    for handler in package_logger.handlers[:]:
        handler.close()
        package_logger.removeHandler(handler)
    _logger_instance = None
