"""
Logging utilities.

All ragchat loggers are children of the ``ragchat`` package logger, which
owns the handlers; module loggers carry no handlers of their own.
"""

import logging
import sys
from pathlib import Path

PACKAGE_LOGGER = "ragchat"
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def _package_logger() -> logging.Logger:
    logger = logging.getLogger(PACKAGE_LOGGER)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)

    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger with the given name.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Logger under the ``ragchat`` hierarchy
    """
    _package_logger()
    if name != PACKAGE_LOGGER and not name.startswith(PACKAGE_LOGGER + "."):
        name = f"{PACKAGE_LOGGER}.{name}"
    return logging.getLogger(name)


def set_log_level(level: int | str) -> None:
    """
    Set the log level for every ragchat logger.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    if isinstance(level, str):
        level = getattr(logging, level.upper())

    _package_logger().setLevel(level)


def configure_logging(level: int | str = "INFO", log_file: str | Path | None = None) -> None:
    """
    Apply the logging section of the application config.

    Args:
        level: Log level for the ragchat loggers
        log_file: Optional file that receives the same records as stderr
    """
    set_log_level(level)
    if log_file is None:
        return

    path = Path(log_file).expanduser()
    logger = _package_logger()
    for handler in logger.handlers:
        if isinstance(handler, logging.FileHandler) and Path(handler.baseFilename) == path.resolve():
            return

    path.parent.mkdir(parents=True, exist_ok=True)
    file_handler = logging.FileHandler(path, encoding="utf-8")
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(file_handler)
