"""Logging setup and configuration."""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from authclient.logging.formatters import ConsoleFormatter, JSONFormatter

DEFAULT_LOGGER_NAME = "authclient"
DEFAULT_LEVEL = logging.INFO
DEFAULT_MAX_BYTES = 10 * 1024 * 1024
DEFAULT_BACKUP_COUNT = 5

# Noisy loggers to suppress
NOISY_LOGGERS = [
    "aiohttp",
    "aiohttp.access",
    "aiohttp.client",
    "urllib3",
    "asyncio",
]


def setup_logging(
    level: int = DEFAULT_LEVEL,
    json_format: bool = False,
    log_file: Path | str | None = None,
    name: str = DEFAULT_LOGGER_NAME,
    suppress_noisy: bool = True,
    max_bytes: int = DEFAULT_MAX_BYTES,
    backup_count: int = DEFAULT_BACKUP_COUNT,
) -> logging.Logger:
    """
    Configure the library logger with a console handler and an optional file handler.

    Only the `authclient` logger is configured, never the root logger, so
    embedding applications keep control of their own handlers.

    Args:
        level: Level for the library logger and its handlers
        json_format: Use JSON lines on the console instead of the human format
        log_file: Optional path for a size-rotated JSON log file
        name: Logger to configure
        suppress_noisy: Quiet down HTTP client loggers
        max_bytes: Rotation size for the log file
        backup_count: Rotated files to keep

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)
    logger.handlers.clear()
    logger.propagate = False

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(JSONFormatter() if json_format else ConsoleFormatter())
    logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_path,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(JSONFormatter())
        logger.addHandler(file_handler)

    if suppress_noisy:
        for noisy in NOISY_LOGGERS:
            logging.getLogger(noisy).setLevel(logging.WARNING)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger inside the library namespace."""
    if name == DEFAULT_LOGGER_NAME or name.startswith(f"{DEFAULT_LOGGER_NAME}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{DEFAULT_LOGGER_NAME}.{name}")
