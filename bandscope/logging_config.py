"""
Centralized logging configuration for the band dashboard.

Provides consistent logging across all modules with support for:
- Multiple log levels (DEBUG, INFO, WARNING, ERROR, CRITICAL)
- File and console output
- Log rotation
- Environment-based configuration
"""

import logging
import logging.handlers
import os
import sys
from pathlib import Path
from typing import Optional, TextIO


class ColoredFormatter(logging.Formatter):
    """Custom formatter with color support for console output."""

    COLORS = {
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "CRITICAL": "\033[35m",  # Magenta
        "RESET": "\033[0m",
    }

    def format(self, record: logging.LogRecord) -> str:
        levelname = record.levelname
        if levelname in self.COLORS:
            record.levelname = f"{self.COLORS[levelname]}{levelname}{self.COLORS['RESET']}"

        result = super().format(record)

        # Other handlers share the record
        record.levelname = levelname
        return result


def setup_logging(
    name: Optional[str] = None,
    level: Optional[str] = None,
    log_file: Optional[str] = None,
    console: bool = True,
    stream: Optional[TextIO] = None,
    json_format: bool = False,
    rotation: bool = True,
    max_bytes: int = 10 * 1024 * 1024,  # 10MB
    backup_count: int = 5,
) -> logging.Logger:
    """
    Configure logging for the application.

    Args:
        name: Logger name (defaults to root logger)
        level: Log level name; falls back to $LOG_LEVEL, then INFO
        log_file: Path to log file; falls back to $LOG_FILE (None = no file logging)
        console: Enable console logging
        stream: Console stream (defaults to stderr so the dashboard owns stdout)
        json_format: One JSON-ish object per line instead of the readable format
        rotation: Enable log file rotation
        max_bytes: Maximum log file size before rotation
        backup_count: Number of backup files to keep

    Returns:
        Configured logger instance

    Example:
        >>> logger = setup_logging(name="bandscope", level="DEBUG")
        >>> logger.info("Dashboard started")
    """
    logger = logging.getLogger(name)

    if level is None:
        level = os.getenv("LOG_LEVEL", "INFO")
    level = level.upper()

    if log_file is None:
        log_file = os.getenv("LOG_FILE")

    numeric_level = getattr(logging, level, logging.INFO)
    logger.setLevel(numeric_level)

    # Avoid duplicate handlers on repeated setup
    logger.handlers.clear()

    if json_format:
        log_format = (
            '{"timestamp": "%(asctime)s", "level": "%(levelname)s", '
            '"logger": "%(name)s", "module": "%(module)s", '
            '"function": "%(funcName)s", "line": %(lineno)d, '
            '"message": "%(message)s"}'
        )
        date_format = "%Y-%m-%dT%H:%M:%S"
    else:
        log_format = (
            "%(asctime)s - %(name)s - %(levelname)s - "
            "%(module)s:%(funcName)s:%(lineno)d - %(message)s"
        )
        date_format = "%Y-%m-%d %H:%M:%S"

    if console:
        console_handler = logging.StreamHandler(stream or sys.stderr)
        console_handler.setLevel(numeric_level)
        if json_format:
            console_handler.setFormatter(logging.Formatter(log_format, date_format))
        else:
            console_handler.setFormatter(ColoredFormatter(log_format, date_format))
        logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        if rotation:
            file_handler = logging.handlers.RotatingFileHandler(
                log_file,
                maxBytes=max_bytes,
                backupCount=backup_count,
                encoding="utf-8",
            )
        else:
            file_handler = logging.FileHandler(log_file, encoding="utf-8")

        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(logging.Formatter(log_format, date_format))
        logger.addHandler(file_handler)

    if name is not None:
        logger.propagate = False

    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger, configuring the root logger with defaults if nothing has yet.

    Args:
        name: Logger name (typically __name__)
    """
    if not logging.getLogger().handlers:
        setup_logging()
    return logging.getLogger(name)


def log_exception(
    logger: logging.Logger,
    exc: Exception,
    message: str = "An exception occurred",
    level: int = logging.ERROR,
) -> None:
    """Log an exception with full traceback."""
    logger.log(level, f"{message}: {exc}", exc_info=True)


def configure_default_logging(level: Optional[str] = None) -> logging.Logger:
    """
    Configure the `bandscope` logger from the environment.

    - LOG_LEVEL: Logging level (default: INFO, overridden by `level`)
    - LOG_FILE: Log file path (default: no file)
    - LOG_JSON: Use JSON format (default: false)
    - LOG_CONSOLE: Enable console output (default: true)
    """
    return setup_logging(
        name="bandscope",
        level=level or os.getenv("LOG_LEVEL", "INFO"),
        log_file=os.getenv("LOG_FILE"),
        console=os.getenv("LOG_CONSOLE", "true").lower() == "true",
        json_format=os.getenv("LOG_JSON", "false").lower() == "true",
    )
