"""
Centralized logging configuration for the package.

Modules obtain loggers through get_logger() and never attach handlers
themselves. Handlers live only on the root logger, configured once by the
application (the console client calls configure_logging() at startup), and
module loggers inherit them through propagation.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from resilient_ws.config.config import Config
from resilient_ws.exceptions import ConfigurationError


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger for the specified module.

    Args:
        name: Usually __name__ of the calling module

    Returns:
        A logger instance that propagates to the root logger
    """
    return logging.getLogger(name)


def configure_logging(
    log_dir: Optional[Path] = None, console: bool = True
) -> logging.Logger:
    """
    Configure the root logger with a rotating file handler and, optionally,
    a console handler. Does nothing if the root logger already has handlers.

    Args:
        log_dir: Directory for the log file (defaults to Config.LOG_DIR)
        console: Whether to also log to stderr

    Returns:
        The root logger
    """
    root_logger = logging.getLogger()

    if root_logger.handlers:  # Avoid adding handlers multiple times
        return root_logger

    try:
        log_level_value = Config.LOG_LEVEL
        log_level = (
            logging.getLevelName(log_level_value.upper())
            if isinstance(log_level_value, str)
            else log_level_value
        )
    except Exception as e:
        print(f"CRITICAL: Logger setup failed unexpectedly: {e}", file=sys.stderr)
        raise ConfigurationError(f"Logger setup failed: {e}") from e

    root_logger.setLevel(log_level)

    formatter = logging.Formatter(
        "[{asctime}] [{levelname:<8}] {name}: {message}", "%Y-%m-%d %H:%M:%S", style="{"
    )

    logs_dir = Path(log_dir) if log_dir is not None else Config.LOG_DIR
    logs_dir.mkdir(parents=True, exist_ok=True)
    file_handler = RotatingFileHandler(
        logs_dir / Config.LOG_FILE_NAME,
        encoding="utf-8",
        maxBytes=Config.LOG_MAX_SIZE,
        backupCount=Config.LOG_BACKUP_COUNT,
    )
    file_handler.setFormatter(formatter)
    file_handler.setLevel(log_level)
    root_logger.addHandler(file_handler)

    if console:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(formatter)
        console_handler.setLevel(log_level)
        root_logger.addHandler(console_handler)

    get_logger(__name__).info(
        f"Root logger configured (file: {logs_dir / Config.LOG_FILE_NAME}, console: {console})."
    )
    return root_logger
