"""Logging setup shared by the CLI entry points."""

from __future__ import annotations

import logging
import os
from typing import Optional

LOGGER_NAME = "wp2contentful"
DEFAULT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
_ALLOWED_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def setup_logging(level: str = "INFO", log_file: Optional[str] = None) -> logging.Logger:
    """
    Configure the package logger with a console handler and, optionally, a
    file handler appending to ``log_file``.

    Args:
        level: Log level name.
        log_file: Optional path of the migration log file.  Parent
            directories are created.

    Returns:
        The configured ``wp2contentful`` logger.
    """
    level_upper = (level or "INFO").upper()
    if level_upper not in _ALLOWED_LEVELS:
        raise ValueError(f"Invalid log level '{level}'. Must be one of: {sorted(_ALLOWED_LEVELS)}")

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, level_upper))
    logger.handlers.clear()

    formatter = logging.Formatter(DEFAULT_FORMAT, datefmt=DEFAULT_DATE_FORMAT)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        os.makedirs(os.path.dirname(log_file) or ".", exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    # Keep urllib3 connection chatter out of the migration log
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    return logger
