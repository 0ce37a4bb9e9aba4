"""
logger_service.py - Logging setup for the Vault login service

Configures Python's logging module once at startup:
- Console output on stderr, so the interactive `vault login` keeps stdout
- Optional local log file (UTF-8)

Every other module just does `logger = logging.getLogger(__name__)`.
"""

import logging
from pathlib import Path
from typing import Optional

# Configure module logger
logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)-20s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(
    log_level: str = "INFO",
    log_file: Optional[str] = None,
    console_output: bool = True
) -> logging.Logger:
    """
    Configure the root logger.

    Args:
        log_level: Level name (DEBUG, INFO, WARNING, ...)
        log_file: Optional path of a log file. Parent directory is created.
        console_output: Attach a stderr handler

    Returns:
        logging.Logger: The configured root logger

    Raises:
        ValueError: If log_level is not a known level name
    """
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {log_level}")

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Clear existing handlers
    root_logger.handlers.clear()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    if console_output:
        # StreamHandler defaults to stderr
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

    logger.debug(f"Logging initialized. File: {log_file or 'none'}, Level: {log_level.upper()}")
    return root_logger
