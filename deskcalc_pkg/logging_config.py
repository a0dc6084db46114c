"""Logging for the desk calculator.

Every module logs under the "deskcalc" hierarchy ("deskcalc.session",
"deskcalc.evaluator", "deskcalc.cli"). The session logs failed actions at
WARNING and state transitions at DEBUG; the CLI configures the root
"deskcalc" logger once from --log-level and --log-file.
"""

import logging
import sys
from datetime import datetime
from typing import Optional

from .config import DEFAULT_LOG_LEVEL


class StructuredFormatter(logging.Formatter):
    """One line per record: ISO timestamp, level, logger name, message."""

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created).isoformat()
        return f"{timestamp} [{record.levelname}] {record.name}: {record.getMessage()}"


def setup_logging(
    level: str = DEFAULT_LOG_LEVEL, log_file: Optional[str] = None
) -> logging.Logger:
    """Configure the "deskcalc" logger, replacing any handlers from an earlier call.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional file that receives a copy of every record; stderr
            always gets one

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger("deskcalc")
    logger.setLevel(getattr(logging, level.upper(), logging.WARNING))

    # Remove existing handlers
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(StructuredFormatter())
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(StructuredFormatter())
        logger.addHandler(file_handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Return the logger of one deskcalc module.

    Args:
        name: Short module name, e.g. "session"

    Returns:
        The "deskcalc.<name>" child logger
    """
    return logging.getLogger(f"deskcalc.{name}")
