"""Logging configuration for adr-manager."""

import sys
from pathlib import Path

from loguru import logger


def configure_logging(*, verbose: bool = False, log_file: Path | None = None) -> None:
    """Configure loguru sinks.

    Args:
        verbose: Log DEBUG messages to stderr instead of INFO and above.
        log_file: Optional file receiving every message at DEBUG level.
    """
    logger.remove()
    level = "DEBUG" if verbose else "INFO"
    logger.add(sys.stderr, level=level, format="{level.icon} {message}")
    if log_file is not None:
        logger.add(log_file, level="DEBUG", rotation="1 MB", retention=3, encoding="utf-8")
