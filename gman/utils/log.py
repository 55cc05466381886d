"""Logging configuration for command-line runs."""

from __future__ import annotations

import sys

from loguru import logger

LOG_FORMAT = "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | {name}:{line} - {message}"


def configure_logging(verbose: bool = False, sink=sys.stderr) -> int:
    """Replace the default sink with one at WARNING (or DEBUG when verbose).

    Returns the id of the installed handler.
    """
    logger.remove()
    return logger.add(sink, level="DEBUG" if verbose else "WARNING", format=LOG_FORMAT)
