"""Diagnostic logging configuration"""

import logging
import sys
from typing import Optional, TextIO


LOGGER_NAME = 'ntfsreader'
CONSOLE_FORMAT = '%(levelname)s: %(message)s'


def configure_logging(log_level: str = 'INFO', stream: Optional[TextIO] = None) -> logging.Logger:
    """
    Route ntfsreader diagnostics to the error stream.

    Structured output owns standard output, so every handler writes to
    standard error. Handlers from a previous call are replaced.

    Args:
        log_level: Logging level name
        stream: Stream to write to (defaults to the current sys.stderr)

    Returns:
        The configured package logger
    """
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    package_logger = logging.getLogger(LOGGER_NAME)
    package_logger.setLevel(numeric_level)
    package_logger.propagate = False

    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)

    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setLevel(numeric_level)
    handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    package_logger.addHandler(handler)

    package_logger.debug(f"Logging configured at {log_level.upper()} level")
    return package_logger
