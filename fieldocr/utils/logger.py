"""Centralized logging setup for the field extraction engine.

Provides one stream handler with consistent formatting across modules,
plus a helper for keeping recognized text short in log lines.
"""

import logging
import sys
from typing import TextIO

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: str = "INFO", stream: TextIO | None = None) -> None:
    """Configure the root logger with a standard format.

    Calling this more than once leaves the existing handler in place.

    Args:
        level: Logging level string (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        stream: Destination for log lines; stdout when ``None``.
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    root = logging.getLogger()

    if root.handlers:
        return

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    root.addHandler(handler)
    root.setLevel(numeric_level)


def get_logger(name: str) -> logging.Logger:
    """Get a named logger instance.

    Args:
        name: Logger name, typically ``__name__`` of the calling module.

    Returns:
        Configured logger instance.
    """
    return logging.getLogger(name)


def preview(text: str | None, limit: int = 50) -> str:
    """Shorten recognized text for a single log line.

    Args:
        text: Text to shorten. ``None`` is rendered as an empty string.
        limit: Maximum number of characters kept.

    Returns:
        The text with newlines flattened, truncated with ``...`` when longer
        than ``limit``.
    """
    if not text:
        return ""
    flat = " ".join(text.split())
    if len(flat) <= limit:
        return flat
    return flat[:limit] + "..."
