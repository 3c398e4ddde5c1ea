"""Logging configuration for Image Uploader.

Every module logs through a child of the "image_uploader" logger; the CLI
calls setup_logger() once to attach a Rich handler.
"""

import logging
import os
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "image_uploader"


def setup_logger(
    level: Optional[str] = None,
    console: Optional[Console] = None,
) -> logging.Logger:
    """Configure the package logger.

    Args:
        level: Log level override (defaults to LOG_LEVEL env var or WARNING)
        console: Rich console to write to (defaults to stderr)

    Returns:
        Configured package logger
    """
    logger = logging.getLogger(LOGGER_NAME)

    if level:
        log_level = getattr(logging, level.upper(), logging.WARNING)
    else:
        env_level = os.getenv("LOG_LEVEL", "WARNING").upper()
        log_level = getattr(logging, env_level, logging.WARNING)

    logger.setLevel(log_level)

    # Avoid duplicate handlers when called more than once
    if not logger.handlers:
        handler = RichHandler(
            console=console or Console(stderr=True),
            show_path=False,
            rich_tracebacks=True,
        )
        handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
        logger.addHandler(handler)

    logger.propagate = False
    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a child logger of the package logger.

    Args:
        name: Module name, e.g. "channel"

    Returns:
        Logger named image_uploader.<name>
    """
    return logging.getLogger(f"{LOGGER_NAME}.{name}")
