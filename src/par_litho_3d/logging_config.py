"""Logging setup shared by the library and the command line."""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

from . import __application_binary__

LOGGER_NAME = __application_binary__


def setup_logging(debug: bool = False, console: Console | None = None) -> logging.Logger:
    """Configure the package logger with a rich handler.

    Args:
        debug: If True, log at DEBUG level instead of INFO
        console: Console to render log records to. Defaults to stderr

    Returns:
        The configured package logger
    """
    level = logging.DEBUG if debug else logging.INFO
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)

    # Avoid duplicate records when called more than once (tests, repeated CLI runs)
    if logger.hasHandlers():
        logger.handlers.clear()

    handler = RichHandler(
        console=console or Console(stderr=True),
        level=level,
        show_path=debug,
        rich_tracebacks=True,
        markup=False,
    )
    handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))
    logger.addHandler(handler)
    logger.propagate = False

    return logger


def get_logger(name: str) -> logging.Logger:
    """Return a logger inside the package namespace.

    Args:
        name: Module name, usually ``__name__``

    Returns:
        Logger instance
    """
    if name == LOGGER_NAME or name.startswith(f"{LOGGER_NAME}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{LOGGER_NAME}.{name}")
