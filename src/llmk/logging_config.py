# llmk/logging_config.py
"""
Logging setup for llmk.

All modules log through ``logging.getLogger(__name__)`` below the ``llmk``
logger. Debug output is split into categories, each with its own logger
``llmk.debug.<category>``, so a category can be switched on without
lowering the level of everything else.

Messages are rendered the way the command-line tool prints them:

    llmk error: parser: line 3: Invalid primitive
    llmk info: running "lualatex paper.tex"
    llmk debug-config: sequence = ('latex', 'dvipdf')
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterable
from typing import TextIO

PROG_NAME = "llmk"
DEBUG_CATEGORIES = ("version", "config", "parser")

_DEBUG_PREFIX = f"{PROG_NAME}.debug."


def debug_logger(category: str) -> logging.Logger:
    """Return the logger used for one debug category."""
    return logging.getLogger(_DEBUG_PREFIX + category)


class LlmkFormatter(logging.Formatter):
    """Prefix each message with the program name and its severity or debug category."""

    def __init__(self, format_string: str | None = None):
        super().__init__(format_string or "%(message)s")

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        if record.name.startswith(_DEBUG_PREFIX):
            category = record.name[len(_DEBUG_PREFIX) :]
            return f"{PROG_NAME} debug-{category}: {message}"
        return f"{PROG_NAME} {record.levelname.lower()}: {message}"


def setup_logging(
    level: int | str = logging.ERROR,
    *,
    debug: Iterable[str] = (),
    format_string: str | None = None,
    propagate: bool = False,
    console: bool = True,
    stream: TextIO | None = None,
) -> logging.Logger:
    """
    Configure the ``llmk`` logger.

    Args:
        level: Threshold for regular messages. ERROR (default) shows only
            errors, INFO also shows the commands being run.
        debug: Debug categories to enable ("version", "config", "parser").
        format_string: Optional format for the message part.
        propagate: Whether records also reach the root logger.
        console: Attach a stream handler (stderr unless ``stream`` is given).
        stream: Stream for the console handler.

    Returns:
        The configured ``llmk`` logger.
    """
    pkg_logger = logging.getLogger(PROG_NAME)
    for handler in list(pkg_logger.handlers):
        pkg_logger.removeHandler(handler)

    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
    pkg_logger.setLevel(level)
    pkg_logger.propagate = propagate

    if console:
        handler = logging.StreamHandler(stream or sys.stderr)
        handler.setFormatter(LlmkFormatter(format_string))
        pkg_logger.addHandler(handler)

    enabled = set(debug)
    for category in DEBUG_CATEGORIES:
        debug_logger(category).setLevel(logging.DEBUG if category in enabled else logging.NOTSET)

    return pkg_logger


def disable_logging() -> None:
    """Remove llmk's handlers and silence the package (useful for tests)."""
    pkg_logger = logging.getLogger(PROG_NAME)
    for handler in list(pkg_logger.handlers):
        pkg_logger.removeHandler(handler)
    pkg_logger.addHandler(logging.NullHandler())
    pkg_logger.setLevel(logging.CRITICAL + 1)
    pkg_logger.propagate = False
    for category in DEBUG_CATEGORIES:
        debug_logger(category).setLevel(logging.NOTSET)
