"""Logging configuration using loguru.

Command output goes to stdout; everything logged goes to stderr, so that the
output of ``plexus order`` and friends can be piped into other tools.
Libraries logging through stdlib ``logging`` are routed into loguru too.
"""

from __future__ import annotations

import logging
import sys

from loguru import logger

_FORMAT = "<level>{level: <8}</level> | <level>{message}</level>"
_DEBUG_FORMAT = (
    "<green>{time:HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)


class _InterceptHandler(logging.Handler):
    """Forward stdlib logging records to loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Skip logging's own frames so loguru reports the real caller
        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def setup_logging(level: str = "WARNING") -> None:
    """Send loguru output to stderr at ``level`` and intercept stdlib logging.

    At ``DEBUG`` each line also carries a timestamp and its source location.
    Safe to call more than once; earlier sinks are replaced.
    """
    level = level.upper()

    logger.remove()
    logger.add(sys.stderr, level=level, format=_DEBUG_FORMAT if level == "DEBUG" else _FORMAT)

    logging.basicConfig(handlers=[_InterceptHandler()], level=0, force=True)

    logger.debug("Logging initialised (level={})", level)
