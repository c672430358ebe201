"""Logging configuration using loguru.

Command results go to stdout; log lines go to stderr.  At the default
WARNING level a terse ``level: message`` format is used so warnings read
like CLI messages; ``-v`` / ``-vv`` switch to the detailed format with
timestamps and call sites.  Stdlib logging (watchfiles) is routed through
loguru as well.
"""

from __future__ import annotations

import logging
import sys

from loguru import logger

TERSE_FORMAT = "<level>{level}</level>: {message}"
DETAILED_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)

_VERBOSITY = ("WARNING", "INFO", "DEBUG")


def level_for_verbosity(verbose: int, default: str = "WARNING") -> str:
    """``0`` keeps *default*; each ``-v`` steps down one level, to DEBUG at most."""
    if verbose <= 0:
        return default.upper()
    return _VERBOSITY[min(verbose, len(_VERBOSITY) - 1)]


class _InterceptHandler(logging.Handler):
    """Forward stdlib records to loguru, keeping the original call site."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame, depth = logging.currentframe(), 2
        while frame is not None and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def setup_logging(level: str = "WARNING") -> None:
    """Install the single stderr sink.  Safe to call more than once."""
    level = level.upper()
    detailed = logger.level(level).no < logger.level("WARNING").no

    logger.remove()
    logger.add(
        sys.stderr,
        level=level,
        format=DETAILED_FORMAT if detailed else TERSE_FORMAT,
        backtrace=detailed,
        diagnose=False,
    )

    logging.basicConfig(handlers=[_InterceptHandler()], level=0, force=True)
    # watchfiles reports every raw change set at INFO
    logging.getLogger("watchfiles").setLevel(logging.WARNING)

    logger.debug("Logging initialised (level={})", level)
