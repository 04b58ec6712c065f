"""Loguru setup for the command line.

Normal runs print one short line per message on stderr so command output on
stdout stays clean; ``DEBUG`` adds timestamps and the emitting location.
Records from stdlib loggers (sqlalchemy, aiosqlite) are routed into loguru.
"""

from __future__ import annotations

import inspect
import logging
import sys

from loguru import logger

COMPACT_FORMAT = "<level>{level: <7}</level> {message}"
DEBUG_FORMAT = (
    "<green>{time:HH:mm:ss.SSS}</green> <level>{level: <7}</level> "
    "<cyan>{name}:{function}:{line}</cyan> {message}"
)

# Stdlib loggers that are only interesting when inspecting SQL traffic.
_CHATTY = ("sqlalchemy.engine", "sqlalchemy.pool", "aiosqlite")


class _StdlibHandler(logging.Handler):
    """Forward stdlib records to loguru, keeping the caller's location."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Skip this frame and the logging module's own frames.
        frame, depth = inspect.currentframe(), 0
        while frame is not None and (depth == 0 or frame.f_code.co_filename == logging.__file__):
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def setup_logging(level: str = "INFO") -> None:
    """Install the stderr sink.  Called once by the CLI entry point."""
    level = level.upper()
    debug = level in ("TRACE", "DEBUG")

    logger.configure(
        handlers=[
            {
                "sink": sys.stderr,
                "level": level,
                "format": DEBUG_FORMAT if debug else COMPACT_FORMAT,
                "backtrace": debug,
                "diagnose": debug,
            }
        ]
    )
    logging.basicConfig(handlers=[_StdlibHandler()], level=0, force=True)
    for name in _CHATTY:
        logging.getLogger(name).setLevel(logging.INFO if debug else logging.WARNING)

    logger.debug("Logging at {}", level)
