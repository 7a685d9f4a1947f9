"""Logging setup, including the TRACE level used for cvs command lines."""

from __future__ import annotations

import logging
import sys

TRACE = 5
logging.addLevelName(TRACE, "TRACE")

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_LEVELS = {
    "trace": TRACE,
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "warn": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
}


class _StderrHandler(logging.StreamHandler):
    """Writes to whatever ``sys.stderr`` is when a record is emitted."""

    def emit(self, record: logging.LogRecord) -> None:
        # Not setStream: it flushes the previous stream, which may be closed by now.
        self.stream = sys.stderr
        super().emit(record)


def parse_level(name: str) -> int:
    """Translate a case-insensitive level name into a logging level."""
    try:
        return _LEVELS[name.strip().lower()]
    except KeyError:
        raise ValueError(
            f"Unknown log level '{name}' (expected one of: {', '.join(sorted(_LEVELS))})"
        ) from None


def level_from_verbosity(verbose: int) -> int:
    if verbose >= 3:
        return TRACE
    if verbose == 2:
        return logging.DEBUG
    if verbose == 1:
        return logging.INFO
    return logging.WARNING


def configure_logging(level: int) -> logging.Logger:
    """Send cvsreplay log records at ``level`` and above to stderr.

    Safe to call more than once; the handler is installed only the first time.
    """
    logger = logging.getLogger("cvsreplay")
    logger.setLevel(level)
    handler = next((h for h in logger.handlers if isinstance(h, _StderrHandler)), None)
    if handler is None:
        handler = _StderrHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
    handler.setLevel(level)
    return logger
