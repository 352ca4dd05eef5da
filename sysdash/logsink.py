"""Append-only log file for sysdash.

The dashboard owns the terminal while it runs, so nothing may be logged to
stdout or stderr. Records go to a plain-text file instead, one per line and
without timestamps.
"""

from __future__ import annotations

import logging
from pathlib import Path

from sysdash.errors import LogSinkError

LOGGER_NAME = "sysdash"
LOG_FORMAT = "[%(levelname)s %(name)s] %(message)s"


class _SinkHandler(logging.FileHandler):
    """File handler that drops records it fails to write.

    The default error path prints a traceback to stderr, which curses owns
    while the dashboard runs.
    """

    def handleError(self, record: logging.LogRecord) -> None:
        pass


def open_log_sink(path: str | Path, level: int = logging.INFO) -> logging.Handler:
    """Attach an append-mode file handler to the ``sysdash`` logger.

    The file is created if missing and opened immediately, so a bad path
    fails here rather than on the first record.

    Raises:
        LogSinkError: If the file cannot be opened for appending.
    """
    try:
        handler = _SinkHandler(path, mode="a", encoding="utf-8")
    except OSError as e:
        raise LogSinkError(f"cannot open log file {path}: {e}") from e
    handler.setFormatter(logging.Formatter(LOG_FORMAT))

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    logger.addHandler(handler)
    # Keep records off the root logger's stderr handler while curses is active
    logger.propagate = False
    return handler


def close_log_sink(handler: logging.Handler) -> None:
    """Detach and close a handler returned by :func:`open_log_sink`."""
    logger = logging.getLogger(LOGGER_NAME)
    logger.removeHandler(handler)
    handler.close()
    if not logger.handlers:
        logger.propagate = True
