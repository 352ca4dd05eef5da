"""Error types for sysdash.

Each failure class maps to its own process exit status so scripts can tell
them apart.
"""

from __future__ import annotations


class SysdashError(Exception):
    """Base class for sysdash failures."""

    exit_code: int = 1


class TerminalIOError(SysdashError):
    """Entering, drawing to, reading from or restoring the terminal failed."""

    exit_code = 1


class UnsupportedPlatformError(SysdashError):
    """The host OS cannot be queried for metrics."""

    exit_code = 2


class LogSinkError(SysdashError):
    """The log file could not be opened."""

    exit_code = 3
