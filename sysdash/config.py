"""Runtime settings for sysdash.

There is no config file. Settings start from ``DEFAULT_CONFIG`` and the
environment may override the log destination and level:

    SYSDASH_LOG_FILE=/tmp/sysdash.log SYSDASH_LOG_LEVEL=DEBUG sysdash
"""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Mapping
from typing import Any

DEFAULT_CONFIG: dict[str, Any] = {
    "log_path": "app_log.log",
    "log_level": "INFO",
}

ENV_LOG_FILE = "SYSDASH_LOG_FILE"
ENV_LOG_LEVEL = "SYSDASH_LOG_LEVEL"

_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


def _env_overlay(environ: Mapping[str, str]) -> dict[str, Any]:
    """Pick the recognised variables out of *environ*."""
    overlay: dict[str, Any] = {}

    path = environ.get(ENV_LOG_FILE, "").strip()
    if path:
        overlay["log_path"] = path

    level = environ.get(ENV_LOG_LEVEL, "").strip().upper()
    if level:
        if level in _LEVELS:
            overlay["log_level"] = level
        else:
            print(
                f"sysdash: warning: ignoring unknown {ENV_LOG_LEVEL}={level!r}",
                file=sys.stderr,
            )
    return overlay


def load_config(environ: Mapping[str, str] | None = None) -> dict[str, Any]:
    """Return the defaults with any environment overrides applied.

    Args:
        environ: Variables to read. Defaults to ``os.environ``.

    Returns:
        Merged settings dict with every ``DEFAULT_CONFIG`` key present.
    """
    if environ is None:
        environ = os.environ
    return {**DEFAULT_CONFIG, **_env_overlay(environ)}


def log_level(config: Mapping[str, Any]) -> int:
    """Numeric ``logging`` level for the configured level name."""
    return int(logging.getLevelName(str(config["log_level"])))
