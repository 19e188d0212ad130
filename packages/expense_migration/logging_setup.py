"""Logging for ``expense_migration``.

The CLI calls :func:`configure_logging` once per invocation; library modules
only ever call :func:`get_logger` and never attach handlers themselves. Until
the CLI configures it, the package logger carries a ``NullHandler`` so an
embedding application sees nothing unless it opts in.

Level resolution: explicit argument, then ``EXPENSE_MIGRATION_LOG_LEVEL``,
then ``INFO``. Both level names (``"debug"``) and numbers (``"10"``) work.
"""

from __future__ import annotations

import logging
import os
import sys

LOGGER_NAME = "expense_migration"
LEVEL_ENV = "EXPENSE_MIGRATION_LOG_LEVEL"
LOG_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"

# The one handler owned by this module, once configured.
_handler: logging.Handler | None = None


def resolve_level(level: int | str | None = None) -> int:
    if level is None:
        level = os.getenv(LEVEL_ENV) or logging.INFO
    if isinstance(level, int):
        return level
    token = level.strip().upper()
    if token.isdigit():
        return int(token)
    return logging.getLevelNamesMapping().get(token, logging.INFO)


def configure_logging(level: int | str | None = None) -> logging.Logger:
    """Send package logs to stderr at ``level``.

    Repeated calls reuse the existing handler and only adjust the level, so
    the package never emits a record twice.
    """

    global _handler

    pkg = logging.getLogger(LOGGER_NAME)
    resolved = resolve_level(level)

    if _handler is None:
        for h in [h for h in pkg.handlers if isinstance(h, logging.NullHandler)]:
            pkg.removeHandler(h)
        _handler = logging.StreamHandler(sys.stderr)
        _handler.setFormatter(logging.Formatter(LOG_FORMAT))
        pkg.addHandler(_handler)
        pkg.propagate = False

    _handler.setLevel(resolved)
    pkg.setLevel(resolved)
    return pkg


def get_logger(name: str) -> logging.Logger:
    pkg = logging.getLogger(LOGGER_NAME)
    if _handler is None and not pkg.handlers:
        pkg.addHandler(logging.NullHandler())
    return logging.getLogger(name)


__all__ = ["configure_logging", "get_logger", "resolve_level"]
