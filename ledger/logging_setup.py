"""Logging for the ``ledger`` package.

Modules only ever call ``get_logger("ledger.<module>")``. The HTTP app calls
``configure_logging`` with the level from ``Settings``; calling it again
adjusts the level and keeps the one handler it installed.
"""

from __future__ import annotations

import logging
import sys
from typing import IO

ROOT_LOGGER = "ledger"
LOG_FORMAT = "%(asctime)s %(levelname)-7s [%(name)s] %(message)s"

_root = logging.getLogger(ROOT_LOGGER)
_root.addHandler(logging.NullHandler())
_handler: logging.Handler | None = None


def resolve_level(level: int | str | None) -> int:
    """Map an int, a numeric string or a level name to a logging level.

    Blank and unknown values fall back to ``INFO``.
    """
    if isinstance(level, int):
        return level
    name = (level or "").strip().upper()
    if name.isdigit():
        return int(name)
    value = logging.getLevelName(name) if name else None
    return value if isinstance(value, int) else logging.INFO


def configure_logging(level: int | str | None = None, *, stream: IO[str] | None = None) -> logging.Logger:
    global _handler
    if _handler is None:
        _handler = logging.StreamHandler(stream or sys.stderr)
        _handler.setFormatter(logging.Formatter(LOG_FORMAT))
        _root.addHandler(_handler)
        _root.propagate = False
    _root.setLevel(resolve_level(level))
    return _root


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
