# src/logging/handlers.py — v2
"""Size-based rotating file handler for the service log."""

from __future__ import annotations

import logging
import re
from logging.handlers import RotatingFileHandler
from pathlib import Path

_SIZE_PATTERN = re.compile(r"^(?P<amount>\d+)\s*(?P<unit>[KMG])B$", re.IGNORECASE)
_UNIT_SHIFT = {"K": 10, "M": 20, "G": 30}


def parse_size(size_str: str) -> int:
    """Convert a LOG_ROTATION value such as "10MB" or "512kb" to bytes."""
    match = _SIZE_PATTERN.match(size_str.strip())
    if match is None:
        raise ValueError(f"Invalid size format: {size_str!r}. Use e.g. '10MB'.")
    return int(match["amount"]) << _UNIT_SHIFT[match["unit"].upper()]


def create_rotating_handler(
    log_file: str | Path,
    rotation: str = "10MB",
    retention: int = 30,
) -> logging.Handler:
    """Open the service log at ``log_file``, rolling over at ``rotation``.

    ``retention`` is the number of rolled-over files kept next to it. The
    directory is created when missing; the file itself is opened on the
    first record.
    """
    path = Path(log_file).expanduser()
    path.parent.mkdir(parents=True, exist_ok=True)
    return RotatingFileHandler(
        path,
        maxBytes=parse_size(rotation),
        backupCount=retention,
        encoding="utf-8",
        delay=True,
    )
