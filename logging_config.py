"""
logging_config.py - Centralized logging configuration.

Every module logs through `get_logger(__name__)` using the
`event_name | key=value | key=value` message format. Entry points (CLI and
API) call `setup_logging` once.
"""

from __future__ import annotations

import logging
import sys
from typing import Union

TEXT_FORMAT = "%(asctime)s [%(name)-16s] %(levelname)-7s %(message)s"
JSON_FORMAT = (
    '{"timestamp":"%(asctime)s","level":"%(levelname)s",'
    '"module":"%(name)s","message":"%(message)s"}'
)


def parse_level(level: Union[int, str, None], default: int = logging.INFO) -> int:
    """Accept a logging level as int or name ("debug", "WARNING", ...)."""
    if isinstance(level, int):
        return level
    name = str(level or "").strip().upper()
    if not name:
        return default
    resolved = logging.getLevelName(name)
    return resolved if isinstance(resolved, int) else default


def setup_logging(level: Union[int, str] = logging.INFO, json_format: bool = False) -> None:
    """Configure root logger with consistent formatting.

    Args:
        level: Logging level, as an int or a level name.
        json_format: If True, emit JSON-like log lines.
    """
    root = logging.getLogger()
    root.setLevel(parse_level(level))
    root.handlers.clear()

    formatter = logging.Formatter(
        JSON_FORMAT if json_format else TEXT_FORMAT,
        datefmt="%H:%M:%S",
    )

    # stderr keeps stdout free for CSV output.
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)
    root.addHandler(handler)


def get_logger(name: str) -> logging.Logger:
    """Get a named logger."""
    return logging.getLogger(name)
