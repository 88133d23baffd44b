"""Loguru helpers for consistent file logging in CLI commands."""

from __future__ import annotations

import sys
from pathlib import Path

from loguru import logger

from mcpforge.utils.helpers import get_data_path

_SINK_IDS: dict[str, int] = {}


def log_dir() -> Path:
    return get_data_path() / "logs"


def configure_console_logging(level: str = "INFO") -> None:
    """Replace loguru's default stderr sink with one at the given level."""
    logger.remove()
    logger.add(sys.stderr, level=level.upper())


def ensure_rotating_log_file(name: str, level: str = "INFO") -> Path:
    """Ensure a rotating log sink for the given command name."""
    path = log_dir() / f"{name}.log"
    if name in _SINK_IDS:
        return path
    path.parent.mkdir(parents=True, exist_ok=True)
    _SINK_IDS[name] = logger.add(
        str(path),
        level=level.upper(),
        rotation="10 MB",
        retention="14 days",
        enqueue=True,
        encoding="utf-8",
        backtrace=False,
        diagnose=False,
    )
    return path
