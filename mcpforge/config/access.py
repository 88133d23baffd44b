"""Process-wide config cache, refreshed when the config file changes on disk."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from pathlib import Path

from mcpforge.config.loader import get_config_path, load_config
from mcpforge.config.schema import Config


@dataclass(slots=True)
class _Entry:
    config: Config
    mtime_ns: int | None


_lock = threading.RLock()
_entries: dict[Path, _Entry] = {}


def _resolve(config_path: Path | None) -> Path:
    return Path(config_path or get_config_path()).expanduser().resolve()


def _mtime_ns(path: Path) -> int | None:
    try:
        return path.stat().st_mtime_ns
    except FileNotFoundError:
        return None


def get_config(*, config_path: Path | None = None, force_reload: bool = False) -> Config:
    """Cached config for a path; reloaded on force_reload or when the file's mtime moves."""
    path = _resolve(config_path)
    mtime = _mtime_ns(path)
    with _lock:
        entry = _entries.get(path)
        if force_reload or entry is None or entry.mtime_ns != mtime:
            entry = _Entry(config=load_config(path), mtime_ns=mtime)
            _entries[path] = entry
        return entry.config


def clear_config_cache(*, config_path: Path | None = None) -> None:
    """Forget one cached path, or every path when none is given."""
    with _lock:
        if config_path is None:
            _entries.clear()
        else:
            _entries.pop(_resolve(config_path), None)
