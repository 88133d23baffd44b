"""Small shared helpers: clocks, paths and canonical serialization."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def get_data_path() -> Path:
    """~/.mcpforge, created on demand."""
    path = Path.home() / ".mcpforge"
    path.mkdir(parents=True, exist_ok=True)
    return path


def canonical_json(value: Any) -> str:
    """Deterministic JSON: sorted keys at every depth, no whitespace."""
    return json.dumps(value, sort_keys=True, separators=(",", ":"), default=str, ensure_ascii=False)
