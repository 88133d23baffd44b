"""Read and write the camelCase JSON config file."""

import json
import os
import re
from pathlib import Path
from typing import Any

from mcpforge.config.schema import Config

# Mappings whose keys are data (priority class names), not field names.
_OPAQUE_KEYS = frozenset({"priority_limits"})

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


def get_config_path() -> Path:
    """Default config location: ~/.mcpforge/config.json."""
    return Path.home() / ".mcpforge" / "config.json"


def load_config(config_path: Path | None = None) -> Config:
    """
    Load the config file, or return defaults (with env overrides) when it is absent.

    Raises:
        ValueError: the file exists but is not a JSON object or fails validation.
    """
    path = config_path or get_config_path()
    if not path.exists():
        return Config()

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise ValueError("config root must be a JSON object")
        return Config.model_validate(convert_keys(_migrate_config(data)))
    except (json.JSONDecodeError, ValueError) as e:
        raise ValueError(
            f"Failed to load config from {path}: {e}. "
            "Fix the file or remove it to regenerate defaults."
        ) from e


def save_config(config: Config, config_path: Path | None = None) -> None:
    """Write config as camelCase JSON, replacing the target file atomically."""
    path = config_path or get_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)

    tmp = path.with_name(path.name + ".tmp")
    tmp.write_text(json.dumps(convert_to_camel(config.model_dump()), indent=2) + "\n", encoding="utf-8")
    os.replace(tmp, path)

    from mcpforge.config.access import clear_config_cache

    clear_config_cache(config_path=path)


def _migrate_config(data: dict) -> dict:
    """Move legacy top-level keys into their current sections."""
    # maxBatchSize / maxConcurrentRequests / maxRetryCount used to sit at the root
    moved = {k: data.pop(k) for k in ("maxBatchSize", "maxConcurrentRequests", "maxRetryCount") if k in data}
    if moved:
        limits = data.setdefault("limits", {})
        for key, value in moved.items():
            limits.setdefault(key, value)
    if isinstance(data.get("port"), int):
        data.setdefault("server", {}).setdefault("port", data.pop("port"))
    return data


def camel_to_snake(name: str) -> str:
    return _CAMEL_BOUNDARY.sub("_", name).lower()


def snake_to_camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


def _convert(data: Any, rename) -> Any:
    if isinstance(data, list):
        return [_convert(item, rename) for item in data]
    if not isinstance(data, dict):
        return data
    result: dict[str, Any] = {}
    for key, value in data.items():
        new_key = rename(key)
        opaque = camel_to_snake(new_key) in _OPAQUE_KEYS and isinstance(value, dict)
        result[new_key] = dict(value) if opaque else _convert(value, rename)
    return result


def convert_keys(data: Any) -> Any:
    """camelCase keys to snake_case, leaving priority-class maps untouched."""
    return _convert(data, camel_to_snake)


def convert_to_camel(data: Any) -> Any:
    """snake_case keys to camelCase, leaving priority-class maps untouched."""
    return _convert(data, snake_to_camel)
