"""Response envelope builders shared by single and batch processing."""

from __future__ import annotations

import time
from typing import Any

from mcpforge.protocol.types import ERROR_MESSAGES, JSONRPC_VERSION
from mcpforge.utils.helpers import now_iso


def elapsed_ms(started: float) -> float:
    """Milliseconds since a time.perf_counter() reading."""
    return round((time.perf_counter() - started) * 1000, 3)


def build_metadata(
    *,
    started: float,
    version: str,
    cache_hit: bool | None = None,
    batch_index: int | None = None,
    extra: dict[str, Any] | None = None,
) -> dict[str, Any]:
    meta: dict[str, Any] = {
        "timestamp": now_iso(),
        "processingTime": elapsed_ms(started),
        "version": version,
    }
    if cache_hit:
        meta["cacheHit"] = True
    if batch_index is not None:
        meta["batchIndex"] = batch_index
    if extra:
        meta.update(extra)
    return meta


def success_response(
    req_id: Any,
    result: Any,
    metadata: dict[str, Any],
    *,
    jsonrpc: str = JSONRPC_VERSION,
) -> dict[str, Any]:
    return {"jsonrpc": jsonrpc, "id": req_id, "result": result, "metadata": metadata}


def error_response(
    req_id: Any,
    error: dict[str, Any],
    metadata: dict[str, Any],
    *,
    jsonrpc: str = JSONRPC_VERSION,
) -> dict[str, Any]:
    return {"jsonrpc": jsonrpc, "id": req_id, "error": error, "metadata": metadata}


def make_error(
    code: int,
    *,
    data: Any = None,
    retryable: bool | None = None,
    suggested_action: str | None = None,
    message: str | None = None,
) -> dict[str, Any]:
    """Build the `error` member; message defaults to the generic text for the code."""
    error: dict[str, Any] = {"code": int(code), "message": message or ERROR_MESSAGES.get(code, "Error")}
    if data is not None:
        error["data"] = data
    if retryable is not None:
        error["retryable"] = retryable
    if suggested_action:
        error["suggestedAction"] = suggested_action
    return error


def request_id_of(payload: Any) -> Any:
    """Echoable correlation id of a raw payload, or None when unusable."""
    if isinstance(payload, dict):
        rid = payload.get("id")
        if isinstance(rid, (str, int, float)) and not isinstance(rid, bool):
            return rid
    return None


def error_code_of(response: dict[str, Any]) -> int | None:
    err = response.get("error")
    return int(err["code"]) if isinstance(err, dict) and "code" in err else None


__all__ = [
    "build_metadata",
    "elapsed_ms",
    "error_code_of",
    "error_response",
    "make_error",
    "request_id_of",
    "success_response",
]
