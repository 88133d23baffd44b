"""Shared helpers for mapping response envelopes onto HTTP status and headers."""

from __future__ import annotations

import math
import time
from typing import Any

from mcpforge.protocol.envelope import error_code_of
from mcpforge.protocol.types import ErrorCode

_CLIENT_ERROR_CODES = {
    ErrorCode.PARSE_ERROR,
    ErrorCode.INVALID_REQUEST,
    ErrorCode.METHOD_NOT_FOUND,
    ErrorCode.INVALID_PARAMS,
}


def http_status_for_code(code: int | None) -> int:
    """Transport status for an error code (200 when there is no error)."""
    if code is None:
        return 200
    if code in _CLIENT_ERROR_CODES:
        return 400
    if code == ErrorCode.RATE_LIMIT_EXCEEDED:
        return 429
    if code == ErrorCode.SERVICE_UNAVAILABLE:
        return 503
    return 500


def retry_after_header(response: dict[str, Any], now: float | None = None) -> str | None:
    """Retry-After seconds for 429/503 envelopes, from resetTime or retryAfter."""
    code = error_code_of(response)
    if code not in (ErrorCode.RATE_LIMIT_EXCEEDED, ErrorCode.SERVICE_UNAVAILABLE):
        return None
    data = response["error"].get("data")
    if not isinstance(data, dict):
        return None
    reset_ms = data.get("resetTime")
    if isinstance(reset_ms, (int, float)):
        now = time.time() if now is None else now
        return str(max(1, math.ceil(reset_ms / 1000.0 - now)))
    retry_after = data.get("retryAfter")
    if isinstance(retry_after, (int, float)):
        return str(max(1, math.ceil(retry_after)))
    return None


def status_and_headers(payload: Any) -> tuple[int, dict[str, str]]:
    """Status for a single envelope or a batch array (arrays are always 200)."""
    if isinstance(payload, list):
        return 200, {}
    status = http_status_for_code(error_code_of(payload))
    headers: dict[str, str] = {}
    retry_after = retry_after_header(payload)
    if retry_after:
        headers["Retry-After"] = retry_after
    return status, headers
