"""Common RPC error-boundary helpers for dispatch."""

from __future__ import annotations

from typing import Any, Callable

from mcpforge.protocol.envelope import make_error
from mcpforge.protocol.types import ErrorCode
from mcpforge.utils.exceptions import (
    McpForgeError,
    classify_exception,
    sanitize_error_message,
)


def mcpforge_error_result(
    *,
    method: str,
    exc: McpForgeError,
    log_warning: Callable[..., None],
) -> dict[str, Any]:
    """Map McpForgeError to an error payload, keeping its code and retry hint."""
    log_warning("MCP method {} failed with [{}]: {}", method, exc.code, exc.message)
    error = exc.to_error()
    if isinstance(error.get("data"), str):
        error["data"] = sanitize_error_message(error["data"])
    return error


def unhandled_exception_result(
    *,
    method: str,
    exc: BaseException,
    log_exception: Callable[..., None],
) -> dict[str, Any]:
    """Map unexpected handler exceptions to a generic, retryable INTERNAL_ERROR.

    The original message only travels in `data`; the top-level message stays generic.
    """
    _, category, retryable = classify_exception(exc)
    sanitized = sanitize_error_message(str(exc) or type(exc).__name__)
    log_exception("MCP method {} failed with [{}]: {}", method, category.value, sanitized)
    return make_error(
        ErrorCode.INTERNAL_ERROR,
        data=sanitized,
        retryable=retryable,
        suggested_action="Retry the request; contact the operator if the error persists",
    )

