"""
Exception hierarchy and error handling utilities for mcpforge.

Provides:
- Custom exception classes carrying JSON-RPC error codes
- Error categorization (validation, rate limit, unavailable, retryable, fatal)
- Safe error message formatting (no sensitive data leak)
"""

from __future__ import annotations

import asyncio
import re
from enum import Enum
from typing import Any

from mcpforge.protocol.types import ERROR_MESSAGES, ErrorCode


class ErrorCategory(Enum):
    """Error categories for classification."""
    STRUCTURAL = "structural"
    SEMANTIC = "semantic"
    RATE_LIMIT = "rate_limit"
    CONCURRENCY = "concurrency"
    HANDLER = "handler"
    TIMEOUT = "timeout"
    RETRYABLE = "retryable"
    FATAL = "fatal"


class McpForgeError(Exception):
    """Base exception for all mcpforge errors."""

    def __init__(
        self,
        message: str,
        code: int = ErrorCode.INTERNAL_ERROR,
        category: ErrorCategory = ErrorCategory.FATAL,
        *,
        retryable: bool = False,
        data: Any = None,
        suggested_action: str | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = int(code)
        self.category = category
        self.retryable = retryable
        self.data = data
        self.suggested_action = suggested_action

    def to_error(self) -> dict[str, Any]:
        """Render as the `error` member of a response envelope."""
        error: dict[str, Any] = {
            "code": self.code,
            "message": ERROR_MESSAGES.get(self.code, self.message),
            "retryable": self.retryable,
        }
        if self.data is not None:
            error["data"] = self.data
        if self.suggested_action:
            error["suggestedAction"] = self.suggested_action
        return error

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"


class StructuralValidationError(McpForgeError):
    """Malformed envelope or batch structure. Never retried."""

    def __init__(self, message: str, data: Any = None, suggested_action: str | None = None):
        super().__init__(
            message,
            code=ErrorCode.INVALID_REQUEST,
            category=ErrorCategory.STRUCTURAL,
            retryable=False,
            data=data if data is not None else {"reason": message},
            suggested_action=suggested_action or "Fix the request structure before resending",
        )


class SemanticValidationError(McpForgeError):
    """Well-formed request that names something the registry cannot satisfy."""

    def __init__(self, message: str, code: int = ErrorCode.INVALID_PARAMS, suggested_action: str | None = None):
        super().__init__(
            message,
            code=code,
            category=ErrorCategory.SEMANTIC,
            retryable=False,
            data=message,
            suggested_action=suggested_action,
        )


class MethodNotFoundError(SemanticValidationError):
    """Method is not present in the registry."""

    def __init__(self, method: str):
        super().__init__(
            f"method not found: {method}",
            code=ErrorCode.METHOD_NOT_FOUND,
            suggested_action="Call listMethods to discover the registered methods",
        )
        self.method = method


class InvalidParamsError(SemanticValidationError):
    """A required parameter is missing or the parameter bag is unusable."""

    def __init__(self, message: str, param: str | None = None):
        super().__init__(
            message,
            code=ErrorCode.INVALID_PARAMS,
            suggested_action="Verify parameter structure matches method requirements",
        )
        self.param = param


class RateLimitError(McpForgeError):
    """Per-method, per-client window is exhausted."""

    def __init__(self, method: str, *, current: int, limit: int, reset_time_ms: int, retry_after: int):
        super().__init__(
            f"Rate limit exceeded for {method}, retry after {retry_after}s",
            code=ErrorCode.RATE_LIMIT_EXCEEDED,
            category=ErrorCategory.RATE_LIMIT,
            retryable=True,
            data={
                "reason": "Rate limit exceeded",
                "retryAfter": retry_after,
                "limit": limit,
                "current": current,
                "remaining": 0,
                "resetTime": reset_time_ms,
            },
            suggested_action=f"Retry after {retry_after} seconds",
        )
        self.retry_after = retry_after


class ConcurrencyLimitError(McpForgeError):
    """Active request (or batch) ceiling reached."""

    def __init__(self, reason: str, *, active: int, max_concurrent: int, retry_after: int):
        super().__init__(
            reason,
            code=ErrorCode.SERVICE_UNAVAILABLE,
            category=ErrorCategory.CONCURRENCY,
            retryable=True,
            data={
                "reason": reason,
                "active": active,
                "maxConcurrent": max_concurrent,
                "retryAfter": retry_after,
            },
            suggested_action=f"Retry after {retry_after} seconds or raise the request priority",
        )
        self.retry_after = retry_after


class HandlerExecutionError(McpForgeError):
    """Failure raised by (or on behalf of) a method handler.

    Handlers raise this directly with ``retryable=False`` to signal that
    retrying cannot help; any other exception is wrapped as retryable.
    """

    def __init__(self, message: str, *, retryable: bool = True, data: Any = None):
        super().__init__(
            message,
            code=ErrorCode.INTERNAL_ERROR,
            category=ErrorCategory.HANDLER if retryable else ErrorCategory.FATAL,
            retryable=retryable,
            data=message if data is None else data,
            suggested_action=(
                "Retry the request; contact the operator if the error persists"
                if retryable
                else "Do not retry; inspect error data for the cause"
            ),
        )


_SENSITIVE_PATTERNS = [
    re.compile(r"(api[_-]?key|token|secret|password|auth)[=:]\s*['\"]?([^\s'\"]+)['\"]?", re.IGNORECASE),
    re.compile(r"bearer\s+[a-zA-Z0-9\-._~+/]+=*", re.IGNORECASE),
    re.compile(r"sk-[a-zA-Z0-9]{20,}"),
    re.compile(r"[a-zA-Z0-9]{32,}"),
]


def sanitize_error_message(message: str, replacement: str = "[REDACTED]") -> str:
    """Remove sensitive information from error messages."""
    sanitized = message
    for pattern in _SENSITIVE_PATTERNS:
        sanitized = pattern.sub(replacement, sanitized)
    return sanitized


def classify_exception(exc: BaseException) -> tuple[int, ErrorCategory, bool]:
    """
    Classify an exception and return (error_code, category, should_retry).

    Anything that is not an McpForgeError maps to a retryable INTERNAL_ERROR;
    the category only refines logging.
    """
    if isinstance(exc, McpForgeError):
        return exc.code, exc.category, exc.retryable

    if isinstance(exc, asyncio.TimeoutError):
        return ErrorCode.INTERNAL_ERROR, ErrorCategory.TIMEOUT, True

    if isinstance(exc, ConnectionError):
        return ErrorCode.INTERNAL_ERROR, ErrorCategory.RETRYABLE, True

    exc_str = str(exc).lower()
    if "timeout" in exc_str or "timed out" in exc_str:
        return ErrorCode.INTERNAL_ERROR, ErrorCategory.TIMEOUT, True

    return ErrorCode.INTERNAL_ERROR, ErrorCategory.HANDLER, True
