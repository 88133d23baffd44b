"""Utility functions for mcpforge."""

from mcpforge.utils.exceptions import (
    McpForgeError,
    StructuralValidationError,
    SemanticValidationError,
    MethodNotFoundError,
    InvalidParamsError,
    RateLimitError,
    ConcurrencyLimitError,
    HandlerExecutionError,
    ErrorCategory,
    classify_exception,
    sanitize_error_message,
)
from mcpforge.utils.helpers import canonical_json, now_iso

__all__ = [
    "McpForgeError",
    "StructuralValidationError",
    "SemanticValidationError",
    "MethodNotFoundError",
    "InvalidParamsError",
    "RateLimitError",
    "ConcurrencyLimitError",
    "HandlerExecutionError",
    "ErrorCategory",
    "classify_exception",
    "sanitize_error_message",
    "canonical_json",
    "now_iso",
]
