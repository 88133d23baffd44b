import asyncio
import json

from mcpforge.utils.exceptions import (
    ConcurrencyLimitError,
    ErrorCategory,
    MethodNotFoundError,
    RateLimitError,
    StructuralValidationError,
    classify_exception,
    sanitize_error_message,
)


def test_error_payloads_use_generic_messages():
    err = RateLimitError("echo", current=10, limit=10, reset_time_ms=1_000, retry_after=7).to_error()
    assert err["code"] == -32000
    assert err["message"] == "Rate limit exceeded"
    assert err["retryable"] is True
    assert err["data"]["retryAfter"] == 7
    assert err["suggestedAction"] == "Retry after 7 seconds"

    err = ConcurrencyLimitError("Concurrent request limit exceeded", active=50, max_concurrent=50, retry_after=30).to_error()
    assert err["code"] == -32001
    assert err["data"]["maxConcurrent"] == 50

    err = StructuralValidationError("bad batch").to_error()
    assert err["data"] == {"reason": "bad batch"}
    assert err["retryable"] is False

    assert MethodNotFoundError("x").to_error()["code"] == -32601


def test_sanitize_error_message():
    msg = sanitize_error_message("failed: api_key=abc123 Bearer eyJhbGciOi.xyz sk-" + "a" * 24)
    assert "abc123" not in msg
    assert "eyJhbGciOi" not in msg
    assert "sk-aaaa" not in msg
    assert msg.startswith("failed:")


def test_classify_exception():
    assert classify_exception(asyncio.TimeoutError())[1] is ErrorCategory.TIMEOUT
    assert classify_exception(ConnectionError("x"))[2] is True
    code, category, retry = classify_exception(json.JSONDecodeError("x", "doc", 0))
    assert (code, category, retry) == (-32603, ErrorCategory.HANDLER, True)
    assert classify_exception(RuntimeError("request timed out"))[1] is ErrorCategory.TIMEOUT
    assert classify_exception(RuntimeError("boom"))[1] is ErrorCategory.HANDLER
