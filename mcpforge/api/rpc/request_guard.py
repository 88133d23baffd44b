"""Request guard stages: validation, rate limiting and concurrency admission.

Each stage returns None to let the request continue, or a finished error
envelope that short-circuits the pipeline before any handler runs.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable

from loguru import logger

from mcpforge.api.rpc.validation import RequestValidator
from mcpforge.gateway.concurrency import ConcurrencyGovernor
from mcpforge.gateway.rate_limit import RateLimitCheckResult, RateLimiter
from mcpforge.protocol.envelope import request_id_of
from mcpforge.protocol.types import Priority
from mcpforge.utils.exceptions import (
    ConcurrencyLimitError,
    McpForgeError,
    RateLimitError,
    StructuralValidationError,
)

Reject = Callable[[McpForgeError], dict[str, Any]]


@dataclass(slots=True)
class RequestGuardState:
    """Per-request values accumulated while the guard stages run."""

    req: Any
    request_id: str
    client_id: str
    started: float
    batch_index: int | None = None
    method: str = ""
    params: dict[str, Any] = field(default_factory=dict)
    metadata: dict[str, Any] = field(default_factory=dict)
    priority: Priority = Priority.NORMAL
    warnings: list[str] = field(default_factory=list)
    rate_limit: RateLimitCheckResult | None = None
    admitted: bool = False

    @property
    def correlation_id(self) -> Any:
        return request_id_of(self.req)


def guard_validation(
    state: RequestGuardState,
    *,
    validator: RequestValidator,
    resolve_priority: Callable[[dict[str, Any]], Priority],
    reject: Reject,
) -> dict[str, Any] | None:
    """Validate the envelope and unpack method/params/priority into state."""
    result = validator.validate(state.req)
    state.warnings = list(result.warnings)
    if not result.is_valid:
        logger.warning(
            "MCP request validation failed request_id={} errors={}",
            state.request_id,
            result.errors,
        )
        return reject(
            StructuralValidationError(
                "request failed validation",
                data={
                    "errors": result.errors,
                    "warnings": result.warnings,
                    "suggestions": result.suggestions,
                },
                suggested_action=result.suggestions[0] if result.suggestions else None,
            )
        )

    req = state.req
    state.method = req["method"]
    state.params = req.get("params") or {}
    state.metadata = req.get("metadata") or {}
    state.priority = resolve_priority(req)
    return None


def guard_rate_limit(
    state: RequestGuardState,
    *,
    rate_limiter: RateLimiter,
    now: Callable[[], float],
    reject: Reject,
) -> dict[str, Any] | None:
    """Consume one slot in the (method, client) window or reject with -32000."""
    check = rate_limiter.check_and_consume(state.method, state.client_id, state.priority)
    state.rate_limit = check
    if check.allowed:
        return None
    retry_after = check.retry_after_seconds(now())
    logger.warning(
        "Rate limit exceeded request_id={} method={} client={} current={} limit={}",
        state.request_id,
        state.method,
        state.client_id,
        check.current,
        check.limit,
    )
    return reject(
        RateLimitError(
            state.method,
            current=check.current,
            limit=check.limit,
            reset_time_ms=check.reset_time_ms,
            retry_after=retry_after,
        )
    )


def guard_admission(
    state: RequestGuardState,
    *,
    governor: ConcurrencyGovernor,
    retry_after: int,
    reject: Reject,
) -> dict[str, Any] | None:
    """Take a slot in the active request set or reject with -32001."""
    if governor.try_admit(state.request_id, state.priority, state.correlation_id):
        state.admitted = True
        return None
    logger.warning(
        "Concurrent request limit exceeded request_id={} method={} active={} max={}",
        state.request_id,
        state.method,
        governor.active_requests,
        governor.max_concurrent_requests,
    )
    return reject(
        ConcurrencyLimitError(
            "Concurrent request limit exceeded",
            active=governor.active_requests,
            max_concurrent=governor.max_concurrent_requests,
            retry_after=retry_after,
        )
    )
