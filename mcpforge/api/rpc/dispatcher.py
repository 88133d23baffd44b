"""Dispatch a validated, admitted request to its registered handler."""

from __future__ import annotations

import inspect
import time
from dataclasses import dataclass
from typing import Any

from loguru import logger

from mcpforge.api.rpc.error_boundary import mcpforge_error_result, unhandled_exception_result
from mcpforge.api.rpc.registry import MethodRegistry, RequestContext
from mcpforge.services.cache import ResultCache
from mcpforge.services.performance import PerformanceTracker
from mcpforge.utils.exceptions import InvalidParamsError, McpForgeError, MethodNotFoundError


@dataclass(slots=True)
class DispatchOutcome:
    """Either a result or an error payload, plus whether the cache answered."""

    ok: bool
    result: Any = None
    error: dict[str, Any] | None = None
    cache_hit: bool = False


class Dispatcher:
    """Registry lookup, required-param check, cache, handler call, bookkeeping."""

    def __init__(
        self,
        registry: MethodRegistry,
        performance: PerformanceTracker,
        cache: ResultCache | None = None,
    ):
        self.registry = registry
        self.performance = performance
        self.cache = cache

    async def dispatch(self, method: str, params: dict[str, Any] | None, context: RequestContext) -> DispatchOutcome:
        params = params or {}
        descriptor = self.registry.get(method)
        if descriptor is None:
            err = MethodNotFoundError(method)
            return DispatchOutcome(ok=False, error=mcpforge_error_result(method=method, exc=err, log_warning=logger.warning))

        started = time.perf_counter()
        missing = next((name for name in descriptor.required_params if name not in params), None)
        if missing is not None:
            self.performance.record(method, (time.perf_counter() - started) * 1000, success=False)
            err = InvalidParamsError(f"missing required parameter: {missing}", param=missing)
            return DispatchOutcome(ok=False, error=mcpforge_error_result(method=method, exc=err, log_warning=logger.warning))

        use_cache = descriptor.cacheable and self.cache is not None
        if use_cache:
            hit, cached = self.cache.lookup(method, params)
            if hit:
                self.performance.record_cache_hit(method)
                logger.debug("Cache hit for {} request_id={}", method, context.request_id)
                return DispatchOutcome(ok=True, result=cached, cache_hit=True)

        try:
            outcome = descriptor.handler(params, context)
            result = await outcome if inspect.isawaitable(outcome) else outcome
        except McpForgeError as e:
            self.performance.record(method, (time.perf_counter() - started) * 1000, success=False)
            return DispatchOutcome(ok=False, error=mcpforge_error_result(method=method, exc=e, log_warning=logger.warning))
        except Exception as e:
            self.performance.record(method, (time.perf_counter() - started) * 1000, success=False)
            return DispatchOutcome(ok=False, error=unhandled_exception_result(method=method, exc=e, log_exception=logger.exception))

        duration_ms = (time.perf_counter() - started) * 1000
        if use_cache:
            self.cache.put(method, params, result)
        self.performance.record(method, duration_ms, success=True)
        logger.debug("Dispatched {} in {:.2f}ms request_id={}", method, duration_ms, context.request_id)
        return DispatchOutcome(ok=True, result=result)
