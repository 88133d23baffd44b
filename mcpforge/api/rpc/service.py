"""McpService: owns the process-wide request-processing state and runs the pipeline."""

from __future__ import annotations

import inspect
import time
import uuid
from typing import Any, Awaitable, Callable

from loguru import logger

from mcpforge import __version__
from mcpforge.api.rpc.batch import BatchCoordinator
from mcpforge.api.rpc.builtin_methods import register_builtin_methods
from mcpforge.api.rpc.dispatch_pipeline import run_handler_pipeline
from mcpforge.api.rpc.dispatcher import Dispatcher
from mcpforge.api.rpc.providers import load_providers
from mcpforge.api.rpc.registry import MethodDescriptor, MethodRegistry, RequestContext
from mcpforge.api.rpc.request_guard import (
    RequestGuardState,
    guard_admission,
    guard_rate_limit,
    guard_validation,
)
from mcpforge.api.rpc.validation import RequestValidator, ValidationSettings
from mcpforge.config.schema import Config
from mcpforge.gateway.concurrency import ConcurrencyGovernor
from mcpforge.gateway.rate_limit import RateLimiter
from mcpforge.protocol.envelope import build_metadata, error_response, success_response
from mcpforge.protocol.types import BATCH_ID, ERROR_MESSAGES, PRIORITY_VALUES, Priority, parse_priority
from mcpforge.services.cache import ResultCache
from mcpforge.services.performance import PerformanceTracker
from mcpforge.utils.exceptions import McpForgeError
from mcpforge.utils.helpers import now_iso

HealthProbe = Callable[[], Awaitable[bool] | bool]


class McpService:
    """Validation, rate limiting, admission, dispatch and batching for one process.

    All state lives on the instance and is touched only from the event loop
    thread; a handler that awaits lets other requests interleave but never
    exposes a half-updated counter.
    """

    def __init__(
        self,
        config: Config | None = None,
        *,
        clock: Callable[[], float] = time.time,
        register_builtins: bool = True,
    ):
        self.config = config or Config()
        limits = self.config.limits
        self._clock = clock
        self.started_at = clock()
        self.ready = False

        self.registry = MethodRegistry()
        self.performance = PerformanceTracker()
        self.cache = ResultCache(
            max_entries=self.config.cache.max_entries,
            ttl_seconds=self.config.cache.ttl_seconds,
            clock=clock,
        )
        self.rate_limiter = RateLimiter(
            window_seconds=limits.window_seconds,
            priority_limits={
                Priority(name): value for name, value in limits.priority_limits.items() if name in PRIORITY_VALUES
            },
            clock=clock,
        )
        self.governor = ConcurrencyGovernor(
            max_concurrent_requests=limits.max_concurrent_requests,
            max_concurrent_batches=limits.max_concurrent_batches,
        )
        self.validator = RequestValidator(
            ValidationSettings(
                known_methods=self.registry.names,
                jsonrpc=self.config.protocol.jsonrpc,
                max_retry_count=limits.max_retry_count,
                retry_warning_threshold=limits.retry_warning_threshold,
            )
        )
        self.dispatcher = Dispatcher(
            self.registry,
            self.performance,
            self.cache if self.config.cache.enabled else None,
        )
        self.batches = BatchCoordinator(
            validator=self.validator,
            governor=self.governor,
            resolve_priority=self.resolve_priority,
            run_item=self._run_batch_item,
            reject=self._reject_batch,
            max_batch_size=limits.max_batch_size,
            retry_after=limits.concurrency_retry_after_seconds,
        )
        self._health_probes: dict[str, HealthProbe] = {}
        if register_builtins:
            register_builtin_methods(self)

    @classmethod
    def from_config(cls, config: Config) -> McpService:
        """Build a service and register the configured providers."""
        service = cls(config)
        load_providers(service.registry, config.providers)
        return service

    # -- registration -----------------------------------------------------

    def register_method(self, descriptor: MethodDescriptor) -> None:
        self.registry.register(descriptor)

    def method(self, name: str, **kwargs: Any) -> Callable:
        return self.registry.method(name, **kwargs)

    def add_health_probe(self, name: str, probe: HealthProbe) -> None:
        self._health_probes[name] = probe

    async def start(self) -> None:
        self.ready = True
        logger.info(
            "MCP service ready: {} methods, version {}",
            len(self.registry),
            self.config.protocol.service_version,
        )

    async def stop(self) -> None:
        self.ready = False
        logger.info("MCP service stopped")

    def sweep(self) -> dict[str, int]:
        """Drop expired rate-limit windows and expired cache entries."""
        swept = {"rateLimitWindows": self.rate_limiter.prune(), "cacheEntries": self.cache.purge_expired()}
        if any(swept.values()):
            logger.debug("Swept expired state: {}", swept)
        return swept

    # -- request processing -----------------------------------------------

    def resolve_priority(self, req: Any) -> Priority:
        """Explicit metadata priority, else the method's rate-limit class, else normal."""
        if not isinstance(req, dict):
            return Priority.NORMAL
        meta = req.get("metadata")
        if isinstance(meta, dict):
            explicit = parse_priority(meta.get("priority"), default=None)
            if explicit is not None:
                return explicit
        method = req.get("method")
        descriptor = self.registry.get(method) if isinstance(method, str) else None
        return descriptor.rate_limit_class if descriptor else Priority.NORMAL

    def _metadata(self, state: RequestGuardState, *, cache_hit: bool | None = None) -> dict[str, Any]:
        extra: dict[str, Any] = {"requestId": state.request_id}
        if state.rate_limit is not None:
            extra["rateLimit"] = state.rate_limit.to_dict()
        if state.warnings:
            extra["warnings"] = list(state.warnings)
        return build_metadata(
            started=state.started,
            version=self.config.protocol.service_version,
            cache_hit=cache_hit,
            batch_index=state.batch_index,
            extra=extra,
        )

    def _reject(self, state: RequestGuardState, exc: McpForgeError) -> dict[str, Any]:
        return error_response(
            state.correlation_id,
            exc.to_error(),
            self._metadata(state),
            jsonrpc=self.config.protocol.jsonrpc,
        )

    def _reject_batch(self, exc: McpForgeError, started: float) -> dict[str, Any]:
        return error_response(
            BATCH_ID,
            exc.to_error(),
            build_metadata(started=started, version=self.config.protocol.service_version),
            jsonrpc=self.config.protocol.jsonrpc,
        )

    async def _dispatch(self, state: RequestGuardState) -> dict[str, Any]:
        context = RequestContext(
            request_id=state.request_id,
            method=state.method,
            client_id=state.client_id,
            priority=state.priority,
            correlation_id=state.correlation_id,
            metadata=state.metadata,
            batch_index=state.batch_index,
        )
        outcome = await self.dispatcher.dispatch(state.method, state.params, context)
        metadata = self._metadata(state, cache_hit=outcome.cache_hit)
        jsonrpc = self.config.protocol.jsonrpc
        if outcome.ok:
            return success_response(state.correlation_id, outcome.result, metadata, jsonrpc=jsonrpc)
        return error_response(state.correlation_id, outcome.error or {}, metadata, jsonrpc=jsonrpc)

    async def _run(self, req: Any, client_id: str, batch_index: int | None = None) -> dict[str, Any]:
        state = RequestGuardState(
            req=req,
            request_id=f"req_{uuid.uuid4().hex[:12]}",
            client_id=client_id,
            started=time.perf_counter(),
            batch_index=batch_index,
        )

        def reject(exc: McpForgeError) -> dict[str, Any]:
            return self._reject(state, exc)

        try:
            response = await run_handler_pipeline(
                (
                    lambda: guard_validation(
                        state,
                        validator=self.validator,
                        resolve_priority=self.resolve_priority,
                        reject=reject,
                    ),
                    lambda: guard_rate_limit(state, rate_limiter=self.rate_limiter, now=self._clock, reject=reject),
                    lambda: guard_admission(
                        state,
                        governor=self.governor,
                        retry_after=self.config.limits.concurrency_retry_after_seconds,
                        reject=reject,
                    ),
                    lambda: self._dispatch(state),
                )
            )
        finally:
            if state.admitted:
                self.governor.release(state.request_id)
        return response or self._reject(state, McpForgeError("request produced no response"))

    async def _run_batch_item(self, req: dict[str, Any], batch_index: int, client_id: str) -> dict[str, Any]:
        return await self._run(req, client_id, batch_index)

    async def process_request(self, req: Any, client_id: str | None = None) -> dict[str, Any]:
        """Run one request through validation, rate limit, admission and dispatch."""
        return await self._run(req, client_id or "unknown")

    async def process_batch(self, requests: Any, client_id: str | None = None) -> list[dict[str, Any]] | dict[str, Any]:
        return await self.batches.process(requests, client_id or "unknown")

    async def process_payload(self, payload: Any, client_id: str | None = None) -> list[dict[str, Any]] | dict[str, Any]:
        """Arrays are batches; anything else is a single request."""
        if isinstance(payload, list):
            return await self.process_batch(payload, client_id)
        return await self.process_request(payload, client_id)

    # -- introspection ----------------------------------------------------

    async def _probe(self, name: str, probe: HealthProbe) -> bool:
        try:
            outcome = probe()
            healthy = await outcome if inspect.isawaitable(outcome) else outcome
        except Exception as e:
            logger.warning("Health probe {} failed: {}", name, e)
            return False
        return bool(healthy)

    async def health(self, *, detailed: bool = False) -> dict[str, Any]:
        services: dict[str, Any] = {}
        all_healthy = True
        for name, probe in self._health_probes.items():
            healthy = await self._probe(name, probe)
            all_healthy = all_healthy and healthy
            services[name] = "healthy" if healthy else "unhealthy"
        services["cache"] = self.cache.stats()
        services["performance"] = self.performance.totals()

        report: dict[str, Any] = {
            "status": "healthy" if all_healthy else "degraded",
            "timestamp": now_iso(),
            "version": self.config.protocol.service_version,
            "uptimeSeconds": round(self._clock() - self.started_at, 3),
            "services": services,
        }
        if detailed:
            report["details"] = {
                "methodHandlers": len(self.registry),
                "cacheSize": len(self.cache),
                "activeRequests": self.governor.active_requests,
                "activeBatches": self.governor.active_batches,
                "performanceMetrics": self.performance.all_stats(),
            }
        return report

    def batch_stats(self) -> dict[str, Any]:
        return {
            "activeBatches": self.governor.active_batches,
            "maxConcurrentBatches": self.governor.max_concurrent_batches,
            "maxBatchSize": self.batches.max_batch_size,
            "activeRequests": self.governor.active_requests,
            "maxConcurrentRequests": self.governor.max_concurrent_requests,
            "cacheSize": len(self.cache),
            "maxCacheSize": self.cache.max_entries,
            **self.batches.stats.to_dict(),
        }

    def protocol_info(self) -> dict[str, Any]:
        protocol = self.config.protocol
        return {
            "jsonrpc": protocol.jsonrpc,
            "name": protocol.server_name,
            "description": protocol.description,
            "version": protocol.service_version,
            "serverVersion": __version__,
            "batchSupport": True,
            "maxBatchSize": self.batches.max_batch_size,
            "priorities": list(PRIORITY_VALUES),
            "errorCodes": {str(int(code)): message for code, message in ERROR_MESSAGES.items()},
        }

    def capabilities(self) -> dict[str, Any]:
        limits = self.config.limits
        return {
            "methods": [d.to_dict() for d in self.registry.descriptors()],
            "features": {
                "batching": True,
                "caching": self.config.cache.enabled,
                "priorities": True,
                "rateLimiting": True,
                "versionNegotiation": True,
            },
            "limits": {
                "windowSeconds": limits.window_seconds,
                "priorityLimits": dict(limits.priority_limits),
                "maxConcurrentRequests": limits.max_concurrent_requests,
                "maxConcurrentBatches": limits.max_concurrent_batches,
                "maxBatchSize": limits.max_batch_size,
                "maxRetryCount": limits.max_retry_count,
            },
        }
