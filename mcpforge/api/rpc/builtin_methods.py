"""Operator methods registered on every service: health, stats, cache control, versions."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from mcpforge.api.rpc.registry import RequestContext
from mcpforge.protocol.types import Priority
from mcpforge.services.versions import check_compatibility, get_version_info
from mcpforge.utils.exceptions import InvalidParamsError

if TYPE_CHECKING:
    from mcpforge.api.rpc.service import McpService


BUILTIN_METHODS = (
    "healthCheck",
    "getPerformanceStats",
    "clearCache",
    "getBatchStats",
    "listMethods",
    "getVersionInfo",
    "checkCompatibility",
    "batchProcess",
)


def _clear_cache(service: McpService, params: dict[str, Any]) -> dict[str, Any]:
    cache = service.cache
    if params.get("key"):
        key = str(params["key"])
        cleared = 1 if cache.evict(key) else 0
        return {"cleared": cleared, "key": key, "message": f"Cleared {cleared} cache entries for key {key}"}
    if params.get("pattern"):
        pattern = str(params["pattern"])
        cleared = cache.evict_pattern(pattern)
        return {"cleared": cleared, "pattern": pattern, "message": f"Cleared {cleared} cache entries matching {pattern}"}
    if params.get("method"):
        method = str(params["method"])
        cleared = cache.evict_method(method)
        return {"cleared": cleared, "method": method, "message": f"Cleared {cleared} cache entries for {method}"}
    cleared = cache.clear_all()
    return {"cleared": cleared, "message": "Cleared all cache entries"}


def register_builtin_methods(service: McpService) -> None:
    registry = service.registry

    @registry.method(
        "healthCheck",
        description="Service health with optional detail",
        optional=("detailed",),
        rate_limit_class=Priority.CRITICAL,
    )
    async def health_check(params: dict[str, Any], _ctx: RequestContext) -> dict[str, Any]:
        return await service.health(detailed=bool(params.get("detailed")))

    @registry.method(
        "getPerformanceStats",
        description="Per-method request counts, latency and success rate",
        optional=("method",),
        rate_limit_class=Priority.HIGH,
    )
    def get_performance_stats(params: dict[str, Any], _ctx: RequestContext) -> dict[str, Any]:
        method = params.get("method")
        if method:
            return service.performance.get_stats(str(method))
        return {"methods": service.performance.all_stats(), "totals": service.performance.totals()}

    @registry.method(
        "clearCache",
        description="Evict cached results by key, glob pattern, method, or all",
        optional=("method", "pattern", "key"),
        rate_limit_class=Priority.HIGH,
    )
    def clear_cache(params: dict[str, Any], _ctx: RequestContext) -> dict[str, Any]:
        return _clear_cache(service, params)

    @registry.method(
        "getBatchStats",
        description="Active batches, request concurrency and cache occupancy",
        rate_limit_class=Priority.HIGH,
    )
    def get_batch_stats(_params: dict[str, Any], _ctx: RequestContext) -> dict[str, Any]:
        return service.batch_stats()

    @registry.method(
        "listMethods",
        description="Registered methods and their declared parameters",
        rate_limit_class=Priority.HIGH,
    )
    def list_methods(_params: dict[str, Any], _ctx: RequestContext) -> dict[str, Any]:
        methods = [d.to_dict() for d in service.registry.descriptors()]
        return {"methods": methods, "count": len(methods)}

    @registry.method(
        "getVersionInfo",
        description="Supported protocol versions, compatibility and migration guides",
        optional=("version",),
        rate_limit_class=Priority.HIGH,
    )
    def version_info(params: dict[str, Any], _ctx: RequestContext) -> dict[str, Any]:
        version = params.get("version")
        if version is not None and not isinstance(version, str):
            raise InvalidParamsError("version must be a string", param="version")
        return get_version_info(version)

    @registry.method(
        "checkCompatibility",
        description="Compatibility of a client version and optional feature list",
        required=("version",),
        optional=("features",),
        rate_limit_class=Priority.HIGH,
    )
    def compatibility(params: dict[str, Any], _ctx: RequestContext) -> dict[str, Any]:
        version = params["version"]
        features = params.get("features")
        if not isinstance(version, str):
            raise InvalidParamsError("version must be a string", param="version")
        if features is not None and not (isinstance(features, list) and all(isinstance(f, str) for f in features)):
            raise InvalidParamsError("features must be a list of strings", param="features")
        return check_compatibility(version, features)

    @registry.method(
        "batchProcess",
        description="Run the given requests as one batch",
        required=("requests",),
        rate_limit_class=Priority.LOW,
    )
    async def batch_process(params: dict[str, Any], ctx: RequestContext) -> dict[str, Any]:
        responses = await service.batches.run(params["requests"], ctx.client_id)
        return {"responses": responses, "count": len(responses)}
