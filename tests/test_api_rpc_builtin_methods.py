import pytest

from mcpforge.api.rpc.builtin_methods import BUILTIN_METHODS
from mcpforge.api.rpc.service import McpService


async def _call(service, method, params=None, req_id="1"):
    req = {"jsonrpc": "2.0", "id": req_id, "method": method}
    if params is not None:
        req["params"] = params
    return await service.process_request(req, client_id="ops")


def _service():
    service = McpService()

    @service.method("square", cacheable=True, required=("n",))
    def _square(params, _ctx):
        return params["n"] ** 2

    return service


def test_builtins_are_registered_and_not_cacheable():
    service = McpService()
    assert set(BUILTIN_METHODS) <= set(service.registry.names())
    assert not any(service.registry.get(m).cacheable for m in BUILTIN_METHODS)


@pytest.mark.asyncio
async def test_health_check_reports_probes():
    service = _service()
    service.add_health_probe("db", lambda: True)

    async def _queue():
        return False

    resp = await _call(service, "healthCheck")
    assert resp["result"]["status"] == "healthy"
    assert resp["result"]["services"]["db"] == "healthy"
    assert "details" not in resp["result"]

    service.add_health_probe("queue", _queue)
    resp = await _call(service, "healthCheck", {"detailed": True}, req_id="2")
    result = resp["result"]
    assert result["status"] == "degraded"
    assert result["services"]["queue"] == "unhealthy"
    assert result["details"]["methodHandlers"] == len(service.registry)
    assert result["details"]["activeRequests"] == 1


@pytest.mark.asyncio
async def test_raising_probe_counts_as_unhealthy():
    service = _service()

    def _broken():
        raise ConnectionError("unreachable")

    service.add_health_probe("upstream", _broken)
    report = await service.health()
    assert report["status"] == "degraded"
    assert report["services"]["upstream"] == "unhealthy"


@pytest.mark.asyncio
async def test_performance_stats_for_one_and_all_methods():
    service = _service()
    await _call(service, "square", {"n": 3})
    await _call(service, "square", {"n": 3}, req_id="2")
    one = (await _call(service, "getPerformanceStats", {"method": "square"}))["result"]
    assert one["method"] == "square"
    assert one["totalRequests"] == 2
    assert one["cacheHits"] == 1
    everything = (await _call(service, "getPerformanceStats"))["result"]
    assert "square" in everything["methods"]
    assert everything["totals"]["totalRequests"] >= 2


@pytest.mark.asyncio
async def test_clear_cache_variants():
    service = _service()
    for n in (1, 2, 3):
        await _call(service, "square", {"n": n}, req_id=str(n))
    by_method = (await _call(service, "clearCache", {"method": "square"}))["result"]
    assert by_method["cleared"] == 3
    assert by_method["method"] == "square"

    await _call(service, "square", {"n": 1})
    everything = (await _call(service, "clearCache"))["result"]
    assert everything == {"cleared": 1, "message": "Cleared all cache entries"}

    await _call(service, "square", {"n": 7})
    by_pattern = (await _call(service, "clearCache", {"pattern": "square:*"}))["result"]
    assert by_pattern["cleared"] == 1


@pytest.mark.asyncio
async def test_batch_stats_and_list_methods():
    service = _service()
    stats = (await _call(service, "getBatchStats"))["result"]
    assert stats["activeBatches"] == 0
    assert stats["maxCacheSize"] == 1000
    listing = (await _call(service, "listMethods"))["result"]
    square = next(m for m in listing["methods"] if m["method"] == "square")
    assert square == {
        "method": "square",
        "description": "",
        "requiredParams": ["n"],
        "optionalParams": [],
        "cacheable": True,
        "rateLimitClass": "normal",
    }


@pytest.mark.asyncio
async def test_version_methods():
    service = _service()
    info = (await _call(service, "getVersionInfo"))["result"]
    assert info["currentVersion"] == "2.0.0"
    compat = (await _call(service, "checkCompatibility", {"version": "2.0.0", "features": ["caching"]}))["result"]
    assert compat["featureCompatibility"] == {"caching": True}
    missing = await _call(service, "checkCompatibility", {})
    assert missing["error"]["code"] == -32602
    wrong = await _call(service, "checkCompatibility", {"version": 2})
    assert wrong["error"]["code"] == -32602
