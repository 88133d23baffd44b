import asyncio

import pytest

from mcpforge.api.rpc.dispatcher import Dispatcher
from mcpforge.api.rpc.registry import MethodDescriptor, MethodRegistry, RequestContext
from mcpforge.protocol.types import Priority
from mcpforge.services.cache import ResultCache
from mcpforge.services.performance import PerformanceTracker
from mcpforge.utils.exceptions import HandlerExecutionError


def _ctx(method="echo"):
    return RequestContext(request_id="req_1", method=method, client_id="c1", priority=Priority.NORMAL)


def _dispatcher(*descriptors, cache=True):
    registry = MethodRegistry()
    for d in descriptors:
        registry.register(d)
    return Dispatcher(registry, PerformanceTracker(), ResultCache() if cache else None)


@pytest.mark.asyncio
async def test_unknown_method_is_not_recorded():
    d = _dispatcher()
    out = await d.dispatch("nope", {}, _ctx("nope"))
    assert out.ok is False
    assert out.error["code"] == -32601
    assert d.performance.all_stats() == {}


@pytest.mark.asyncio
async def test_missing_required_param_is_recorded_as_failure():
    d = _dispatcher(MethodDescriptor("greet", lambda p, c: p["name"], required_params=("name",)))
    out = await d.dispatch("greet", {}, _ctx("greet"))
    assert out.error["code"] == -32602
    assert out.error["data"] == "missing required parameter: name"
    assert d.performance.get_stats("greet")["failureCount"] == 1


@pytest.mark.asyncio
async def test_sync_and_async_handlers():
    async def _slow(params, ctx):
        await asyncio.sleep(0)
        return {"slept": True, "request": ctx.request_id}

    d = _dispatcher(
        MethodDescriptor("echo", lambda p, c: p),
        MethodDescriptor("slow", _slow),
    )
    assert (await d.dispatch("echo", {"a": 1}, _ctx())).result == {"a": 1}
    assert (await d.dispatch("slow", None, _ctx("slow"))).result == {"slept": True, "request": "req_1"}


@pytest.mark.asyncio
async def test_cacheable_method_hits_cache_on_second_call():
    calls = []

    def _echo(params, _ctx):
        calls.append(params)
        return {"echo": params}

    d = _dispatcher(MethodDescriptor("echo", _echo, cacheable=True))
    first = await d.dispatch("echo", {"x": 1}, _ctx())
    second = await d.dispatch("echo", {"x": 1}, _ctx())
    assert first.cache_hit is False
    assert second.cache_hit is True
    assert second.result == first.result
    assert len(calls) == 1
    stats = d.performance.get_stats("echo")
    assert stats["totalRequests"] == 2
    assert stats["cacheHits"] == 1


@pytest.mark.asyncio
async def test_non_cacheable_method_always_runs():
    calls = []
    d = _dispatcher(MethodDescriptor("tick", lambda p, c: calls.append(1) or len(calls)))
    await d.dispatch("tick", {}, _ctx("tick"))
    out = await d.dispatch("tick", {}, _ctx("tick"))
    assert out.result == 2
    assert len(d.cache) == 0


@pytest.mark.asyncio
async def test_handler_exceptions_map_to_internal_error():
    def _boom(_p, _c):
        raise ValueError("disk on fire")

    def _fatal(_p, _c):
        raise HandlerExecutionError("unsupported input", retryable=False)

    d = _dispatcher(MethodDescriptor("boom", _boom, cacheable=True), MethodDescriptor("fatal", _fatal))
    out = await d.dispatch("boom", {}, _ctx("boom"))
    assert out.error["code"] == -32603
    assert out.error["message"] == "Internal error"
    assert out.error["retryable"] is True
    assert len(d.cache) == 0

    out = await d.dispatch("fatal", {}, _ctx("fatal"))
    assert out.error["retryable"] is False
    assert d.performance.get_stats("boom")["failureCount"] == 1


def test_registry_rejects_duplicates_and_normalizes():
    registry = MethodRegistry()

    @registry.method("hello", required=["name"], rate_limit_class="high")
    def _hello(params, ctx):
        """Say hello."""
        return f"hello {params['name']}"

    desc = registry.get("hello")
    assert desc.required_params == ("name",)
    assert desc.rate_limit_class is Priority.HIGH
    assert desc.to_dict()["description"] == "Say hello."
    assert "hello" in registry and len(registry) == 1
    with pytest.raises(ValueError):
        registry.register(MethodDescriptor("hello", _hello))
    with pytest.raises(ValueError):
        MethodDescriptor("", _hello)
