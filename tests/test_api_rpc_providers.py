import sys
import types

import pytest

from mcpforge.api.rpc.providers import descriptors_from_provider, load_providers, resolve_provider
from mcpforge.api.rpc.registry import MethodDescriptor, MethodRegistry


def _install(monkeypatch, **attrs):
    module = types.ModuleType("fake_mcp_provider")
    for name, value in attrs.items():
        setattr(module, name, value)
    monkeypatch.setitem(sys.modules, "fake_mcp_provider", module)


def _ping(_params, _ctx):
    return "pong"


def test_load_providers_from_callable_and_list(monkeypatch):
    def _methods():
        return [
            {"method": "ping", "handler": _ping, "rateLimitClass": "high", "cacheable": True},
            MethodDescriptor("pong", _ping, required_params=("x",)),
        ]

    _install(monkeypatch, methods=_methods, single={"method": "solo", "handler": _ping, "required_params": ["a"]})
    registry = MethodRegistry()
    assert load_providers(registry, ["fake_mcp_provider:methods", "fake_mcp_provider:single"]) == 3
    assert registry.get("ping").rate_limit_class.value == "high"
    assert registry.get("ping").cacheable is True
    assert registry.get("solo").required_params == ("a",)


def test_bad_references(monkeypatch):
    _install(monkeypatch)
    with pytest.raises(ValueError):
        resolve_provider("no_colon_here")
    with pytest.raises(ValueError):
        resolve_provider("fake_mcp_provider:missing")
    with pytest.raises(ModuleNotFoundError):
        resolve_provider("definitely_not_a_module_xyz:thing")


def test_bad_entries():
    with pytest.raises(ValueError):
        descriptors_from_provider([{"method": "x", "handler": "not callable"}])
    with pytest.raises(ValueError):
        descriptors_from_provider(42)
