"""Load method handler providers from "module.path:attribute" references.

A provider attribute may be:
- a MethodDescriptor,
- a mapping with ``method`` and ``handler`` keys (camelCase or snake_case),
- an iterable of either,
- or a callable taking no arguments that returns any of the above.
"""

from __future__ import annotations

import importlib
from collections.abc import Iterable, Mapping
from typing import Any

from loguru import logger

from mcpforge.api.rpc.registry import MethodDescriptor, MethodRegistry


def _pick(data: Mapping[str, Any], *names: str, default: Any = None) -> Any:
    for name in names:
        if name in data:
            return data[name]
    return default


def descriptor_from_mapping(data: Mapping[str, Any]) -> MethodDescriptor:
    handler = data.get("handler")
    if not callable(handler):
        raise ValueError(f"provider entry for {data.get('method')!r} has no callable handler")
    return MethodDescriptor(
        method=data.get("method", ""),
        handler=handler,
        description=str(data.get("description") or ""),
        required_params=tuple(_pick(data, "requiredParams", "required_params", default=())),
        optional_params=tuple(_pick(data, "optionalParams", "optional_params", default=())),
        cacheable=bool(data.get("cacheable", False)),
        rate_limit_class=_pick(data, "rateLimitClass", "rate_limit_class", default="normal"),
    )


def _coerce(item: Any) -> MethodDescriptor:
    if isinstance(item, MethodDescriptor):
        return item
    if isinstance(item, Mapping):
        return descriptor_from_mapping(item)
    raise ValueError(f"unsupported provider entry: {type(item).__name__}")


def resolve_provider(reference: str) -> Any:
    """Import ``module:attr`` and return the attribute."""
    module_name, sep, attr = reference.partition(":")
    if not sep or not module_name or not attr:
        raise ValueError(f"provider reference must look like 'package.module:attribute', got {reference!r}")
    module = importlib.import_module(module_name)
    try:
        return getattr(module, attr)
    except AttributeError as e:
        raise ValueError(f"provider {reference!r}: module has no attribute {attr!r}") from e


def descriptors_from_provider(provider: Any) -> list[MethodDescriptor]:
    if callable(provider) and not isinstance(provider, MethodDescriptor):
        provider = provider()
    if isinstance(provider, (MethodDescriptor, Mapping)):
        return [_coerce(provider)]
    if isinstance(provider, Iterable) and not isinstance(provider, (str, bytes)):
        return [_coerce(item) for item in provider]
    raise ValueError(f"unsupported provider value: {type(provider).__name__}")


def load_providers(registry: MethodRegistry, references: Iterable[str]) -> int:
    """Register every method exposed by the referenced providers. Returns the count."""
    count = 0
    for reference in references:
        descriptors = descriptors_from_provider(resolve_provider(reference))
        for descriptor in descriptors:
            registry.register(descriptor)
        count += len(descriptors)
        logger.info("Loaded {} method(s) from provider {}", len(descriptors), reference)
    return count
