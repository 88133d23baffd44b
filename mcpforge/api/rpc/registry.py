"""Method registry: name -> handler plus declared metadata."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable

from loguru import logger

from mcpforge.protocol.types import Priority, parse_priority

# handler(params, context) -> result, sync or async
MethodHandler = Callable[[dict[str, Any], "RequestContext"], Awaitable[Any] | Any]


@dataclass(slots=True)
class RequestContext:
    """Request-scoped values handed to handlers alongside the params."""

    request_id: str
    method: str
    client_id: str
    priority: Priority
    correlation_id: Any = None
    metadata: dict[str, Any] = field(default_factory=dict)
    batch_index: int | None = None


@dataclass(slots=True)
class MethodDescriptor:
    method: str
    handler: MethodHandler
    description: str = ""
    required_params: tuple[str, ...] = ()
    optional_params: tuple[str, ...] = ()
    cacheable: bool = False
    rate_limit_class: Priority = Priority.NORMAL

    def __post_init__(self) -> None:
        if not isinstance(self.method, str) or not self.method:
            raise ValueError("method name must be a non-empty string")
        self.required_params = tuple(self.required_params)
        self.optional_params = tuple(self.optional_params)
        self.rate_limit_class = parse_priority(self.rate_limit_class) or Priority.NORMAL

    def to_dict(self) -> dict[str, Any]:
        return {
            "method": self.method,
            "description": self.description,
            "requiredParams": list(self.required_params),
            "optionalParams": list(self.optional_params),
            "cacheable": self.cacheable,
            "rateLimitClass": self.rate_limit_class.value,
        }


class MethodRegistry:
    """Append-only registry; a name can be registered once."""

    def __init__(self) -> None:
        self._methods: dict[str, MethodDescriptor] = {}

    def register(self, descriptor: MethodDescriptor) -> None:
        if descriptor.method in self._methods:
            raise ValueError(f"method already registered: {descriptor.method}")
        self._methods[descriptor.method] = descriptor
        logger.info(
            "Registered MCP method {} (cacheable={}, class={})",
            descriptor.method,
            descriptor.cacheable,
            descriptor.rate_limit_class.value,
        )

    def method(
        self,
        name: str,
        *,
        description: str = "",
        required: tuple[str, ...] | list[str] = (),
        optional: tuple[str, ...] | list[str] = (),
        cacheable: bool = False,
        rate_limit_class: Priority | str = Priority.NORMAL,
    ) -> Callable[[MethodHandler], MethodHandler]:
        """Decorator form of register()."""

        def decorator(fn: MethodHandler) -> MethodHandler:
            self.register(
                MethodDescriptor(
                    method=name,
                    handler=fn,
                    description=description or (fn.__doc__ or "").strip().split("\n")[0],
                    required_params=tuple(required),
                    optional_params=tuple(optional),
                    cacheable=cacheable,
                    rate_limit_class=rate_limit_class,
                )
            )
            return fn

        return decorator

    def get(self, method: str) -> MethodDescriptor | None:
        return self._methods.get(method)

    def __contains__(self, method: object) -> bool:
        return method in self._methods

    def __len__(self) -> int:
        return len(self._methods)

    def names(self) -> list[str]:
        return list(self._methods)

    def descriptors(self) -> list[MethodDescriptor]:
        return list(self._methods.values())
