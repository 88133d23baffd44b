"""Protocol constants: error codes and request priority classes."""

from __future__ import annotations

from enum import Enum, IntEnum
from typing import Any

JSONRPC_VERSION = "2.0"
BATCH_ID = "batch"


class ErrorCode(IntEnum):
    """JSON-RPC 2.0 error codes plus the service-specific -32000 range."""

    PARSE_ERROR = -32700
    INVALID_REQUEST = -32600
    METHOD_NOT_FOUND = -32601
    INVALID_PARAMS = -32602
    INTERNAL_ERROR = -32603

    RATE_LIMIT_EXCEEDED = -32000
    SERVICE_UNAVAILABLE = -32001


ERROR_MESSAGES: dict[int, str] = {
    ErrorCode.PARSE_ERROR: "Parse error",
    ErrorCode.INVALID_REQUEST: "Invalid Request",
    ErrorCode.METHOD_NOT_FOUND: "Method not found",
    ErrorCode.INVALID_PARAMS: "Invalid params",
    ErrorCode.INTERNAL_ERROR: "Internal error",
    ErrorCode.RATE_LIMIT_EXCEEDED: "Rate limit exceeded",
    ErrorCode.SERVICE_UNAVAILABLE: "Service temporarily unavailable",
}


class Priority(Enum):
    """Request priority class with an explicit total order (low < normal < high < critical)."""

    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return _PRIORITY_RANK[self]

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Priority):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other: object) -> bool:
        if not isinstance(other, Priority):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, Priority):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, Priority):
            return NotImplemented
        return self.rank >= other.rank


_PRIORITY_RANK: dict[Priority, int] = {
    Priority.LOW: 1,
    Priority.NORMAL: 2,
    Priority.HIGH: 3,
    Priority.CRITICAL: 4,
}

PRIORITY_VALUES: tuple[str, ...] = tuple(p.value for p in Priority)


def parse_priority(raw: Any, default: Priority | None = Priority.NORMAL) -> Priority | None:
    """Return the Priority named by raw, or default when raw is absent or unknown."""
    if isinstance(raw, Priority):
        return raw
    if isinstance(raw, str):
        try:
            return Priority(raw)
        except ValueError:
            return default
    return default
