"""Wire-level protocol types and envelope builders."""

from mcpforge.protocol.types import (
    JSONRPC_VERSION,
    ErrorCode,
    Priority,
    parse_priority,
)

__all__ = ["JSONRPC_VERSION", "ErrorCode", "Priority", "parse_priority"]
