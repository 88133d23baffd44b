"""mcpforge - validating, rate-limited JSON-RPC request engine for MCP services."""

__version__ = "0.1.0"
__logo__ = "⚒"
