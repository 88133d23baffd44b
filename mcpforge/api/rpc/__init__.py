"""JSON-RPC request engine: validation, registry, dispatch and batching."""
