"""HTTP helpers for CLI commands talking to a running server."""

from __future__ import annotations

import uuid
from typing import Any

import httpx

from mcpforge.config.schema import Config


def get_server_base_url(config: Config) -> str:
    """Build the server base URL from config."""
    host = config.server.host
    if host in {"0.0.0.0", "::"}:
        host = "127.0.0.1"
    return f"http://{host}:{config.server.port}"


def build_request(
    method: str,
    params: dict[str, Any] | None = None,
    *,
    jsonrpc: str = "2.0",
    priority: str | None = None,
) -> dict[str, Any]:
    req: dict[str, Any] = {"jsonrpc": jsonrpc, "id": f"cli_{uuid.uuid4().hex[:12]}", "method": method}
    if params:
        req["params"] = params
    meta: dict[str, Any] = {"source": "mcpforge-cli"}
    if priority:
        meta["priority"] = priority
    req["metadata"] = meta
    return req


def http_json(
    method: str,
    url: str,
    payload: Any = None,
    *,
    timeout: float = 10.0,
    client_id: str | None = None,
) -> tuple[int, Any]:
    """Send an HTTP request and return (status, parsed JSON body)."""
    headers = {"Accept": "application/json"}
    if client_id:
        headers["X-Client-Id"] = client_id
    try:
        response = httpx.request(method.upper(), url, json=payload, headers=headers, timeout=timeout)
    except httpx.HTTPError as exc:
        raise RuntimeError(f"Server unavailable: {exc}") from exc
    try:
        body = response.json() if response.content else {}
    except ValueError:
        body = response.text
    return response.status_code, body
