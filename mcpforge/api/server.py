"""FastAPI binding for the MCP request engine."""

from __future__ import annotations

import asyncio
import json
import time
from contextlib import asynccontextmanager, suppress
from typing import Any

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from mcpforge import __version__
from mcpforge.api.http.error_helpers import status_and_headers
from mcpforge.api.rpc.service import McpService
from mcpforge.config.access import get_config as get_cached_config
from mcpforge.config.schema import Config
from mcpforge.protocol.envelope import build_metadata, error_response, make_error
from mcpforge.protocol.types import BATCH_ID, PRIORITY_VALUES, ErrorCode
from mcpforge.utils.exceptions import sanitize_error_message


def client_identity(request: Request, config: Config) -> str:
    """X-Client-Id when trusted, else the peer host, else "unknown"."""
    if config.server.trust_client_id_header:
        header = (request.headers.get("x-client-id") or "").strip()
        if header:
            return header
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def _error_envelope(service: McpService, request_id: Any, error: dict[str, Any]) -> dict[str, Any]:
    return error_response(
        request_id,
        error,
        build_metadata(started=time.perf_counter(), version=service.config.protocol.service_version),
        jsonrpc=service.config.protocol.jsonrpc,
    )


def _respond(service: McpService, payload: Any) -> JSONResponse:
    status, headers = status_and_headers(payload)
    try:
        return JSONResponse(status_code=status, content=payload, headers=headers)
    except ValueError as e:
        # NaN and Infinity have no JSON encoding
        logger.warning("Response could not be encoded as JSON: {}", e)
        if isinstance(payload, list):
            request_id: Any = BATCH_ID
        else:
            request_id = payload.get("id") if isinstance(payload, dict) else None
        fallback = _error_envelope(
            service,
            request_id,
            make_error(
                ErrorCode.INTERNAL_ERROR,
                data=sanitize_error_message(str(e)),
                retryable=False,
                suggested_action="Handler results must be JSON-encodable (no NaN or Infinity)",
            ),
        )
        status, headers = status_and_headers(fallback)
        return JSONResponse(status_code=status, content=fallback, headers=headers)


def _parse_error(service: McpService, exc: Exception) -> JSONResponse:
    payload = _error_envelope(
        service,
        None,
        make_error(
            ErrorCode.PARSE_ERROR,
            data=sanitize_error_message(str(exc)),
            retryable=False,
            suggested_action="Send a valid JSON body",
        ),
    )
    return _respond(service, payload)


def _reject_constant(token: str) -> Any:
    raise ValueError(f"non-standard JSON token: {token}")


async def _read_json(request: Request) -> Any:
    body = await request.body()
    return json.loads(body.decode("utf-8") if body else "", parse_constant=_reject_constant)


def apply_priority_header(payload: Any, request: Request) -> Any:
    """Fill metadata.priority from X-Priority on every request object that does not set one."""
    header = (request.headers.get("x-priority") or "").strip().lower()
    if header not in PRIORITY_VALUES:
        return payload
    for item in payload if isinstance(payload, list) else [payload]:
        if not isinstance(item, dict):
            continue
        meta = item.get("metadata")
        if meta is None:
            item["metadata"] = {"priority": header}
        elif isinstance(meta, dict):
            meta.setdefault("priority", header)
    return payload


def create_app(service: McpService | None = None, config: Config | None = None) -> FastAPI:
    """Create the FastAPI application around a service (built from config when omitted)."""
    if service is None:
        config = config or get_cached_config()
        service = McpService.from_config(config)
    config = service.config

    async def _sweep_loop(interval: float) -> None:
        while True:
            await asyncio.sleep(interval)
            service.sweep()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting MCP server {} v{}", config.protocol.server_name, __version__)
        await service.start()
        sweeper = asyncio.create_task(_sweep_loop(max(1.0, float(config.limits.window_seconds))))
        try:
            yield
        finally:
            sweeper.cancel()
            with suppress(asyncio.CancelledError):
                await sweeper
            await service.stop()

    app = FastAPI(
        title=config.protocol.server_name,
        description=config.protocol.description,
        version=config.protocol.service_version,
        lifespan=lifespan,
    )
    app.state.service = service

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        sanitized = sanitize_error_message(str(exc))
        logger.exception("Unhandled exception on {}: {}", request.url.path, sanitized)
        return JSONResponse(
            status_code=500,
            content={"error": "INTERNAL_ERROR", "message": "An unexpected error occurred", "code": int(ErrorCode.INTERNAL_ERROR)},
        )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.server.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.post("/mcp")
    async def mcp(request: Request):
        """Single request object or batch array."""
        try:
            payload = await _read_json(request)
        except ValueError as e:
            return _parse_error(service, e)
        payload = apply_priority_header(payload, request)
        result = await service.process_payload(payload, client_identity(request, config))
        return _respond(service, result)

    @app.post("/mcp/batch")
    async def mcp_batch(request: Request):
        """Batch array only."""
        try:
            payload = await _read_json(request)
        except ValueError as e:
            return _parse_error(service, e)
        payload = apply_priority_header(payload, request)
        result = await service.process_batch(payload, client_identity(request, config))
        return _respond(service, result)

    @app.get("/mcp/protocol")
    async def mcp_protocol():
        return service.protocol_info()

    @app.get("/mcp/capabilities")
    async def mcp_capabilities():
        return service.capabilities()

    @app.get("/mcp/batch-stats")
    async def mcp_batch_stats():
        return service.batch_stats()

    @app.get("/health")
    async def health():
        report = await service.health()
        return JSONResponse(status_code=200 if report["status"] == "healthy" else 503, content=report)

    @app.get("/ready")
    async def ready():
        if not service.ready:
            return JSONResponse(status_code=503, content={"ready": False})
        return {"ready": True, "methods": len(service.registry)}

    return app


def run_server(config: Config | None = None, host: str | None = None, port: int | None = None, log_level: str = "warning"):
    """Run the HTTP server."""
    config = config or get_cached_config()
    uvicorn.run(
        create_app(config=config),
        host=host or config.server.host,
        port=port or config.server.port,
        timeout_keep_alive=30,
        timeout_graceful_shutdown=10,
        log_level=log_level,
    )
