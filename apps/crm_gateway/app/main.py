"""FastAPI JSON-RPC gateway exposing CRM operations as tools."""

from __future__ import annotations

import logging
import time
from typing import Any, Dict, Optional

import httpx
import uvicorn
from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from prometheus_client import Counter, Histogram, generate_latest
from pydantic import ValidationError

from .client import CrmClient, CrmCredentials
from .config import settings
from .logging import build_tool_log, configure_logging, log_tool_call
from .models import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    INVALID_REQUEST,
    METHOD_NOT_ALLOWED,
    METHOD_NOT_FOUND,
    MISSING_API_KEY,
    MISSING_API_URL,
    PARSE_ERROR,
    HealthResponse,
    JsonRpcRequest,
    ToolCallParams,
    rpc_error,
    rpc_result,
)
from .tools import ToolRegistry, build_registry

logger = logging.getLogger("crm_gateway")
configure_logging(settings.log_level)

PROTOCOL_VERSION = "2025-03-26"
CREDENTIALS_HINT = "/mcp?apiUrl=https%3A%2F%2Fyour-crm-instance.com&apiKey=YOUR_KEY"

app = FastAPI(title="CRM Tool Gateway", version=settings.server_version)

RPC_COUNTER = Counter("crm_gateway_rpc_requests_total", "JSON-RPC requests received", ["method"])
TOOL_COUNTER = Counter("crm_gateway_tool_calls_total", "Tool invocations", ["tool", "outcome"])
TOOL_LATENCY = Histogram("crm_gateway_tool_latency_seconds", "Tool invocation latency", ["tool"])

_registry = build_registry()
_transport: Optional[httpx.AsyncBaseTransport] = None


class RpcError(Exception):
    def __init__(self, code: int, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message


def get_registry() -> ToolRegistry:
    return _registry


def get_transport() -> Optional[httpx.AsyncBaseTransport]:
    return _transport


def _query_value(request: Request, name: str) -> Optional[str]:
    for raw in request.query_params.getlist(name):
        if raw.strip():
            return raw.strip()
    return None


def _error_response(request_id: Any, code: int, message: str, status_code: int = 200) -> JSONResponse:
    return JSONResponse(rpc_error(request_id, code, message), status_code=status_code)


@app.get("/healthz", response_model=HealthResponse)
def health() -> HealthResponse:
    return HealthResponse()


@app.get("/metrics")
def metrics() -> PlainTextResponse:
    data = generate_latest()
    return PlainTextResponse(data, media_type="text/plain; version=0.0.4")


@app.post("/mcp")
async def mcp(
    request: Request,
    registry: ToolRegistry = Depends(get_registry),
    transport: Optional[httpx.AsyncBaseTransport] = Depends(get_transport),
) -> Response:
    api_url = _query_value(request, "apiUrl")
    api_key = _query_value(request, "apiKey")
    if not api_url:
        message = f"Missing CRM API URL. Provide it as the `apiUrl` query parameter, for example: {CREDENTIALS_HINT}"
        return _error_response(None, MISSING_API_URL, message, status_code=400)
    if not api_key:
        message = f"Missing CRM API key. Provide it as the `apiKey` query parameter, for example: {CREDENTIALS_HINT}"
        return _error_response(None, MISSING_API_KEY, message, status_code=401)

    try:
        body = await request.json()
    except ValueError:
        return _error_response(None, PARSE_ERROR, "Parse error", status_code=400)
    try:
        rpc = JsonRpcRequest.model_validate(body)
    except ValidationError:
        request_id = body.get("id") if isinstance(body, dict) else None
        return _error_response(request_id, INVALID_REQUEST, "Invalid Request", status_code=400)

    RPC_COUNTER.labels(method=rpc.method).inc()
    if rpc.is_notification:
        return Response(status_code=202)

    credentials = CrmCredentials(base_url=api_url, api_key=api_key)
    try:
        result = await _dispatch(rpc, credentials, registry, transport)
    except RpcError as exc:
        return _error_response(rpc.id, exc.code, exc.message)
    except Exception:  # pragma: no cover - unexpected failures
        logger.exception("Error handling JSON-RPC method=%s", rpc.method)
        return _error_response(rpc.id, INTERNAL_ERROR, "Internal server error", status_code=500)
    return JSONResponse(rpc_result(rpc.id, result))


@app.get("/mcp")
@app.delete("/mcp")
async def mcp_method_not_allowed() -> JSONResponse:
    return _error_response(None, METHOD_NOT_ALLOWED, "Method not allowed.", status_code=405)


async def _dispatch(
    rpc: JsonRpcRequest,
    credentials: CrmCredentials,
    registry: ToolRegistry,
    transport: Optional[httpx.AsyncBaseTransport],
) -> Dict[str, Any]:
    params = rpc.params or {}
    if rpc.method == "initialize":
        return {
            "protocolVersion": params.get("protocolVersion") or PROTOCOL_VERSION,
            "capabilities": {"tools": {"listChanged": False}},
            "serverInfo": {"name": settings.server_name, "version": settings.server_version},
        }
    if rpc.method == "ping":
        return {}
    if rpc.method == "tools/list":
        return {"tools": registry.list_tools()}
    if rpc.method == "tools/call":
        try:
            call = ToolCallParams.model_validate(params)
        except ValidationError as exc:
            raise RpcError(INVALID_PARAMS, f"Invalid params: {exc}") from exc
        async with CrmClient(
            credentials,
            retry_config=settings.retry_config(),
            timeout=settings.request_timeout,
            transport=transport,
        ) as client:
            return await _call_tool(registry, client, call)
    raise RpcError(METHOD_NOT_FOUND, f"Method not found: {rpc.method}")


async def _call_tool(registry: ToolRegistry, client: CrmClient, call: ToolCallParams) -> Dict[str, Any]:
    label = call.name if call.name in registry else "unknown"
    start = time.perf_counter()
    with TOOL_LATENCY.labels(tool=label).time():
        result = await registry.call(call.name, call.arguments, client)
    elapsed = time.perf_counter() - start
    TOOL_COUNTER.labels(tool=label, outcome="error" if result.is_error else "ok").inc()
    log_tool_call(
        build_tool_log(
            tool=call.name,
            base_url=client.base_url,
            is_error=result.is_error,
            latency=elapsed,
            arguments=call.arguments,
        )
    )
    return result.to_payload()


@app.on_event("startup")
def on_startup() -> None:
    logger.info(
        "Gateway startup complete (tools=%s, max_retries=%s, timeout=%.1fs)",
        len(_registry),
        settings.max_retries,
        settings.request_timeout,
    )


if __name__ == "__main__":
    uvicorn.run("apps.crm_gateway.app.main:app", host=settings.host, port=settings.port)
