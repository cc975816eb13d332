"""Pydantic models for the gateway's JSON-RPC surface."""

from __future__ import annotations

from typing import Any, Dict, Literal, Optional, Union

from pydantic import BaseModel, Field

PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603
METHOD_NOT_ALLOWED = -32000
MISSING_API_KEY = -32001
MISSING_API_URL = -32002

RequestId = Union[int, str, None]


class JsonRpcRequest(BaseModel):
    jsonrpc: Literal["2.0"] = "2.0"
    id: RequestId = None
    method: str = Field(..., min_length=1)
    params: Optional[Dict[str, Any]] = None

    @property
    def is_notification(self) -> bool:
        return "id" not in self.model_fields_set


class JsonRpcError(BaseModel):
    code: int
    message: str
    data: Optional[Any] = None


class ToolCallParams(BaseModel):
    name: str = Field(..., min_length=1)
    arguments: Dict[str, Any] = Field(default_factory=dict)


class HealthResponse(BaseModel):
    status: str = "ok"
    service: str = "crm-gateway"


def rpc_result(request_id: RequestId, result: Dict[str, Any]) -> Dict[str, Any]:
    return {"jsonrpc": "2.0", "id": request_id, "result": result}


def rpc_error(request_id: RequestId, code: int, message: str) -> Dict[str, Any]:
    error = JsonRpcError(code=code, message=message)
    return {"jsonrpc": "2.0", "id": request_id, "error": error.model_dump(exclude_none=True)}


__all__ = [
    "HealthResponse",
    "INTERNAL_ERROR",
    "INVALID_PARAMS",
    "INVALID_REQUEST",
    "JsonRpcError",
    "JsonRpcRequest",
    "METHOD_NOT_ALLOWED",
    "METHOD_NOT_FOUND",
    "MISSING_API_KEY",
    "MISSING_API_URL",
    "PARSE_ERROR",
    "ToolCallParams",
    "rpc_error",
    "rpc_result",
]
