"""Named tools with typed argument schemas, dispatched against a CrmClient."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional, Type

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from ..client import CrmClient
from ..errors import CrmApiError

logger = logging.getLogger("crm_gateway.tools")


class ToolInputError(ValueError):
    """Arguments passed schema validation but cannot be used as given."""


class ToolArgs(BaseModel):
    """Base for tool arguments: snake_case attributes, camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def dump_fields(self, *exclude: str) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True, exclude=set(exclude))


class ListArgs(ToolArgs):
    limit: Optional[int] = Field(default=None, ge=1, le=200, description="Max number of results (1-200, default 20)")
    return_all: bool = Field(default=False, description="Return all results with automatic pagination")


class ToolResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    content: List[Dict[str, str]]
    is_error: bool = Field(default=False, alias="isError")

    @classmethod
    def from_result(cls, result: Any) -> "ToolResult":
        text = json.dumps(result, indent=2, ensure_ascii=False, default=str)
        return cls(content=[{"type": "text", "text": text}])

    @classmethod
    def error(cls, message: str) -> "ToolResult":
        return cls(content=[{"type": "text", "text": message}], is_error=True)

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


ToolHandler = Callable[[CrmClient, Any], Awaitable[Any]]


@dataclass(frozen=True)
class Tool:
    name: str
    description: str
    args_model: Type[ToolArgs]
    handler: ToolHandler
    action: str

    def schema(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.args_model.model_json_schema(by_alias=True),
        }


class ToolRegistry:
    def __init__(self) -> None:
        self._tools: Dict[str, Tool] = {}

    def add(self, tool: Tool) -> Tool:
        if tool.name in self._tools:
            raise ValueError(f"Tool already registered: {tool.name}")
        self._tools[tool.name] = tool
        return tool

    def tool(self, name: str, description: str, args_model: Type[ToolArgs], action: str):
        """Decorator form of :meth:`add`."""

        def decorator(handler: ToolHandler) -> ToolHandler:
            self.add(Tool(name=name, description=description, args_model=args_model, handler=handler, action=action))
            return handler

        return decorator

    def get(self, name: str) -> Optional[Tool]:
        return self._tools.get(name)

    def names(self) -> List[str]:
        return list(self._tools)

    def list_tools(self) -> List[Dict[str, Any]]:
        return [tool.schema() for tool in self._tools.values()]

    async def call(self, name: str, arguments: Optional[Dict[str, Any]], client: CrmClient) -> ToolResult:
        tool = self._tools.get(name)
        if tool is None:
            return ToolResult.error(f"Unknown tool: {name}")
        try:
            args = tool.args_model.model_validate(arguments or {})
        except ValidationError as exc:
            return ToolResult.error(f"Invalid arguments for {name}: {exc}")
        try:
            result = await tool.handler(client, args)
        except (CrmApiError, ToolInputError) as exc:
            logger.info("Tool %s failed: %s", name, exc)
            return ToolResult.error(f"Error {tool.action}: {exc}")
        return ToolResult.from_result(result)

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._tools


def parse_json_argument(raw: str, expected: type, label: str) -> Any:
    try:
        value = json.loads(raw)
    except ValueError as exc:
        raise ToolInputError(f"{label} must be valid JSON: {exc}") from exc
    if not isinstance(value, expected):
        raise ToolInputError(f"{label} must be a JSON {'array' if expected is list else 'object'}")
    return value


__all__ = [
    "ListArgs",
    "Tool",
    "ToolArgs",
    "ToolInputError",
    "ToolRegistry",
    "ToolResult",
    "parse_json_argument",
]
