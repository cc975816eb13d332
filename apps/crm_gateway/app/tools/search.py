"""Cross-object search tool."""

from __future__ import annotations

from typing import Any, List, Literal, Optional

from pydantic import Field

from ..client import DEFAULT_SEARCH_LIMIT, CrmClient
from .registry import ToolArgs, ToolRegistry

SearchObjectType = Literal["companies", "people", "opportunities", "notes", "tasks"]
DEFAULT_OBJECT_TYPES = ["people", "companies", "opportunities", "notes", "tasks"]


class SearchArgs(ToolArgs):
    query: str = Field(description="Search query string")
    object_types: Optional[List[SearchObjectType]] = Field(
        default=None, description="Object types to search (defaults to all supported types)"
    )
    limit: Optional[int] = Field(default=None, ge=1, le=200, description="Max results per object type (1-200, default 20)")


def register(registry: ToolRegistry) -> None:
    @registry.tool(
        "search",
        "Search across multiple object types in the CRM (companies, people, opportunities, notes, tasks)",
        SearchArgs,
        "searching",
    )
    async def search(client: CrmClient, args: SearchArgs) -> Any:
        object_types = args.object_types or DEFAULT_OBJECT_TYPES
        return await client.search_records(args.query, object_types, args.limit or DEFAULT_SEARCH_LIMIT)


__all__ = ["DEFAULT_OBJECT_TYPES", "register"]
