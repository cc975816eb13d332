"""Bulk create/update/delete tools."""

from __future__ import annotations

from typing import Any, List, Literal

from pydantic import Field

from ..client import BATCH_SIZE, CrmClient
from .registry import ToolArgs, ToolInputError, ToolRegistry, parse_json_argument

ResourceType = Literal["company", "person", "opportunity", "note", "task", "activity"]


class BulkCreateArgs(ToolArgs):
    resource_type: ResourceType = Field(description="The type of resource to create")
    items: str = Field(
        description='JSON array of objects to create, e.g., [{"name": "Company 1"}, {"name": "Company 2"}]'
    )


class BulkUpdateArgs(ToolArgs):
    resource_type: ResourceType = Field(description="The type of resource to update")
    items: str = Field(
        description='JSON array of objects to update, each must have "id", e.g., [{"id": "abc", "name": "Updated"}]'
    )


class BulkDeleteArgs(ToolArgs):
    resource_type: ResourceType = Field(description="The type of resource to delete")
    ids: List[str] = Field(description="Array of record IDs to delete")


def register(registry: ToolRegistry) -> None:
    @registry.tool(
        "bulk_create",
        f"Create multiple records at once in the CRM. Processes up to {BATCH_SIZE} items concurrently.",
        BulkCreateArgs,
        "in bulk create",
    )
    async def bulk_create(client: CrmClient, args: BulkCreateArgs) -> Any:
        items = parse_json_argument(args.items, list, "items")
        results = await client.bulk_operation("create", args.resource_type, items)
        return [result.to_dict() for result in results]

    @registry.tool(
        "bulk_update",
        'Update multiple records at once in the CRM. Each item must include an "id" field.',
        BulkUpdateArgs,
        "in bulk update",
    )
    async def bulk_update(client: CrmClient, args: BulkUpdateArgs) -> Any:
        items = parse_json_argument(args.items, list, "items")
        if any(not isinstance(item, dict) or not item.get("id") for item in items):
            raise ToolInputError('all items must have an "id" field')
        results = await client.bulk_operation("update", args.resource_type, items)
        return [result.to_dict() for result in results]

    @registry.tool("bulk_delete", "Delete multiple records at once in the CRM.", BulkDeleteArgs, "in bulk delete")
    async def bulk_delete(client: CrmClient, args: BulkDeleteArgs) -> Any:
        results = await client.bulk_operation("delete", args.resource_type, [{"id": id_} for id_ in args.ids])
        return [result.to_dict() for result in results]


__all__ = ["register"]
