"""Tools for records of user-defined (custom) object types."""

from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import Field

from ..client import CrmClient
from .records import list_records
from .registry import ListArgs, ToolArgs, ToolRegistry, parse_json_argument

OBJECT_NAME_PATTERN = r"^[A-Za-z][A-Za-z0-9_]*$"


class CustomObjectArgs(ToolArgs):
    object_api_name: str = Field(
        pattern=OBJECT_NAME_PATTERN,
        description='The plural API name of the custom object (e.g., "customLeads")',
    )

    @property
    def endpoint(self) -> str:
        return f"/rest/{self.object_api_name}"


class CustomObjectCreateArgs(CustomObjectArgs):
    fields: str = Field(description="JSON object with field names and values")


class CustomObjectGetArgs(CustomObjectArgs):
    id: str = Field(description="The record ID")
    depth: Optional[int] = Field(default=None, ge=0, le=2, description="Depth of relations to include (0-2, default 1)")


class CustomObjectListArgs(CustomObjectArgs, ListArgs):
    filters: Optional[str] = Field(default=None, description="JSON filter object using the CRM filter syntax")
    depth: Optional[int] = Field(default=None, ge=0, le=2, description="Depth of relations to include (0-2, default 1)")


class CustomObjectUpdateArgs(CustomObjectArgs):
    id: str = Field(description="The record ID to update")
    fields: str = Field(description="JSON object with field names and values to update")


class CustomObjectDeleteArgs(CustomObjectArgs):
    id: str = Field(description="The record ID to delete")


def register(registry: ToolRegistry) -> None:
    @registry.tool(
        "custom_object_create",
        "Create a record in a custom object type in the CRM",
        CustomObjectCreateArgs,
        "creating custom object",
    )
    async def create(client: CrmClient, args: CustomObjectCreateArgs) -> Any:
        body = parse_json_argument(args.fields, dict, "fields")
        return await client.request("POST", args.endpoint, body)

    @registry.tool(
        "custom_object_get",
        "Get a record from a custom object type by ID in the CRM",
        CustomObjectGetArgs,
        "getting custom object",
    )
    async def get(client: CrmClient, args: CustomObjectGetArgs) -> Any:
        return await client.request("GET", f"{args.endpoint}/{args.id}", None, {"depth": args.depth})

    @registry.tool(
        "custom_object_list",
        "List records from a custom object type in the CRM",
        CustomObjectListArgs,
        "listing custom objects",
    )
    async def list_(client: CrmClient, args: CustomObjectListArgs) -> Any:
        query: Dict[str, Any] = {"filter": args.filters, "depth": args.depth}
        return await list_records(client, args.endpoint, query, args, nested_key=args.object_api_name)

    @registry.tool(
        "custom_object_update",
        "Update a record in a custom object type in the CRM",
        CustomObjectUpdateArgs,
        "updating custom object",
    )
    async def update(client: CrmClient, args: CustomObjectUpdateArgs) -> Any:
        body = parse_json_argument(args.fields, dict, "fields")
        return await client.request("PUT", f"{args.endpoint}/{args.id}", body)

    @registry.tool(
        "custom_object_delete",
        "Delete a record from a custom object type in the CRM",
        CustomObjectDeleteArgs,
        "deleting custom object",
    )
    async def delete(client: CrmClient, args: CustomObjectDeleteArgs) -> Any:
        return await client.request("DELETE", f"{args.endpoint}/{args.id}")


__all__ = ["register"]
