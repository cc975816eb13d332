"""CRUD and upsert tools for the standard CRM record types."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Literal, Optional, Type

from pydantic import Field

from ..client import CrmClient
from ..resources import collection_key, resource_endpoint
from ..responses import unwrap_data
from ..transforms import (
    build_filter_query,
    clean_object,
    transform_company_fields,
    transform_note_fields,
    transform_person_fields,
)
from .registry import ListArgs, ToolArgs, ToolRegistry

DEFAULT_LIST_LIMIT = 20

# Companies

class CompanyFields(ToolArgs):
    name: Optional[str] = Field(default=None, description="Company name")
    address: Optional[str] = Field(default=None, description="Company address")
    annual_recurring_revenue: Optional[float] = Field(default=None, description="Annual recurring revenue")
    domain_name: Optional[str] = Field(default=None, description="Company domain (e.g., example.com)")
    employees: Optional[int] = Field(default=None, description="Number of employees")
    ideal_customer_profile: Optional[bool] = Field(default=None, description="Whether this is an ideal customer profile")
    industry: Optional[str] = Field(default=None, description="Company industry")
    linkedin_url: Optional[str] = Field(default=None, description="LinkedIn company page URL")
    x_url: Optional[str] = Field(default=None, description="X (Twitter) profile URL")
    custom_fields: Optional[Dict[str, Any]] = Field(default=None, description="Custom fields as key-value pairs")


class CreateCompanyArgs(CompanyFields):
    name: str = Field(description="Company name")


class UpdateCompanyArgs(CompanyFields):
    id: str = Field(description="The company ID to update")


class UpsertCompanyArgs(CreateCompanyArgs):
    match_field: Literal["domainName", "name", "linkedinUrl"] = Field(description="Field to match existing records on")
    match_value: str = Field(description="Value to match against")


class ListCompaniesArgs(ListArgs):
    search: Optional[str] = Field(default=None, description="Search term for company name")


# People

class PersonFields(ToolArgs):
    first_name: Optional[str] = Field(default=None, description="First name")
    last_name: Optional[str] = Field(default=None, description="Last name")
    email: Optional[str] = Field(default=None, description="Email address")
    phone: Optional[str] = Field(default=None, description="Phone number")
    city: Optional[str] = Field(default=None, description="City")
    job_title: Optional[str] = Field(default=None, description="Job title")
    linkedin_url: Optional[str] = Field(default=None, description="LinkedIn profile URL")
    x_url: Optional[str] = Field(default=None, description="X (Twitter) profile URL")
    avatar_url: Optional[str] = Field(default=None, description="Avatar URL")
    company_id: Optional[str] = Field(default=None, description="Associated company ID")


class CreatePersonArgs(PersonFields):
    first_name: str = Field(description="First name")
    last_name: str = Field(description="Last name")


class UpdatePersonArgs(PersonFields):
    id: str = Field(description="The person ID to update")


class UpsertPersonArgs(CreatePersonArgs):
    match_field: Literal["email", "linkedinUrl", "phone"] = Field(description="Field to match existing records on")
    match_value: str = Field(description="Value to match against")


class ListPeopleArgs(ListArgs):
    company_id: Optional[str] = Field(default=None, description="Filter by company ID")
    search: Optional[str] = Field(default=None, description="Search term for name or email")


# Opportunities

class OpportunityFields(ToolArgs):
    name: Optional[str] = Field(default=None, description="Opportunity name")
    amount: Optional[float] = Field(default=None, description="Deal amount (in micros, e.g., 1000000 = $1)")
    close_date: Optional[str] = Field(default=None, description="Expected close date (ISO 8601)")
    stage: Optional[str] = Field(
        default=None, description="Sales stage (e.g., NEW, SCREENING, MEETING, PROPOSAL, CUSTOMER)"
    )
    company_id: Optional[str] = Field(default=None, description="Associated company ID")
    point_of_contact_id: Optional[str] = Field(default=None, description="Point of contact person ID")


class CreateOpportunityArgs(OpportunityFields):
    name: str = Field(description="Opportunity name")


class UpdateOpportunityArgs(OpportunityFields):
    id: str = Field(description="The opportunity ID to update")


class UpsertOpportunityArgs(CreateOpportunityArgs):
    match_field: Literal["name"] = Field(description='Field to match on (only "name" supported)')
    match_value: str = Field(description="Value to match against")


class ListOpportunitiesArgs(ListArgs):
    company_id: Optional[str] = Field(default=None, description="Filter by company ID")
    stage: Optional[str] = Field(default=None, description="Filter by stage")


# Notes

class NoteFields(ToolArgs):
    title: Optional[str] = Field(default=None, description="Note title")
    position: Optional[float] = Field(default=None, description="Note position/order")


class CreateNoteArgs(NoteFields):
    title: str = Field(description="Note title")


class UpdateNoteArgs(NoteFields):
    id: str = Field(description="The note ID to update")


class ListNotesArgs(ListArgs):
    search: Optional[str] = Field(default=None, description="Search term")


# Tasks

TaskStatus = Literal["TODO", "IN_PROGRESS", "DONE"]


class TaskFields(ToolArgs):
    title: Optional[str] = Field(default=None, description="Task title")
    body: Optional[str] = Field(default=None, description="Task description")
    status: Optional[TaskStatus] = Field(default=None, description="Task status")
    due_at: Optional[str] = Field(default=None, description="Due date (ISO 8601)")
    assignee_id: Optional[str] = Field(default=None, description="Assignee person ID")
    position: Optional[float] = Field(default=None, description="Task position/order")


class CreateTaskArgs(TaskFields):
    title: str = Field(description="Task title")


class UpdateTaskArgs(TaskFields):
    id: str = Field(description="The task ID to update")


class ListTasksArgs(ListArgs):
    assignee_id: Optional[str] = Field(default=None, description="Filter by assignee ID")
    status: Optional[TaskStatus] = Field(default=None, description="Filter by status")


# Activities

ActivityType = Literal["Call", "Email", "Meeting", "Note", "Task"]


class ActivityFields(ToolArgs):
    title: Optional[str] = Field(default=None, description="Activity title")
    type: Optional[ActivityType] = Field(default=None, description="Activity type")
    body: Optional[str] = Field(default=None, description="Activity description")
    due_at: Optional[str] = Field(default=None, description="Due date (ISO 8601)")
    completed_at: Optional[str] = Field(default=None, description="Completion date (ISO 8601)")
    reminder_at: Optional[str] = Field(default=None, description="Reminder date (ISO 8601)")
    company_id: Optional[str] = Field(default=None, description="Associated company ID")
    person_id: Optional[str] = Field(default=None, description="Associated person ID")


class CreateActivityArgs(ActivityFields):
    title: str = Field(description="Activity title")
    type: ActivityType = Field(description="Activity type")


class UpdateActivityArgs(ActivityFields):
    id: str = Field(description="The activity ID to update")


class ListActivitiesArgs(ListArgs):
    type: Optional[ActivityType] = Field(default=None, description="Filter by activity type")
    company_id: Optional[str] = Field(default=None, description="Filter by company ID")
    person_id: Optional[str] = Field(default=None, description="Filter by person ID")


class RecordIdArgs(ToolArgs):
    id: str = Field(description="The record ID")


@dataclass(frozen=True)
class RecordResource:
    name: str
    label: str
    create_args: Type[ToolArgs]
    update_args: Type[ToolArgs]
    list_args: Type[ListArgs]
    shape: Callable[[Dict[str, Any]], Dict[str, Any]] = clean_object
    upsert_args: Optional[Type[ToolArgs]] = None

    @property
    def endpoint(self) -> str:
        return resource_endpoint(self.name)

    @property
    def plural(self) -> str:
        return collection_key(self.name)

    def body(self, args: ToolArgs) -> Dict[str, Any]:
        fields = args.dump_fields("id", "match_field", "match_value", "custom_fields")
        fields.update(getattr(args, "custom_fields", None) or {})
        return self.shape(clean_object(fields))


RECORD_RESOURCES: List[RecordResource] = [
    RecordResource(
        "company",
        "company",
        CreateCompanyArgs,
        UpdateCompanyArgs,
        ListCompaniesArgs,
        shape=transform_company_fields,
        upsert_args=UpsertCompanyArgs,
    ),
    RecordResource(
        "person",
        "person/contact",
        CreatePersonArgs,
        UpdatePersonArgs,
        ListPeopleArgs,
        shape=transform_person_fields,
        upsert_args=UpsertPersonArgs,
    ),
    RecordResource(
        "opportunity",
        "opportunity/deal",
        CreateOpportunityArgs,
        UpdateOpportunityArgs,
        ListOpportunitiesArgs,
        upsert_args=UpsertOpportunityArgs,
    ),
    RecordResource("note", "note", CreateNoteArgs, UpdateNoteArgs, ListNotesArgs, shape=transform_note_fields),
    RecordResource("task", "task", CreateTaskArgs, UpdateTaskArgs, ListTasksArgs),
    RecordResource("activity", "activity", CreateActivityArgs, UpdateActivityArgs, ListActivitiesArgs),
]


async def list_records(
    client: CrmClient,
    endpoint: str,
    query: Dict[str, Any],
    args: ListArgs,
    nested_key: Optional[str] = None,
) -> Any:
    """Single page (``limit``) or every page (``returnAll``) of a collection."""
    if args.return_all:
        return await client.request_all_items("GET", endpoint, None, query, nested_key=nested_key)
    query = dict(query, limit=args.limit or DEFAULT_LIST_LIMIT)
    return unwrap_data(await client.request("GET", endpoint, None, query))


def _with_action(result: Any, action: str) -> Dict[str, Any]:
    if not isinstance(result, dict):
        result = {"data": result}
    return {**result, "_upsertAction": action}


def register_record_tools(registry: ToolRegistry, resource: RecordResource) -> None:
    endpoint = resource.endpoint
    name = resource.name
    label = resource.label

    @registry.tool(f"create_{name}", f"Create a new {label} in the CRM", resource.create_args, f"creating {name}")
    async def create(client: CrmClient, args: ToolArgs) -> Any:
        return await client.request("POST", endpoint, resource.body(args))

    @registry.tool(f"get_{name}", f"Get a {label} by ID from the CRM", RecordIdArgs, f"getting {name}")
    async def get(client: CrmClient, args: RecordIdArgs) -> Any:
        return await client.request("GET", f"{endpoint}/{args.id}")

    @registry.tool(
        f"list_{resource.plural}",
        f"List {resource.plural} from the CRM with optional filtering and pagination",
        resource.list_args,
        f"listing {resource.plural}",
    )
    async def list_(client: CrmClient, args: ListArgs) -> Any:
        query = build_filter_query(args.dump_fields("limit", "return_all"))
        return await list_records(client, endpoint, query, args, nested_key=resource.plural)

    @registry.tool(f"update_{name}", f"Update an existing {label} in the CRM", resource.update_args, f"updating {name}")
    async def update(client: CrmClient, args: ToolArgs) -> Any:
        return await client.request("PUT", f"{endpoint}/{args.id}", resource.body(args))

    @registry.tool(f"delete_{name}", f"Delete a {label} from the CRM", RecordIdArgs, f"deleting {name}")
    async def delete(client: CrmClient, args: RecordIdArgs) -> Any:
        return await client.request("DELETE", f"{endpoint}/{args.id}")

    if resource.upsert_args is None:
        return

    @registry.tool(
        f"upsert_{name}",
        f"Create or update a {label} in the CRM based on a matching field",
        resource.upsert_args,
        f"upserting {name}",
    )
    async def upsert(client: CrmClient, args: ToolArgs) -> Any:
        existing = await client.find_record_by_field(name, args.match_field, args.match_value)
        body = resource.body(args)
        if existing and existing.get("id"):
            result = await client.request("PUT", f"{endpoint}/{existing['id']}", body)
            return _with_action(result, "updated")
        return _with_action(await client.request("POST", endpoint, body), "created")


def register(registry: ToolRegistry) -> None:
    for resource in RECORD_RESOURCES:
        register_record_tools(registry, resource)


__all__ = ["RECORD_RESOURCES", "RecordResource", "list_records", "register", "register_record_tools"]
