"""Tools that resolve messages, calendar events and timeline activities for a person or company.

Messages and calendar events are linked to people through participant
records, so a lookup is two or three hops:

    company -> people -> participant rows -> messages / calendar events
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List

from pydantic import Field

from ..client import CrmClient
from ..responses import extract_items
from .records import DEFAULT_LIST_LIMIT
from .registry import ListArgs, ToolRegistry

TIMELINE_ENDPOINT = "/rest/timelineActivities"
TIMELINE_KEY = "timelineActivities"


@dataclass(frozen=True)
class Engagement:
    name: str
    label: str
    participants_endpoint: str
    participants_key: str
    link_field: str
    endpoint: str
    key: str


ENGAGEMENTS = (
    Engagement(
        name="messages",
        label="messages",
        participants_endpoint="/rest/messageParticipants",
        participants_key="messageParticipants",
        link_field="messageId",
        endpoint="/rest/messages",
        key="messages",
    ),
    Engagement(
        name="calendar_events",
        label="calendar events",
        participants_endpoint="/rest/calendarEventParticipants",
        participants_key="calendarEventParticipants",
        link_field="calendarEventId",
        endpoint="/rest/calendarEvents",
        key="calendarEvents",
    ),
)


class PersonEngagementArgs(ListArgs):
    person_id: str = Field(description="The person ID")


class CompanyEngagementArgs(ListArgs):
    company_id: str = Field(description="The company ID")


def eq_filter(field: str, value: str) -> Dict[str, Any]:
    return {"filter": f"{field}[eq]:{value}"}


def in_filter(field: str, values: Iterable[str]) -> Dict[str, Any]:
    return {"filter": f"{field}[in]:{json.dumps(list(values), separators=(',', ':'), ensure_ascii=False)}"}


def unique_ids(items: Iterable[Dict[str, Any]], id_field: str) -> List[str]:
    return list(dict.fromkeys(item[id_field] for item in items if isinstance(item.get(id_field), str)))


async def list_by_ids(
    client: CrmClient,
    endpoint: str,
    nested_key: str,
    ids: List[str],
    args: ListArgs,
) -> List[Dict[str, Any]]:
    if not ids:
        return []
    query = in_filter("id", ids)
    if args.return_all:
        return await client.request_all_items("GET", endpoint, None, query, nested_key=nested_key)
    query["limit"] = args.limit or DEFAULT_LIST_LIMIT
    return extract_items(await client.request("GET", endpoint, None, query), nested_key)


async def people_ids_for_company(client: CrmClient, company_id: str) -> List[str]:
    people = await client.request_all_items(
        "GET", "/rest/people", None, eq_filter("companyId", company_id), nested_key="people"
    )
    return unique_ids(people, "id")


async def participant_rows(client: CrmClient, engagement: Engagement, person_ids: List[str]) -> List[Dict[str, Any]]:
    if not person_ids:
        return []
    query = eq_filter("personId", person_ids[0]) if len(person_ids) == 1 else in_filter("personId", person_ids)
    return await client.request_all_items(
        "GET", engagement.participants_endpoint, None, query, nested_key=engagement.participants_key
    )


async def engagements_for_people(
    client: CrmClient,
    engagement: Engagement,
    person_ids: List[str],
    args: ListArgs,
) -> List[Dict[str, Any]]:
    rows = await participant_rows(client, engagement, person_ids)
    ids = unique_ids(rows, engagement.link_field)
    return await list_by_ids(client, engagement.endpoint, engagement.key, ids, args)


async def timeline_activities(client: CrmClient, query: Dict[str, Any], args: ListArgs) -> List[Dict[str, Any]]:
    if args.return_all:
        return await client.request_all_items("GET", TIMELINE_ENDPOINT, None, query, nested_key=TIMELINE_KEY)
    query = dict(query, limit=args.limit or DEFAULT_LIST_LIMIT)
    return extract_items(await client.request("GET", TIMELINE_ENDPOINT, None, query), TIMELINE_KEY)


def _register_engagement(registry: ToolRegistry, engagement: Engagement) -> None:
    @registry.tool(
        f"get_{engagement.name}_by_person",
        f"Get {engagement.label} associated with a person in the CRM",
        PersonEngagementArgs,
        f"getting {engagement.label} by person",
    )
    async def by_person(client: CrmClient, args: PersonEngagementArgs) -> Any:
        return await engagements_for_people(client, engagement, [args.person_id], args)

    @registry.tool(
        f"get_{engagement.name}_by_company",
        f"Get {engagement.label} associated with a company in the CRM",
        CompanyEngagementArgs,
        f"getting {engagement.label} by company",
    )
    async def by_company(client: CrmClient, args: CompanyEngagementArgs) -> Any:
        person_ids = await people_ids_for_company(client, args.company_id)
        return await engagements_for_people(client, engagement, person_ids, args)


def register(registry: ToolRegistry) -> None:
    for engagement in ENGAGEMENTS:
        _register_engagement(registry, engagement)

    @registry.tool(
        "get_activities_by_person",
        "Get timeline activities associated with a person",
        PersonEngagementArgs,
        "getting activities by person",
    )
    async def activities_by_person(client: CrmClient, args: PersonEngagementArgs) -> Any:
        return await timeline_activities(client, {"targetPerson": args.person_id}, args)

    @registry.tool(
        "get_activities_by_company",
        "Get timeline activities associated with a company",
        CompanyEngagementArgs,
        "getting activities by company",
    )
    async def activities_by_company(client: CrmClient, args: CompanyEngagementArgs) -> Any:
        return await timeline_activities(client, {"targetCompany": args.company_id}, args)


__all__ = ["eq_filter", "in_filter", "register", "unique_ids"]
