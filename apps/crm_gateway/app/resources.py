"""Resource name to REST endpoint mapping."""

from __future__ import annotations

from typing import Dict

RESOURCE_ENDPOINTS: Dict[str, str] = {
    "company": "/rest/companies",
    "person": "/rest/people",
    "opportunity": "/rest/opportunities",
    "note": "/rest/notes",
    "task": "/rest/tasks",
    "activity": "/rest/activities",
    "attachment": "/rest/attachments",
}


def resource_endpoint(resource: str) -> str:
    return RESOURCE_ENDPOINTS.get(resource, f"/rest/{resource}")


def collection_key(resource: str) -> str:
    """Key the CRM nests list results under, e.g. ``companies``."""
    return resource_endpoint(resource).rsplit("/", 1)[-1]


__all__ = ["RESOURCE_ENDPOINTS", "collection_key", "resource_endpoint"]
