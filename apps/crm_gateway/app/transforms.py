"""Reshaping of flat tool arguments into the CRM's nested field formats."""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

PERSON_DIRECT_FIELDS = ("jobTitle", "city", "avatarUrl", "companyId", "position")


def _present(value: Any) -> bool:
    return value is not None and value != ""


def clean_object(fields: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """Drop keys whose value is None or an empty string."""
    return {key: value for key, value in (fields or {}).items() if _present(value)}


def build_filter_query(filters: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    return clean_object(filters)


def to_link_object(url: Optional[str]) -> Optional[Dict[str, Any]]:
    if not url:
        return None
    if not url.startswith(("http://", "https://")):
        url = f"https://{url}"
    return {"primaryLinkLabel": "", "primaryLinkUrl": url, "secondaryLinks": []}


def transform_company_fields(fields: Mapping[str, Any]) -> Dict[str, Any]:
    transformed = dict(fields)

    if isinstance(transformed.get("domainName"), str):
        link = to_link_object(transformed["domainName"])
        if link:
            transformed["domainName"] = link
        else:
            del transformed["domainName"]

    for source, target in (("linkedinUrl", "linkedinLink"), ("xUrl", "xLink")):
        if isinstance(transformed.get(source), str):
            link = to_link_object(transformed.pop(source))
            if link:
                transformed[target] = link

    return transformed


def transform_person_fields(fields: Mapping[str, Any]) -> Dict[str, Any]:
    # Only known fields survive; the CRM rejects the flat aliases.
    transformed: Dict[str, Any] = {}

    if fields.get("firstName") or fields.get("lastName"):
        transformed["name"] = {
            "firstName": fields.get("firstName") or "",
            "lastName": fields.get("lastName") or "",
        }

    email = fields.get("email")
    if isinstance(email, str) and email:
        transformed["emails"] = {"primaryEmail": email, "additionalEmails": []}

    phone = fields.get("phone")
    if isinstance(phone, str) and phone:
        transformed["phones"] = {
            "primaryPhoneNumber": phone,
            "primaryPhoneCountryCode": "",
            "primaryPhoneCallingCode": "",
            "additionalPhones": [],
        }

    for source, target in (("linkedinUrl", "linkedinLink"), ("xUrl", "xLink")):
        value = fields.get(source)
        if isinstance(value, str) and value:
            transformed[target] = to_link_object(value)

    for name in PERSON_DIRECT_FIELDS:
        if _present(fields.get(name)):
            transformed[name] = fields[name]

    return transformed


def transform_note_fields(fields: Mapping[str, Any]) -> Dict[str, Any]:
    """Notes have no ``body`` field on the CRM side."""
    transformed = dict(fields)
    transformed.pop("body", None)
    return transformed


__all__ = [
    "build_filter_query",
    "clean_object",
    "to_link_object",
    "transform_company_fields",
    "transform_note_fields",
    "transform_person_fields",
]
