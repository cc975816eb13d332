"""Decoding of the response shapes the CRM REST API returns.

A payload is one of:

* ``{"data": [...]}``               -> ``LIST``
* ``{"data": {"<key>": [...]}}``    -> ``NESTED_LIST`` (when ``nested_key`` is given)
* ``{"<key>": [...]}``              -> ``NESTED_LIST`` (when ``nested_key`` is given)
* ``{"data": {...}}``               -> ``RECORD``
* ``{}`` / ``None``                 -> ``EMPTY``
* anything else                     -> ``BARE``
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class ResponseShape(str, Enum):
    LIST = "list"
    NESTED_LIST = "nested_list"
    RECORD = "record"
    BARE = "bare"
    EMPTY = "empty"


@dataclass(frozen=True)
class DecodedResponse:
    shape: ResponseShape
    items: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def is_page(self) -> bool:
        """True when the items came from an array the server paginates."""
        return self.shape in (ResponseShape.LIST, ResponseShape.NESTED_LIST)


def decode_response(payload: Any, nested_key: Optional[str] = None) -> DecodedResponse:
    if payload is None or payload == {} or payload == []:
        return DecodedResponse(ResponseShape.EMPTY)
    if not isinstance(payload, dict):
        items = payload if isinstance(payload, list) else [payload]
        return DecodedResponse(ResponseShape.BARE, list(items))

    data = payload.get("data")
    if isinstance(data, list):
        return DecodedResponse(ResponseShape.LIST, list(data))
    if nested_key:
        container = data if isinstance(data, dict) else payload
        nested = container.get(nested_key)
        if isinstance(nested, list):
            return DecodedResponse(ResponseShape.NESTED_LIST, list(nested))
    if isinstance(data, dict):
        return DecodedResponse(ResponseShape.RECORD, [data])
    return DecodedResponse(ResponseShape.BARE, [payload])


def extract_items(payload: Any, nested_key: Optional[str] = None) -> List[Dict[str, Any]]:
    return decode_response(payload, nested_key).items


def unwrap_data(payload: Any) -> Any:
    """Return ``payload["data"]`` when present, else the payload itself."""
    if isinstance(payload, dict) and payload.get("data") is not None:
        return payload["data"]
    return payload


__all__ = ["DecodedResponse", "ResponseShape", "decode_response", "extract_items", "unwrap_data"]
