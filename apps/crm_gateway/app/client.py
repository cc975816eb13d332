"""Async client for the CRM REST API."""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Dict, List, Mapping, Optional, Sequence, Tuple

import httpx

from .errors import CrmApiError, CrmParseError
from .resources import collection_key, resource_endpoint
from .responses import decode_response, extract_items
from .results import BatchItemResult, CallOutcome
from .retry import (
    DEFAULT_RETRY_CONFIG,
    RetryConfig,
    calculate_delay,
    error_context,
    extract_retry_after,
    is_retryable_error,
)
from .transforms import clean_object

logger = logging.getLogger("crm_gateway.client")

BODYLESS_METHODS = frozenset({"GET", "DELETE"})
BULK_OPERATIONS = ("create", "update", "delete")
DEFAULT_PAGE_LIMIT = 200
DEFAULT_SEARCH_LIMIT = 20
FALLBACK_SEARCH_LIMIT = 10
BATCH_SIZE = 5

_NAME_RESOLUTION_MARKERS = ("name or service not known", "nodename nor servname", "getaddrinfo", "name resolution")


@dataclass(frozen=True)
class CrmCredentials:
    base_url: str
    api_key: str


def _stringify(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _encode_query(query: Optional[Mapping[str, Any]]) -> List[Tuple[str, str]]:
    return [(key, _stringify(value)) for key, value in clean_object(query).items()]


def _transport_error(exc: httpx.TransportError) -> CrmApiError:
    if isinstance(exc, httpx.TimeoutException):
        code = "ETIMEDOUT"
    elif isinstance(exc, httpx.ConnectError):
        lowered = str(exc).lower()
        code = "ENOTFOUND" if any(m in lowered for m in _NAME_RESOLUTION_MARKERS) else "ECONNREFUSED"
    elif isinstance(exc, (httpx.ReadError, httpx.WriteError, httpx.RemoteProtocolError)):
        code = "ECONNRESET"
    else:
        code = None
    return CrmApiError(f"CRM transport failure ({code or type(exc).__name__}): {exc}", code=code)


def _field_matches(candidate: Any, target: Any) -> bool:
    if candidate is None:
        return False
    if isinstance(candidate, str):
        return candidate.lower() == str(target).lower()
    return _stringify(candidate) == _stringify(target)


class CrmClient:
    """One client per set of credentials; safe to share across concurrent calls."""

    def __init__(
        self,
        credentials: CrmCredentials,
        *,
        retry_config: RetryConfig = DEFAULT_RETRY_CONFIG,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._base_url = credentials.base_url.rstrip("/")
        self._api_key = credentials.api_key
        self._retry_config = retry_config
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)

    async def __aenter__(self) -> "CrmClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    @property
    def base_url(self) -> str:
        return self._base_url

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }

    async def request(
        self,
        method: str,
        endpoint: str,
        body: Optional[Mapping[str, Any]] = None,
        query: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        """Perform one authenticated call and return the parsed JSON body."""
        method = method.upper()
        payload = clean_object(body) if method not in BODYLESS_METHODS else {}
        try:
            response = await self._client.request(
                method,
                f"{self._base_url}{endpoint}",
                params=_encode_query(query) or None,
                json=payload or None,
                headers=self._headers(),
            )
        except httpx.TransportError as exc:
            raise _transport_error(exc) from exc
        except httpx.DecodingError as exc:
            raise CrmParseError(f"CRM API returned an undecodable body: {exc}") from exc
        except httpx.RequestError as exc:
            raise CrmApiError(f"CRM request failed ({type(exc).__name__}): {exc}") from exc

        if not response.is_success:
            raise CrmApiError(
                f"CRM API error ({response.status_code}): {response.text}",
                status_code=response.status_code,
                headers=dict(response.headers),
            )

        text = response.text
        if not text.strip():
            return {}
        try:
            return json.loads(text)
        except ValueError as exc:
            raise CrmParseError(
                f"CRM API returned invalid JSON ({response.status_code}): {exc}",
                status_code=response.status_code,
                headers=dict(response.headers),
            ) from exc

    async def request_with_retry(
        self,
        method: str,
        endpoint: str,
        body: Optional[Mapping[str, Any]] = None,
        query: Optional[Mapping[str, Any]] = None,
        retry: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        """Like :meth:`request`, retrying transient failures with backoff.

        ``retry`` overrides any subset of the client's :class:`RetryConfig`
        for this call only.
        """
        config = self._retry_config.merged(**dict(retry or {}))
        attempt = 0
        while True:
            try:
                return await self.request(method, endpoint, body, query)
            except CrmApiError as exc:
                if attempt >= config.max_retries or not is_retryable_error(exc):
                    context = error_context(exc, attempt, config.max_retries)
                    raise exc.with_message(f"CRM API error: {context}{exc.message}") from exc
                delay_ms = extract_retry_after(exc) or calculate_delay(attempt, config)
                logger.warning(
                    "%s %s failed (attempt %s/%s): %s; retrying in %sms",
                    method,
                    endpoint,
                    attempt + 1,
                    config.max_retries + 1,
                    exc.message,
                    delay_ms,
                )
                await asyncio.sleep(delay_ms / 1000)
                attempt += 1

    async def request_all_items(
        self,
        method: str,
        endpoint: str,
        body: Optional[Mapping[str, Any]] = None,
        query: Optional[Mapping[str, Any]] = None,
        nested_key: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """Follow offset pagination until a page comes back shorter than ``limit``."""
        page_query: Dict[str, Any] = dict(query or {})
        limit = int(page_query.get("limit") or DEFAULT_PAGE_LIMIT)
        page_query["limit"] = limit
        offset = 0
        items: List[Dict[str, Any]] = []

        while True:
            page_query["offset"] = offset
            response = await self.request_with_retry(method, endpoint, body, dict(page_query))
            page = decode_response(response, nested_key)
            items.extend(page.items)
            offset += limit
            if not page.is_page or len(page.items) < limit:
                logger.debug("Fetched %s items from %s in %s page(s)", len(items), endpoint, offset // limit)
                return items

    async def _attempt(self, call: Awaitable[Any]) -> CallOutcome:
        try:
            value = await call
        except Exception as exc:
            return CallOutcome.failure(exc)
        return CallOutcome.of(value)

    async def search_records(
        self,
        query: str,
        object_types: Sequence[str],
        limit: int = DEFAULT_SEARCH_LIMIT,
    ) -> List[Dict[str, Any]]:
        """Search several object types concurrently; failed types yield nothing."""
        outcomes = await asyncio.gather(
            *(
                self._attempt(
                    self.request_with_retry("GET", f"/rest/{object_type}", None, {"search": query, "limit": limit})
                )
                for object_type in object_types
            )
        )

        results: List[Dict[str, Any]] = []
        for object_type, outcome in zip(object_types, outcomes):
            if outcome.failed:
                logger.warning("Search over %s failed: %s", object_type, outcome.error)
                continue
            if outcome.empty:
                continue
            for item in extract_items(outcome.value, object_type):
                if isinstance(item, dict):
                    results.append({**item, "_objectType": object_type})
        return results

    async def find_record_by_field(
        self,
        resource: str,
        field_name: str,
        field_value: Any,
    ) -> Optional[Dict[str, Any]]:
        """Find one record whose ``field_name`` equals ``field_value``, or None."""
        endpoint = resource_endpoint(resource)
        nested_key = collection_key(resource)
        filter_expr = json.dumps({field_name: {"eq": field_value}}, separators=(",", ":"), ensure_ascii=False)

        primary = await self._attempt(
            self.request_with_retry("GET", endpoint, None, {"filter": filter_expr, "limit": 1})
        )
        if primary.empty:
            return None
        if not primary.failed:
            page = decode_response(primary.value, nested_key)
            return page.items[0] if page.is_page and page.items else None

        logger.info(
            "Filter lookup on %s.%s failed (%s); falling back to search",
            resource,
            field_name,
            primary.error,
        )
        fallback = await self._attempt(
            self.request_with_retry(
                "GET", endpoint, None, {"search": field_value, "limit": FALLBACK_SEARCH_LIMIT}
            )
        )
        if fallback.failed or fallback.empty:
            return None
        page = decode_response(fallback.value, nested_key)
        if not page.is_page:
            return None
        return next((item for item in page.items if _field_matches(item.get(field_name), field_value)), None)

    async def _bulk_item(self, operation: str, endpoint: str, item: Dict[str, Any]) -> BatchItemResult:
        if not isinstance(item, Mapping):
            return BatchItemResult.failed("Record must be a JSON object", item)
        if operation == "create":
            call = self.request_with_retry("POST", endpoint, item)
        else:
            record_id = item.get("id")
            if not record_id:
                return BatchItemResult.failed('Record is missing an "id" field', item)
            if operation == "update":
                body = {key: value for key, value in item.items() if key != "id"}
                call = self.request_with_retry("PUT", f"{endpoint}/{record_id}", body)
            else:
                call = self.request_with_retry("DELETE", f"{endpoint}/{record_id}")

        outcome = await self._attempt(call)
        if outcome.failed:
            return BatchItemResult.failed(str(outcome.error), item)
        return BatchItemResult.ok(outcome.value)

    async def bulk_operation(
        self,
        operation: str,
        resource: str,
        items: Sequence[Dict[str, Any]],
    ) -> List[BatchItemResult]:
        """Apply ``operation`` to every item, ``BATCH_SIZE`` at a time, in input order."""
        if operation not in BULK_OPERATIONS:
            raise ValueError(f"Unsupported bulk operation: {operation}")
        endpoint = resource_endpoint(resource)
        results: List[BatchItemResult] = []
        for start in range(0, len(items), BATCH_SIZE):
            batch = items[start : start + BATCH_SIZE]
            results.extend(await asyncio.gather(*(self._bulk_item(operation, endpoint, item) for item in batch)))
        failures = sum(1 for result in results if not result.success)
        if failures:
            logger.info("Bulk %s on %s: %s of %s item(s) failed", operation, resource, failures, len(results))
        return results

    async def close(self) -> None:
        await self._client.aclose()


__all__ = ["BATCH_SIZE", "CrmClient", "CrmCredentials", "DEFAULT_PAGE_LIMIT"]
