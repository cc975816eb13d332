from __future__ import annotations

import json
from typing import Any, Callable, Dict, List

import httpx
import pytest

from apps.crm_gateway.app.client import CrmClient, CrmCredentials
from apps.crm_gateway.app.retry import RetryConfig

FAST_RETRY = RetryConfig(max_retries=3, base_delay_ms=1, max_delay_ms=5)


class Recorder:
    """Wraps a handler and keeps every request it saw."""

    def __init__(self, handler: Callable[[httpx.Request], Any]) -> None:
        self._handler = handler
        self.requests: List[httpx.Request] = []

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        response = self._handler(request)
        if not isinstance(response, httpx.Response):
            response = await response
        return response

    @property
    def count(self) -> int:
        return len(self.requests)

    def params(self, index: int = -1) -> Dict[str, str]:
        return dict(self.requests[index].url.params)

    def body(self, index: int = -1) -> Any:
        content = self.requests[index].content
        return json.loads(content) if content else None


@pytest.fixture()
async def make_client():
    clients: List[CrmClient] = []

    def factory(handler, base_url: str = "https://crm.example.com", retry_config: RetryConfig = FAST_RETRY):
        recorder = handler if isinstance(handler, Recorder) else Recorder(handler)
        client = CrmClient(
            CrmCredentials(base_url=base_url, api_key="test-key"),
            retry_config=retry_config,
            transport=httpx.MockTransport(recorder),
        )
        clients.append(client)
        return client, recorder

    yield factory
    for client in clients:
        await client.close()
