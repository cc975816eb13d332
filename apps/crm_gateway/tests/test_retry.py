from __future__ import annotations

from datetime import datetime, timedelta, timezone
from email.utils import format_datetime

import pytest

from apps.crm_gateway.app.errors import CrmApiError, CrmParseError
from apps.crm_gateway.app.retry import (
    DEFAULT_RETRY_CONFIG,
    RetryConfig,
    calculate_delay,
    error_context,
    extract_retry_after,
    is_retryable_error,
)


@pytest.mark.parametrize("status", [429, 502, 503, 504])
def test_retryable_status_codes(status: int) -> None:
    assert is_retryable_error(CrmApiError("boom", status_code=status))


@pytest.mark.parametrize("status", [400, 401, 403, 404, 422])
def test_non_retryable_status_codes(status: int) -> None:
    assert not is_retryable_error(CrmApiError("boom", status_code=status))


@pytest.mark.parametrize("code", ["ECONNREFUSED", "ETIMEDOUT", "ECONNRESET", "ENOTFOUND"])
def test_network_codes_are_retryable(code: str) -> None:
    assert is_retryable_error(CrmApiError("failed", code=code))


@pytest.mark.parametrize(
    "message",
    ["Request timeout", "socket hang up", "network error occurred", "ECONNREFUSED something"],
)
def test_transient_messages_are_retryable(message: str) -> None:
    assert is_retryable_error(RuntimeError(message))


def test_unknown_errors_are_not_retryable() -> None:
    assert not is_retryable_error(RuntimeError("some random error"))
    assert not is_retryable_error(CrmApiError("some random error"))
    assert not is_retryable_error(None)


def test_status_code_wins_over_message() -> None:
    assert not is_retryable_error(CrmApiError("CRM API error (400): timeout field invalid", status_code=400))


def test_parse_errors_are_never_retryable() -> None:
    assert not is_retryable_error(CrmParseError("network error in body", status_code=200))


def test_delay_grows_exponentially_within_jitter() -> None:
    for attempt, expected in ((0, 1000), (1, 2000), (2, 4000)):
        delay = calculate_delay(attempt, DEFAULT_RETRY_CONFIG)
        assert expected * 0.75 <= delay <= expected * 1.25
        assert isinstance(delay, int)


def test_delay_respects_cap() -> None:
    config = RetryConfig(max_delay_ms=2000)
    assert all(calculate_delay(10, config) <= 2000 for _ in range(50))


def test_delay_without_jitter_is_exact() -> None:
    config = RetryConfig(base_delay_ms=100, jitter=0.0)
    assert [calculate_delay(n, config) for n in range(4)] == [100, 200, 400, 800]


def test_merged_overrides_subset() -> None:
    config = DEFAULT_RETRY_CONFIG.merged(max_retries=1, base_delay_ms=None)
    assert config.max_retries == 1
    assert config.base_delay_ms == DEFAULT_RETRY_CONFIG.base_delay_ms


def test_retry_after_seconds() -> None:
    error = CrmApiError("slow down", status_code=429, headers={"Retry-After": "5"})
    assert extract_retry_after(error) == 5000


def test_retry_after_http_date() -> None:
    when = datetime.now(timezone.utc) + timedelta(seconds=10)
    error = CrmApiError("slow down", status_code=429, headers={"retry-after": format_datetime(when, usegmt=True)})
    wait = extract_retry_after(error)
    assert wait is not None
    assert 0 < wait <= 11000


def test_retry_after_in_the_past_is_clamped() -> None:
    when = datetime.now(timezone.utc) - timedelta(minutes=5)
    error = CrmApiError("slow down", status_code=429, headers={"retry-after": format_datetime(when, usegmt=True)})
    assert extract_retry_after(error) == 0


def test_retry_after_missing_or_invalid() -> None:
    assert extract_retry_after(CrmApiError("x")) is None
    assert extract_retry_after(CrmApiError("x", headers={"retry-after": "soon"})) is None
    assert extract_retry_after(None) is None


def test_error_context_phrases() -> None:
    assert "Rate limit exceeded" in error_context(CrmApiError("x", status_code=429), 0, 3)
    assert "Service temporarily unavailable" in error_context(CrmApiError("x", status_code=503), 0, 3)
    assert "Server gateway error" in error_context(CrmApiError("x", status_code=502), 0, 3)
    assert "Server gateway error" in error_context(CrmApiError("x", status_code=504), 0, 3)
    assert "Connection refused" in error_context(CrmApiError("x", code="ECONNREFUSED"), 0, 3)


def test_error_context_attempt_count() -> None:
    assert "Failed after 3 attempt(s)" in error_context(CrmApiError("x"), 2, 3)
    assert "attempt" not in error_context(CrmApiError("x"), 0, 3)
