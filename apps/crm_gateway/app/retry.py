"""Retry policy for CRM calls: classification, backoff and rate-limit waits."""

from __future__ import annotations

import random
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Optional

RETRYABLE_STATUS_CODES = frozenset({429, 502, 503, 504})
RETRYABLE_ERROR_CODES = ("ECONNREFUSED", "ETIMEDOUT", "ECONNRESET", "ENOTFOUND")
TRANSIENT_MESSAGE_MARKERS = ("timeout", "socket hang up", "network error")


@dataclass(frozen=True)
class RetryConfig:
    max_retries: int = 3
    base_delay_ms: int = 1000
    max_delay_ms: int = 30000
    jitter: float = 0.25

    def merged(self, **overrides: Any) -> "RetryConfig":
        """Return a copy with the non-None overrides applied."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})


DEFAULT_RETRY_CONFIG = RetryConfig()


def is_retryable_error(error: Optional[BaseException]) -> bool:
    if error is None or getattr(error, "parse_error", False):
        return False
    status = getattr(error, "status_code", None)
    if status is not None:
        return status in RETRYABLE_STATUS_CODES
    if getattr(error, "code", None) in RETRYABLE_ERROR_CODES:
        return True
    message = str(error)
    lowered = message.lower()
    if any(marker in lowered for marker in TRANSIENT_MESSAGE_MARKERS):
        return True
    return any(code in message for code in RETRYABLE_ERROR_CODES)


def calculate_delay(attempt: int, config: RetryConfig = DEFAULT_RETRY_CONFIG) -> int:
    """Exponential backoff in milliseconds with +/- jitter, capped at max_delay_ms."""
    capped = min(config.base_delay_ms * (2 ** attempt), config.max_delay_ms)
    jitter = capped * config.jitter * (random.random() * 2 - 1)
    return max(0, min(round(capped + jitter), config.max_delay_ms))


def extract_retry_after(error: Optional[BaseException]) -> Optional[int]:
    """Server-advised wait in milliseconds from a Retry-After header, if any."""
    headers = getattr(error, "headers", None) or {}
    raw = headers.get("retry-after")
    if raw is None:
        return None
    raw = str(raw).strip()
    if raw.isdigit():
        return int(raw) * 1000
    try:
        when = parsedate_to_datetime(raw)
    except (TypeError, ValueError):
        return None
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    delta = (when - datetime.now(timezone.utc)).total_seconds()
    return max(0, round(delta * 1000))


def error_context(error: Optional[BaseException], attempt: int, max_retries: int) -> str:
    parts = []
    status = getattr(error, "status_code", None)
    if status == 429:
        parts.append("Rate limit exceeded. ")
    elif status == 503:
        parts.append("Service temporarily unavailable. ")
    elif status in (502, 504):
        parts.append("Server gateway error. ")
    elif getattr(error, "code", None) == "ECONNREFUSED":
        parts.append("Connection refused. ")
    if attempt > 0:
        parts.append(f"Failed after {attempt + 1} attempt(s). ")
    return "".join(parts)


__all__ = [
    "DEFAULT_RETRY_CONFIG",
    "RETRYABLE_ERROR_CODES",
    "RETRYABLE_STATUS_CODES",
    "RetryConfig",
    "calculate_delay",
    "error_context",
    "extract_retry_after",
    "is_retryable_error",
]
