"""Structured logging for tool invocations."""

from __future__ import annotations

import json
import logging
from typing import Any, Dict
from urllib.parse import urlsplit

logger = logging.getLogger("crm_gateway.tools")


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO))


def build_tool_log(
    *,
    tool: str,
    base_url: str,
    is_error: bool,
    latency: float,
    arguments: Dict[str, Any],
) -> Dict[str, Any]:
    # Only the host is logged; credentials never leave the request.
    return {
        "tool": tool,
        "crm_host": urlsplit(base_url).netloc or base_url,
        "outcome": "error" if is_error else "ok",
        "latency_ms": max(int(latency * 1000), 0),
        "argument_keys": sorted(arguments),
    }


def log_tool_call(payload: Dict[str, Any]) -> None:
    logger.info(json.dumps(payload))


__all__ = ["build_tool_log", "configure_logging", "log_tool_call"]
