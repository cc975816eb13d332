"""Tool catalogue exposed by the gateway."""

from __future__ import annotations

from . import bulk, custom_objects, engagement, records, search
from .registry import Tool, ToolRegistry, ToolResult


def build_registry() -> ToolRegistry:
    registry = ToolRegistry()
    for module in (records, bulk, search, custom_objects, engagement):
        module.register(registry)
    return registry


__all__ = ["Tool", "ToolRegistry", "ToolResult", "build_registry"]
