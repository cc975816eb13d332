"""Result types for best-effort and per-item CRM operations."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class OutcomeKind(str, Enum):
    FOUND = "found"
    EMPTY = "empty"
    FAILED = "failed"


@dataclass(frozen=True)
class CallOutcome:
    """Outcome of one fallible sub-call: a value, nothing, or an error."""

    kind: OutcomeKind
    value: Any = None
    error: Optional[BaseException] = None

    @classmethod
    def of(cls, value: Any) -> "CallOutcome":
        if value is None or value == {} or value == []:
            return cls(OutcomeKind.EMPTY, value)
        return cls(OutcomeKind.FOUND, value)

    @classmethod
    def failure(cls, error: BaseException) -> "CallOutcome":
        return cls(OutcomeKind.FAILED, error=error)

    @property
    def failed(self) -> bool:
        return self.kind is OutcomeKind.FAILED

    @property
    def empty(self) -> bool:
        return self.kind is OutcomeKind.EMPTY


@dataclass(frozen=True)
class BatchItemResult:
    success: bool
    data: Any = None
    error: Optional[str] = None
    item: Any = None

    @classmethod
    def ok(cls, data: Any) -> "BatchItemResult":
        return cls(success=True, data=data)

    @classmethod
    def failed(cls, error: str, item: Any) -> "BatchItemResult":
        return cls(success=False, error=error, item=item)

    def to_dict(self) -> Dict[str, Any]:
        if self.success:
            return {"success": True, "data": self.data}
        return {"success": False, "error": self.error, "item": self.item}


__all__ = ["BatchItemResult", "CallOutcome", "OutcomeKind"]
