"""Error types raised by the CRM client."""

from __future__ import annotations

from typing import Dict, Optional


class CrmApiError(Exception):
    """A failed CRM call: non-2xx response or a transport failure.

    ``status_code`` and ``headers`` are set when the server answered;
    ``code`` is set for connection-level failures (``ECONNREFUSED`` etc.).
    """

    parse_error = False

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        headers: Optional[Dict[str, str]] = None,
        code: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.headers: Dict[str, str] = {k.lower(): v for k, v in (headers or {}).items()}
        self.code = code

    def with_message(self, message: str) -> "CrmApiError":
        return type(self)(message, status_code=self.status_code, headers=self.headers, code=self.code)


class CrmParseError(CrmApiError):
    """Successful status but the body is not valid JSON."""

    parse_error = True


__all__ = ["CrmApiError", "CrmParseError"]
