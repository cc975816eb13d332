"""Gateway configuration utilities."""

from __future__ import annotations

import os
from dataclasses import dataclass

from .retry import RetryConfig

SERVER_VERSION = "1.0.0"


@dataclass(frozen=True)
class GatewaySettings:
    host: str = "0.0.0.0"
    port: int = 3000
    log_level: str = "INFO"
    request_timeout: float = 30.0
    max_retries: int = 3
    base_delay_ms: int = 1000
    max_delay_ms: int = 30000
    server_name: str = "crm-gateway"
    server_version: str = SERVER_VERSION

    @classmethod
    def from_env(cls) -> "GatewaySettings":
        return cls(
            host=os.environ.get("GATEWAY_HOST", "0.0.0.0"),
            port=int(os.environ.get("GATEWAY_PORT", "3000")),
            log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
            request_timeout=float(os.environ.get("CRM_REQUEST_TIMEOUT", "30.0")),
            max_retries=int(os.environ.get("CRM_MAX_RETRIES", "3")),
            base_delay_ms=int(os.environ.get("CRM_RETRY_BASE_DELAY_MS", "1000")),
            max_delay_ms=int(os.environ.get("CRM_RETRY_MAX_DELAY_MS", "30000")),
            server_name=os.environ.get("GATEWAY_SERVER_NAME", "crm-gateway"),
        )

    def retry_config(self) -> RetryConfig:
        return RetryConfig(
            max_retries=self.max_retries,
            base_delay_ms=self.base_delay_ms,
            max_delay_ms=self.max_delay_ms,
        )


settings = GatewaySettings.from_env()

__all__ = ["GatewaySettings", "SERVER_VERSION", "settings"]
