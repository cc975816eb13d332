import json
import logging

from apps.crm_gateway.app.config import GatewaySettings
from apps.crm_gateway.app.logging import build_tool_log, log_tool_call


def test_build_tool_log_structure():
    payload = build_tool_log(
        tool="create_company",
        base_url="https://crm.example.com/",
        is_error=False,
        latency=0.0425,
        arguments={"name": "Acme", "domainName": "acme.com"},
    )

    assert payload == {
        "tool": "create_company",
        "crm_host": "crm.example.com",
        "outcome": "ok",
        "latency_ms": 42,
        "argument_keys": ["domainName", "name"],
    }


def test_tool_log_never_contains_argument_values(caplog):
    payload = build_tool_log(
        tool="upsert_person",
        base_url="https://crm.example.com",
        is_error=True,
        latency=0.01,
        arguments={"email": "ada@example.com"},
    )
    with caplog.at_level(logging.INFO, logger="crm_gateway.tools"):
        log_tool_call(payload)

    record = json.loads(caplog.records[-1].getMessage())
    assert record["outcome"] == "error"
    assert "ada@example.com" not in caplog.text


def test_settings_from_env(monkeypatch):
    monkeypatch.setenv("GATEWAY_PORT", "8080")
    monkeypatch.setenv("LOG_LEVEL", "debug")
    monkeypatch.setenv("CRM_MAX_RETRIES", "5")
    monkeypatch.setenv("CRM_RETRY_BASE_DELAY_MS", "250")
    monkeypatch.delenv("CRM_REQUEST_TIMEOUT", raising=False)
    monkeypatch.delenv("CRM_RETRY_MAX_DELAY_MS", raising=False)

    settings = GatewaySettings.from_env()

    assert settings.port == 8080
    assert settings.log_level == "DEBUG"
    assert settings.request_timeout == 30.0
    retry = settings.retry_config()
    assert (retry.max_retries, retry.base_delay_ms, retry.max_delay_ms) == (5, 250, 30000)
