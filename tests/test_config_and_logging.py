"""Configuration loading and structured logging helpers."""

from __future__ import annotations

import json
import logging

import pytest

from closet_app import metrics
from closet_app.config import DEFAULT_GEMINI_MODEL, ClosetConfig
from closet_app.logging_config import JsonFormatter, correlation_context, redact_for_log
from tools.observability import instrument_operation

_CONFIG_KEYS = (
    "APP_ENV",
    "APP_CONFIG_PATH",
    "GOOGLE_API_KEY",
    "STORAGE_ROOT",
    "INDEX_DB_PATH",
    "MODEL",
    "RETRY_ATTEMPTS",
    "ANALYSIS_TIMEOUT_SECONDS",
)


def _clear_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in _CONFIG_KEYS:
        monkeypatch.delenv(key, raising=False)


def test_defaults_without_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    _clear_env(monkeypatch)

    config = ClosetConfig.from_env()

    assert config.storage_root == "data/blobs"
    assert config.wishlist_namespace_root == "images/wishlist"
    assert config.model == DEFAULT_GEMINI_MODEL
    assert config.api_key is None
    assert config.retry_attempts == 3


def test_yaml_file_is_overridden_by_environment(tmp_path, monkeypatch: pytest.MonkeyPatch) -> None:
    (tmp_path / "staging.yaml").write_text(
        "# staging overrides\n"
        'storage_root: "/srv/closet"\n'
        "retry_attempts: 5\n"
        "analysis_timeout_seconds: 7.5\n"
    )
    _clear_env(monkeypatch)
    monkeypatch.setenv("APP_ENV", "staging")
    monkeypatch.setenv("CLOSET_CONFIG_DIR", str(tmp_path))
    monkeypatch.setenv("RETRY_ATTEMPTS", "2")
    monkeypatch.setenv("GOOGLE_API_KEY", "secret")

    config = ClosetConfig.from_env()

    assert config.environment == "staging"
    assert config.storage_root == "/srv/closet"
    assert config.analysis_timeout_seconds == 7.5
    assert config.retry_attempts == 2
    assert config.api_key == "secret"


def test_redaction_masks_owner_data() -> None:
    scrubbed = redact_for_log(
        {
            "owner_id": "user-123",
            "image_url": "https://cdn.example/a.jpg",
            "nested": {"contact": "someone@example.com", "link": "memory://closet/x"},
            "count": 3,
        }
    )

    assert scrubbed == {
        "owner_id": "[redacted]",
        "image_url": "[redacted]",
        "nested": {"contact": "[redacted-email]", "link": "[redacted-url]"},
        "count": 3,
    }


def test_json_formatter_includes_correlation_id() -> None:
    record = logging.LogRecord("closet", logging.INFO, __file__, 1, "records_assembled", None, None)
    record.count = 2

    with correlation_context("corr-1"):
        payload = json.loads(JsonFormatter().format(record))

    assert payload["correlation_id"] == "corr-1"
    assert payload["event"] == "records_assembled"
    assert payload["count"] == 2


@pytest.mark.asyncio
async def test_instrument_operation_counts_outcomes() -> None:
    @instrument_operation("demo")
    async def succeed() -> str:
        return "done"

    @instrument_operation("demo")
    async def fail() -> None:
        raise RuntimeError("boom")

    assert await succeed() == "done"
    with pytest.raises(RuntimeError):
        await fail()

    assert metrics.get_metrics()["demo.completed"] == 1
    assert metrics.get_metrics()["demo.failed"] == 1
