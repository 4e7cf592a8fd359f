"""
Unit Tests for settings, structured logging and Sentry helpers

Run with: pytest tests/test_config_logging.py -v
"""

import contextvars
import json
import sys
import logging

import pytest

from config import DEV_JWT_SECRET, Settings, get_cors_config
from logging_config import (
    JSONFormatter,
    RequestContextFilter,
    clear_request_context,
    get_request_id,
    set_request_context,
)
from sentry_integration import capture_exception, filter_sensitive_data, init_sentry


def _settings(**overrides) -> Settings:
    values = {
        "ENVIRONMENT": "development",
        "STORAGE_BACKEND": "memory",
        "DATABASE_URL": "",
        "CORS_ORIGINS": "",
        "DEBUG": False,
    }
    values.update(overrides)
    return Settings(**values)


def _record(msg="hello", **extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="services.clients", level=logging.INFO, pathname=__file__,
        lineno=10, msg=msg, args=(), exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestSettings:
    """Computed properties and validation."""

    def test_development_defaults_are_valid(self):
        settings = _settings()
        assert settings.validate_production_config() == []
        assert settings.debug_enabled is True
        assert settings.uses_database is False

    def test_dev_origins_only_outside_production(self):
        assert "http://localhost:3000" in _settings().cors_origins_list
        prod = _settings(
            ENVIRONMENT="production", CORS_ORIGINS="https://app.example.com",
            STORAGE_BACKEND="postgres", DATABASE_URL="postgresql+asyncpg://x/y",
            JWT_SECRET_KEY="x" * 40,
        )
        assert prod.cors_origins_list == ["https://app.example.com"]

    def test_unknown_backend(self):
        errors = _settings(STORAGE_BACKEND="mongo").validate_production_config()
        assert any("STORAGE_BACKEND" in e for e in errors)

    def test_postgres_needs_url(self):
        errors = _settings(STORAGE_BACKEND="postgres").validate_production_config()
        assert errors == ["DATABASE_URL is required for the postgres backend"]

    def test_production_rules(self):
        errors = _settings(
            ENVIRONMENT="production", JWT_SECRET_KEY=DEV_JWT_SECRET,
            CORS_ORIGINS="*", DEBUG=True,
        ).validate_production_config()

        assert "JWT_SECRET_KEY must be changed from default value" in errors
        assert "In-memory storage cannot be used in production" in errors
        assert "CORS_ORIGINS cannot be '*' in production" in errors
        assert "DEBUG should be False in production" in errors

    def test_demo_mode_is_off_by_default(self, monkeypatch):
        monkeypatch.delenv("DEMO_MODE", raising=False)
        assert _settings().DEMO_MODE is False

    def test_production_rejects_demo_mode(self):
        production = dict(
            ENVIRONMENT="production", STORAGE_BACKEND="postgres",
            DATABASE_URL="postgresql+asyncpg://x/y", JWT_SECRET_KEY="x" * 64,
            CORS_ORIGINS="https://app.example.com",
        )
        assert _settings(DEMO_MODE=True, **production).validate_production_config() == [
            "DEMO_MODE must be off in production"
        ]
        assert _settings(DEMO_MODE=False, **production).validate_production_config() == []

    def test_cors_config_allows_drive_token_header(self):
        assert "X-Drive-Access-Token" in get_cors_config()["allow_headers"]


class TestJSONFormatter:
    """One JSON object per record."""

    def test_basic_fields(self):
        data = json.loads(JSONFormatter().format(_record(request_id="req-1", user_id="u1")))
        assert data["message"] == "hello"
        assert data["level"] == "INFO"
        assert data["logger"] == "services.clients"
        assert data["request_id"] == "req-1"
        assert data["user_id"] == "u1"

    def test_audit_fields_are_lifted(self):
        data = json.loads(JSONFormatter().format(_record(event="client.created", success=True, actor_id="u1")))
        assert data["audit"] == {"event": "client.created", "actor_id": "u1", "success": True}
        assert "extra" not in data

    def test_other_extras_are_nested(self):
        data = json.loads(JSONFormatter().format(_record(folder_id="f1")))
        assert data["extra"] == {"folder_id": "f1"}
        assert "audit" not in data

    def test_exception_info(self):
        try:
            raise ValueError("bad")
        except ValueError:
            record = _record()
            record.exc_info = sys.exc_info()

        data = json.loads(JSONFormatter().format(record))
        assert data["exception"]["type"] == "ValueError"
        assert data["exception"]["message"] == "bad"


class TestRequestContextFilter:
    """Request id / user id propagation."""

    def test_filter_sets_and_clears(self):
        context = RequestContextFilter()
        context.set_request_context(request_id="req-9", user_id="u9")
        record = _record()
        assert context.filter(record) is True
        assert (record.request_id, record.user_id) == ("req-9", "u9")

        context.clear_request_context()
        context.filter(record)
        assert record.request_id is None
        assert get_request_id() is None

    def test_values_are_kept_per_context(self):
        set_request_context(request_id="outer")
        contextvars.copy_context().run(set_request_context, request_id="inner")
        assert get_request_id() == "outer"
        clear_request_context()


class TestSentryHelpers:
    """Sentry stays off without a DSN and never ships PII."""

    def test_init_without_dsn(self):
        assert init_sentry("") is False

    def test_capture_without_init(self):
        assert capture_exception(RuntimeError("x"), path="/api") is None

    @pytest.mark.parametrize("key", ["Authorization", "phone", "X-Drive-Access-Token", "message"])
    def test_sensitive_keys_redacted(self, key):
        event = {"request": {"headers": {key: "value", "Accept": "application/json"}}}
        cleaned = filter_sensitive_data(event, {})
        assert cleaned["request"]["headers"][key] == "[REDACTED]"
        assert cleaned["request"]["headers"]["Accept"] == "application/json"

    def test_nested_extra_redacted(self):
        event = {"extra": {"client": {"contact_name": "Maria", "id": "c1"}}}
        cleaned = filter_sensitive_data(event, {})
        assert cleaned["extra"]["client"] == {"contact_name": "[REDACTED]", "id": "c1"}
