"""
Tests for structured logging configuration and request context helpers.
"""

import logging

import pytest
import structlog
from structlog.contextvars import get_contextvars

from apps.core.logging import (
    REDACTED,
    _redact_secrets,
    bind_member_context,
    bind_tenant_context,
    clear_contextvars,
    configure_logging,
    get_logger,
)


@pytest.fixture(autouse=True)
def clean_context():
    clear_contextvars()
    yield
    clear_contextvars()


class TestConfigureLogging:
    @pytest.mark.parametrize("json_format", [True, False])
    def test_configures_structlog(self, json_format: bool) -> None:
        configure_logging(json_format=json_format, log_level="DEBUG")

        assert structlog.is_configured()

    def test_quiets_http_clients(self) -> None:
        configure_logging(json_format=True, log_level="INFO")

        assert logging.getLogger("httpx").level == logging.WARNING
        assert logging.getLogger("openai").level == logging.WARNING


class TestRequestContext:
    def test_tenant_bound(self) -> None:
        bind_tenant_context("bunga-mawar")

        assert get_contextvars()["tenant"] == "bunga-mawar"

    def test_platform_host_binds_nothing(self) -> None:
        bind_tenant_context(None)

        assert "tenant" not in get_contextvars()

    def test_local_member(self) -> None:
        bind_member_context("owner@bungamawar.com", user_id=7, role="owner")

        ctx = get_contextvars()
        assert ctx["usr.email"] == "owner@bungamawar.com"
        assert ctx["usr.id"] == "7"
        assert ctx["usr.role"] == "owner"

    def test_identity_before_onboarding(self) -> None:
        bind_member_context("new@example.com")

        ctx = get_contextvars()
        assert ctx["usr.email"] == "new@example.com"
        assert "usr.id" not in ctx
        assert "usr.role" not in ctx

    def test_clear(self) -> None:
        bind_tenant_context("bunga-mawar")
        clear_contextvars()

        assert get_contextvars() == {}


class TestRedaction:
    def test_masks_tokens(self) -> None:
        event = _redact_secrets(None, "info", {"event": "x", "session_jwt": "eyJ...", "slug": "toko"})

        assert event["session_jwt"] == REDACTED
        assert event["slug"] == "toko"

    def test_leaves_empty_values(self) -> None:
        event = _redact_secrets(None, "info", {"event": "x", "api_key": ""})

        assert event["api_key"] == ""


class TestLogOutput:
    def test_event_carries_context_and_hides_secret(self, capsys) -> None:
        configure_logging(json_format=True, log_level="DEBUG")
        bind_tenant_context("bunga-mawar")

        get_logger("tests.logging").info("slug_checked", password="hunter2")

        output = capsys.readouterr().out
        assert '"event": "slug_checked"' in output
        assert '"tenant": "bunga-mawar"' in output
        assert "hunter2" not in output
        assert '"service": "whatthepack"' in output
