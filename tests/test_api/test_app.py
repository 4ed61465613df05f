"""Tests for application startup and request middleware."""

import re
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from src.api.app import create_app
from src.chat.errors import ConfigurationError
from src.config.settings import get_settings

# UUID v4 regex pattern
UUID_RE = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$")


class TestStartupConfiguration:
    """Missing configuration aborts startup before any request."""

    @pytest.mark.parametrize(
        "missing",
        ["YOUTUBE_API_KEY", "TARGET_CHANNEL_ID", "DATABASE_URL", "SERVICE_NAME"],
    )
    def test_missing_setting_aborts_startup(self, monkeypatch, missing):
        monkeypatch.delenv(missing)
        get_settings.cache_clear()

        app = create_app()
        with pytest.raises(ConfigurationError) as exc_info:
            with TestClient(app):
                pass

        assert missing in exc_info.value.missing

    def test_local_only_does_not_need_service_name(self, monkeypatch):
        monkeypatch.delenv("SERVICE_NAME")
        monkeypatch.setenv("LOCAL_ONLY", "true")
        get_settings.cache_clear()

        with TestClient(create_app()) as client:
            assert client.get("/").status_code == 200

    def test_tracing_requires_project(self, monkeypatch):
        monkeypatch.setenv("TRACING_ENABLED", "true")
        monkeypatch.delenv("GOOGLE_CLOUD_PROJECT", raising=False)
        get_settings.cache_clear()

        with pytest.raises(ConfigurationError) as exc_info:
            with TestClient(create_app()):
                pass

        assert exc_info.value.missing == ["GOOGLE_CLOUD_PROJECT"]


class TestCorrelationIdMiddleware:
    """Test X-Request-ID middleware behavior."""

    def test_generates_uuid_when_no_header(self, client):
        resp = client.get("/health")

        assert UUID_RE.match(resp.headers["X-Request-ID"])

    def test_echoes_custom_request_id(self, client):
        resp = client.get("/health", headers={"X-Request-ID": "custom-id-123"})
        assert resp.headers["X-Request-ID"] == "custom-id-123"

    def test_echoes_correlation_id(self, client):
        resp = client.get("/health", headers={"X-Correlation-ID": "corr-456"})
        assert resp.headers["X-Request-ID"] == "corr-456"

    def test_spans_flushed_after_each_request(self, client):
        with patch("src.api.app.force_flush") as flush:
            client.post("/chat")
            client.get("/health")

        assert flush.call_count == 2
