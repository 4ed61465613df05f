"""Tests for the /chat ingestion trigger."""

from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient
from prometheus_client import REGISTRY

from src.api.app import create_app
from src.api.dependencies import get_chat_watcher_service
from src.api.routes.health import get_optional_database
from src.chat.errors import ChatFetchError, SentimentError, StorageError
from src.observability.logging import request_logger
from src.services.chat_watcher import WatchResult


def _invocations(outcome: str) -> float:
    return REGISTRY.get_sample_value(
        "chat_watcher_invocations_total", {"outcome": outcome}
    ) or 0.0


class TestChatTrigger:
    """Successful invocations."""

    def test_post_default_span(self, client, mock_chat_watcher):
        resp = client.post("/chat")

        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "ok"
        assert data["stored"] == 2
        assert data["sources"][0]["source_id"] == "vid_live"
        assert data["sources"][0]["negative"] == 1
        assert mock_chat_watcher.run.await_args.args[0] == 60

    def test_get_with_span(self, client, mock_chat_watcher):
        resp = client.get("/chat", params={"span": "30"})

        assert resp.status_code == 200
        assert mock_chat_watcher.run.await_args.args[0] == 30

    def test_logger_passed_to_service(self, client, mock_chat_watcher):
        client.post("/chat", headers={"X-Request-ID": "req-1"})

        assert mock_chat_watcher.run.await_args.kwargs["log"] is not None

    def test_noop_is_200(self, client, mock_chat_watcher):
        mock_chat_watcher.run.return_value = WatchResult(status="noop", span=60)

        resp = client.post("/chat")

        assert resp.status_code == 200
        assert resp.json() == {"status": "noop", "span": 60, "stored": 0, "sources": []}

    def test_request_id_echoed(self, client):
        resp = client.post("/chat", headers={"X-Request-ID": "sched-42"})
        assert resp.headers["X-Request-ID"] == "sched-42"

    def test_generated_request_id_bound_to_logger(self, client):
        with patch(
            "src.api.routes.chat.request_logger", wraps=request_logger
        ) as build_logger:
            resp = client.post("/chat")

        generated = resp.headers["X-Request-ID"]
        assert generated
        assert build_logger.call_args.kwargs["request_id"] == generated

    def test_header_request_id_bound_to_logger(self, client):
        with patch(
            "src.api.routes.chat.request_logger", wraps=request_logger
        ) as build_logger:
            client.post("/chat", headers={"X-Request-ID": "sched-42"})

        assert build_logger.call_args.kwargs["request_id"] == "sched-42"


class TestInvalidSpan:
    """Bad span values are rejected before any collaborator is used."""

    @pytest.mark.parametrize("span", ["abc", "-1", "10081", "1.5"])
    def test_rejected_with_400(self, client, mock_chat_watcher, span):
        before = _invocations("invalid")

        resp = client.post("/chat", params={"span": span})

        assert resp.status_code == 400
        assert "span" in resp.json()["detail"]
        mock_chat_watcher.run.assert_not_called()
        assert _invocations("invalid") == before + 1

    def test_max_span_accepted(self, client, mock_chat_watcher):
        resp = client.post("/chat", params={"span": "10080"})

        assert resp.status_code == 200
        assert mock_chat_watcher.run.await_args.args[0] == 10080


class TestCollaboratorFailure:
    """Collaborator failures map to 500 with stage and source."""

    @pytest.mark.parametrize(
        "error,stage,source_id",
        [
            (ChatFetchError("quota exceeded", source_id="vid_live"), "fetch", "vid_live"),
            (SentimentError("scorer down", source_id="vid_up"), "classify", "vid_up"),
            (StorageError("db down", stage="watermark"), "watermark", None),
            (StorageError("db down"), "insert", None),
        ],
    )
    def test_500_body(self, client, mock_chat_watcher, error, stage, source_id):
        mock_chat_watcher.run.side_effect = error
        before = _invocations("error")

        resp = client.post("/chat")

        assert resp.status_code == 500
        body = resp.json()
        assert body["detail"] == "Chat ingestion failed"
        assert body["stage"] == stage
        assert body["source_id"] == source_id
        assert _invocations("error") == before + 1

    def test_unexpected_error_is_internal(self, mock_chat_watcher, mock_database):
        mock_chat_watcher.run.side_effect = KeyError("boom")
        app = create_app()
        app.dependency_overrides[get_chat_watcher_service] = lambda: mock_chat_watcher
        app.dependency_overrides[get_optional_database] = lambda: mock_database

        with TestClient(app, raise_server_exceptions=False) as client:
            resp = client.post("/chat")

        assert resp.status_code == 500
        assert resp.json() == {"detail": "Internal server error", "error_type": "internal"}
