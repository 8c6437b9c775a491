"""Tests for the control server endpoints."""

import json

import pytest
from unittest.mock import AsyncMock, patch


@pytest.fixture
def client(tmp_path, monkeypatch):
    from fastapi.testclient import TestClient
    from responder.server import app

    for var in ("FIGMA_ACCESS_TOKEN", "ANTHROPIC_API_KEY", "RESPONDER_POLL_INTERVAL", "RESPONDER_TRIGGER"):
        monkeypatch.delenv(var, raising=False)

    config_file = tmp_path / "config.json"
    with patch("responder.common.config.CONFIG_DIR", tmp_path), \
            patch("responder.common.config.CONFIG_PATH", config_file), \
            patch("responder.common.ledger.LEDGER_PATH", tmp_path / "processed_comments.json"), \
            patch("responder.sync.poller.PollCycleRunner.run_cycle", new=AsyncMock()):
        with TestClient(app) as test_client:
            yield test_client


def _configure(client, files=("AbC123",)):
    response = client.put("/settings", json={"figma_token": "figd_x", "anthropic_key": "sk-x"})
    assert response.status_code == 200
    for file_key in files:
        client.post("/files", json={"file_key": file_key})


class TestParseFileKey:
    @pytest.mark.parametrize("value,expected", [
        ("AbC123", "AbC123"),
        ("https://www.figma.com/file/AbC123/Checkout?node-id=1-2", "AbC123"),
        ("https://www.figma.com/design/XyZ789/My-File", "XyZ789"),
        ("  AbC123  ", "AbC123"),
        ("not a key!", None),
        ("https://example.com/design/AbC123", None),
    ])
    def test_parse(self, value, expected):
        from responder.server import parse_file_key
        assert parse_file_key(value) == expected


class TestHealthAndStatus:
    def test_health(self, client):
        data = client.get("/health").json()
        assert data["status"] == "healthy"
        assert data["initialized"] is True
        assert data["running"] is False

    def test_status(self, client):
        data = client.get("/status").json()
        assert data["active"] is False
        assert data["comments_processed"] == 0


class TestSettings:
    def test_defaults_hide_secrets(self, client):
        data = client.get("/settings").json()
        assert data["has_credentials"] is False
        assert data["trigger"] == "@ai"
        assert "figma_token" not in data

    def test_update_persists(self, client, tmp_path):
        response = client.put("/settings", json={
            "figma_token": "figd_x",
            "anthropic_key": "sk-x",
            "polling_interval": 45,
            "trigger": "@Claude",
            "notifications_enabled": False,
        })
        data = response.json()
        assert data["has_credentials"] is True
        assert data["polling_interval"] == 45
        assert data["trigger"] == "@claude"

        saved = json.loads((tmp_path / "config.json").read_text())
        assert saved["figma"]["access_token"] == "figd_x"
        assert saved["polling"]["notifications_enabled"] is False
        assert saved["setup_complete"] is True

    def test_rejects_non_positive_interval(self, client):
        assert client.put("/settings", json={"polling_interval": 0}).status_code == 422

    def test_rejects_blank_trigger(self, client):
        response = client.put("/settings", json={"trigger": "   ", "polling_interval": 90})
        assert response.status_code == 400
        data = client.get("/settings").json()
        assert data["trigger"] == "@ai"
        assert data["polling_interval"] == 30


class TestFiles:
    def test_add_list_remove(self, client):
        response = client.post("/files", json={"file_key": "https://www.figma.com/design/XyZ789/Home"})
        assert response.json()["file_key"] == "XyZ789"
        assert response.json()["added"] is True

        again = client.post("/files", json={"file_key": "XyZ789"})
        assert again.json()["added"] is False

        assert client.get("/files").json()["files"] == ["XyZ789"]
        assert client.delete("/files/XyZ789").status_code == 200
        assert client.get("/files").json()["files"] == []

    def test_invalid_key(self, client):
        assert client.post("/files", json={"file_key": "not a key!"}).status_code == 400

    def test_remove_unknown(self, client):
        assert client.delete("/files/nope").status_code == 404


class TestPolling:
    def test_start_without_credentials(self, client):
        response = client.post("/polling/start")
        assert response.status_code == 409
        assert response.json()["detail"] == "Missing API credentials"

    def test_start_without_files(self, client):
        _configure(client, files=())
        response = client.post("/polling/start")
        assert response.status_code == 409
        assert response.json()["detail"] == "No files to monitor"

    def test_start_and_stop(self, client):
        _configure(client)

        started = client.post("/polling/start")
        assert started.status_code == 200
        assert started.json()["status"]["active"] is True
        assert client.get("/health").json()["running"] is True

        stopped = client.post("/polling/stop")
        assert stopped.json()["status"]["active"] is False

    def test_poll_now(self, client):
        assert client.post("/polling/poll-now").status_code == 409

        _configure(client)
        with patch("responder.sync.scheduler.Scheduler.poll_now", new=AsyncMock(return_value=True)) as poll:
            response = client.post("/polling/poll-now")
        assert response.json() == {"queued": True}
        poll.assert_awaited_once()


class TestValidation:
    def test_figma_token_valid(self, client):
        with patch("responder.server.FigmaClient.get_current_user",
                   new=AsyncMock(return_value={"handle": "ann"})):
            data = client.post("/validate/figma-token", json={"token": "figd_x"}).json()
        assert data == {"valid": True, "handle": "ann"}

    def test_figma_token_invalid(self, client):
        from responder.figma.client import FigmaAPIError
        with patch("responder.server.FigmaClient.get_current_user",
                   new=AsyncMock(side_effect=FigmaAPIError(403, "Forbidden"))):
            data = client.post("/validate/figma-token", json={"token": "bad"}).json()
        assert data == {"valid": False}

    def test_anthropic_key(self, client):
        with patch("responder.server.verify_api_key", new=AsyncMock(return_value=False)):
            data = client.post("/validate/anthropic-key", json={"token": "sk-bad"}).json()
        assert data == {"valid": False}
