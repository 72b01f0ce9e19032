"""
Tests for the HTTP Analyzer REST API, WebSocket channel and sweeper.
"""

import asyncio
from contextlib import suppress

import pytest
from fastapi.testclient import TestClient

from httpanalyzer.api.commands import dispatch_command
from httpanalyzer.main import create_app, run_sweeper


@pytest.fixture
def client(context):
    with TestClient(create_app(context)) as client:
        yield client


def post_request(client, exchange_id: str, url: str, headers: list | None = None):
    return client.post(
        "/api/events/request-started",
        json={"id": exchange_id, "method": "GET", "url": url, "headers": headers or []},
    )


class TestEvents:
    """Lifecycle event ingestion."""

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_request_started(self, client):
        response = post_request(
            client, "r1", "https://example.com/login",
            [{"name": "Authorization", "value": "Bearer t"}],
        )
        body = response.json()
        assert response.status_code == 200
        assert body["accepted"] is True
        assert body["exchange"]["tags"] == ["AUTH"]
        assert body["exchange"]["score"] == 50

    def test_body_and_response(self, client, context):
        post_request(client, "r1", "https://example.com/search")
        client.post("/api/events/request-body", json={"id": "r1", "body": {"password": "x"}})
        response = client.post(
            "/api/events/response-started",
            json={"id": "r1", "status_code": 429, "headers": [{"name": "Server", "value": "gws"}]},
        )
        exchange = response.json()["exchange"]

        assert exchange["response"]["status_line"] == "HTTP 429"
        assert set(exchange["tags"]) == {"SENSITIVE", "TECH", "ERROR", "RATE-LIMIT"}
        assert context.aggregator.count("example.com", "/search") == 1

    def test_ignored_url_not_accepted(self, client):
        response = post_request(client, "r1", "chrome-extension://abc/x")
        assert response.json() == {"accepted": False, "exchange": None}

    def test_invalid_event_rejected(self, client, context):
        response = client.post("/api/events/response-started", json={"id": "r1"})
        assert response.status_code == 422
        assert len(context.store) == 0

    def test_get_exchange(self, client):
        post_request(client, "r1", "https://example.com/")
        assert client.get("/api/exchanges/r1").json()["id"] == "r1"
        assert client.get("/api/exchanges/missing").status_code == 404


class TestPanelSurface:
    """Snapshot, filter, clear, export and rate-limit listing."""

    def test_snapshot_with_domain(self, client):
        post_request(client, "1", "https://example.com/")
        post_request(client, "2", "https://api.example.com/")
        post_request(client, "3", "https://notexample.com/")

        data = client.get("/api/snapshot", params={"domain": "example.com"}).json()["data"]
        assert [item["id"] for item in data] == ["2", "1"]

    def test_blank_domain_uses_active_filter(self, client):
        post_request(client, "1", "https://example.com/")
        post_request(client, "2", "https://other.org/")
        client.put("/api/filter", json={"value": "example.com"})

        body = client.get("/api/snapshot", params={"domain": "  "}).json()

        assert body["filter"] == "example.com"
        assert [item["id"] for item in body["data"]] == ["1"]

    def test_filter_roundtrip(self, client):
        assert client.put("/api/filter", json={"value": "  example.com "}).json()["value"] == "example.com"
        assert client.get("/api/filter").json() == {"value": "example.com"}
        assert client.put("/api/filter", json={"value": ""}).json()["value"] is None

    def test_clear(self, client):
        post_request(client, "1", "https://example.com/")
        assert client.post("/api/clear").json() == {"ok": True, "cleared": 1}
        assert client.get("/api/snapshot").json()["data"] == []

    def test_export_is_attachment(self, client):
        post_request(client, "1", "https://example.com/")
        client.put("/api/filter", json={"value": "other.org"})

        response = client.get("/api/export")

        assert response.status_code == 200
        assert "http_analyzer_export.json" in response.headers["content-disposition"]
        assert response.json()["count"] == 1

    def test_rate_limits(self, client):
        client.post(
            "/api/events/response-started",
            json={"id": "t", "status_code": 429, "url": "https://a.com/x?p=1"},
        )
        body = client.get("/api/rate-limits").json()
        assert body["window_seconds"] == 300
        assert body["keys"] == [{"host": "a.com", "path": "/x", "count": 1}]


class TestCommands:
    """Panel command protocol."""

    def test_known_commands(self, client):
        post_request(client, "1", "https://example.com/")
        assert client.post("/api/command", json={"action": "setFilter", "value": "example.com"}).json() == {
            "ok": True,
            "value": "example.com",
        }
        assert client.post("/api/command", json={"action": "getFilter"}).json()["value"] == "example.com"
        snapshot = client.post("/api/command", json={"action": "snapshot"}).json()
        assert [item["id"] for item in snapshot["data"]] == ["1"]
        exported = client.post("/api/command", json={"action": "export"}).json()
        assert exported["document"]["count"] == 1

    def test_unknown_command_fails_without_mutation(self, client, context):
        post_request(client, "1", "https://example.com/")
        response = client.post("/api/command", json={"action": "setPosition", "value": "left"})
        assert response.json() == {"ok": False, "error": "unknown_action", "action": "setPosition"}
        assert len(context.store) == 1
        assert context.get_filter() is None

    def test_invalid_command(self, client):
        assert client.post("/api/command", json={"value": "x"}).json() == {
            "ok": False,
            "error": "invalid_command",
        }
        assert client.post("/api/command", content=b"not json").json()["ok"] is False

    def test_dispatch_without_http(self, context):
        assert dispatch_command(context, {"action": "clear"}) == {"ok": True, "cleared": 0}
        assert dispatch_command(context, ["clear"])["error"] == "invalid_command"


class TestWebSocket:
    """Panel WebSocket channel."""

    def test_command_roundtrip(self, client):
        with client.websocket_connect("/ws/panel") as ws:
            assert ws.receive_json() == {"type": "connected", "filter": None}

            ws.send_json({"action": "setFilter", "value": "example.com"})
            assert ws.receive_json() == {"type": "result", "data": {"ok": True, "value": "example.com"}}

            ws.send_json({"type": "ping"})
            assert ws.receive_json() == {"type": "pong"}

            ws.send_json({"action": "bogus"})
            assert ws.receive_json()["data"]["ok"] is False

    def test_non_json_text_gets_failure_result(self, client):
        with client.websocket_connect("/ws/panel") as ws:
            ws.receive_json()

            ws.send_text("not json")
            assert ws.receive_json() == {
                "type": "result",
                "data": {"ok": False, "error": "invalid_command"},
            }

            ws.send_json({"action": "getFilter"})
            assert ws.receive_json()["data"] == {"ok": True, "value": None}

    def test_change_is_broadcast_to_other_panels(self, client):
        with client.websocket_connect("/ws/panel") as first, client.websocket_connect("/ws/panel") as second:
            first.receive_json()
            second.receive_json()

            first.send_json({"action": "clear"})
            assert first.receive_json()["type"] == "result"
            assert second.receive_json() == {"type": "changed", "action": "clear"}


class TestSweeper:
    """Periodic rate-limit cleanup."""

    @pytest.mark.asyncio
    async def test_sweeper_prunes_expired_keys(self, context, clock):
        context.response_started("t", 429, url="https://a.com/x")
        clock.advance(301)

        task = asyncio.create_task(run_sweeper(context, 0.01))
        await asyncio.sleep(0.1)
        task.cancel()
        with suppress(asyncio.CancelledError):
            await task

        assert len(context.aggregator) == 0
