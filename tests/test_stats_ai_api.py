"""Tests for /api/stats, /api/ai, health checks and the /ws endpoint."""

import threading
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from api_main import app
from conftest import create_goal
from goalcast.api.stats import check_in_rate_status, percent_change
from goalcast.config import settings


class TestStats:
    def test_empty_stats(self, alice):
        client, _ = alice
        stats = client.get("/api/stats").json()
        assert stats["active_goals"] == {"count": 0, "limit": 2}
        assert stats["current_streak"]["days"] == 0
        assert stats["check_in_rate"] == {"percentage": 0, "status": "At risk"}
        assert stats["social_engagement"]["count"] == 0

    def test_stats_reflect_activity(self, alice, bob):
        alice_client, _ = alice
        bob_client, _ = bob
        goal = create_goal(alice_client)
        for done in (True, True, True, False):
            alice_client.post("/api/checkins", json={"goal_id": goal["id"], "is_completed": done})

        item_id = bob_client.get("/api/feed").json()[0]["id"]
        bob_client.post(f"/api/feed/{item_id}/clap", json={"action": "clap"})
        alice_client.post(f"/api/feed/{item_id}/like", json={"action": "like"})

        stats = alice_client.get("/api/stats").json()
        assert stats["active_goals"]["count"] == 1
        assert stats["current_streak"]["days"] == 1
        assert stats["check_in_rate"] == {"percentage": 75, "status": "Falling behind"}
        assert stats["social_engagement"]["count"] == 1
        assert stats["social_engagement"]["this_week"] == 1
        assert stats["social_engagement"]["percent_change"] == 100

    @pytest.mark.parametrize("rate, status", [(100, "On track"), (80, "On track"), (79, "Falling behind"), (50, "Falling behind"), (49, "At risk")])
    def test_check_in_rate_status(self, rate, status):
        assert check_in_rate_status(rate) == status

    def test_percent_change(self):
        assert percent_change(0, 0) == 0
        assert percent_change(5, 0) == 100
        assert percent_change(6, 4) == 50
        assert percent_change(1, 4) == -75


class TestEnhanceNote:
    def test_requires_note(self, alice):
        client, _ = alice
        assert client.post("/api/ai/enhance-note", json={"note": "  "}).status_code == 400

    def test_unconfigured_key(self, alice):
        client, _ = alice
        assert client.post("/api/ai/enhance-note", json={"note": "ran 5k"}).status_code == 503

    def test_returns_model_output(self, alice, monkeypatch):
        client, _ = alice
        monkeypatch.setattr(settings, "OPENAI_API_KEY", "sk-test")
        completion = MagicMock()
        completion.choices = [MagicMock(message=MagicMock(content="Ran a strong 5k this morning!"))]
        fake_client = MagicMock()
        fake_client.chat.completions.create = AsyncMock(return_value=completion)

        with patch("goalcast.services.ai.AsyncOpenAI", return_value=fake_client):
            response = client.post("/api/ai/enhance-note", json={"note": "ran 5k"})

        assert response.status_code == 200
        assert response.json() == {"enhanced_note": "Ran a strong 5k this morning!"}
        kwargs = fake_client.chat.completions.create.call_args.kwargs
        assert kwargs["max_tokens"] == 150
        assert kwargs["temperature"] == 0.7
        assert kwargs["messages"][-1] == {"role": "user", "content": "ran 5k"}

    def test_upstream_failure_is_bad_gateway(self, alice, monkeypatch):
        client, _ = alice
        monkeypatch.setattr(settings, "OPENAI_API_KEY", "sk-test")
        fake_client = MagicMock()
        fake_client.chat.completions.create = AsyncMock(side_effect=RuntimeError("rate limited"))
        with patch("goalcast.services.ai.AsyncOpenAI", return_value=fake_client):
            response = client.post("/api/ai/enhance-note", json={"note": "ran 5k"})
        assert response.status_code == 502

    def test_requires_session(self, client):
        assert client.post("/api/ai/enhance-note", json={"note": "ran 5k"}).status_code == 401


def receive_within(ws, timeout=5.0):
    """Read one JSON frame, failing instead of blocking when none arrives."""
    frames = []
    reader = threading.Thread(target=lambda: frames.append(ws.receive_json()), daemon=True)
    reader.start()
    reader.join(timeout)
    assert frames, f"no frame received within {timeout}s"
    return frames[0]


class TestRealtime:
    def test_auth_broadcasts_to_all_sockets(self):
        with TestClient(app) as client:
            with client.websocket_connect("/ws") as first:
                with client.websocket_connect("/ws") as second:
                    first.send_json({"type": "auth", "userId": 7})
                    assert receive_within(first) == {"type": "onlineUsers", "users": [7]}
                    assert receive_within(second) == {"type": "onlineUsers", "users": [7]}

                    second.send_text("garbage")
                    second.send_json({"type": "auth", "userId": 9})
                    assert receive_within(first) == {"type": "onlineUsers", "users": [7, 9]}
                    assert receive_within(second) == {"type": "onlineUsers", "users": [7, 9]}

                assert receive_within(first) == {"type": "onlineUsers", "users": [7]}

        assert app.state.presence.online_user_ids() == []

    def test_closing_socket_notifies_remaining_peers(self):
        with TestClient(app) as client:
            with client.websocket_connect("/ws") as stays:
                stays.send_json({"type": "auth", "userId": 7})
                assert receive_within(stays) == {"type": "onlineUsers", "users": [7]}

                with client.websocket_connect("/ws") as leaves:
                    leaves.send_json({"type": "auth", "userId": 9})
                    assert receive_within(stays) == {"type": "onlineUsers", "users": [7, 9]}
                    assert receive_within(leaves) == {"type": "onlineUsers", "users": [7, 9]}

                assert receive_within(stays) == {"type": "onlineUsers", "users": [7]}
                assert app.state.presence.online_user_ids() == [7]
                assert app.state.presence.connection_count() == 1


class TestHealthChecks:
    def test_ping(self, client):
        body = client.get("/api/ping").json()
        assert body["message"] == "pong"
        assert "timestamp" in body

    def test_health(self, client):
        assert client.get("/health/live").json() == {"status": "alive"}
        assert client.get("/health/ready").json() == {"status": "ready"}
