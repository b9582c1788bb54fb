"""Tests for /api/challenges."""

from datetime import datetime, timedelta

from goalcast.models import FeedItem, Goal


def _challenge_payload(**overrides):
    start = datetime.utcnow() - timedelta(days=1)
    payload = {
        "title": "30 Day Push-ups",
        "description": "Push-ups every day",
        "type": "recurring",
        "start_date": start.isoformat(),
        "end_date": (start + timedelta(days=30)).isoformat(),
        "tags": ["fitness"],
    }
    payload.update(overrides)
    return payload


def create_challenge(client, **overrides):
    response = client.post("/api/challenges", json=_challenge_payload(**overrides))
    assert response.status_code == 201, response.text
    return response.json()


class TestCreateAndList:
    def test_create_and_list(self, alice, bob):
        alice_client, alice_user = alice
        bob_client, _ = bob
        challenge = create_challenge(alice_client)
        assert challenge["creator_id"] == alice_user["id"]
        assert challenge["tags"] == ["fitness"]

        listed = bob_client.get("/api/challenges").json()
        assert [c["id"] for c in listed] == [challenge["id"]]
        assert listed[0]["is_participating"] is False
        assert listed[0]["participants_count"] == 0

    def test_end_must_follow_start(self, alice):
        client, _ = alice
        start = datetime(2030, 1, 10)
        payload = _challenge_payload(start_date=start.isoformat(), end_date=(start - timedelta(days=1)).isoformat())
        assert client.post("/api/challenges", json=payload).status_code == 422

    def test_private_challenge_is_hidden(self, alice, bob):
        alice_client, _ = alice
        bob_client, _ = bob
        challenge = create_challenge(alice_client, is_public=False)
        assert bob_client.get("/api/challenges").json() == []
        assert bob_client.get(f"/api/challenges/{challenge['id']}").status_code == 404
        assert alice_client.get(f"/api/challenges/{challenge['id']}").status_code == 200


class TestJoinAndLeave:
    def test_join_creates_goal_and_feed_item(self, alice, bob, db):
        alice_client, _ = alice
        bob_client, bob_user = bob
        challenge = create_challenge(alice_client)

        response = bob_client.post(f"/api/challenges/{challenge['id']}/join")
        assert response.status_code == 201
        goal = db.get(Goal, response.json()["goal_id"])
        assert goal.title == "Complete 30 Day Push-ups"
        assert goal.type == "challenge"
        assert goal.duration == 30
        assert goal.user_id == bob_user["id"]
        assert db.query(FeedItem).filter(FeedItem.type == "challenge_joined").count() == 1

        details = bob_client.get(f"/api/challenges/{challenge['id']}").json()
        assert details["is_participating"] is True
        assert [p["username"] for p in details["participants"]] == ["bob"]
        assert details["creator"]["username"] == "alice"

        assert bob_client.post(f"/api/challenges/{challenge['id']}/join").status_code == 400

    def test_full_challenge(self, alice, bob, make_client):
        alice_client, _ = alice
        bob_client, _ = bob
        carol_client, _ = make_client("carol")
        challenge = create_challenge(alice_client, max_participants=1)
        assert bob_client.post(f"/api/challenges/{challenge['id']}/join").status_code == 201
        response = carol_client.post(f"/api/challenges/{challenge['id']}/join")
        assert response.status_code == 400
        assert response.json()["detail"] == "Challenge is full"

    def test_ended_challenge(self, alice):
        client, _ = alice
        start = datetime.utcnow() - timedelta(days=10)
        challenge = create_challenge(
            client, start_date=start.isoformat(), end_date=(start + timedelta(days=5)).isoformat()
        )
        assert client.post(f"/api/challenges/{challenge['id']}/join").status_code == 400

    def test_leave_marks_goal_failed(self, alice, db):
        client, _ = alice
        challenge = create_challenge(client)
        goal_id = client.post(f"/api/challenges/{challenge['id']}/join").json()["goal_id"]

        assert client.post(f"/api/challenges/{challenge['id']}/leave").status_code == 200
        assert db.get(Goal, goal_id).status == "failed"
        assert client.get(f"/api/challenges/{challenge['id']}").json()["is_participating"] is False
        assert client.post(f"/api/challenges/{challenge['id']}/leave").status_code == 404


class TestUpdatesAndLeaderboard:
    def test_only_participants_post_updates(self, alice, bob):
        alice_client, _ = alice
        bob_client, _ = bob
        challenge = create_challenge(alice_client)
        path = f"/api/challenges/{challenge['id']}/updates"

        assert bob_client.post(path, json={"content": "Day 1 done"}).status_code == 403

        bob_client.post(f"/api/challenges/{challenge['id']}/join")
        assert bob_client.post(path, json={"content": "Day 1 done"}).status_code == 201
        updates = alice_client.get(path).json()
        assert [(u["content"], u["user"]["username"]) for u in updates] == [("Day 1 done", "bob")]

    def test_leaderboard_uses_live_progress(self, alice, bob):
        alice_client, _ = alice
        bob_client, _ = bob
        challenge = create_challenge(alice_client)
        alice_goal = alice_client.post(f"/api/challenges/{challenge['id']}/join").json()["goal_id"]
        bob_client.post(f"/api/challenges/{challenge['id']}/join")

        for _ in range(3):
            alice_client.post("/api/checkins", json={"goal_id": alice_goal})

        board = bob_client.get(f"/api/challenges/{challenge['id']}/leaderboard").json()
        assert board["count"] == 2
        first, second = board["items"]
        assert (first["rank"], first["user"]["username"], first["progress"], first["streak"]) == (1, "alice", 10, 3)
        assert (second["rank"], second["user"]["username"], second["progress"]) == (2, "bob", 0)

        details = alice_client.get(f"/api/challenges/{challenge['id']}").json()
        assert details["progress"] == 10

    def test_spotlight_counts_participants(self, alice, bob):
        alice_client, _ = alice
        bob_client, _ = bob
        quiet = create_challenge(alice_client, title="Quiet")
        busy = create_challenge(alice_client, title="Busy")
        create_challenge(alice_client, title="Hidden", is_public=False)
        for client in (alice_client, bob_client):
            client.post(f"/api/challenges/{busy['id']}/join")

        spotlight = bob_client.get("/api/challenges/spotlight").json()
        assert [c["title"] for c in spotlight] == ["Busy", "Quiet"]
        assert spotlight[0]["participants_count"] == 2
        assert quiet["id"] == spotlight[1]["id"]
