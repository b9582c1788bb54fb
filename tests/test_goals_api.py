"""Tests for /api/goals and /api/checkins."""

from datetime import datetime, timedelta

from conftest import create_goal
from goalcast.crud.users import get_user_by_username
from goalcast.models import FeedItem, Goal


class TestGoals:
    def test_create_goal_derives_end_date_and_progress(self, alice):
        client, _ = alice
        start = datetime(2030, 1, 31, 9, 0)
        goal = create_goal(client, duration=1, duration_unit="months", start_date=start.isoformat())

        assert goal["end_date"].startswith("2030-02-28T09:00")
        assert goal["status"] == "active"
        assert goal["progress"]["total_days"] == 28
        assert goal["progress"]["weekly_progress"] == [False] * 7
        assert goal["progress_error"] is None

    def test_aware_start_date_is_stored_as_utc(self, alice):
        client, _ = alice
        goal = create_goal(client, start_date="2030-01-01T10:00:00+02:00")
        assert goal["start_date"] == "2030-01-01T08:00:00"

    def test_public_goal_creates_feed_item(self, alice, db):
        client, _ = alice
        goal = create_goal(client, title="Read 20 pages")
        items = db.query(FeedItem).filter(FeedItem.goal_id == goal["id"]).all()
        assert [i.type for i in items] == ["goal_created"]

    def test_private_goal_creates_no_feed_item(self, alice, db):
        client, _ = alice
        goal = create_goal(client, visibility="private")
        assert db.query(FeedItem).filter(FeedItem.goal_id == goal["id"]).count() == 0

    def test_invalid_payloads(self, alice):
        client, _ = alice
        assert client.post("/api/goals", json={"title": "x", "duration": 0}).status_code == 422
        assert client.post("/api/goals", json={"title": "x", "duration": 5, "duration_unit": "years"}).status_code == 422
        assert client.post("/api/goals", json={"title": "x", "duration": 5, "type": "sometimes"}).status_code == 422
        assert client.post("/api/goals", json={"title": "   ", "duration": 5}).status_code == 422

    def test_end_before_start_is_rejected(self, alice):
        client, _ = alice
        response = client.post(
            "/api/goals",
            json={"title": "Backwards", "duration": 5, "start_date": "2030-01-10T00:00:00", "end_date": "2030-01-01T00:00:00"},
        )
        assert response.status_code == 400

    def test_free_tier_limit(self, alice):
        client, _ = alice
        create_goal(client, title="One")
        create_goal(client, title="Two")
        response = client.post("/api/goals", json={"title": "Three", "duration": 10})
        assert response.status_code == 403

    def test_premium_users_skip_limit(self, alice, db):
        client, _ = alice
        user = get_user_by_username(db, "alice")
        user.premium = True
        db.commit()
        for title in ("One", "Two", "Three"):
            create_goal(client, title=title)
        assert len(client.get("/api/goals/active").json()) == 3

    def test_completed_goals_free_a_slot(self, alice):
        client, _ = alice
        first = create_goal(client, title="One")
        create_goal(client, title="Two")
        assert client.patch(f"/api/goals/{first['id']}", json={"status": "completed"}).status_code == 200
        create_goal(client, title="Three")
        assert len(client.get("/api/goals/active").json()) == 2
        assert len(client.get("/api/goals").json()) == 3

    def test_status_change_emits_feed_item(self, alice, db):
        client, _ = alice
        goal = create_goal(client)
        client.patch(f"/api/goals/{goal['id']}", json={"status": "failed"})
        types = [i.type for i in db.query(FeedItem).filter(FeedItem.goal_id == goal["id"]).order_by(FeedItem.id)]
        assert types == ["goal_created", "goal_failed"]

    def test_other_users_goal_is_forbidden(self, alice, bob):
        alice_client, _ = alice
        bob_client, _ = bob
        goal = create_goal(alice_client)
        assert bob_client.get(f"/api/goals/{goal['id']}").status_code == 403
        assert bob_client.patch(f"/api/goals/{goal['id']}", json={"status": "completed"}).status_code == 403
        assert bob_client.get("/api/goals/9999").status_code == 404

    def test_broken_goal_reports_progress_error(self, alice, db):
        client, user = alice
        goal = Goal(
            user_id=user["id"],
            title="Broken",
            type="one-time",
            duration=1,
            duration_unit="days",
            start_date=datetime(2030, 1, 2),
            end_date=datetime(2030, 1, 1),
        )
        db.add(goal)
        db.commit()

        data = client.get(f"/api/goals/{goal.id}").json()
        assert data["progress"] is None
        assert str(goal.id) in data["progress_error"]


class TestCheckIns:
    def test_check_in_updates_progress(self, alice):
        client, _ = alice
        goal = create_goal(client, duration=10)
        response = client.post("/api/checkins", json={"goal_id": goal["id"], "is_completed": True})
        assert response.status_code == 201

        data = client.get(f"/api/goals/{goal['id']}").json()
        assert data["progress"]["days_completed"] == 1
        assert data["progress"]["progress"] == 10
        assert data["progress"]["streak"] == 1
        assert data["progress"]["weekly_progress"][-1] is True
        assert len(client.get(f"/api/goals/{goal['id']}/checkins").json()) == 1
        assert len(client.get("/api/checkins").json()) == 1

    def test_note_creates_feed_item(self, alice, db):
        client, _ = alice
        goal = create_goal(client, title="Learn Python", duration=30)
        client.post("/api/checkins", json={"goal_id": goal["id"], "is_completed": True, "note": "Finished chapter 1"})
        client.post("/api/checkins", json={"goal_id": goal["id"], "is_completed": False, "note": "Too tired"})

        contents = [
            i.content
            for i in db.query(FeedItem).filter(FeedItem.type == "check_in").order_by(FeedItem.id)
        ]
        assert contents == [
            "Day 1/30: Finished chapter 1 #LearnPython",
            "Missed a day on my Learn Python goal, but getting back on track! Too tired",
        ]

    def test_no_note_no_feed_item(self, alice, db):
        client, _ = alice
        goal = create_goal(client)
        client.post("/api/checkins", json={"goal_id": goal["id"], "is_completed": True, "note": "   "})
        assert db.query(FeedItem).filter(FeedItem.type == "check_in").count() == 0

    def test_streak_milestone(self, alice, db):
        client, _ = alice
        goal = create_goal(client, duration=30)
        today = datetime.utcnow().replace(hour=12, minute=0, second=0, microsecond=0)
        for offset in range(6, -1, -1):
            when = (today - timedelta(days=offset)).isoformat()
            client.post("/api/checkins", json={"goal_id": goal["id"], "is_completed": True, "date": when})

        milestones = db.query(FeedItem).filter(FeedItem.type == "streak_milestone").all()
        assert [m.content for m in milestones] == ["Reached a 7-day streak!"]

    def test_streak_milestone_counts_days_across_goals(self, alice, db):
        client, _ = alice
        running = create_goal(client, title="Run", duration=30)
        reading = create_goal(client, title="Read", duration=30)
        today = datetime.utcnow().replace(hour=12, minute=0, second=0, microsecond=0)
        for offset in range(6, -1, -1):
            goal = running if offset % 2 else reading
            when = (today - timedelta(days=offset)).isoformat()
            client.post("/api/checkins", json={"goal_id": goal["id"], "is_completed": True, "date": when})

        milestones = db.query(FeedItem).filter(FeedItem.type == "streak_milestone").all()
        assert [(m.content, m.goal_id) for m in milestones] == [("Reached a 7-day streak!", reading["id"])]

    def test_same_day_check_ins_do_not_reach_milestone(self, alice, db):
        client, _ = alice
        goal = create_goal(client, duration=30)
        for _ in range(7):
            client.post("/api/checkins", json={"goal_id": goal["id"], "is_completed": True})
        assert db.query(FeedItem).filter(FeedItem.type == "streak_milestone").count() == 0

    def test_check_in_on_other_users_goal(self, alice, bob):
        alice_client, _ = alice
        bob_client, _ = bob
        goal = create_goal(alice_client)
        assert bob_client.post("/api/checkins", json={"goal_id": goal["id"]}).status_code == 403
        assert bob_client.post("/api/checkins", json={"goal_id": 9999}).status_code == 404

    def test_check_in_on_finished_goal(self, alice):
        client, _ = alice
        goal = create_goal(client)
        client.patch(f"/api/goals/{goal['id']}", json={"status": "completed"})
        assert client.post("/api/checkins", json={"goal_id": goal["id"]}).status_code == 400
