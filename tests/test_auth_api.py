"""Tests for the /api/auth routes."""

from datetime import datetime, timedelta
from unittest.mock import MagicMock, patch

from conftest import register
from goalcast.config import settings
from goalcast.crud.users import get_user_by_username


class TestRegisterAndLogin:
    def test_register_signs_in_and_hides_password(self, client):
        user = register(client, "carol", email="carol@example.com")
        assert user["username"] == "carol"
        assert "password" not in user
        assert "password_hash" not in user

        me = client.get("/api/auth/me")
        assert me.status_code == 200
        assert me.json()["id"] == user["id"]
        assert me.json()["email"] == "carol@example.com"

    def test_duplicate_username_is_conflict(self, client, make_client):
        register(client, "carol")
        other, _ = make_client()
        response = other.post("/api/auth/register", json={"username": "carol", "password": "secret123", "full_name": "C"})
        assert response.status_code == 409

    def test_short_password_is_rejected(self, client):
        response = client.post("/api/auth/register", json={"username": "dave", "password": "123", "full_name": "Dave"})
        assert response.status_code == 422

    def test_password_is_hashed(self, client, db):
        register(client, "erin", password="hunter22")
        stored = get_user_by_username(db, "erin")
        assert stored.password_hash != "hunter22"

    def test_login_with_wrong_password(self, client, make_client):
        register(client, "frank", password="correct-horse")
        other, _ = make_client()
        response = other.post("/api/auth/login", json={"username": "frank", "password": "nope"})
        assert response.status_code == 401

    def test_login_then_logout(self, client, make_client):
        register(client, "gina", password="secret123")
        other, _ = make_client()
        assert other.post("/api/auth/login", json={"username": "gina", "password": "secret123"}).status_code == 200
        assert other.get("/api/auth/me").status_code == 200

        assert other.post("/api/auth/logout").status_code == 200
        assert other.get("/api/auth/me").status_code == 401

    def test_protected_routes_need_session(self, client):
        for path in ("/api/goals", "/api/checkins", "/api/feed", "/api/stats", "/api/users"):
            assert client.get(path).status_code == 401


class TestPasswordReset:
    def _configure_mail(self, monkeypatch):
        monkeypatch.setattr(settings, "EMAIL_USER", "noreply@example.com")
        monkeypatch.setattr(settings, "EMAIL_PASSWORD", "app-password")
        monkeypatch.setattr(settings, "CLIENT_URL", "https://goalcast.example.com")

    def test_unknown_email_is_not_found(self, client):
        response = client.post("/api/auth/forgot-password", json={"email": "ghost@example.com"})
        assert response.status_code == 404

    def test_unconfigured_mail_is_unavailable(self, alice):
        client, _ = alice
        response = client.post("/api/auth/forgot-password", json={"email": "alice@example.com"})
        assert response.status_code == 503

    def test_reset_flow(self, alice, make_client, db, monkeypatch):
        client, _ = alice
        self._configure_mail(monkeypatch)

        smtp = MagicMock()
        with patch("goalcast.services.mailer.smtplib.SMTP_SSL") as smtp_cls:
            smtp_cls.return_value.__enter__.return_value = smtp
            response = client.post("/api/auth/forgot-password", json={"email": "ALICE@example.com"})

        assert response.status_code == 200
        smtp.login.assert_called_once_with("noreply@example.com", "app-password")
        message = smtp.send_message.call_args[0][0]
        assert message["To"] == "alice@example.com"

        token = get_user_by_username(db, "alice").reset_token
        assert token and len(token) == 64
        assert "https://goalcast.example.com/reset-password?token=" + token in message.get_body(("html",)).get_content()

        assert client.get(f"/api/auth/verify-reset-token/{token}").json() == {"valid": True}
        response = client.post("/api/auth/reset-password", json={"token": token, "new_password": "brand-new-pass"})
        assert response.status_code == 200

        other, _ = make_client()
        login = other.post("/api/auth/login", json={"username": "alice", "password": "brand-new-pass"})
        assert login.status_code == 200
        assert client.get(f"/api/auth/verify-reset-token/{token}").status_code == 400

    def test_smtp_failure_is_bad_gateway(self, alice, monkeypatch):
        client, _ = alice
        self._configure_mail(monkeypatch)
        with patch("goalcast.services.mailer.smtplib.SMTP_SSL", side_effect=OSError("connection refused")):
            response = client.post("/api/auth/forgot-password", json={"email": "alice@example.com"})
        assert response.status_code == 502

    def test_username_is_escaped_in_html_body(self, make_client, monkeypatch):
        client, _ = make_client("<b>mallory</b>", email="mallory@example.com")
        self._configure_mail(monkeypatch)

        smtp = MagicMock()
        with patch("goalcast.services.mailer.smtplib.SMTP_SSL") as smtp_cls:
            smtp_cls.return_value.__enter__.return_value = smtp
            response = client.post("/api/auth/forgot-password", json={"email": "mallory@example.com"})

        assert response.status_code == 200
        body = smtp.send_message.call_args[0][0].get_body(("html",)).get_content()
        assert "Hello &lt;b&gt;mallory&lt;/b&gt;," in body
        assert "<b>mallory</b>" not in body

    def test_expired_token_is_rejected(self, alice, db):
        client, _ = alice
        user = get_user_by_username(db, "alice")
        user.reset_token = "expired-token"
        user.reset_token_expiry = datetime.utcnow() - timedelta(minutes=1)
        db.commit()

        assert client.get("/api/auth/verify-reset-token/expired-token").status_code == 400
        response = client.post("/api/auth/reset-password", json={"token": "expired-token", "new_password": "whatever1"})
        assert response.status_code == 400
