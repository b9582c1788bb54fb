"""Shared test fixtures.

Environment variables are set before any goalcast import so that the
settings singleton and the engine point at a throwaway SQLite file.
"""

import os
import tempfile

_TMP_DIR = tempfile.mkdtemp(prefix="goalcast-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TMP_DIR, 'test.db')}"
os.environ["SESSION_SECRET"] = "test-secret"
os.environ["AUTO_CREATE_SCHEMA"] = "0"
os.environ["OPENAI_API_KEY"] = ""
os.environ["EMAIL_USER"] = ""
os.environ["EMAIL_PASSWORD"] = ""
os.environ["CLIENT_URL"] = ""

import pytest
from fastapi.testclient import TestClient

from api_main import app
from goalcast.db import SessionLocal, engine
from goalcast.models import Base
from goalcast.presence import PresenceRegistry


@pytest.fixture(autouse=True)
def fresh_schema():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    app.state.presence = PresenceRegistry()
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


def register(client: TestClient, username: str, password: str = "secret123", **extra) -> dict:
    payload = {"username": username, "password": password, "full_name": username.title(), **extra}
    response = client.post("/api/auth/register", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


@pytest.fixture
def make_client():
    """Factory for independent clients, each with its own session cookie."""
    clients = []

    def _make(username=None, **extra):
        client = TestClient(app)
        clients.append(client)
        user = register(client, username, **extra) if username else None
        return client, user

    yield _make
    for client in clients:
        client.close()


@pytest.fixture
def client(make_client):
    c, _ = make_client()
    return c


@pytest.fixture
def alice(make_client):
    return make_client("alice", email="alice@example.com")


@pytest.fixture
def bob(make_client):
    return make_client("bob", email="bob@example.com")


def create_goal(client: TestClient, **fields) -> dict:
    payload = {"title": "Run every day", "duration": 30, "duration_unit": "days", **fields}
    response = client.post("/api/goals", json=payload)
    assert response.status_code == 201, response.text
    return response.json()
