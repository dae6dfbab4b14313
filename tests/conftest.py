import os

import pytest

os.environ.setdefault("DATABASE_URL", "sqlite:///./daily-habits-test.db")
os.environ.setdefault("SESSION_SECRET", "test-secret")

from fastapi.testclient import TestClient  # noqa: E402

from backend.db import reset_engine  # noqa: E402
from backend.main import create_app  # noqa: E402
from backend.settings import reset_settings  # noqa: E402

PASSWORD = "correct-horse"


@pytest.fixture
def client(tmp_path, monkeypatch):
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'app.db'}")
    monkeypatch.setenv("SESSION_SECRET", "test-secret")
    monkeypatch.setenv("PASSWORD_HASH_ROUNDS", "4")
    reset_settings()
    reset_engine()
    with TestClient(create_app()) as test_client:
        yield test_client
    reset_engine()
    reset_settings()


def register(client, email, password=PASSWORD, name=None):
    return client.post("/api/auth/register", json={"email": email, "password": password, "name": name})


def login(client, email, password=PASSWORD):
    return client.post("/api/auth/login", json={"email": email, "password": password})


@pytest.fixture
def make_user(client):
    def _make(email="ana@example.com", name="Ana"):
        assert register(client, email, name=name).status_code == 201
        token = login(client, email).json()["data"]["token"]
        return {"Authorization": f"Bearer {token}"}

    return _make


@pytest.fixture
def auth_headers(make_user):
    return make_user()
