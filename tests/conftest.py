"""Shared fixtures."""

from __future__ import annotations

from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient

from focusflow.core.config import Config
from focusflow.storage.database import Database
from focusflow.storage.memory import MemoryStorage
from focusflow.storage.sqlite import SQLiteStorage
from focusflow.web.app import create_app


class FakeClock:
    """Manually advanced replacement for ``datetime.now``."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2026, 3, 2, 9, 0, 0)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: int) -> None:
        self.now += timedelta(seconds=seconds)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture(params=["memory", "sqlite"])
def make_storage(request, tmp_path):
    """Factory for a fresh storage backend of each kind."""

    def factory():
        if request.param == "memory":
            return MemoryStorage()
        return SQLiteStorage(Database(tmp_path / "focusflow.db"))

    return factory


@pytest.fixture
def app_config(tmp_path) -> Config:
    return Config(
        data_dir=tmp_path / "data",
        log_dir=tmp_path / "logs",
        config_dir=tmp_path / "config",
        storage={"backend": "memory"},
        timer={"autotick": False},
        auth={"bcrypt_rounds": 4},
    )


@pytest.fixture
def client(app_config):
    app = create_app(app_config)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def register_user(client):
    """Register an account on the test client and return its user payload."""

    def _register(email: str = "ada@example.com", password: str = "secret123"):
        response = client.post("/api/auth/register", json={
            "email": email,
            "password": password,
            "first_name": "Ada",
        })
        assert response.status_code == 200, response.text
        return response.json()["user"]

    return _register
