from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Tuple

import pytest
from fastapi.testclient import TestClient

from task_api.container import Services, build_services
from task_api.db import SQLiteDatabase, SQLiteTaskRepository, SQLiteUserRepository
from task_api.main import create_app
from task_api.repositories import (
    InMemoryTaskRepository,
    InMemoryUserRepository,
    MonotonicClock,
    TaskRepository,
    UserRepository,
)
from task_api.settings import Settings

TEST_SECRET = "test-secret-key-that-is-long-enough-for-hs256"


class FrozenClock:
    """Clock stand-in that always returns the same instant."""

    def __init__(self, instant: datetime = datetime(2025, 1, 1, tzinfo=timezone.utc)) -> None:
        self.instant = instant

    def now(self) -> datetime:
        return self.instant


@pytest.fixture()
def settings() -> Settings:
    # Lowest bcrypt cost keeps the suite fast
    return Settings(jwt_secret=TEST_SECRET, bcrypt_rounds=4, log_level="WARNING")


@pytest.fixture(params=["memory", "sqlite"])
def repos(request, tmp_path: Path) -> Tuple[UserRepository, TaskRepository]:
    """Account and task repositories for each storage backend."""
    if request.param == "sqlite":
        database = SQLiteDatabase(str(tmp_path / "tasks.db"))
        return SQLiteUserRepository(database), SQLiteTaskRepository(database)
    clock = MonotonicClock()
    users = InMemoryUserRepository(clock)
    return users, InMemoryTaskRepository(users, clock)


@pytest.fixture()
def services(settings: Settings, repos) -> Services:
    users, tasks = repos
    return build_services(settings, users=users, tasks=tasks)


@pytest.fixture()
def client(services: Services) -> TestClient:
    return TestClient(create_app(services))


def register(client: TestClient, name: str, email: str, password: str = "secret1") -> Dict:
    res = client.post("/register", json={"name": name, "email": email, "password": password})
    assert res.status_code == 201, res.text
    return res.json()


def bearer(token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}
