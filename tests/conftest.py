"""
Shared fixtures for the test suite.

Every test gets a fresh application wired to its own in-memory SQLite
database, so tests never see each other's users, projects or tasks.
"""

from datetime import timedelta
from typing import Callable

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from taskhub.config.settings import Settings
from taskhub.utils.dates import utcnow


@pytest.fixture
def settings() -> Settings:
    return Settings(
        APP_ENV="test",
        DATABASE_URL="sqlite://",
        JWT_SECRET="test-secret",
        BCRYPT_ROUNDS=4,
        LOG_LEVEL="WARNING",
    )


@pytest.fixture
def app(settings: Settings) -> FastAPI:
    # Import the factory here so each test builds its own app
    from main import create_app

    return create_app(settings)


@pytest.fixture
def client(app: FastAPI):
    """The TestClient runs the lifespan, which creates the tables"""
    with TestClient(app) as c:
        yield c


@pytest.fixture
def register(client: TestClient) -> Callable:
    """Sign up a user and return (user, auth headers)"""

    def _register(name: str = "Alice Owner", email: str = "alice@example.com", password: str = "secret123"):
        response = client.post(
            "/api/auth/signup",
            json={"name": name, "email": email, "password": password},
        )
        assert response.status_code == 201, response.text
        data = response.json()["data"]
        return data["user"], {"Authorization": f"Bearer {data['token']}"}

    return _register


@pytest.fixture
def owner(register):
    return register("Alice Owner", "alice@example.com")


@pytest.fixture
def member(register):
    return register("Bob Member", "bob@example.com")


@pytest.fixture
def outsider(register):
    return register("Carol Outsider", "carol@example.com")


@pytest.fixture
def today() -> str:
    return utcnow().date().isoformat()


@pytest.fixture
def next_month() -> str:
    return (utcnow() + timedelta(days=30)).isoformat()


@pytest.fixture
def project(client, owner, member):
    """A project owned by ``owner`` with ``member`` on the team"""
    _, headers = owner
    member_user, _ = member
    response = client.post(
        "/api/projects",
        json={
            "title": "Website Redesign",
            "description": "Refresh the marketing site",
            "tags": ["web", "design"],
            "teamMembers": [{"user": member_user["id"], "role": "Lead"}],
        },
        headers=headers,
    )
    assert response.status_code == 201, response.text
    return response.json()["data"]["project"]


@pytest.fixture
def create_task(client, owner, project, today):
    """Create a task in ``project`` as ``owner`` unless told otherwise"""

    def _create(headers=None, **fields):
        payload = {
            "title": "Write copy",
            "assignedTo": owner[0]["id"],
            "project": project["id"],
            "dueDate": today,
        }
        payload.update(fields)
        response = client.post("/api/tasks", json=payload, headers=headers or owner[1])
        assert response.status_code == 201, response.text
        return response.json()["data"]["task"]

    return _create
