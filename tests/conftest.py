"""
Task Manager API - Test Configuration

Shared fixtures for CI-safe testing without MongoDB.
"""

import io
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from task_manager.main import app
from task_manager.database import get_database
from task_manager.tasks.dependencies import get_task_repository
from task_manager.tasks.repository import InMemoryTaskRepository
from task_manager.users.dependencies import get_user_repository
from task_manager.users.repository import InMemoryUserRepository


# Global in-memory repositories for tests
_test_user_repository = InMemoryUserRepository()
_test_task_repository = InMemoryTaskRepository()


async def override_get_user_repository():
    """Override dependency to use in-memory user repository."""
    return _test_user_repository


async def override_get_task_repository():
    """Override dependency to use in-memory task repository."""
    return _test_task_repository


async def override_get_database():
    """Override database dependency; the in-memory repositories never touch it."""
    return MagicMock()


USER_ONE = {"name": "Mike", "email": "mike@example.com", "password": "56what!!"}
USER_TWO = {"name": "Jess", "email": "jess@example.com", "password": "myhouse099@@"}


@pytest.fixture
def user_repository():
    """Provide a fresh in-memory user repository for each test."""
    _test_user_repository.clear()
    return _test_user_repository


@pytest.fixture
def task_repository():
    """Provide a fresh in-memory task repository for each test."""
    _test_task_repository.clear()
    return _test_task_repository


@pytest.fixture
def client(user_repository, task_repository):
    """Create test client with in-memory repositories."""
    app.dependency_overrides[get_user_repository] = override_get_user_repository
    app.dependency_overrides[get_task_repository] = override_get_task_repository
    app.dependency_overrides[get_database] = override_get_database

    yield TestClient(app)
    # Clean up override after test
    app.dependency_overrides.clear()


def _signup(client: TestClient, payload: dict) -> dict:
    response = client.post("/users", json=payload)
    assert response.status_code == 201, response.text
    body = response.json()
    return {
        "id": body["user"]["id"],
        "token": body["token"],
        "headers": {"Authorization": f"Bearer {body['token']}"},
        "credentials": payload,
    }


@pytest.fixture
def user_one(client):
    """Sign up the first test user."""
    return _signup(client, USER_ONE)


@pytest.fixture
def user_two(client):
    """Sign up the second test user."""
    return _signup(client, USER_TWO)


@pytest.fixture
def auth_headers(user_one):
    """Authorization headers for the first user."""
    return user_one["headers"]


@pytest.fixture
def second_auth_headers(user_two):
    """Authorization headers for the second user."""
    return user_two["headers"]


def make_image(fmt: str = "PNG", size: tuple = (400, 300), color: str = "red") -> bytes:
    """Encode a solid-color image in memory."""
    buffer = io.BytesIO()
    Image.new("RGB", size, color).save(buffer, format=fmt)
    return buffer.getvalue()


@pytest.fixture
def png_bytes() -> bytes:
    return make_image("PNG")


@pytest.fixture
def jpeg_bytes() -> bytes:
    return make_image("JPEG", size=(320, 480), color="blue")


@pytest.fixture
def image_factory():
    """Build encoded test images of a given format and size."""
    return make_image
