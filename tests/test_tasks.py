"""
Task Manager API - Task CRUD Tests

CI-safe tests for task management without MongoDB.
"""

import asyncio
from datetime import datetime

import pytest

from task_manager.errors import AuthenticationError
from task_manager.tasks.repository import InMemoryTaskRepository
from task_manager.tasks.schemas import TaskCreateRequest
from task_manager.tasks.service import TaskService
from task_manager.users.models import User
from task_manager.users.repository import InMemoryUserRepository


def create_task(client, headers, description, completed=False):
    response = client.post(
        "/tasks",
        json={"description": description, "completed": completed},
        headers=headers,
    )
    assert response.status_code == 201, response.text
    return response.json()


@pytest.fixture
def seeded_tasks(client, user_one, user_two):
    """Two tasks for the first user, one for the second."""
    return {
        "one": [
            create_task(client, user_one["headers"], "First task"),
            create_task(client, user_one["headers"], "Second task", completed=True),
        ],
        "two": [create_task(client, user_two["headers"], "Third task")],
    }


class TestCreateTask:
    """Tests for POST /tasks."""

    def test_create_task_minimal(self, client, user_one, task_repository):
        response = client.post(
            "/tasks",
            json={"description": "From my test"},
            headers=user_one["headers"],
        )
        assert response.status_code == 201
        data = response.json()
        assert data["description"] == "From my test"
        assert data["completed"] is False
        assert data["owner"] == user_one["id"]
        assert "id" in data
        assert "createdAt" in data
        assert "updatedAt" in data

        stored = asyncio.run(task_repository.get_by_id(data["id"], user_one["id"]))
        assert stored is not None
        assert stored.completed is False

    def test_create_task_trims_description(self, client, auth_headers):
        data = create_task(client, auth_headers, "   water plants  ")
        assert data["description"] == "water plants"

    def test_create_ignores_client_owner(self, client, user_one, user_two):
        response = client.post(
            "/tasks",
            json={"description": "Sneaky", "owner": user_two["id"]},
            headers=user_one["headers"],
        )
        assert response.status_code == 201
        assert response.json()["owner"] == user_one["id"]

    @pytest.mark.parametrize(
        "payload",
        [
            {"description": "take out the trash", "completed": "maybe"},
            {"description": "take out the trash", "completed": "true"},
            {"completed": False},
            {"description": ""},
            {"description": "    "},
        ],
    )
    def test_create_task_invalid(self, client, auth_headers, task_repository, payload):
        response = client.post("/tasks", json=payload, headers=auth_headers)
        assert response.status_code == 400
        assert response.json()["errors"]
        assert task_repository._tasks == {}

    def test_create_task_requires_auth(self, client, task_repository):
        response = client.post("/tasks", json={"description": "Unauthorized"})
        assert response.status_code == 401
        assert task_repository._tasks == {}


class TestListTasks:
    """Tests for GET /tasks."""

    def test_list_tasks_empty(self, client, auth_headers):
        response = client.get("/tasks", headers=auth_headers)
        assert response.status_code == 200
        assert response.json() == []

    def test_list_only_own_tasks(self, client, user_one, seeded_tasks):
        response = client.get("/tasks", headers=user_one["headers"])
        assert response.status_code == 200
        data = response.json()
        assert len(data) == 2
        assert all(task["owner"] == user_one["id"] for task in data)

    def test_list_default_order_is_creation_order(self, client, user_one, seeded_tasks):
        data = client.get("/tasks", headers=user_one["headers"]).json()
        assert [task["id"] for task in data] == [task["id"] for task in seeded_tasks["one"]]

    def test_filter_incomplete(self, client, user_one, seeded_tasks):
        response = client.get("/tasks?completed=false", headers=user_one["headers"])
        data = response.json()
        assert len(data) == 1
        assert all(task["completed"] is False for task in data)

    def test_filter_complete(self, client, user_one, seeded_tasks):
        data = client.get("/tasks?completed=true", headers=user_one["headers"]).json()
        assert [task["description"] for task in data] == ["Second task"]

    def test_unrecognized_completed_value_is_ignored(self, client, user_one, seeded_tasks):
        response = client.get("/tasks?completed=maybe", headers=user_one["headers"])
        assert response.status_code == 200
        assert len(response.json()) == 2

    @pytest.mark.parametrize("field", ["description", "completed", "createdAt", "updatedAt"])
    @pytest.mark.parametrize("direction", ["asc", "desc"])
    def test_sort(self, client, auth_headers, field, direction):
        create_task(client, auth_headers, "banana")
        create_task(client, auth_headers, "apple", completed=True)
        create_task(client, auth_headers, "cherry")
        create_task(client, auth_headers, "date", completed=True)

        response = client.get(f"/tasks?sortBy={field}:{direction}", headers=auth_headers)
        assert response.status_code == 200
        values = [task[field] for task in response.json()]
        if field in ("createdAt", "updatedAt"):
            values = [datetime.fromisoformat(v.replace("Z", "+00:00")) for v in values]

        pairs = list(zip(values, values[1:]))
        if direction == "asc":
            assert all(a <= b for a, b in pairs)
        else:
            assert all(a >= b for a, b in pairs)
        assert len(values) == 4

    def test_sort_by_description_orders_values(self, client, auth_headers):
        for description in ("banana", "apple", "cherry"):
            create_task(client, auth_headers, description)
        data = client.get("/tasks?sortBy=description:desc", headers=auth_headers).json()
        assert [task["description"] for task in data] == ["cherry", "banana", "apple"]

    @pytest.mark.parametrize("sort_by", ["owner:asc", "description:up", "description", ":asc"])
    def test_unrecognized_sort_is_ignored(self, client, user_one, seeded_tasks, sort_by):
        response = client.get("/tasks", params={"sortBy": sort_by}, headers=user_one["headers"])
        assert response.status_code == 200
        assert len(response.json()) == 2

    def test_pagination(self, client, auth_headers):
        for description in ("a", "b", "c", "d", "e"):
            create_task(client, auth_headers, description)

        response = client.get(
            "/tasks",
            params={"sortBy": "description:asc", "limit": "2", "skip": "1"},
            headers=auth_headers,
        )
        assert response.status_code == 200
        assert [task["description"] for task in response.json()] == ["b", "c"]

    @pytest.mark.parametrize(
        "params",
        [{"limit": "-1"}, {"limit": "abc"}, {"skip": "-2"}, {"skip": "1.5"}, {"limit": "9" * 20, "skip": "9" * 20}],
    )
    def test_invalid_pagination_is_ignored(self, client, user_one, seeded_tasks, params):
        response = client.get("/tasks", params=params, headers=user_one["headers"])
        assert response.status_code == 200
        assert len(response.json()) == 2

    def test_list_requires_auth(self, client):
        assert client.get("/tasks").status_code == 401


class TestGetTask:
    """Tests for GET /tasks/{task_id}."""

    def test_get_own_task(self, client, user_one, seeded_tasks):
        task_id = seeded_tasks["one"][0]["id"]
        response = client.get(f"/tasks/{task_id}", headers=user_one["headers"])
        assert response.status_code == 200
        assert response.json()["id"] == task_id

    def test_get_other_users_task_is_not_found(self, client, user_two, seeded_tasks):
        task_id = seeded_tasks["one"][0]["id"]
        response = client.get(f"/tasks/{task_id}", headers=user_two["headers"])
        assert response.status_code == 404

    def test_not_owned_and_absent_look_the_same(self, client, user_two, seeded_tasks):
        not_owned = client.get(f"/tasks/{seeded_tasks['one'][0]['id']}", headers=user_two["headers"])
        absent = client.get("/tasks/nonexistent-id", headers=user_two["headers"])
        assert not_owned.status_code == absent.status_code == 404
        assert not_owned.json() == absent.json()

    def test_get_task_requires_auth(self, client, seeded_tasks):
        response = client.get(f"/tasks/{seeded_tasks['one'][0]['id']}")
        assert response.status_code == 401


class TestUpdateTask:
    """Tests for PATCH /tasks/{task_id}."""

    def test_update_own_task(self, client, user_one, seeded_tasks):
        task = seeded_tasks["one"][0]
        response = client.patch(
            f"/tasks/{task['id']}",
            json={"description": "Renamed", "completed": True},
            headers=user_one["headers"],
        )
        assert response.status_code == 200
        data = response.json()
        assert data["description"] == "Renamed"
        assert data["completed"] is True
        assert data["createdAt"] == task["createdAt"]
        updated_at = datetime.fromisoformat(data["updatedAt"].replace("Z", "+00:00"))
        previous = datetime.fromisoformat(task["updatedAt"].replace("Z", "+00:00"))
        assert updated_at >= previous

    def test_update_other_users_task(self, client, user_one, seeded_tasks, task_repository):
        task = seeded_tasks["two"][0]
        response = client.patch(
            f"/tasks/{task['id']}",
            json={"completed": True},
            headers=user_one["headers"],
        )
        assert response.status_code == 404
        stored = asyncio.run(task_repository.get_by_id(task["id"], task["owner"]))
        assert stored.completed is False

    def test_update_unknown_field(self, client, user_one, seeded_tasks, task_repository):
        task = seeded_tasks["one"][0]
        response = client.patch(
            f"/tasks/{task['id']}",
            json={"location": "x"},
            headers=user_one["headers"],
        )
        assert response.status_code == 400
        stored = asyncio.run(task_repository.get_by_id(task["id"], user_one["id"]))
        assert stored.description == "First task"

    @pytest.mark.parametrize(
        "payload",
        [
            {"description": ""},
            {"completed": "yesterday"},
            {"completed": None},
            {"owner": "someone-else"},
        ],
    )
    def test_update_invalid_values(self, client, user_one, seeded_tasks, task_repository, payload):
        task = seeded_tasks["one"][0]
        response = client.patch(f"/tasks/{task['id']}", json=payload, headers=user_one["headers"])
        assert response.status_code == 400
        assert response.json()["errors"]
        stored = asyncio.run(task_repository.get_by_id(task["id"], user_one["id"]))
        assert stored.description == "First task"
        assert stored.completed is False

    def test_update_missing_task(self, client, auth_headers):
        response = client.patch("/tasks/missing", json={"completed": True}, headers=auth_headers)
        assert response.status_code == 404


class TestDeleteTask:
    """Tests for DELETE /tasks/{task_id}."""

    def test_delete_own_task(self, client, user_one, seeded_tasks, task_repository):
        task = seeded_tasks["one"][0]
        response = client.delete(f"/tasks/{task['id']}", headers=user_one["headers"])
        assert response.status_code == 200
        assert response.json()["id"] == task["id"]
        assert response.json()["description"] == "First task"
        assert asyncio.run(task_repository.get_by_id(task["id"], user_one["id"])) is None

    def test_delete_other_users_task(self, client, user_two, seeded_tasks, task_repository):
        task = seeded_tasks["one"][0]
        response = client.delete(f"/tasks/{task['id']}", headers=user_two["headers"])
        assert response.status_code == 404
        assert asyncio.run(task_repository.get_by_id(task["id"], task["owner"])) is not None

    def test_delete_requires_auth(self, client, seeded_tasks, task_repository):
        task = seeded_tasks["one"][0]
        response = client.delete(f"/tasks/{task['id']}")
        assert response.status_code == 401
        assert asyncio.run(task_repository.get_by_id(task["id"], task["owner"])) is not None


class TestTaskTimestamps:
    """Timestamps match what MongoDB stores, to the millisecond."""

    def test_create_response_has_millisecond_precision(self, client, user_one):
        data = create_task(client, user_one["headers"], "Precise")
        created_at = datetime.fromisoformat(data["createdAt"].replace("Z", "+00:00"))
        assert created_at.microsecond % 1000 == 0

        fetched = client.get(f"/tasks/{data['id']}", headers=user_one["headers"]).json()
        assert fetched["createdAt"] == data["createdAt"]
        assert fetched["updatedAt"] == data["updatedAt"]


class DeletingTaskRepository(InMemoryTaskRepository):
    """Removes the owner's account and tasks just before the insert lands."""

    def __init__(self, users: InMemoryUserRepository):
        super().__init__()
        self.users = users

    async def create(self, task):
        await self.users.delete(task.owner_id)
        await self.delete_by_owner(task.owner_id)
        return await super().create(task)


class TestCreateForDeletedOwner:
    """A task created while its owner is being deleted is not kept."""

    @pytest.mark.asyncio
    async def test_unknown_owner_is_rejected(self):
        tasks = InMemoryTaskRepository()
        service = TaskService(tasks, InMemoryUserRepository())

        with pytest.raises(AuthenticationError):
            await service.create_task("gone-user", TaskCreateRequest(description="orphan"))
        assert await tasks.count_by_owner("gone-user") == 0

    @pytest.mark.asyncio
    async def test_insert_after_cascade_is_undone(self):
        users = InMemoryUserRepository()
        user = User.create(name="Mike", email="mike@example.com", password_hash="x")
        await users.create(user)
        tasks = DeletingTaskRepository(users)
        service = TaskService(tasks, users)

        with pytest.raises(AuthenticationError):
            await service.create_task(user.id, TaskCreateRequest(description="late"))
        assert await tasks.count_by_owner(user.id) == 0

    @pytest.mark.asyncio
    async def test_existing_owner_keeps_task(self):
        users = InMemoryUserRepository()
        user = User.create(name="Mike", email="mike@example.com", password_hash="x")
        await users.create(user)
        tasks = InMemoryTaskRepository()
        service = TaskService(tasks, users)

        response = await service.create_task(user.id, TaskCreateRequest(description="kept"))
        assert response.owner == user.id
        assert await tasks.count_by_owner(user.id) == 1
