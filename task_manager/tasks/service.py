"""
Task Manager API - Task Service

Business logic for owner-scoped task operations.
"""

from typing import Optional, List

from task_manager.errors import AuthenticationError
from task_manager.tasks.models import Task
from task_manager.tasks.query import TaskQuery
from task_manager.tasks.repository import TaskRepositoryInterface
from task_manager.tasks.schemas import TaskCreateRequest, TaskUpdateRequest, TaskResponse
from task_manager.users.repository import UserRepositoryInterface


class TaskService:
    """Service layer for task business logic."""

    def __init__(
        self,
        repository: TaskRepositoryInterface,
        user_repository: Optional[UserRepositoryInterface] = None,
    ):
        self.repository = repository
        self.user_repository = user_repository

    @staticmethod
    def _task_to_response(task: Task) -> TaskResponse:
        return TaskResponse(
            id=task.id,
            description=task.description,
            completed=task.completed,
            owner=task.owner_id,
            created_at=task.created_at,
            updated_at=task.updated_at,
        )

    async def create_task(self, owner_id: str, request: TaskCreateRequest) -> TaskResponse:
        """
        Create a new task for the owner.

        The owner is looked up again after the insert. If the account was
        deleted in the meantime its task cascade may already have run, so the
        new task is removed and the request fails as unauthenticated.
        """
        task = Task.create(
            owner_id=owner_id,
            description=request.description,
            completed=request.completed,
        )
        await self.repository.create(task)
        if self.user_repository is not None and await self.user_repository.get_by_id(owner_id) is None:
            await self.repository.delete(task.id, owner_id)
            raise AuthenticationError()
        return self._task_to_response(task)

    async def get_task(self, task_id: str, owner_id: str) -> Optional[TaskResponse]:
        """Get a task by ID, scoped to owner."""
        task = await self.repository.get_by_id(task_id, owner_id)
        if task is None:
            return None
        return self._task_to_response(task)

    async def list_tasks(self, owner_id: str, query: Optional[TaskQuery] = None) -> List[TaskResponse]:
        tasks = await self.repository.list_by_owner(owner_id, query)
        return [self._task_to_response(task) for task in tasks]

    async def update_task(
        self,
        task_id: str,
        owner_id: str,
        request: TaskUpdateRequest,
    ) -> Optional[TaskResponse]:
        """Update a task, scoped to owner."""
        updates = request.model_dump(exclude_unset=True)
        if not updates:
            # No updates provided, just return current task
            return await self.get_task(task_id, owner_id)

        task = await self.repository.update(task_id, owner_id, updates)
        if task is None:
            return None
        return self._task_to_response(task)

    async def delete_task(self, task_id: str, owner_id: str) -> Optional[TaskResponse]:
        """Delete a task, scoped to owner."""
        task = await self.repository.delete(task_id, owner_id)
        if task is None:
            return None
        return self._task_to_response(task)
