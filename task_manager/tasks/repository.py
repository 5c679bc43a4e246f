"""
Task Manager API - Task Repository

Repository pattern for task data access.
Includes MongoDB implementation for runtime and interface for testing.
"""

from abc import ABC, abstractmethod
from typing import Optional, List

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument

from task_manager.tasks.models import Task, utcnow
from task_manager.tasks.query import TaskQuery


class TaskRepositoryInterface(ABC):
    """
    Abstract interface for task repository.

    Enables swapping implementations (MongoDB for runtime, in-memory for tests).
    All operations are scoped by owner_id to enforce ownership isolation.
    """

    @abstractmethod
    async def create(self, task: Task) -> Task:
        pass

    @abstractmethod
    async def get_by_id(self, task_id: str, owner_id: str) -> Optional[Task]:
        pass

    @abstractmethod
    async def list_by_owner(self, owner_id: str, query: Optional[TaskQuery] = None) -> List[Task]:
        """List tasks for owner, filtered, sorted and paginated by the query."""

    @abstractmethod
    async def update(self, task_id: str, owner_id: str, updates: dict) -> Optional[Task]:
        pass

    @abstractmethod
    async def delete(self, task_id: str, owner_id: str) -> Optional[Task]:
        """Delete a task and return it, or None if absent or not owned."""

    @abstractmethod
    async def delete_by_owner(self, owner_id: str) -> int:
        """Delete every task of an owner. Returns the number removed."""

    @abstractmethod
    async def count_by_owner(self, owner_id: str) -> int:
        pass


class TaskRepository(TaskRepositoryInterface):
    """
    MongoDB implementation of the task repository.

    All queries are scoped by owner_id to enforce ownership isolation.
    """

    COLLECTION_NAME = "tasks"

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.collection = db[self.COLLECTION_NAME]

    async def create(self, task: Task) -> Task:
        await self.collection.insert_one(task.to_dict())
        return task

    async def get_by_id(self, task_id: str, owner_id: str) -> Optional[Task]:
        doc = await self.collection.find_one({"_id": task_id, "owner_id": owner_id})
        if doc is None:
            return None
        return Task.from_dict(doc)

    async def list_by_owner(self, owner_id: str, query: Optional[TaskQuery] = None) -> List[Task]:
        query = query or TaskQuery()
        cursor = self.collection.find(query.mongo_filter(owner_id)).sort(query.mongo_sort())
        if query.skip:
            cursor = cursor.skip(query.skip)
        if query.limit:
            cursor = cursor.limit(query.limit)

        tasks: List[Task] = []
        async for doc in cursor:
            tasks.append(Task.from_dict(doc))
        return tasks

    async def update(self, task_id: str, owner_id: str, updates: dict) -> Optional[Task]:
        updates = {**updates, "updated_at": utcnow()}

        result = await self.collection.find_one_and_update(
            {"_id": task_id, "owner_id": owner_id},
            {"$set": updates},
            return_document=ReturnDocument.AFTER,
        )
        if result is None:
            return None
        return Task.from_dict(result)

    async def delete(self, task_id: str, owner_id: str) -> Optional[Task]:
        result = await self.collection.find_one_and_delete({"_id": task_id, "owner_id": owner_id})
        if result is None:
            return None
        return Task.from_dict(result)

    async def delete_by_owner(self, owner_id: str) -> int:
        result = await self.collection.delete_many({"owner_id": owner_id})
        return result.deleted_count

    async def count_by_owner(self, owner_id: str) -> int:
        return await self.collection.count_documents({"owner_id": owner_id})


class InMemoryTaskRepository(TaskRepositoryInterface):
    """
    In-memory implementation for CI-safe testing.
    """

    def __init__(self):
        self._tasks: dict[str, Task] = {}

    def clear(self) -> None:
        self._tasks.clear()

    async def create(self, task: Task) -> Task:
        self._tasks[task.id] = task
        return task

    async def get_by_id(self, task_id: str, owner_id: str) -> Optional[Task]:
        task = self._tasks.get(task_id)
        if task is None or task.owner_id != owner_id:
            return None
        return task

    async def list_by_owner(self, owner_id: str, query: Optional[TaskQuery] = None) -> List[Task]:
        query = query or TaskQuery()
        owned = (task for task in self._tasks.values() if task.owner_id == owner_id)
        return query.apply(owned)

    async def update(self, task_id: str, owner_id: str, updates: dict) -> Optional[Task]:
        task = self._tasks.get(task_id)
        if task is None or task.owner_id != owner_id:
            return None

        for key, value in updates.items():
            if hasattr(task, key):
                setattr(task, key, value)

        task.updated_at = utcnow()
        return task

    async def delete(self, task_id: str, owner_id: str) -> Optional[Task]:
        task = self._tasks.get(task_id)
        if task is None or task.owner_id != owner_id:
            return None
        del self._tasks[task_id]
        return task

    async def delete_by_owner(self, owner_id: str) -> int:
        owned = [task_id for task_id, task in self._tasks.items() if task.owner_id == owner_id]
        for task_id in owned:
            del self._tasks[task_id]
        return len(owned)

    async def count_by_owner(self, owner_id: str) -> int:
        return sum(1 for t in self._tasks.values() if t.owner_id == owner_id)
