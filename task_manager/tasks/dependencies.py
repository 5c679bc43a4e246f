from typing import Annotated

from fastapi import Depends
from motor.motor_asyncio import AsyncIOMotorDatabase

from task_manager.database import get_database
from task_manager.tasks.repository import TaskRepository, TaskRepositoryInterface
from task_manager.tasks.service import TaskService
from task_manager.users.dependencies import get_user_repository
from task_manager.users.repository import UserRepositoryInterface


async def get_task_repository(
    db: Annotated[AsyncIOMotorDatabase, Depends(get_database)]
) -> TaskRepositoryInterface:
    """Dependency to get task repository instance."""
    return TaskRepository(db)


async def get_task_service(
    repository: Annotated[TaskRepositoryInterface, Depends(get_task_repository)],
    user_repository: Annotated[UserRepositoryInterface, Depends(get_user_repository)],
) -> TaskService:
    """Dependency to get task service instance."""
    return TaskService(repository, user_repository)
