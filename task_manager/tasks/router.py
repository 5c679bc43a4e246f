"""
Task Manager API - Task Router

CRUD endpoints for task management.
All endpoints require a bearer token and are scoped to the requesting user.
"""

from typing import Optional, Annotated, List

from fastapi import APIRouter, HTTPException, status, Depends, Query

from task_manager.users.dependencies import CurrentUser
from task_manager.tasks.service import TaskService
from task_manager.tasks.query import parse_task_query
from task_manager.tasks.dependencies import get_task_service
from task_manager.tasks.schemas import (
    TaskCreateRequest,
    TaskUpdateRequest,
    TaskResponse,
)


router = APIRouter(prefix="/tasks", tags=["Tasks"])


def _task_not_found() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail="Task not found",
    )


@router.post(
    "",
    response_model=TaskResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new task",
)
async def create_task(
    request: TaskCreateRequest,
    current_user: CurrentUser,
    service: Annotated[TaskService, Depends(get_task_service)],
) -> TaskResponse:
    """
    Create a new task for the authenticated user.

    The task is automatically associated with the current user.
    """
    return await service.create_task(owner_id=current_user.id, request=request)


@router.get(
    "",
    response_model=List[TaskResponse],
    summary="List tasks",
)
async def list_tasks(
    current_user: CurrentUser,
    service: Annotated[TaskService, Depends(get_task_service)],
    completed: Optional[str] = Query(
        default=None,
        description='Filter by completion: "true" or "false"',
    ),
    sort_by: Optional[str] = Query(
        default=None,
        alias="sortBy",
        description="<field>:<asc|desc> over description, completed, createdAt, updatedAt",
    ),
    limit: Optional[str] = Query(default=None, description="Maximum number of tasks"),
    skip: Optional[str] = Query(default=None, description="Number of tasks to skip"),
) -> List[TaskResponse]:
    """
    List the current user's tasks.

    Unrecognized filter, sort or pagination values are ignored.
    """
    query = parse_task_query(completed=completed, sort_by=sort_by, limit=limit, skip=skip)
    return await service.list_tasks(owner_id=current_user.id, query=query)


@router.get(
    "/{task_id}",
    response_model=TaskResponse,
    summary="Get a task by ID",
)
async def get_task(
    task_id: str,
    current_user: CurrentUser,
    service: Annotated[TaskService, Depends(get_task_service)],
) -> TaskResponse:
    """
    Get a specific task by ID.

    Returns 404 if the task doesn't exist or belongs to another user.
    """
    task = await service.get_task(task_id, current_user.id)
    if task is None:
        raise _task_not_found()
    return task


@router.patch(
    "/{task_id}",
    response_model=TaskResponse,
    summary="Update a task",
)
async def update_task(
    task_id: str,
    request: TaskUpdateRequest,
    current_user: CurrentUser,
    service: Annotated[TaskService, Depends(get_task_service)],
) -> TaskResponse:
    """
    Update a task by ID.

    Only description and completed may be changed.
    Returns 404 if the task doesn't exist or belongs to another user.
    """
    task = await service.update_task(task_id, current_user.id, request)
    if task is None:
        raise _task_not_found()
    return task


@router.delete(
    "/{task_id}",
    response_model=TaskResponse,
    summary="Delete a task",
)
async def delete_task(
    task_id: str,
    current_user: CurrentUser,
    service: Annotated[TaskService, Depends(get_task_service)],
) -> TaskResponse:
    """
    Delete a task by ID and return it.

    Returns 404 if the task doesn't exist or belongs to another user.
    """
    task = await service.delete_task(task_id, current_user.id)
    if task is None:
        raise _task_not_found()
    return task
