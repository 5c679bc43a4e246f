"""
Task Manager API - Tasks Module

Owner-scoped task CRUD with filtering, sorting and pagination.
"""

from task_manager.tasks.router import router as tasks_router

__all__ = ["tasks_router"]
