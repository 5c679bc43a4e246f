"""
Task Manager API - Users Module

Signup, login/logout with revocable bearer tokens, profiles and avatars.
"""

from task_manager.users.router import router as users_router
from task_manager.users.dependencies import get_current_user, get_current_session

__all__ = ["users_router", "get_current_user", "get_current_session"]
