from dataclasses import dataclass
from typing import Annotated, Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from motor.motor_asyncio import AsyncIOMotorDatabase

from task_manager.database import get_database
from task_manager.errors import AuthenticationError
from task_manager.users.models import User
from task_manager.users.repository import MongoUserRepository, UserRepositoryInterface
from task_manager.users.service import AuthService


# HTTP Bearer token scheme - auto_error=False to handle missing tokens ourselves
bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class AuthContext:
    """Identity resolved for the current request."""

    user: User
    token: str


async def get_user_repository(
    db: Annotated[AsyncIOMotorDatabase, Depends(get_database)]
) -> UserRepositoryInterface:
    """Dependency to get user repository instance."""
    return MongoUserRepository(db)


def get_auth_service(
    repository: Annotated[UserRepositoryInterface, Depends(get_user_repository)]
) -> AuthService:
    """Dependency to get AuthService instance."""
    return AuthService(repository)


async def get_current_session(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(bearer_scheme)],
    auth_service: Annotated[AuthService, Depends(get_auth_service)],
) -> AuthContext:
    """
    Resolve the bearer token to an active session.

    A missing header, a bad signature, an unknown user and a revoked token
    all fail the same way.
    """
    if credentials is None or not credentials.credentials:
        raise AuthenticationError()

    token = credentials.credentials
    user = await auth_service.resolve_token(token)
    if user is None:
        raise AuthenticationError()

    return AuthContext(user=user, token=token)


# Type alias for cleaner dependency injection
CurrentSession = Annotated[AuthContext, Depends(get_current_session)]


async def get_current_user(session: CurrentSession) -> User:
    return session.user


CurrentUser = Annotated[User, Depends(get_current_user)]
