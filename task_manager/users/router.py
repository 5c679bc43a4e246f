"""
Task Manager API - User Router

Endpoints for signup, login/logout, profile management and avatars.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, File, HTTPException, Response, UploadFile, status

from task_manager.config import settings
from task_manager.tasks.repository import TaskRepositoryInterface
from task_manager.tasks.dependencies import get_task_repository
from task_manager.users.avatar import AVATAR_MEDIA_TYPE
from task_manager.users.dependencies import (
    CurrentSession,
    CurrentUser,
    get_auth_service,
    get_user_repository,
)
from task_manager.users.models import User
from task_manager.users.repository import UserRepositoryInterface
from task_manager.users.schemas import (
    AuthResponse,
    MessageResponse,
    UserCreateRequest,
    UserLoginRequest,
    UserResponse,
    UserUpdateRequest,
)
from task_manager.users.service import AuthService, ProfileService


router = APIRouter(prefix="/users", tags=["Users"])


def get_profile_service(
    repository: Annotated[UserRepositoryInterface, Depends(get_user_repository)],
    task_repository: Annotated[TaskRepositoryInterface, Depends(get_task_repository)],
    auth_service: Annotated[AuthService, Depends(get_auth_service)],
) -> ProfileService:
    """Dependency to get ProfileService instance."""
    return ProfileService(repository, task_repository, auth_service)


def to_user_response(user: User) -> UserResponse:
    return UserResponse(
        id=user.id,
        name=user.name,
        email=user.email,
        age=user.age,
        has_avatar=user.has_avatar,
        created_at=user.created_at,
        updated_at=user.updated_at,
    )


@router.post(
    "",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Sign up",
)
async def signup(
    request: UserCreateRequest,
    auth_service: Annotated[AuthService, Depends(get_auth_service)],
) -> AuthResponse:
    """
    Create an account and return it with its first token.

    - Name must not be blank
    - Email must be valid and not already registered
    - Password must be at least 7 characters and must not contain "password"
    """
    user, token = await auth_service.register_user(request)
    return AuthResponse(user=to_user_response(user), token=token)


@router.post(
    "/login",
    response_model=AuthResponse,
    summary="Log in and get a new token",
)
async def login(
    request: UserLoginRequest,
    auth_service: Annotated[AuthService, Depends(get_auth_service)],
) -> AuthResponse:
    """
    Authenticate by email and password.

    Use the returned token in the Authorization header:
    `Authorization: Bearer <token>`
    """
    user, token = await auth_service.login(request.email, request.password)
    return AuthResponse(user=to_user_response(user), token=token)


@router.post("/logout", response_model=MessageResponse, summary="End this session")
async def logout(
    session: CurrentSession,
    auth_service: Annotated[AuthService, Depends(get_auth_service)],
) -> MessageResponse:
    await auth_service.revoke_token(session.user, session.token)
    return MessageResponse(message="Logged out")


@router.post("/logout-all", response_model=MessageResponse, summary="End every session")
async def logout_all(
    current_user: CurrentUser,
    auth_service: Annotated[AuthService, Depends(get_auth_service)],
) -> MessageResponse:
    await auth_service.revoke_all_tokens(current_user)
    return MessageResponse(message="Logged out of all sessions")


@router.get("/me", response_model=UserResponse, summary="Get own profile")
async def get_me(current_user: CurrentUser) -> UserResponse:
    return to_user_response(current_user)


@router.patch("/me", response_model=UserResponse, summary="Update own profile")
async def update_me(
    request: UserUpdateRequest,
    current_user: CurrentUser,
    service: Annotated[ProfileService, Depends(get_profile_service)],
) -> UserResponse:
    """
    Update name, email, password or age.

    Any other field is rejected with 400.
    """
    user = await service.update_profile(current_user, request)
    return to_user_response(user)


@router.delete("/me", response_model=UserResponse, summary="Delete own account")
async def delete_me(
    current_user: CurrentUser,
    service: Annotated[ProfileService, Depends(get_profile_service)],
) -> UserResponse:
    """Delete the account together with all of its tasks."""
    user = await service.delete_account(current_user)
    return to_user_response(user)


@router.post("/me/avatar", response_model=UserResponse, summary="Upload avatar")
async def upload_avatar(
    current_user: CurrentUser,
    service: Annotated[ProfileService, Depends(get_profile_service)],
    avatar: UploadFile = File(..., description="JPEG or PNG image"),
) -> UserResponse:
    """
    Store a profile picture.

    The upload is read up to one byte past the size limit so oversized files
    are rejected without buffering them whole.
    """
    data = await avatar.read(settings.AVATAR_MAX_BYTES + 1)
    user = await service.set_avatar(current_user, avatar.filename, data)
    return to_user_response(user)


@router.delete("/me/avatar", response_model=UserResponse, summary="Remove avatar")
async def delete_avatar(
    current_user: CurrentUser,
    service: Annotated[ProfileService, Depends(get_profile_service)],
) -> UserResponse:
    user = await service.clear_avatar(current_user)
    return to_user_response(user)


@router.get(
    "/{user_id}/avatar",
    response_class=Response,
    responses={200: {"content": {AVATAR_MEDIA_TYPE: {}}}},
    summary="Get a user's avatar",
)
async def get_avatar(
    user_id: str,
    service: Annotated[ProfileService, Depends(get_profile_service)],
) -> Response:
    """Public endpoint returning the stored PNG."""
    avatar = await service.get_avatar(user_id)
    if avatar is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Avatar not found",
        )
    return Response(content=avatar, media_type=AVATAR_MEDIA_TYPE)
