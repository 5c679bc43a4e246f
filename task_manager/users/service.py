import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
from jose import jwt, JWTError

from task_manager.config import settings
from task_manager.errors import AuthenticationError, CascadeDeleteError, InvalidCredentialsError
from task_manager.tasks.repository import TaskRepositoryInterface
from task_manager.users.avatar import check_avatar_upload, normalize_avatar
from task_manager.users.models import User
from task_manager.users.repository import UserRepositoryInterface
from task_manager.users.schemas import UserCreateRequest, UserUpdateRequest

logger = logging.getLogger(__name__)

# bcrypt only looks at the first 72 bytes of a password
BCRYPT_MAX_BYTES = 72

# Checked against when the email is unknown so both login failures cost one bcrypt round
_DUMMY_HASH = bcrypt.hashpw(b"unknown-account", bcrypt.gensalt()).decode("utf-8")


class AuthService:
    """Password hashing plus issuing, resolving and revoking bearer tokens."""

    def __init__(self, repository: UserRepositoryInterface):
        self.repository = repository

    def hash_password(self, password: str) -> str:
        """Hash a password using bcrypt."""
        password_bytes = password.encode("utf-8")[:BCRYPT_MAX_BYTES]
        salt = bcrypt.gensalt()
        return bcrypt.hashpw(password_bytes, salt).decode("utf-8")

    def verify_password(self, plain_password: str, hashed_password: str) -> bool:
        """Verify a password against its hash."""
        password_bytes = plain_password.encode("utf-8")[:BCRYPT_MAX_BYTES]
        hashed_bytes = hashed_password.encode("utf-8")
        return bcrypt.checkpw(password_bytes, hashed_bytes)

    def create_access_token(self, user_id: str, expires_delta: Optional[timedelta] = None) -> str:
        """
        Create a signed token bound to the user id.

        Tokens only expire when an explicit delta is given or
        JWT_ACCESS_TOKEN_EXPIRE_MINUTES is positive.
        """
        if expires_delta is None and settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES > 0:
            expires_delta = timedelta(minutes=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES)

        now = datetime.now(timezone.utc)
        to_encode = {
            "sub": user_id,
            "iat": now,
            "jti": uuid.uuid4().hex,
        }
        if expires_delta is not None:
            to_encode["exp"] = now + expires_delta
        return jwt.encode(
            to_encode,
            settings.JWT_SECRET_KEY,
            algorithm=settings.JWT_ALGORITHM,
        )

    def decode_token(self, token: str) -> Optional[str]:
        """Decode and validate a JWT token. Returns user_id if valid."""
        try:
            payload = jwt.decode(
                token,
                settings.JWT_SECRET_KEY,
                algorithms=[settings.JWT_ALGORITHM],
            )
        except JWTError:
            return None
        user_id = payload.get("sub")
        if not isinstance(user_id, str):
            return None
        return user_id

    async def register_user(self, request: UserCreateRequest) -> tuple[User, str]:
        """
        Create an account holding exactly one active token.

        Raises DuplicateKeyError if the email is already registered.
        """
        user = User.create(
            name=request.name,
            email=request.email,
            password_hash=self.hash_password(request.password),
            age=request.age,
        )
        token = self.create_access_token(user.id)
        user.tokens.append(token)
        await self.repository.create(user)
        logger.info("Registered user id=%s", user.id)
        return user, token

    async def authenticate_user(self, email: str, password: str) -> User:
        """Check credentials. Unknown email and wrong password fail the same way."""
        user = await self.repository.get_by_email(email)
        if user is None:
            self.verify_password(password, _DUMMY_HASH)
            raise InvalidCredentialsError()
        if not self.verify_password(password, user.password_hash):
            raise InvalidCredentialsError()
        return user

    async def login(self, email: str, password: str) -> tuple[User, str]:
        user = await self.authenticate_user(email, password)
        token = await self.issue_token(user)
        return user, token

    async def issue_token(self, user: User) -> str:
        """Create a token and add it to the user's active tokens."""
        token = self.create_access_token(user.id)
        await self.repository.add_token(user.id, token)
        user.tokens.append(token)
        return token

    async def resolve_token(self, token: str) -> Optional[User]:
        """Return the user owning an active token, or None."""
        user_id = self.decode_token(token)
        if user_id is None:
            return None
        return await self.repository.get_by_token(user_id, token)

    async def revoke_token(self, user: User, token: str) -> None:
        await self.repository.remove_token(user.id, token)

    async def revoke_all_tokens(self, user: User) -> None:
        await self.repository.clear_tokens(user.id)
        logger.info("Revoked all sessions for user id=%s", user.id)


class ProfileService:
    """Profile updates, avatars and account deletion."""

    def __init__(
        self,
        repository: UserRepositoryInterface,
        task_repository: TaskRepositoryInterface,
        auth_service: AuthService,
    ):
        self.repository = repository
        self.task_repository = task_repository
        self.auth_service = auth_service

    async def update_profile(self, user: User, request: UserUpdateRequest) -> User:
        """Apply a validated patch. The password is stored re-hashed."""
        updates = request.model_dump(exclude_unset=True)
        if "password" in updates:
            updates["password_hash"] = self.auth_service.hash_password(updates.pop("password"))
        if not updates:
            return user

        updated = await self.repository.update_fields(user.id, updates)
        if updated is None:
            raise AuthenticationError()
        return updated

    async def delete_account(self, user: User) -> User:
        """
        Delete the user and every task it owns.

        The task cascade is retried; the request only succeeds once no task
        references the deleted owner.
        """
        deleted = await self.repository.delete(user.id) or user

        attempts = max(1, settings.CASCADE_DELETE_ATTEMPTS)
        for attempt in range(1, attempts + 1):
            try:
                removed = await self.task_repository.delete_by_owner(user.id)
            except Exception as exc:
                logger.warning(
                    "Task cascade for deleted user id=%s failed (attempt %d/%d): %s",
                    user.id, attempt, attempts, exc,
                )
                if attempt == attempts:
                    raise CascadeDeleteError(
                        f"Could not remove tasks of deleted user {user.id}"
                    ) from exc
            else:
                logger.info("Deleted user id=%s and %d task(s)", user.id, removed)
                break
        return deleted

    async def set_avatar(self, user: User, filename: Optional[str], data: bytes) -> User:
        """Validate and normalize an upload before anything is written."""
        check_avatar_upload(filename, data)
        avatar = normalize_avatar(data)
        updated = await self.repository.set_avatar(user.id, avatar)
        if updated is None:
            raise AuthenticationError()
        return updated

    async def clear_avatar(self, user: User) -> User:
        updated = await self.repository.set_avatar(user.id, None)
        if updated is None:
            raise AuthenticationError()
        return updated

    async def get_avatar(self, user_id: str) -> Optional[bytes]:
        user = await self.repository.get_by_id(user_id)
        if user is None:
            return None
        return user.avatar
