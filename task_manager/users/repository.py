"""
Task Manager API - User Repository

Repository pattern for user data access.
Includes MongoDB implementation for runtime and in-memory implementation for tests.
"""

import copy
import logging
from abc import ABC, abstractmethod
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError as MongoDuplicateKeyError

from task_manager.errors import DuplicateKeyError
from task_manager.users.models import User, utcnow

logger = logging.getLogger(__name__)


class UserRepositoryInterface(ABC):
    """Abstract interface for user repository.

    Token list mutations are single-document operations so that concurrent
    logins for the same user never drop each other's token.
    """

    @abstractmethod
    async def create(self, user: User) -> User:
        """Create a new user. Raises DuplicateKeyError if the email is taken."""

    @abstractmethod
    async def get_by_id(self, user_id: str) -> Optional[User]:
        pass

    @abstractmethod
    async def get_by_email(self, email: str) -> Optional[User]:
        pass

    @abstractmethod
    async def get_by_token(self, user_id: str, token: str) -> Optional[User]:
        """Get the user only if the token is in its active token list."""

    @abstractmethod
    async def add_token(self, user_id: str, token: str) -> None:
        pass

    @abstractmethod
    async def remove_token(self, user_id: str, token: str) -> None:
        pass

    @abstractmethod
    async def clear_tokens(self, user_id: str) -> None:
        pass

    @abstractmethod
    async def update_fields(self, user_id: str, updates: dict) -> Optional[User]:
        """Set fields on a user. Raises DuplicateKeyError if the new email is taken."""

    @abstractmethod
    async def set_avatar(self, user_id: str, avatar: Optional[bytes]) -> Optional[User]:
        """Store avatar bytes, or remove the avatar when None."""

    @abstractmethod
    async def delete(self, user_id: str) -> Optional[User]:
        """Delete a user and return the removed record."""


class MongoUserRepository(UserRepositoryInterface):
    """MongoDB implementation of the user repository."""

    COLLECTION_NAME = "users"

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.collection = db[self.COLLECTION_NAME]

    @staticmethod
    def _duplicate_key(exc: MongoDuplicateKeyError) -> DuplicateKeyError:
        key_value = (exc.details or {}).get("keyValue") or {}
        field, value = next(iter(key_value.items()), ("email", None))
        return DuplicateKeyError(field, value)

    async def create(self, user: User) -> User:
        try:
            await self.collection.insert_one(user.to_dict())
        except MongoDuplicateKeyError as exc:
            raise self._duplicate_key(exc) from exc
        logger.info("Created user id=%s", user.id)
        return user

    async def get_by_id(self, user_id: str) -> Optional[User]:
        doc = await self.collection.find_one({"_id": user_id})
        if doc is None:
            return None
        return User.from_dict(doc)

    async def get_by_email(self, email: str) -> Optional[User]:
        doc = await self.collection.find_one({"email": email})
        if doc is None:
            return None
        return User.from_dict(doc)

    async def get_by_token(self, user_id: str, token: str) -> Optional[User]:
        doc = await self.collection.find_one({"_id": user_id, "tokens.token": token})
        if doc is None:
            return None
        return User.from_dict(doc)

    async def add_token(self, user_id: str, token: str) -> None:
        await self.collection.update_one(
            {"_id": user_id},
            {"$push": {"tokens": {"token": token}}},
        )

    async def remove_token(self, user_id: str, token: str) -> None:
        await self.collection.update_one(
            {"_id": user_id},
            {"$pull": {"tokens": {"token": token}}},
        )

    async def clear_tokens(self, user_id: str) -> None:
        await self.collection.update_one({"_id": user_id}, {"$set": {"tokens": []}})

    async def update_fields(self, user_id: str, updates: dict) -> Optional[User]:
        updates = {**updates, "updated_at": utcnow()}
        try:
            result = await self.collection.find_one_and_update(
                {"_id": user_id},
                {"$set": updates},
                return_document=ReturnDocument.AFTER,
            )
        except MongoDuplicateKeyError as exc:
            raise self._duplicate_key(exc) from exc
        return User.from_dict(result) if result else None

    async def set_avatar(self, user_id: str, avatar: Optional[bytes]) -> Optional[User]:
        now = utcnow()
        if avatar is None:
            update = {"$unset": {"avatar": ""}, "$set": {"updated_at": now}}
        else:
            update = {"$set": {"avatar": avatar, "updated_at": now}}
        result = await self.collection.find_one_and_update(
            {"_id": user_id},
            update,
            return_document=ReturnDocument.AFTER,
        )
        return User.from_dict(result) if result else None

    async def delete(self, user_id: str) -> Optional[User]:
        result = await self.collection.find_one_and_delete({"_id": user_id})
        return User.from_dict(result) if result else None


class InMemoryUserRepository(UserRepositoryInterface):
    """
    In-memory implementation for CI-safe testing.

    Returns copies so callers cannot mutate stored state without going
    through the repository.
    """

    def __init__(self):
        self._users: dict[str, User] = {}

    def clear(self) -> None:
        self._users.clear()

    def _email_taken(self, email: str, exclude_id: Optional[str] = None) -> bool:
        return any(u.email == email and u.id != exclude_id for u in self._users.values())

    async def create(self, user: User) -> User:
        if self._email_taken(user.email):
            raise DuplicateKeyError("email", user.email)
        self._users[user.id] = copy.deepcopy(user)
        return user

    async def get_by_id(self, user_id: str) -> Optional[User]:
        user = self._users.get(user_id)
        return copy.deepcopy(user) if user else None

    async def get_by_email(self, email: str) -> Optional[User]:
        for user in self._users.values():
            if user.email == email:
                return copy.deepcopy(user)
        return None

    async def get_by_token(self, user_id: str, token: str) -> Optional[User]:
        user = self._users.get(user_id)
        if user is None or token not in user.tokens:
            return None
        return copy.deepcopy(user)

    async def add_token(self, user_id: str, token: str) -> None:
        user = self._users.get(user_id)
        if user is not None:
            user.tokens.append(token)

    async def remove_token(self, user_id: str, token: str) -> None:
        user = self._users.get(user_id)
        if user is not None:
            user.tokens = [t for t in user.tokens if t != token]

    async def clear_tokens(self, user_id: str) -> None:
        user = self._users.get(user_id)
        if user is not None:
            user.tokens = []

    async def update_fields(self, user_id: str, updates: dict) -> Optional[User]:
        user = self._users.get(user_id)
        if user is None:
            return None
        if "email" in updates and self._email_taken(updates["email"], exclude_id=user_id):
            raise DuplicateKeyError("email", updates["email"])
        for key, value in updates.items():
            if hasattr(user, key):
                setattr(user, key, value)
        user.updated_at = utcnow()
        return copy.deepcopy(user)

    async def set_avatar(self, user_id: str, avatar: Optional[bytes]) -> Optional[User]:
        user = self._users.get(user_id)
        if user is None:
            return None
        user.avatar = avatar
        user.updated_at = utcnow()
        return copy.deepcopy(user)

    async def delete(self, user_id: str) -> Optional[User]:
        return self._users.pop(user_id, None)
