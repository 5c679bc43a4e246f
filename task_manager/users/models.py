from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional
import uuid


def utcnow() -> datetime:
    """Current UTC time, truncated to the millisecond precision MongoDB stores."""
    now = datetime.now(timezone.utc)
    return now.replace(microsecond=now.microsecond // 1000 * 1000)


@dataclass
class User:
    """User account with its active session tokens."""

    id: str
    name: str
    email: str
    password_hash: str
    age: int = 0
    avatar: Optional[bytes] = None
    tokens: list[str] = field(default_factory=list)
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    @classmethod
    def create(cls, name: str, email: str, password_hash: str, age: int = 0) -> "User":
        """Create a new user with generated ID."""
        now = utcnow()
        return cls(
            id=str(uuid.uuid4()),
            name=name,
            email=email,
            password_hash=password_hash,
            age=age,
            avatar=None,
            tokens=[],
            created_at=now,
            updated_at=now,
        )

    @property
    def has_avatar(self) -> bool:
        return self.avatar is not None

    def to_dict(self) -> dict:
        """Convert user to dictionary for MongoDB storage."""
        doc = {
            "_id": self.id,
            "name": self.name,
            "email": self.email,
            "password_hash": self.password_hash,
            "age": self.age,
            "tokens": [{"token": token} for token in self.tokens],
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }
        if self.avatar is not None:
            doc["avatar"] = self.avatar
        return doc

    @classmethod
    def from_dict(cls, data: dict) -> "User":
        """Create user from MongoDB document."""
        avatar = data.get("avatar")
        return cls(
            id=data["_id"],
            name=data["name"],
            email=data["email"],
            password_hash=data["password_hash"],
            age=data.get("age", 0),
            avatar=bytes(avatar) if avatar is not None else None,
            tokens=[entry["token"] for entry in data.get("tokens", [])],
            created_at=data["created_at"],
            updated_at=data.get("updated_at", data["created_at"]),
        )
