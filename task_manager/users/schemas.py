"""
Task Manager API - User Schemas

Pydantic models for account requests and responses.
"""

from datetime import datetime
from typing import Annotated, Any, Optional

from pydantic import AfterValidator, BaseModel, BeforeValidator, ConfigDict, EmailStr, Field, model_validator
from pydantic.alias_generators import to_camel

PASSWORD_MIN_LENGTH = 7
FORBIDDEN_PASSWORD_WORD = "password"


def _clean_name(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("Name is required")
    return value


def _clean_email(value: Any) -> Any:
    if isinstance(value, str):
        return value.strip().lower()
    return value


def _clean_password(value: str) -> str:
    value = value.strip()
    if len(value) < PASSWORD_MIN_LENGTH:
        raise ValueError(f"Password must be at least {PASSWORD_MIN_LENGTH} characters")
    if FORBIDDEN_PASSWORD_WORD in value.lower():
        raise ValueError(f'Password cannot contain "{FORBIDDEN_PASSWORD_WORD}"')
    return value


Name = Annotated[str, Field(max_length=200), AfterValidator(_clean_name)]
Email = Annotated[EmailStr, BeforeValidator(_clean_email)]
Password = Annotated[str, Field(max_length=128), AfterValidator(_clean_password)]
Age = Annotated[int, Field(ge=0)]


class UserCreateRequest(BaseModel):
    """Request schema for signup."""

    name: Name
    email: Email
    password: Password
    age: Age = 0


class UserLoginRequest(BaseModel):
    """Request schema for login."""

    email: Annotated[str, BeforeValidator(_clean_email)]
    password: str


class UserUpdateRequest(BaseModel):
    """
    Profile patch. Only name, email, password and age may change; any other
    key is rejected.
    """

    model_config = ConfigDict(extra="forbid")

    name: Optional[Name] = None
    email: Optional[Email] = None
    password: Optional[Password] = None
    age: Optional[Age] = None

    @model_validator(mode="after")
    def _reject_nulls(self) -> "UserUpdateRequest":
        for field_name in self.model_fields_set:
            if getattr(self, field_name) is None:
                raise ValueError(f"{field_name} cannot be null")
        return self


class UserResponse(BaseModel):
    """Public user information. Never carries the password hash or tokens."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    name: str
    email: str
    age: int
    has_avatar: bool
    created_at: datetime
    updated_at: datetime


class AuthResponse(BaseModel):
    """Response schema for signup and login."""

    user: UserResponse
    token: str


class MessageResponse(BaseModel):
    """Generic message response."""

    message: str
