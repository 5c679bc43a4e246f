"""
Task Manager API - Errors

Domain exceptions raised by services and repositories, and the handlers that
translate them into HTTP responses at the application boundary.
"""

import logging
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)

AUTHENTICATION_REQUIRED = "Please authenticate."
DUPLICATE_KEY_CODE = "duplicate_key"


class TaskManagerError(Exception):
    """Base class for domain errors."""


class AuthenticationError(TaskManagerError):
    """Missing, malformed, invalid or revoked bearer token."""

    def __init__(self, message: str = AUTHENTICATION_REQUIRED):
        super().__init__(message)


class InvalidCredentialsError(TaskManagerError):
    """Login failed. Raised with the same message whatever the cause."""

    def __init__(self):
        super().__init__("Unable to login.")


class DuplicateKeyError(TaskManagerError):
    """A unique constraint was violated."""

    def __init__(self, field: str, value: Any):
        self.field = field
        self.value = value
        super().__init__(f"A record with this {field} already exists.")


class AvatarError(TaskManagerError):
    """Base class for rejected avatar uploads."""


class UnsupportedAvatarError(AvatarError):
    """Upload is not a JPEG or PNG image."""

    def __init__(self, message: str = "Please upload a jpg, jpeg or png image."):
        super().__init__(message)


class AvatarTooLargeError(AvatarError):
    """Upload exceeds the configured size limit."""

    def __init__(self, limit: int):
        self.limit = limit
        super().__init__(f"File too large. Maximum size: {limit} bytes.")


class CascadeDeleteError(TaskManagerError):
    """Tasks of a deleted account could not be removed."""


def _format_validation_errors(errors: list[dict]) -> list[dict]:
    formatted = []
    for error in errors:
        loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        formatted.append(
            {
                "field": ".".join(loc) or None,
                "message": error.get("msg", ""),
                "type": error.get("type", ""),
            }
        )
    return formatted


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "message": "Validation failed",
            "errors": _format_validation_errors(exc.errors()),
        },
    )


async def duplicate_key_handler(request: Request, exc: DuplicateKeyError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "message": str(exc),
            "code": DUPLICATE_KEY_CODE,
            "keyValue": {exc.field: exc.value},
        },
    )


async def authentication_error_handler(request: Request, exc: AuthenticationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_401_UNAUTHORIZED,
        content={"error": str(exc)},
        headers={"WWW-Authenticate": "Bearer"},
    )


async def invalid_credentials_handler(request: Request, exc: InvalidCredentialsError) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": str(exc)})


async def avatar_error_handler(request: Request, exc: AvatarError) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": str(exc)})


async def cascade_delete_handler(request: Request, exc: CascadeDeleteError) -> JSONResponse:
    logger.error("Account deletion left tasks behind: %s", exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": str(exc)},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Attach the domain error translations to the application."""
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(DuplicateKeyError, duplicate_key_handler)
    app.add_exception_handler(AuthenticationError, authentication_error_handler)
    app.add_exception_handler(InvalidCredentialsError, invalid_credentials_handler)
    app.add_exception_handler(AvatarError, avatar_error_handler)
    app.add_exception_handler(CascadeDeleteError, cascade_delete_handler)
