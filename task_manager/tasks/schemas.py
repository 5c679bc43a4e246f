"""
Task Manager API - Task Schemas

Pydantic models for task API requests and responses.
"""

from datetime import datetime
from typing import Annotated, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, StrictBool, model_validator
from pydantic.alias_generators import to_camel


def _clean_description(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("Description is required")
    return value


Description = Annotated[str, Field(max_length=5000), AfterValidator(_clean_description)]


class TaskCreateRequest(BaseModel):
    """Request model for creating a task."""

    description: Description
    completed: StrictBool = Field(default=False, description="Completion flag")


class TaskUpdateRequest(BaseModel):
    """Request model for updating a task. Only description and completed may change."""

    model_config = ConfigDict(extra="forbid")

    description: Optional[Description] = None
    completed: Optional[StrictBool] = None

    @model_validator(mode="after")
    def _reject_nulls(self) -> "TaskUpdateRequest":
        for field_name in self.model_fields_set:
            if getattr(self, field_name) is None:
                raise ValueError(f"{field_name} cannot be null")
        return self


class TaskResponse(BaseModel):
    """Response model for a single task."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str = Field(description="Task ID")
    description: str = Field(description="Task description")
    completed: bool = Field(description="Completion flag")
    owner: str = Field(description="Owner user ID")
    created_at: datetime = Field(description="Creation timestamp")
    updated_at: datetime = Field(description="Last update timestamp")
