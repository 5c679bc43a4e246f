"""
Task Manager API - Task Enums

Sortable fields and directions accepted by the task listing.
"""

from enum import Enum


class SortField(str, Enum):
    """Public field names accepted in sortBy."""
    DESCRIPTION = "description"
    COMPLETED = "completed"
    CREATED_AT = "createdAt"
    UPDATED_AT = "updatedAt"

    @property
    def attribute(self) -> str:
        """Name of the field on the Task model and in MongoDB."""
        return _SORT_ATTRIBUTES[self]


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


_SORT_ATTRIBUTES = {
    SortField.DESCRIPTION: "description",
    SortField.COMPLETED: "completed",
    SortField.CREATED_AT: "created_at",
    SortField.UPDATED_AT: "updated_at",
}
