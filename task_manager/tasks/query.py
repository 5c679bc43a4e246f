"""
Task Manager API - Task Query Shaping

Turns the raw query string of GET /tasks into filter, sort and pagination
directives. Malformed parameters are ignored rather than rejected.
"""

from dataclasses import dataclass
from typing import Iterable, List, Optional

from pymongo import ASCENDING, DESCENDING

from task_manager.tasks.enums import SortDirection, SortField
from task_manager.tasks.models import Task

DEFAULT_SORT_ATTRIBUTE = "created_at"
# Largest value a BSON int64 can carry to cursor.limit/skip
MAX_PAGE_VALUE = 2**63 - 1


@dataclass(frozen=True)
class TaskQuery:
    """Listing directives. limit=None means no limit."""

    completed: Optional[bool] = None
    sort_field: Optional[SortField] = None
    sort_direction: SortDirection = SortDirection.ASC
    limit: Optional[int] = None
    skip: int = 0

    @property
    def sort_attribute(self) -> str:
        if self.sort_field is None:
            return DEFAULT_SORT_ATTRIBUTE
        return self.sort_field.attribute

    @property
    def descending(self) -> bool:
        return self.sort_field is not None and self.sort_direction == SortDirection.DESC

    def mongo_filter(self, owner_id: str) -> dict:
        query: dict = {"owner_id": owner_id}
        if self.completed is not None:
            query["completed"] = self.completed
        return query

    def mongo_sort(self) -> list[tuple[str, int]]:
        direction = DESCENDING if self.descending else ASCENDING
        # _id grows with creation time, so ties keep creation order and pages do not overlap
        return [(self.sort_attribute, direction), ("_id", ASCENDING)]

    def apply(self, tasks: Iterable[Task]) -> List[Task]:
        """Filter, sort and paginate an in-memory sequence the way MongoDB would."""
        results = [
            task for task in tasks
            if self.completed is None or task.completed == self.completed
        ]
        results.sort(key=lambda task: task.id)
        results.sort(key=lambda task: getattr(task, self.sort_attribute), reverse=self.descending)
        end = None if self.limit is None else self.skip + self.limit
        return results[self.skip:end]


def _parse_bool(value: Optional[str]) -> Optional[bool]:
    if value == "true":
        return True
    if value == "false":
        return False
    return None


def _parse_non_negative_int(value: Optional[str]) -> Optional[int]:
    if value is None:
        return None
    value = value.strip()
    if not value or not value.isascii() or not value.isdigit():
        return None
    number = int(value)
    if number > MAX_PAGE_VALUE:
        return None
    return number


def _parse_sort(value: Optional[str]) -> tuple[Optional[SortField], SortDirection]:
    if not value or ":" not in value:
        return None, SortDirection.ASC
    field_name, direction = value.split(":", 1)
    try:
        return SortField(field_name), SortDirection(direction)
    except ValueError:
        return None, SortDirection.ASC


def parse_task_query(
    completed: Optional[str] = None,
    sort_by: Optional[str] = None,
    limit: Optional[str] = None,
    skip: Optional[str] = None,
) -> TaskQuery:
    """
    Build a TaskQuery from raw query-string values.

    - completed: "true" or "false", anything else is ignored
    - sort_by: "<field>:<asc|desc>" over description, completed, createdAt, updatedAt
    - limit / skip: non-negative integers; limit=0 means no limit
    """
    sort_field, sort_direction = _parse_sort(sort_by)
    parsed_limit = _parse_non_negative_int(limit)
    return TaskQuery(
        completed=_parse_bool(completed),
        sort_field=sort_field,
        sort_direction=sort_direction,
        limit=parsed_limit or None,
        skip=_parse_non_negative_int(skip) or 0,
    )
