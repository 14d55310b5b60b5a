"""Domain models for the task tracker."""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


USER_NAME_MAX_LENGTH = 100
TASK_TEXT_MAX_LENGTH = 500


class TaskStatus(str, Enum):
    """Task status enumeration."""
    ACTIVE = "active"
    INACTIVE = "inactive"

    @classmethod
    def parse(cls, value) -> Optional["TaskStatus"]:
        """Return the matching status, or None when the value is not one of ours."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return None


class Task(BaseModel):
    """Task domain model.

    Field names are snake_case in Python and camelCase on the wire.
    """

    id: str = Field(..., description="Unique task identifier")
    user_name: str = Field(..., alias="userName", max_length=USER_NAME_MAX_LENGTH, description="Owner of the task")
    task: str = Field(..., max_length=TASK_TEXT_MAX_LENGTH, description="Task text")
    status: TaskStatus = Field(default=TaskStatus.ACTIVE, description="Task status")
    created_at: datetime = Field(..., alias="createdAt", description="Task creation timestamp")
    updated_at: datetime = Field(..., alias="updatedAt", description="Task last update timestamp")

    class Config:
        """Pydantic configuration."""
        populate_by_name = True



class TaskFilter(BaseModel):
    """Filters applied while scanning the store.

    Both filters combine with a logical AND; a None filter matches everything.
    """

    status: Optional[TaskStatus] = None
    user_name: Optional[str] = None

    def matches(self, task: Task) -> bool:
        """Check whether a task passes every active filter.

        Args:
            task: Task to check

        Returns:
            True if the task matches
        """
        if self.status is not None and task.status != self.status:
            return False

        # Case-sensitive containment
        if self.user_name and self.user_name not in task.user_name:
            return False

        return True


class TaskPage(BaseModel):
    """One page of a task listing."""

    items: List[Task] = Field(default_factory=list)
    next_cursor: Optional[str] = None
    applied_filters: TaskFilter = Field(default_factory=TaskFilter)

    @property
    def count(self) -> int:
        return len(self.items)

    @property
    def has_more(self) -> bool:
        return self.next_cursor is not None
