"""API request/response schemas for the task tracker."""

from datetime import datetime, timezone
from typing import Any, List, Optional

from pydantic import BaseModel, Field

from .models.task import Task, TaskPage, TaskStatus


class CamelModel(BaseModel):
    """Base schema whose fields travel under camelCase aliases."""

    class Config:
        """Pydantic configuration."""
        populate_by_name = True


# Task-related schemas
class TaskCreate(CamelModel):
    """Schema for creating a new task.

    Fields stay optional here so that blank and oversized values reach the
    service and come back as MissingField/FieldTooLong, not as a 422.
    """
    user_name: Optional[Any] = Field(None, alias="userName", description="Task owner")
    task: Optional[Any] = Field(None, description="Task text")


class TaskStatusUpdate(BaseModel):
    """Schema for changing the status of a task."""
    status: Optional[Any] = Field(None, description='Either "active" or "inactive"')


class TaskResponse(CamelModel):
    """Schema for task API responses."""
    id: str = Field(..., description="Unique task identifier")
    user_name: str = Field(..., alias="userName", description="Task owner")
    task: str = Field(..., description="Task text")
    status: TaskStatus = Field(..., description="Task status")
    created_at: datetime = Field(..., alias="createdAt", description="Task creation timestamp")
    updated_at: datetime = Field(..., alias="updatedAt", description="Task last update timestamp")

    @classmethod
    def from_task(cls, task: Task) -> "TaskResponse":
        return cls(
            id=task.id,
            user_name=task.user_name,
            task=task.task,
            status=task.status,
            created_at=task.created_at,
            updated_at=task.updated_at,
        )


class TaskMutationResponse(BaseModel):
    """Schema for create and status update responses."""
    message: str = Field(..., description="Outcome message")
    task: TaskResponse = Field(..., description="Resulting task")


class TaskDeleteResponse(CamelModel):
    """Schema for delete responses, echoing the removed task."""
    message: str = Field(..., description="Outcome message")
    deleted_task: TaskResponse = Field(..., alias="deletedTask", description="Task that was removed")


class AppliedFilters(CamelModel):
    """Filters that were actually applied to a listing."""
    status: Optional[TaskStatus] = Field(None, description="Status filter, if valid")
    user_name: Optional[str] = Field(None, alias="userName", description="Owner substring filter")


class TaskListResponse(CamelModel):
    """Schema for task list API responses."""
    items: List[TaskResponse] = Field(..., description="Tasks in this page, newest first")
    count: int = Field(..., description="Number of tasks in this page")
    next_cursor: Optional[str] = Field(None, alias="nextCursor", description="Cursor for the next page")
    has_more: bool = Field(..., alias="hasMore", description="Whether more tasks may remain")
    applied_filters: AppliedFilters = Field(..., alias="appliedFilters", description="Effective filters")

    @classmethod
    def from_page(cls, page: TaskPage) -> "TaskListResponse":
        return cls(
            items=[TaskResponse.from_task(task) for task in page.items],
            count=page.count,
            next_cursor=page.next_cursor,
            has_more=page.has_more,
            applied_filters=AppliedFilters(
                status=page.applied_filters.status,
                user_name=page.applied_filters.user_name,
            ),
        )


class ErrorResponse(BaseModel):
    """Schema for error responses."""
    error: str = Field(..., description="Error kind")
    message: str = Field(..., description="Human-readable message")
    status_code: int = Field(..., description="HTTP status code")
    path: str = Field(..., description="Request URL")


# Health check schema
class HealthResponse(BaseModel):
    """Schema for health check responses."""
    status: str = Field(default="healthy", description="Service health status")
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), description="Health check timestamp")
    version: str = Field(default="1.0.0", description="Application version")
    store_backend: Optional[str] = Field(None, description="Configured task store backend")
