"""Dependency injection helpers for FastAPI."""

from functools import lru_cache

from fastapi import HTTPException, Request, status

from .config import Settings, settings
from .services.task_service import TaskService
from .stores.base import TaskStore
from .stores.memory import InMemoryTaskStore
from .stores.sqlite import SQLiteTaskStore


@lru_cache()
def get_settings() -> Settings:
    """Get application settings (cached)."""
    return settings


def build_task_store(settings: Settings) -> TaskStore:
    """Construct the task store selected by the settings.

    Args:
        settings: Application settings

    Returns:
        Task store instance
    """
    if settings.store_backend == "sqlite":
        return SQLiteTaskStore(settings.sqlite_path)
    return InMemoryTaskStore()


def build_task_service(settings: Settings, store: TaskStore) -> TaskService:
    """Construct a task service around an explicitly built store."""
    return TaskService(
        store,
        max_create_attempts=settings.max_create_attempts,
        default_page_limit=settings.default_page_limit,
    )


def get_task_service(request: Request) -> TaskService:
    """Get the task service created during application startup."""
    task_service = getattr(request.app.state, "task_service", None)
    if task_service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Task service not initialized"
        )
    return task_service
