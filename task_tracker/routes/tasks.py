"""Task CRUD routes."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ..deps import get_task_service
from ..errors import TaskServiceError
from ..schemas import (
    ErrorResponse,
    TaskCreate,
    TaskDeleteResponse,
    TaskListResponse,
    TaskMutationResponse,
    TaskResponse,
    TaskStatusUpdate,
)
from ..services.task_service import TaskService

logger = logging.getLogger(__name__)

router = APIRouter(
    responses={
        400: {"model": ErrorResponse, "description": "Validation error"},
        503: {"model": ErrorResponse, "description": "Task store unavailable"},
    },
)

_NOT_FOUND = {404: {"model": ErrorResponse, "description": "Task not found"}}


@router.post(
    "/",
    response_model=TaskMutationResponse,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"model": ErrorResponse, "description": "Task id conflict"}},
)
def create_task(
    task_data: TaskCreate,
    task_service: TaskService = Depends(get_task_service)
) -> TaskMutationResponse:
    """Create a new task.

    Args:
        task_data: Task creation data
        task_service: Task service instance

    Returns:
        Created task wrapped with a message

    Raises:
        TaskServiceError: Rendered by the application error handler
        HTTPException: If task creation fails unexpectedly
    """
    try:
        logger.info(f"Creating new task for user: {task_data.user_name}")

        task = task_service.create_task(task_data.user_name, task_data.task)

        return TaskMutationResponse(
            message="Task created successfully",
            task=TaskResponse.from_task(task)
        )

    except TaskServiceError:
        raise
    except Exception as e:
        logger.error(f"Unexpected error creating task: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error during task creation"
        )


@router.get("/", response_model=TaskListResponse)
def list_tasks(
    status_filter: Optional[str] = Query(None, alias="status"),
    user_name: Optional[str] = Query(None, alias="userName"),
    limit: Optional[int] = Query(None),
    cursor: Optional[str] = Query(None),
    task_service: TaskService = Depends(get_task_service)
) -> TaskListResponse:
    """List one page of tasks with optional filters.

    Args:
        status_filter: Filter by task status, ignored if not a known status
        user_name: Filter by substring of the owner name
        limit: Maximum number of tasks to return
        cursor: Continuation cursor from a previous page
        task_service: Task service instance

    Returns:
        Page of tasks with pagination info and effective filters
    """
    try:
        logger.debug(f"Listing tasks with filters: status={status_filter}, userName={user_name}")

        page = task_service.list_tasks(
            status=status_filter,
            user_name=user_name,
            limit=limit,
            cursor=cursor
        )

        return TaskListResponse.from_page(page)

    except TaskServiceError:
        raise
    except Exception as e:
        logger.error(f"Error listing tasks: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error while listing tasks"
        )


@router.get("/{task_id}", response_model=TaskResponse, responses=_NOT_FOUND)
def get_task(
    task_id: str,
    task_service: TaskService = Depends(get_task_service)
) -> TaskResponse:
    """Get a specific task by ID.

    Args:
        task_id: Task ID
        task_service: Task service instance

    Returns:
        Task response
    """
    try:
        logger.debug(f"Getting task: {task_id}")

        return TaskResponse.from_task(task_service.get_task(task_id))

    except TaskServiceError:
        raise
    except Exception as e:
        logger.error(f"Error getting task {task_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error while retrieving task"
        )


@router.put("/{task_id}", response_model=TaskMutationResponse, responses=_NOT_FOUND)
def update_task_status(
    task_id: str,
    update: TaskStatusUpdate,
    task_service: TaskService = Depends(get_task_service)
) -> TaskMutationResponse:
    """Update the status of a task.

    Args:
        task_id: Task ID
        update: Requested status
        task_service: Task service instance

    Returns:
        Updated task wrapped with a message
    """
    try:
        logger.info(f"Updating task {task_id} status to {update.status}")

        task = task_service.update_task_status(task_id, update.status)

        return TaskMutationResponse(
            message="Task status updated successfully",
            task=TaskResponse.from_task(task)
        )

    except TaskServiceError:
        raise
    except Exception as e:
        logger.error(f"Unexpected error updating task {task_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error during task update"
        )


@router.delete("/{task_id}", response_model=TaskDeleteResponse, responses=_NOT_FOUND)
def delete_task(
    task_id: str,
    task_service: TaskService = Depends(get_task_service)
) -> TaskDeleteResponse:
    """Delete a task and echo it back.

    Args:
        task_id: Task ID
        task_service: Task service instance

    Returns:
        Deleted task wrapped with a message
    """
    try:
        logger.info(f"Deleting task: {task_id}")

        task = task_service.delete_task(task_id)

        return TaskDeleteResponse(
            message="Task deleted successfully",
            deleted_task=TaskResponse.from_task(task)
        )

    except TaskServiceError:
        raise
    except Exception as e:
        logger.error(f"Error deleting task {task_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error during task deletion"
        )
