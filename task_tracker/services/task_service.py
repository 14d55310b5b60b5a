"""Task service enforcing validation, identity and status rules over a task store."""

import contextlib
import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional, Union
from uuid import uuid4

from ..errors import (
    Conflict,
    FieldTooLong,
    InvalidCursor,
    InvalidLimit,
    InvalidStatus,
    MissingField,
    NotFound,
    StoreUnavailable,
)
from ..models.task import (
    TASK_TEXT_MAX_LENGTH,
    USER_NAME_MAX_LENGTH,
    Task,
    TaskFilter,
    TaskPage,
    TaskStatus,
)
from ..stores.base import MalformedCursorError, StoreError, TaskStore

logger = logging.getLogger(__name__)

DEFAULT_PAGE_LIMIT = 50
DEFAULT_CREATE_ATTEMPTS = 3


def utcnow() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def new_task_id() -> str:
    """Generate a random 128-bit task identifier."""
    return str(uuid4())


class TaskService:
    """Service for task operations on top of an injected task store.

    The service keeps no state between calls; everything lives in the store.
    """

    def __init__(
        self,
        store: TaskStore,
        max_create_attempts: int = DEFAULT_CREATE_ATTEMPTS,
        default_page_limit: int = DEFAULT_PAGE_LIMIT,
        id_factory: Callable[[], str] = new_task_id,
        clock: Callable[[], datetime] = utcnow,
    ):
        """Initialize the task service.

        Args:
            store: Task store backend
            max_create_attempts: Id collisions tolerated before reporting Conflict
            default_page_limit: Page size when list_tasks gets no limit
            id_factory: Generator for new task ids
            clock: Source of the current time
        """
        self.store = store
        self.max_create_attempts = max_create_attempts
        self.default_page_limit = default_page_limit
        self._id_factory = id_factory
        self._clock = clock
        logger.info(f"Task service initialized with {getattr(store, 'backend_name', type(store).__name__)} store")

    @contextlib.contextmanager
    def _store_call(self, operation: str):
        """Map store failures onto StoreUnavailable without leaking details."""
        try:
            yield
        except MalformedCursorError:
            raise
        except StoreError as e:
            logger.error(f"Store failure during {operation}: {str(e)}")
            raise StoreUnavailable(operation) from e

    def create_task(self, user_name: Optional[str], task: Optional[str]) -> Task:
        """Create a new task.

        Args:
            user_name: Owner name, surrounding whitespace is trimmed
            task: Task text, surrounding whitespace is trimmed

        Returns:
            Created task

        Raises:
            MissingField: If either field is absent or blank
            FieldTooLong: If a trimmed field exceeds its limit
            Conflict: If no unique id could be reserved
            StoreUnavailable: If the store fails
        """
        user_name = user_name.strip() if isinstance(user_name, str) else ""
        task = task.strip() if isinstance(task, str) else ""

        missing = [name for name, value in (("userName", user_name), ("task", task)) if not value]
        if missing:
            raise MissingField(missing)

        if len(user_name) > USER_NAME_MAX_LENGTH:
            raise FieldTooLong("userName", USER_NAME_MAX_LENGTH)

        if len(task) > TASK_TEXT_MAX_LENGTH:
            raise FieldTooLong("task", TASK_TEXT_MAX_LENGTH)

        for attempt in range(1, self.max_create_attempts + 1):
            now = self._clock()
            new_task = Task(
                id=self._id_factory(),
                user_name=user_name,
                task=task,
                status=TaskStatus.ACTIVE,
                created_at=now,
                updated_at=now,
            )

            with self._store_call("create"):
                inserted = self.store.put_if_absent(new_task)

            if inserted:
                logger.info(f"Created task {new_task.id} for {new_task.user_name}")
                return new_task

            logger.warning(f"Task id collision on attempt {attempt}/{self.max_create_attempts}")

        raise Conflict(self.max_create_attempts)

    def get_task(self, task_id: str) -> Task:
        """Get a task by ID.

        Args:
            task_id: Task ID

        Returns:
            The task

        Raises:
            NotFound: If no task has this id
        """
        with self._store_call("get"):
            task = self.store.get(task_id)

        if task is None:
            logger.debug(f"Task {task_id} not found")
            raise NotFound(task_id)
        return task

    def update_task_status(self, task_id: str, status: Union[TaskStatus, str, None]) -> Task:
        """Update task status.

        Setting the status a task already has still refreshes updated_at.

        Args:
            task_id: Task ID
            status: New status, "active" or "inactive"

        Returns:
            Updated task

        Raises:
            InvalidStatus: If status is not a known value
            NotFound: If no task has this id
        """
        new_status = TaskStatus.parse(status)
        if new_status is None:
            raise InvalidStatus(status)

        existing = self.get_task(task_id)

        # updated_at must strictly advance even if the clock has not
        updated_at = max(self._clock(), existing.updated_at + timedelta(microseconds=1))

        with self._store_call("update"):
            updated = self.store.update_fields(task_id, {"status": new_status, "updated_at": updated_at})

        if updated is None:
            logger.warning(f"Task {task_id} disappeared before its status update")
            raise NotFound(task_id)

        logger.info(f"Updated task {task_id} status: {existing.status.value} -> {new_status.value}")
        return updated

    def delete_task(self, task_id: str) -> Task:
        """Delete a task.

        Args:
            task_id: Task ID

        Returns:
            The deleted task

        Raises:
            NotFound: If no task has this id
        """
        self.get_task(task_id)

        with self._store_call("delete"):
            deleted = self.store.delete(task_id)

        if deleted is None:
            raise NotFound(task_id)

        logger.info(f"Deleted task {task_id}")
        return deleted

    def list_tasks(
        self,
        status: Optional[str] = None,
        user_name: Optional[str] = None,
        limit: Optional[int] = None,
        cursor: Optional[str] = None,
    ) -> TaskPage:
        """List one page of tasks with optional filters.

        An unknown status filter is ignored rather than rejected. Sorting by
        creation time (newest first) applies to the returned page only.

        Args:
            status: Status filter
            user_name: Case-sensitive substring of the owner name
            limit: Maximum number of tasks in the page
            cursor: Continuation cursor from a previous page

        Returns:
            Page of tasks with the continuation cursor and effective filters

        Raises:
            InvalidLimit: If limit is not a positive integer
            InvalidCursor: If the cursor is malformed
        """
        if limit is None:
            limit = self.default_page_limit
        if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
            raise InvalidLimit(limit)

        task_filter = TaskFilter(status=TaskStatus.parse(status), user_name=user_name or None)

        try:
            with self._store_call("list"):
                scanned = self.store.scan(task_filter, limit, cursor or None)
        except MalformedCursorError as e:
            logger.warning(f"Rejected cursor: {str(e)}")
            raise InvalidCursor() from e

        items = sorted(scanned.items, key=lambda t: t.created_at, reverse=True)

        logger.debug(f"Listed {len(items)} tasks (filter={task_filter}, more={scanned.next_cursor is not None})")
        return TaskPage(items=items, next_cursor=scanned.next_cursor, applied_filters=task_filter)
