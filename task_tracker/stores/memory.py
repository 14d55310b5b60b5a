"""In-memory task store."""

import logging
from threading import Lock
from typing import Any, Dict, Optional, Tuple

from ..models.task import Task, TaskFilter
from .base import ScanPage, check_updatable, decode_cursor, encode_cursor

logger = logging.getLogger(__name__)


class InMemoryTaskStore:
    """Task store backed by a dict, for development and tests.

    Records keep the sequence number they were inserted with so that scans
    resume after the last returned record even if it was deleted meanwhile.
    """

    backend_name = "memory"

    def __init__(self):
        """Initialize the in-memory store."""
        self._records: Dict[str, Tuple[int, Task]] = {}
        self._seq = 0
        self._lock = Lock()  # Thread-safe operations
        logger.info("In-memory task store initialized")

    def get(self, task_id: str) -> Optional[Task]:
        with self._lock:
            record = self._records.get(task_id)
            return record[1] if record else None

    def put_if_absent(self, task: Task) -> bool:
        """Insert a task unless its id is already taken.

        Args:
            task: Task to insert

        Returns:
            True if inserted, False if the id already exists
        """
        with self._lock:
            if task.id in self._records:
                logger.warning(f"Task id {task.id} already exists")
                return False

            self._seq += 1
            self._records[task.id] = (self._seq, task)
            return True

    def update_fields(self, task_id: str, fields: Dict[str, Any]) -> Optional[Task]:
        check_updatable(fields)

        with self._lock:
            record = self._records.get(task_id)
            if not record:
                return None

            seq, task = record
            updated = task.model_copy(update=fields)
            self._records[task_id] = (seq, updated)
            return updated

    def delete(self, task_id: str) -> Optional[Task]:
        with self._lock:
            record = self._records.pop(task_id, None)
            return record[1] if record else None

    def scan(self, task_filter: TaskFilter, limit: int, cursor: Optional[str] = None) -> ScanPage:
        """Scan tasks in insertion order.

        Args:
            task_filter: Filters every returned task must match
            limit: Maximum number of tasks to return
            cursor: Cursor from a previous scan, or None to start over

        Returns:
            Matching tasks and a cursor if more matching tasks remain

        Raises:
            MalformedCursorError: If the cursor cannot be decoded
        """
        after = decode_cursor(cursor) if cursor else 0

        with self._lock:
            # dict order is insertion order, which is sequence order
            matching = [
                (seq, task)
                for seq, task in self._records.values()
                if seq > after and task_filter.matches(task)
            ]

        page = matching[:limit]
        next_cursor = None
        if len(matching) > limit and page:
            next_cursor = encode_cursor(page[-1][0])

        logger.debug(f"Scanned {len(page)} tasks (filter={task_filter}, more={next_cursor is not None})")
        return ScanPage(items=[task for _, task in page], next_cursor=next_cursor)
