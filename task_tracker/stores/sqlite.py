"""SQLite task store."""

import contextlib
import logging
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from ..models.task import Task, TaskFilter, TaskStatus
from .base import ScanPage, StoreError, check_updatable, decode_cursor, encode_cursor

logger = logging.getLogger(__name__)


_COLUMNS = {
    "id": "id",
    "user_name": "user_name",
    "task": "task",
    "status": "status",
    "created_at": "created_at",
    "updated_at": "updated_at",
}

_SELECT = "SELECT seq, id, user_name, task, status, created_at, updated_at FROM tasks"


class SQLiteTaskStore:
    """Durable task store on a local SQLite file.

    Each method opens its own connection, so one instance can be shared
    between request threads. ``seq`` is an AUTOINCREMENT column that orders
    scans and backs the cursor; it is never reused after a delete.
    """

    backend_name = "sqlite"

    def __init__(self, db_path: Union[str, Path] = "tasks.sqlite3"):
        """Initialize the store and create the schema if needed.

        Args:
            db_path: Path of the SQLite database file

        Raises:
            StoreError: If the database cannot be opened
        """
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        with self._errors("schema setup"):
            self._ensure_schema()
        logger.info(f"SQLite task store ready at {self._db_path}")

    @contextlib.contextmanager
    def _errors(self, operation: str):
        """Translate sqlite3 failures into StoreError."""
        try:
            yield
        except sqlite3.Error as e:
            logger.error(f"SQLite error during {operation}: {str(e)}")
            raise StoreError(f"SQLite error during {operation}") from e

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode=WAL")
        return conn

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS tasks (
                    seq INTEGER PRIMARY KEY AUTOINCREMENT,
                    id TEXT NOT NULL UNIQUE,
                    user_name TEXT NOT NULL,
                    task TEXT NOT NULL,
                    status TEXT NOT NULL CHECK (status IN ('active', 'inactive')),
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
                """
            )
            conn.execute("CREATE INDEX IF NOT EXISTS idx_tasks_status ON tasks(status)")
            conn.commit()
        finally:
            conn.close()

    @staticmethod
    def _row_to_task(row: sqlite3.Row) -> Task:
        return Task(
            id=row["id"],
            user_name=row["user_name"],
            task=row["task"],
            status=TaskStatus(row["status"]),
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )

    @staticmethod
    def _to_column_value(value: Any) -> Any:
        if isinstance(value, datetime):
            return value.isoformat()
        if isinstance(value, TaskStatus):
            return value.value
        return value

    def get(self, task_id: str) -> Optional[Task]:
        with self._errors("get"):
            conn = self._get_conn()
            try:
                row = conn.execute(f"{_SELECT} WHERE id = ?", (task_id,)).fetchone()
            finally:
                conn.close()
        return self._row_to_task(row) if row else None

    def put_if_absent(self, task: Task) -> bool:
        """Insert a task unless its id is already taken.

        Args:
            task: Task to insert

        Returns:
            True if inserted, False if the id already exists
        """
        with self._errors("put"):
            conn = self._get_conn()
            try:
                with conn:
                    cur = conn.execute(
                        "INSERT OR IGNORE INTO tasks (id, user_name, task, status, created_at, updated_at) "
                        "VALUES (?, ?, ?, ?, ?, ?)",
                        (
                            task.id,
                            task.user_name,
                            task.task,
                            task.status.value,
                            task.created_at.isoformat(),
                            task.updated_at.isoformat(),
                        ),
                    )
                    inserted = cur.rowcount == 1
            finally:
                conn.close()

        if not inserted:
            logger.warning(f"Task id {task.id} already exists")
        return inserted

    def update_fields(self, task_id: str, fields: Dict[str, Any]) -> Optional[Task]:
        check_updatable(fields)
        if not fields:
            return self.get(task_id)

        assignments = ", ".join(f"{_COLUMNS[name]} = ?" for name in fields)
        values = [self._to_column_value(value) for value in fields.values()]

        with self._errors("update"):
            conn = self._get_conn()
            try:
                with conn:
                    cur = conn.execute(f"UPDATE tasks SET {assignments} WHERE id = ?", (*values, task_id))
                    if cur.rowcount == 0:
                        return None
                    row = conn.execute(f"{_SELECT} WHERE id = ?", (task_id,)).fetchone()
            finally:
                conn.close()
        return self._row_to_task(row)

    def delete(self, task_id: str) -> Optional[Task]:
        with self._errors("delete"):
            conn = self._get_conn()
            try:
                with conn:
                    row = conn.execute(f"{_SELECT} WHERE id = ?", (task_id,)).fetchone()
                    if row is None:
                        return None
                    conn.execute("DELETE FROM tasks WHERE seq = ?", (row["seq"],))
            finally:
                conn.close()
        return self._row_to_task(row)

    def scan(self, task_filter: TaskFilter, limit: int, cursor: Optional[str] = None) -> ScanPage:
        """Scan tasks in insertion order with filters pushed into SQL.

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

        clauses: List[str] = ["seq > ?"]
        params: List[Any] = [after]

        if task_filter.status is not None:
            clauses.append("status = ?")
            params.append(task_filter.status.value)

        if task_filter.user_name:
            # instr() is case-sensitive, unlike LIKE
            clauses.append("instr(user_name, ?) > 0")
            params.append(task_filter.user_name)

        # One extra row tells us whether another page exists
        params.append(limit + 1)
        query = f"{_SELECT} WHERE {' AND '.join(clauses)} ORDER BY seq LIMIT ?"

        with self._errors("scan"):
            conn = self._get_conn()
            try:
                rows = conn.execute(query, params).fetchall()
            finally:
                conn.close()

        page = rows[:limit]
        next_cursor = None
        if len(rows) > limit and page:
            next_cursor = encode_cursor(page[-1]["seq"])

        logger.debug(f"Scanned {len(page)} tasks (filter={task_filter}, more={next_cursor is not None})")
        return ScanPage(items=[self._row_to_task(row) for row in page], next_cursor=next_cursor)
