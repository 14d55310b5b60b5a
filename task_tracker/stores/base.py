"""Task store protocol and shared helpers for store backends."""

import base64
import binascii
import json
from typing import Any, Dict, List, NamedTuple, Optional, Protocol

from ..models.task import Task, TaskFilter


class StoreError(Exception):
    """Raised by a store backend when the underlying storage fails."""


class MalformedCursorError(StoreError):
    """Raised when a continuation cursor cannot be decoded."""


class ScanPage(NamedTuple):
    """Records returned by one scan call, in scan order."""

    items: List[Task]
    next_cursor: Optional[str]


class TaskStore(Protocol):
    """Protocol for task storage backends used by the task service."""

    backend_name: str

    def get(self, task_id: str) -> Optional[Task]:
        """Return the task or None if absent."""
        ...

    def put_if_absent(self, task: Task) -> bool:
        """Insert the task unless its id exists. Return False on collision."""
        ...

    def update_fields(self, task_id: str, fields: Dict[str, Any]) -> Optional[Task]:
        """Apply field updates and return the new record, or None if absent."""
        ...

    def delete(self, task_id: str) -> Optional[Task]:
        """Remove the task and return what was removed, or None if absent."""
        ...

    def scan(self, task_filter: TaskFilter, limit: int, cursor: Optional[str] = None) -> ScanPage:
        """Return up to ``limit`` matching tasks after the cursor position."""
        ...


# Fields a store may be asked to change after creation
UPDATABLE_FIELDS = frozenset({"status", "updated_at"})


def encode_cursor(position: int) -> str:
    """Encode a scan position as an opaque URL-safe token."""
    payload = json.dumps({"pos": position}, separators=(",", ":")).encode("utf-8")
    return base64.urlsafe_b64encode(payload).decode("ascii").rstrip("=")


def decode_cursor(cursor: str) -> int:
    """Decode a token produced by ``encode_cursor``.

    Args:
        cursor: Opaque cursor string

    Returns:
        Scan position to resume after

    Raises:
        MalformedCursorError: If the token was not produced by this store
    """
    padded = cursor + "=" * (-len(cursor) % 4)
    try:
        data = json.loads(base64.urlsafe_b64decode(padded.encode("ascii")))
        position = data["pos"]
    except (binascii.Error, UnicodeError, ValueError, TypeError, KeyError) as e:
        raise MalformedCursorError(f"Malformed cursor: {cursor!r}") from e

    if not isinstance(position, int) or isinstance(position, bool) or position < 0:
        raise MalformedCursorError(f"Malformed cursor: {cursor!r}")
    return position


def check_updatable(fields: Dict[str, Any]) -> None:
    """Reject updates to fields that are immutable after creation."""
    unknown = set(fields) - UPDATABLE_FIELDS
    if unknown:
        raise ValueError(f"Fields cannot be updated: {', '.join(sorted(unknown))}")
