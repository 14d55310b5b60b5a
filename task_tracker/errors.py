"""Error taxonomy raised by the task service."""

from typing import Iterable, Optional


class TaskServiceError(Exception):
    """Base class for every error the task service reports.

    Attributes:
        code: Stable error kind, e.g. ``"NotFound"``
        message: Human-readable description safe to show to clients
        retryable: Whether a caller may retry the same request with backoff
    """

    code = "TaskServiceError"
    retryable = False

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        """Render the error as a JSON-friendly mapping."""
        return {"error": self.code, "message": self.message}


class MissingField(TaskServiceError):
    """A required field is absent or blank after trimming."""

    code = "MissingField"

    def __init__(self, fields: Iterable[str]):
        self.fields = list(fields)
        super().__init__(f"{' and '.join(self.fields)} {'is' if len(self.fields) == 1 else 'are'} required")

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["fields"] = self.fields
        return data


class FieldTooLong(TaskServiceError):
    """A field exceeds its maximum length after trimming."""

    code = "FieldTooLong"

    def __init__(self, field: str, max_length: int):
        self.field = field
        self.max_length = max_length
        super().__init__(f"{field} must be at most {max_length} characters")

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["field"] = self.field
        return data


class InvalidStatus(TaskServiceError):
    """A status update asked for a value outside the status enumeration."""

    code = "InvalidStatus"

    def __init__(self, value: Optional[object] = None):
        self.value = value
        super().__init__('Status must be either "active" or "inactive"')


class InvalidLimit(TaskServiceError):
    """A list request asked for a non-positive page size."""

    code = "InvalidLimit"

    def __init__(self, limit: object):
        self.limit = limit
        super().__init__("limit must be a positive integer")


class InvalidCursor(TaskServiceError):
    """A continuation cursor could not be understood by the store."""

    code = "InvalidCursor"

    def __init__(self):
        super().__init__("cursor parameter is malformed")


class NotFound(TaskServiceError):
    """The addressed task does not exist."""

    code = "NotFound"

    def __init__(self, task_id: str):
        self.task_id = task_id
        super().__init__(f"Task with ID {task_id} does not exist")


class Conflict(TaskServiceError):
    """No collision-free task id could be reserved."""

    code = "Conflict"

    def __init__(self, attempts: int):
        self.attempts = attempts
        super().__init__(f"Could not reserve a unique task ID after {attempts} attempts")


class StoreUnavailable(TaskServiceError):
    """The task store failed; details stay in the logs."""

    code = "StoreUnavailable"
    retryable = True

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(f"Task store unavailable during {operation}")
