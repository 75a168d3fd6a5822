from __future__ import annotations
from typing import Any, Dict, Optional


class TaskError(Exception):
    """Base for errors that map onto an HTTP response."""

    status_code = 500

    def __init__(self, error: str, message: Optional[str] = None):
        super().__init__(error)
        self.error = error
        self.message = message

    def to_body(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.error}
        if self.message is not None:
            body["message"] = self.message
        return body


class InvalidInput(TaskError):
    status_code = 400


class NotFound(TaskError):
    status_code = 404

    def __init__(self, error: str = "Task not found", message: Optional[str] = None):
        super().__init__(error, message)


class Conflict(TaskError):
    status_code = 409

    def __init__(self, error: str = "Task already exists", message: Optional[str] = None):
        super().__init__(error, message)


class StoreFailure(TaskError):
    status_code = 500


class InternalError(TaskError):
    status_code = 500

    def __init__(self, error: str = "Internal server error", message: Optional[str] = None):
        super().__init__(error, message)


# Raised by the store layer; the service decides which TaskError they become.

class StoreError(Exception):
    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class StoreConflict(StoreError):
    pass
