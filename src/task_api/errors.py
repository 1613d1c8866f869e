"""
Domain errors raised by the account, auth and task layers.

Each error carries a stable machine-checkable ``kind`` (the class name), a
human-readable ``message`` and the HTTP status the application maps it to.
"""
from __future__ import annotations

from typing import Optional


class TaskTrackerError(Exception):
    """Base class for every error surfaced to API callers."""

    status_code: int = 400
    default_message: str = "Request failed"

    def __init__(self, message: Optional[str] = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    @property
    def kind(self) -> str:
        return type(self).__name__


class DuplicateAccount(TaskTrackerError):
    status_code = 409
    default_message = "User with this email already exists"


class InvalidCredentials(TaskTrackerError):
    """Login failure; the message never reveals whether the email exists."""

    status_code = 401
    default_message = "Invalid credentials"

    def __init__(self) -> None:
        super().__init__(self.default_message)


class Unauthenticated(TaskTrackerError):
    status_code = 401
    default_message = "Could not validate credentials"


class UnknownIdentity(TaskTrackerError):
    status_code = 401
    default_message = "User not found"


class TaskNotFound(TaskTrackerError):
    """Task absent or owned by someone else; both cases look the same."""

    status_code = 404
    default_message = "Task not found"

    def __init__(self) -> None:
        super().__init__(self.default_message)


class ValidationFailure(TaskTrackerError):
    status_code = 400
    default_message = "Request validation failed"
