# src/taskdeck/core/errors.py

from __future__ import annotations


class TaskdeckError(Exception):
    """Base class for errors surfaced by the task core."""


class ValidationError(TaskdeckError, ValueError):
    """Bad input detected before any remote call (e.g. empty title)."""

    def __init__(self, message: str, *, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class ApiError(TaskdeckError):
    """The remote task API rejected or failed a call."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class NetworkError(ApiError):
    """The remote API could not be reached (connect/read failure, timeout)."""


class NotFoundError(ApiError):
    """Operation on a missing or stale id; handled like any other ApiError."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=404)


def friendly_error_message(exc: BaseException) -> str:
    """Short one-line text for the console banner."""
    if isinstance(exc, ValidationError):
        return str(exc) or "Invalid input."
    if isinstance(exc, NotFoundError):
        return f"Not found: {exc}"
    if isinstance(exc, NetworkError):
        return f"Task service unreachable: {exc}"
    if isinstance(exc, ApiError):
        code = f" (HTTP {exc.status_code})" if exc.status_code else ""
        return f"Task service error{code}: {exc}"
    return f"Unexpected error: {exc.__class__.__name__}"
