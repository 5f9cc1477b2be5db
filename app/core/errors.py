"""Domain failure kinds raised by request handlers."""

from __future__ import annotations


class ApplicationError(Exception):
    """Base class for failures raised deliberately by application code."""

    def __init__(self, message: str | None = None) -> None:
        if message is None:
            super().__init__()
        else:
            super().__init__(message)
        self.message = message


class NotFoundError(ApplicationError):
    """Raised when a requested entity does not exist."""


class ConflictError(ApplicationError):
    """Raised when a request conflicts with the current state of an entity."""


class TransientError(ApplicationError):
    """Raised for failures the caller may safely retry."""


class NoResourceFoundError(ApplicationError):
    """Raised when no route or resource matches the requested path."""

    def __init__(self, path: str) -> None:
        super().__init__(f"No static resource {path.lstrip('/')}.")
        self.path = path
