"""
Exceptions for file manager operations.

All of them derive from ``OSError`` so callers can treat any failure of the
file manager as an I/O error.
"""

from typing import Optional


class FileManagerError(OSError):
    """Base exception for file manager operations."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class FileOperationError(FileManagerError):
    """Raised when a storage operation fails for a path under the root."""

    def __init__(
        self,
        operation: str,
        path: str,
        cause: Optional[BaseException] = None,
    ):
        self.operation = operation
        self.path = path
        self.cause = cause
        message = f"Failed to {operation} {path}"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)


class InvalidPathError(FileManagerError):
    """Raised when a path cannot be interpreted relative to the root."""

    def __init__(self, path: str, reason: str = "Invalid path"):
        self.path = path
        self.reason = reason
        super().__init__(f"{reason}: {path}")
