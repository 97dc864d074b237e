"""
Storage Errors

Typed failures raised by the todo store and the folder settings.
"""

from pathlib import Path
from typing import Optional


class TodoStorageError(Exception):
    """Base class for storage failures tied to a path."""

    def __init__(self, path, cause: Optional[BaseException] = None):
        self.path = Path(path)
        self.cause = cause
        super().__init__(self.describe())

    def describe(self) -> str:
        return f"Storage error at: {self.path}"


class FolderAccessDenied(TodoStorageError):
    def describe(self) -> str:
        return f"Cannot access folder at: {self.path}. Permission denied."


class FolderCreationFailed(TodoStorageError):
    def describe(self) -> str:
        return f"Failed to create folder at: {self.path}. Error: {self.cause}"


class BookmarkCreationFailed(TodoStorageError):
    """Persisting the access token for a chosen folder failed."""

    def describe(self) -> str:
        return f"Failed to save folder access token for: {self.path}. Error: {self.cause}"


class FileAccessError(TodoStorageError):
    def describe(self) -> str:
        return f"Failed to access file at: {self.path}. Error: {self.cause}"


class InvalidFolder(TodoStorageError):
    def describe(self) -> str:
        return f"The folder at {self.path} is invalid or no longer exists."
