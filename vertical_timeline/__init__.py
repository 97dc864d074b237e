"""
Vertical Timeline

A day-by-day todo timeline stored as plain markdown checklists: one file
of open items and one file per day of completed items.
"""

from .models import TodoItem, DayTodos, FolderToken
from .errors import (
    TodoStorageError,
    FolderAccessDenied,
    FolderCreationFailed,
    BookmarkCreationFailed,
    FileAccessError,
    InvalidFolder,
)
from .folder_settings import FolderSettings
from .todo_store import TodoStore
from .timeline import TimelineManager

__all__ = [
    "TodoItem",
    "DayTodos",
    "FolderToken",
    "TodoStorageError",
    "FolderAccessDenied",
    "FolderCreationFailed",
    "BookmarkCreationFailed",
    "FileAccessError",
    "InvalidFolder",
    "FolderSettings",
    "TodoStore",
    "TimelineManager",
]

__version__ = "0.1.0"
