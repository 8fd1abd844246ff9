"""Month calendar todo list with per-day completion and multi-day tasks."""

from .store import (
    DuplicateTaskId,
    InvalidRange,
    LoadReport,
    StorageIOError,
    TodoItem,
    TodoStore,
    TodoStoreError,
    generate_id,
)

__all__ = [
    "DuplicateTaskId",
    "InvalidRange",
    "LoadReport",
    "StorageIOError",
    "TodoItem",
    "TodoStore",
    "TodoStoreError",
    "generate_id",
]

__version__ = "1.0.0"
