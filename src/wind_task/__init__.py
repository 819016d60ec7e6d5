"""wind-task: a durable, append-only task tracker with optimistic concurrency."""

__version__ = "0.2.0"

from .errors import ArchivedError, ConflictError, NotFoundError, TaskStoreError, ValidationError
from .models import ContentFormat, EventKind, Task, TaskContent, TaskEvent, TaskState
from .store import TaskStore

__all__ = [
    "ArchivedError",
    "ConflictError",
    "ContentFormat",
    "EventKind",
    "NotFoundError",
    "Task",
    "TaskContent",
    "TaskEvent",
    "TaskState",
    "TaskStore",
    "TaskStoreError",
    "ValidationError",
    "__version__",
]
