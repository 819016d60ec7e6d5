"""Error signals raised by the task store.

Every failure a caller can act on derives from :class:`TaskStoreError` and
carries a short machine-readable ``code`` used by the HTTP and CLI adapters
when building error envelopes.
"""

from __future__ import annotations


class TaskStoreError(Exception):
    code = "unknown"


class NotFoundError(TaskStoreError):
    """The referenced task has no snapshot or log on disk."""

    code = "not_found"


class ConflictError(TaskStoreError):
    """``expected_last_seq`` is stale; re-read the task and resubmit."""

    code = "conflict"

    def __init__(self, message: str, *, expected: int | None = None, current: int | None = None) -> None:
        super().__init__(message)
        self.expected = expected
        self.current = current


class ArchivedError(TaskStoreError):
    """Mutation attempted on an archived task; unarchive it first."""

    code = "archived"


class ValidationError(TaskStoreError, ValueError):
    """Malformed input: unknown state, oversized log message or content."""

    code = "validation"
