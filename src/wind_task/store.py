"""The task store: optimistic-concurrency mutations and read projections.

Every mutation follows the same path:

1. load the snapshot (``NotFoundError`` if absent),
2. refuse archived tasks (``ArchivedError``; ``unarchive`` excepted),
3. compare ``expected_last_seq`` with ``last_event_seq`` (``ConflictError``),
4. build exactly one event with ``seq = expected_last_seq + 1``,
5. append it to the log, then rewrite the snapshot via :func:`reduce_task`.

The log is written before the snapshot, so a failure in between leaves the
source of truth ahead of the cache.  Every mutation compares the snapshot
with the log's last seq first and replays the log when the snapshot lags, so
the seq check always runs against the real history.

Concurrency
-----------
There is no lock.  Within one process, callers must not run two mutations
for the same task at once; the HTTP adapter guarantees this by running store
calls directly on its single event loop.  Two *processes* sharing a root can
both pass the seq check and append colliding events, so run one store process
per root.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

from loguru import logger

from .constants import DEFAULT_MAX_CONTENT_BYTES, DEFAULT_MAX_LOG_MESSAGE_LENGTH
from .errors import NotFoundError, TaskStoreError, ValidationError
from .fsm import ensure_expected_seq, ensure_not_archived, next_event, parse_state, reduce_task, replay
from .ids import ulid
from .logging_utils import summarize_event
from .models import (
    ArchivedPayload,
    ContentFormat,
    ContentSetPayload,
    CreatedPayload,
    EventKind,
    EventPayload,
    LogAppendedPayload,
    RetitledPayload,
    StateChangedPayload,
    SummarySetPayload,
    Task,
    TaskContent,
    TaskEvent,
    UnarchivedPayload,
    content_sha256,
)
from .repository import FileTaskRepository
from .views import build_board_view, build_index_view, build_timeline_view, sort_recent_first


class TaskStore:
    """File-backed task store rooted at *base_dir*.

    Parameters
    ----------
    base_dir:
        Directory holding one sub-directory per task.
    max_log_message_length:
        Longest accepted ``append_log`` message, in characters.
    max_content_bytes:
        Largest accepted ``set_content`` body, in UTF-8 bytes.
    """

    def __init__(
        self,
        base_dir: Path,
        *,
        max_log_message_length: int = DEFAULT_MAX_LOG_MESSAGE_LENGTH,
        max_content_bytes: int = DEFAULT_MAX_CONTENT_BYTES,
    ) -> None:
        self.repo = FileTaskRepository(Path(base_dir))
        self.max_log_message_length = max_log_message_length
        self.max_content_bytes = max_content_bytes

    @property
    def base_dir(self) -> Path:
        return self.repo.base_dir

    def init(self) -> None:
        self.repo.ensure_root()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _load_current(self, task_id: str) -> Task:
        """Read the snapshot, replaying the log first if the snapshot lags it."""
        task = self.repo.read_snapshot(task_id)
        log_seq = self.repo.last_seq(task_id)
        if log_seq > task.last_event_seq:
            logger.warning(
                "Snapshot for {} is behind its log (seq {} < {}); rebuilding",
                task_id,
                task.last_event_seq,
                log_seq,
            )
            task = self.rebuild_snapshot(task_id)
        return task

    def _load_for_mutation(self, task_id: str, expected_last_seq: int) -> Task:
        task = self._load_current(task_id)
        try:
            ensure_not_archived(task)
            ensure_expected_seq(task, expected_last_seq)
        except TaskStoreError as exc:
            logger.warning("Rejected write to {}: {}", task_id, exc)
            raise
        return task

    def _commit(self, task: Task, kind: EventKind, payload: EventPayload, actor: str) -> Task:
        event = next_event(task, kind, payload, actor)
        updated = reduce_task(task, event)
        self.repo.append(task.id, event)
        self.repo.write_snapshot(updated)
        logger.debug("Task {} event {}", task.id, summarize_event(event))
        return updated

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def create_task(self, title: str, summary: Optional[str] = None, *, actor: str) -> Task:
        """Create a task in ``TODO`` with ``last_event_seq == 1``."""
        self.init()
        task_id = ulid()
        self.repo.create_task_dir(task_id)
        task = self._commit(Task(id=task_id), EventKind.CREATED, CreatedPayload(title=title, summary=summary), actor)
        logger.info("Created task {} ({!r}) by {}", task.id, title, actor)
        return task

    def retitle(self, task_id: str, title: str, *, expected_last_seq: int, actor: str) -> Task:
        task = self._load_for_mutation(task_id, expected_last_seq)
        return self._commit(task, EventKind.RETITLED, RetitledPayload(title=title), actor)

    def set_state(self, task_id: str, state: str, *, expected_last_seq: int, actor: str) -> Task:
        """Move a task to *state*; moving to the current state is a no-op."""
        target = parse_state(state)
        task = self._load_for_mutation(task_id, expected_last_seq)
        if task.state is target:
            return task
        payload = StateChangedPayload(from_state=task.state, to_state=target)
        return self._commit(task, EventKind.STATE_CHANGED, payload, actor)

    def set_summary(self, task_id: str, summary: str, *, expected_last_seq: int, actor: str) -> Task:
        task = self._load_for_mutation(task_id, expected_last_seq)
        return self._commit(task, EventKind.SUMMARY_SET, SummarySetPayload(summary=summary), actor)

    def set_content(
        self,
        task_id: str,
        content: str,
        *,
        expected_last_seq: int,
        actor: str,
        format: str = ContentFormat.MARKDOWN.value,
    ) -> Task:
        """Replace the task's body.  Oversized bodies are rejected, never truncated."""
        try:
            content_format = ContentFormat(format)
        except ValueError:
            raise ValidationError(f"Unknown content format: {format}") from None
        size = len(content.encode("utf-8"))
        if size > self.max_content_bytes:
            raise ValidationError(f"Content exceeds max size {self.max_content_bytes} bytes ({size})")
        task = self._load_for_mutation(task_id, expected_last_seq)
        self.repo.write_content(task_id, content)
        payload = ContentSetPayload(bytes=size, format=content_format, sha256=content_sha256(content))
        return self._commit(task, EventKind.CONTENT_SET, payload, actor)

    def append_log(self, task_id: str, message: str, *, expected_last_seq: int, actor: str) -> Task:
        if len(message) > self.max_log_message_length:
            raise ValidationError(f"Log message exceeds max length {self.max_log_message_length}")
        task = self._load_for_mutation(task_id, expected_last_seq)
        return self._commit(task, EventKind.LOG_APPENDED, LogAppendedPayload(message=message), actor)

    def archive(self, task_id: str, reason: Optional[str] = None, *, expected_last_seq: int, actor: str) -> Task:
        """Freeze a task.  Archiving an archived task fails with ``ArchivedError``."""
        task = self._load_for_mutation(task_id, expected_last_seq)
        task = self._commit(task, EventKind.ARCHIVED, ArchivedPayload(reason=reason), actor)
        logger.info("Archived task {} by {}{}", task_id, actor, f" ({reason})" if reason else "")
        return task

    def unarchive(self, task_id: str, *, expected_last_seq: int, actor: str) -> Task:
        """Lift the archive freeze.

        Unlike ``set_state``'s no-op, unarchiving a task that is not archived
        still has to pass the seq check; it then returns the task unchanged.
        """
        task = self._load_current(task_id)
        try:
            ensure_expected_seq(task, expected_last_seq)
        except TaskStoreError as exc:
            logger.warning("Rejected write to {}: {}", task_id, exc)
            raise
        if not task.archived:
            return task
        task = self._commit(task, EventKind.UNARCHIVED, UnarchivedPayload(), actor)
        logger.info("Unarchived task {} by {}", task_id, actor)
        return task

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_task(self, task_id: str) -> Task:
        return self.repo.read_snapshot(task_id)

    def read_content(self, task_id: str) -> TaskContent:
        """Return the body, or an empty markdown body if none was ever set."""
        task = self.repo.read_snapshot(task_id)
        body = self.repo.read_content(task_id)
        if body is None:
            return TaskContent()
        return TaskContent(content=body, format=task.content_format or ContentFormat.MARKDOWN)

    def read_log(self, task_id: str, after_seq: Optional[int] = None, limit: Optional[int] = None) -> list[TaskEvent]:
        return self.repo.read_log(task_id, after_seq=after_seq, limit=limit)

    def list_tasks(self, include_archived: bool = True) -> list[Task]:
        """All readable tasks, most recently updated first.

        Directories whose snapshot is missing or unreadable (for instance a
        task whose creation was interrupted) are skipped, not fatal.
        """
        tasks: list[Task] = []
        for task_id in self.repo.task_ids():
            try:
                task = self.repo.read_snapshot(task_id)
            except (NotFoundError, OSError, ValueError, KeyError, TypeError) as exc:
                logger.warning("Skipping malformed task directory {}: {}", task_id, exc)
                continue
            if not include_archived and task.archived:
                continue
            tasks.append(task)
        return sort_recent_first(tasks)

    def index_view(self, include_archived: bool = True) -> dict[str, Any]:
        return build_index_view(self.list_tasks(include_archived))

    def board_view(self, include_archived: bool = True) -> dict[str, Any]:
        return build_board_view(self.list_tasks(include_archived))

    def timeline_view(self, task_id: str, after_seq: Optional[int] = None, limit: Optional[int] = None) -> dict[str, Any]:
        return build_timeline_view(task_id, self.read_log(task_id, after_seq=after_seq, limit=limit))

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    def rebuild_snapshot(self, task_id: str) -> Task:
        """Replay the task's full log and overwrite its snapshot with the result."""
        task = replay(task_id, self.repo.read_log(task_id))
        self.repo.write_snapshot(task)
        logger.info("Rebuilt snapshot for {} at seq {}", task_id, task.last_event_seq)
        return task
