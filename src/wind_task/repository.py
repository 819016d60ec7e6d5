"""File-backed persistence for task snapshots, event logs and content.

Layout under the project root, keyed only by task id::

    <root>/<task-id>/task.json      current snapshot (whole-file rewrite)
    <root>/<task-id>/events.jsonl   append-only event log, one event per line
    <root>/<task-id>/content.md     optional long-form body

No locking is performed.  The store assumes a single writer process per
root; see :mod:`wind_task.store`.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from .constants import CONTENT_FILE, EVENTS_FILE, SNAPSHOT_FILE
from .errors import NotFoundError, ValidationError
from .ids import is_ulid
from .io_utils import _append_jsonl, _atomic_write_json, _atomic_write_text, _iter_jsonl, _load_json
from .models import Task, TaskEvent


class FileTaskRepository:
    """Per-task directories of snapshot, event log and content body.

    Parameters
    ----------
    base_dir:
        Root directory holding one sub-directory per task.
    """

    def __init__(self, base_dir: Path) -> None:
        self.base_dir = Path(base_dir)

    # -- paths --------------------------------------------------------------

    def task_dir(self, task_id: str) -> Path:
        if not is_ulid(task_id):
            raise NotFoundError(f"Task not found: {task_id}")
        return self.base_dir / task_id

    def snapshot_path(self, task_id: str) -> Path:
        return self.task_dir(task_id) / SNAPSHOT_FILE

    def events_path(self, task_id: str) -> Path:
        return self.task_dir(task_id) / EVENTS_FILE

    def content_path(self, task_id: str) -> Path:
        return self.task_dir(task_id) / CONTENT_FILE

    # -- layout -------------------------------------------------------------

    def ensure_root(self) -> None:
        self.base_dir.mkdir(parents=True, exist_ok=True)

    def create_task_dir(self, task_id: str) -> Path:
        path = self.task_dir(task_id)
        path.mkdir(parents=True, exist_ok=False)
        return path

    def task_ids(self) -> list[str]:
        if not self.base_dir.exists():
            return []
        return sorted(p.name for p in self.base_dir.iterdir() if p.is_dir())

    # -- event log ----------------------------------------------------------

    def append(self, task_id: str, event: TaskEvent) -> None:
        _append_jsonl(self.events_path(task_id), event.to_dict())

    def read_log(
        self,
        task_id: str,
        after_seq: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> list[TaskEvent]:
        """Return events with ``seq > after_seq``, then the last *limit* of them."""
        if limit is not None and limit < 0:
            raise ValidationError(f"limit must be >= 0, got {limit}")
        path = self.events_path(task_id)
        if not path.exists():
            raise NotFoundError(f"Task not found: {task_id}")
        events = [TaskEvent.from_dict(record) for record in _iter_jsonl(path)]
        if after_seq is not None:
            events = [e for e in events if e.seq > after_seq]
        if limit is not None:
            events = events[-limit:] if limit else []
        return events

    def last_seq(self, task_id: str) -> int:
        """Seq of the last line in the task's log, or 0 if there is no log."""
        path = self.events_path(task_id)
        if not path.exists():
            return 0
        seq = 0
        for record in _iter_jsonl(path):
            seq = int(record["seq"])
        return seq

    # -- snapshot -----------------------------------------------------------

    def write_snapshot(self, task: Task) -> None:
        _atomic_write_json(self.snapshot_path(task.id), task.to_dict())

    def read_snapshot(self, task_id: str) -> Task:
        path = self.snapshot_path(task_id)
        try:
            data = _load_json(path)
        except FileNotFoundError:
            raise NotFoundError(f"Task not found: {task_id}") from None
        return Task.from_dict(data)

    # -- content ------------------------------------------------------------

    def write_content(self, task_id: str, body: str) -> None:
        _atomic_write_text(self.content_path(task_id), body)

    def read_content(self, task_id: str) -> Optional[str]:
        path = self.content_path(task_id)
        try:
            with open(path, "r", encoding="utf-8", newline="") as handle:
                return handle.read()
        except FileNotFoundError:
            return None
