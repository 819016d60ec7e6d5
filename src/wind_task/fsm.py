"""Task lifecycle: state parsing, mutation guards and the event reducer.

States ``TODO``/``ACTIVE``/``DONE`` are freely interchangeable; archiving is
an orthogonal freeze that blocks every event except ``unarchived``.  The
snapshot is always ``replay(events)``: the store builds each new snapshot by
calling :func:`reduce_task` on the previous one, so the write path and the
rebuild path cannot drift apart.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Callable, Iterable

from .constants import LEGACY_STATE_ALIASES
from .errors import ArchivedError, ConflictError, ValidationError
from .models import (
    ArchivedPayload,
    ContentSetPayload,
    CreatedPayload,
    EventKind,
    EventPayload,
    LogAppendedPayload,
    RetitledPayload,
    StateChangedPayload,
    SummarySetPayload,
    Task,
    TaskEvent,
    TaskState,
    UnarchivedPayload,
)
from .utils import _now_iso


def parse_state(value: str) -> TaskState:
    """Normalize a caller-supplied state name (case-insensitive, legacy aliases)."""
    name = str(value or "").strip().upper()
    name = LEGACY_STATE_ALIASES.get(name, name)
    try:
        return TaskState(name)
    except ValueError:
        raise ValidationError(f"Unknown state: {value}") from None


# ---------------------------------------------------------------------------
# Guards
# ---------------------------------------------------------------------------

def ensure_not_archived(task: Task) -> None:
    if task.archived:
        raise ArchivedError(f"Task {task.id} is archived")


def ensure_expected_seq(task: Task, expected_last_seq: int) -> None:
    """Optimistic concurrency check; single attempt, never retried here."""
    if task.last_event_seq != expected_last_seq:
        raise ConflictError(
            f"expected_last_seq={expected_last_seq} does not match current={task.last_event_seq}",
            expected=expected_last_seq,
            current=task.last_event_seq,
        )


def next_event(task: Task, kind: EventKind, payload: EventPayload, actor: str) -> TaskEvent:
    return TaskEvent(seq=task.last_event_seq + 1, kind=kind, at=_now_iso(), actor=actor, payload=payload)


# ---------------------------------------------------------------------------
# Reducer
# ---------------------------------------------------------------------------

def _apply_created(task: Task, payload: CreatedPayload, at: str) -> None:
    task.title = payload.title
    task.summary = payload.summary
    task.state = TaskState.TODO
    task.created_at = at


def _apply_retitled(task: Task, payload: RetitledPayload, at: str) -> None:
    task.title = payload.title


def _apply_state_changed(task: Task, payload: StateChangedPayload, at: str) -> None:
    task.state = payload.to_state


def _apply_summary_set(task: Task, payload: SummarySetPayload, at: str) -> None:
    task.summary = payload.summary


def _apply_content_set(task: Task, payload: ContentSetPayload, at: str) -> None:
    task.content_format = payload.format
    task.content_updated_at = at


def _apply_log_appended(task: Task, payload: LogAppendedPayload, at: str) -> None:
    # Messages live only in the log; the snapshot just advances.
    pass


def _apply_archived(task: Task, payload: ArchivedPayload, at: str) -> None:
    task.archived_at = at


def _apply_unarchived(task: Task, payload: UnarchivedPayload, at: str) -> None:
    task.archived_at = None


_REDUCERS: dict[EventKind, Callable[..., None]] = {
    EventKind.CREATED: _apply_created,
    EventKind.RETITLED: _apply_retitled,
    EventKind.STATE_CHANGED: _apply_state_changed,
    EventKind.SUMMARY_SET: _apply_summary_set,
    EventKind.CONTENT_SET: _apply_content_set,
    EventKind.LOG_APPENDED: _apply_log_appended,
    EventKind.ARCHIVED: _apply_archived,
    EventKind.UNARCHIVED: _apply_unarchived,
}

_missing = set(EventKind) - set(_REDUCERS)
if _missing:  # pragma: no cover - guards against adding a kind without a reducer
    raise RuntimeError(f"No reducer for event kinds: {sorted(k.value for k in _missing)}")


def reduce_task(task: Task, event: TaskEvent) -> Task:
    """Return a new snapshot with *event* applied to *task*.

    Raises ``ValueError`` when the event cannot follow the snapshot: a seq
    gap, a second ``created``, a first event that is not ``created``, or any
    event other than ``unarchived`` on an archived task.
    """
    if event.seq != task.last_event_seq + 1:
        raise ValueError(f"Task {task.id}: event seq {event.seq} does not follow {task.last_event_seq}")
    is_created = event.kind is EventKind.CREATED
    if is_created != (task.last_event_seq == 0):
        raise ValueError(f"Task {task.id}: 'created' must be the first and only creation event (seq {event.seq})")
    if task.archived and event.kind is not EventKind.UNARCHIVED:
        raise ValueError(f"Task {task.id}: {event.kind.value} event on archived task (seq {event.seq})")
    out = replace(task)
    _REDUCERS[event.kind](out, event.payload, event.at)
    out.updated_at = event.at
    out.last_event_seq = event.seq
    return out


def replay(task_id: str, events: Iterable[TaskEvent]) -> Task:
    """Rebuild a snapshot from scratch by folding *events* in order."""
    task = Task(id=task_id)
    for event in events:
        task = reduce_task(task, event)
    if task.last_event_seq == 0:
        raise ValueError(f"Task {task_id}: event log is empty")
    return task
