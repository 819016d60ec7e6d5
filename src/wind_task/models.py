"""Task snapshot and event models.

A :class:`Task` is the materialized current state of one tracked unit of
work.  A :class:`TaskEvent` is one immutable fact in the task's append-only
log.  Events form a tagged union: :class:`EventKind` names the variant and
each variant has exactly one payload dataclass (see ``PAYLOAD_TYPES``).

Both serialize to plain dicts for JSON persistence.  ``None`` fields are
omitted from the written form so snapshots stay compact and diff-friendly.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from enum import Enum
from hashlib import sha256
from typing import Any, Optional, Union

from .constants import CURRENT_TASK_VERSION


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class TaskState(str, Enum):
    """Board state of a task.  ``DONE`` is not terminal."""

    TODO = "TODO"
    ACTIVE = "ACTIVE"
    DONE = "DONE"


class ContentFormat(str, Enum):
    MARKDOWN = "markdown"
    TEXT = "text"


class EventKind(str, Enum):
    CREATED = "created"
    RETITLED = "retitled"
    STATE_CHANGED = "state_changed"
    SUMMARY_SET = "summary_set"
    CONTENT_SET = "content_set"
    LOG_APPENDED = "log_appended"
    ARCHIVED = "archived"
    UNARCHIVED = "unarchived"


def content_sha256(value: str) -> str:
    return sha256(str(value or "").encode("utf-8")).hexdigest()


def _compact(data: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in data.items() if v is not None}


# ---------------------------------------------------------------------------
# Event payloads
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CreatedPayload:
    title: str
    summary: Optional[str] = None


@dataclass(frozen=True)
class RetitledPayload:
    title: str


@dataclass(frozen=True)
class StateChangedPayload:
    from_state: TaskState
    to_state: TaskState

    def to_dict(self) -> dict[str, Any]:
        return {"from": self.from_state.value, "to": self.to_state.value}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "StateChangedPayload":
        return cls(from_state=TaskState(data["from"]), to_state=TaskState(data["to"]))


@dataclass(frozen=True)
class SummarySetPayload:
    summary: str


@dataclass(frozen=True)
class ContentSetPayload:
    bytes: int
    format: ContentFormat = ContentFormat.MARKDOWN
    sha256: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return _compact({"bytes": self.bytes, "format": self.format.value, "sha256": self.sha256})

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ContentSetPayload":
        return cls(
            bytes=int(data["bytes"]),
            format=ContentFormat(data.get("format") or ContentFormat.MARKDOWN.value),
            sha256=data.get("sha256"),
        )


@dataclass(frozen=True)
class LogAppendedPayload:
    message: str


@dataclass(frozen=True)
class ArchivedPayload:
    reason: Optional[str] = None


@dataclass(frozen=True)
class UnarchivedPayload:
    pass


EventPayload = Union[
    CreatedPayload,
    RetitledPayload,
    StateChangedPayload,
    SummarySetPayload,
    ContentSetPayload,
    LogAppendedPayload,
    ArchivedPayload,
    UnarchivedPayload,
]

PAYLOAD_TYPES: dict[EventKind, type] = {
    EventKind.CREATED: CreatedPayload,
    EventKind.RETITLED: RetitledPayload,
    EventKind.STATE_CHANGED: StateChangedPayload,
    EventKind.SUMMARY_SET: SummarySetPayload,
    EventKind.CONTENT_SET: ContentSetPayload,
    EventKind.LOG_APPENDED: LogAppendedPayload,
    EventKind.ARCHIVED: ArchivedPayload,
    EventKind.UNARCHIVED: UnarchivedPayload,
}


def payload_to_dict(payload: EventPayload) -> dict[str, Any]:
    to_dict = getattr(payload, "to_dict", None)
    if to_dict is not None:
        return to_dict()
    return _compact(asdict(payload))


def payload_from_dict(kind: EventKind, data: dict[str, Any]) -> EventPayload:
    payload_type = PAYLOAD_TYPES[kind]
    from_dict = getattr(payload_type, "from_dict", None)
    if from_dict is not None:
        return from_dict(data)
    names = {f.name for f in fields(payload_type)}
    return payload_type(**{k: v for k, v in data.items() if k in names})


# ---------------------------------------------------------------------------
# Event
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TaskEvent:
    """One accepted mutation.  ``seq`` starts at 1 and grows by 1 per task."""

    seq: int
    kind: EventKind
    at: str
    actor: str
    payload: EventPayload

    def __post_init__(self) -> None:
        if self.seq < 1:
            raise ValueError(f"Event seq must be positive, got {self.seq}")
        expected = PAYLOAD_TYPES[self.kind]
        if not isinstance(self.payload, expected):
            raise TypeError(f"{self.kind.value} event requires {expected.__name__}, got {type(self.payload).__name__}")

    def to_dict(self) -> dict[str, Any]:
        return {
            "seq": self.seq,
            "type": self.kind.value,
            "at": self.at,
            "actor": self.actor,
            "payload": payload_to_dict(self.payload),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TaskEvent":
        kind = EventKind(data["type"])
        raw_payload = data.get("payload") or {}
        if not isinstance(raw_payload, dict):
            raise ValueError(f"Event payload must be an object, got {type(raw_payload).__name__}")
        return cls(
            seq=int(data["seq"]),
            kind=kind,
            at=str(data["at"]),
            actor=str(data.get("actor") or ""),
            payload=payload_from_dict(kind, raw_payload),
        )


# ---------------------------------------------------------------------------
# Task snapshot
# ---------------------------------------------------------------------------

@dataclass
class Task:
    """Materialized state of a task; always a fold of its event log."""

    id: str
    title: str = ""
    state: TaskState = TaskState.TODO
    summary: Optional[str] = None
    created_at: str = ""
    updated_at: str = ""
    archived_at: Optional[str] = None
    content_updated_at: Optional[str] = None
    content_format: Optional[ContentFormat] = None
    last_event_seq: int = 0  # optimistic concurrency token
    version: int = CURRENT_TASK_VERSION

    @property
    def archived(self) -> bool:
        return self.archived_at is not None

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["state"] = self.state.value
        data["content_format"] = self.content_format.value if self.content_format else None
        return _compact(data)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Task":
        """Parse a persisted snapshot.

        Raises ``ValueError`` (or ``KeyError``) for snapshots that are missing
        an id or carry an unknown state, so callers can tell a corrupt
        directory apart from a readable one.
        """
        task_id = data["id"]
        if not isinstance(task_id, str) or not task_id:
            raise ValueError("Task snapshot has no id")
        content_format = data.get("content_format")
        return cls(
            id=task_id,
            title=str(data.get("title") or ""),
            state=TaskState(data.get("state") or TaskState.TODO.value),
            summary=data.get("summary"),
            created_at=str(data.get("created_at") or ""),
            updated_at=str(data.get("updated_at") or ""),
            archived_at=data.get("archived_at"),
            content_updated_at=data.get("content_updated_at"),
            content_format=ContentFormat(content_format) if content_format else None,
            last_event_seq=int(data.get("last_event_seq") or 0),
            version=int(data.get("version") or CURRENT_TASK_VERSION),
        )


@dataclass(frozen=True)
class TaskContent:
    """Long-form body of a task as returned by ``read_content``."""

    content: str = ""
    format: ContentFormat = ContentFormat.MARKDOWN

    def to_dict(self) -> dict[str, Any]:
        return {"content": self.content, "format": self.format.value}
