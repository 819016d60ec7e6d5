"""Tests for logging_utils module."""

from __future__ import annotations

from wind_task.logging_utils import pretty, summarize_event
from wind_task.models import (
    ArchivedPayload,
    ContentFormat,
    ContentSetPayload,
    EventKind,
    LogAppendedPayload,
    StateChangedPayload,
    TaskEvent,
    TaskState,
    UnarchivedPayload,
)


def _event(kind: EventKind, payload) -> TaskEvent:
    return TaskEvent(seq=2, kind=kind, at="2026-01-01T00:00:00+00:00", actor="agent:log", payload=payload)


class TestSummarizeEvent:
    def test_none(self):
        assert summarize_event(None) == {"event": None}

    def test_log_message_clipped(self):
        result = summarize_event(_event(EventKind.LOG_APPENDED, LogAppendedPayload("x" * 300)))
        assert result["event"] == "log_appended"
        assert result["seq"] == 2
        assert result["actor"] == "agent:log"
        assert result["message_len"] == 300
        assert len(result["message"]) == 121

    def test_content_never_includes_body(self):
        payload = ContentSetPayload(bytes=42, format=ContentFormat.TEXT, sha256="abc")
        result = summarize_event(_event(EventKind.CONTENT_SET, payload))
        assert result["bytes"] == 42
        assert result["format"] == "text"

    def test_state_change(self):
        payload = StateChangedPayload(TaskState.ACTIVE, TaskState.DONE)
        result = summarize_event(_event(EventKind.STATE_CHANGED, payload))
        assert (result["from"], result["to"]) == ("ACTIVE", "DONE")

    def test_archive_reason(self):
        assert summarize_event(_event(EventKind.ARCHIVED, ArchivedPayload("stale")))["reason"] == "stale"
        assert "reason" not in summarize_event(_event(EventKind.ARCHIVED, ArchivedPayload()))

    def test_unarchived_minimal(self):
        assert summarize_event(_event(EventKind.UNARCHIVED, UnarchivedPayload())) == {
            "event": "unarchived",
            "seq": 2,
            "actor": "agent:log",
        }


def test_pretty():
    assert pretty({"a": 1}) == '{\n  "a": 1\n}'
    assert pretty({"when": object}).startswith("{")
