"""Read-only projections over task snapshots and event logs."""

from __future__ import annotations

from typing import Any, Iterable

from .constants import BOARD_COLUMNS
from .models import Task, TaskEvent
from .utils import _now_iso


def sort_recent_first(tasks: Iterable[Task]) -> list[Task]:
    return sorted(tasks, key=lambda t: t.updated_at, reverse=True)


def _index_item(task: Task) -> dict[str, Any]:
    return {
        "id": task.id,
        "title": task.title,
        "state": task.state.value,
        "archived": task.archived,
        "updated_at": task.updated_at,
    }


def _board_item(task: Task) -> dict[str, Any]:
    return {
        "id": task.id,
        "title": task.title,
        "state": task.state.value,
        "updated_at": task.updated_at,
        "archived_at": task.archived_at,
    }


def board_column_for(task: Task) -> str:
    """Archived tasks go to ``ARCHIVED`` whatever their underlying state."""
    return "ARCHIVED" if task.archived else task.state.value


def build_index_view(tasks: Iterable[Task]) -> dict[str, Any]:
    return {"generated_at": _now_iso(), "items": [_index_item(t) for t in tasks]}


def build_board_view(tasks: Iterable[Task]) -> dict[str, Any]:
    columns: dict[str, list[dict[str, Any]]] = {name: [] for name in BOARD_COLUMNS}
    for task in tasks:
        columns[board_column_for(task)].append(_board_item(task))
    return {
        "generated_at": _now_iso(),
        "columns": [{"name": name, "items": items} for name, items in columns.items()],
    }


def build_timeline_view(task_id: str, events: Iterable[TaskEvent]) -> dict[str, Any]:
    return {
        "id": task_id,
        "generated_at": _now_iso(),
        "events": [e.to_dict() for e in events],
    }
