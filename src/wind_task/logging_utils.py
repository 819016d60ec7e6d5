"""Configure loguru and render compact, log-friendly event summaries."""

from __future__ import annotations

import json
import sys
from typing import Any

from loguru import logger

from .constants import DEFAULT_LOG_LEVEL
from .models import EventKind, TaskEvent


def configure_logging(level: str = DEFAULT_LOG_LEVEL) -> None:
    """Configure loguru logger with the specified level."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=level.upper(),
        format=(
            "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{module}</cyan>:<cyan>{line}</cyan> - "
            "{message}"
        ),
    )


def summarize_event(event: TaskEvent | None) -> dict[str, Any]:
    """Render a compact, JSON-friendly summary of an event.

    Args:
        event: Event to summarize (or None).

    Returns:
        A dictionary suitable for logging. Long free-text fields are clipped.
    """
    if event is None:
        return {"event": None}

    d: dict[str, Any] = {"event": event.kind.value, "seq": event.seq, "actor": event.actor}
    payload = event.to_dict()["payload"]

    if event.kind is EventKind.LOG_APPENDED:
        message = str(payload.get("message") or "")
        d["message"] = (message[:120] + "…") if len(message) > 120 else message
        d["message_len"] = len(message)
    elif event.kind is EventKind.CONTENT_SET:
        d["bytes"] = payload.get("bytes")
        d["format"] = payload.get("format")
    elif event.kind is EventKind.STATE_CHANGED:
        d["from"] = payload.get("from")
        d["to"] = payload.get("to")
    elif event.kind in {EventKind.CREATED, EventKind.RETITLED}:
        d["title"] = payload.get("title")
    elif event.kind is EventKind.ARCHIVED and payload.get("reason"):
        d["reason"] = payload["reason"]

    return d


def pretty(obj: Any, *, indent: int = 2) -> str:
    """Serialize an object as JSON for readable output.

    Returns:
        A JSON string when possible; otherwise `str(obj)`.
    """
    try:
        return json.dumps(obj, indent=indent, default=str)
    except (TypeError, ValueError):
        return str(obj)
