"""Task API endpoints.

This module provides a FastAPI router exposing the task store as commands
(``POST``) and readable resources (``GET``).  It is mounted under ``/api`` by
the ``create_app`` factory.  Every route takes an optional ``project`` query
parameter resolved through the caller-supplied store resolver.

Store calls are synchronous and made directly from ``async`` handlers, so
they run one at a time on the event loop; this is what keeps two mutations
for the same task from interleaving inside one server process.
"""

from __future__ import annotations

from typing import Any, Callable, Optional

from fastapi import APIRouter, Query

from ..errors import NotFoundError
from ..store import TaskStore
from .models import (
    AppendLogRequest,
    ArchiveRequest,
    ContentResponse,
    CreateTaskRequest,
    ResourceInfo,
    ResourceListResponse,
    ResourceTemplateInfo,
    RetitleRequest,
    SetContentRequest,
    SetStateRequest,
    SetSummaryRequest,
    TaskListResponse,
    TaskResponse,
    UnarchiveRequest,
)

StoreResolver = Callable[[Optional[str]], TaskStore]


# ---------------------------------------------------------------------------
# Resource addresses
# ---------------------------------------------------------------------------

RESOURCES = [
    ResourceInfo(uri="tasks://index", name="Task Index", description="Compact list of tasks with state and archive flag"),
    ResourceInfo(uri="tasks://board", name="Task Board", description="Kanban with TODO/ACTIVE/DONE and ARCHIVED"),
]

RESOURCE_TEMPLATES = [
    ResourceTemplateInfo(uriTemplate="tasks://task/{id}", name="Task View", description="Full task JSON for a given task id"),
    ResourceTemplateInfo(uriTemplate="tasks://timeline/{id}", name="Task Timeline", description="Event stream for a given task id"),
]


def render_resource_uri(store: TaskStore, uri: str) -> dict[str, Any]:
    """Resolve a ``tasks://`` address to its JSON view."""
    if uri == "tasks://index":
        return store.index_view()
    if uri == "tasks://board":
        return store.board_view()
    if uri.startswith("tasks://task/"):
        return store.get_task(uri[len("tasks://task/"):]).to_dict()
    if uri.startswith("tasks://timeline/"):
        return store.timeline_view(uri[len("tasks://timeline/"):])
    raise NotFoundError(f"Unknown resource URI: {uri}")


# ---------------------------------------------------------------------------
# Router factory
# ---------------------------------------------------------------------------

def create_task_router(get_store: StoreResolver) -> APIRouter:
    """Create the task API router.

    Parameters
    ----------
    get_store:
        A callable ``(project: str | None) -> TaskStore`` resolving the store
        for the request's project.
    """
    router = APIRouter(prefix="/api", tags=["tasks"])

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @router.get("/tasks", response_model=TaskListResponse)
    async def list_tasks(
        project: Optional[str] = Query(None),
        include_archived: bool = Query(True),
    ) -> TaskListResponse:
        store = get_store(project)
        data = [t.to_dict() for t in store.list_tasks(include_archived)]
        return TaskListResponse(tasks=data, total=len(data))

    @router.get("/tasks/index")
    async def index_view(
        project: Optional[str] = Query(None),
        include_archived: bool = Query(True),
    ) -> dict[str, Any]:
        return get_store(project).index_view(include_archived)

    @router.get("/tasks/board")
    async def board_view(
        project: Optional[str] = Query(None),
        include_archived: bool = Query(True),
    ) -> dict[str, Any]:
        return get_store(project).board_view(include_archived)

    @router.get("/tasks/{task_id}", response_model=TaskResponse)
    async def get_task(task_id: str, project: Optional[str] = Query(None)) -> TaskResponse:
        return TaskResponse(task=get_store(project).get_task(task_id).to_dict())

    @router.get("/tasks/{task_id}/content", response_model=ContentResponse)
    async def read_content(task_id: str, project: Optional[str] = Query(None)) -> ContentResponse:
        content = get_store(project).read_content(task_id)
        return ContentResponse(id=task_id, content=content.content, format=content.format.value)

    @router.get("/tasks/{task_id}/timeline")
    async def timeline_view(
        task_id: str,
        project: Optional[str] = Query(None),
        after_seq: Optional[int] = Query(None, ge=0),
        limit: Optional[int] = Query(None, ge=0),
    ) -> dict[str, Any]:
        return get_store(project).timeline_view(task_id, after_seq=after_seq, limit=limit)

    @router.get("/resources", response_model=ResourceListResponse)
    async def list_resources() -> ResourceListResponse:
        return ResourceListResponse(resources=RESOURCES, resourceTemplates=RESOURCE_TEMPLATES)

    @router.get("/resources/read")
    async def read_resource(uri: str = Query(...), project: Optional[str] = Query(None)) -> dict[str, Any]:
        return {"uri": uri, "mimeType": "application/json", "data": render_resource_uri(get_store(project), uri)}

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @router.post("/tasks", response_model=TaskResponse, status_code=201)
    async def create_task(body: CreateTaskRequest, project: Optional[str] = Query(None)) -> TaskResponse:
        task = get_store(project).create_task(body.title, body.summary, actor=body.actor)
        return TaskResponse(task=task.to_dict())

    @router.post("/tasks/{task_id}/retitle", response_model=TaskResponse)
    async def retitle(task_id: str, body: RetitleRequest, project: Optional[str] = Query(None)) -> TaskResponse:
        task = get_store(project).retitle(
            task_id, body.title, expected_last_seq=body.expected_last_seq, actor=body.actor
        )
        return TaskResponse(task=task.to_dict())

    @router.post("/tasks/{task_id}/state", response_model=TaskResponse)
    async def set_state(task_id: str, body: SetStateRequest, project: Optional[str] = Query(None)) -> TaskResponse:
        task = get_store(project).set_state(
            task_id, body.state, expected_last_seq=body.expected_last_seq, actor=body.actor
        )
        return TaskResponse(task=task.to_dict())

    @router.post("/tasks/{task_id}/summary", response_model=TaskResponse)
    async def set_summary(task_id: str, body: SetSummaryRequest, project: Optional[str] = Query(None)) -> TaskResponse:
        task = get_store(project).set_summary(
            task_id, body.summary, expected_last_seq=body.expected_last_seq, actor=body.actor
        )
        return TaskResponse(task=task.to_dict())

    @router.post("/tasks/{task_id}/content", response_model=TaskResponse)
    async def set_content(task_id: str, body: SetContentRequest, project: Optional[str] = Query(None)) -> TaskResponse:
        task = get_store(project).set_content(
            task_id,
            body.content,
            expected_last_seq=body.expected_last_seq,
            actor=body.actor,
            format=body.format,
        )
        return TaskResponse(task=task.to_dict())

    @router.post("/tasks/{task_id}/log", response_model=TaskResponse)
    async def append_log(task_id: str, body: AppendLogRequest, project: Optional[str] = Query(None)) -> TaskResponse:
        task = get_store(project).append_log(
            task_id, body.message, expected_last_seq=body.expected_last_seq, actor=body.actor
        )
        return TaskResponse(task=task.to_dict())

    @router.post("/tasks/{task_id}/archive", response_model=TaskResponse)
    async def archive(task_id: str, body: ArchiveRequest, project: Optional[str] = Query(None)) -> TaskResponse:
        task = get_store(project).archive(
            task_id, body.reason, expected_last_seq=body.expected_last_seq, actor=body.actor
        )
        return TaskResponse(task=task.to_dict())

    @router.post("/tasks/{task_id}/unarchive", response_model=TaskResponse)
    async def unarchive(task_id: str, body: UnarchiveRequest, project: Optional[str] = Query(None)) -> TaskResponse:
        task = get_store(project).unarchive(task_id, expected_last_seq=body.expected_last_seq, actor=body.actor)
        return TaskResponse(task=task.to_dict())

    return router
