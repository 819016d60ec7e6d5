"""Pydantic request / response models for the task API."""

from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import BaseModel, Field


class CreateTaskRequest(BaseModel):
    title: str = Field(min_length=1)
    summary: Optional[str] = None
    actor: str = Field(min_length=1, description="actor id, e.g. agent:llm or human:dev")


class MutationRequest(BaseModel):
    expected_last_seq: int = Field(ge=0)
    actor: str = Field(min_length=1)


class RetitleRequest(MutationRequest):
    title: str = Field(min_length=1)


class SetStateRequest(MutationRequest):
    state: str = Field(description="TODO|ACTIVE|DONE (accepts legacy IN_DEV/FINISHED)")


class SetSummaryRequest(MutationRequest):
    summary: str


class SetContentRequest(MutationRequest):
    content: str
    format: Literal["markdown", "text"] = "markdown"


class AppendLogRequest(MutationRequest):
    message: str


class ArchiveRequest(MutationRequest):
    reason: Optional[str] = None


class UnarchiveRequest(MutationRequest):
    pass


class TaskResponse(BaseModel):
    """Standard wrapper for task responses."""
    ok: bool = True
    task: dict[str, Any]


class TaskListResponse(BaseModel):
    ok: bool = True
    tasks: list[dict[str, Any]]
    total: int


class ContentResponse(BaseModel):
    ok: bool = True
    id: str
    content: str
    format: str


class ErrorResponse(BaseModel):
    ok: bool = False
    error: str
    message: str


class ResourceInfo(BaseModel):
    uri: str
    name: str
    description: str
    mimeType: str = "application/json"


class ResourceTemplateInfo(BaseModel):
    uriTemplate: str
    name: str
    description: str
    mimeType: str = "application/json"


class ResourceListResponse(BaseModel):
    resources: list[ResourceInfo]
    resourceTemplates: list[ResourceTemplateInfo]
