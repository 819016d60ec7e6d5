"""FastAPI application exposing wind-task stores over HTTP."""

from __future__ import annotations

from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from .. import __version__
from ..errors import TaskStoreError
from ..registry import StoreRegistry
from ..store import TaskStore
from .models import ErrorResponse
from .task_api import create_task_router

# Wire status for each store error code.
ERROR_STATUS = {
    "not_found": 404,
    "conflict": 409,
    "archived": 423,
    "validation": 422,
}


def error_envelope(exc: TaskStoreError) -> dict[str, object]:
    return ErrorResponse(error=exc.code, message=str(exc)).model_dump()


def create_app(
    registry: Optional[StoreRegistry] = None,
    enable_cors: bool = True,
) -> FastAPI:
    """Create and configure FastAPI application.

    Args:
        registry: Project-to-store registry; a default-only registry if omitted.
        enable_cors: Whether to enable CORS.

    Returns:
        Configured FastAPI app.
    """
    app = FastAPI(
        title="wind-task",
        description="Append-only task tracker with optimistic concurrency",
        version=__version__,
    )

    if enable_cors:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.state.registry = registry or StoreRegistry()

    def _get_store(project: Optional[str] = None) -> TaskStore:
        return app.state.registry.get(project)

    @app.exception_handler(TaskStoreError)
    async def _store_error(request: Request, exc: TaskStoreError) -> JSONResponse:
        status = ERROR_STATUS.get(exc.code, 500)
        if status >= 500:
            logger.error("Unhandled store error on {}: {}", request.url.path, exc)
        return JSONResponse(status_code=status, content=error_envelope(exc))

    @app.exception_handler(ValueError)
    async def _corrupt_data(request: Request, exc: ValueError) -> JSONResponse:
        # Unreadable snapshot or log on disk.
        logger.error("Corrupt task data on {}: {}", request.url.path, exc)
        content = ErrorResponse(error="corrupt", message=str(exc)).model_dump()
        return JSONResponse(status_code=500, content=content)

    @app.exception_handler(RequestValidationError)
    async def _request_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        parts = []
        for err in exc.errors():
            loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
            parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
        content = ErrorResponse(error="validation", message="; ".join(parts) or "invalid request").model_dump()
        return JSONResponse(status_code=422, content=content)

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "name": "wind-task",
            "version": __version__,
            "status": "running",
        }

    @app.get("/api/projects")
    async def list_projects():
        return {"projects": app.state.registry.project_names()}

    app.include_router(create_task_router(_get_store))

    return app
