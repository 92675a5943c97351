"""FastAPI application for the task tracker."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from .. import __version__
from ..container import Container
from ..errors import ErrorKind, TaskTrackerError
from .models import envelope, error_body
from .task_api import create_task_router
from .user_api import create_user_router


_STATUS_BY_KIND = {
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.INVALID_STATE: 400,
    ErrorKind.VALIDATION: 400,
    ErrorKind.INFRASTRUCTURE: 500,
}


def _validation_message(exc: RequestValidationError) -> str:
    messages = []
    for error in exc.errors():
        if error.get("type") == "string_pattern_mismatch" and error.get("loc"):
            messages.append(f"Wrong format of {error['loc'][-1]}.")
            continue
        msg = str(error.get("msg") or "Invalid input")
        messages.append(msg.removeprefix("Value error, "))
    return "; ".join(messages) or "Invalid input format"


def create_app(
    project_dir: Optional[Path] = None,
    container: Optional[Container] = None,
    enable_cors: bool = True,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        project_dir: Project directory whose `.task_tracker/` state is served.
            Ignored when ``container`` is given.
        container: Pre-built container (tests pass an in-memory one).
        enable_cors: Whether to enable CORS.

    Returns:
        Configured FastAPI app.
    """
    app = FastAPI(
        title="Task Tracker",
        description="Users, tasks, assignment and filtered pagination",
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

    app.state.container = container or Container.for_project(project_dir or Path.cwd())

    def _get_container() -> Container:
        return app.state.container

    @app.exception_handler(TaskTrackerError)
    async def _tracker_error(request: Request, exc: TaskTrackerError) -> JSONResponse:
        status = _STATUS_BY_KIND.get(exc.kind, 500)
        if status >= 500:
            logger.opt(exception=exc).warning("{} {} failed: {}", request.method, request.url.path, exc.message)
            return JSONResponse(status_code=status, content=error_body("Internal server error"))
        logger.warning("{} {} rejected ({}): {}", request.method, request.url.path, exc.kind.value, exc.message)
        return JSONResponse(status_code=status, content=error_body(exc.message))

    @app.exception_handler(RequestValidationError)
    async def _request_invalid(request: Request, exc: RequestValidationError) -> JSONResponse:
        message = _validation_message(exc)
        logger.warning("Validation error on {} {}: {}", request.method, request.url.path, message)
        return JSONResponse(status_code=400, content=error_body(message))

    @app.exception_handler(Exception)
    async def _unexpected(request: Request, exc: Exception) -> JSONResponse:
        logger.opt(exception=exc).warning("Unhandled error on {} {}", request.method, request.url.path)
        return JSONResponse(status_code=500, content=error_body("Internal server error"))

    @app.get("/")
    async def root():
        return envelope({"name": "Task Tracker", "version": __version__, "status": "running"})

    app.include_router(create_task_router(_get_container))
    app.include_router(create_user_router(_get_container))
    return app
