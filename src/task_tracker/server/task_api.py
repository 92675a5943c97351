"""Task endpoints, mounted under ``/tasks``."""

from __future__ import annotations

from typing import Callable, Optional

from fastapi import APIRouter, Query

from ..constants import DEFAULT_PAGE
from ..container import Container
from .models import (
    CreateTaskRequest,
    FilterRequest,
    ResponseEnvelope,
    UpdateTaskRequest,
    envelope,
    id_payload,
)


def create_task_router(get_container: Callable[[], Container]) -> APIRouter:
    router = APIRouter(prefix="/tasks", tags=["tasks"])

    def _size(size: Optional[int]) -> int:
        return size if size is not None else get_container().default_page_size

    @router.get("", response_model=ResponseEnvelope)
    async def list_tasks(
        page: int = Query(DEFAULT_PAGE, ge=0),
        size: Optional[int] = Query(None, gt=0),
    ) -> ResponseEnvelope:
        result = await get_container().task_service.find_page(page, _size(size))
        return envelope(result.to_dict())

    @router.post("/search", response_model=ResponseEnvelope)
    async def search_tasks(
        body: Optional[FilterRequest] = None,
        page: int = Query(DEFAULT_PAGE, ge=0),
        size: Optional[int] = Query(None, gt=0),
    ) -> ResponseEnvelope:
        result = await get_container().task_service.find_page(page, _size(size), body.to_criteria() if body else [])
        return envelope(result.to_dict())

    @router.get("/{task_id}", response_model=ResponseEnvelope)
    async def get_task(task_id: str) -> ResponseEnvelope:
        task = await get_container().task_service.find_by_id(task_id)
        return envelope(task.to_dict())

    @router.post("", response_model=ResponseEnvelope, status_code=201)
    async def create_task(body: CreateTaskRequest) -> ResponseEnvelope:
        task_id = await get_container().task_service.create(body.title, body.description)
        return envelope(id_payload(task_id))

    @router.put("/{task_id}", response_model=ResponseEnvelope)
    async def update_task(task_id: str, body: UpdateTaskRequest) -> ResponseEnvelope:
        updated = await get_container().task_service.update(task_id, body.title, body.description, body.status)
        return envelope(id_payload(updated))

    @router.delete("/{task_id}", response_model=ResponseEnvelope)
    async def delete_task(task_id: str) -> ResponseEnvelope:
        deleted = await get_container().task_service.delete(task_id)
        return envelope(id_payload(deleted))

    return router
