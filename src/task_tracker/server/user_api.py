"""User endpoints, mounted under ``/users``, including task assignment."""

from __future__ import annotations

from typing import Callable, Optional

from fastapi import APIRouter, Query

from ..constants import DEFAULT_PAGE
from ..container import Container
from .models import (
    AddTasksRequest,
    CreateUserRequest,
    FilterRequest,
    ResponseEnvelope,
    envelope,
    id_payload,
)


def create_user_router(get_container: Callable[[], Container]) -> APIRouter:
    router = APIRouter(prefix="/users", tags=["users"])

    def _size(size: Optional[int]) -> int:
        return size if size is not None else get_container().default_page_size

    @router.get("", response_model=ResponseEnvelope)
    async def list_users(
        page: int = Query(DEFAULT_PAGE, ge=0),
        size: Optional[int] = Query(None, gt=0),
    ) -> ResponseEnvelope:
        result = await get_container().user_service.find_page(page, _size(size))
        return envelope(result.to_dict())

    @router.post("/search", response_model=ResponseEnvelope)
    async def search_users(
        body: Optional[FilterRequest] = None,
        page: int = Query(DEFAULT_PAGE, ge=0),
        size: Optional[int] = Query(None, gt=0),
    ) -> ResponseEnvelope:
        result = await get_container().user_service.find_page(page, _size(size), body.to_criteria() if body else [])
        return envelope(result.to_dict())

    @router.get("/by-username/{username}", response_model=ResponseEnvelope)
    async def get_user_by_username(username: str) -> ResponseEnvelope:
        user = await get_container().user_service.find_by_username(username)
        return envelope(user.to_dict())

    @router.get("/{user_id}", response_model=ResponseEnvelope)
    async def get_user(user_id: str) -> ResponseEnvelope:
        user = await get_container().user_service.find_by_id(user_id)
        return envelope(user.to_dict())

    @router.post("", response_model=ResponseEnvelope, status_code=201)
    async def create_user(body: CreateUserRequest) -> ResponseEnvelope:
        user_id = await get_container().user_service.create(body.name, body.surname, body.username)
        return envelope(id_payload(user_id))

    @router.patch("/complete/{user_id}/{task_id}", response_model=ResponseEnvelope)
    async def complete_task(user_id: str, task_id: str) -> ResponseEnvelope:
        completed = await get_container().user_service.complete_task(user_id, task_id)
        return envelope(id_payload(completed))

    @router.patch("/{user_id}/{task_id}", response_model=ResponseEnvelope)
    async def unassign_task(user_id: str, task_id: str) -> ResponseEnvelope:
        result = await get_container().user_service.remove_assigned_task(user_id, task_id)
        return envelope(result.to_dict())

    @router.patch("/{user_id}", response_model=ResponseEnvelope)
    async def add_tasks(user_id: str, body: AddTasksRequest) -> ResponseEnvelope:
        assigned = await get_container().user_service.add_tasks(user_id, body.task_ids)
        return envelope([id_payload(tid) for tid in assigned])

    @router.delete("/{user_id}", response_model=ResponseEnvelope)
    async def delete_user(user_id: str) -> ResponseEnvelope:
        deleted = await get_container().user_service.delete(user_id)
        return envelope(id_payload(deleted))

    return router
