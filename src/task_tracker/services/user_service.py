"""User workflow.

User records are never touched by task operations; the user is loaded first
only so that a bad user id is reported as "User not found." rather than as
whatever the task workflow would say.  Task ownership is a plain user id on
the task, so deleting a user must clear it from that user's tasks first.
"""

from __future__ import annotations

from typing import Iterable, Optional

from loguru import logger

from ..domain.models import Criterion, Page, UpdateResult, User
from ..errors import EntityNotFoundError
from ..storage.repos import UserRepository
from .task_service import TaskService, check_page_bounds


class UserService:
    def __init__(self, users: UserRepository, task_service: TaskService) -> None:
        self.users = users
        self.task_service = task_service

    async def _load(self, user_id: str) -> User:
        user = await self.users.find_by_id(user_id)
        if user is None:
            raise EntityNotFoundError("User not found.")
        return user

    async def create(self, name: str, surname: str, username: str) -> str:
        user = await self.users.save(User(name=name, surname=surname, username=username))
        logger.info("Created user {} ({})", user.id, username)
        return user.id

    async def find_by_id(self, user_id: str) -> User:
        return await self._load(user_id)

    async def find_by_username(self, username: str) -> User:
        user = await self.users.find_by_username(username)
        if user is None:
            raise EntityNotFoundError("User not found.")
        return user

    async def find_page(self, page: int, size: int, criteria: Optional[Iterable[Criterion]] = None) -> Page[User]:
        check_page_bounds(page, size)
        return await self.users.find_with_pagination_and_filter(size, page, list(criteria or []))

    async def add_tasks(self, user_id: str, task_ids: list[str]) -> list[str]:
        await self._load(user_id)
        return await self.task_service.assign_batch(user_id, task_ids)

    async def remove_assigned_task(self, user_id: str, task_id: str) -> UpdateResult:
        await self._load(user_id)
        return await self.task_service.unassign_one(user_id, task_id)

    async def complete_task(self, user_id: str, task_id: str) -> str:
        await self._load(user_id)
        return await self.task_service.complete(user_id, task_id)

    async def delete(self, user_id: str) -> str:
        """Delete a user after clearing it from all of its tasks.

        A task assigned to the user between the two steps keeps the stale
        owner id; no lock spans them.
        """
        await self._load(user_id)
        await self.task_service.unassign_all(user_id)
        await self.users.delete_by_id(user_id)
        logger.info("Deleted user {}", user_id)
        return user_id
