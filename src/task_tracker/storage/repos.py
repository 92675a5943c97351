from __future__ import annotations

from typing import Optional

from ..constants import TASKS_COLLECTION, USERS_COLLECTION
from ..domain.models import Task, UpdateResult, User
from .filters import equals
from .interfaces import DocumentStore
from .paginated import PaginatedRepository


class TaskRepository(PaginatedRepository[Task]):
    def __init__(self, store: DocumentStore) -> None:
        super().__init__(store, TASKS_COLLECTION, loader=Task.from_dict, dumper=lambda t: t.to_dict())

    async def unassign_user_tasks(self, user_id: str) -> UpdateResult:
        """Clear the owner of every task owned by ``user_id``."""
        return await self._store.update_many(self._collection, equals(user_id=user_id), {"user_id": None})

    async def unassign_user_task(self, user_id: str, task_id: str) -> UpdateResult:
        """Clear the owner of ``task_id`` only if ``user_id`` currently owns it."""
        return await self._store.update_one(self._collection, equals(user_id=user_id, id=task_id), {"user_id": None})


class UserRepository(PaginatedRepository[User]):
    def __init__(self, store: DocumentStore) -> None:
        super().__init__(store, USERS_COLLECTION, loader=User.from_dict, dumper=lambda u: u.to_dict())

    async def find_by_username(self, username: str) -> Optional[User]:
        raw = await self._store.find_one(self._collection, equals(username=username))
        return User.from_dict(raw) if raw is not None else None
