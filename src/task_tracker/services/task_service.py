"""Task workflow: lifecycle transitions, assignment and filtered listing.

Lifecycle::

    TO_DO --assign--> IN_PROGRESS --complete--> DONE

Unassignment clears the owner without touching the status, so an unowned
task can remain IN_PROGRESS or DONE.  ``update`` writes any status.

Nothing here runs inside a multi-document transaction.  ``assign_batch``
validates every task before writing any of them, but the writes are
separate single-document saves: a concurrent writer can change a task
between the read and the write, and a failing save leaves the earlier
ones in place.
"""

from __future__ import annotations

from typing import Iterable, Optional

from loguru import logger

from ..domain.models import Criterion, Page, Task, TaskStatus, UpdateResult
from ..errors import EntityNotFoundError, InvalidStateError, ValidationError
from ..logging_utils import summarize_ids
from ..storage.repos import TaskRepository


def check_page_bounds(page: int, size: int) -> None:
    if page < 0:
        raise ValidationError("Page index must be zero or greater.")
    if size <= 0:
        raise ValidationError("Page size must be greater than zero.")


class TaskService:
    def __init__(self, tasks: TaskRepository) -> None:
        self.tasks = tasks

    async def _load(self, task_id: str) -> Task:
        task = await self.tasks.find_by_id(task_id)
        if task is None:
            raise EntityNotFoundError("Task not found.")
        return task

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def find_by_id(self, task_id: str) -> Task:
        return await self._load(task_id)

    async def find_page(self, page: int, size: int, criteria: Optional[Iterable[Criterion]] = None) -> Page[Task]:
        check_page_bounds(page, size)
        return await self.tasks.find_with_pagination_and_filter(size, page, list(criteria or []))

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def create(self, title: str, description: str) -> str:
        task = await self.tasks.save(
            Task(title=title, description=description)
        )
        logger.info("Created task {}: {}", task.id, title)
        return task.id

    async def update(self, task_id: str, title: str, description: str, status: TaskStatus | str) -> str:
        try:
            new_status = TaskStatus(status)
        except ValueError:
            raise ValidationError(f"Unknown task status: {status!r}") from None
        task = await self._load(task_id)
        task.title = title
        task.description = description
        task.status = new_status
        await self.tasks.save(task)
        logger.info("Updated task {} (status={})", task_id, task.status.value)
        return task_id

    async def assign_batch(self, user_id: str, task_ids: list[str]) -> list[str]:
        """Assign every task in ``task_ids`` to ``user_id`` and start them.

        All tasks are loaded and checked before the first write: a missing
        id or a task that is not TO_DO fails the whole batch with nothing
        written.
        """
        tasks = await self.tasks.find_all_by_id(task_ids)
        if len(tasks) < len(task_ids):
            raise EntityNotFoundError("Not all tasks were found.")
        not_todo = [t.id for t in tasks if t.status != TaskStatus.TO_DO]
        if not_todo:
            logger.warning("Refusing to assign tasks to {}: not TO_DO: {}", user_id, summarize_ids(not_todo))
            raise InvalidStateError("Cannot assign tasks: some tasks are not TODO.")

        assigned: list[str] = []
        for task in tasks:
            task.user_id = user_id
            task.status = TaskStatus.IN_PROGRESS
            saved = await self.tasks.save(task)
            assigned.append(saved.id)
        logger.info("Assigned {} task(s) to user {}: {}", len(assigned), user_id, summarize_ids(assigned))
        return assigned

    async def complete(self, user_id: str, task_id: str) -> str:
        task = await self._load(task_id)
        if task.user_id != user_id:
            raise InvalidStateError("Task is not assigned to user.")
        if task.status == TaskStatus.DONE:
            raise InvalidStateError("Task already completed.")
        task.status = TaskStatus.DONE
        await self.tasks.save(task)
        logger.info("User {} completed task {}", user_id, task_id)
        return task_id

    async def unassign_all(self, user_id: str) -> UpdateResult:
        """Clear ``user_id`` from every task it owns; a no-op when it owns none."""
        result = await self.tasks.unassign_user_tasks(user_id)
        logger.info("Unassigned user {} from {} task(s)", user_id, result.modified)
        return result

    async def unassign_one(self, user_id: str, task_id: str) -> UpdateResult:
        result = await self.tasks.unassign_user_task(user_id, task_id)
        if result.matched == 0:
            raise EntityNotFoundError("Task not found.")
        logger.info("Unassigned task {} from user {}", task_id, user_id)
        return result

    async def delete(self, task_id: str) -> str:
        await self._load(task_id)
        await self.tasks.delete_by_id(task_id)
        logger.info("Deleted task {}", task_id)
        return task_id
