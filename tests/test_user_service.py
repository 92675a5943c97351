"""Tests for the user workflow (services/user_service.py)."""

from __future__ import annotations

from pathlib import Path

import pytest

from task_tracker.container import Container
from task_tracker.domain.models import Criterion, TaskStatus
from task_tracker.errors import EntityNotFoundError, InvalidStateError


@pytest.fixture(params=["memory", "file"])
def container(request, tmp_path: Path) -> Container:
    if request.param == "memory":
        return Container.in_memory()
    return Container.for_project(tmp_path)


@pytest.mark.anyio
class TestUserService:
    async def test_create_and_lookup(self, container: Container) -> None:
        svc = container.user_service
        user_id = await svc.create("Jane", "Doe", "jdoe")
        user = await svc.find_by_id(user_id)
        assert (user.name, user.surname, user.username) == ("Jane", "Doe", "jdoe")
        assert (await svc.find_by_username("jdoe")).id == user_id

    async def test_missing_user(self, container: Container) -> None:
        svc = container.user_service
        with pytest.raises(EntityNotFoundError, match="User not found."):
            await svc.find_by_id("missing")
        with pytest.raises(EntityNotFoundError, match="User not found."):
            await svc.find_by_username("ghost")

    async def test_user_checked_before_tasks(self, container: Container) -> None:
        svc = container.user_service
        task_id = await container.task_service.create("A", "first")
        for call in (
            svc.add_tasks("missing", [task_id]),
            svc.remove_assigned_task("missing", task_id),
            svc.complete_task("missing", task_id),
            svc.delete("missing"),
        ):
            with pytest.raises(EntityNotFoundError, match="User not found."):
                await call
        task = await container.task_service.find_by_id(task_id)
        assert (task.status, task.user_id) == (TaskStatus.TO_DO, None)

    async def test_assign_complete_unassign(self, container: Container) -> None:
        svc = container.user_service
        user_id = await svc.create("Jane", "Doe", "jdoe")
        a = await container.task_service.create("A", "first")
        b = await container.task_service.create("B", "second")

        assert sorted(await svc.add_tasks(user_id, [a, b])) == sorted([a, b])
        assert await svc.complete_task(user_id, a) == a
        with pytest.raises(InvalidStateError):
            await svc.complete_task(user_id, a)

        result = await svc.remove_assigned_task(user_id, b)
        assert result.matched == 1
        task_b = await container.task_service.find_by_id(b)
        assert (task_b.status, task_b.user_id) == (TaskStatus.IN_PROGRESS, None)

    async def test_delete_cascades_to_owned_tasks(self, container: Container) -> None:
        svc = container.user_service
        owner = await svc.create("Jane", "Doe", "jdoe")
        other = await svc.create("John", "Roe", "jroe")
        owned = [await container.task_service.create(f"Owned {i}", "mine") for i in range(3)]
        kept = await container.task_service.create("Other", "theirs")
        await svc.add_tasks(owner, owned)
        await svc.add_tasks(other, [kept])

        assert await svc.delete(owner) == owner

        with pytest.raises(EntityNotFoundError):
            await svc.find_by_id(owner)
        for task_id in owned:
            assert (await container.task_service.find_by_id(task_id)).user_id is None
        assert (await container.task_service.find_by_id(kept)).user_id == other

    async def test_find_page_filters_users(self, container: Container) -> None:
        svc = container.user_service
        await svc.create("Jane", "Doe", "jdoe")
        await svc.create("John", "Doe", "jodoe")
        await svc.create("Ann", "Lee", "alee")
        page = await svc.find_page(0, 1, [Criterion("surname", "Doe")])
        assert page.total == 2
        assert len(page.items) == 1
