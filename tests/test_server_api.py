"""Tests for the HTTP adapter (server/api.py, task_api.py, user_api.py)."""

from __future__ import annotations

from pathlib import Path

import pytest
from httpx import AsyncClient, ASGITransport
from pydantic import ValidationError as RequestModelError

from task_tracker.container import Container
from task_tracker.server.api import create_app
from task_tracker.server.models import CreateTaskRequest, CreateUserRequest


@pytest.fixture
def app():
    return create_app(container=Container.in_memory(), enable_cors=False)


@pytest.fixture
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


async def _create_task(client: AsyncClient, title: str = "Fix bug", description: str = "Critical fix") -> str:
    resp = await client.post("/tasks", json={"title": title, "description": description})
    assert resp.status_code == 201
    return resp.json()["data"]["id"]


async def _create_user(client: AsyncClient, username: str = "jdoe") -> str:
    resp = await client.post("/users", json={"name": "Jane", "surname": "Doe", "username": username})
    assert resp.status_code == 201
    return resp.json()["data"]["id"]


@pytest.mark.anyio
class TestTaskEndpoints:
    async def test_root(self, client: AsyncClient) -> None:
        resp = await client.get("/")
        assert resp.status_code == 200
        assert resp.json()["data"]["name"] == "Task Tracker"

    async def test_list_empty(self, client: AsyncClient) -> None:
        resp = await client.get("/tasks")
        assert resp.status_code == 200
        body = resp.json()
        assert body["message"] == "success"
        assert body["timestamp"]
        assert body["data"] == {"list": [], "total": 0, "page": 0, "size": 10}

    async def test_create_get_update_delete(self, client: AsyncClient) -> None:
        task_id = await _create_task(client)

        resp = await client.get(f"/tasks/{task_id}")
        assert resp.status_code == 200
        task = resp.json()["data"]
        assert task["title"] == "Fix bug"
        assert task["status"] == "TO_DO"
        assert task["user_id"] is None

        resp = await client.put(
            f"/tasks/{task_id}",
            json={"title": "Fix bug (again)", "description": "Still critical", "status": "DONE"},
        )
        assert resp.status_code == 200
        assert resp.json()["data"] == {"id": task_id}
        assert (await client.get(f"/tasks/{task_id}")).json()["data"]["status"] == "DONE"

        resp = await client.delete(f"/tasks/{task_id}")
        assert resp.status_code == 200
        assert resp.json()["data"] == {"id": task_id}
        assert (await client.get(f"/tasks/{task_id}")).status_code == 404

    async def test_not_found_body(self, client: AsyncClient) -> None:
        resp = await client.get("/tasks/missing")
        assert resp.status_code == 404
        body = resp.json()
        assert body["data"] is None
        assert body["message"] == "Task not found."

    @pytest.mark.parametrize(
        "payload, message",
        [
            ({"title": "", "description": "Fine text"}, "Fill the title."),
            ({"title": "ab", "description": "Fine text"}, "Wrong format of title."),
            ({"title": "Valid", "description": "bad <html>"}, "Wrong format of description."),
            ({"title": "Fix ²³¹", "description": "Fine text"}, "Wrong format of title."),
            ({"title": "Valid", "description": "Step ١٢٣"}, "Wrong format of description."),
            ({"title": "   ", "description": "Fine text"}, "Fill the title."),
        ],
    )
    async def test_create_validation(self, client: AsyncClient, payload: dict, message: str) -> None:
        resp = await client.post("/tasks", json=payload)
        assert resp.status_code == 400
        assert message in resp.json()["message"]

    async def test_update_rejects_unknown_status(self, client: AsyncClient) -> None:
        task_id = await _create_task(client)
        resp = await client.put(
            f"/tasks/{task_id}", json={"title": "Valid", "description": "Valid", "status": "BLOCKED"}
        )
        assert resp.status_code == 400

    async def test_search_with_pagination(self, client: AsyncClient) -> None:
        ids = [await _create_task(client, title=f"Task {i}") for i in range(5)]
        for task_id in ids[3:]:
            await client.put(f"/tasks/{task_id}", json={"title": "Closed", "description": "Done", "status": "DONE"})

        criteria = {"filter_criteria": [{"key": "status", "value": "TO_DO", "operation": "EQUALS"}]}
        resp = await client.post("/tasks/search?page=0&size=2", json=criteria)
        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["total"] == 3
        assert [t["id"] for t in data["list"]] == ids[:2]

        resp = await client.post("/tasks/search?page=4&size=2", json=criteria)
        assert resp.json()["data"]["list"] == []
        assert resp.json()["data"]["total"] == 3

        resp = await client.post("/tasks/search", json={"filter_criteria": [{"key": "title", "value": "^Task", "operation": "REGEX"}]})
        assert resp.json()["data"]["total"] == 3

    async def test_search_without_body_lists_everything(self, client: AsyncClient) -> None:
        await _create_task(client)
        resp = await client.post("/tasks/search")
        assert resp.status_code == 200
        assert resp.json()["data"]["total"] == 1

    async def test_search_rejects_operator_like_key(self, client: AsyncClient) -> None:
        await _create_task(client)
        resp = await client.post("/tasks/search", json={"filter_criteria": [{"key": "$and", "value": ["x"]}]})
        assert resp.status_code == 400
        assert "Invalid filter key" in resp.json()["message"]

    async def test_search_rejects_unknown_operation(self, client: AsyncClient) -> None:
        resp = await client.post("/tasks/search", json={"filter_criteria": [{"key": "status", "value": 1, "operation": "NEAR"}]})
        assert resp.status_code == 400
        assert "Unknown filter operation" in resp.json()["message"]

    async def test_incomparable_filter_is_internal_error(self, client: AsyncClient) -> None:
        await _create_task(client)
        resp = await client.post(
            "/tasks/search", json={"filter_criteria": [{"key": "title", "value": 5, "operation": "GT"}]}
        )
        assert resp.status_code == 500
        assert resp.json()["message"] == "Internal server error"

    async def test_bad_paging_params(self, client: AsyncClient) -> None:
        assert (await client.get("/tasks?page=-1")).status_code == 400
        assert (await client.get("/tasks?size=0")).status_code == 400


@pytest.mark.anyio
class TestUserEndpoints:
    async def test_create_and_lookup(self, client: AsyncClient) -> None:
        user_id = await _create_user(client)
        resp = await client.get(f"/users/{user_id}")
        assert resp.status_code == 200
        assert resp.json()["data"]["username"] == "jdoe"

        resp = await client.get("/users/by-username/jdoe")
        assert resp.json()["data"]["id"] == user_id

        resp = await client.get("/users")
        assert resp.json()["data"]["total"] == 1

        assert (await client.get("/users/missing")).json()["message"] == "User not found."

    async def test_create_validation(self, client: AsyncClient) -> None:
        resp = await client.post("/users", json={"name": "J", "surname": "Doe", "username": "jdoe"})
        assert resp.status_code == 400
        assert "Wrong format of name." in resp.json()["message"]
        resp = await client.post("/users", json={"name": "Jane", "surname": "Doe", "username": "jdÃ¶e"})
        assert resp.status_code == 400

    async def test_assignment_flow(self, client: AsyncClient) -> None:
        user_id = await _create_user(client)
        other_id = await _create_user(client, username="other")
        a = await _create_task(client, title="Task A")
        b = await _create_task(client, title="Task B")

        resp = await client.patch(f"/users/{user_id}", json={"task_ids": [a, b]})
        assert resp.status_code == 200
        assert sorted(item["id"] for item in resp.json()["data"]) == sorted([a, b])

        resp = await client.patch(f"/users/{other_id}", json={"task_ids": [a]})
        assert resp.status_code == 400
        assert resp.json()["message"] == "Cannot assign tasks: some tasks are not TODO."

        resp = await client.patch(f"/users/complete/{other_id}/{a}")
        assert resp.status_code == 400
        assert resp.json()["message"] == "Task is not assigned to user."

        resp = await client.patch(f"/users/complete/{user_id}/{a}")
        assert resp.status_code == 200
        assert resp.json()["data"] == {"id": a}

        resp = await client.patch(f"/users/{user_id}/{b}")
        assert resp.status_code == 200
        assert resp.json()["data"] == {"matched": 1, "modified": 1}
        assert (await client.get(f"/tasks/{b}")).json()["data"]["user_id"] is None

        resp = await client.patch(f"/users/{user_id}/{b}")
        assert resp.status_code == 404

    async def test_add_tasks_validation(self, client: AsyncClient) -> None:
        user_id = await _create_user(client)
        assert (await client.patch(f"/users/{user_id}", json={"task_ids": []})).status_code == 400
        resp = await client.patch(f"/users/{user_id}", json={"task_ids": ["  "]})
        assert resp.status_code == 400
        assert "Provide a valid task ID." in resp.json()["message"]

    async def test_add_missing_tasks(self, client: AsyncClient) -> None:
        user_id = await _create_user(client)
        resp = await client.patch(f"/users/{user_id}", json={"task_ids": ["missing"]})
        assert resp.status_code == 404
        assert resp.json()["message"] == "Not all tasks were found."

    async def test_delete_cascades(self, client: AsyncClient) -> None:
        user_id = await _create_user(client)
        task_id = await _create_task(client)
        await client.patch(f"/users/{user_id}", json={"task_ids": [task_id]})

        resp = await client.delete(f"/users/{user_id}")
        assert resp.status_code == 200
        assert resp.json()["data"] == {"id": user_id}
        assert (await client.get(f"/users/{user_id}")).status_code == 404
        task = (await client.get(f"/tasks/{task_id}")).json()["data"]
        assert task["user_id"] is None
        assert task["status"] == "IN_PROGRESS"

    async def test_search_users(self, client: AsyncClient) -> None:
        await _create_user(client, username="alpha")
        await _create_user(client, username="beta")
        resp = await client.post(
            "/users/search", json={"filter_criteria": [{"key": "username", "value": "^al", "operation": "MATCHES_PATTERN"}]}
        )
        assert resp.json()["data"]["total"] == 1
        assert resp.json()["data"]["list"][0]["username"] == "alpha"


def test_create_app_bootstraps_project(tmp_path: Path) -> None:
    app = create_app(project_dir=tmp_path, enable_cors=False)
    assert (tmp_path / ".task_tracker" / "tasks.yaml").exists()
    assert app.state.container.project_dir == tmp_path.resolve()


class TestRequestModels:
    def test_digits_must_be_ascii(self) -> None:
        with pytest.raises(RequestModelError):
            CreateTaskRequest(title="Fix ²³¹", description="Critical fix")
        with pytest.raises(RequestModelError):
            CreateTaskRequest(title="Fix bug", description="Step ١٢٣")
        assert CreateTaskRequest(title="Fix 123", description="Critical fix").title == "Fix 123"

    def test_letters_from_any_script(self) -> None:
        request = CreateUserRequest(name="Zoë", surname="O'Brien-Łukasz", username="z.o_e-1")
        assert request.surname == "O'Brien-Łukasz"

    def test_user_fields(self) -> None:
        with pytest.raises(RequestModelError):
            CreateUserRequest(name="Jan²", surname="Doe", username="jdoe")
        with pytest.raises(RequestModelError):
            CreateUserRequest(name="Jane", surname="Doe", username="jd²")
        with pytest.raises(RequestModelError, match="Fill the username."):
            CreateUserRequest(name="Jane", surname="Doe", username="  ")
