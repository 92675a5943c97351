"""Tests for the domain model (domain/models.py)."""

from __future__ import annotations

import re

from task_tracker.domain.models import (
    Criterion,
    FacetResult,
    Operation,
    Page,
    Task,
    TaskStatus,
    User,
    new_id,
)


def test_new_id_shape() -> None:
    assert re.fullmatch(r"[0-9a-f]{24}", new_id())
    assert new_id() != new_id()


class TestTask:
    def test_defaults(self) -> None:
        task = Task(title="Fix bug", description="Critical fix")
        assert task.id is None
        assert task.status == TaskStatus.TO_DO
        assert task.user_id is None
        assert task.creation_date

    def test_record_round_trip(self) -> None:
        task = Task(id="t1", title="Fix bug", description="Critical fix", status=TaskStatus.IN_PROGRESS, user_id="u1")
        record = task.to_dict()
        assert record["status"] == "IN_PROGRESS"
        assert set(record) == {"id", "title", "description", "creation_date", "status", "user_id"}
        assert Task.from_dict(record) == task

    def test_from_partial_record(self) -> None:
        task = Task.from_dict({"id": "t1", "title": "Only title"})
        assert task.status == TaskStatus.TO_DO
        assert task.description == ""


def test_user_from_dict_ignores_unknown_keys() -> None:
    user = User.from_dict({"id": "u1", "name": "Jane", "surname": "Doe", "username": "jdoe", "extra": 1})
    assert user == User(id="u1", name="Jane", surname="Doe", username="jdoe")


def test_criterion_defaults_to_equals() -> None:
    criterion = Criterion("status", "TO_DO")
    assert criterion.operation is Operation.EQUALS


def test_facet_total_count() -> None:
    assert FacetResult().total_count == 0
    assert FacetResult(elements=[{"id": "a"}], count_info=[{"total_count": 7}]).total_count == 7


def test_page_to_dict() -> None:
    page = Page(items=[User(id="u1", name="Jane", surname="Doe", username="jdoe")], total=4, page=1, size=1)
    assert page.to_dict() == {
        "list": [{"id": "u1", "name": "Jane", "surname": "Doe", "username": "jdoe"}],
        "total": 4,
        "page": 1,
        "size": 1,
    }
