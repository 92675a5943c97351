"""Pydantic models for the HTTP API: request bodies, field rules, response envelope."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated, Any, Optional

from pydantic import BaseModel, Field, ValidationInfo, field_validator

from ..domain.models import Criterion, Operation, TaskStatus
from ..errors import ValidationError


# Checked by pydantic-core's regex engine, which supports \p{L}.
TITLE_PATTERN = r"""^[\p{L}0-9 ,.?!'"()\-]{3,100}$"""
DESCRIPTION_PATTERN = r"""^[\p{L}0-9 ,.?!'"()\-]{3,500}$"""
NAME_PATTERN = r"^[\p{L}\s'\-]{2,30}$"
SURNAME_PATTERN = r"^[\p{L}\s'\-]{2,40}$"
USERNAME_PATTERN = r"^[A-Za-z0-9\s._\-]{2,30}$"

Title = Annotated[str, Field(pattern=TITLE_PATTERN)]
Description = Annotated[str, Field(pattern=DESCRIPTION_PATTERN)]
Name = Annotated[str, Field(pattern=NAME_PATTERN)]
Surname = Annotated[str, Field(pattern=SURNAME_PATTERN)]
Username = Annotated[str, Field(pattern=USERNAME_PATTERN)]


def _not_blank(value: Any, label: str) -> Any:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValueError(f"Fill the {label}.")
    return value


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------

class CreateTaskRequest(BaseModel):
    title: Title
    description: Description

    @field_validator("title", "description", mode="before")
    @classmethod
    def _filled(cls, value: Any, info: ValidationInfo) -> Any:
        return _not_blank(value, info.field_name)


class UpdateTaskRequest(CreateTaskRequest):
    status: TaskStatus


class CreateUserRequest(BaseModel):
    name: Name
    surname: Surname
    username: Username

    @field_validator("name", "surname", "username", mode="before")
    @classmethod
    def _filled(cls, value: Any, info: ValidationInfo) -> Any:
        return _not_blank(value, info.field_name)


class AddTasksRequest(BaseModel):
    task_ids: list[str] = Field(min_length=1)

    @field_validator("task_ids")
    @classmethod
    def _ids(cls, value: list[str]) -> list[str]:
        if any(not tid or not tid.strip() for tid in value):
            raise ValueError("Provide a valid task ID.")
        return value


class FilterCriterionModel(BaseModel):
    key: str = Field(min_length=1)
    value: Any = None
    operation: str = "EQUALS"

    @field_validator("operation")
    @classmethod
    def _operation(cls, value: str) -> str:
        try:
            return Operation.parse(value).value
        except ValidationError as exc:
            raise ValueError(exc.message) from exc

    def to_criterion(self) -> Criterion:
        return Criterion(key=self.key, value=self.value, operation=Operation(self.operation))


class FilterRequest(BaseModel):
    filter_criteria: list[FilterCriterionModel] = Field(default_factory=list)

    def to_criteria(self) -> list[Criterion]:
        return [c.to_criterion() for c in self.filter_criteria]


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------

class ResponseEnvelope(BaseModel):
    data: Any = None
    timestamp: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    message: str = "success"


def envelope(data: Any = None, message: str = "success") -> ResponseEnvelope:
    return ResponseEnvelope(data=data, message=message)


def error_body(message: str) -> dict[str, Any]:
    return envelope(None, message).model_dump()


def id_payload(record_id: Optional[str]) -> dict[str, Any]:
    return {"id": record_id}
