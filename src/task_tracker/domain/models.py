"""Aggregates, filter criteria and query result shapes.

Tasks and users are stored as plain mappings; the dataclasses here are the
typed view the workflows operate on.  ``to_dict`` produces the stored record,
``from_dict`` rebuilds the dataclass from one.
"""

from __future__ import annotations

import uuid
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Generic, Optional, TypeVar

from ..errors import ValidationError


T = TypeVar("T")


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def new_id() -> str:
    """Store-assigned identifier: 24 lowercase hex characters."""
    return uuid.uuid4().hex[:24]


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class TaskStatus(str, Enum):
    TO_DO = "TO_DO"
    IN_PROGRESS = "IN_PROGRESS"
    DONE = "DONE"


class Operation(str, Enum):
    """Comparison operator of a single filter criterion."""

    EQUALS = "EQUALS"
    GREATER_OR_EQUAL = "GREATER_OR_EQUAL"
    LESS_OR_EQUAL = "LESS_OR_EQUAL"
    GREATER_THAN = "GREATER_THAN"
    LESS_THAN = "LESS_THAN"
    MATCHES_PATTERN = "MATCHES_PATTERN"

    @classmethod
    def parse(cls, raw: "str | Operation") -> "Operation":
        if isinstance(raw, Operation):
            return raw
        name = str(raw).strip().upper()
        name = _OPERATION_ALIASES.get(name, name)
        try:
            return cls(name)
        except ValueError:
            raise ValidationError(f"Unknown filter operation: {raw!r}") from None


_OPERATION_ALIASES = {
    "IS": "EQUALS",
    "EQ": "EQUALS",
    "GTE": "GREATER_OR_EQUAL",
    "LTE": "LESS_OR_EQUAL",
    "GT": "GREATER_THAN",
    "LT": "LESS_THAN",
    "REGEX": "MATCHES_PATTERN",
}


# ---------------------------------------------------------------------------
# Aggregates
# ---------------------------------------------------------------------------

@dataclass
class Task:
    id: Optional[str] = None
    title: str = ""
    description: str = ""
    creation_date: str = field(default_factory=now_iso)
    status: TaskStatus = TaskStatus.TO_DO
    # Weak reference to a user id; nothing enforces that the user exists.
    user_id: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["status"] = self.status.value
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Task":
        return cls(
            id=data.get("id"),
            title=str(data.get("title") or ""),
            description=str(data.get("description") or ""),
            creation_date=str(data.get("creation_date") or now_iso()),
            status=TaskStatus(data.get("status") or TaskStatus.TO_DO.value),
            user_id=data.get("user_id"),
        )


@dataclass
class User:
    id: Optional[str] = None
    name: str = ""
    surname: str = ""
    username: str = ""

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "User":
        return cls(**{k: data.get(k) for k in cls.__dataclass_fields__})


# ---------------------------------------------------------------------------
# Filtering and query results
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Criterion:
    """One filter condition; a list of criteria is combined with AND."""

    key: str
    value: Any
    operation: Operation = Operation.EQUALS


@dataclass
class FacetResult:
    """Raw output of one faceted aggregate: a page of records plus count info.

    ``count_info`` is empty when nothing matched, otherwise it holds a single
    ``{"total_count": n}`` row.
    """

    elements: list[dict[str, Any]] = field(default_factory=list)
    count_info: list[dict[str, Any]] = field(default_factory=list)

    @property
    def total_count(self) -> int:
        if not self.count_info:
            return 0
        return int(self.count_info[0].get("total_count") or 0)


@dataclass
class Page(Generic[T]):
    items: list[T] = field(default_factory=list)
    total: int = 0
    page: int = 0
    size: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "list": [item.to_dict() if hasattr(item, "to_dict") else item for item in self.items],
            "total": self.total,
            "page": self.page,
            "size": self.size,
        }


@dataclass
class UpdateResult:
    matched: int = 0
    modified: int = 0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
