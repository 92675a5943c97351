"""Filter compiler and predicate evaluation.

:func:`compile_filter` turns an ordered list of :class:`Criterion` into a
document-store predicate::

    {"$and": [{"status": {"$eq": "TO_DO"}}, {"title": {"$regex": "bug"}}]}

An empty list compiles to ``{}``, which matches every record.  Operator and
value types are not checked here; :func:`matches` raises :class:`StoreError`
when a comparison cannot be evaluated.
"""

from __future__ import annotations

import re
from typing import Any, Iterable

from ..domain.models import Criterion, Operation
from ..errors import StoreError, ValidationError
from .interfaces import Predicate, Record


_OPERATORS: dict[Operation, str] = {
    Operation.EQUALS: "$eq",
    Operation.GREATER_OR_EQUAL: "$gte",
    Operation.LESS_OR_EQUAL: "$lte",
    Operation.GREATER_THAN: "$gt",
    Operation.LESS_THAN: "$lt",
    Operation.MATCHES_PATTERN: "$regex",
}


def compile_filter(criteria: Iterable[Criterion]) -> Predicate:
    clauses: list[dict[str, Any]] = []
    for criterion in criteria:
        if not criterion.key or criterion.key.startswith("$"):
            raise ValidationError(f"Invalid filter key: {criterion.key!r}")
        op = _OPERATORS[criterion.operation]
        value = criterion.value
        if criterion.operation is Operation.MATCHES_PATTERN:
            value = str(value)
        clauses.append({criterion.key: {op: value}})
    if not clauses:
        return {}
    return {"$and": clauses}


def equals(**fields: Any) -> Predicate:
    """Shorthand for an all-EQUALS predicate over ``fields``."""
    return compile_filter(Criterion(key=k, value=v) for k, v in fields.items())


# ---------------------------------------------------------------------------
# Evaluation
# ---------------------------------------------------------------------------

def _compare(op: str, field: str, actual: Any, expected: Any) -> bool:
    if op == "$eq":
        return actual == expected
    if op == "$regex":
        if actual is None:
            return False
        try:
            return re.search(expected, str(actual)) is not None
        except re.error as exc:
            raise StoreError(f"Invalid pattern for field '{field}': {exc}") from exc
    if actual is None or expected is None:
        return False
    try:
        if op == "$gte":
            return actual >= expected
        if op == "$lte":
            return actual <= expected
        if op == "$gt":
            return actual > expected
        if op == "$lt":
            return actual < expected
    except TypeError as exc:
        raise StoreError(
            f"Cannot compare field '{field}' ({type(actual).__name__}) "
            f"with value of type {type(expected).__name__} using {op}"
        ) from exc
    raise StoreError(f"Unsupported predicate operator {op!r} on field '{field}'")


def matches(predicate: Predicate, record: Record) -> bool:
    """Evaluate ``predicate`` against one stored record.

    Every clause is evaluated, so a clause that cannot be compared raises even
    when an earlier clause already rejected the record.
    """
    results: list[bool] = []
    for key, condition in predicate.items():
        if key == "$and":
            if not isinstance(condition, list) or not all(isinstance(c, dict) for c in condition):
                raise StoreError("Operand of $and must be a list of predicates")
            results.extend([matches(clause, record) for clause in condition])
            continue
        if key.startswith("$"):
            raise StoreError(f"Unsupported predicate operator {key!r}")
        actual = record.get(key)
        if not isinstance(condition, dict):
            results.append(actual == condition)
            continue
        results.extend([_compare(op, key, actual, expected) for op, expected in condition.items()])
    return all(results)


def apply_patch(record: Record, patch: dict[str, Any]) -> bool:
    """Set every field of ``patch`` on ``record``; report whether anything changed."""
    changed = False
    for key, value in patch.items():
        if key not in record or record[key] != value:
            record[key] = value
            changed = True
    return changed
