"""Where predicate helpers.

A Where maps field names to either a literal (equality) or an operator
object, with optional ``AND`` / ``OR`` lists of nested Where clauses:

    {"published": True, "views": {"gte": 10}, "OR": [{...}, {...}]}

Text operators (contains, startsWith, endsWith) are case-insensitive.
"""

from collections.abc import Mapping
from datetime import date, datetime
from typing import Any

from tinycms.access.types import Where

WHERE_OPERATORS = frozenset({
    "equals",
    "not",
    "in",
    "notIn",
    "lt",
    "lte",
    "gt",
    "gte",
    "contains",
    "startsWith",
    "endsWith",
})

LOGICAL_KEYS = ("AND", "OR")


def merge_where(caller: Where | None, residual: Where | None) -> Where | None:
    """AND a residual access filter into a caller-supplied filter."""
    if residual is None:
        return caller
    if not caller:
        return dict(residual)
    return {"AND": [caller, dict(residual)]}


def validate_where(where: Any, path: str = "where") -> None:
    """Check the shape of a Where clause.

    Raises:
        ValueError: On a non-mapping clause, unknown operator, or malformed
            AND/OR list
    """
    if not isinstance(where, Mapping):
        raise ValueError(f"{path}: expected an object, got {type(where).__name__}")

    for key, value in where.items():
        if key in LOGICAL_KEYS:
            if not isinstance(value, list):
                raise ValueError(f"{path}.{key}: expected a list of clauses")
            for i, clause in enumerate(value):
                validate_where(clause, f"{path}.{key}[{i}]")
        elif isinstance(value, Mapping):
            unknown = set(value) - WHERE_OPERATORS
            if unknown:
                raise ValueError(
                    f"{path}.{key}: unknown operator(s) {', '.join(sorted(unknown))}"
                )
            for op in ("in", "notIn"):
                if op in value and not isinstance(value[op], (list, tuple)):
                    raise ValueError(f"{path}.{key}.{op}: expected a list")


def matches(where: Where | None, doc: Mapping[str, Any]) -> bool:
    """Evaluate a Where clause against a document in memory."""
    if not where:
        return True

    for key, condition in where.items():
        if key == "AND":
            if not all(matches(clause, doc) for clause in condition):
                return False
        elif key == "OR":
            if not any(matches(clause, doc) for clause in condition):
                return False
        elif isinstance(condition, Mapping):
            value = doc.get(key)
            for op, operand in condition.items():
                if not _apply_operator(op, value, operand):
                    return False
        elif not _equals(doc.get(key), condition):
            return False

    return True


def _apply_operator(op: str, value: Any, operand: Any) -> bool:
    if op == "equals":
        return _equals(value, operand)
    if op == "not":
        return not _equals(value, operand)
    if op == "in":
        if isinstance(value, list):
            return any(_member(v, operand) for v in value)
        return _member(value, operand)
    if op == "notIn":
        if isinstance(value, list):
            return not any(_member(v, operand) for v in value)
        return not _member(value, operand)
    if op in ("lt", "lte", "gt", "gte"):
        return _compare(op, value, operand)
    if op == "contains":
        if isinstance(value, list):
            return any(_equals(v, operand) for v in value)
        return _text(value, operand, lambda v, o: o in v)
    if op == "startsWith":
        return _text(value, operand, lambda v, o: v.startswith(o))
    if op == "endsWith":
        return _text(value, operand, lambda v, o: v.endswith(o))
    raise ValueError(f"Unknown where operator '{op}'")


def _normalize(value: Any) -> Any:
    """Bring dates and ISO strings onto a comparable footing."""
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return value


def _equals(value: Any, operand: Any) -> bool:
    return _normalize(value) == _normalize(operand)


def _member(value: Any, operand: Any) -> bool:
    return any(_equals(value, candidate) for candidate in operand)


def _compare(op: str, value: Any, operand: Any) -> bool:
    if value is None or operand is None:
        return False
    left, right = _normalize(value), _normalize(operand)
    try:
        if op == "lt":
            return left < right
        if op == "lte":
            return left <= right
        if op == "gt":
            return left > right
        return left >= right
    except TypeError:
        return False


def _text(value: Any, operand: Any, test) -> bool:
    if not isinstance(value, str) or operand is None:
        return False
    return test(value.lower(), str(operand).lower())
