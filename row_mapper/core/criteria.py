"""In-memory criteria matching.

Used by the memory data source to evaluate ``QueryObject`` criteria against
dict rows. Keys are either a bare field name (equality, membership for list
values) or ``"field <OP>"``.
"""

from __future__ import annotations

import operator
import re
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from row_mapper.core.exceptions import InvalidArgumentError

_OPERATORS = (
    "=",
    "!=",
    "<>",
    "<",
    ">",
    "<=",
    ">=",
    "IN",
    "NOT IN",
    "BETWEEN",
    "NOT BETWEEN",
    "LIKE",
    "NOT LIKE",
)


def _like_pattern(value: Any) -> re.Pattern[str]:
    """Translate a SQL LIKE pattern (``%``, ``_``) into an anchored regex."""
    parts = []
    for char in str(value):
        if char == "%":
            parts.append(".*")
        elif char == "_":
            parts.append(".")
        else:
            parts.append(re.escape(char))
    return re.compile("^" + "".join(parts) + "$", re.IGNORECASE | re.DOTALL)


def _equals(actual: Any, expected: Any) -> bool:
    if isinstance(expected, (list, tuple, set, frozenset)):
        return actual in expected
    return bool(actual == expected)


def _compare(op: Callable[[Any, Any], bool]) -> Callable[[Any, Any], bool]:
    def check(actual: Any, expected: Any) -> bool:
        if actual is None:
            return False
        return op(actual, expected)

    return check


def _between(actual: Any, expected: Any) -> bool:
    low, high = expected
    return actual is not None and low <= actual <= high


def _like(actual: Any, expected: Any) -> bool:
    return actual is not None and expected.match(str(actual)) is not None


_CHECKS: dict[str, Callable[[Any, Any], bool]] = {
    "=": _equals,
    "!=": lambda a, e: not _equals(a, e),
    "<>": lambda a, e: not _equals(a, e),
    "<": _compare(operator.lt),
    ">": _compare(operator.gt),
    "<=": _compare(operator.le),
    ">=": _compare(operator.ge),
    "IN": _equals,
    "NOT IN": lambda a, e: not _equals(a, e),
    "BETWEEN": _between,
    "NOT BETWEEN": lambda a, e: not _between(a, e),
    "LIKE": _like,
    "NOT LIKE": lambda a, e: not _like(a, e),
}


@dataclass(frozen=True)
class Condition:
    """A single parsed comparison."""

    field: str
    operator: str
    expected: Any


def parse_key(key: str) -> tuple[str, str]:
    """Split a criteria key into ``(field, operator)``.

    Raises:
        InvalidArgumentError: If the operator is not supported.
    """
    if " " not in key:
        return key, "="
    field, op = key.split(" ", 1)
    op = op.strip().upper()
    if op not in _OPERATORS:
        raise InvalidArgumentError(f"Invalid expression '{op}' for field '{field}'")
    return field, op


class Criteria:
    """Parsed criteria that can be matched against dict rows."""

    def __init__(self, criteria: dict[str, Any]) -> None:
        self._conditions: list[Condition] = []
        for key, value in criteria.items():
            if not isinstance(key, str) or not key:
                raise InvalidArgumentError(f"Invalid criteria key: {key!r}")
            field, op = parse_key(key)
            self._conditions.append(Condition(field, op, self._validate(field, op, value)))

    @staticmethod
    def _validate(field: str, op: str, value: Any) -> Any:
        if op in ("BETWEEN", "NOT BETWEEN"):
            if not isinstance(value, (list, tuple)) or len(value) != 2:
                raise InvalidArgumentError(
                    f"Invalid comparison value for '{field}', expected two values"
                )
            return tuple(value)
        if op in ("IN", "NOT IN"):
            if not isinstance(value, (list, tuple, set, frozenset)):
                raise InvalidArgumentError(
                    f"Invalid comparison value for '{field}', expected a list"
                )
            return value
        if op in ("LIKE", "NOT LIKE"):
            if isinstance(value, (list, tuple, dict, set)):
                raise InvalidArgumentError(
                    f"Invalid comparison value for '{field}', expected a scalar"
                )
            return _like_pattern(value)
        if op not in ("=", "!=", "<>") and isinstance(value, (list, tuple, set)):
            raise InvalidArgumentError(
                f"Invalid comparison value for '{field}', did not expect a list"
            )
        return value

    @property
    def conditions(self) -> list[Condition]:
        return list(self._conditions)

    def match(self, row: dict[str, Any]) -> bool:
        """Return True if every condition holds for *row*.

        A field the row does not carry compares as None, like a NULL column.
        """
        for condition in self._conditions:
            if not _CHECKS[condition.operator](row.get(condition.field), condition.expected):
                return False
        return True
