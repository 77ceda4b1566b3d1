"""Ordered result container returned by data source reads."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator
from typing import Any, Generic, TypeVar

T = TypeVar("T")


class ResultSet(Generic[T]):
    """Ordered, indexable sequence of rows (before mapping) or entities.

    Storage order is preserved. Items may be replaced in place, which is how
    the mapper swaps raw rows for entities.
    """

    def __init__(self, rows: Iterable[T] | None = None) -> None:
        self._rows: list[T] = list(rows) if rows is not None else []

    def __len__(self) -> int:
        return len(self._rows)

    def __iter__(self) -> Iterator[T]:
        return iter(self._rows)

    def __getitem__(self, index: int) -> T:
        return self._rows[index]

    def __setitem__(self, index: int, value: T) -> None:
        self._rows[index] = value

    def __bool__(self) -> bool:
        return bool(self._rows)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ResultSet):
            return self._rows == other._rows
        if isinstance(other, list):
            return self._rows == other
        return NotImplemented

    def __repr__(self) -> str:
        return f"ResultSet({self._rows!r})"

    def is_empty(self) -> bool:
        return not self._rows

    def first(self) -> T | None:
        return self._rows[0] if self._rows else None

    def append(self, value: T) -> None:
        self._rows.append(value)

    def to_list(self) -> list[T]:
        return list(self._rows)

    def map(self, fn: Callable[[T], Any]) -> ResultSet[Any]:
        return ResultSet(fn(row) for row in self._rows)

    def filter(self, fn: Callable[[T], bool]) -> ResultSet[T]:
        return ResultSet(row for row in self._rows if fn(row))

    def index_by(self, key_fn: Callable[[T], Any]) -> dict[Any, T]:
        """Index rows by a derived key.

        Keys are assumed unique; on collision the last row wins.
        """
        return {key_fn(row): row for row in self._rows}

    def group_by(self, key_fn: Callable[[T], Any]) -> dict[Any, list[T]]:
        """Group rows by a derived key, keeping encounter order in each group."""
        groups: dict[Any, list[T]] = {}
        for row in self._rows:
            groups.setdefault(key_fn(row), []).append(row)
        return groups
