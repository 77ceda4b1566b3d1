"""In-memory data source.

Tables are ordered maps of internal row id to dict rows. Useful for tests
and for prototyping mappers before a database exists.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from row_mapper.core.criteria import Criteria
from row_mapper.core.exceptions import InvalidArgumentError
from row_mapper.core.query import QueryObject
from row_mapper.core.result import ResultSet

logger = logging.getLogger(__name__)


def _sort_spec(option: Any) -> list[tuple[str, bool]]:
    """Normalize a sort option into ``[(column, descending), ...]``."""
    if not option:
        return []
    if isinstance(option, str):
        return [(option, False)]
    if isinstance(option, dict):
        return [(column, str(direction).upper() == "DESC") for column, direction in option.items()]
    return [(column, False) for column in option]


class MemoryDataSource:
    """Data source backed by Python dicts.

    Args:
        data: Initial rows per table, e.g. ``{"articles": [{"id": 1, ...}]}``.
        auto_increment: Starting value for generated identifiers.
        id_field: Column that receives a generated identifier on create when
            the row does not carry one.
    """

    def __init__(
        self,
        data: dict[str, list[dict[str, Any]]] | None = None,
        auto_increment: int = 0,
        id_field: str = "id",
    ) -> None:
        self._tables: dict[str, dict[int, dict[str, Any]]] = {}
        self._auto_increment = auto_increment
        self._id_field = id_field
        self._last_id: Any = None
        for table, rows in (data or {}).items():
            self._tables[table] = {}
            for row in rows:
                self._tables[table][self._next_key(table)] = dict(row)

    def _next_key(self, table: str) -> int:
        self._auto_increment += 1
        while self._auto_increment in self._tables.get(table, {}):
            self._auto_increment += 1
        return self._auto_increment

    def _matching(self, table: str, query: QueryObject) -> list[tuple[int, dict[str, Any]]]:
        criteria = Criteria(query.criteria)
        rows = [
            (key, row) for key, row in self._tables.get(table, {}).items() if criteria.match(row)
        ]

        sort = _sort_spec(query.get_option("sort") or query.get_option("order"))
        for column, descending in reversed(sort):
            if rows and all(column not in row for _, row in rows):
                raise InvalidArgumentError(
                    f"The key '{column}' does not exist in any row of '{table}'"
                )
            rows.sort(
                key=lambda item: (item[1].get(column) is None, item[1].get(column)),
                reverse=descending,
            )

        offset = int(query.get_option("offset") or 0)
        limit = query.get_option("limit")
        end = offset + int(limit) if limit else None
        return rows[offset:end]

    def create(self, table: str, data: dict[str, Any]) -> bool:
        row = dict(data)
        key = self._next_key(table)
        if row.get(self._id_field) is None:
            row[self._id_field] = key
        self._tables.setdefault(table, {})[key] = row
        self._last_id = row[self._id_field]
        logger.debug("Created row in %s with %s=%r", table, self._id_field, self._last_id)
        return True

    def read(self, table: str, query: QueryObject) -> ResultSet[dict[str, Any]]:
        fields = query.get_option("fields")
        rows = []
        for _, row in self._matching(table, query):
            if fields:
                rows.append({field: row[field] for field in fields if field in row})
            else:
                rows.append(dict(row))
        return ResultSet(rows)

    def update(self, table: str, query: QueryObject, data: dict[str, Any]) -> int:
        matched = self._matching(table, query)
        for key, _ in matched:
            self._tables[table][key].update(data)
        logger.debug("Updated %d row(s) in %s", len(matched), table)
        return len(matched)

    def delete(self, table: str, query: QueryObject) -> int:
        matched = self._matching(table, query)
        for key, _ in matched:
            del self._tables[table][key]
        logger.debug("Deleted %d row(s) from %s", len(matched), table)
        return len(matched)

    def count(self, table: str, query: QueryObject) -> int:
        criteria = Criteria(query.criteria)
        return sum(1 for row in self._tables.get(table, {}).values() if criteria.match(row))

    def last_generated_id(self) -> Any:
        return self._last_id

    def rows(self, table: str) -> list[dict[str, Any]]:
        """Snapshot of every row in *table*, in insertion order."""
        return [dict(row) for row in self._tables.get(table, {}).values()]

    @contextmanager
    def transaction(self) -> Iterator[MemoryDataSource]:
        """Restore every table to its prior state if the block raises."""
        snapshot = copy.deepcopy(self._tables)
        auto_increment, last_id = self._auto_increment, self._last_id
        try:
            yield self
        except BaseException:
            logger.warning("Rolling back in-memory transaction")
            self._tables = snapshot
            self._auto_increment, self._last_id = auto_increment, last_id
            raise
