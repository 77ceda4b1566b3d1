"""Parameterized SQL statement building from QueryObjects.

Statements use ``:name`` placeholders; ``Statement.render`` converts them to
the adapter's paramstyle before execution. Identifiers are quoted through the
adapter so table and column names never reach SQL unescaped.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any

from row_mapper.core.criteria import parse_key
from row_mapper.core.exceptions import InvalidArgumentError
from row_mapper.core.query import QueryObject

# Largest LIMIT accepted by both SQLite and MySQL, used when only OFFSET is set
_NO_LIMIT = 9223372036854775807

_SEQUENCE_TYPES = (list, tuple, set, frozenset)

# A quoted literal, kept verbatim, or a :name placeholder that is not a ::cast
_TOKEN = re.compile(r"'(?:[^'\\]|\\.)*'|(?<![:\w]):([a-zA-Z_]\w*)")


@lru_cache(maxsize=256)
def to_pyformat(sql: str) -> str:
    """Rewrite ``:name`` placeholders as ``%(name)s`` outside string literals."""
    return _TOKEN.sub(lambda m: m.group(0) if m.group(1) is None else f"%({m.group(1)})s", sql)


@dataclass
class Statement:
    """SQL text plus its named parameters."""

    sql: str
    params: dict[str, Any] = field(default_factory=dict)

    def render(self, paramstyle: str) -> str:
        """SQL text for an adapter paramstyle, ``named`` or ``pyformat``."""
        if paramstyle == "named":
            return self.sql
        return to_pyformat(self.sql)


class SQLBuilder:
    """Builds SELECT/INSERT/UPDATE/DELETE/COUNT statements for one dialect.

    Args:
        quote: Identifier quoting function supplied by the adapter.
    """

    def __init__(self, quote: Callable[[str], str]) -> None:
        self._quote = quote

    def select(self, table: str, query: QueryObject) -> Statement:
        fields = query.get_option("fields")
        columns = ", ".join(self._quote(f) for f in fields) if fields else "*"
        params: dict[str, Any] = {}
        sql = f"SELECT {columns} FROM {self._quote(table)}"
        sql += self._where(query.criteria, params)
        sql += self._order_by(query.get_option("sort") or query.get_option("order"))
        sql += self._limit(query.get_option("limit"), query.get_option("offset"))
        return Statement(sql, params)

    def count(self, table: str, query: QueryObject) -> Statement:
        params: dict[str, Any] = {}
        sql = f"SELECT COUNT(*) AS count FROM {self._quote(table)}"
        sql += self._where(query.criteria, params)
        return Statement(sql, params)

    def insert(self, table: str, data: dict[str, Any]) -> Statement:
        if not data:
            raise InvalidArgumentError(f"Cannot insert an empty row into '{table}'")
        params = {f"v{i}": value for i, value in enumerate(data.values())}
        columns = ", ".join(self._quote(c) for c in data)
        placeholders = ", ".join(f":{name}" for name in params)
        return Statement(
            f"INSERT INTO {self._quote(table)} ({columns}) VALUES ({placeholders})", params
        )

    def update(self, table: str, query: QueryObject, data: dict[str, Any]) -> Statement:
        if not data:
            raise InvalidArgumentError(f"Cannot update '{table}' with empty data")
        params: dict[str, Any] = {}
        assignments = []
        for i, (column, value) in enumerate(data.items()):
            params[f"v{i}"] = value
            assignments.append(f"{self._quote(column)} = :v{i}")
        sql = f"UPDATE {self._quote(table)} SET {', '.join(assignments)}"
        sql += self._where(query.criteria, params)
        return Statement(sql, params)

    def delete(self, table: str, query: QueryObject) -> Statement:
        params: dict[str, Any] = {}
        sql = f"DELETE FROM {self._quote(table)}"
        sql += self._where(query.criteria, params)
        return Statement(sql, params)

    # --- clauses ---

    def _where(self, criteria: dict[str, Any], params: dict[str, Any]) -> str:
        if not criteria:
            return ""
        clauses = [self._condition(key, value, params) for key, value in criteria.items()]
        return " WHERE " + " AND ".join(clauses)

    def _bind(self, value: Any, params: dict[str, Any]) -> str:
        name = f"p{len(params)}"
        params[name] = value
        return f":{name}"

    def _condition(self, key: str, value: Any, params: dict[str, Any]) -> str:
        column, op = parse_key(key)
        quoted = self._quote(column)

        if op in ("=", "!=", "<>") and isinstance(value, _SEQUENCE_TYPES):
            op = "IN" if op == "=" else "NOT IN"

        if op in ("IN", "NOT IN"):
            if not isinstance(value, _SEQUENCE_TYPES):
                raise InvalidArgumentError(
                    f"Invalid comparison value for '{column}', expected a list"
                )
            values = list(value)
            if not values:
                return "1 = 0" if op == "IN" else "1 = 1"
            placeholders = ", ".join(self._bind(v, params) for v in values)
            return f"{quoted} {op} ({placeholders})"

        if op in ("BETWEEN", "NOT BETWEEN"):
            if not isinstance(value, (list, tuple)) or len(value) != 2:
                raise InvalidArgumentError(
                    f"Invalid comparison value for '{column}', expected two values"
                )
            low, high = self._bind(value[0], params), self._bind(value[1], params)
            return f"{quoted} {op} {low} AND {high}"

        if value is None and op == "=":
            return f"{quoted} IS NULL"
        if value is None and op in ("!=", "<>"):
            return f"{quoted} IS NOT NULL"

        return f"{quoted} {op} {self._bind(value, params)}"

    def _order_by(self, sort: Any) -> str:
        if not sort:
            return ""
        if isinstance(sort, str):
            sort = {sort: "ASC"}
        elif not isinstance(sort, dict):
            sort = {column: "ASC" for column in sort}
        parts = []
        for column, direction in sort.items():
            direction = str(direction).upper()
            if direction not in ("ASC", "DESC"):
                raise InvalidArgumentError(f"Invalid sort direction '{direction}' for '{column}'")
            parts.append(f"{self._quote(column)} {direction}")
        return " ORDER BY " + ", ".join(parts)

    def _limit(self, limit: Any, offset: Any) -> str:
        if not limit and not offset:
            return ""
        sql = f" LIMIT {int(limit) if limit else _NO_LIMIT}"
        if offset:
            sql += f" OFFSET {int(offset)}"
        return sql
