"""SQL data source.

Builds parameterized statements from QueryObjects, executes them through
the configured adapter and returns rows as dicts. Outside a transaction each
write commits immediately; inside ``transaction()`` every statement runs on
one pinned connection.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, TypeVar

from row_mapper.core.connection import ConnectionConfig, ConnectionManager
from row_mapper.core.exceptions import QueryExecutionError
from row_mapper.core.query import QueryObject
from row_mapper.core.result import ResultSet
from row_mapper.core.transaction import TransactionManager
from row_mapper.datasource.sql import SQLBuilder, Statement

R = TypeVar("R")

logger = logging.getLogger(__name__)


def _rows_to_dicts(cursor: Any) -> list[dict[str, Any]]:
    """Convert cursor results to list of dicts.

    Handles both tuple-like rows and dict-like rows from different adapters.
    """
    if cursor.description is None:
        return []
    columns = [desc[0] for desc in cursor.description]
    rows = cursor.fetchall()
    if not rows:
        return []

    # Already dicts (e.g. MySQL dictionary cursor)
    if isinstance(rows[0], dict):
        return [dict(row) for row in rows]

    return [dict(zip(columns, row, strict=True)) for row in rows]


def _first_value(cursor: Any) -> Any:
    row = cursor.fetchone()
    if row is None:
        return None
    if isinstance(row, dict):
        return next(iter(row.values()))
    return row[0]


class DatabaseDataSource:
    """Data source executing SQL through a ConnectionManager."""

    def __init__(self, connection_manager: ConnectionManager) -> None:
        self._connection_manager = connection_manager
        self._adapter = connection_manager.adapter
        self._builder = SQLBuilder(self._adapter.quote_identifier)
        self._transaction: TransactionManager | None = None
        self._last_id: Any = None

    @classmethod
    def from_config(cls, config: ConnectionConfig) -> DatabaseDataSource:
        """Create a DatabaseDataSource from a ConnectionConfig."""
        return cls(ConnectionManager(config))

    @property
    def connection_manager(self) -> ConnectionManager:
        return self._connection_manager

    def _bind(self, transaction: TransactionManager | None) -> None:
        self._transaction = transaction

    def transaction(self) -> TransactionManager:
        """Create a transaction context that routes every statement through it."""
        return TransactionManager(self._connection_manager, bind=self._bind)

    def _execute(
        self,
        table: str,
        statement: Statement,
        handle: Callable[[Any], R],
        write: bool = False,
    ) -> R:
        sql = statement.render(self._adapter.paramstyle)
        logger.debug("%s %s", sql, statement.params)

        if self._transaction is not None:
            self._transaction.check_active("execute")
            try:
                cursor = self._adapter.execute(self._transaction.connection, sql, statement.params)
                return handle(cursor)
            except Exception as e:
                raise QueryExecutionError(table, str(e)) from e

        with self._connection_manager.get_connection() as conn:
            try:
                cursor = self._adapter.execute(conn, sql, statement.params)
                result = handle(cursor)
                if write:
                    conn.commit()
                return result
            except Exception as e:
                if write:
                    conn.rollback()
                raise QueryExecutionError(table, str(e)) from e

    def create(self, table: str, data: dict[str, Any]) -> bool:
        statement = self._builder.insert(table, data)

        def handle(cursor: Any) -> bool:
            if cursor.rowcount != 1:
                return False
            self._last_id = self._adapter.last_insert_id(cursor)
            return True

        return self._execute(table, statement, handle, write=True)

    def read(self, table: str, query: QueryObject) -> ResultSet[dict[str, Any]]:
        statement = self._builder.select(table, query)
        return ResultSet(self._execute(table, statement, _rows_to_dicts))

    def update(self, table: str, query: QueryObject, data: dict[str, Any]) -> int:
        statement = self._builder.update(table, query, data)
        return self._execute(table, statement, lambda cursor: int(cursor.rowcount), write=True)

    def delete(self, table: str, query: QueryObject) -> int:
        statement = self._builder.delete(table, query)
        return self._execute(table, statement, lambda cursor: int(cursor.rowcount), write=True)

    def count(self, table: str, query: QueryObject) -> int:
        statement = self._builder.count(table, query)
        return int(self._execute(table, statement, _first_value) or 0)

    def last_generated_id(self) -> Any:
        return self._last_id

    def execute(self, sql: str, params: dict[str, Any] | None = None) -> int:
        """Run a raw statement (DDL, fixtures) and return the affected-row count."""
        statement = Statement(sql, params or {})
        return self._execute("<raw>", statement, lambda cursor: int(cursor.rowcount), write=True)
