"""SQLite adapter using the stdlib sqlite3 module."""

from __future__ import annotations

import sqlite3
from typing import Any

from row_mapper.core.connection import ConnectionConfig
from row_mapper.core.exceptions import PoolError


class SqliteAdapter:
    """SQLite adapter; the pool is a plain list of connections."""

    @property
    def paramstyle(self) -> str:
        return "named"

    def quote_identifier(self, name: str) -> str:
        return '"' + name.replace('"', '""') + '"'

    def create_pool(self, config: ConnectionConfig) -> list[sqlite3.Connection]:
        pool: list[sqlite3.Connection] = []
        for _ in range(config.pool_size):
            conn = sqlite3.connect(config.database, timeout=config.pool_timeout)
            conn.row_factory = sqlite3.Row
            conn.execute("PRAGMA journal_mode=WAL")
            pool.append(conn)
        return pool

    def acquire_connection(self, pool: list[sqlite3.Connection]) -> sqlite3.Connection:
        if not pool:
            raise PoolError("No connections available in pool")
        return pool.pop()

    def release_connection(
        self, connection: sqlite3.Connection, pool: list[sqlite3.Connection]
    ) -> None:
        pool.append(connection)

    def close_pool(self, pool: list[sqlite3.Connection]) -> None:
        for conn in pool:
            conn.close()
        pool.clear()

    def execute(
        self,
        connection: sqlite3.Connection,
        sql: str,
        params: dict[str, Any] | None = None,
    ) -> sqlite3.Cursor:
        return connection.execute(sql, params or {})

    def last_insert_id(self, cursor: sqlite3.Cursor) -> int | None:
        return cursor.lastrowid or None
