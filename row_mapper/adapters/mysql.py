"""MySQL adapter using mysql-connector-python."""

from __future__ import annotations

from typing import Any

from row_mapper.core.connection import ConnectionConfig
from row_mapper.core.exceptions import ConnectionError, PoolError  # noqa: A004


class MysqlAdapter:
    """MySQL adapter; the pool is a plain list of connections."""

    @property
    def paramstyle(self) -> str:
        return "pyformat"

    def quote_identifier(self, name: str) -> str:
        return "`" + name.replace("`", "``") + "`"

    def create_pool(self, config: ConnectionConfig) -> list[Any]:
        import mysql.connector

        pool: list[Any] = []
        try:
            for _ in range(config.pool_size):
                conn = mysql.connector.connect(
                    host=config.host,
                    port=config.port,
                    user=config.user,
                    password=config.password,
                    database=config.database,
                    connection_timeout=config.pool_timeout,
                    **config.extra,
                )
                pool.append(conn)
        except mysql.connector.Error as e:
            raise ConnectionError(f"Cannot connect to MySQL: {e}") from e
        return pool

    def acquire_connection(self, pool: list[Any]) -> Any:
        if not pool:
            raise PoolError("No connections available in pool")
        return pool.pop()

    def release_connection(self, connection: Any, pool: list[Any]) -> None:
        pool.append(connection)

    def close_pool(self, pool: list[Any]) -> None:
        for conn in pool:
            conn.close()
        pool.clear()

    def execute(
        self,
        connection: Any,
        sql: str,
        params: dict[str, Any] | None = None,
    ) -> Any:
        """Execute SQL and return a cursor with dictionary results."""
        cursor = connection.cursor(dictionary=True, buffered=True)
        cursor.execute(sql, params or {})
        return cursor

    def last_insert_id(self, cursor: Any) -> Any:
        return cursor.lastrowid or None
