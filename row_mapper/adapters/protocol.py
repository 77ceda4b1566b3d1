"""Database adapter protocol.

Every adapter module MUST implement this protocol so the SQL data source can
stay driver-agnostic.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from row_mapper.core.connection import ConnectionConfig


@runtime_checkable
class Adapter(Protocol):
    """Synchronous database adapter protocol."""

    @property
    def paramstyle(self) -> str:
        """Parameter binding style: 'named' (:name) or 'pyformat' (%(name)s)."""
        ...

    def quote_identifier(self, name: str) -> str:
        """Quote a table or column name for this dialect."""
        ...

    def create_pool(self, config: ConnectionConfig) -> Any:
        """Create a connection pool."""
        ...

    def acquire_connection(self, pool: Any) -> Any:
        """Acquire a connection from the pool."""
        ...

    def release_connection(self, connection: Any, pool: Any) -> None:
        """Release a connection back to the pool."""
        ...

    def close_pool(self, pool: Any) -> None:
        """Close the pool and release all connections."""
        ...

    def execute(
        self,
        connection: Any,
        sql: str,
        params: dict[str, Any] | None = None,
    ) -> Any:
        """Execute SQL and return a cursor-like object."""
        ...

    def last_insert_id(self, cursor: Any) -> Any:
        """Identifier generated by the last INSERT on *cursor*, or None."""
        ...
