"""Data source protocol.

The mapper talks to storage only through this interface. Implementations own
SQL generation, connections and transactions.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from row_mapper.core.query import QueryObject
from row_mapper.core.result import ResultSet


@runtime_checkable
class DataSource(Protocol):
    """CRUD against named tables driven by a QueryObject."""

    def create(self, table: str, data: dict[str, Any]) -> bool:
        """Insert one row. Returns True on success."""
        ...

    def read(self, table: str, query: QueryObject) -> ResultSet[dict[str, Any]]:
        """Return the rows matching *query* in storage order."""
        ...

    def update(self, table: str, query: QueryObject, data: dict[str, Any]) -> int:
        """Update matching rows and return the affected-row count."""
        ...

    def delete(self, table: str, query: QueryObject) -> int:
        """Delete matching rows and return the affected-row count."""
        ...

    def count(self, table: str, query: QueryObject) -> int:
        """Count matching rows."""
        ...

    def last_generated_id(self) -> Any:
        """Identifier generated by the last successful create, or None."""
        ...
