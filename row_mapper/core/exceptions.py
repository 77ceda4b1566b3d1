"""RowMapper exception hierarchy.

Configuration errors are programmer mistakes and are always raised, never
swallowed. Ordinary outcomes (not found, zero rows affected, cancelled by a
hook or event) are reported through return values instead.
"""

from __future__ import annotations


class RowMapperError(Exception):
    """Base exception for all RowMapper errors."""


# --- Configuration ---


class ConfigurationError(RowMapperError):
    """Raised for malformed mapper or association configuration."""


class AssociationConfigError(ConfigurationError):
    """Raised when an association definition fails validation."""

    def __init__(self, mapper_name: str, property_name: str, detail: str) -> None:
        self.mapper_name = mapper_name
        self.property_name = property_name
        super().__init__(f"{mapper_name}: association '{property_name}' {detail}")


class PrimaryKeyError(ConfigurationError):
    """Raised when a primary key component has no value."""

    def __init__(self, table: str, key: str) -> None:
        self.table = table
        self.key = key
        super().__init__(f"Primary key '{key}' has no value for table '{table}'")


# --- Lookup ---


class NotFoundError(RowMapperError):
    """Base for lookups that require a result."""


class EntityNotFoundError(NotFoundError):
    """Raised by get/get_by when no row matches."""

    def __init__(self, table: str) -> None:
        self.table = table
        super().__init__(f"Entity not found in '{table}'")


class InvalidArgumentError(RowMapperError, ValueError):
    """Raised when an argument is structurally invalid."""


# --- Data source ---


class DataSourceError(RowMapperError):
    """Base for storage errors."""


class QueryExecutionError(DataSourceError):
    """Raised when a statement fails to execute."""

    def __init__(self, table: str, detail: str) -> None:
        self.table = table
        super().__init__(f"Query on '{table}' failed: {detail}")


class AdapterError(DataSourceError):
    """Base for adapter errors."""


class ConnectionError(AdapterError):  # noqa: A001
    """Raised on connection failures."""


class PoolError(AdapterError):
    """Raised on connection pool failures."""


# --- Transaction ---


class TransactionError(DataSourceError):
    """Base for transaction errors."""


class TransactionStateError(TransactionError):
    """Raised on invalid transaction state transitions."""

    def __init__(self, current_state: str, attempted_action: str) -> None:
        self.current_state = current_state
        self.attempted_action = attempted_action
        super().__init__(f"Cannot {attempted_action} transaction in state '{current_state}'")
