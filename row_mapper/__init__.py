"""RowMapper - data mapper with lifecycle hooks and batched association loading."""

from __future__ import annotations

from row_mapper.core.connection import ConnectionConfig, ConnectionManager
from row_mapper.core.enums import AssociationKind, DatabaseBackend
from row_mapper.core.events import (
    AfterCreateEvent,
    AfterDeleteEvent,
    AfterFindEvent,
    AfterSaveEvent,
    AfterUpdateEvent,
    BeforeCreateEvent,
    BeforeDeleteEvent,
    BeforeFindEvent,
    BeforeSaveEvent,
    BeforeUpdateEvent,
    EventDispatcher,
    InitializeEvent,
    MapperEvent,
    PrioritizedEventDispatcher,
    StoppableMapperEvent,
)
from row_mapper.core.exceptions import (
    AdapterError,
    AssociationConfigError,
    ConfigurationError,
    ConnectionError,  # noqa: A004
    DataSourceError,
    EntityNotFoundError,
    InvalidArgumentError,
    NotFoundError,
    PoolError,
    PrimaryKeyError,
    QueryExecutionError,
    RowMapperError,
    TransactionError,
    TransactionStateError,
)
from row_mapper.core.query import QueryObject
from row_mapper.core.result import ResultSet
from row_mapper.core.transaction import TransactionManager
from row_mapper.datasource import DatabaseDataSource, DataSource, MemoryDataSource
from row_mapper.mapping import (
    Association,
    AssociationResolver,
    BelongsTo,
    BelongsToMany,
    DataMapper,
    Entity,
    HasMany,
    HasOne,
    MapperRegistry,
)

__all__ = [
    # Query
    "QueryObject",
    "ResultSet",
    # Mapping
    "Entity",
    "DataMapper",
    "MapperRegistry",
    "AssociationResolver",
    # Associations
    "Association",
    "BelongsTo",
    "HasOne",
    "HasMany",
    "BelongsToMany",
    # Data sources
    "DataSource",
    "MemoryDataSource",
    "DatabaseDataSource",
    # Connection
    "ConnectionConfig",
    "ConnectionManager",
    "TransactionManager",
    # Events
    "EventDispatcher",
    "PrioritizedEventDispatcher",
    "MapperEvent",
    "StoppableMapperEvent",
    "InitializeEvent",
    "BeforeFindEvent",
    "AfterFindEvent",
    "BeforeSaveEvent",
    "AfterSaveEvent",
    "BeforeCreateEvent",
    "AfterCreateEvent",
    "BeforeUpdateEvent",
    "AfterUpdateEvent",
    "BeforeDeleteEvent",
    "AfterDeleteEvent",
    # Enums
    "AssociationKind",
    "DatabaseBackend",
    # Exceptions
    "RowMapperError",
    "ConfigurationError",
    "AssociationConfigError",
    "PrimaryKeyError",
    "NotFoundError",
    "EntityNotFoundError",
    "InvalidArgumentError",
    "DataSourceError",
    "QueryExecutionError",
    "AdapterError",
    "ConnectionError",
    "PoolError",
    "TransactionError",
    "TransactionStateError",
]
