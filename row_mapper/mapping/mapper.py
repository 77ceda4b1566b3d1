"""Data mapper.

A DataMapper binds one entity type to one table. Every per-entity operation
runs inside the same envelope:

    Before* event -> before_* hook -> entity.before_*() -> storage
    -> entity.after_*() -> after_* hook -> After* event

A stopped Before* event or a ``before_*`` hook returning ``False`` cancels
the operation before storage is touched; the operation then returns
``False`` (or 0, or an empty ResultSet) and no after-step runs.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any, ClassVar

from row_mapper.core.enums import AssociationKind
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
    StoppableMapperEvent,
)
from row_mapper.core.exceptions import (
    AssociationConfigError,
    ConfigurationError,
    EntityNotFoundError,
    InvalidArgumentError,
    PrimaryKeyError,
)
from row_mapper.core.hooks import HookMixin
from row_mapper.core.query import QueryObject
from row_mapper.core.result import ResultSet
from row_mapper.datasource.protocol import DataSource
from row_mapper.mapping.associations import Association, compile_associations
from row_mapper.mapping.entity import Entity
from row_mapper.mapping.registry import MapperRegistry
from row_mapper.mapping.resolver import AssociationResolver

logger = logging.getLogger(__name__)


class DataMapper(HookMixin):
    """Maps one table to entities.

    Subclasses set ``table`` and optionally ``primary_key`` (a column name or
    a tuple of names), ``fields`` (a whitelist of writable columns, also used
    as the default read projection), ``entity_class`` and association maps.

    Args:
        data_source: Storage collaborator.
        registry: Registry used to reach related mappers. One is created
            (and this mapper added to it) when omitted.
        event_dispatcher: Receives lifecycle events. Defaults to the
            registry's dispatcher.

    Raises:
        ConfigurationError: If ``table`` is unset or an association is
            malformed.
    """

    table: ClassVar[str] = ""
    primary_key: ClassVar[str | tuple[str, ...]] = "id"
    fields: ClassVar[tuple[str, ...] | list[str]] = ()
    entity_class: ClassVar[type[Entity]] = Entity

    belongs_to: ClassVar[dict[str, Any]] = {}
    has_one: ClassVar[dict[str, Any]] = {}
    has_many: ClassVar[dict[str, Any]] = {}
    belongs_to_many: ClassVar[dict[str, Any]] = {}

    resolver: ClassVar[AssociationResolver] = AssociationResolver()

    def __init__(
        self,
        data_source: DataSource,
        registry: MapperRegistry | None = None,
        event_dispatcher: EventDispatcher | None = None,
    ) -> None:
        if not self.table:
            raise ConfigurationError(f"{type(self).__name__} does not define a table")

        if registry is None:
            registry = MapperRegistry(data_source, event_dispatcher)
        if event_dispatcher is None:
            event_dispatcher = registry.event_dispatcher

        self._data_source = data_source
        self._registry = registry
        self._event_dispatcher = event_dispatcher
        if not registry.has(type(self)):
            registry.add(self)

        self.initialize()
        self._associations = self._check_associations()
        self.dispatch_event(InitializeEvent(self))

    def initialize(self) -> None:
        """Subclass hook called during construction, e.g. to register hooks."""

    # --- accessors ---

    @property
    def data_source(self) -> DataSource:
        return self._data_source

    @property
    def registry(self) -> MapperRegistry:
        return self._registry

    @property
    def event_dispatcher(self) -> EventDispatcher | None:
        return self._event_dispatcher

    @property
    def associations(self) -> dict[str, Association]:
        return dict(self._associations)

    def get_primary_key(self) -> tuple[str, ...]:
        if isinstance(self.primary_key, str):
            return (self.primary_key,)
        return tuple(self.primary_key)

    def single_primary_key(self) -> str | None:
        """The primary key column, or None when the key is composite."""
        keys = self.get_primary_key()
        return keys[0] if len(keys) == 1 else None

    def related_mapper(self, association: Association) -> DataMapper:
        """Mapper on the other side of *association*, built on first use."""
        return self._registry.get(association.class_name)

    def _check_associations(self) -> dict[str, Association]:
        name = type(self).__name__
        compiled = compile_associations(
            name,
            {
                AssociationKind.BELONGS_TO: self.belongs_to,
                AssociationKind.HAS_ONE: self.has_one,
                AssociationKind.HAS_MANY: self.has_many,
                AssociationKind.BELONGS_TO_MANY: self.belongs_to_many,
            },
        )
        for property_name, association in compiled.items():
            target = association.class_name
            if isinstance(target, str):
                if not self._registry.has(target):
                    raise AssociationConfigError(
                        name, property_name, f"refers to unknown mapper '{target}'"
                    )
            elif not issubclass(target, DataMapper):
                raise AssociationConfigError(
                    name, property_name, f"class_name {target.__name__} is not a DataMapper"
                )
            if association.kind != AssociationKind.BELONGS_TO and self.single_primary_key() is None:
                raise AssociationConfigError(
                    name, property_name, f"({association.kind.value}) requires a single primary key"
                )
        return compiled

    # --- events and hooks ---

    def dispatch_event(self, event: Any) -> Any:
        """Dispatch *event* if a dispatcher is configured."""
        if self._event_dispatcher is None:
            return event
        return self._event_dispatcher.dispatch(event)

    def _before(self, event: StoppableMapperEvent, hook: str) -> bool:
        event = self.dispatch_event(event)
        if event.is_propagation_stopped():
            logger.debug("%s cancelled by %s", self.table, type(event).__name__)
            return False
        if not self.trigger_hook(hook, event.subject):
            logger.debug("%s cancelled by %s hook", self.table, hook)
            return False
        return True

    def _after(self, event: Any, hook: str) -> None:
        self.trigger_hook(hook, event.subject, stoppable=False)
        self.dispatch_event(event)

    @staticmethod
    def _entity_callback(entity: Any, name: str) -> None:
        if callable(getattr(type(entity), name, None)):
            getattr(entity, name)()

    # --- reading ---

    def create_query_object(
        self,
        criteria: dict[str, Any] | None = None,
        options: dict[str, Any] | None = None,
    ) -> QueryObject:
        return QueryObject(criteria, options)

    def read(self, query: QueryObject, map_result: bool = True) -> ResultSet[Any]:
        """Run a query through the find lifecycle.

        ``AfterFindEvent`` and the ``after_find`` hook see the raw rows,
        once, before mapping. Requested associations are eager-loaded after
        mapping.
        """
        if not self._before(BeforeFindEvent(self, query), "before_find"):
            return ResultSet()

        if not query.get_option("fields") and self.fields:
            query = query.with_option("fields", list(self.fields))

        result_set = self._data_source.read(self.table, query)
        logger.debug("Read %d row(s) from %s", len(result_set), self.table)
        if result_set.is_empty():
            return result_set

        self.trigger_hook("after_find", result_set, query, stoppable=False)
        self.dispatch_event(AfterFindEvent(self, result_set, query))

        if map_result:
            for index, row in enumerate(result_set):
                entity = self.map_data_to_entity(row)
                entity.mark_persisted(True)
                result_set[index] = entity
                self._entity_callback(entity, "after_load")

            if query.eager_load:
                self.resolver.load(self, result_set, query)

        return result_set

    def find(self, query: QueryObject | None = None) -> Entity | None:
        """First matching entity, or None."""
        query = query or self.create_query_object()
        return self.read(query.with_option("limit", 1)).first()

    def find_all(self, query: QueryObject | None = None) -> ResultSet[Entity]:
        return self.read(query or self.create_query_object())

    def find_count(self, query: QueryObject | None = None) -> int:
        query = query or self.create_query_object()
        if not self._before(BeforeFindEvent(self, query), "before_find"):
            return 0
        return self._data_source.count(self.table, query)

    def find_list(
        self,
        query: QueryObject | None = None,
        key_field: str | None = None,
        value_field: str | None = None,
        group_field: str | None = None,
    ) -> list[Any] | dict[Any, Any]:
        """Project matching rows into a list or dict.

        Returns a list of keys when no ``value_field`` is given,
        ``{key: value}`` with one, and ``{group: {key: value}}`` with a
        ``group_field`` as well. Rows lacking any requested field are skipped.

        Raises:
            ConfigurationError: If no key field is given and the primary key
                is composite.
        """
        key_field = key_field or self.single_primary_key()
        if key_field is None:
            raise ConfigurationError(f"Cannot determine a key field for {self.table}")

        rows = self.read(query or self.create_query_object(), map_result=False)
        return _convert_to_list(rows, key_field, value_field, group_field)

    def get(self, query: QueryObject | None = None) -> Entity:
        """Like ``find``, but a missing row is an error.

        Raises:
            EntityNotFoundError: If no row matches.
        """
        entity = self.find(query)
        if entity is None:
            raise EntityNotFoundError(self.table)
        return entity

    def find_by(
        self, criteria: dict[str, Any] | None = None, options: dict[str, Any] | None = None
    ) -> Entity | None:
        return self.find(self.create_query_object(criteria, options))

    def find_all_by(
        self, criteria: dict[str, Any], options: dict[str, Any] | None = None
    ) -> ResultSet[Entity]:
        return self.find_all(self.create_query_object(criteria, options))

    def find_count_by(self, criteria: dict[str, Any], options: dict[str, Any] | None = None) -> int:
        return self.find_count(self.create_query_object(criteria, options))

    def find_list_by(
        self,
        criteria: dict[str, Any],
        key_field: str | None = None,
        value_field: str | None = None,
        group_field: str | None = None,
        options: dict[str, Any] | None = None,
    ) -> list[Any] | dict[Any, Any]:
        return self.find_list(
            self.create_query_object(criteria, options), key_field, value_field, group_field
        )

    def get_by(
        self, criteria: dict[str, Any] | None = None, options: dict[str, Any] | None = None
    ) -> Entity:
        return self.get(self.create_query_object(criteria, options))

    # --- writing ---

    def save(self, entity: Entity) -> bool:
        """Create or update *entity* depending on whether it is persisted."""
        if not self._before(BeforeSaveEvent(self, entity), "before_save"):
            return False
        self._entity_callback(entity, "before_save")

        result = self.update(entity) if entity.is_persisted() else self.create(entity)

        if result:
            self._entity_callback(entity, "after_save")
            self._after(AfterSaveEvent(self, entity), "after_save")
        return result

    def create(self, entity: Entity) -> bool:
        """Insert *entity*; a generated id is written back for single-column keys."""
        if not self._before(BeforeCreateEvent(self, entity), "before_create"):
            return False
        self._entity_callback(entity, "before_create")

        result = bool(self._data_source.create(self.table, self.map_entity_to_data(entity)))
        if not result:
            return False

        entity.mark_persisted(True)
        primary_key = self.single_primary_key()
        generated = self._data_source.last_generated_id()
        if primary_key is not None and generated is not None and entity.get(primary_key) is None:
            entity.set(primary_key, generated)
        entity.clean()
        logger.debug("Created %s %r", self.table, self._primary_key_values(entity))

        self._entity_callback(entity, "after_create")
        self._after(AfterCreateEvent(self, entity), "after_create")
        return True

    def update(self, entity: Entity) -> bool:
        """Update the row of *entity*; succeeds iff exactly one row is affected.

        Raises:
            PrimaryKeyError: If a primary key component has no value.
        """
        if not self._before(BeforeUpdateEvent(self, entity), "before_update"):
            return False
        self._entity_callback(entity, "before_update")

        row = self.map_entity_to_data(entity)
        query = self.create_query_object(self._primary_key_conditions(entity.to_dict()))
        affected = self._data_source.update(self.table, query, row)
        if affected != 1:
            logger.debug("Update of %s %r affected %d row(s)", self.table, query.criteria, affected)
            return False

        entity.clean()
        self._entity_callback(entity, "after_update")
        self._after(AfterUpdateEvent(self, entity), "after_update")
        return True

    def delete(self, entity: Entity) -> bool:
        """Delete the row of *entity*, then cascade to dependent associations.

        Raises:
            PrimaryKeyError: If a primary key component has no value.
        """
        if not self._before(BeforeDeleteEvent(self, entity), "before_delete"):
            return False
        self._entity_callback(entity, "before_delete")

        query = self.create_query_object(self._primary_key_conditions(entity.to_dict()))
        affected = self._data_source.delete(self.table, query)
        if affected != 1:
            logger.debug("Delete of %s %r affected %d row(s)", self.table, query.criteria, affected)
            return False

        self.resolver.delete_dependents(self, entity)

        self._entity_callback(entity, "after_delete")
        self._after(AfterDeleteEvent(self, entity), "after_delete")
        return True

    def update_all(self, query: QueryObject, data: dict[str, Any]) -> int:
        """Bulk update; no hooks or events run.

        Raises:
            InvalidArgumentError: If *data* is empty.
        """
        if not data:
            raise InvalidArgumentError("Data cannot be empty")
        return self._data_source.update(self.table, query, data)

    def update_all_by(
        self,
        criteria: dict[str, Any],
        data: dict[str, Any],
        options: dict[str, Any] | None = None,
    ) -> int:
        return self.update_all(self.create_query_object(criteria, options), data)

    def delete_all(self, query: QueryObject) -> int:
        """Bulk delete; no hooks, events or cascades run."""
        return self._data_source.delete(self.table, query)

    def delete_all_by(self, criteria: dict[str, Any], options: dict[str, Any] | None = None) -> int:
        return self.delete_all(self.create_query_object(criteria, options))

    def save_many(self, entities: Iterable[Entity]) -> bool:
        """Save each entity, stopping at the first failure.

        Earlier saves are not undone; wrap the call in ``transaction()`` when
        all-or-nothing behaviour is needed.
        """
        return all(self.save(entity) for entity in entities)

    def delete_many(self, entities: Iterable[Entity]) -> bool:
        """Delete each entity, stopping at the first failure (no rollback)."""
        return all(self.delete(entity) for entity in entities)

    def transaction(self) -> Any:
        """Transaction context of the data source.

        Raises:
            ConfigurationError: If the data source has no transaction support.
        """
        factory = getattr(self._data_source, "transaction", None)
        if factory is None:
            raise ConfigurationError(
                f"{type(self._data_source).__name__} does not support transactions"
            )
        return factory()

    # --- conversion ---

    def map_data_to_entity(self, data: dict[str, Any]) -> Entity:
        return self.entity_class.from_state(data)

    def map_entity_to_data(self, entity: Entity) -> dict[str, Any]:
        """Storage row for *entity*, limited to ``fields`` when declared."""
        data = entity.to_dict()
        if self.fields:
            return {field: data[field] for field in self.fields if field in data}
        return data

    def create_entity(
        self,
        data: dict[str, Any],
        fields: Iterable[str] | None = None,
        persisted: bool = False,
    ) -> Entity:
        """Build an entity from caller data, keeping only whitelisted fields."""
        allowed = list(fields) if fields is not None else list(self.fields)
        if allowed:
            data = {key: value for key, value in data.items() if key in allowed}
        entity = self.map_data_to_entity(data)
        entity.mark_persisted(persisted)
        return entity

    def create_entities(
        self,
        rows: Iterable[dict[str, Any]],
        fields: Iterable[str] | None = None,
        persisted: bool = False,
    ) -> list[Entity]:
        allowed = list(fields) if fields is not None else None
        return [self.create_entity(row, allowed, persisted) for row in rows]

    def _primary_key_conditions(self, state: dict[str, Any]) -> dict[str, Any]:
        conditions: dict[str, Any] = {}
        for key in self.get_primary_key():
            if state.get(key) is None:
                raise PrimaryKeyError(self.table, key)
            conditions[key] = state[key]
        return conditions

    def _primary_key_values(self, entity: Entity) -> tuple[Any, ...]:
        return tuple(entity.get(key) for key in self.get_primary_key())


def _convert_to_list(
    rows: Iterable[dict[str, Any]],
    key_field: str,
    value_field: str | None,
    group_field: str | None,
) -> list[Any] | dict[Any, Any]:
    if value_field is None:
        return [row[key_field] for row in rows if row.get(key_field) is not None]

    result: dict[Any, Any] = {}
    for row in rows:
        required = [key_field, value_field] + ([group_field] if group_field else [])
        if any(row.get(name) is None for name in required):
            continue
        if group_field:
            result.setdefault(row[group_field], {})[row[key_field]] = row[value_field]
        else:
            result[row[key_field]] = row[value_field]
    return result
