"""Batched association loading and dependent cascades.

Eager loading issues one read per requested association (two for
``belongs_to_many``) however many root entities there are: keys are
collected from the whole result set, fetched in a single ``IN`` query,
indexed in memory and attached back to each root.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

from row_mapper.core.enums import AssociationKind
from row_mapper.core.exceptions import AssociationConfigError
from row_mapper.core.query import QueryObject
from row_mapper.core.result import ResultSet
from row_mapper.mapping.associations import (
    Association,
    BelongsTo,
    BelongsToMany,
    HasMany,
    HasOne,
)

if TYPE_CHECKING:
    from row_mapper.mapping.entity import Entity
    from row_mapper.mapping.mapper import DataMapper

logger = logging.getLogger(__name__)

_LOAD_ORDER = (
    AssociationKind.BELONGS_TO,
    AssociationKind.HAS_ONE,
    AssociationKind.HAS_MANY,
    AssociationKind.BELONGS_TO_MANY,
)


def _unique(values: Iterable[Any]) -> list[Any]:
    """Distinct non-None values in first-seen order."""
    seen: dict[Any, None] = {}
    for value in values:
        if value is not None:
            seen.setdefault(value, None)
    return list(seen)


class AssociationResolver:
    """Loads associations for a mapped result set and cascades deletes."""

    def load(self, mapper: DataMapper, result_set: ResultSet[Entity], query: QueryObject) -> None:
        """Attach every association named in the query's ``with`` option.

        Names the mapper does not declare are ignored.
        """
        requested = set(query.eager_load)
        selected = [
            (name, association)
            for name, association in mapper.associations.items()
            if name in requested
        ]
        selected.sort(key=lambda item: _LOAD_ORDER.index(item[1].kind))

        for name, association in selected:
            logger.debug("Eager loading %s.%s for %d row(s)", mapper.table, name, len(result_set))
            if isinstance(association, BelongsTo):
                self._load_belongs_to(mapper, result_set, name, association)
            elif isinstance(association, HasOne):
                self._load_has_one(mapper, result_set, name, association)
            elif isinstance(association, HasMany):
                self._load_has_many(mapper, result_set, name, association)
            elif isinstance(association, BelongsToMany):
                self._load_belongs_to_many(mapper, result_set, name, association)

    def delete_dependents(self, mapper: DataMapper, entity: Entity) -> None:
        """Delete rows owned by *entity* through dependent associations.

        ``has_one`` and ``has_many`` children are deleted one by one through
        their own mapper, so their hooks, events and cascades run. Join rows
        of ``belongs_to_many`` are bulk-deleted without hooks. Mappers with a
        composite primary key never cascade.
        """
        primary_key = mapper.single_primary_key()
        if primary_key is None:
            return
        owner_id = entity.get(primary_key)
        if owner_id is None:
            return

        dependents = [
            association
            for association in mapper.associations.values()
            if getattr(association, "dependent", False)
        ]
        dependents.sort(key=lambda association: _LOAD_ORDER.index(association.kind))

        for association in dependents:
            if isinstance(association, BelongsToMany):
                removed = mapper.data_source.delete(
                    association.join_table,
                    QueryObject({association.foreign_key: owner_id}),
                )
                logger.debug(
                    "Removed %d join row(s) from %s", removed, association.join_table
                )
                continue

            related = mapper.related_mapper(association)
            for child in related.find_all_by({association.foreign_key: owner_id}):
                related.delete(child)

    # --- loaders ---

    def _related_key(
        self, mapper: DataMapper, name: str, association: Association
    ) -> tuple[DataMapper, str]:
        related = mapper.related_mapper(association)
        key = related.single_primary_key()
        if key is None:
            raise AssociationConfigError(
                type(mapper).__name__,
                name,
                f"targets {type(related).__name__}, which has a composite primary key",
            )
        return related, key

    def _find_related(
        self, related: DataMapper, association: Association, key: str, ids: list[Any]
    ) -> ResultSet[Entity]:
        """One batched read of *related*, keyed by *key* IN *ids*."""
        criteria = {**association.conditions, key: ids}
        options: dict[str, Any] = {}
        if association.fields:
            options["fields"] = _unique([*association.fields, key])
        if association.order:
            options["sort"] = association.order
        return related.find_all_by(criteria, options)

    def _load_belongs_to(
        self, mapper: DataMapper, result_set: ResultSet[Entity], name: str, association: BelongsTo
    ) -> None:
        related, related_key = self._related_key(mapper, name, association)
        ids = _unique(row.get(association.foreign_key) for row in result_set)
        index = self._find_related(related, association, related_key, ids).index_by(
            lambda e: e.get(related_key)
        )

        for row in result_set:
            row.set_related(name, index.get(row.get(association.foreign_key)))

    def _load_has_one(
        self, mapper: DataMapper, result_set: ResultSet[Entity], name: str, association: HasOne
    ) -> None:
        related = mapper.related_mapper(association)
        primary_key = mapper.single_primary_key()
        ids = _unique(row.get(primary_key) for row in result_set)
        index = self._find_related(related, association, association.foreign_key, ids).index_by(
            lambda e: e.get(association.foreign_key)
        )

        for row in result_set:
            row.set_related(name, index.get(row.get(primary_key)))

    def _load_has_many(
        self, mapper: DataMapper, result_set: ResultSet[Entity], name: str, association: HasMany
    ) -> None:
        related = mapper.related_mapper(association)
        primary_key = mapper.single_primary_key()
        ids = _unique(row.get(primary_key) for row in result_set)
        groups = self._find_related(related, association, association.foreign_key, ids).group_by(
            lambda e: e.get(association.foreign_key)
        )

        for row in result_set:
            row.set_related(name, list(groups.get(row.get(primary_key), [])))

    def _load_belongs_to_many(
        self,
        mapper: DataMapper,
        result_set: ResultSet[Entity],
        name: str,
        association: BelongsToMany,
    ) -> None:
        related, related_key = self._related_key(mapper, name, association)
        primary_key = mapper.single_primary_key()
        ids = _unique(row.get(primary_key) for row in result_set)

        links: dict[Any, list[Any]] = {}
        join_rows = mapper.data_source.read(
            association.join_table,
            QueryObject({association.foreign_key: ids}),
        )
        for join_row in join_rows:
            owner = join_row.get(association.foreign_key)
            other = join_row.get(association.other_foreign_key)
            if owner is not None and other is not None:
                links.setdefault(owner, []).append(other)

        other_ids = _unique(other for others in links.values() for other in others)
        index = self._find_related(related, association, related_key, other_ids).index_by(
            lambda e: e.get(related_key)
        )

        for row in result_set:
            row.set_related(
                name,
                [index[other] for other in links.get(row.get(primary_key), []) if other in index],
            )
