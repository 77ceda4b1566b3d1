"""Association definitions.

Frozen Pydantic models describing how two mappers relate. Mapper subclasses
declare them in the ``belongs_to``, ``has_one``, ``has_many`` and
``belongs_to_many`` class attributes, either as model instances or as plain
dicts, and ``compile_associations`` validates them once at construction.
"""

from __future__ import annotations

from typing import Any, ClassVar, Union

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from row_mapper.core.enums import AssociationKind
from row_mapper.core.exceptions import AssociationConfigError

# Mapper class or a name configured in the MapperRegistry
MapperKey = Union[type, str]


class Association(BaseModel):
    """Fields shared by every association kind.

    ``conditions`` narrow the related rows and ``fields``/``order`` become the
    related read's options when the association is eager-loaded. Dependent
    deletes ignore them and match on the foreign key alone.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", arbitrary_types_allowed=True)

    kind: ClassVar[AssociationKind]

    class_name: Any
    foreign_key: str
    conditions: dict[str, Any] = {}
    fields: tuple[str, ...] = ()
    order: Union[str, list[str], dict[str, str], None] = None

    @field_validator("class_name")
    @classmethod
    def _check_class_name(cls, value: Any) -> Any:
        if isinstance(value, str):
            if not value:
                raise ValueError("class_name must not be empty")
            return value
        if not isinstance(value, type):
            raise ValueError("class_name must be a mapper class or a registered name")
        return value

    @field_validator("foreign_key")
    @classmethod
    def _check_foreign_key(cls, value: str) -> str:
        if not value:
            raise ValueError("foreign_key must not be empty")
        return value


class BelongsTo(Association):
    """Foreign key on this table referencing the other table's primary key."""

    kind: ClassVar[AssociationKind] = AssociationKind.BELONGS_TO


class HasOne(Association):
    """Foreign key on the other table referencing this table's primary key."""

    kind: ClassVar[AssociationKind] = AssociationKind.HAS_ONE

    dependent: bool = False


class HasMany(Association):
    """Like HasOne, with any number of related rows."""

    kind: ClassVar[AssociationKind] = AssociationKind.HAS_MANY

    dependent: bool = False


class BelongsToMany(Association):
    """N:M relation through a join table.

    ``foreign_key`` references this table's primary key and
    ``other_foreign_key`` the other table's primary key.
    """

    kind: ClassVar[AssociationKind] = AssociationKind.BELONGS_TO_MANY

    join_table: str
    other_foreign_key: str
    dependent: bool = False

    @field_validator("join_table", "other_foreign_key")
    @classmethod
    def _check_not_empty(cls, value: str) -> str:
        if not value:
            raise ValueError("must not be empty")
        return value


_MODELS: dict[AssociationKind, type[Association]] = {
    AssociationKind.BELONGS_TO: BelongsTo,
    AssociationKind.HAS_ONE: HasOne,
    AssociationKind.HAS_MANY: HasMany,
    AssociationKind.BELONGS_TO_MANY: BelongsToMany,
}


def _describe(error: ValidationError) -> str:
    first = error.errors()[0]
    location = ".".join(str(part) for part in first["loc"]) or "definition"
    if first["type"] == "missing":
        return f"is missing '{location}'"
    return f"has invalid '{location}': {first['msg']}"


def compile_associations(
    mapper_name: str,
    declared: dict[AssociationKind, dict[str, Any]],
) -> dict[str, Association]:
    """Validate declared associations into typed models keyed by property.

    Args:
        mapper_name: Used in error messages.
        declared: Per-kind maps of property name to model or dict.

    Raises:
        AssociationConfigError: On a malformed definition, a definition of the
            wrong kind, or a property declared twice.
    """
    compiled: dict[str, Association] = {}
    for kind, definitions in declared.items():
        model = _MODELS[kind]
        for property_name, definition in (definitions or {}).items():
            if property_name in compiled:
                raise AssociationConfigError(mapper_name, property_name, "is declared twice")
            if isinstance(definition, Association):
                if not isinstance(definition, model):
                    raise AssociationConfigError(
                        mapper_name,
                        property_name,
                        f"is declared under {kind.value} but is a {definition.kind.value}",
                    )
                compiled[property_name] = definition
                continue
            if not isinstance(definition, dict):
                raise AssociationConfigError(
                    mapper_name, property_name, "must be a dict or an association model"
                )
            try:
                compiled[property_name] = model.model_validate(definition)
            except ValidationError as e:
                raise AssociationConfigError(
                    mapper_name, property_name, f"({kind.value}) {_describe(e)}"
                ) from e
    return compiled
