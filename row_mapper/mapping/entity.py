"""Entity state container.

An Entity holds the stored fields of one row plus a separate slot for
related data attached by eager loading. Only stored fields are written back
to storage.
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any, Union

RelatedValue = Union["Entity", list["Entity"], None]


class Entity:
    """Mutable record of one storage row.

    Fields are available as attributes and items. Related data is read via
    ``get_related`` or, when no stored field shadows it, as an attribute.

    Subclasses may define any of ``before_save``, ``after_save``,
    ``before_create``, ``after_create``, ``before_update``, ``after_update``,
    ``before_delete``, ``after_delete`` and ``after_load``; the mapper calls
    them at the matching point of the lifecycle.
    """

    __slots__ = ("_fields", "_related", "_persisted", "_dirty")

    def __init__(self, **fields: Any) -> None:
        object.__setattr__(self, "_fields", dict(fields))
        object.__setattr__(self, "_related", {})
        object.__setattr__(self, "_persisted", False)
        object.__setattr__(self, "_dirty", set(fields))

    @classmethod
    def from_state(cls, data: dict[str, Any]) -> Entity:
        """Build an entity from a storage row; the result starts clean."""
        entity = cls(**data)
        entity.clean()
        return entity

    # --- fields ---

    def __getattr__(self, name: str) -> Any:
        fields = object.__getattribute__(self, "_fields")
        if name in fields:
            return fields[name]
        related = object.__getattribute__(self, "_related")
        if name in related:
            return related[name]
        raise AttributeError(f"{type(self).__name__} has no field '{name}'")

    def __setattr__(self, name: str, value: Any) -> None:
        self.set(name, value)

    def __getitem__(self, name: str) -> Any:
        return self._fields[name]

    def __setitem__(self, name: str, value: Any) -> None:
        self.set(name, value)

    def __contains__(self, name: object) -> bool:
        return name in self._fields

    def __iter__(self) -> Iterator[str]:
        return iter(self._fields)

    def get(self, name: str, default: Any = None) -> Any:
        return self._fields.get(name, default)

    def set(self, name: str, value: Any) -> Entity:
        self._fields[name] = value
        self._dirty.add(name)
        return self

    def to_dict(self) -> dict[str, Any]:
        """Stored fields only; related data is never included."""
        return dict(self._fields)

    # --- state ---

    def is_persisted(self) -> bool:
        return self._persisted

    def mark_persisted(self, persisted: bool = True) -> Entity:
        object.__setattr__(self, "_persisted", persisted)
        return self

    def is_dirty(self, name: str | None = None) -> bool:
        if name is None:
            return bool(self._dirty)
        return name in self._dirty

    def clean(self) -> Entity:
        self._dirty.clear()
        return self

    # --- related data ---

    @property
    def related(self) -> dict[str, RelatedValue]:
        return self._related

    def get_related(self, name: str, default: Any = None) -> RelatedValue:
        return self._related.get(name, default)

    def set_related(self, name: str, value: RelatedValue) -> Entity:
        self._related[name] = value
        return self

    def has_related(self, name: str) -> bool:
        return name in self._related

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Entity):
            return NotImplemented
        return self._fields == other._fields and self._related == other._related

    __hash__ = None  # type: ignore[assignment]

    # Used by copy, deepcopy and pickle; slots are restored without set().
    def __getstate__(self) -> dict[str, Any]:
        return {
            "_fields": dict(self._fields),
            "_related": dict(self._related),
            "_persisted": self._persisted,
            "_dirty": set(self._dirty),
        }

    def __setstate__(self, state: dict[str, Any]) -> None:
        for name, value in state.items():
            object.__setattr__(self, name, value)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._fields!r})"
