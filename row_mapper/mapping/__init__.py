"""Mapping layer - move entities between storage rows and objects."""

from __future__ import annotations

from row_mapper.mapping.associations import (
    Association,
    BelongsTo,
    BelongsToMany,
    HasMany,
    HasOne,
)
from row_mapper.mapping.entity import Entity
from row_mapper.mapping.mapper import DataMapper
from row_mapper.mapping.registry import MapperRegistry
from row_mapper.mapping.resolver import AssociationResolver

__all__ = [
    "Entity",
    "DataMapper",
    "MapperRegistry",
    "AssociationResolver",
    "Association",
    "BelongsTo",
    "HasOne",
    "HasMany",
    "BelongsToMany",
]
