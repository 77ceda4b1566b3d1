"""Enumerations shared across the package."""

from __future__ import annotations

from enum import Enum


class DatabaseBackend(Enum):
    """Database backends with a bundled adapter."""

    SQLITE = "sqlite"
    MYSQL = "mysql"


class AssociationKind(Enum):
    """Kinds of declarative relationship between two mappers."""

    BELONGS_TO = "belongs_to"
    HAS_ONE = "has_one"
    HAS_MANY = "has_many"
    BELONGS_TO_MANY = "belongs_to_many"
