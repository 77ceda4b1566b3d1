"""Data sources - storage collaborators for the mapper."""

from __future__ import annotations

from row_mapper.datasource.database import DatabaseDataSource
from row_mapper.datasource.memory import MemoryDataSource
from row_mapper.datasource.protocol import DataSource

__all__ = [
    "DataSource",
    "MemoryDataSource",
    "DatabaseDataSource",
]
