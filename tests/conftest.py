"""Shared test fixtures.

A small blog domain: authors write articles, articles have comments and
tags, authors have one profile.
"""

from __future__ import annotations

from collections import Counter
from typing import Any

import pytest

from row_mapper.core.connection import ConnectionConfig
from row_mapper.core.events import PrioritizedEventDispatcher
from row_mapper.core.query import QueryObject
from row_mapper.core.result import ResultSet
from row_mapper.datasource.memory import MemoryDataSource
from row_mapper.mapping.associations import BelongsTo, BelongsToMany, HasMany, HasOne
from row_mapper.mapping.entity import Entity
from row_mapper.mapping.mapper import DataMapper
from row_mapper.mapping.registry import MapperRegistry

# --- Test data source ---


class CountingDataSource:
    """MemoryDataSource wrapper that records every call."""

    def __init__(self, inner: MemoryDataSource) -> None:
        self.inner = inner
        self.calls: Counter[str] = Counter()
        self.reads: list[tuple[str, QueryObject]] = []

    def reset(self) -> None:
        self.calls.clear()
        self.reads.clear()

    def reads_of(self, table: str) -> list[QueryObject]:
        return [query for name, query in self.reads if name == table]

    def create(self, table: str, data: dict[str, Any]) -> bool:
        self.calls["create"] += 1
        return self.inner.create(table, data)

    def read(self, table: str, query: QueryObject) -> ResultSet[dict[str, Any]]:
        self.calls["read"] += 1
        self.reads.append((table, query))
        return self.inner.read(table, query)

    def update(self, table: str, query: QueryObject, data: dict[str, Any]) -> int:
        self.calls["update"] += 1
        return self.inner.update(table, query, data)

    def delete(self, table: str, query: QueryObject) -> int:
        self.calls["delete"] += 1
        return self.inner.delete(table, query)

    def count(self, table: str, query: QueryObject) -> int:
        self.calls["count"] += 1
        return self.inner.count(table, query)

    def last_generated_id(self) -> Any:
        return self.inner.last_generated_id()

    def transaction(self) -> Any:
        return self.inner.transaction()


# --- Test domain ---


class Article(Entity):
    __slots__ = ()

    def after_load(self) -> None:
        self.set_related("loaded", True)


class CommentMapper(DataMapper):
    table = "comments"
    fields = ("id", "article_id", "body")


class ProfileMapper(DataMapper):
    table = "profiles"
    fields = ("id", "author_id", "bio")


class TagMapper(DataMapper):
    table = "tags"


class AuthorMapper(DataMapper):
    table = "authors"


class ArticleMapper(DataMapper):
    table = "articles"
    fields = ("id", "author_id", "title", "status")
    entity_class = Article

    belongs_to = {"author": BelongsTo(class_name=AuthorMapper, foreign_key="author_id")}
    has_many = {
        "comments": {"class_name": CommentMapper, "foreign_key": "article_id", "dependent": True}
    }
    belongs_to_many = {
        "tags": BelongsToMany(
            class_name=TagMapper,
            foreign_key="article_id",
            join_table="articles_tags",
            other_foreign_key="tag_id",
            dependent=True,
        )
    }


AuthorMapper.has_one = {
    "profile": HasOne(class_name=ProfileMapper, foreign_key="author_id", dependent=True)
}
AuthorMapper.has_many = {"articles": HasMany(class_name=ArticleMapper, foreign_key="author_id")}


def seed_data() -> dict[str, list[dict[str, Any]]]:
    return {
        "authors": [
            {"id": 1, "name": "Ada"},
            {"id": 2, "name": "Brian"},
            {"id": 3, "name": "Carol"},
        ],
        "profiles": [
            {"id": 1, "author_id": 1, "bio": "Mathematician"},
        ],
        "articles": [
            {"id": 1, "author_id": 1, "title": "Intro", "status": "published"},
            {"id": 2, "author_id": 1, "title": "Deep dive", "status": "draft"},
            {"id": 3, "author_id": 2, "title": "Notes", "status": "published"},
            {"id": 4, "author_id": None, "title": "Orphan", "status": "draft"},
            {"id": 5, "author_id": 99, "title": "Lost", "status": "draft"},
        ],
        "comments": [
            {"id": 1, "article_id": 1, "body": "First"},
            {"id": 2, "article_id": 1, "body": "Second"},
            {"id": 3, "article_id": 3, "body": "Third"},
        ],
        "tags": [
            {"id": 1, "name": "python"},
            {"id": 2, "name": "sql"},
            {"id": 3, "name": "orm"},
        ],
        "articles_tags": [
            {"article_id": 1, "tag_id": 1},
            {"article_id": 1, "tag_id": 3},
            {"article_id": 3, "tag_id": 2},
            {"article_id": 3, "tag_id": 1},
        ],
    }


# --- Fixtures ---


@pytest.fixture
def sqlite_config() -> ConnectionConfig:
    """SQLite in-memory connection config with a single pooled connection."""
    return ConnectionConfig(driver="sqlite", database=":memory:", pool_size=1)


@pytest.fixture
def memory() -> MemoryDataSource:
    return MemoryDataSource(seed_data())


@pytest.fixture
def source(memory: MemoryDataSource) -> CountingDataSource:
    return CountingDataSource(memory)


@pytest.fixture
def dispatcher() -> PrioritizedEventDispatcher:
    return PrioritizedEventDispatcher()


@pytest.fixture
def registry(source: CountingDataSource, dispatcher: PrioritizedEventDispatcher) -> MapperRegistry:
    return MapperRegistry(source, dispatcher)


@pytest.fixture
def articles(registry: MapperRegistry) -> ArticleMapper:
    return registry.get(ArticleMapper)


@pytest.fixture
def authors(registry: MapperRegistry) -> AuthorMapper:
    return registry.get(AuthorMapper)
