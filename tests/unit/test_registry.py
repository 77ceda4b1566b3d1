"""Unit tests for MapperRegistry."""

from __future__ import annotations

import pytest
from conftest import ArticleMapper, AuthorMapper, CommentMapper, TagMapper

from row_mapper.core.events import PrioritizedEventDispatcher
from row_mapper.core.exceptions import ConfigurationError
from row_mapper.datasource.memory import MemoryDataSource
from row_mapper.mapping.registry import MapperRegistry


def _tags(data_source, event_dispatcher, registry):
    return TagMapper(data_source, registry, event_dispatcher)


class TestMapperRegistry:
    def test_builds_mapper_class_on_demand(self, registry: MapperRegistry) -> None:
        assert len(registry) == 0
        mapper = registry.get(TagMapper)
        assert isinstance(mapper, TagMapper)
        assert len(registry) == 1

    def test_same_instance_every_time(self, registry: MapperRegistry) -> None:
        assert registry.get(TagMapper) is registry.get(TagMapper)

    def test_shares_collaborators(
        self,
        registry: MapperRegistry,
        dispatcher: PrioritizedEventDispatcher,
    ) -> None:
        mapper = registry.get(TagMapper)
        assert mapper.registry is registry
        assert mapper.event_dispatcher is dispatcher
        assert registry.event_dispatcher is dispatcher

    def test_peers_are_built_lazily(self, registry: MapperRegistry) -> None:
        registry.get(ArticleMapper)
        assert ArticleMapper in registry
        assert AuthorMapper not in registry
        assert CommentMapper not in registry

    def test_cyclic_associations_construct(self, registry: MapperRegistry) -> None:
        authors = registry.get(AuthorMapper)
        articles = registry.get(ArticleMapper)
        assert authors.related_mapper(authors.associations["articles"]) is articles
        assert articles.related_mapper(articles.associations["author"]) is authors

    def test_configure_factory(self, memory: MemoryDataSource) -> None:
        calls: list[tuple] = []

        def factory(data_source, event_dispatcher, registry):
            calls.append((data_source, event_dispatcher, registry))
            return TagMapper(data_source, registry, event_dispatcher)

        registry = MapperRegistry(memory)
        registry.configure("tags", factory)
        assert registry.has("tags")
        mapper = registry.get("tags")
        assert registry.get("tags") is mapper
        assert calls == [(memory, None, registry)]

    def test_configure_is_chainable(self, memory: MemoryDataSource) -> None:
        registry = MapperRegistry(memory).configure("a", _tags).configure("b", _tags)
        assert "a" in registry
        assert "b" in registry

    def test_configure_after_build_rejected(self, registry: MapperRegistry) -> None:
        registry.get(TagMapper)
        with pytest.raises(ConfigurationError, match="already built"):
            registry.configure(TagMapper, lambda ds, ed, reg: TagMapper(ds, reg, ed))

    def test_factory_must_return_mapper(self, memory: MemoryDataSource) -> None:
        registry = MapperRegistry(memory).configure("tags", lambda ds, ed, reg: object())
        with pytest.raises(ConfigurationError, match="not a DataMapper"):
            registry.get("tags")

    def test_unknown_key(self, registry: MapperRegistry) -> None:
        with pytest.raises(ConfigurationError, match="No mapper configured for 'missing'"):
            registry.get("missing")

    def test_non_mapper_class(self, registry: MapperRegistry) -> None:
        with pytest.raises(ConfigurationError, match="dict"):
            registry.get(dict)

    def test_add(self, memory: MemoryDataSource) -> None:
        registry = MapperRegistry(memory)
        mapper = TagMapper(memory)
        registry.add(mapper)
        registry.add(mapper, "tags")
        assert registry.get(TagMapper) is mapper
        assert registry.get("tags") is mapper

    def test_add_does_not_replace(self, memory: MemoryDataSource) -> None:
        registry = MapperRegistry(memory)
        registry.add(TagMapper(memory))
        with pytest.raises(ConfigurationError, match="already registered"):
            registry.add(TagMapper(memory))

    def test_constructed_mapper_registers_itself(self, registry: MapperRegistry) -> None:
        mapper = TagMapper(registry.data_source, registry)
        assert registry.get(TagMapper) is mapper
