"""Mapper registry.

Builds each mapper lazily on first request and returns the same instance
afterwards. Mappers reach their association peers through it.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any, Union

from row_mapper.core.events import EventDispatcher
from row_mapper.core.exceptions import ConfigurationError
from row_mapper.datasource.protocol import DataSource

if TYPE_CHECKING:
    from row_mapper.mapping.mapper import DataMapper

logger = logging.getLogger(__name__)

MapperKey = Union[type, str]
MapperFactory = Callable[[DataSource, "EventDispatcher | None", "MapperRegistry"], "DataMapper"]


class MapperRegistry:
    """Lazy, caching mapper lookup.

    Args:
        data_source: Shared by every mapper the registry builds.
        event_dispatcher: Shared by every mapper the registry builds.
    """

    def __init__(
        self,
        data_source: DataSource,
        event_dispatcher: EventDispatcher | None = None,
    ) -> None:
        self._data_source = data_source
        self._event_dispatcher = event_dispatcher
        self._factories: dict[MapperKey, MapperFactory] = {}
        self._mappers: dict[MapperKey, DataMapper] = {}

    @property
    def data_source(self) -> DataSource:
        return self._data_source

    @property
    def event_dispatcher(self) -> EventDispatcher | None:
        return self._event_dispatcher

    def configure(self, key: MapperKey, factory: MapperFactory) -> MapperRegistry:
        """Register a factory called as ``factory(data_source, event_dispatcher, registry)``.

        Raises:
            ConfigurationError: If *key* already resolved to a mapper.
        """
        if key in self._mappers:
            raise ConfigurationError(f"Mapper {_name(key)} is already built")
        self._factories[key] = factory
        return self

    def add(self, mapper: DataMapper, key: MapperKey | None = None) -> MapperRegistry:
        """Register an already-built mapper under *key* (default: its class).

        Raises:
            ConfigurationError: If a different mapper is registered under *key*.
        """
        key = key if key is not None else type(mapper)
        existing = self._mappers.get(key)
        if existing is not None and existing is not mapper:
            raise ConfigurationError(f"Mapper {_name(key)} is already registered")
        self._mappers[key] = mapper
        return self

    def has(self, key: MapperKey) -> bool:
        return key in self._mappers or key in self._factories

    def get(self, key: MapperKey) -> DataMapper:
        """Mapper for *key*, built on first request.

        A DataMapper subclass needs no configuration; it is constructed with
        the registry's data source and dispatcher.

        Raises:
            ConfigurationError: If *key* is unknown or the factory does not
                return a DataMapper.
        """
        mapper = self._mappers.get(key)
        if mapper is not None:
            return mapper

        mapper = self._create(key)
        logger.debug("Built mapper %s", _name(key))
        return self._mappers.setdefault(key, mapper)

    def _create(self, key: MapperKey) -> DataMapper:
        from row_mapper.mapping.mapper import DataMapper

        factory = self._factories.get(key)
        if factory is not None:
            mapper = factory(self._data_source, self._event_dispatcher, self)
        elif isinstance(key, type) and issubclass(key, DataMapper):
            mapper = key(self._data_source, registry=self, event_dispatcher=self._event_dispatcher)
        else:
            raise ConfigurationError(f"No mapper configured for {_name(key)}")

        if not isinstance(mapper, DataMapper):
            raise ConfigurationError(
                f"Factory for {_name(key)} returned {type(mapper).__name__}, not a DataMapper"
            )
        return mapper

    def __contains__(self, key: Any) -> bool:
        return self.has(key)

    def __len__(self) -> int:
        return len(self._mappers)


def _name(key: MapperKey) -> str:
    return key.__name__ if isinstance(key, type) else repr(key)
