"""Mapper lifecycle events and a prioritized event dispatcher.

Every event carries the mapper that fired it and a subject (the query for
find events, the entity for write events). Before-events are stoppable: a
listener calls ``stop()`` and the mapper cancels the operation.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from row_mapper.core.query import QueryObject
    from row_mapper.core.result import ResultSet

logger = logging.getLogger(__name__)


@runtime_checkable
class EventDispatcher(Protocol):
    """Anything that can dispatch an event object and hand it back."""

    def dispatch(self, event: Any) -> Any:
        ...


class MapperEvent:
    """Base event carrying ``(mapper, subject)``."""

    def __init__(self, mapper: Any, subject: Any) -> None:
        self.mapper = mapper
        self.subject = subject

    def __repr__(self) -> str:
        mapper = type(self.mapper).__name__
        return f"{type(self).__name__}(mapper={mapper}, subject={self.subject!r})"


class StoppableMapperEvent(MapperEvent):
    """Event whose propagation (and the operation behind it) can be stopped."""

    def __init__(self, mapper: Any, subject: Any) -> None:
        super().__init__(mapper, subject)
        self._stopped = False

    def stop(self) -> StoppableMapperEvent:
        self._stopped = True
        return self

    def is_propagation_stopped(self) -> bool:
        return self._stopped


class InitializeEvent(MapperEvent):
    """Fired once when a mapper has finished construction."""

    def __init__(self, mapper: Any) -> None:
        super().__init__(mapper, None)


# --- Find ---


class BeforeFindEvent(StoppableMapperEvent):
    @property
    def query(self) -> QueryObject:
        return self.subject


class AfterFindEvent(MapperEvent):
    """Fired once per read with the raw rows, before mapping."""

    def __init__(self, mapper: Any, result_set: ResultSet[Any], query: QueryObject) -> None:
        super().__init__(mapper, result_set)
        self.query = query

    @property
    def result_set(self) -> ResultSet[Any]:
        return self.subject


# --- Write ---


class BeforeWriteEvent(StoppableMapperEvent):
    @property
    def entity(self) -> Any:
        return self.subject


class AfterWriteEvent(MapperEvent):
    @property
    def entity(self) -> Any:
        return self.subject


class BeforeSaveEvent(BeforeWriteEvent):
    pass


class AfterSaveEvent(AfterWriteEvent):
    pass


class BeforeCreateEvent(BeforeWriteEvent):
    pass


class AfterCreateEvent(AfterWriteEvent):
    pass


class BeforeUpdateEvent(BeforeWriteEvent):
    pass


class AfterUpdateEvent(AfterWriteEvent):
    pass


class BeforeDeleteEvent(BeforeWriteEvent):
    pass


class AfterDeleteEvent(AfterWriteEvent):
    pass


# --- Dispatcher ---


Listener = Callable[[Any], Any]


class PrioritizedEventDispatcher:
    """Dispatches events to listeners registered by event class.

    Listeners registered for a base class also receive subclass events.
    Lower priority numbers run first; equal priorities keep registration
    order. Once a stoppable event is stopped no further listeners run.
    """

    def __init__(self) -> None:
        self._listeners: dict[type, list[tuple[int, int, Listener]]] = {}
        self._sequence = 0

    def add_listener(
        self, event_type: type, listener: Listener, priority: int = 100
    ) -> PrioritizedEventDispatcher:
        self._sequence += 1
        self._listeners.setdefault(event_type, []).append((priority, self._sequence, listener))
        return self

    def remove_listener(self, event_type: type, listener: Listener) -> PrioritizedEventDispatcher:
        queue = self._listeners.get(event_type, [])
        self._listeners[event_type] = [entry for entry in queue if entry[2] != listener]
        return self

    def listeners_for(self, event: Any) -> list[Listener]:
        entries: list[tuple[int, int, Listener]] = []
        for event_type in type(event).__mro__:
            entries.extend(self._listeners.get(event_type, []))
        return [listener for _, _, listener in sorted(entries, key=lambda e: (e[0], e[1]))]

    def dispatch(self, event: Any) -> Any:
        for listener in self.listeners_for(event):
            if isinstance(event, StoppableMapperEvent) and event.is_propagation_stopped():
                logger.debug("Propagation of %s stopped", type(event).__name__)
                break
            listener(event)
        return event
