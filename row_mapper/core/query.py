"""Query object.

Carries selection criteria and read/write options to a data source. The
mapper never interprets criteria keys; operator parsing is the data source's
concern.
"""

from __future__ import annotations

from typing import Any


class QueryObject:
    """Selection criteria plus options.

    Recognized options: ``limit``, ``offset``, ``sort`` (``order`` is accepted
    as an alias), ``fields`` and ``with``.

    Args:
        criteria: Field to value map. A bare key means equality (membership
            when the value is a list or tuple); ``"field <op>"`` keys carry an
            explicit operator.
        options: Option name to value map.
    """

    def __init__(
        self,
        criteria: dict[str, Any] | None = None,
        options: dict[str, Any] | None = None,
    ) -> None:
        self._criteria: dict[str, Any] = dict(criteria or {})
        self._options: dict[str, Any] = dict(options or {})

    @property
    def criteria(self) -> dict[str, Any]:
        return self._criteria

    @property
    def options(self) -> dict[str, Any]:
        return self._options

    def get_option(self, key: str, default: Any = None) -> Any:
        return self._options.get(key, default)

    def set_option(self, key: str, value: Any) -> QueryObject:
        self._options[key] = value
        return self

    def set_options(self, options: dict[str, Any]) -> QueryObject:
        self._options = dict(options)
        return self

    def set_criteria(self, criteria: dict[str, Any]) -> QueryObject:
        self._criteria = dict(criteria)
        return self

    def with_option(self, key: str, value: Any) -> QueryObject:
        """Return a copy with a single option replaced."""
        options = dict(self._options)
        options[key] = value
        return QueryObject(self._criteria, options)

    @property
    def eager_load(self) -> list[str]:
        """Association names requested through the ``with`` option."""
        value = self._options.get("with") or []
        if isinstance(value, str):
            return [value]
        return list(value)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, QueryObject):
            return NotImplemented
        return self._criteria == other._criteria and self._options == other._options

    def __repr__(self) -> str:
        return f"QueryObject(criteria={self._criteria!r}, options={self._options!r})"
