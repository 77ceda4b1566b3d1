"""Named hook registration for mapper subclasses.

A hook is a method on the object itself, registered under a lifecycle name
(``before_create``, ``after_find`` ...). A stoppable hook returning ``False``
cancels the operation it guards.
"""

from __future__ import annotations

from typing import Any

from row_mapper.core.exceptions import ConfigurationError


class HookMixin:
    """Registers and triggers methods of ``self`` under hook names."""

    _registered_hooks: dict[str, list[str]]

    def _hooks(self) -> dict[str, list[str]]:
        try:
            return self._registered_hooks
        except AttributeError:
            self._registered_hooks = {}
            return self._registered_hooks

    def register_hook(self, name: str, method: str) -> HookMixin:
        """Register ``self.<method>`` to run for hook *name*.

        Raises:
            ConfigurationError: If the method does not exist.
        """
        if not callable(getattr(self, method, None)):
            raise ConfigurationError(f"Hook method '{method}' does not exist")
        self._hooks().setdefault(name, []).append(method)
        return self

    def unregister_hook(self, name: str, method: str) -> HookMixin:
        hooks = self._hooks()
        if name in hooks:
            hooks[name] = [m for m in hooks[name] if m != method]
        return self

    def has_registered_hook(self, name: str, method: str) -> bool:
        return method in self._hooks().get(name, [])

    def trigger_hook(self, name: str, *args: Any, stoppable: bool = True) -> bool:
        """Run every method registered for *name* in registration order.

        Returns False as soon as a stoppable hook returns ``False``.
        """
        for method in list(self._hooks().get(name, [])):
            if getattr(self, method)(*args) is False and stoppable:
                return False
        return True
