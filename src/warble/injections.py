"""Injection registry — named, reusable action factories.

Modules can reference shared actions from their manifest instead of
writing them in ``actions.py``::

    {"actions": [{"method": "GET", "path": "/{id}", "injection": "crud.read",
                  "options": {"model": "User"}}]}

The app registers factories at startup::

    @app.injection("crud.read")
    def crud_read(module, model):
        def read(id: str):
            return store.get(model, id)
        return read

A factory receives the ``Module`` and the entry's ``options`` as keyword
arguments and returns the action handler. Identifiers are looked up in
this registry; handler classes are never resolved by name.
"""

from warble._internal.types import InjectionFactory
from warble.errors import ConfigurationError


class InjectionRegistry:
    """Mapping of injection identifiers to handler factories."""

    __slots__ = ("_factories",)

    def __init__(self) -> None:
        self._factories: dict[str, InjectionFactory] = {}

    def register(self, name: str, factory: InjectionFactory) -> None:
        if name in self._factories:
            msg = f"Duplicate injection name: {name!r}"
            raise ConfigurationError(msg)
        self._factories[name] = factory

    def get(self, name: str) -> InjectionFactory:
        """Look up a factory. Raises ``ConfigurationError`` if unknown."""
        try:
            return self._factories[name]
        except KeyError:
            msg = f"Unknown injection {name!r}. Registered: {sorted(self._factories)}"
            raise ConfigurationError(msg) from None

    def __contains__(self, name: object) -> bool:
        return name in self._factories

    def __len__(self) -> int:
        return len(self._factories)
